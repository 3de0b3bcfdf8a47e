"""TAK Protocol v1 message types.

Plain dataclasses mirroring the ``TakMessage`` protobuf schema. Every field
defaults to its proto3 zero value; optional sub-messages default to ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Contact:
    """Contact information: network endpoint and callsign."""

    endpoint: str = ""
    callsign: str = ""


@dataclass
class Group:
    """Team membership: group name and role."""

    name: str = ""
    role: str = ""


@dataclass
class PrecisionLocation:
    """Sources of the geopoint and the altitude."""

    geopointsrc: str = ""
    altsrc: str = ""


@dataclass
class Status:
    """Device status; currently only the battery level."""

    battery: int = 0


@dataclass
class Takv:
    """Software and device version of the sending client."""

    device: str = ""
    platform: str = ""
    os: str = ""
    version: str = ""


@dataclass
class Track:
    """Movement: speed and course."""

    speed: float = 0.0
    course: float = 0.0


@dataclass
class Detail:
    """The ``<detail>`` block: typed sub-messages plus opaque XML for the rest."""

    xml_detail: str = ""
    contact: Contact | None = None
    group: Group | None = None
    precision_location: PrecisionLocation | None = None
    status: Status | None = None
    takv: Takv | None = None
    track: Track | None = None


@dataclass
class CotEvent:
    """A CoT event with times in milliseconds since the Unix epoch."""

    type: str = ""
    access: str = ""
    qos: str = ""
    opex: str = ""
    caveat: str = ""
    releaseable_to: str = ""
    uid: str = ""
    send_time: int = 0
    start_time: int = 0
    stale_time: int = 0
    how: str = ""
    lat: float = 0.0
    lon: float = 0.0
    hae: float = 0.0
    ce: float = 0.0
    le: float = 0.0
    detail: Detail | None = None


@dataclass
class TakMessage:
    """Top-level TAK Protocol v1 message."""

    cot_event: CotEvent | None = None
    submission_time: int = 0
    creation_time: int = 0