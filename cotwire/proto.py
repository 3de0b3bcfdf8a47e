"""Bridges between parsed CoT XML views and TAK Protocol v1 messages.

:func:`view_to_takmessage` turns a :class:`~cotwire.xml.CotEventView` into a
:class:`~cotwire.messages.TakMessage`. A ``<detail>`` child becomes a typed
sub-message only when it carries every required attribute and nothing else;
otherwise the whole element stays verbatim in ``Detail.xml_detail``, joined
to the other leftovers with newlines in document order.

:func:`takmessage_to_xml` is the inverse: typed sub-messages are written as
their XML elements, followed by ``xml_detail`` verbatim.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from .errors import MissingEventAttrError, SpecialCharInValueError, XmlError
from .messages import (
    Contact,
    CotEvent,
    Detail,
    Group,
    PrecisionLocation,
    Status,
    TakMessage,
    Takv,
    Track,
)
from .xml import XML_DECLARATION, CotEventView, DetailChild, walk_attrs

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_I64_MAX = (1 << 63) - 1
_U32_MAX = (1 << 32) - 1
_SPECIAL_CHARS = frozenset("<>&\"'")

_TIMESTAMP_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})[Tt ]([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:[.,]([0-9]{1,9}))?"
    r"(?:([Zz])|([+-])([0-9]{2}):?([0-9]{2}))\Z"
)
_U32_RE = re.compile(r"\+?[0-9]+\Z")


# ---------------------------------------------------------------------------
# Scalar parsing and formatting
# ---------------------------------------------------------------------------


def _parse_timestamp_ms(text: str) -> int:
    """Parse an RFC 3339 timestamp into milliseconds since the epoch."""
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        raise XmlError(f"timestamp `{text}`: not an RFC 3339 timestamp")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction, _zulu, sign, off_hours, off_minutes = match.groups()[6:]
    try:
        moment = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    except ValueError as exc:
        raise XmlError(f"timestamp `{text}`: {exc}") from exc
    offset_seconds = 0
    if sign is not None:
        if int(off_hours) > 23 or int(off_minutes) > 59:
            raise XmlError(f"timestamp `{text}`: offset out of range")
        offset_seconds = (int(off_hours) * 60 + int(off_minutes)) * 60
        if sign == "-":
            offset_seconds = -offset_seconds
    delta = moment - _EPOCH
    seconds = delta.days * 86_400 + delta.seconds - offset_seconds
    millis = int((fraction or "0").ljust(3, "0")[:3])
    total = seconds * 1000 + millis
    if total < 0:
        raise XmlError(f"timestamp `{text}` predates epoch")
    return total


def _format_timestamp(ms: int) -> str:
    """Format milliseconds since the epoch as ISO-8601 with 3 decimal seconds."""
    if not 0 <= ms <= _I64_MAX:
        raise XmlError("timestamp overflow")
    try:
        moment = _EPOCH + timedelta(milliseconds=ms)
    except OverflowError as exc:
        raise XmlError(f"timestamp from_millisecond({ms}): {exc}") from exc
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{ms % 1000:03d}Z"


def _try_f64(text: str) -> float | None:
    """Strictly parse a float: no surrounding whitespace, no digit separators."""
    if not text or not text.isascii() or "_" in text or text != text.strip():
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _parse_f64(text: str) -> float:
    """Parse a float, treating malformed input as missing data (0.0)."""
    value = _try_f64(text)
    return 0.0 if value is None else value


def _try_u32(text: str) -> int | None:
    if not _U32_RE.match(text):
        return None
    value = int(text)
    return value if value <= _U32_MAX else None


def _format_f64(value: float) -> str:
    """Shortest round-tripping positional form, without exponent or trailing '.0'."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


# ---------------------------------------------------------------------------
# View -> TakMessage
# ---------------------------------------------------------------------------


def _child_attrs(child: DetailChild, known: frozenset[str]) -> dict[str, str] | None:
    """Collect a child's attributes; ``None`` if it carries any unknown one."""
    end = child.raw.find(">")
    header = child.raw if end == -1 else child.raw[: end + 1]
    values: dict[str, str] = {}
    has_extra = False
    for key, value in walk_attrs(header):
        if key in known:
            values[key] = value
        else:
            has_extra = True
    return None if has_extra else values


def _to_contact(attrs: dict[str, str]) -> Contact | None:
    if {"endpoint", "callsign"} <= attrs.keys():
        return Contact(endpoint=attrs["endpoint"], callsign=attrs["callsign"])
    return None


def _to_group(attrs: dict[str, str]) -> Group | None:
    if {"name", "role"} <= attrs.keys():
        return Group(name=attrs["name"], role=attrs["role"])
    return None


def _to_precision_location(attrs: dict[str, str]) -> PrecisionLocation | None:
    if {"geopointsrc", "altsrc"} <= attrs.keys():
        return PrecisionLocation(geopointsrc=attrs["geopointsrc"], altsrc=attrs["altsrc"])
    return None


def _to_status(attrs: dict[str, str]) -> Status | None:
    battery = _try_u32(attrs["battery"]) if "battery" in attrs else None
    return None if battery is None else Status(battery=battery)


def _to_takv(attrs: dict[str, str]) -> Takv | None:
    if {"device", "platform", "os", "version"} <= attrs.keys():
        return Takv(
            device=attrs["device"],
            platform=attrs["platform"],
            os=attrs["os"],
            version=attrs["version"],
        )
    return None


def _to_track(attrs: dict[str, str]) -> Track | None:
    speed = _try_f64(attrs["speed"]) if "speed" in attrs else None
    course = _try_f64(attrs["course"]) if "course" in attrs else None
    if speed is None or course is None:
        return None
    return Track(speed=speed, course=course)


_CONVERTERS: dict[str, tuple[str, frozenset[str], Callable[[dict[str, str]], object]]] = {
    "contact": ("contact", frozenset({"endpoint", "callsign"}), _to_contact),
    "__group": ("group", frozenset({"name", "role"}), _to_group),
    "precisionlocation": (
        "precision_location",
        frozenset({"geopointsrc", "altsrc"}),
        _to_precision_location,
    ),
    "status": ("status", frozenset({"battery"}), _to_status),
    "takv": ("takv", frozenset({"device", "platform", "os", "version"}), _to_takv),
    "track": ("track", frozenset({"speed", "course"}), _to_track),
}


def _build_detail(children: list[DetailChild]) -> Detail:
    detail = Detail()
    leftovers: list[str] = []
    for child in children:
        converter = _CONVERTERS.get(child.name)
        if converter is not None:
            field_name, known, convert = converter
            if getattr(detail, field_name) is None:
                attrs = _child_attrs(child, known)
                typed = None if attrs is None else convert(attrs)
                if typed is not None:
                    setattr(detail, field_name, typed)
                    continue
        leftovers.append(child.raw)
    detail.xml_detail = "\n".join(leftovers)
    return detail


def view_to_takmessage(view: CotEventView) -> TakMessage:
    """Convert a parsed CoT view into a :class:`TakMessage`.

    ``submission_time`` and ``creation_time`` stay at zero; they are stamped
    by the server. Raises :class:`MissingEventAttrError` for an empty uid or
    type and :class:`XmlError` for an unparseable timestamp.
    """
    event = view.event
    if not event.uid:
        raise MissingEventAttrError("uid")
    if not event.kind:
        raise MissingEventAttrError("type")

    send_time = _parse_timestamp_ms(event.time)
    start_time = _parse_timestamp_ms(event.start)
    stale_time = _parse_timestamp_ms(event.stale)

    point = view.point
    if point is None:
        lat = lon = hae = ce = le = 0.0
    else:
        lat, lon, hae, ce, le = (
            _parse_f64(v) for v in (point.lat, point.lon, point.hae, point.ce, point.le)
        )

    cot_event = CotEvent(
        type=event.kind,
        access=event.access or "",
        qos=event.qos or "",
        opex=event.opex or "",
        caveat=event.caveat or "",
        releaseable_to=event.releaseable_to or "",
        uid=event.uid,
        send_time=send_time,
        start_time=start_time,
        stale_time=stale_time,
        how=event.how,
        lat=lat,
        lon=lon,
        hae=hae,
        ce=ce,
        le=le,
        detail=_build_detail(view.detail.children),
    )
    return TakMessage(cot_event=cot_event)


# ---------------------------------------------------------------------------
# TakMessage -> XML
# ---------------------------------------------------------------------------


def _attr(key: str, value: str) -> str:
    bad = next((c for c in value if c in _SPECIAL_CHARS), None)
    if bad is not None:
        raise SpecialCharInValueError(bad)
    return f' {key}="{value}"'


def _float_attr(key: str, value: float) -> str:
    return f' {key}="{_format_f64(value)}"'


def _element(name: str, attrs: list[str]) -> str:
    return f"    <{name}{''.join(attrs)}/>\n"


def _typed_subs(detail: Detail) -> list[str]:
    parts: list[str] = []
    if (t := detail.takv) is not None:
        parts.append(
            _element(
                "takv",
                [
                    _attr("device", t.device),
                    _attr("platform", t.platform),
                    _attr("os", t.os),
                    _attr("version", t.version),
                ],
            )
        )
    if (c := detail.contact) is not None:
        parts.append(
            _element("contact", [_attr("endpoint", c.endpoint), _attr("callsign", c.callsign)])
        )
    if (g := detail.group) is not None:
        parts.append(_element("__group", [_attr("name", g.name), _attr("role", g.role)]))
    if (s := detail.status) is not None:
        parts.append(_element("status", [f' battery="{s.battery}"']))
    if (tr := detail.track) is not None:
        parts.append(
            _element("track", [_float_attr("speed", tr.speed), _float_attr("course", tr.course)])
        )
    if (p := detail.precision_location) is not None:
        parts.append(
            _element(
                "precisionlocation",
                [_attr("geopointsrc", p.geopointsrc), _attr("altsrc", p.altsrc)],
            )
        )
    return parts


def takmessage_to_xml(msg: TakMessage) -> str:
    """Encode a :class:`TakMessage` as CoT XML.

    Raises :class:`XmlError` when ``cot_event`` is missing or a timestamp is
    out of range, and :class:`SpecialCharInValueError` when a string field
    holds ``<``, ``>``, ``&``, ``"`` or ``'``.
    """
    cot = msg.cot_event
    if cot is None:
        raise XmlError("TakMessage missing cot_event")

    parts = [XML_DECLARATION, "<event"]
    parts.extend(
        _attr(key, value)
        for key, value in (
            ("version", "2.0"),
            ("uid", cot.uid),
            ("type", cot.type),
            ("time", _format_timestamp(cot.send_time)),
            ("start", _format_timestamp(cot.start_time)),
            ("stale", _format_timestamp(cot.stale_time)),
            ("how", cot.how),
        )
    )
    parts.extend(
        _attr(key, value)
        for key, value in (
            ("access", cot.access),
            ("qos", cot.qos),
            ("opex", cot.opex),
            ("caveat", cot.caveat),
            ("releaseableTo", cot.releaseable_to),
        )
        if value
    )
    parts.append(">\n")

    parts.append("  <point")
    parts.extend(
        _float_attr(key, value)
        for key, value in (
            ("lat", cot.lat),
            ("lon", cot.lon),
            ("hae", cot.hae),
            ("ce", cot.ce),
            ("le", cot.le),
        )
    )
    parts.append("/>\n")

    parts.append("  <detail>\n")
    if cot.detail is not None:
        parts.extend(_typed_subs(cot.detail))
        if cot.detail.xml_detail:
            parts.append(f"    {cot.detail.xml_detail}\n")
    parts.append("  </detail>\n")
    parts.append("</event>\n")
    return "".join(parts)