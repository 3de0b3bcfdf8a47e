"""CoT XML decoder and encoder.

:func:`decode_xml` scans a CoT document and extracts the ``<event>``
attributes, the ``<point>`` attributes and the immediate children of
``<detail>``. Detail children and the inner ``<detail>`` markup are kept as
verbatim slices of the input, so unknown elements survive a round trip
unchanged.

Attribute values holding entity references are rejected with
:class:`~cotwire.errors.EntityNotSupportedError`; CoT in production never
uses them. :func:`encode_xml` writes a view back out with attributes in a
fixed canonical order and refuses values that would need escaping.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from .errors import (
    EntityNotSupportedError,
    MissingEventAttrError,
    MissingPointAttrError,
    SpecialCharInValueError,
    XmlError,
)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

_WHITESPACE = " \t\n\r"
_SPECIAL_CHARS = frozenset("<>&\"'")

_TAG_RE = re.compile(r"""<(?:[^>"']|"[^"]*"|'[^']*')*>""")
_DOCTYPE_RE = re.compile(r"<![^>\[]*(?:\[[^\]]*\])?[^>]*>")
_NAME_RE = re.compile(r"[^ \t\n\r>/]*")
_SKIP_NAME_RE = re.compile(r"<?[^ \t\n\r>/]*")
_WS_RE = re.compile(r"[ \t\n\r]*")
_KEY_RE = re.compile(r"[^= \t\n\r>/]*")
_EQ_RE = re.compile(r"[= \t\n\r]*")

_SKIPPED_MARKUP = (
    ("<!--", "-->", "comment"),
    ("<![CDATA[", "]]>", "CDATA section"),
    ("<?", "?>", "processing instruction"),
)


@dataclass
class EventAttrs:
    """Attributes of the ``<event>`` element.

    ``uid``, ``kind`` (the XML ``type`` attribute), ``time``, ``start``,
    ``stale`` and ``how`` are required by CoT; the rest are optional.
    """

    version: str | None = None
    uid: str = ""
    kind: str = ""
    time: str = ""
    start: str = ""
    stale: str = ""
    how: str = ""
    access: str | None = None
    qos: str | None = None
    opex: str | None = None
    caveat: str | None = None
    releaseable_to: str | None = None


@dataclass
class PointAttrs:
    """Attributes of the ``<point>`` element, kept as source strings."""

    lat: str = ""
    lon: str = ""
    hae: str = ""
    ce: str = ""
    le: str = ""


@dataclass
class DetailChild:
    """One immediate child element of ``<detail>``."""

    name: str
    raw: str


@dataclass
class DetailView:
    """The ``<detail>`` element: its trimmed inner markup and top-level children."""

    raw: str = ""
    children: list[DetailChild] = field(default_factory=list)


@dataclass
class CotEventView:
    """A parsed CoT event."""

    event: EventAttrs = field(default_factory=EventAttrs)
    point: PointAttrs | None = None
    detail: DetailView = field(default_factory=DetailView)


class _Tag(enum.Enum):
    START = "start"
    EMPTY = "empty"
    END = "end"


def _element_name(text: str, lt_pos: int) -> str:
    """Return the element name of the tag whose ``<`` sits at ``lt_pos``."""
    if not text.startswith("<", lt_pos):
        raise XmlError(f"expected '<' at position {lt_pos}")
    start = lt_pos + 2 if text.startswith("</", lt_pos) else lt_pos + 1
    return _NAME_RE.match(text, start).group()


def _skip_markup(text: str, lt: int) -> int | None:
    """Return the position after a comment, CDATA, PI or DOCTYPE at ``lt``."""
    for opener, closer, what in _SKIPPED_MARKUP:
        if text.startswith(opener, lt):
            end = text.find(closer, lt + len(opener))
            if end == -1:
                raise XmlError(f"unclosed {what} at position {lt}")
            return end + len(closer)
    if text.startswith("<!", lt):
        match = _DOCTYPE_RE.match(text, lt)
        if match is None:
            raise XmlError(f"unclosed declaration at position {lt}")
        return match.end()
    return None


def _scan(text: str) -> Iterator[tuple[_Tag, int, int]]:
    """Yield ``(kind, start, end)`` for every element tag in ``text``."""
    open_names: list[str] = []
    pos = 0
    while (lt := text.find("<", pos)) != -1:
        skipped_to = _skip_markup(text, lt)
        if skipped_to is not None:
            pos = skipped_to
            continue
        match = _TAG_RE.match(text, lt)
        if match is None:
            raise XmlError(f"unclosed tag at position {lt}")
        end = match.end()
        tag = match.group()
        name = _element_name(text, lt)
        if not name:
            raise XmlError(f"tag without a name at position {lt}")
        if tag.startswith("</"):
            if not open_names:
                raise XmlError(f"unmatched end tag </{name}> at position {lt}")
            expected = open_names.pop()
            if expected != name:
                raise XmlError(
                    f"end tag </{name}> at position {lt} does not match <{expected}>"
                )
            yield _Tag.END, lt, end
        elif tag.endswith("/>"):
            yield _Tag.EMPTY, lt, end
        else:
            open_names.append(name)
            yield _Tag.START, lt, end
        pos = end
    if open_names:
        raise XmlError(f"element <{open_names[-1]}> is never closed")


def walk_attrs(header: str) -> Iterator[tuple[str, str]]:
    """Yield ``(key, value)`` pairs from an element header such as ``<name a="1">``.

    Raises :class:`XmlError` for an unquoted value and
    :class:`EntityNotSupportedError` for a value holding ``&``.
    """
    length = len(header)
    pos = _SKIP_NAME_RE.match(header).end()
    while True:
        pos = _WS_RE.match(header, pos).end()
        if pos >= length or header[pos] in ">/":
            return
        key_match = _KEY_RE.match(header, pos)
        if key_match.end() == pos:
            return
        key = key_match.group()
        pos = _EQ_RE.match(header, key_match.end()).end()
        if pos >= length:
            return
        quote = header[pos]
        if quote not in "\"'":
            raise XmlError("attribute value must be quoted")
        close = header.find(quote, pos + 1)
        value_end = length if close == -1 else close
        value = header[pos + 1 : value_end]
        if "&" in value:
            raise EntityNotSupportedError()
        yield key, value
        pos = value_end + 1


_EVENT_FIELDS = {
    "version": "version",
    "uid": "uid",
    "type": "kind",
    "time": "time",
    "start": "start",
    "stale": "stale",
    "how": "how",
    "access": "access",
    "qos": "qos",
    "opex": "opex",
    "caveat": "caveat",
    "releaseableTo": "releaseable_to",
}

_POINT_FIELDS = ("lat", "lon", "hae", "ce", "le")


def _parse_event_attrs(header: str, event: EventAttrs) -> None:
    for key, value in walk_attrs(header):
        attr = _EVENT_FIELDS.get(key)
        if attr is not None:
            setattr(event, attr, value)


def _parse_point_attrs(header: str) -> PointAttrs:
    point = PointAttrs()
    for key, value in walk_attrs(header):
        if key in _POINT_FIELDS:
            setattr(point, key, value)
    if not point.lat:
        raise MissingPointAttrError("lat")
    if not point.lon:
        raise MissingPointAttrError("lon")
    return point


def decode_xml(text: str | bytes) -> CotEventView:
    """Decode a CoT XML document into a :class:`CotEventView`.

    Raises :class:`XmlError` on malformed input,
    :class:`EntityNotSupportedError` for entity references in attributes,
    and :class:`MissingEventAttrError` / :class:`MissingPointAttrError` when
    required attributes are absent.
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise XmlError(str(exc)) from exc

    view = CotEventView()
    depth = 0
    detail_inner_start: int | None = None
    child_start: int | None = None

    for kind, start, end in _scan(text):
        if kind is _Tag.START:
            depth += 1
            name = _element_name(text, start)
            if depth == 1 and name == "event":
                _parse_event_attrs(text[start:end], view.event)
            elif depth == 2 and name == "detail":
                detail_inner_start = end
            elif depth == 3 and detail_inner_start is not None:
                child_start = start
        elif kind is _Tag.EMPTY:
            name = _element_name(text, start)
            header = text[start:end]
            virtual_depth = depth + 1
            if virtual_depth == 1 and name == "event":
                _parse_event_attrs(header, view.event)
            elif virtual_depth == 2 and name == "point":
                view.point = _parse_point_attrs(header)
            elif virtual_depth == 3 and detail_inner_start is not None:
                view.detail.children.append(DetailChild(name=name, raw=header))
        else:
            if depth == 3 and detail_inner_start is not None:
                if child_start is not None:
                    view.detail.children.append(
                        DetailChild(
                            name=_element_name(text, child_start),
                            raw=text[child_start:end],
                        )
                    )
                    child_start = None
            elif depth == 2 and detail_inner_start is not None:
                view.detail.raw = text[detail_inner_start:start].strip(_WHITESPACE)
                detail_inner_start = None
            depth -= 1

    if not view.event.uid:
        raise MissingEventAttrError("uid")
    if not view.event.kind:
        raise MissingEventAttrError("type")
    return view


def _attr(key: str, value: str) -> str:
    bad = next((c for c in value if c in _SPECIAL_CHARS), None)
    if bad is not None:
        raise SpecialCharInValueError(bad)
    return f' {key}="{value}"'


def encode_xml(view: CotEventView) -> str:
    """Encode a view back to CoT XML with attributes in canonical order.

    Raises :class:`MissingEventAttrError` if ``uid`` or ``type`` is empty and
    :class:`SpecialCharInValueError` if a value needs entity escaping.
    """
    event = view.event
    if not event.uid:
        raise MissingEventAttrError("uid")
    if not event.kind:
        raise MissingEventAttrError("type")

    parts = [XML_DECLARATION, "<event"]
    if event.version is not None:
        parts.append(_attr("version", event.version))
    parts.extend(
        _attr(key, value)
        for key, value in (
            ("uid", event.uid),
            ("type", event.kind),
            ("time", event.time),
            ("start", event.start),
            ("stale", event.stale),
            ("how", event.how),
        )
    )
    parts.extend(
        _attr(key, value)
        for key, value in (
            ("access", event.access),
            ("qos", event.qos),
            ("opex", event.opex),
            ("caveat", event.caveat),
            ("releaseableTo", event.releaseable_to),
        )
        if value is not None
    )
    parts.append(">\n")

    if view.point is not None:
        parts.append("  <point")
        parts.extend(_attr(key, getattr(view.point, key)) for key in _POINT_FIELDS)
        parts.append("/>\n")

    parts.append("  <detail>\n")
    if view.detail.raw:
        parts.append(view.detail.raw)
        parts.append("\n")
    parts.append("  </detail>\n")
    parts.append("</event>\n")
    return "".join(parts)