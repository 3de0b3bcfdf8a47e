"""Exception hierarchy shared by the CoT codec and framing layers."""

from __future__ import annotations


class CotError(Exception):
    """Base class for every codec and framing failure."""


class InvalidMagicError(CotError):
    """A frame did not start with the expected magic byte."""

    def __init__(self, found: int) -> None:
        self.found = found
        super().__init__(f"framing: expected magic byte 0xBF, found {found:#04x}")


class IncompleteError(CotError):
    """The buffer holds fewer bytes than the decoder needs."""

    def __init__(self, need: int, have: int) -> None:
        self.need = need
        self.have = have
        super().__init__(f"framing: incomplete; need {need} bytes, have {have}")


class XmlError(CotError):
    """Malformed XML, an unexpected element, or a bad value."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"xml: {message}")


class FramingError(CotError):
    """Malformed framing, such as an over-long varint."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"framing: {message}")


class EntityNotSupportedError(CotError):
    """An attribute value held an XML entity reference."""

    def __init__(self) -> None:
        super().__init__("xml: entity decoding not supported in borrowed mode")


class MissingEventAttrError(CotError):
    """A required attribute of the <event> element is missing."""

    def __init__(self, attr: str) -> None:
        self.attr = attr
        super().__init__(f"xml: required event attribute `{attr}` missing")


class MissingPointAttrError(CotError):
    """A required attribute of the <point> element is missing."""

    def __init__(self, attr: str) -> None:
        self.attr = attr
        super().__init__(f"xml: required point attribute `{attr}` missing")


class SpecialCharInValueError(CotError):
    """A value held a character that would need entity escaping."""

    def __init__(self, char: str) -> None:
        self.char = char
        super().__init__(
            f"xml: value contains XML-special character `{char}` "
            "— entity escaping not supported"
        )