"""TAK Protocol v1 wire framing.

Two framings share the magic byte ``0xBF``:

- stream: ``0xBF <varint length> <payload>`` for TCP/TLS/QUIC, where frames
  flow concatenated;
- mesh: ``0xBF 0x01 0xBF <payload>`` for UDP, one datagram per frame.

Legacy v0 (raw CoT XML) has no framing; use :func:`peek` to tell the two apart.
"""

from __future__ import annotations

import enum

from .errors import FramingError, IncompleteError, InvalidMagicError

MAGIC = 0xBF
"""Magic byte that prefixes every framed TAK Protocol v1 message."""

MESH_HEADER = bytes([MAGIC, 0x01, MAGIC])
"""Fixed 3-byte header for mesh framing."""

MULTICAST_GROUP = "239.2.3.1"
"""Default UDP multicast group for the SA mesh."""

MULTICAST_PORT = 6969
"""Default UDP port for the mesh."""

MAX_VARINT_BYTES = 10
_U64_MASK = (1 << 64) - 1


class ProtoVersion(enum.IntEnum):
    """Wire-protocol version byte values."""

    XML = 0x00
    V1 = 0x01


class FrameKind(enum.Enum):
    """What kind of frame the next byte announces."""

    V1 = "v1"
    LEGACY_XML = "legacy_xml"


def peek(buf: bytes | bytearray | memoryview) -> FrameKind:
    """Report the kind of frame at the start of ``buf`` without consuming it."""
    if len(buf) == 0:
        raise IncompleteError(need=1, have=0)
    return FrameKind.V1 if buf[0] == MAGIC else FrameKind.LEGACY_XML


def read_varint(buf: bytes | bytearray | memoryview) -> tuple[int, int]:
    """Decode a protobuf varint, returning ``(value, bytes_consumed)``."""
    value = 0
    shift = 0
    for i, byte in enumerate(memoryview(buf).cast("B")):
        if i >= MAX_VARINT_BYTES:
            raise FramingError("varint exceeds 10 bytes")
        value = (value | ((byte & 0x7F) << shift)) & _U64_MASK
        if not byte & 0x80:
            return value, i + 1
        shift += 7
    raise IncompleteError(need=len(buf) + 1, have=len(buf))


def write_varint(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as a protobuf varint."""
    if not 0 <= value <= _U64_MASK:
        raise ValueError(f"varint value out of u64 range: {value}")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_stream(buf: bytes | bytearray | memoryview) -> tuple[int, bytes]:
    """Decode one stream frame, returning ``(bytes_consumed, payload)``.

    Raises :class:`IncompleteError` when more bytes are needed, so a reader
    can append to its buffer and retry.
    """
    view = memoryview(buf).cast("B")
    if len(view) == 0:
        raise IncompleteError(need=1, have=0)
    if view[0] != MAGIC:
        raise InvalidMagicError(view[0])
    length, varint_size = read_varint(view[1:])
    header = 1 + varint_size
    total = header + length
    if len(view) < total:
        raise IncompleteError(need=total, have=len(view))
    return total, bytes(view[header:total])


def encode_stream(payload: bytes | bytearray | memoryview) -> bytes:
    """Frame ``payload`` as ``0xBF <varint length> <payload>``."""
    data = bytes(payload)
    return bytes([MAGIC]) + write_varint(len(data)) + data


def decode_mesh(buf: bytes | bytearray | memoryview) -> bytes:
    """Return the payload of a mesh datagram, everything past its header."""
    view = memoryview(buf).cast("B")
    if len(view) < len(MESH_HEADER):
        raise IncompleteError(need=len(MESH_HEADER), have=len(view))
    if bytes(view[: len(MESH_HEADER)]) != MESH_HEADER:
        raise InvalidMagicError(view[0])
    return bytes(view[len(MESH_HEADER):])


def encode_mesh(payload: bytes | bytearray | memoryview) -> bytes:
    """Frame ``payload`` as a mesh datagram ``0xBF 0x01 0xBF <payload>``."""
    return MESH_HEADER + bytes(payload)