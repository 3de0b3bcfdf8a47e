"""A single-connection ATAK simulator over the plain-TCP firehose.

The client speaks TAK Protocol v1 stream framing only
(``0xBF <varint length> <payload>``): it sends already-framed messages and
collects the frames the server fans back to it. There is no connection
preamble and no TLS.
"""

from __future__ import annotations

import asyncio
import socket

from .errors import CotError, IncompleteError
from .framing import decode_stream

_READ_CHUNK = 8192


class MockClientError(Exception):
    """Failure of an :class:`AtakMockClient` operation."""


class ClientTimeoutError(MockClientError, TimeoutError):
    """No complete frame arrived before the deadline."""

    def __init__(self) -> None:
        super().__init__("timeout waiting for inbound frame")


class PeerEofError(MockClientError):
    """The peer closed the socket before a full frame arrived."""

    def __init__(self) -> None:
        super().__init__("peer closed socket mid-frame")


class AtakMockClient:
    """One mock-ATAK connection.

    Bytes read past the end of a frame are kept for the next
    :meth:`recv_frame` call, so a half-arrived frame survives until the rest
    lands.
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._rx = bytearray()

    @classmethod
    async def connect(cls, host: str, port: int) -> AtakMockClient:
        """Open a TCP connection to a firehose listener."""
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as exc:
            raise MockClientError(f"io: {exc}") from exc
        sock = writer.get_extra_info("socket")
        if sock is not None:
            try:
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            except OSError as exc:
                writer.close()
                raise MockClientError(f"io: {exc}") from exc
        return cls(reader, writer)

    async def __aenter__(self) -> AtakMockClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def send_frame(self, framed: bytes | bytearray | memoryview) -> None:
        """Send one already-framed Protocol v1 message."""
        try:
            self._writer.write(bytes(framed))
            await self._writer.drain()
        except OSError as exc:
            raise MockClientError(f"io: {exc}") from exc

    async def recv_frame(self, timeout: float) -> bytes:
        """Return the next complete frame, header included.

        Raises :class:`ClientTimeoutError` if no frame completes within
        ``timeout`` seconds, :class:`PeerEofError` if the server closes the
        socket first, and :class:`MockClientError` on I/O failure or
        malformed framing.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            try:
                total, _payload = decode_stream(self._rx)
            except IncompleteError:
                pass
            except CotError as exc:
                raise MockClientError(f"frame decode: {exc}") from exc
            else:
                frame = bytes(self._rx[:total])
                del self._rx[:total]
                return frame

            remaining = deadline - loop.time()
            if remaining < 0:
                raise ClientTimeoutError()
            try:
                chunk = await asyncio.wait_for(self._reader.read(_READ_CHUNK), remaining)
            except asyncio.TimeoutError:
                raise ClientTimeoutError() from None
            except OSError as exc:
                raise MockClientError(f"io: {exc}") from exc
            if not chunk:
                raise PeerEofError()
            self._rx.extend(chunk)

    async def close(self) -> None:
        """Close the connection."""
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError:
            pass