import asyncio
import socket
from contextlib import asynccontextmanager

import pytest

from cotwire.framing import MAGIC, decode_stream, encode_stream
from cotwire.mock_client import (
    AtakMockClient,
    ClientTimeoutError,
    MockClientError,
    PeerEofError,
)


@asynccontextmanager
async def serve(handler):
    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    async with server:
        yield "127.0.0.1", port


@pytest.mark.asyncio
async def test_send_frame_reaches_server_unchanged():
    frame = encode_stream(b"\x08\x96\x01")
    got = asyncio.get_running_loop().create_future()

    async def handler(reader, writer):
        got.set_result(await reader.readexactly(len(frame)))
        writer.close()

    async with serve(handler) as (host, port):
        async with await AtakMockClient.connect(host, port) as client:
            await client.send_frame(frame)
            received = await asyncio.wait_for(got, 2.0)
    assert received == frame


@pytest.mark.asyncio
async def test_recv_frame_reassembles_split_frame():
    frame = encode_stream(bytes([0xAA]) * 128)

    async def handler(reader, writer):
        writer.write(frame[:3])
        await writer.drain()
        await asyncio.sleep(0.05)
        writer.write(frame[3:])
        await writer.drain()
        await reader.read()
        writer.close()

    async with serve(handler) as (host, port):
        async with await AtakMockClient.connect(host, port) as client:
            received = await client.recv_frame(2.0)
    assert received == frame
    assert received[0] == MAGIC
    assert decode_stream(received)[1] == bytes([0xAA]) * 128


@pytest.mark.asyncio
async def test_concatenated_frames_come_out_one_at_a_time():
    first = encode_stream(b"abc")
    second = encode_stream(b"defgh")

    async def handler(reader, writer):
        writer.write(first + second)
        await writer.drain()
        await reader.read()
        writer.close()

    async with serve(handler) as (host, port):
        async with await AtakMockClient.connect(host, port) as client:
            one = await client.recv_frame(2.0)
            two = await client.recv_frame(2.0)
    assert one == first
    assert two == second


@pytest.mark.asyncio
async def test_recv_frame_times_out_without_data():
    async def handler(reader, writer):
        await reader.read()
        writer.close()

    async with serve(handler) as (host, port):
        async with await AtakMockClient.connect(host, port) as client:
            with pytest.raises(ClientTimeoutError):
                await client.recv_frame(0.1)


@pytest.mark.asyncio
async def test_timeout_keeps_partial_frame_for_next_call():
    frame = encode_stream(b"hello")

    async def handler(reader, writer):
        writer.write(frame[:4])
        await writer.drain()
        await asyncio.sleep(0.3)
        writer.write(frame[4:])
        await writer.drain()
        await reader.read()
        writer.close()

    async with serve(handler) as (host, port):
        async with await AtakMockClient.connect(host, port) as client:
            with pytest.raises(ClientTimeoutError):
                await client.recv_frame(0.1)
            received = await client.recv_frame(2.0)
    assert received == frame


@pytest.mark.asyncio
async def test_peer_close_mid_frame_raises_eof():
    frame = encode_stream(b"hello")

    async def handler(reader, writer):
        writer.write(frame[:3])
        await writer.drain()
        writer.close()

    async with serve(handler) as (host, port):
        async with await AtakMockClient.connect(host, port) as client:
            with pytest.raises(PeerEofError):
                await client.recv_frame(2.0)


@pytest.mark.asyncio
async def test_bad_magic_is_a_decode_error():
    async def handler(reader, writer):
        writer.write(bytes([0xAB, 0x05, 1, 2, 3, 4, 5]))
        await writer.drain()
        await reader.read()
        writer.close()

    async with serve(handler) as (host, port):
        async with await AtakMockClient.connect(host, port) as client:
            with pytest.raises(MockClientError, match="frame decode"):
                await client.recv_frame(2.0)


@pytest.mark.asyncio
async def test_connect_refused_raises_client_error():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    with pytest.raises(MockClientError, match="io"):
        await AtakMockClient.connect("127.0.0.1", port)


def test_error_types_form_a_hierarchy():
    assert issubclass(ClientTimeoutError, MockClientError)
    assert issubclass(ClientTimeoutError, TimeoutError)
    assert issubclass(PeerEofError, MockClientError)
    assert str(PeerEofError()) == "peer closed socket mid-frame"