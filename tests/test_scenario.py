import asyncio

import pytest

from cotwire.framing import encode_stream
from cotwire.mock_client import AtakMockClient, MockClientError
from cotwire.scenario import Outcome, OutcomeKind, Scenario


class EchoScenario(Scenario):
    name = "echo"
    description = "server echoes a frame byte-identical"

    async def run(self, host, port):
        frame = encode_stream(b"hello")
        try:
            client = await AtakMockClient.connect(host, port)
        except MockClientError as exc:
            return Outcome.skipped(f"connect: {exc}")
        async with client:
            await client.send_frame(frame)
            try:
                received = await client.recv_frame(2.0)
            except MockClientError as exc:
                return Outcome.failed(f"recv: {exc}")
        if received != frame:
            return Outcome.failed("frame mismatch")
        return Outcome.passed()


def test_passed_display():
    outcome = Outcome.passed()
    assert outcome.kind is OutcomeKind.PASS
    assert str(outcome) == "PASS"


def test_failed_display_carries_reason():
    outcome = Outcome.failed("mismatch at byte 3")
    assert outcome.kind is OutcomeKind.FAIL
    assert outcome.reason == "mismatch at byte 3"
    assert str(outcome) == "FAIL: mismatch at byte 3"


def test_skipped_display_carries_reason():
    outcome = Outcome.skipped("docker missing")
    assert outcome.kind is OutcomeKind.SKIPPED
    assert str(outcome) == "SKIPPED: docker missing"


def test_outcomes_compare_by_value():
    assert Outcome.failed("x") == Outcome.failed("x")
    assert Outcome.failed("x") != Outcome.skipped("x")


def test_scenario_is_abstract():
    with pytest.raises(TypeError):
        Scenario()


@pytest.mark.asyncio
async def test_scenario_runs_against_echo_server():
    async def echo(reader, writer):
        data = await reader.read(1024)
        writer.write(data)
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(echo, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    async with server:
        outcome = await EchoScenario().run("127.0.0.1", port)
    assert outcome == Outcome.passed()


@pytest.mark.asyncio
async def test_scenario_reports_failure_when_server_closes():
    async def close_at_once(reader, writer):
        await reader.read(1024)
        writer.close()

    server = await asyncio.start_server(close_at_once, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    async with server:
        outcome = await EchoScenario().run("127.0.0.1", port)
    assert outcome.kind is OutcomeKind.FAIL
    assert outcome.reason.startswith("recv:")
    assert outcome == Outcome.failed(outcome.reason)
    assert str(outcome).startswith("FAIL: recv:")