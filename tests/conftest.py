"""Pytest configuration and shared fixtures for Restate tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from restate.config import GatewayConfig
from restate.core.routes import RouteTable
from restate.devices.tvcom import compile_routes, load_opcodes
from restate.devices.tvcom.opcodes import OpcodeDefinition
from restate.main import create_app

TESTDATA = Path(__file__).parent / "testdata"


def device_reply(opcodes: tuple[OpcodeDefinition, ...], frame: bytes) -> bytes:
    """Build the reply a tvcom display sends for a request frame.

    The display echoes the second command character and the data code,
    with status OK when the data code is valid for the command and NG
    otherwise.
    """
    command = frame[0:2].decode()
    data = frame[6:8].decode()
    opcode = next((o for o in opcodes if o.code == command), None)
    status = "OK" if opcode is not None and data in opcode.data else "NG"
    return f"{command[1]} 00 {status}{data}x".encode()


class FakeTransport:
    """In-process transport emulating a tvcom display.

    Args:
        opcodes: Opcode table the emulated display understands
        reply: Fixed reply returned instead of the emulated one
        error: Exception raised instead of replying
    """

    def __init__(
        self,
        opcodes: tuple[OpcodeDefinition, ...],
        reply: bytes | None = None,
        error: Exception | None = None,
    ) -> None:
        self.opcodes = opcodes
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, bytes, float]] = []

    async def exchange(self, endpoint: str, frame: bytes, timeout: float) -> bytes:
        self.calls.append((endpoint, frame, timeout))
        if self.error is not None:
            raise self.error
        if self.reply is not None:
            return self.reply
        return device_reply(self.opcodes, frame)


class RecordFactory:
    """Factory for creating inventory records."""

    @staticmethod
    def tvcom(
        name: str | None = "test1",
        host: str | None = "192.168.1.161",
        timeout_ms: int | None = 500,
    ) -> dict[str, Any]:
        """Create a tvcom inventory record.

        Fields passed as None are left out of the record.
        """
        config: dict[str, Any] = {}
        if name is not None:
            config["name"] = name
        if host is not None:
            config["host"] = host
        if timeout_ms is not None:
            config["timeoutMs"] = timeout_ms
        return {"type": "tvcom", "config": config}


@pytest.fixture(scope="session")
def opcodes() -> tuple[OpcodeDefinition, ...]:
    """Fixture providing the bundled opcode table."""
    return load_opcodes()


@pytest.fixture
def records() -> type[RecordFactory]:
    """Provide RecordFactory class for creating inventory records."""
    return RecordFactory


@pytest.fixture
def transport(opcodes: tuple[OpcodeDefinition, ...]) -> FakeTransport:
    """Fixture providing an emulated display transport."""
    return FakeTransport(opcodes)


@pytest.fixture
def single_device_table(opcodes, transport: FakeTransport) -> RouteTable:
    """Route table for one configured display named test1."""
    return compile_routes([RecordFactory.tvcom("test1")], opcodes, transport)


@pytest.fixture
def multi_device_table(opcodes, transport: FakeTransport) -> RouteTable:
    """Route table for two configured displays, test1 and test2."""
    return compile_routes(
        [RecordFactory.tvcom("test1"), RecordFactory.tvcom("test2", host="192.168.1.162")],
        opcodes,
        transport,
    )


def make_client(table: RouteTable) -> TestClient:
    """FastAPI test client serving a precompiled route table."""
    return TestClient(create_app(route_table=table, config=GatewayConfig()))


@pytest.fixture
def single_client(single_device_table: RouteTable) -> TestClient:
    return make_client(single_device_table)


@pytest.fixture
def multi_client(multi_device_table: RouteTable) -> TestClient:
    return make_client(multi_device_table)


@pytest.fixture
def make_transport(opcodes):
    """Factory fixture for FakeTransport with a fixed reply or error."""

    def _make(reply: bytes | None = None, error: Exception | None = None) -> FakeTransport:
        return FakeTransport(opcodes, reply=reply, error=error)

    return _make


@pytest.fixture
def client_for():
    """Factory fixture building a TestClient for any route table."""
    return make_client


@pytest.fixture
def emulate_display(opcodes):
    """Reply function of an emulated display, for websocket bridge tests."""

    def _reply(frame: bytes) -> bytes:
        return device_reply(opcodes, frame)

    return _reply


@pytest.fixture
def testdata() -> Path:
    """Directory holding YAML fixtures."""
    return TESTDATA
