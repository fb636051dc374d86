"""Shared fixtures for the agent tests."""

import asyncio
import socket

import pytest

from lan_print_agent.config import AgentConfig


class FakePrinter:
    """Raw TCP printer on 127.0.0.1 that records what it receives until EOF."""

    def __init__(self):
        self.received = bytearray()
        self.connections = 0
        self.eof = asyncio.Event()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.connections += 1
        data = await reader.read()  # returns once the client half-closes
        self.received.extend(data)
        self.eof.set()
        writer.close()

    async def __aenter__(self) -> 'FakePrinter':
        self.server = await asyncio.start_server(self._handle, '127.0.0.1', 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self

    async def __aexit__(self, *exc):
        self.server.close()
        await self.server.wait_closed()


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture
def config() -> AgentConfig:
    """Configuration with short timeouts for local tests."""
    return AgentConfig(
        printer_discovery_timeout=1000,
        message_reply_timeout=500,
        scan_timeout=300,
        static_timeout=300,
        broadcast_window=300,
    )


@pytest.fixture
def fake_printer():
    return FakePrinter


@pytest.fixture
def closed_port() -> int:
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
