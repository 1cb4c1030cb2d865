"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator, Generator, Optional

from respkv.cache.access import LockedStore, OwnedStore
from respkv.cache.store import KVStore
from respkv.network.tcp_server import KVServer
from respkv.network.threaded_server import ThreadedKVServer, start_in_background
from respkv.protocol.parser import FrameDecoder, encode_command


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def store() -> KVStore:
    """Create a fresh, empty KVStore."""
    return KVStore()


@pytest.fixture
def locked_store(store: KVStore) -> LockedStore:
    """Wrap the store in a lock-based handle."""
    return LockedStore(store)


@pytest.fixture
def owned_store(store: KVStore) -> OwnedStore:
    """Wrap the store in a handle owned by the test thread."""
    return OwnedStore(store)


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def decoder() -> FrameDecoder:
    """Create a streaming FrameDecoder with a small buffer limit."""
    return FrameDecoder(max_buffer_size=1024)


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


async def _run_server(srv: KVServer) -> AsyncGenerator[KVServer, None]:
    # Start server in background task
    server_task = asyncio.create_task(srv.start())

    # Wait for server to be ready
    await asyncio.sleep(0.1)

    yield srv

    # Cleanup
    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


@pytest_asyncio.fixture
async def server(server_port: int) -> AsyncGenerator[KVServer, None]:
    """
    Create and start an asyncio server instance for testing.

    This fixture:
    1. Creates a KVServer on a random free port
    2. Starts it in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    srv = KVServer(host='127.0.0.1', port=server_port, strict_errors=False)
    async for running in _run_server(srv):
        yield running


@pytest_asyncio.fixture
async def strict_server(server_port: int) -> AsyncGenerator[KVServer, None]:
    """Asyncio server that replies -ERR to invalid commands."""
    srv = KVServer(host='127.0.0.1', port=server_port, strict_errors=True)
    async for running in _run_server(srv):
        yield running


@pytest.fixture
def threaded_server() -> Generator[ThreadedKVServer, None, None]:
    """Start a thread-per-connection server on an ephemeral port."""
    srv = ThreadedKVServer(host='127.0.0.1', port=0, strict_errors=False)
    thread = start_in_background(srv)

    yield srv

    srv.shutdown()
    srv.server_close()
    thread.join(timeout=5)


# ============================================================================
# Client Fixtures
# ============================================================================

class AsyncClient:
    """
    Helper class for testing server interactions.

    Provides a simple async context manager interface for
    sending commands and receiving raw reply bytes.

    Usage:
        async with AsyncClient('127.0.0.1', 6379) as client:
            response = await client.send_command("SET", "key", "value")
            assert response == b"+OK\\r\\n"
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    async def connect(self) -> None:
        """Establish connection to server."""
        self.reader, self.writer = await asyncio.open_connection(
            self.host, self.port
        )

    async def disconnect(self) -> None:
        """Close connection to server."""
        if self.writer:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def send_raw(self, data: bytes) -> None:
        """Write raw bytes to the server."""
        self.writer.write(data)
        await self.writer.drain()

    async def read_reply(self) -> bytes:
        """Read exactly one encoded reply."""
        line = await self.reader.readline()
        if line.startswith(b"$") and not line.startswith(b"$-"):
            length = int(line[1:].strip())
            line += await self.reader.readexactly(length + 2)
        return line

    async def send_command(self, *args) -> bytes:
        """
        Send a command as a RESP array and receive the reply.

        Returns:
            The raw reply bytes, terminator included
        """
        await self.send_raw(encode_command([str(arg) for arg in args]))
        return await self.read_reply()

    async def assert_no_reply(self, timeout: float = 0.2) -> None:
        """Check that the server sends nothing back within the timeout."""
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(self.reader.read(1), timeout)

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


@pytest.fixture
def client_factory(server_port: int):
    """
    Factory fixture to create test clients.

    Usage:
        async def test_something(server, client_factory):
            async with client_factory() as client:
                response = await client.send_command("GET", "key")
    """
    def factory() -> AsyncClient:
        return AsyncClient('127.0.0.1', server_port)
    return factory


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
