"""
Async TCP Server Module

This module implements the asynchronous TCP server for RESP-KV.

Every connection runs as a coroutine on the event loop thread, so the
store is only ever touched from that one thread and needs no lock. The
only suspension points are the socket read and write; a command is
decoded, dispatched and encoded without yielding to other connections.
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from typing import Optional

from ..cache.access import OwnedStore
from ..cache.store import KVStore
from ..config.settings import settings
from .session import Session

logger = logging.getLogger(__name__)


class KVServer:
    """
    Asynchronous TCP server for the RESP-KV service.

    This server handles multiple concurrent clients using asyncio.
    Each client connection is handled in a separate coroutine,
    allowing for high concurrency without threading.

    Features:
    - Non-blocking I/O with asyncio
    - Persistent connections (multiple commands per connection)
    - Graceful error handling and connection cleanup
    - Shared KVStore across all connections

    Usage:
        server = KVServer(host='127.0.0.1', port=6379)
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address (e.g., '127.0.0.1')
        port: Server port number (e.g., 6379)
        store: The KVStore instance shared by all connections
        strict_errors: Reply "-ERR ..." to invalid commands
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: KVStore = None,
            strict_errors: bool = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            store: KVStore instance (creates new one if not provided)
            strict_errors: Error reply policy (default from settings)
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.store = store if store is not None else KVStore()
        self.strict_errors = (
            strict_errors if strict_errors is not None else settings.STRICT_ERRORS
        )

        # Bound to the loop thread in start()
        self.handle: Optional[OwnedStore] = None

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._connection_count = 0
        self._total_requests = 0

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Reads chunks until the client disconnects (empty read) or an I/O
        error occurs, writing back the replies each chunk produces.
        Errors end this connection only.

        Args:
            reader: StreamReader for reading from the client
            writer: StreamWriter for writing to the client
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        session = Session(self.handle, peer=addr, strict_errors=self.strict_errors)
        logger.debug(f"Client connected: {addr}")

        try:
            while True:
                data = await reader.read(settings.READ_BUFFER_SIZE)
                if not data:
                    # Client disconnected
                    logger.debug(f"Client disconnected: {addr}")
                    break

                handled = session.requests
                response = session.process(data)
                self._total_requests += session.requests - handled
                if response:
                    writer.write(response)
                    await writer.drain()

        except (ConnectionResetError, BrokenPipeError):
            logger.debug(f"Connection reset by client: {addr}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        This method creates the asyncio server and runs forever
        (or until cancelled). It should be called from asyncio.run()
        or within an existing event loop.

        Example:
            server = KVServer(port=6379)
            asyncio.run(server.start())
        """
        if self._running:
            return

        self.handle = OwnedStore(self.store)
        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Closes the server and waits for it to fully shut down.
        """
        if self._server is None:
            return

        self._server.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with connection and request counts and the
            number of stored keys.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "stored_keys": self.store.size(),
        }

