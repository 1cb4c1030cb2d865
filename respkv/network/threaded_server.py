"""
Threaded TCP Server Module

Thread-per-connection variant of the RESP-KV server, built on
socketserver.ThreadingTCPServer with blocking sockets. Commands from
different connections can be dispatched at the same moment, so the store
is reached through a LockedStore: the lock is held for one command at a
time, never for a whole connection.
"""

import logging
import socket
import socketserver
import threading

from ..cache.access import LockedStore
from ..cache.store import KVStore
from ..config.settings import settings
from .session import Session

logger = logging.getLogger(__name__)


class RequestHandler(socketserver.BaseRequestHandler):
    """Serves one client connection on its own thread."""

    server: "ThreadedKVServer"

    def handle(self) -> None:
        conn: socket.socket = self.request
        addr = self.client_address
        session = Session(self.server.handle, peer=addr, strict_errors=self.server.strict_errors)
        logger.debug(f"Client connected: {addr}")

        try:
            while True:
                data = conn.recv(settings.READ_BUFFER_SIZE)
                if not data:
                    logger.debug(f"Client disconnected: {addr}")
                    break

                response = session.process(data)
                if response:
                    conn.sendall(response)
        except (ConnectionResetError, BrokenPipeError):
            logger.debug(f"Connection reset by client: {addr}")
        except OSError as exc:
            logger.warning(f"I/O error on connection {addr}: {exc}")
        finally:
            self.server.count_requests(session.requests)


class ThreadedKVServer(socketserver.ThreadingTCPServer):
    """
    Blocking, thread-per-connection TCP server for RESP-KV.

    Usage:
        server = ThreadedKVServer(host='127.0.0.1', port=6379)
        server.serve_forever()

    Attributes:
        store: The KVStore instance shared by all connections
        handle: LockedStore guarding the store
        strict_errors: Reply "-ERR ..." to invalid commands
    """

    daemon_threads = True
    allow_reuse_address = True

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: KVStore = None,
            strict_errors: bool = None,
    ):
        host = host if host is not None else settings.HOST
        port = port if port is not None else settings.PORT
        self.store = store if store is not None else KVStore()
        self.handle = LockedStore(self.store)
        self.strict_errors = (
            strict_errors if strict_errors is not None else settings.STRICT_ERRORS
        )
        self._stats_lock = threading.Lock()
        self._total_requests = 0
        super().__init__((host, port), RequestHandler)

    @property
    def host(self) -> str:
        return self.server_address[0]

    @property
    def port(self) -> int:
        return self.server_address[1]

    def server_activate(self) -> None:
        super().server_activate()
        logger.info(f"Serving on {self.server_address}")

    def count_requests(self, count: int) -> None:
        with self._stats_lock:
            self._total_requests += count

    def get_stats(self) -> dict:
        """Get server statistics."""
        return {
            "host": self.host,
            "port": self.port,
            "total_requests": self._total_requests,
            "stored_keys": self.store.size(),
        }


def run_threaded_server(
        host: str = None,
        port: int = None,
        store: KVStore = None,
        strict_errors: bool = None,
) -> None:
    """
    Create and run the threaded server until interrupted.

    Usage:
        run_threaded_server(port=6379)
    """
    server = ThreadedKVServer(host=host, port=port, store=store, strict_errors=strict_errors)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    finally:
        server.server_close()


def start_in_background(server: ThreadedKVServer) -> threading.Thread:
    """Run serve_forever() on a daemon thread and return the thread."""
    thread = threading.Thread(target=server.serve_forever, name="resp-kv-server", daemon=True)
    thread.start()
    return thread
