"""
Blocking RESP-KV Client

A small socket client that sends commands as RESP arrays and reads back
one reply per command. Used by scripts/client.py and the test suite.

Usage:
    with RespClient('127.0.0.1', 6379) as client:
        client.set("a", "1", px=500)
        client.get("a")   # -> "1"
"""

import socket
from typing import Optional

from .protocol.parser import CRLF, encode_command


class ReplyError(Exception):
    """The server answered with an error reply."""


class RespClient:
    """Simple TCP client for RESP-KV."""

    def __init__(self, host: str = "127.0.0.1", port: int = 6379, timeout: float = 5.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.socket: Optional[socket.socket] = None
        self._buffer = b""

    def connect(self) -> None:
        """Connect to the server."""
        self.socket = socket.create_connection((self.host, self.port), timeout=self.timeout)

    def close(self) -> None:
        """Disconnect from the server."""
        if self.socket:
            self.socket.close()
            self.socket = None
        self._buffer = b""

    def send_raw(self, data: bytes) -> None:
        """Send raw bytes without framing them."""
        if self.socket is None:
            raise ConnectionError("not connected")
        self.socket.sendall(data)

    def execute(self, *args) -> Optional[str]:
        """
        Send one command and wait for its reply.

        Returns:
            Status text or bulk payload, None for a null reply

        Raises:
            ReplyError: The server sent an error reply
            ConnectionError: The server closed the connection
        """
        self.send_raw(encode_command([str(arg) for arg in args]))
        return self.read_reply()

    def read_reply(self) -> Optional[str]:
        """Read and decode exactly one reply from the socket."""
        line = self._read_line()
        prefix, body = line[:1], line[1:]

        if prefix == b"+":
            return body.decode()
        if prefix == b"-":
            raise ReplyError(body.decode())
        if prefix == b"$":
            length = int(body)
            if length < 0:
                return None
            payload = self._read_exact(length + len(CRLF))
            return payload[:length].decode()
        raise ReplyError(f"unexpected reply line: {line!r}")

    def ping(self) -> str:
        return self.execute("PING")

    def echo(self, message: str) -> str:
        return self.execute("ECHO", message)

    def set(self, key: str, value: str, px: int = None) -> str:
        if px is None:
            return self.execute("SET", key, value)
        return self.execute("SET", key, value, "PX", px)

    def get(self, key: str) -> Optional[str]:
        return self.execute("GET", key)

    def _fill(self) -> None:
        chunk = self.socket.recv(4096)
        if not chunk:
            raise ConnectionError("connection closed by server")
        self._buffer += chunk

    def _read_line(self) -> bytes:
        while CRLF not in self._buffer:
            self._fill()
        line, _, self._buffer = self._buffer.partition(CRLF)
        return line

    def _read_exact(self, size: int) -> bytes:
        while len(self._buffer) < size:
            self._fill()
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
