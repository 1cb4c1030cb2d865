"""
Tests for the thread-per-connection server

These tests use the blocking RespClient against ThreadedKVServer,
including a stress run with many concurrent clients.

Run with: python -m pytest tests/test_threaded_server.py -v
"""

import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from respkv.client import ReplyError, RespClient
from respkv.network.threaded_server import ThreadedKVServer


def connect(server: ThreadedKVServer) -> RespClient:
    client = RespClient(server.host, server.port, timeout=5.0)
    client.connect()
    return client


class TestThreadedCommands:
    """Basic commands over the threaded server."""

    def test_ping_echo(self, threaded_server: ThreadedKVServer):
        with connect(threaded_server) as client:
            assert client.ping() == "PONG"
            assert client.echo("foo") == "foo"

    def test_set_get(self, threaded_server: ThreadedKVServer):
        with connect(threaded_server) as client:
            assert client.set("a", "1") == "OK"
            assert client.get("a") == "1"
            assert client.get("missing") is None

    def test_exact_wire_bytes(self, threaded_server: ThreadedKVServer):
        with socket.create_connection((threaded_server.host, threaded_server.port), timeout=5) as sock:
            sock.sendall(b"*1\r\n$4\r\nPING\r\n")
            assert sock.recv(64) == b"+PONG\r\n"

    @pytest.mark.slow
    def test_px_expiry(self, threaded_server: ThreadedKVServer):
        with connect(threaded_server) as client:
            client.set("a", "1", px=10)
            time.sleep(0.05)
            assert client.get("a") is None
            assert client.get("a") is None

    def test_invalid_command_then_valid(self, threaded_server: ThreadedKVServer):
        with connect(threaded_server) as client:
            client.send_raw(b"*1\r\n$3\r\nFOO\r\n")
            assert client.ping() == "PONG"

    def test_malformed_frame_keeps_connection(self, threaded_server: ThreadedKVServer):
        with connect(threaded_server) as client:
            client.send_raw(b"garbage\r\n")
            time.sleep(0.05)
            assert client.ping() == "PONG"

    def test_strict_mode(self):
        server = ThreadedKVServer(host='127.0.0.1', port=0, strict_errors=True)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        try:
            with connect(server) as client:
                with pytest.raises(ReplyError, match="unknown command"):
                    client.execute("NOPE")
                assert client.ping() == "PONG"
        finally:
            server.shutdown()
            server.server_close()


class TestThreadedConcurrency:
    """Stress the lock with many concurrent clients."""

    def test_concurrent_writers_distinct_keys(self, threaded_server: ThreadedKVServer):
        clients = 32
        keys_per_client = 50

        def writer(n):
            with connect(threaded_server) as client:
                for i in range(keys_per_client):
                    assert client.set(f"c{n}:k{i}", f"v{n}:{i}") == "OK"

        with ThreadPoolExecutor(max_workers=clients) as pool:
            list(pool.map(writer, range(clients)))

        assert threaded_server.store.size() == clients * keys_per_client

        def reader(n):
            with connect(threaded_server) as client:
                return [client.get(f"c{n}:k{i}") for i in range(keys_per_client)]

        with ThreadPoolExecutor(max_workers=clients) as pool:
            results = list(pool.map(reader, range(clients)))

        seen = [value for values in results for value in values]
        expected = [f"v{n}:{i}" for n in range(clients) for i in range(keys_per_client)]
        assert seen == expected
        assert len(set(seen)) == len(seen)

    def test_concurrent_writers_same_key(self, threaded_server: ThreadedKVServer):
        """Concurrent overwrites leave exactly one of the written values."""
        def writer(n):
            with connect(threaded_server) as client:
                for _ in range(20):
                    client.set("shared", f"writer-{n}")

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(writer, range(16)))

        with connect(threaded_server) as client:
            assert client.get("shared") in {f"writer-{n}" for n in range(16)}
        assert threaded_server.store.size() == 1

    def test_stats_count_requests(self, threaded_server: ThreadedKVServer):
        with connect(threaded_server) as client:
            client.ping()
            client.set("a", "1")

        # Counted when the handler thread sees the disconnect
        deadline = time.time() + 2
        while threaded_server.get_stats()["total_requests"] < 2 and time.time() < deadline:
            time.sleep(0.01)
        assert threaded_server.get_stats()["total_requests"] == 2
