#!/usr/bin/env python3
"""
Benchmark Script for RESP-KV

Measures the in-process cost of the store, the dispatcher and the frame
decoder, without network overhead. Also compares the lock-based
handle with the single-owner one.

Usage:
    python scripts/benchmark.py                    # Run all benchmarks
    python scripts/benchmark.py --operations 10000 # Custom operation count
"""

import argparse
import os
import random
import string
import sys
import time
from typing import Callable, List

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from respkv.cache.access import LockedStore, OwnedStore  # noqa: E402
from respkv.cache.store import KVStore  # noqa: E402
from respkv.network.session import Session  # noqa: E402
from respkv.protocol.parser import decode, encode_command  # noqa: E402


def random_string(length: int) -> str:
    """Generate a random alphanumeric string."""
    return ''.join(random.choices(string.ascii_letters + string.digits, k=length))


class Benchmark:
    """Collection of benchmarks for RESP-KV components."""

    def __init__(self, operations: int = 10000, key_size: int = 16, value_size: int = 64):
        self.operations = operations
        self.key_size = key_size
        self.value_size = value_size

        # Pre-generate test data
        self.keys = [random_string(key_size) for _ in range(operations)]
        self.values = [random_string(value_size) for _ in range(operations)]

    def _result(self, name: str, run: Callable) -> dict:
        start = time.perf_counter()
        run()
        elapsed = time.perf_counter() - start
        return {
            "operation": name,
            "total_ms": elapsed * 1000,
            "ops_per_second": self.operations / elapsed,
        }

    def _populated(self, expires_at: float = None) -> KVStore:
        store = KVStore()
        for i in range(self.operations):
            store.put(self.keys[i], self.values[i], expires_at)
        return store

    def benchmark_put(self) -> dict:
        """Benchmark store puts."""
        store = KVStore()

        def run():
            for i in range(self.operations):
                store.put(self.keys[i], self.values[i])

        return self._result("put", run)

    def benchmark_get_hit(self) -> dict:
        """Benchmark reads of live keys."""
        store = self._populated()

        def run():
            for key in self.keys:
                store.get_and_expire(key, 0.0)

        return self._result("get_and_expire (hit)", run)

    def benchmark_get_miss(self) -> dict:
        """Benchmark reads of absent keys."""
        store = KVStore()
        miss_keys = [random_string(self.key_size) for _ in range(self.operations)]

        def run():
            for key in miss_keys:
                store.get_and_expire(key, 0.0)

        return self._result("get_and_expire (miss)", run)

    def benchmark_get_expired(self) -> dict:
        """Benchmark reads that trigger lazy removal."""
        store = self._populated(expires_at=1.0)

        def run():
            for key in self.keys:
                store.get_and_expire(key, 2.0)

        return self._result("get_and_expire (expired)", run)

    def benchmark_handle(self, handle_class) -> dict:
        """Benchmark SET + GET dispatch through a store handle."""
        handle = handle_class(KVStore())
        half = self.operations // 2

        def run():
            for i in range(half):
                handle.execute(["SET", self.keys[i], self.values[i], "PX", "60000"])
                handle.execute(["GET", self.keys[i]])

        return self._result(f"dispatch via {handle_class.__name__}", run)

    def benchmark_decode(self) -> dict:
        """Benchmark one-shot frame decoding."""
        frames = [encode_command(["SET", self.keys[i], self.values[i]]) for i in range(self.operations)]

        def run():
            for data in frames:
                decode(data)

        return self._result("decode", run)

    def benchmark_session_pipeline(self) -> dict:
        """Benchmark a session processing one large pipelined chunk."""
        session = Session(LockedStore(KVStore()), strict_errors=False)
        chunk = b"".join(
            encode_command(["SET", self.keys[i], self.values[i]]) for i in range(self.operations)
        )

        def run():
            session.process(chunk)

        return self._result("session (pipelined SET)", run)

    def run_all(self) -> List[dict]:
        """Run all benchmarks."""
        return [
            self.benchmark_put(),
            self.benchmark_get_hit(),
            self.benchmark_get_miss(),
            self.benchmark_get_expired(),
            self.benchmark_handle(LockedStore),
            self.benchmark_handle(OwnedStore),
            self.benchmark_decode(),
            self.benchmark_session_pipeline(),
        ]


def print_results(results: List[dict]):
    """Print benchmark results in a table."""
    print()
    print(f"{'Operation':<30} {'Ops/sec':>12} {'Total (ms)':>12}")
    print("-" * 56)

    for r in results:
        print(f"{r['operation']:<30} {r['ops_per_second']:>12,.0f} {r['total_ms']:>12.1f}")


def main():
    parser = argparse.ArgumentParser(description="Benchmark RESP-KV components")
    parser.add_argument(
        "--operations", "-n",
        type=int,
        default=10000,
        help="Number of operations per benchmark (default: 10000)"
    )
    args = parser.parse_args()

    print(f"RESP-KV Benchmark, {args.operations:,} operations per test")
    print_results(Benchmark(operations=args.operations).run_all())


if __name__ == "__main__":
    main()
