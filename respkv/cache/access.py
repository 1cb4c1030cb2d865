"""
Exclusive-Access Handles

Every command must see the store alone, from the moment it is dispatched
until its reply is built. How that exclusivity is obtained depends on the
server substrate:

- LockedStore: a threading.Lock around each command. Needed when several
  OS threads dispatch commands (thread-per-connection server).
- OwnedStore: no lock at all. The store belongs to the thread that created
  the handle (the asyncio event loop thread), and any other thread is
  refused.

Both handles expose the same interface, so the dispatcher and the
session code do not know which one they are using.
"""

import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from ..protocol.commands import Reply
from ..protocol.dispatcher import dispatch
from .store import KVStore


class StoreHandle:
    """Base class for exclusive-access handles around a KVStore."""

    def __init__(self, store: KVStore = None):
        self.store = store if store is not None else KVStore()

    @contextmanager
    def access(self) -> Iterator[KVStore]:
        """Yield the store for the duration of one command."""
        raise NotImplementedError

    def execute(self, args: Sequence[str], now: Optional[float] = None) -> Optional[Reply]:
        """
        Dispatch one command inside the critical section.

        Args:
            args: Decoded command arguments
            now: Monotonic instant for expiry handling (default: now)

        Returns:
            The Reply, or None for an empty command

        Raises:
            InvalidCommand: Unknown verb or too few arguments
        """
        with self.access() as store:
            if now is None:
                now = time.monotonic()
            return dispatch(args, store, now)


class LockedStore(StoreHandle):
    """Store handle serializing commands with a mutex."""

    def __init__(self, store: KVStore = None):
        super().__init__(store)
        self._lock = threading.Lock()

    @contextmanager
    def access(self) -> Iterator[KVStore]:
        with self._lock:
            yield self.store


class OwnedStore(StoreHandle):
    """
    Store handle for single-threaded owners.

    The thread that creates the handle owns the store. Commands coming
    from that thread run without locking, since nothing else can
    interleave with them; commands from any other thread are rejected.
    """

    def __init__(self, store: KVStore = None):
        super().__init__(store)
        self._owner = threading.get_ident()

    @contextmanager
    def access(self) -> Iterator[KVStore]:
        if threading.get_ident() != self._owner:
            raise RuntimeError("store accessed from a thread that does not own it")
        yield self.store
