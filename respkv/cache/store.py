"""
Key-Value Store Module

This module implements the core key-value storage functionality.

Expiry is lazy: an expired entry stays in memory until the next read of
its key removes it. There is no background sweep, so keys that expire
and are never read again keep occupying memory. size() reports them.
"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class Entry:
    """
    A stored value and its optional expiration instant.

    Attributes:
        value: The stored payload, kept verbatim
        expires_at: Absolute monotonic instant (seconds) after which the
            entry is logically deleted; None means no expiration
    """
    value: str
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        """Check whether the entry is dead at the given instant."""
        return self.expires_at is not None and self.expires_at <= now


class KVStore:
    """
    In-memory key-value store with lazy expiration.

    This class provides O(1) average-case time complexity for:
    - put: Insert or replace a key with its value and expiry
    - get_and_expire: Read a key, removing it if it has expired

    The store itself does no locking. Callers reach it through one of the
    exclusive-access handles in cache/access.py, which serialize each
    command's access.

    Internal Storage:
        Plain dict for O(1) operations.
        Format: key -> Entry
    """

    def __init__(self):
        """Initialize an empty store."""
        self._store: Dict[str, Entry] = {}

    def put(self, key: str, value: str, expires_at: Optional[float] = None) -> None:
        """
        Insert or replace a key-value pair.

        The previous value and expiry are replaced by a single assignment,
        so readers observe either the old entry or the new one.

        Args:
            key: The key to store
            value: The value to associate with the key
            expires_at: Absolute monotonic expiry instant, None for no expiry
        """
        self._store[key] = Entry(value, expires_at)

    def get_and_expire(self, key: str, now: float) -> Optional[str]:
        """
        Retrieve the value for a given key, enforcing expiry.

        Args:
            key: The key to look up
            now: Current monotonic instant used for the expiry check

        Returns:
            The value if found and not expired, None otherwise.
            An expired entry is removed as part of the read.
        """
        entry = self._store.get(key)
        if entry is None:
            return None

        if entry.is_expired(now):
            # Lazy expiration
            del self._store[key]
            return None

        return entry.value

    def size(self) -> int:
        """
        Get the current number of keys in the store.

        Note: This includes expired keys that haven't been read since
        they expired.
        """
        return len(self._store)

    def clear(self) -> None:
        """Remove all keys from the store."""
        self._store.clear()
