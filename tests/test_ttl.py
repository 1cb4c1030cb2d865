"""
Tests for PX expiry against the real clock

The dispatcher tests pin "now" explicitly; these go through the store
handles, which read time.monotonic(), and actually wait.

Run with: python -m pytest tests/test_ttl.py -v

Note: These tests use time.sleep() and are marked slow.
Run with -m "not slow" to skip them.
"""

import time
import pytest

from respkv.cache.access import LockedStore
from respkv.protocol.commands import Reply


@pytest.mark.slow
class TestExpiryRealClock:
    """Expiry driven by time.monotonic()."""

    def test_key_expires_after_px(self, locked_store: LockedStore):
        locked_store.execute(["SET", "a", "1", "PX", "10"])
        assert locked_store.execute(["GET", "a"]) == Reply.bulk("1")

        time.sleep(0.02)

        assert locked_store.execute(["GET", "a"]) == Reply.null()
        # Still null on a second read
        assert locked_store.execute(["GET", "a"]) == Reply.null()

    def test_overwrite_removes_expiry(self, locked_store: LockedStore):
        locked_store.execute(["SET", "a", "1", "PX", "10"])
        locked_store.execute(["SET", "a", "2"])

        time.sleep(0.02)

        assert locked_store.execute(["GET", "a"]) == Reply.bulk("2")

    def test_overwrite_resets_expiry(self, locked_store: LockedStore):
        locked_store.execute(["SET", "a", "1", "PX", "50"])
        time.sleep(0.03)
        locked_store.execute(["SET", "a", "2", "PX", "200"])
        time.sleep(0.03)  # The first expiry has passed

        assert locked_store.execute(["GET", "a"]) == Reply.bulk("2")

    def test_keys_expire_independently(self, locked_store: LockedStore):
        locked_store.execute(["SET", "short", "x", "PX", "10"])
        locked_store.execute(["SET", "long", "y", "PX", "5000"])
        locked_store.execute(["SET", "forever", "z"])

        time.sleep(0.02)

        assert locked_store.execute(["GET", "short"]) == Reply.null()
        assert locked_store.execute(["GET", "long"]) == Reply.bulk("y")
        assert locked_store.execute(["GET", "forever"]) == Reply.bulk("z")
