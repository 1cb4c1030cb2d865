"""Cache module for RESP-KV."""

from .store import Entry, KVStore
from .access import LockedStore, OwnedStore, StoreHandle

__all__ = ["Entry", "KVStore", "LockedStore", "OwnedStore", "StoreHandle"]
