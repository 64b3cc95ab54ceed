"""Key-value stores backing the response cache stage."""

import threading
import time
from collections import OrderedDict
from typing import Protocol, runtime_checkable

from ipquery.models.cache_models import CachedResponse


@runtime_checkable
class CacheStore(Protocol):
    """Minimal storage capability required by the cache stage."""

    def get(self, key: str) -> CachedResponse | None: ...

    def set(self, key: str, value: CachedResponse, ttl: float | None = None) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryCacheStore:
    """Thread-safe in-process cache store with per-entry expiry.

    Example:
        >>> store = MemoryCacheStore(max_entries=100)
        >>> store.set("key", CachedResponse(status_code=200, content=b"{}"), ttl=60)
        >>> store.get("key").status_code
        200
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[CachedResponse, float | None]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> CachedResponse | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: CachedResponse, ttl: float | None = None) -> None:
        expires_at = None if ttl is None else time.monotonic() + ttl
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (value, expires_at)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
