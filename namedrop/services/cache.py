"""Simple TTL cache with optional LRU eviction."""

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, Protocol


class ResponseCache(Protocol):
    """Anything that can memoize upstream responses by key for ``ttl`` seconds."""

    ttl: float

    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, value: Any) -> None: ...


class TTLCache:
    """In-memory cache with time-to-live and optional max-size eviction.

    Usage::

        cache = TTLCache(ttl=300)
        cache.put("key", value)
        hit = cache.get("key")  # returns value or None if expired/missing

    Expired entries are not evicted proactively; they are simply treated as
    a miss on read and overwritten by the next ``put``.  With
    ``max_size=None`` the cache is unbounded.
    """

    def __init__(
        self,
        ttl: float = 300,
        max_size: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._max_size = max_size
        self._clock = clock
        # OrderedDict preserves insertion order for LRU eviction
        self._store: OrderedDict[str, tuple[Any, float]] = OrderedDict()

    def get(self, key: str) -> Any | None:
        """Return the cached value if present and younger than the TTL, else None."""
        entry = self._store.get(key)
        if entry is None:
            return None
        value, ts = entry
        if self._clock() - ts >= self.ttl:
            return None
        # Move to end (most recently used)
        self._store.move_to_end(key)
        return value

    def put(self, key: str, value: Any) -> None:
        """Store a value under *key*, evicting the oldest entry if at capacity."""
        if key in self._store:
            self._store.move_to_end(key)
        self._store[key] = (value, self._clock())
        if self._max_size is None:
            return
        while len(self._store) > self._max_size:
            self._store.popitem(last=False)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
