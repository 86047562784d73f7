"""Lightweight in-memory TTL cache for the CSR spending tools.

Holds the fetched source CSV and the parsed record store between requests.
Each entry keeps its value together with the time it was stored, so callers
can report data age, and can be invalidated explicitly when the upstream
sheet is known to have changed.
"""

import threading
import time
from typing import Any, Callable


class TTLCache:
    """Thread-safe in-memory cache with time-to-live (TTL) expiry.

    Entries expire ``ttl_seconds`` after they were stored. A maximum of
    ``maxsize`` entries are retained; when the cache is full the entry that
    expires soonest is evicted.

    The clock is injectable so expiry can be tested without sleeping.

    Usage::

        cache = TTLCache(maxsize=4, ttl_seconds=300)
        text = cache.get_or_set("csv", fetch_csv)   # fetches once per 5 min
        cache.age("csv")                            # seconds since fetch
        cache.delete("csv")                         # force refetch
    """

    def __init__(self, maxsize: int = 128, ttl_seconds: float = 300.0,
                 clock: Callable[[], float] = time.monotonic) -> None:
        """Initialise the cache.

        Args:
            maxsize: Maximum number of entries to store (default 128).
            ttl_seconds: Seconds before a cached entry expires (default 300).
            clock: Monotonic time source (default ``time.monotonic``).
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._maxsize = maxsize
        self._ttl = ttl_seconds
        self._clock = clock
        # Maps key -> (value, stored_at)
        self._store: dict[Any, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        # Per-key locks serializing get_or_set loaders
        self._loading: dict[Any, threading.Lock] = {}
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self._ttl

    def get(self, key: Any) -> Any | None:
        """Return cached value for *key*, or ``None`` if absent or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, stored_at = entry
            if self._expired(stored_at, self._clock()):
                del self._store[key]
                self._misses += 1
                return None
            self._hits += 1
            return value

    def set(self, key: Any, value: Any) -> None:
        """Store *value* under *key*, stamping it with the current time."""
        stored_at = self._clock()
        with self._lock:
            if key not in self._store and len(self._store) >= self._maxsize:
                oldest_key = min(self._store, key=lambda k: self._store[k][1])
                del self._store[oldest_key]
            self._store[key] = (value, stored_at)

    def _key_lock(self, key: Any) -> threading.Lock:
        with self._lock:
            lock = self._loading.get(key)
            if lock is None:
                lock = self._loading[key] = threading.Lock()
            return lock

    def _peek(self, key: Any) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None or self._expired(entry[1], self._clock()):
                return None
            return entry[0]

    def get_or_set(self, key: Any, loader: Callable[[], Any]) -> Any:
        """Return the cached value, calling *loader* to fill a miss.

        Concurrent misses on the same key run *loader* once; the other
        callers wait for it and get its value.

        Exceptions raised by *loader* propagate and nothing is cached, so a
        failed fetch is retried on the next call rather than remembered.
        ``None`` results are not cached either.
        """
        value = self.get(key)
        if value is not None:
            return value
        with self._key_lock(key):
            # Another caller may have filled it while we waited
            value = self._peek(key)
            if value is not None:
                return value
            value = loader()
            if value is not None:
                self.set(key, value)
            return value

    def age(self, key: Any) -> float | None:
        """Seconds since *key* was stored, or ``None`` if absent or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            now = self._clock()
            if self._expired(entry[1], now):
                return None
            return now - entry[1]

    def delete(self, key: Any) -> None:
        """Remove a single entry from the cache (no-op if not present)."""
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        """Remove all entries and reset hit/miss counters."""
        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        """Return ``hits``, ``misses`` and ``size`` (expired entries purged)."""
        with self._lock:
            now = self._clock()
            expired = [k for k, (_, ts) in self._store.items() if self._expired(ts, now)]
            for k in expired:
                del self._store[k]
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._store),
            }
