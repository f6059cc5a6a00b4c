"""In-process TTL cache memoising metric snapshots between polls."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class CacheEntry:
    """Cached value with its absolute expiry on the cache clock."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache:
    """Thread-safe string-keyed cache with per-entry time-to-live.

    Expired entries read as absent immediately and are reclaimed lazily on
    access or by :meth:`sweep`. The cache is a pure memoisation layer; callers
    always fall through to the live source on a miss.
    """

    def __init__(self, default_ttl: float = 30.0, clock: Callable[[], float] = time.monotonic) -> None:
        """
        :param default_ttl: Seconds an entry lives when ``set`` gets no ``ttl``.
        :param clock: Monotonic time source, injectable for tests.
        :raises ValueError: If ``default_ttl`` is not positive.
        """
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be > 0, got {default_ttl}")
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self.stats = {"hits": 0, "misses": 0, "expired": 0}

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for ``key`` or ``None`` when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats["misses"] += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.stats["expired"] += 1
                self.stats["misses"] += 1
                return None
            self.stats["hits"] += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds, overwriting any entry."""
        lifetime = self._default_ttl if ttl is None else ttl
        if lifetime <= 0:
            raise ValueError(f"ttl must be > 0, got {lifetime}")
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + lifetime)

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether an entry existed."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            self.stats["expired"] += len(expired)
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
