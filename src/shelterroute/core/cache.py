from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol, TypeVar

"""
In-process keyed store with per-entry expiry.

The gateway keeps two kinds of shared mutable state here:
- the short-lived route cache (namespace `route`),
- per-client rate-limit hit logs (namespace `ratelimit`).

Call sites only use the `KeyedStore` protocol (`get` / `set` / `update`), so the
in-memory implementation can be swapped for a shared store (e.g. Redis) without
touching them. Every operation holds one lock, which makes `update` an atomic
read-modify-write even when FastAPI serves requests from its threadpool.
"""

T = TypeVar("T")


class KeyedStore(Protocol):
    def get(self, namespace: str, key: str) -> Any | None:
        ...

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: float) -> None:
        ...

    def update(
        self,
        namespace: str,
        key: str,
        updater: Callable[[Any | None], tuple[Any, T]],
        ttl_seconds: float,
    ) -> T:
        ...


@dataclass(frozen=True)
class CacheEntry:
    """Stored value plus its absolute expiry on the store's clock."""

    expires_at: float
    value: Any


@dataclass
class CacheStats:
    """Running counters for one store (best-effort)."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    sets: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "hits": int(self.hits),
            "misses": int(self.misses),
            "expired": int(self.expired),
            "sets": int(self.sets),
        }


class MemoryStore:
    """A dict-backed store keyed by (namespace, key)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[tuple[str, str], CacheEntry] = {}
        self._lock = threading.Lock()
        self.stats = CacheStats()

    def now(self) -> float:
        return self._clock()

    def _live_entry(self, namespace: str, key: str, now: float) -> CacheEntry | None:
        entry = self._entries.get((namespace, key))
        if entry is None:
            return None
        if now >= entry.expires_at:
            del self._entries[(namespace, key)]
            self.stats.expired += 1
            return None
        return entry

    def get(self, namespace: str, key: str) -> Any | None:
        """Return the stored value if present and not expired; otherwise None."""
        with self._lock:
            entry = self._live_entry(namespace, key, self._clock())
            if entry is None:
                self.stats.misses += 1
                return None
            self.stats.hits += 1
            return entry.value

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: float) -> None:
        """Store `value` for `ttl_seconds`; a non-positive TTL stores nothing."""
        if ttl_seconds <= 0:
            return None
        with self._lock:
            self._entries[(namespace, key)] = CacheEntry(
                expires_at=self._clock() + float(ttl_seconds), value=value
            )
            self.stats.sets += 1

    def update(
        self,
        namespace: str,
        key: str,
        updater: Callable[[Any | None], tuple[Any, T]],
        ttl_seconds: float,
    ) -> T:
        """Atomically replace the value under `key`.

        `updater` receives the current (unexpired) value or None and returns
        `(new_value, result)`; `new_value` is stored for `ttl_seconds` and `result`
        is handed back to the caller. Returning `new_value=None` deletes the key.
        """
        with self._lock:
            now = self._clock()
            entry = self._live_entry(namespace, key, now)
            new_value, result = updater(entry.value if entry else None)
            if new_value is None:
                self._entries.pop((namespace, key), None)
            else:
                self._entries[(namespace, key)] = CacheEntry(
                    expires_at=now + float(ttl_seconds), value=new_value
                )
            return result

    def purge_expired(self) -> int:
        """Drop expired entries; returns how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._entries.items() if now >= e.expires_at]
            for k in stale:
                del self._entries[k]
            self.stats.expired += len(stale)
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
