from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional, Protocol, TypeVar

T = TypeVar("T")


class StatsCache(Protocol):
    """Cache contract used by read paths.

    Keys are tuples whose second element is the owning user id, so a single
    ``invalidate(user_id)`` drops every entry computed for that user.
    """

    def get_or_compute(self, key: tuple, ttl: float, fn: Callable[[], T]) -> T:
        raise NotImplementedError

    def invalidate(self, user_id: Optional[Hashable] = None) -> None:
        raise NotImplementedError


@dataclass
class _Entry:
    value: Any
    stored_at: float
    ttl: float


class TTLCache(StatsCache):
    """Process-wide in-memory cache with per-call TTL.

    Lookups and invalidation are guarded by one lock; ``fn`` runs outside it.
    A value computed while an invalidation for the same user happened is
    returned to its caller but not stored.
    Expired entries are dropped whenever a new value is stored.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[tuple, _Entry] = {}
        self._generations: dict[Hashable, int] = {}
        self._global_generation = 0
        self._lock = threading.Lock()

    def _generation(self, key: tuple) -> tuple[int, int]:
        scope = key[1] if len(key) > 1 else None
        return self._global_generation, self._generations.get(scope, 0)

    def get_or_compute(self, key: tuple, ttl: float, fn: Callable[[], T]) -> T:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() - entry.stored_at < ttl:
                return entry.value
            generation = self._generation(key)

        value = fn()
        with self._lock:
            if self._generation(key) == generation:
                now = self._clock()
                self._purge_expired(now)
                self._entries[key] = _Entry(value=value, stored_at=now, ttl=ttl)
        return value

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e.stored_at >= e.ttl]
        for k in expired:
            del self._entries[k]

    def invalidate(self, user_id: Optional[Hashable] = None) -> None:
        with self._lock:
            if user_id is None:
                self._entries.clear()
                self._global_generation += 1
                return
            self._generations[user_id] = self._generations.get(user_id, 0) + 1
            stale = [k for k in self._entries if len(k) > 1 and k[1] == user_id]
            for k in stale:
                del self._entries[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
