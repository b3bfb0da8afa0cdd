from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, TypeVar

T = TypeVar("T")

DEFAULT_TTL_S = 24 * 60 * 60.0


@dataclass
class _Entry:
    value: Any
    loaded_at: float
    ttl_s: float

    def age(self, now: float) -> float:
        return now - self.loaded_at

    def is_live(self, now: float) -> bool:
        return self.age(now) < self.ttl_s


@dataclass
class TtlCache:
    """
    Read-through cache with a time-to-live per entry.

    An entry keeps the TTL it was loaded with (the cache default or the per-call
    `ttl_s`).

    Loads run outside the lock: two requests missing the same key may both load it,
    and the last write wins. Loaded content is the same for a fixed backing file,
    so that race is harmless. A loader exception propagates and caches nothing.
    """

    ttl_s: float = DEFAULT_TTL_S
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    _entries: dict[Hashable, _Entry] = field(default_factory=dict, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _hits: int = field(default=0, repr=False)
    _misses: int = field(default=0, repr=False)

    def get_or_load(
        self, key: Hashable, loader: Callable[[], T], *, ttl_s: float | None = None
    ) -> T:
        ttl = self.ttl_s if ttl_s is None else float(ttl_s)
        with self._lock:
            e = self._entries.get(key)
            if e is not None and e.is_live(self.clock()):
                self._hits += 1
                return e.value
            self._misses += 1

        value = loader()
        with self._lock:
            self._entries[key] = _Entry(value=value, loaded_at=self.clock(), ttl_s=ttl)
        return value

    def peek(self, key: Hashable) -> tuple[Any, float] | None:
        """
        (value, age_s) for a live entry, without loading. Expired entries count as absent.
        """
        with self._lock:
            e = self._entries.get(key)
            if e is None:
                return None
            now = self.clock()
            if not e.is_live(now):
                return None
            return e.value, e.age(now)

    def invalidate(self, key: Hashable | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }
