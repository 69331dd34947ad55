"""
Finsolvz Backend — In-Memory TTL Cache
=======================================

What:  Process-local key/value store with per-entry time-to-live.
Why:   Memoizes expensive, frequently repeated reads (company and report-type
       listings) between writes.
How:   A dict guarded by a lock. Expiry is checked lazily on `get` (an expired
       entry is evicted by the read that finds it) and swept proactively by a
       background task once per minute.
Who:   One instance per process, built by `create_app()` and stored on
       `app.state.cache`; services receive it through dependency injection.

Not a source of truth: entries hold response-shaped copies only. There is no
size bound, so callers must key by a small fixed set of resource names.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    """
    Thread-safe TTL cache.

    Args:
        default_ttl: Lifetime in seconds used when `set` is called without one
        clock:       Monotonic time source; injectable for tests
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.RLock()

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + lifetime)

    def get(self, key: str) -> Tuple[Any, bool]:
        """Return `(value, True)` for a live entry, `(None, False)` otherwise."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None, False
            return entry.value, True

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def sweep(self) -> int:
        """Evict every expired entry; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Cache sweep evicted %d expired entries", len(expired))
        return len(expired)

    async def run_sweeper(self, interval: float = 60.0) -> None:
        """
        Sweep forever at a fixed interval.

        Started as a task by the application lifespan and cancelled on
        shutdown; cancellation propagates out of the sleep.
        """
        while True:
            await asyncio.sleep(interval)
            self.sweep()
