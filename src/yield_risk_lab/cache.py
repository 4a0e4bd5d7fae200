"""Keyed TTL cache shared by every upstream adapter.

Upstream DeFi APIs are rate limited and occasionally flaky.  The cache serves
fresh entries without calling the upstream again and, when a refresh fails,
falls back to the last good value (stale-on-error) instead of failing the
request.  Concurrent misses for the same key share one in-flight fetch.
"""

from __future__ import annotations

import logging
import threading
import time
import warnings
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any, TypeVar

from .core.models import CacheEntry
from .errors import StaleDataWarning

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300.0


def cache_key(source: str, *args: object) -> str:
    """Build a stable key from the source name and its distinguishing arguments."""

    parts = [source]
    for arg in args:
        if isinstance(arg, (list, tuple, set, frozenset)):
            parts.append(",".join(sorted(str(a) for a in arg)))
        else:
            parts.append(str(arg))
    return "-".join(parts)


class TTLCache:
    """Thread-safe ``key -> CacheEntry`` map with stale-on-error reads."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = float(ttl)
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._in_flight: dict[str, Future[Any]] = {}
        self._lock = threading.Lock()

    def get_or_fetch(self, key: str, fetcher: Callable[[], T], ttl: float | None = None) -> T:
        """Return the cached value for ``key`` or refresh it with ``fetcher``.

        On fetch failure a previous entry is returned (with a
        :class:`StaleDataWarning`) regardless of its age; without one the
        exception propagates.
        """

        max_age = self.ttl if ttl is None else float(ttl)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() - entry.timestamp < max_age:
                return entry.data
            pending = self._in_flight.get(key)
            owner = pending is None
            if pending is None:
                pending = Future()
                self._in_flight[key] = pending

        if not owner:
            return pending.result()

        try:
            data = fetcher()
        except Exception as exc:
            with self._lock:
                stale = self._entries.get(key)
                self._in_flight.pop(key, None)
            if stale is None:
                pending.set_exception(exc)
                raise
            logger.warning("Refresh of %s failed (%s); serving stale data", key, exc)
            warnings.warn(
                f"Serving stale cache entry for {key!r} after refresh failure: {exc}",
                StaleDataWarning,
                stacklevel=2,
            )
            pending.set_result(stale.data)
            return stale.data
        except BaseException as exc:
            # interrupts must still release waiters on this key
            with self._lock:
                self._in_flight.pop(key, None)
            pending.set_exception(exc)
            raise

        with self._lock:
            self._entries[key] = CacheEntry(data=data, timestamp=self._clock())
            self._in_flight.pop(key, None)
        pending.set_result(data)
        return data

    def peek(self, key: str) -> CacheEntry[Any] | None:
        with self._lock:
            return self._entries.get(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["DEFAULT_TTL_SECONDS", "TTLCache", "cache_key"]
