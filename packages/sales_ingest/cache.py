"""In-process TTL cache for the revenue read path.

A :class:`RevenueCache` owns exactly one value and the monotonic timestamp of
its last refresh. It is created by the host application and passed into the
read functions in :mod:`sales_ingest.api`; there is no module-level instance.
The clock is injectable so expiry can be tested without sleeping.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from threading import Lock

from .logging_setup import get_logger

_logger = get_logger("sales_ingest.cache")


class RevenueCache[T]:
    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be non-negative")
        self._ttl = ttl_seconds
        self._clock = clock
        self._value: T | None = None
        self._refreshed_at: float | None = None
        self._lock = Lock()

    @property
    def refreshed_at(self) -> float | None:
        return self._refreshed_at

    def is_fresh(self) -> bool:
        if self._refreshed_at is None:
            return False
        return (self._clock() - self._refreshed_at) < self._ttl

    def get(self) -> T | None:
        """Return the cached value while fresh, else ``None``."""

        return self._value if self.is_fresh() else None

    def peek(self) -> T | None:
        """Return the last value regardless of age (stale fallback)."""

        return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._refreshed_at = self._clock()

    def invalidate(self) -> None:
        with self._lock:
            self._value = None
            self._refreshed_at = None

    def get_or_refresh(self, loader: Callable[[], T]) -> T:
        """Return the fresh value or call ``loader`` and store its result.

        When ``loader`` raises and a previous value exists, the stale value is
        served and the error is logged; with nothing cached the error
        propagates.
        """

        cached = self.get()
        if cached is not None:
            return cached
        try:
            value = loader()
        except Exception:
            stale = self.peek()
            if stale is None:
                raise
            _logger.warning("Refresh failed; serving stale value", exc_info=True)
            return stale
        self.set(value)
        return value


__all__ = ["RevenueCache"]
