from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..core.config import Settings
from ..metrics import LIMITER_DECISIONS
from .stores import CounterStore, build_counter_store
from .window_counter import DEFAULT_NAMESPACE, WindowCounter, check_buckets, check_resolution

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Raised when a caller exceeds the allowed rate."""

    def __init__(self, key: str, limit: int, window_seconds: int) -> None:
        super().__init__(
            f"Rate limit exceeded for key={key} ({limit} per {window_seconds}s)"
        )
        self.key = key
        self.limit = limit
        self.window_seconds = window_seconds


class RateLimiter:
    """Bucketed sliding window rate limiter over a shared counter store."""

    def __init__(
        self,
        store: CounterStore,
        *,
        resolution: int = 60,
        buckets: int = 5,
        namespace: str = DEFAULT_NAMESPACE,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._store = store
        self._resolution = check_resolution(resolution)
        self._buckets = check_buckets(buckets)
        self._namespace = namespace
        self._clock: Callable[[], float] = clock or time.time

    @classmethod
    def from_settings(cls, settings: Settings, store: CounterStore | None = None) -> RateLimiter:
        return cls(
            store if store is not None else build_counter_store(settings),
            resolution=settings.resolution_seconds,
            buckets=settings.buckets,
            namespace=settings.namespace,
        )

    @property
    def window_seconds(self) -> int:
        return self._resolution * self._buckets

    def counter(self, key: str, reference_time: int | None = None) -> WindowCounter:
        if reference_time is None:
            reference_time = int(self._clock())
        return WindowCounter(
            self._store,
            key,
            self._resolution,
            reference_time,
            namespace=self._namespace,
        )

    async def allow(self, key: str, limit: int | None) -> bool:
        """Count a hit for ``key`` unless its window already holds ``limit`` hits."""

        counter = self.counter(key)
        if await counter.reached(limit, self._buckets):
            LIMITER_DECISIONS.labels("blocked").inc()
            return False
        await counter.increment()
        LIMITER_DECISIONS.labels("allowed").inc()
        return True

    async def hit(self, key: str, limit: int | None) -> None:
        """Register a hit for the given key or raise RateLimitExceeded."""

        if await self.allow(key, limit) or limit is None:
            return
        logger.warning(
            "rate limit exceeded",
            extra={"limit": limit, "extra_fields": {"key": key}},
        )
        raise RateLimitExceeded(key, limit, self.window_seconds)


__all__ = ["RateLimitExceeded", "RateLimiter"]
