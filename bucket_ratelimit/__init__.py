"""Sliding window rate limiting over epoch-aligned counter buckets."""

from __future__ import annotations

from .services.ratelimit import RateLimiter, RateLimitExceeded
from .services.stores import (
    AtomicCounterStore,
    CounterStore,
    MemoryCounterStore,
    RedisCounterStore,
    build_counter_store,
)
from .services.window_counter import WindowCounter

__all__ = [
    "AtomicCounterStore",
    "CounterStore",
    "MemoryCounterStore",
    "RateLimitExceeded",
    "RateLimiter",
    "RedisCounterStore",
    "WindowCounter",
    "build_counter_store",
]
