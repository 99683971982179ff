"""Counter store contract and the bundled backends."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from redis.asyncio import Redis

from ..core.config import Settings

logger = logging.getLogger(__name__)

# Increments only when the key already exists; a Lua false reply reads back as None.
_INCREMENT_EXISTING = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return redis.call('INCRBY', KEYS[1], ARGV[1])
end
return false
"""


@runtime_checkable
class CounterStore(Protocol):  # pragma: no cover - structural typing helper
    async def read_many(self, keys: Sequence[str]) -> Mapping[str, int | None]: ...

    async def write(self, key: str, value: int) -> None: ...

    async def increment(self, key: str, offset: int) -> int | None: ...


@runtime_checkable
class AtomicCounterStore(CounterStore, Protocol):  # pragma: no cover - structural typing helper
    async def increment_or_init(self, key: str, offset: int) -> int: ...


class MemoryCounterStore:
    """Process-local counter store backed by a dict."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._lock = asyncio.Lock()

    async def read_many(self, keys: Sequence[str]) -> dict[str, int | None]:
        async with self._lock:
            return {key: self._counts.get(key) for key in keys}

    async def write(self, key: str, value: int) -> None:
        async with self._lock:
            self._counts[key] = value

    async def increment(self, key: str, offset: int) -> int | None:
        async with self._lock:
            current = self._counts.get(key)
            if current is None:
                return None
            self._counts[key] = current + offset
            return self._counts[key]

    async def increment_or_init(self, key: str, offset: int) -> int:
        async with self._lock:
            self._counts[key] = self._counts.get(key, 0) + offset
            return self._counts[key]

    def snapshot(self) -> dict[str, int]:
        return dict(self._counts)

    def clear(self) -> None:
        self._counts.clear()


class RedisCounterStore:
    """Counter store on top of a ``redis.asyncio`` client.

    Connection and timeout errors raised by the client are not caught here.
    """

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisCounterStore:
        return cls(Redis.from_url(url, encoding="utf-8", decode_responses=True))

    async def read_many(self, keys: Sequence[str]) -> dict[str, int | None]:
        keys = list(keys)
        if not keys:
            return {}
        values = await self._client.mget(keys)
        return {
            key: int(value) if value is not None else None
            for key, value in zip(keys, values)
        }

    async def write(self, key: str, value: int) -> None:
        await self._client.set(key, value)

    async def increment(self, key: str, offset: int) -> int | None:
        result = await self._client.eval(_INCREMENT_EXISTING, 1, key, offset)
        return int(result) if result is not None else None

    async def increment_or_init(self, key: str, offset: int) -> int:
        return int(await self._client.incrby(key, offset))

    async def close(self) -> None:
        await self._client.aclose()


def build_counter_store(settings: Settings) -> CounterStore:
    """Pick the Redis backend when configured, else a process-local store."""

    if settings.redis_url:
        logger.info("using redis counter store")
        return RedisCounterStore.from_url(settings.redis_url)
    logger.info("using in-memory counter store")
    return MemoryCounterStore()


__all__ = [
    "AtomicCounterStore",
    "CounterStore",
    "MemoryCounterStore",
    "RedisCounterStore",
    "build_counter_store",
]
