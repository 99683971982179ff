from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime

import pytest

from bucket_ratelimit.services.stores import MemoryCounterStore

# 2011-11-05 00:00:00 UTC, a multiple of 300 seconds since the epoch.
REFERENCE_TIME = int(datetime(2011, 11, 5, tzinfo=UTC).timestamp())


class TwoStepStore(dict):
    """Dict-backed store offering only read_many/write/increment."""

    def __init__(self, *, yield_on_increment: bool = False) -> None:
        super().__init__()
        self._yield_on_increment = yield_on_increment

    async def read_many(self, keys: Sequence[str]) -> dict[str, int | None]:
        return {key: self.get(key) for key in keys}

    async def write(self, key: str, value: int) -> None:
        self[key] = value

    async def increment(self, key: str, offset: int) -> int | None:
        exists = key in self
        if self._yield_on_increment:
            await asyncio.sleep(0)
        if not exists:
            return None
        self[key] += offset
        return self[key]

    def snapshot(self) -> dict[str, int]:
        return dict(self)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def reference_time() -> int:
    return REFERENCE_TIME


@pytest.fixture(params=["two_step", "atomic"])
def store(request: pytest.FixtureRequest) -> TwoStepStore | MemoryCounterStore:
    if request.param == "two_step":
        return TwoStepStore()
    return MemoryCounterStore()


@pytest.fixture()
def two_step_store() -> TwoStepStore:
    return TwoStepStore()


@pytest.fixture()
def racing_store() -> TwoStepStore:
    return TwoStepStore(yield_on_increment=True)
