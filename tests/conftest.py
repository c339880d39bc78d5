"""Shared fixtures: an in-process Redis server and pools that count borrows."""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fakeredis import FakeAsyncRedis, FakeServer

from mrsw_lock import LockSettings, RedisMRSWLockManager
from mrsw_lock.instrumentation import HookRegistry, set_hook_registry

pytest_plugins = ["pytest_asyncio"]

# Short waits keep retry-heavy tests fast.
FAST_SETTINGS = LockSettings(
    base_delay=0.001,
    delay_offset_min=0.0,
    delay_offset_max=0.001,
)


class CountingPool:
    """IConnectionPool lending one shared client and counting every borrow."""

    def __init__(self, client: Any) -> None:
        self.client = client
        self.acquired = 0
        self.released = 0
        self.closed = False

    async def acquire(self) -> Any:
        self.acquired += 1
        return self.client

    async def release(self, connection: Any) -> None:
        assert connection is self.client
        self.released += 1

    async def close(self) -> None:
        self.closed = True

    @property
    def outstanding(self) -> int:
        return self.acquired - self.released


@pytest.fixture(autouse=True)
def hook_registry() -> HookRegistry:
    """Give every test an empty hook registry."""
    registry = HookRegistry()
    set_hook_registry(registry)
    return registry


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
async def fake_redis(fake_server: FakeServer) -> Any:
    client = FakeAsyncRedis(server=fake_server)
    yield client
    await client.aclose()


@pytest.fixture
def pool(fake_redis: Any) -> CountingPool:
    return CountingPool(fake_redis)


@pytest.fixture
def manager(pool: CountingPool) -> RedisMRSWLockManager:
    return RedisMRSWLockManager(pool, FAST_SETTINGS, rng=random.Random(7))


@pytest.fixture
def fast_settings() -> LockSettings:
    return FAST_SETTINGS


@pytest.fixture
def make_manager(fake_redis: Any) -> Callable[..., RedisMRSWLockManager]:
    """Build a manager on the shared client with some settings overridden."""

    def factory(**overrides: Any) -> RedisMRSWLockManager:
        # Overrides are validated like any caller-supplied settings.
        settings = {**FAST_SETTINGS.model_dump(), **overrides}
        return RedisMRSWLockManager(CountingPool(fake_redis), settings)

    return factory


@pytest.fixture
async def other_manager(fake_server: FakeServer) -> Any:
    """A second manager on its own client, as another process would be."""
    client = FakeAsyncRedis(server=fake_server)
    yield RedisMRSWLockManager(CountingPool(client), FAST_SETTINGS)
    await client.aclose()


# ── Mock store ───────────────────────────────────────────────────────


@pytest.fixture
def mock_pipeline() -> AsyncMock:
    pipe = AsyncMock()
    # Command methods only buffer; execute() runs the batch.
    pipe.set = MagicMock()
    pipe.get = MagicMock()
    pipe.keys = MagicMock()
    pipe.execute = AsyncMock(return_value=[True, None])
    pipe.__aenter__.return_value = pipe
    pipe.__aexit__.return_value = None
    return pipe


@pytest.fixture
def mock_client(mock_pipeline: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.pipeline = MagicMock(return_value=mock_pipeline)
    client.delete = AsyncMock(return_value=1)
    client.eval = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def mock_pool(mock_client: MagicMock) -> MagicMock:
    pool = MagicMock()
    pool.acquire = AsyncMock(return_value=mock_client)
    pool.release = AsyncMock()
    pool.close = AsyncMock()
    return pool
