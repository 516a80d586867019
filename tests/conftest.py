# tests/conftest.py
import os

# Settings are read at import time; anything but "dev" skips .env loading.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import fakeredis
import pytest

import config.cache as cache
from config.settings import settings
from core.clock import FixedClock
from repository.node_repository import NodeRepository
from repository.store_lock import ScopedStoreLock
from repository.value_store import ValueStore


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(monkeypatch, redis_server):
    """Fresh in-memory Redis installed as the shared client."""
    client = fakeredis.FakeAsyncRedis(server=redis_server)
    monkeypatch.setattr(cache, "_client", client)
    return client


@pytest.fixture
def down_redis(monkeypatch, redis_server):
    """Shared client whose server refuses every command."""
    redis_server.connected = False
    client = fakeredis.FakeAsyncRedis(server=redis_server)
    monkeypatch.setattr(cache, "_client", client)
    return client


@pytest.fixture
def backend():
    return NodeRepository(key_prefix=settings.STORE_KEY_PREFIX)


@pytest.fixture
def store(fake_redis, backend):
    """A ValueStore used directly, without taking the lock."""
    return ValueStore(backend, brand="")


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def make_lock():
    """Lock factory with a short wait so contention tests stay fast."""

    def _factory(brand: str = "", blocking_timeout: float = 0.2):
        return lambda: ScopedStoreLock(brand=brand, blocking_timeout=blocking_timeout)

    return _factory
