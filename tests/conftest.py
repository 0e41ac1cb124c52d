"""Shared fixtures: a controllable clock and a store that can be made to fail."""

from datetime import datetime, UTC, timedelta

import pytest

from lungcat.errors import PersistenceError
from lungcat.storage import InMemoryStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, when: datetime) -> datetime:
        self.now = when
        return self.now


class FlakyStore(InMemoryStore):
    """InMemoryStore whose reads and/or writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False

    def get(self, key):
        if self.fail_reads:
            raise PersistenceError("get", key, "backend unavailable")
        return super().get(key)

    def keys(self, prefix=""):
        if self.fail_reads:
            raise PersistenceError("keys", prefix, "backend unavailable")
        return super().keys(prefix)

    def set(self, key, value):
        if self.fail_writes:
            raise PersistenceError("set", key, "backend unavailable")
        super().set(key, value)

    def delete(self, key):
        if self.fail_writes:
            raise PersistenceError("delete", key, "backend unavailable")
        return super().delete(key)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for var in (
        "LUNGCAT_LIMITS_JSON",
        "LUNGCAT_PRICING_JSON",
        "LUNGCAT_PROVIDER",
        "LUNGCAT_MODEL",
        "LUNGCAT_DB_PATH",
        "LUNGCAT_UPSTREAM_TIMEOUT",
        "LUNGCAT_API_KEY",
        "LUNGCAT_METRICS_FILE",
    ):
        monkeypatch.delenv(var, raising=False)
