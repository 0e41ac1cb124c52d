"""Tests for storage backends."""

import tempfile

import pytest

from lungcat.config import UsageLimits
from lungcat.errors import PersistenceError
from lungcat.ledger import UsageLedger
from lungcat.models import ContentType, ProgressSnapshot, TextContent
from lungcat.cache import ContentCache
from lungcat.storage import InMemoryStore, SQLiteStore, cache_key, usage_key


class TestKeys:
    """Test synthetic key layout."""

    def test_key_format(self):
        assert usage_key("abc") == "usage_abc"
        assert cache_key("abc", "motivation", "id") == "cache_abc_motivation_id"


class TestInMemoryStore:
    """Test the in-memory backend."""

    def test_get_returns_copy(self):
        store = InMemoryStore()
        store.set("k", {"n": 1, "items": [1]})

        doc = store.get("k")
        doc["items"].append(2)
        assert store.get("k") == {"n": 1, "items": [1]}

    def test_update_merges(self):
        store = InMemoryStore()
        store.set("k", {"a": 1, "b": 2})
        store.update("k", {"b": 3, "c": 4})

        assert store.get("k") == {"a": 1, "b": 3, "c": 4}

    def test_delete_and_keys(self):
        store = InMemoryStore()
        store.set("usage_1", {})
        store.set("usage_2", {})
        store.set("cache_1_tip_en", {})

        assert sorted(store.keys("usage_")) == ["usage_1", "usage_2"]
        assert store.delete("usage_1") is True
        assert store.delete("usage_1") is False
        assert len(store) == 2


def test_sqlite_store_persists_documents():
    """SQLite store should persist documents across instances."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = f"{tmpdir}/lungcat.db"

        store = SQLiteStore(db_path=db_path)
        store.set("budget_global", {"month": "2025-03", "totalCostThisMonth": 1.5})
        store.update("budget_global", {"emergencyStopActive": True})
        store.close()

        store2 = SQLiteStore(db_path=db_path)
        assert store2.get("budget_global") == {
            "month": "2025-03",
            "totalCostThisMonth": 1.5,
            "emergencyStopActive": True,
        }
        assert store2.get("missing") is None
        store2.close()


def test_sqlite_store_prefix_is_literal():
    """Underscores in prefixes must not act as wildcards."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SQLiteStore(db_path=f"{tmpdir}/lungcat.db")
        store.set("usage_a", {})
        store.set("usageXa", {})
        store.set("cache_a_tip_en", {})

        assert store.keys("usage_") == ["usage_a"]
        assert store.delete("usage_a") is True
        assert store.delete("usage_a") is False
        store.close()


def test_sqlite_store_errors_are_wrapped():
    """Backend failures surface as PersistenceError."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SQLiteStore(db_path=f"{tmpdir}/lungcat.db")
        store.close()

        with pytest.raises(PersistenceError):
            store.get("usage_a")
        with pytest.raises(PersistenceError):
            store.set("usage_a", {})


def test_sqlite_ledger_and_cache_roundtrip(clock):
    """Ledger counters and cache entries survive a restart."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = f"{tmpdir}/lungcat.db"
        limits = UsageLimits()

        store = SQLiteStore(db_path=db_path)
        UsageLedger(store, limits, clock).record_usage("user_1", tokens_used=100, cost=0.001)
        ContentCache(store, limits, clock).set(
            "user_1", ContentType.MOTIVATION, "en", TextContent("hi"), ProgressSnapshot(streak=3)
        )
        store.close()

        store2 = SQLiteStore(db_path=db_path)
        ledger = UsageLedger(store2, limits, clock)
        assert ledger.get_record("user_1").monthly_calls_used == 1
        assert ledger.check_limits("user_1") is False

        entry = ContentCache(store2, limits, clock).get(
            "user_1", ContentType.MOTIVATION, "en", ProgressSnapshot(streak=3)
        )
        assert entry.text == "hi"
        assert entry.timestamp == clock()
        store2.close()
