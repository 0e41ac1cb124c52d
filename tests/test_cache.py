"""Tests for the content cache."""

import pytest

from lungcat.cache import ContentCache
from lungcat.config import UsageLimits
from lungcat.models import (
    ContentType,
    Difficulty,
    Mission,
    MissionListContent,
    ProgressSnapshot,
    TextContent,
)
from lungcat.storage import cache_key


def make_cache(store, clock, **limits):
    return ContentCache(store, UsageLimits(**limits), clock)


def ctx(streak: int) -> ProgressSnapshot:
    return ProgressSnapshot(streak=streak, total_days=streak, level=1, xp=0)


class TestCacheRoundTrip:
    """Test read-after-write."""

    def test_set_then_get_returns_same_content(self, store, clock):
        cache = make_cache(store, clock)
        content = TextContent("Ten days strong!")
        cache.set("user_1", ContentType.MOTIVATION, "en", content, ctx(10), tokens_used=120, cost=0.0004)

        entry = cache.get("user_1", ContentType.MOTIVATION, "en", ctx(10))
        assert entry is not None
        assert entry.content == content
        assert entry.tokens_used == 120
        assert entry.cost == pytest.approx(0.0004)

    def test_missions_round_trip(self, store, clock):
        cache = make_cache(store, clock)
        missions = (
            Mission(id="ai-1", title="Walk", description="Walk 10 min", xp_reward=15,
                    difficulty=Difficulty.EASY, is_ai_generated=True),
            Mission(id="ai-2", title="Water", description="Drink water", xp_reward=20),
        )
        cache.set("user_1", ContentType.MISSION, "id", MissionListContent(missions), ctx(3))

        entry = cache.get("user_1", ContentType.MISSION, "id", ctx(3))
        assert entry.missions == list(missions)
        with pytest.raises(TypeError):
            entry.text

    def test_miss_when_empty(self, store, clock):
        cache = make_cache(store, clock)
        assert cache.get("user_1", ContentType.TIP, "en", ctx(1)) is None

    def test_slots_are_per_language_and_type(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.MOTIVATION, "en", TextContent("hi"), ctx(1))

        assert cache.get("user_1", ContentType.MOTIVATION, "id", ctx(1)) is None
        assert cache.get("user_1", ContentType.TIP, "en", ctx(1)) is None

    def test_set_overwrites_slot(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.TIP, "en", TextContent("first"), ctx(1))
        cache.set("user_1", ContentType.TIP, "en", TextContent("second"), ctx(1))

        assert cache.get("user_1", ContentType.TIP, "en", ctx(1)).text == "second"


class TestInvalidation:
    """Test age and progress invalidation."""

    def test_progress_delta_at_threshold_invalidates(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.MOTIVATION, "en", TextContent("hi"), ctx(5))

        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(13)) is None
        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(12)) is None

    def test_progress_delta_below_threshold_hits(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.MOTIVATION, "en", TextContent("hi"), ctx(5))

        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(11)) is not None

    def test_streak_reset_invalidates(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.MOTIVATION, "en", TextContent("hi"), ctx(20))

        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(0)) is None

    def test_motivation_ttl_is_fourteen_days(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.MOTIVATION, "en", TextContent("hi"), ctx(5))

        clock.advance(days=13)
        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(5)) is not None
        clock.advance(days=2)
        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(5)) is None

    def test_mission_ttl_is_seven_days(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.MISSION, "en", MissionListContent(()), ctx(5))

        clock.advance(days=6)
        assert cache.get("user_1", ContentType.MISSION, "en", ctx(5)) is not None
        clock.advance(days=2)
        assert cache.get("user_1", ContentType.MISSION, "en", ctx(5)) is None

    def test_default_ttl_for_tips(self, store, clock):
        cache = make_cache(store, clock, default_cache_ttl_hours=24)
        cache.set("user_1", ContentType.TIP, "en", TextContent("drink water"), ctx(5))

        clock.advance(hours=23)
        assert cache.get("user_1", ContentType.TIP, "en", ctx(5)) is not None
        clock.advance(hours=2)
        assert cache.get("user_1", ContentType.TIP, "en", ctx(5)) is None


class TestCacheFailures:
    """Test corrupt entries and store failures."""

    def test_corrupt_entry_is_miss(self, store, clock):
        cache = make_cache(store, clock)
        store.set(cache_key("user_1", "motivation", "en"), {"garbage": True})

        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(1)) is None

    def test_read_failure_is_miss(self, flaky_store, clock):
        cache = make_cache(flaky_store, clock)
        cache.set("user_1", ContentType.MOTIVATION, "en", TextContent("hi"), ctx(1))
        flaky_store.fail_reads = True

        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(1)) is None

    def test_write_failure_is_not_raised(self, flaky_store, clock):
        cache = make_cache(flaky_store, clock)
        flaky_store.fail_writes = True

        entry = cache.set("user_1", ContentType.TIP, "en", TextContent("hi"), ctx(1))
        assert entry.text == "hi"
        flaky_store.fail_writes = False
        assert cache.get("user_1", ContentType.TIP, "en", ctx(1)) is None

    def test_content_kind_mismatch_is_miss(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.TIP, "en", TextContent("hi"), ctx(1))
        doc = store.get(cache_key("user_1", "tip", "en"))
        doc["type"] = "mission"
        store.set(cache_key("user_1", "mission", "en"), doc)

        assert cache.get("user_1", ContentType.MISSION, "en", ctx(1)) is None


class TestCacheMaintenance:
    """Test clearing and eviction."""

    def test_clear_single_slot(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.TIP, "en", TextContent("hi"), ctx(1))

        assert cache.clear("user_1", ContentType.TIP, "en") is True
        assert cache.clear("user_1", ContentType.TIP, "en") is False

    def test_clear_user_leaves_other_users(self, store, clock):
        cache = make_cache(store, clock)
        for lang in ("en", "id"):
            cache.set("user_1", ContentType.MOTIVATION, lang, TextContent("hi"), ctx(1))
        cache.set("user_1", ContentType.TIP, "en", TextContent("hi"), ctx(1))
        cache.set("user_10", ContentType.TIP, "en", TextContent("hi"), ctx(1))

        assert cache.clear_user("user_1") == 3
        assert cache.get("user_10", ContentType.TIP, "en", ctx(1)) is not None

    def test_clear_user_does_not_touch_longer_ids(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("bob", ContentType.MOTIVATION, "en", TextContent("hi"), ctx(1))
        cache.set("bob_motivation", ContentType.TIP, "en", TextContent("hi"), ctx(1))

        assert cache.clear_user("bob") == 1
        assert cache.get("bob_motivation", ContentType.TIP, "en", ctx(1)) is not None

    def test_evict_expired(self, store, clock):
        cache = make_cache(store, clock)
        cache.set("user_1", ContentType.MISSION, "en", MissionListContent(()), ctx(1))
        cache.set("user_1", ContentType.MOTIVATION, "en", TextContent("hi"), ctx(1))

        clock.advance(days=8)
        assert cache.evict_expired() == 1
        assert cache.get("user_1", ContentType.MOTIVATION, "en", ctx(1)) is not None
