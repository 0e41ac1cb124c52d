"""Tests for the usage ledger."""

from datetime import datetime, UTC

import pytest

from lungcat.config import UsageLimits
from lungcat.errors import QuotaExceededError
from lungcat.ledger import UsageLedger
from lungcat.storage import usage_key


def make_ledger(store, clock, **limits):
    return UsageLedger(store, UsageLimits(**limits), clock)


class TestCheckLimits:
    """Test quota decisions."""

    def test_new_user_is_allowed(self, store, clock):
        ledger = make_ledger(store, clock)
        assert ledger.check_limits("user_1") is True

    def test_daily_cap_blocks_same_day(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)

        assert ledger.check_limits("user_1") is False

    def test_daily_cap_clears_next_day(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)

        clock.advance(days=1)
        assert ledger.check_limits("user_1") is True

    def test_monthly_cap_holds_for_rest_of_month(self, store, clock):
        """After the monthly cap is used, day rollovers do not help."""
        ledger = make_ledger(store, clock)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)
        clock.advance(days=1)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)

        for _ in range(15):
            clock.advance(days=1)
            assert ledger.check_limits("user_1") is False

    def test_monthly_cap_clears_next_month(self, store, clock):
        ledger = make_ledger(store, clock)
        clock.set(datetime(2025, 3, 30, 12, 0, tzinfo=UTC))
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)
        clock.advance(days=1)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)
        assert ledger.check_limits("user_1") is False

        clock.set(datetime(2025, 4, 1, 0, 1, tzinfo=UTC))
        assert ledger.check_limits("user_1") is True

    def test_premium_policy(self, store, clock):
        ledger = make_ledger(store, clock, restrict_to_premium=True)

        assert ledger.check_limits("free_user", is_premium_eligible=False) is False
        assert ledger.check_limits("paid_user", is_premium_eligible=True) is True

    def test_users_are_independent(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)

        assert ledger.check_limits("user_1") is False
        assert ledger.check_limits("user_2") is True

    def test_enforce_limits_raises(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.enforce_limits("user_1")
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)

        with pytest.raises(QuotaExceededError) as exc_info:
            ledger.enforce_limits("user_1")
        assert exc_info.value.period == "daily"
        assert exc_info.value.used == 1
        assert exc_info.value.limit == 1

    def test_enforce_limits_reports_monthly(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)
        clock.advance(days=1)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)
        clock.advance(days=1)

        with pytest.raises(QuotaExceededError) as exc_info:
            ledger.enforce_limits("user_1")
        assert exc_info.value.period == "monthly"


class TestRecordUsage:
    """Test counters and rollover."""

    def test_record_increments_both_counters(self, store, clock):
        ledger = make_ledger(store, clock)
        record = ledger.record_usage("user_1", tokens_used=180, cost=0.0007)

        assert record.monthly_calls_used == 1
        assert record.daily_calls_used == 1
        assert record.last_call_date == "2025-03-10"
        assert record.reset_month == "2025-03"
        assert record.total_cost_this_month == pytest.approx(0.0007)

    def test_record_is_persisted(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.record_usage("user_1", tokens_used=180, cost=0.0007)

        doc = store.get(usage_key("user_1"))
        assert doc["monthlyCallsUsed"] == 1
        assert doc["dailyCallsUsed"] == 1
        assert doc["lastCallDate"] == "2025-03-10"

    def test_day_rollover_resets_daily_only(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)

        clock.advance(days=1)
        record = ledger.get_record("user_1")
        assert record.daily_calls_used == 0
        assert record.monthly_calls_used == 1

    def test_month_rollover_resets_everything(self, store, clock):
        ledger = make_ledger(store, clock)
        clock.set(datetime(2025, 3, 31, 23, 0, tzinfo=UTC))
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)

        clock.set(datetime(2025, 4, 1, 0, 30, tzinfo=UTC))
        record = ledger.get_record("user_1")
        assert record.daily_calls_used == 0
        assert record.monthly_calls_used == 0
        assert record.total_cost_this_month == 0.0
        assert record.reset_month == "2025-04"

    def test_daily_never_exceeds_monthly(self, store, clock):
        """daily_calls_used <= monthly_calls_used after any sequence of calls."""
        ledger = make_ledger(store, clock, max_calls_per_month=50, max_calls_per_day=3)
        steps = [0, 0, 1, 0, 3, 0, 0, 12, 1, 0, 25, 0]
        for days in steps:
            clock.advance(days=days, hours=1)
            if ledger.check_limits("user_1"):
                ledger.record_usage("user_1", tokens_used=50, cost=0.0002)
            record = ledger.get_record("user_1")
            assert record.daily_calls_used <= record.monthly_calls_used

    def test_negative_cost_rejected(self, store, clock):
        ledger = make_ledger(store, clock)
        with pytest.raises(ValueError):
            ledger.record_usage("user_1", tokens_used=10, cost=-0.01)

    def test_remaining_monthly_calls(self, store, clock):
        ledger = make_ledger(store, clock)
        assert ledger.remaining_monthly_calls("user_1") == 2
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)
        assert ledger.remaining_monthly_calls("user_1") == 1


class TestPersistenceFailures:
    """Test ledger behaviour when the store misbehaves."""

    def test_unreadable_ledger_denies_unknown_user(self, flaky_store, clock):
        ledger = make_ledger(flaky_store, clock)
        flaky_store.fail_reads = True

        assert ledger.check_limits("user_1") is False

    def test_unreadable_ledger_uses_last_known_record(self, flaky_store, clock):
        ledger = make_ledger(flaky_store, clock, max_calls_per_month=5, max_calls_per_day=5)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)
        flaky_store.fail_reads = True

        assert ledger.check_limits("user_1") is True

    def test_write_failure_is_not_raised(self, flaky_store, clock):
        ledger = make_ledger(flaky_store, clock)
        flaky_store.fail_writes = True

        record = ledger.record_usage("user_1", tokens_used=100, cost=0.001)
        assert record.monthly_calls_used == 1


class TestMaintenance:
    """Test reset and pruning."""

    def test_reset_user(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.record_usage("user_1", tokens_used=100, cost=0.001)

        ledger.reset_user("user_1")
        assert store.get(usage_key("user_1")) is None
        assert ledger.check_limits("user_1") is True

    def test_prune_inactive(self, store, clock):
        ledger = make_ledger(store, clock)
        ledger.record_usage("old_user", tokens_used=100, cost=0.001)
        clock.advance(days=100)
        ledger.record_usage("new_user", tokens_used=100, cost=0.001)

        removed = ledger.prune_inactive(older_than_days=90)

        assert removed == 1
        assert store.get(usage_key("old_user")) is None
        assert store.get(usage_key("new_user")) is not None
