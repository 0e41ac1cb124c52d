"""
Usage Ledger for Lungcat.

Per-user AI call counters for the current calendar day and month, plus the
dollar cost attributed to the user this month. Counters reset lazily on
the first access after a day or month boundary.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from lungcat.config import UsageLimits, get_limits
from lungcat.errors import PersistenceError, QuotaExceededError
from lungcat.models import UsageRecord, day_key, month_key, utc_now
from lungcat.storage import KeyValueStore, InMemoryStore, USAGE_KEY_PREFIX, usage_key

logger = logging.getLogger(__name__)


class UsageLedger:
    """
    Tracks per-user AI calls against the daily and monthly caps.

    `check_limits` never persists a rollover; `record_usage` applies the
    rollover and persists it together with the new call.

    Example:
        ```python
        ledger = UsageLedger(store)
        if ledger.check_limits("user_123"):
            ...  # make the call
            ledger.record_usage("user_123", tokens_used=180, cost=0.0007)
        ```
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        limits: Optional[UsageLimits] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store if store is not None else InMemoryStore()
        self.limits = limits or get_limits()
        self._clock = clock
        self._lock = threading.Lock()
        # Last record seen per user, used when the store is unreadable.
        self._last_known: dict[str, UsageRecord] = {}

    # =========================================================================
    # Quota checks
    # =========================================================================

    def check_limits(self, user_id: str, is_premium_eligible: bool = False) -> bool:
        """
        Return True if the user may make another AI call right now.

        Args:
            user_id: The user to check.
            is_premium_eligible: Whether the user passes the premium policy.

        Returns:
            False if the premium-only policy excludes the user, or either the
            daily or monthly cap has been reached. Also False if the ledger
            cannot be read and nothing is known about the user.
        """
        if self.limits.restrict_to_premium and not is_premium_eligible:
            logger.info("User %s not premium-eligible, AI disabled by policy", user_id)
            return False

        try:
            record = self.get_record(user_id)
        except PersistenceError as exc:
            cached = self._last_known.get(user_id)
            if cached is None:
                logger.error("Usage ledger unreadable for %s, denying AI: %s", user_id, exc)
                return False
            logger.warning("Usage ledger unreadable for %s, using last known record: %s", user_id, exc)
            now = self._clock()
            record = cached.rolled_over(day_key(now), month_key(now))

        if record.monthly_calls_used >= self.limits.max_calls_per_month:
            logger.info(
                "User %s exceeded monthly AI limit (%d/%d)",
                user_id, record.monthly_calls_used, self.limits.max_calls_per_month,
            )
            return False

        if record.daily_calls_used >= self.limits.max_calls_per_day:
            logger.info(
                "User %s exceeded daily AI limit (%d/%d)",
                user_id, record.daily_calls_used, self.limits.max_calls_per_day,
            )
            return False

        return True

    def enforce_limits(self, user_id: str, is_premium_eligible: bool = False) -> None:
        """
        Like check_limits, but raise instead of returning False.

        Raises:
            QuotaExceededError: If the user may not make another call.
        """
        if self.check_limits(user_id, is_premium_eligible):
            return
        record = self._safe_record(user_id)
        if self.limits.restrict_to_premium and not is_premium_eligible:
            raise QuotaExceededError(user_id, "premium", 0, 0)
        if record.monthly_calls_used >= self.limits.max_calls_per_month:
            raise QuotaExceededError(
                user_id, "monthly", record.monthly_calls_used, self.limits.max_calls_per_month
            )
        raise QuotaExceededError(
            user_id, "daily", record.daily_calls_used, self.limits.max_calls_per_day
        )

    # =========================================================================
    # Recording
    # =========================================================================

    def record_usage(self, user_id: str, tokens_used: int, cost: float) -> UsageRecord:
        """
        Record one completed AI call for a user.

        Loads or initializes the record, applies day/month rollover, bumps both
        counters and adds the cost. Write failures are logged, not raised.

        Returns:
            The updated record.
        """
        if cost < 0:
            raise ValueError("cost must be non-negative")

        now = self._clock()
        with self._lock:
            try:
                record = self._load(user_id)
            except PersistenceError as exc:
                logger.warning("Could not load usage for %s, continuing from memory: %s", user_id, exc)
                record = self._last_known.get(user_id) or UsageRecord(user_id=user_id)

            record = record.rolled_over(day_key(now), month_key(now))
            record.monthly_calls_used += 1
            record.daily_calls_used += 1
            record.last_call_date = day_key(now)
            record.total_cost_this_month += cost

            self._last_known[user_id] = record
            try:
                self.store.set(usage_key(user_id), record.to_dict())
            except PersistenceError as exc:
                logger.error("Could not persist usage for %s: %s", user_id, exc)

        logger.info(
            "AI usage tracked - user=%s tokens=%d cost=$%.6f month_calls=%d/%d",
            user_id, tokens_used, cost,
            record.monthly_calls_used, self.limits.max_calls_per_month,
        )
        return record

    # =========================================================================
    # Queries & maintenance
    # =========================================================================

    def get_record(self, user_id: str) -> UsageRecord:
        """
        Current view of a user's record with rollover applied (not persisted).

        Raises:
            PersistenceError: If the store cannot be read.
        """
        now = self._clock()
        record = self._load(user_id)
        self._last_known[user_id] = record
        return record.rolled_over(day_key(now), month_key(now))

    def remaining_monthly_calls(self, user_id: str) -> int:
        record = self._safe_record(user_id)
        return max(0, self.limits.max_calls_per_month - record.monthly_calls_used)

    def reset_user(self, user_id: str) -> None:
        """Drop a user's counters."""
        with self._lock:
            self._last_known.pop(user_id, None)
            self.store.delete(usage_key(user_id))

    def prune_inactive(self, older_than_days: int = 90) -> int:
        """
        Delete usage records whose last call is older than the cutoff.

        Returns:
            Number of records removed.
        """
        cutoff = day_key(self._clock() - timedelta(days=older_than_days))
        removed = 0
        for key in self.store.keys(USAGE_KEY_PREFIX):
            doc = self.store.get(key)
            if doc is None:
                continue
            last = doc.get("lastCallDate") or ""
            if last < cutoff:
                self.store.delete(key)
                self._last_known.pop(doc.get("userId", ""), None)
                removed += 1
        if removed:
            logger.info("Pruned %d inactive usage records (before %s)", removed, cutoff)
        return removed

    def _load(self, user_id: str) -> UsageRecord:
        doc = self.store.get(usage_key(user_id))
        if doc is None:
            now = self._clock()
            return UsageRecord(user_id=user_id, reset_month=month_key(now))
        return UsageRecord.from_dict(doc)

    def _safe_record(self, user_id: str) -> UsageRecord:
        try:
            return self.get_record(user_id)
        except PersistenceError:
            now = self._clock()
            cached = self._last_known.get(user_id) or UsageRecord(user_id=user_id)
            return cached.rolled_over(day_key(now), month_key(now))
