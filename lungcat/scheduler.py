"""
Periodic maintenance for Lungcat.

The core never schedules anything itself. The host calls
`MonthlyResetScheduler.run_pending()` from cron, the CLI `tick` command, or
the optional background thread started with `start()`.
"""

import logging
import threading
from datetime import datetime, UTC
from typing import TYPE_CHECKING, Callable, Optional

from lungcat.errors import PersistenceError

if TYPE_CHECKING:
    from lungcat.orchestrator import AIOrchestrator

logger = logging.getLogger(__name__)


def next_month_start(now: datetime) -> datetime:
    """First instant (UTC) of the month after `now`."""
    now = now.astimezone(UTC)
    if now.month == 12:
        return datetime(now.year + 1, 1, 1, tzinfo=UTC)
    return datetime(now.year, now.month + 1, 1, tzinfo=UTC)


class MonthlyResetScheduler:
    """
    Runs budget rollover, cache eviction and ledger pruning.

    Args:
        orchestrator: The orchestrator whose components are maintained.
        clock: Returns "now". Defaults to the orchestrator's clock.
        prune_after_days: Usage records idle this long are deleted on month
                          rollover. 0 disables pruning.
    """

    def __init__(
        self,
        orchestrator: "AIOrchestrator",
        clock: Optional[Callable[[], datetime]] = None,
        prune_after_days: int = 90,
    ):
        self.orchestrator = orchestrator
        self._clock = clock or orchestrator.clock
        self.prune_after_days = prune_after_days
        self.last_run: Optional[datetime] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def next_reset(self, now: Optional[datetime] = None) -> datetime:
        return next_month_start(now or self._clock())

    def run_pending(self, now: Optional[datetime] = None) -> dict:
        """
        Run one maintenance pass.

        Returns:
            Summary with ran_at, budget_rolled_over, cache_evicted and
            usage_pruned.
        """
        now = now or self._clock()
        rolled_over = self.orchestrator.budget.rollover_if_needed()

        evicted = 0
        try:
            evicted = self.orchestrator.cache.evict_expired()
        except PersistenceError as exc:
            logger.error("Cache eviction failed: %s", exc)

        pruned = 0
        if rolled_over and self.prune_after_days > 0:
            try:
                pruned = self.orchestrator.ledger.prune_inactive(self.prune_after_days)
            except PersistenceError as exc:
                logger.error("Usage pruning failed: %s", exc)

        if rolled_over:
            logger.info("Monthly AI budget reset, next reset at %s", self.next_reset(now).isoformat())

        self.last_run = now
        return {
            "ran_at": now.isoformat(),
            "budget_rolled_over": rolled_over,
            "cache_evicted": evicted,
            "usage_pruned": pruned,
        }

    # =========================================================================
    # Background thread
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, interval_seconds: float = 3600.0) -> None:
        """Run `run_pending` every `interval_seconds` on a daemon thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            args=(interval_seconds,),
            name="lungcat-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("Maintenance scheduler started (%.0fs interval)", interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self, interval_seconds: float) -> None:
        while not self._stop.is_set():
            try:
                self.run_pending()
            except Exception as e:
                logger.error("Maintenance pass failed: %s", e)
            self._stop.wait(timeout=interval_seconds)
