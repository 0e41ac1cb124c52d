"""
Global Budget Guard for Lungcat.

A blunt, process-wide circuit breaker on monthly AI spend. Once the month's
total reaches the budget the emergency stop is set and stays set until the
calendar month changes.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from lungcat.config import UsageLimits, get_limits
from lungcat.errors import PersistenceError
from lungcat.models import GlobalBudgetState, month_key, utc_now
from lungcat.storage import KeyValueStore, InMemoryStore, BUDGET_KEY

logger = logging.getLogger(__name__)


class GlobalBudgetGuard:
    """
    Tracks aggregate spend for the current month against a fixed budget.

    Every public method starts with `rollover_if_needed()`. That step is a
    write: reading the guard in a new month clears last month's stop flag
    and zeroes the total.
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
        self._state: Optional[GlobalBudgetState] = None

    @property
    def monthly_budget(self) -> float:
        return self.limits.monthly_budget_usd

    def rollover_if_needed(self) -> bool:
        """
        Reset the stop flag and month total if the calendar month changed.

        Returns:
            True if a rollover happened.
        """
        with self._lock:
            return self._rollover_locked()

    def is_emergency_stop_active(self) -> bool:
        """
        Return True if AI calls are blocked for everyone this month.

        Recomputes the flag from the month total; a newly activated stop is
        persisted. Once active it stays active until month rollover.
        """
        with self._lock:
            self._rollover_locked()
            state = self._state
            if not state.emergency_stop_active and state.total_cost_this_month >= self.monthly_budget:
                state.emergency_stop_active = True
                self._save(state)
                logger.warning(
                    "EMERGENCY STOP ACTIVATED - monthly AI budget exceeded ($%.4f >= $%.2f)",
                    state.total_cost_this_month, self.monthly_budget,
                )
            return state.emergency_stop_active

    def record_cost(self, cost: float) -> GlobalBudgetState:
        """Add one call's cost to the month total."""
        if cost < 0:
            raise ValueError("cost must be non-negative")
        with self._lock:
            self._rollover_locked()
            state = self._state
            state.total_cost_this_month += cost
            if state.total_cost_this_month >= self.monthly_budget:
                state.emergency_stop_active = True
            self._save(state)
            logger.info(
                "Monthly AI spend $%.4f of $%.2f", state.total_cost_this_month, self.monthly_budget
            )
            return self._copy(state)

    def get_state(self) -> GlobalBudgetState:
        with self._lock:
            self._rollover_locked()
            return self._copy(self._state)

    def reset(self) -> GlobalBudgetState:
        """Start the current month from zero spend with the stop cleared."""
        with self._lock:
            state = GlobalBudgetState(month=month_key(self._clock()))
            self._state = state
            self._save(state)
            logger.info("Global AI budget reset for %s", state.month)
            return self._copy(state)

    def _rollover_locked(self) -> bool:
        current_month = month_key(self._clock())
        state = self._load()
        if state.month == current_month:
            self._state = state
            return False

        if state.month:
            logger.info("Budget month rollover %s -> %s", state.month, current_month)
        state = GlobalBudgetState(month=current_month)
        self._state = state
        self._save(state)
        return True

    def _load(self) -> GlobalBudgetState:
        try:
            doc = self.store.get(BUDGET_KEY)
        except PersistenceError as exc:
            logger.warning("Budget state unreadable, using in-memory state: %s", exc)
            if self._state is not None:
                return self._state
            return GlobalBudgetState(month=month_key(self._clock()))
        if doc is None:
            return GlobalBudgetState(month="")
        return GlobalBudgetState.from_dict(doc)

    def _save(self, state: GlobalBudgetState) -> None:
        try:
            self.store.set(BUDGET_KEY, state.to_dict())
        except PersistenceError as exc:
            logger.error("Could not persist budget state: %s", exc)

    @staticmethod
    def _copy(state: GlobalBudgetState) -> GlobalBudgetState:
        return GlobalBudgetState(
            month=state.month,
            total_cost_this_month=state.total_cost_this_month,
            emergency_stop_active=state.emergency_stop_active,
        )
