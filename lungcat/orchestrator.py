"""
AI Orchestrator for Lungcat.

Decides, per request, whether content comes from the cache, a fresh LLM
call, or the local fallback pools:

    cache hit?            -> cache
    emergency stop?       -> fallback (emergency_stop)
    user over quota?      -> fallback (quota_exceeded)
    upstream gate busy?   -> fallback (concurrency_rejected)
    upstream call fails?  -> fallback (upstream_failure)
    otherwise             -> ai (usage recorded, cost charged, result cached)

All checks run before the upstream gate is taken, so a rejected request
never touches it. No exception escapes the public methods.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from lungcat.budget import GlobalBudgetGuard
from lungcat.cache import ContentCache
from lungcat.call_lock import CallSerializer
from lungcat.config import (
    Settings,
    UsageLimits,
    get_generation_settings,
    get_limits,
    get_pricing,
    get_settings,
    normalize_language,
)
from lungcat.errors import ConcurrencyRejectedError, PersistenceError, UpstreamError
from lungcat.fallback import FallbackGenerator
from lungcat.ledger import UsageLedger
from lungcat.metrics import MetricsCollector
from lungcat.models import (
    Content,
    ContentSource,
    ContentType,
    GlobalBudgetState,
    Mission,
    MissionListContent,
    ServedContent,
    TextContent,
    UserProfile,
    utc_now,
)
from lungcat.prompts import (
    build_milestone_prompt,
    build_missions_prompt,
    build_motivation_prompt,
    build_tip_prompt,
    clean_text_response,
    estimate_tokens,
    parse_missions_response,
)
from lungcat.providers import TextGenerator, create_generator
from lungcat.storage import InMemoryStore, KeyValueStore, SQLiteStore

logger = logging.getLogger(__name__)

TRIGGER_DAILY = "daily"
TRIGGER_MILESTONE = "milestone"

CONNECTION_TEST_PROMPT = "Test connection. Respond with 'OK' only."


@dataclass
class _Plan:
    """Everything the state machine needs to serve one content type."""
    user: UserProfile
    content_type: ContentType
    language: str
    build_prompt: Callable[[], str]
    parse: Callable[[str, str], Content]
    build_fallback: Callable[[], Content]


class AIOrchestrator:
    """
    Serves motivation, missions and tips under per-user quotas, a global
    monthly budget and a single in-flight upstream call.

    Args:
        store: Shared key-value store for usage, budget and cache documents.
        generator: Upstream text generator. Built from LUNGCAT_PROVIDER on
                   first use if not given.
        limits: Quota and cache policy. Defaults to `get_limits()`.
        pricing: USD per input/output token. Defaults to `get_pricing()`.
        clock: Returns "now"; inject a fake clock to time-travel in tests.
        serializer: Upstream gate. Share one instance per process.
        fallback: Fallback content generator.
        metrics: Metrics collector for served/error events.

    Example:
        ```python
        orchestrator = AIOrchestrator(store=SQLiteStore("lungcat.db"))
        user = UserProfile(id="user_123", display_name="Sari", streak=12, total_days=40)

        text = orchestrator.get_motivation(user, language="en")
        missions = orchestrator.get_missions(user, language="en")
        print(orchestrator.get_usage_stats("user_123"))
        ```
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        generator: Optional[TextGenerator] = None,
        limits: Optional[UsageLimits] = None,
        pricing: Optional[dict[str, float]] = None,
        clock: Callable[[], datetime] = utc_now,
        serializer: Optional[CallSerializer] = None,
        fallback: Optional[FallbackGenerator] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.store = store if store is not None else InMemoryStore()
        self.limits = limits or get_limits()
        self.pricing = pricing or get_pricing()
        self.clock = clock

        self.ledger = UsageLedger(self.store, self.limits, clock)
        self.budget = GlobalBudgetGuard(self.store, self.limits, clock)
        self.cache = ContentCache(self.store, self.limits, clock)
        self.serializer = serializer or CallSerializer()
        self.fallback = fallback or FallbackGenerator()
        self.metrics = metrics or MetricsCollector(enable_logging=False)
        self._generator = generator

    @property
    def generator(self) -> TextGenerator:
        if self._generator is None:
            self._generator = create_generator()
        return self._generator

    # =========================================================================
    # Caller-facing API
    # =========================================================================

    def get_motivation(
        self,
        user: UserProfile,
        trigger_type: str = TRIGGER_DAILY,
        trigger_data: Optional[dict[str, Any]] = None,
        language: str = "id",
    ) -> str:
        """
        Motivation text for the user.

        Args:
            user: The user asking.
            trigger_type: "daily" or "milestone".
            trigger_data: For milestones, {"milestone_days": N}.
            language: "en" or "id".

        Returns:
            Motivation text. Always usable, never raises.
        """
        return self.serve_motivation(user, trigger_type, trigger_data, language).text

    def get_missions(self, user: UserProfile, language: str = "id") -> list[Mission]:
        """Daily missions for the user. Always returns a list, never raises."""
        return self.serve_missions(user, language).missions

    def get_tip(self, user: UserProfile, language: str = "id") -> str:
        """One practical tip. Always usable, never raises."""
        return self.serve_tip(user, language).text

    def serve_motivation(
        self,
        user: UserProfile,
        trigger_type: str = TRIGGER_DAILY,
        trigger_data: Optional[dict[str, Any]] = None,
        language: str = "id",
    ) -> ServedContent:
        """Like get_motivation, but returns where the content came from."""
        lang = normalize_language(language)
        if trigger_type not in (TRIGGER_DAILY, TRIGGER_MILESTONE):
            logger.warning("Unknown trigger type %r, treating as daily", trigger_type)
            trigger_type = TRIGGER_DAILY

        if trigger_type == TRIGGER_MILESTONE:
            milestone_days = _milestone_days(trigger_data)
            plan = _Plan(
                user=user,
                content_type=ContentType.MILESTONE,
                language=lang,
                build_prompt=lambda: build_milestone_prompt(user, lang, milestone_days),
                parse=_parse_text,
                build_fallback=lambda: TextContent(
                    self.fallback.milestone_message(
                        user.snapshot(), lang, user.display_name, milestone_days
                    )
                ),
            )
        else:
            plan = _Plan(
                user=user,
                content_type=ContentType.MOTIVATION,
                language=lang,
                build_prompt=lambda: build_motivation_prompt(user, lang),
                parse=_parse_text,
                build_fallback=lambda: TextContent(
                    self.fallback.contextual_motivation(
                        user.snapshot(), lang, user.display_name, len(user.badges)
                    )
                ),
            )
        return self._serve(plan)

    def serve_missions(self, user: UserProfile, language: str = "id") -> ServedContent:
        """Like get_missions, but returns where the content came from."""
        lang = normalize_language(language)
        count = self.limits.missions_per_request

        def parse(text: str, provider: str) -> Content:
            missions = parse_missions_response(text, provider)
            return MissionListContent(missions=tuple(missions[:count]))

        plan = _Plan(
            user=user,
            content_type=ContentType.MISSION,
            language=lang,
            build_prompt=lambda: build_missions_prompt(user, lang, count),
            parse=parse,
            build_fallback=lambda: MissionListContent(
                missions=tuple(self.fallback.static_missions(count, lang))
            ),
        )
        return self._serve(plan)

    def serve_tip(self, user: UserProfile, language: str = "id") -> ServedContent:
        """Like get_tip, but returns where the content came from."""
        lang = normalize_language(language)
        plan = _Plan(
            user=user,
            content_type=ContentType.TIP,
            language=lang,
            build_prompt=lambda: build_tip_prompt(user, lang),
            parse=_parse_text,
            build_fallback=lambda: TextContent(self.fallback.static_tip(lang)),
        )
        return self._serve(plan)

    def get_usage_stats(self, user_id: str) -> dict[str, Any]:
        """
        Usage summary for a user plus the global budget.

        Returns:
            Dict with monthlyCallsUsed, monthlyCallsRemaining,
            monthlyBudgetUsed, monthlyBudgetRemaining and emergencyStopActive.
            Budget figures are global, shared by all users.
        """
        try:
            record = self.ledger.get_record(user_id)
            stop_active = self.budget.is_emergency_stop_active()
            state = self.budget.get_state()
        except Exception as exc:
            logger.error("Error getting usage stats for %s: %s", user_id, exc)
            return {
                "monthlyCallsUsed": 0,
                "monthlyCallsRemaining": self.limits.max_calls_per_month,
                "monthlyBudgetUsed": 0.0,
                "monthlyBudgetRemaining": self.budget.monthly_budget,
                "emergencyStopActive": False,
            }

        return {
            "monthlyCallsUsed": record.monthly_calls_used,
            "monthlyCallsRemaining": max(0, self.limits.max_calls_per_month - record.monthly_calls_used),
            "monthlyBudgetUsed": state.total_cost_this_month,
            "monthlyBudgetRemaining": max(0.0, self.budget.monthly_budget - state.total_cost_this_month),
            "emergencyStopActive": stop_active,
        }

    def reset_monthly_usage(self) -> None:
        """Clear this month's global spend and the emergency stop."""
        try:
            self.budget.reset()
            logger.info("Monthly AI usage reset")
        except Exception as exc:
            logger.error("Error resetting monthly usage: %s", exc)

    # =========================================================================
    # Lifecycle & maintenance
    # =========================================================================

    def initialize(self) -> GlobalBudgetState:
        """Apply any pending month rollover and log the budget status."""
        self.budget.rollover_if_needed()
        state = self.budget.get_state()
        logger.info(
            "AI orchestrator initialized - month=%s spend=$%.4f/$%.2f emergency_stop=%s "
            "limits: %d calls/month, %d calls/day",
            state.month,
            state.total_cost_this_month,
            self.budget.monthly_budget,
            state.emergency_stop_active,
            self.limits.max_calls_per_month,
            self.limits.max_calls_per_day,
        )
        if state.emergency_stop_active:
            logger.warning("Emergency stop is active, all users get fallback content this month")
        return state

    def clear_user_cache(self, user_id: str) -> int:
        """Drop all cached content for a user. Returns the number of entries removed."""
        try:
            removed = self.cache.clear_user(user_id)
        except PersistenceError as exc:
            logger.error("Could not clear cache for %s: %s", user_id, exc)
            return 0
        logger.info("Cleared %d cache entries for %s", removed, user_id)
        return removed

    def test_connection(self) -> bool:
        """
        Probe the upstream with a tiny prompt.

        Takes the upstream gate like any other call and charges the probe to
        the global budget. Returns False on any failure.
        """
        try:
            with self.serializer.hold("connection-test"):
                text = self.generator.generate(
                    CONNECTION_TEST_PROMPT, temperature=0.0, max_output_tokens=10
                )
        except Exception as exc:
            logger.error("Upstream connection test failed: %s", exc)
            return False

        cost = self.estimate_cost(estimate_tokens(CONNECTION_TEST_PROMPT), estimate_tokens(text))
        self.budget.record_cost(cost)
        logger.info("Upstream connection test succeeded: %r", text[:20])
        return True

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Approximate USD cost of one call."""
        return input_tokens * self.pricing["input"] + output_tokens * self.pricing["output"]

    # =========================================================================
    # State machine
    # =========================================================================

    def _serve(self, plan: _Plan) -> ServedContent:
        request_id = uuid.uuid4().hex[:12]
        try:
            served = self._run(plan, request_id)
        except Exception as exc:
            logger.exception(
                "Unexpected error serving %s to %s", plan.content_type.value, plan.user.id
            )
            self.metrics.record_error(request_id, plan.user.id, type(exc).__name__, str(exc))
            served = self._serve_fallback(plan, "error", cache_result=False)

        self.metrics.record_served(
            request_id=request_id,
            user_id=plan.user.id,
            content_type=plan.content_type.value,
            source=served.source.value,
            reason=served.reason,
            cost_usd=served.cost,
            language=plan.language,
        )
        return served

    def _run(self, plan: _Plan, request_id: str) -> ServedContent:
        user = plan.user
        context = user.snapshot()

        entry = self.cache.get(user.id, plan.content_type, plan.language, context)
        if entry is not None:
            logger.info("Serving cached %s to %s", plan.content_type.value, user.id)
            return ServedContent(
                content=entry.content,
                source=ContentSource.CACHE,
                content_type=plan.content_type,
                language=plan.language,
                reason="cache_hit",
                metadata={"cached_at": entry.timestamp.isoformat()},
            )

        if self.budget.is_emergency_stop_active():
            logger.warning(
                "Emergency stop active, serving fallback %s to %s", plan.content_type.value, user.id
            )
            return self._serve_fallback(plan, "emergency_stop")

        if not self.ledger.check_limits(user.id, user.is_premium):
            logger.info("AI limit reached for %s, serving fallback %s", user.id, plan.content_type.value)
            return self._serve_fallback(plan, "quota_exceeded")

        try:
            with self.serializer.hold(f"{plan.content_type.value}:{user.id}") as call_id:
                return self._call_upstream(plan, request_id, call_id)
        except ConcurrencyRejectedError as exc:
            logger.info("Serving fallback %s to %s: %s", plan.content_type.value, user.id, exc)
            return self._serve_fallback(plan, "concurrency_rejected")

    def _call_upstream(self, plan: _Plan, request_id: str, call_id: str) -> ServedContent:
        user = plan.user
        settings = get_generation_settings(plan.content_type.value)

        try:
            generator = self.generator
            prompt = plan.build_prompt()
            raw = generator.generate(
                prompt,
                temperature=settings.temperature,
                max_output_tokens=settings.max_output_tokens,
            )
            content = plan.parse(raw, generator.name)
        except UpstreamError as exc:
            logger.error("Upstream call failed for %s (%s): %s", user.id, plan.content_type.value, exc)
            self.metrics.record_error(request_id, user.id, "upstream_failure", str(exc))
            return self._serve_fallback(plan, "upstream_failure")
        except Exception as exc:
            logger.error(
                "Upstream call failed for %s (%s): %s: %s",
                user.id, plan.content_type.value, type(exc).__name__, exc,
            )
            self.metrics.record_error(request_id, user.id, type(exc).__name__, str(exc))
            return self._serve_fallback(plan, "upstream_failure")

        input_tokens = estimate_tokens(prompt)
        output_tokens = estimate_tokens(raw)
        tokens_used = input_tokens + output_tokens
        cost = self.estimate_cost(input_tokens, output_tokens)

        self.ledger.record_usage(user.id, tokens_used, cost)
        self.budget.record_cost(cost)
        self.cache.set(
            user.id,
            plan.content_type,
            plan.language,
            content,
            user.snapshot(),
            tokens_used=tokens_used,
            cost=cost,
        )

        return ServedContent(
            content=content,
            source=ContentSource.AI,
            content_type=plan.content_type,
            language=plan.language,
            reason="generated",
            cost=cost,
            tokens_used=tokens_used,
            metadata={"provider": generator.name, "call_id": call_id},
        )

    def _serve_fallback(self, plan: _Plan, reason: str, cache_result: bool = True) -> ServedContent:
        content = plan.build_fallback()
        if cache_result and self.limits.cache_fallback_content:
            self.cache.set(
                plan.user.id, plan.content_type, plan.language, content, plan.user.snapshot()
            )
        return ServedContent(
            content=content,
            source=ContentSource.FALLBACK,
            content_type=plan.content_type,
            language=plan.language,
            reason=reason,
        )


def _parse_text(text: str, provider: str) -> Content:
    return TextContent(clean_text_response(text, provider))


def _milestone_days(trigger_data: Optional[dict[str, Any]]) -> Optional[int]:
    if not trigger_data:
        return None
    try:
        days = int(trigger_data.get("milestone_days") or 0)
    except (TypeError, ValueError):
        return None
    return days if days > 0 else None


def build_orchestrator(
    settings: Optional[Settings] = None,
    metrics: Optional[MetricsCollector] = None,
) -> AIOrchestrator:
    """
    Build an orchestrator from LUNGCAT_* environment settings.

    Uses SQLite when LUNGCAT_DB_PATH is set, memory otherwise.

    Raises:
        ValueError: If LUNGCAT_PROVIDER names an unknown provider.
    """
    settings = settings or get_settings()
    store = SQLiteStore(settings.db_path) if settings.db_path else InMemoryStore()
    if metrics is None:
        metrics = MetricsCollector(metrics_file=settings.metrics_file)
    return AIOrchestrator(
        store=store,
        generator=create_generator(settings),
        metrics=metrics,
    )


# Global instance for convenience
_default_orchestrator: Optional[AIOrchestrator] = None


def get_orchestrator() -> AIOrchestrator:
    """Get or create the default orchestrator."""
    global _default_orchestrator
    if _default_orchestrator is None:
        _default_orchestrator = build_orchestrator()
    return _default_orchestrator
