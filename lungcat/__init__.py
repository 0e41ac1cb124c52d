"""
Lungcat - AI cost control for a smoke-free tracker.

Every AI request goes through one gate that checks the cache, the global
monthly budget, the user's quota and a single in-flight call lock before
paying for an LLM call. Anything that blocks or fails degrades to local
fallback content; callers never see an AI error.

Simple usage:
    from lungcat import AIOrchestrator, UserProfile

    orchestrator = AIOrchestrator()
    user = UserProfile(id="user_123", display_name="Sari", streak=12, total_days=40)

    print(orchestrator.get_motivation(user, language="en"))
    for mission in orchestrator.get_missions(user, language="en"):
        print(mission.title, mission.xp_reward)

Milestones:
    orchestrator.get_motivation(
        user, trigger_type="milestone", trigger_data={"milestone_days": 30}
    )

Usage and budget:
    orchestrator.get_usage_stats("user_123")
    # {"monthlyCallsUsed": 1, "monthlyCallsRemaining": 1, ...}

Persistence:
    from lungcat import SQLiteStore

    orchestrator = AIOrchestrator(store=SQLiteStore("lungcat.db"))
"""

from lungcat.config import (
    UsageLimits,
    get_limits,
    set_limits,
    reset_limits,
    get_pricing,
    set_pricing,
)
from lungcat.models import (
    ContentType,
    ContentSource,
    Difficulty,
    Mission,
    UserProfile,
    ProgressSnapshot,
    TextContent,
    MissionListContent,
    UsageRecord,
    GlobalBudgetState,
    CacheEntry,
    ServedContent,
)
from lungcat.errors import (
    LungcatError,
    QuotaExceededError,
    ConcurrencyRejectedError,
    UpstreamError,
    PersistenceError,
)
from lungcat.storage import InMemoryStore, SQLiteStore
from lungcat.ledger import UsageLedger
from lungcat.budget import GlobalBudgetGuard
from lungcat.cache import ContentCache
from lungcat.call_lock import CallSerializer
from lungcat.fallback import FallbackGenerator
from lungcat.providers import (
    TextGenerator,
    MockGenerator,
    OpenAIGenerator,
    AnthropicGenerator,
    GeminiGenerator,
    create_generator,
)
from lungcat.metrics import MetricsCollector
from lungcat.orchestrator import AIOrchestrator, build_orchestrator, get_orchestrator
from lungcat.scheduler import MonthlyResetScheduler


__version__ = "1.0.0"
__all__ = [
    # Orchestration
    "AIOrchestrator",
    "build_orchestrator",
    "get_orchestrator",
    "MonthlyResetScheduler",
    # Components
    "UsageLedger",
    "GlobalBudgetGuard",
    "ContentCache",
    "CallSerializer",
    "FallbackGenerator",
    "MetricsCollector",
    # Config
    "UsageLimits",
    "get_limits",
    "set_limits",
    "reset_limits",
    "get_pricing",
    "set_pricing",
    # Models
    "ContentType",
    "ContentSource",
    "Difficulty",
    "Mission",
    "UserProfile",
    "ProgressSnapshot",
    "TextContent",
    "MissionListContent",
    "UsageRecord",
    "GlobalBudgetState",
    "CacheEntry",
    "ServedContent",
    # Errors
    "LungcatError",
    "QuotaExceededError",
    "ConcurrencyRejectedError",
    "UpstreamError",
    "PersistenceError",
    # Storage
    "InMemoryStore",
    "SQLiteStore",
    # Providers
    "TextGenerator",
    "MockGenerator",
    "OpenAIGenerator",
    "AnthropicGenerator",
    "GeminiGenerator",
    "create_generator",
]
