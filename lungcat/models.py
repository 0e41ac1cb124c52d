"""Shared data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Optional, Union, Any


def utc_now() -> datetime:
    return datetime.now(UTC)


def day_key(now: datetime) -> str:
    """Calendar day as YYYY-MM-DD (UTC)."""
    return now.astimezone(UTC).strftime("%Y-%m-%d")


def month_key(now: datetime) -> str:
    """Calendar month as YYYY-MM (UTC)."""
    return now.astimezone(UTC).strftime("%Y-%m")


class ContentType(str, Enum):
    """Kinds of generated content. Each has its own cache slot and TTL."""
    MOTIVATION = "motivation"
    MISSION = "mission"
    TIP = "tip"
    MILESTONE = "milestone"


class ContentSource(str, Enum):
    """Where served content came from."""
    CACHE = "cache"
    AI = "ai"
    FALLBACK = "fallback"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class ProgressSnapshot:
    """User progress captured when content is generated."""
    streak: int = 0
    total_days: int = 0
    level: int = 1
    xp: int = 0

    def to_dict(self) -> dict:
        return {
            "streak": self.streak,
            "totalDays": self.total_days,
            "level": self.level,
            "xp": self.xp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgressSnapshot":
        return cls(
            streak=int(data.get("streak", 0)),
            total_days=int(data.get("totalDays", 0)),
            level=int(data.get("level", 1)),
            xp=int(data.get("xp", 0)),
        )


@dataclass
class UserProfile:
    """The slice of a user document the AI layer reads."""
    id: str
    display_name: str = ""
    streak: int = 0
    total_days: int = 0
    level: int = 1
    xp: int = 0
    is_premium: bool = False
    badges: list[str] = field(default_factory=list)

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            streak=self.streak,
            total_days=self.total_days,
            level=self.level or 1,
            xp=self.xp,
        )

    @property
    def latest_badge(self) -> Optional[str]:
        return self.badges[-1] if self.badges else None


@dataclass
class Mission:
    """A daily mission."""
    id: str
    title: str
    description: str
    xp_reward: int
    difficulty: Difficulty = Difficulty.MEDIUM
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    is_ai_generated: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "xpReward": self.xp_reward,
            "difficulty": self.difficulty.value,
            "isCompleted": self.is_completed,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "isAIGenerated": self.is_ai_generated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Mission":
        completed_at = data.get("completedAt")
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            xp_reward=int(data["xpReward"]),
            difficulty=Difficulty(data.get("difficulty", "medium")),
            is_completed=bool(data.get("isCompleted", False)),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            is_ai_generated=bool(data.get("isAIGenerated", False)),
        )


@dataclass(frozen=True)
class TextContent:
    """Free text: motivation, tips and milestone messages."""
    text: str

    def to_dict(self) -> dict:
        return {"kind": "text", "text": self.text}


@dataclass(frozen=True)
class MissionListContent:
    """Structured mission list."""
    missions: tuple[Mission, ...]

    def to_dict(self) -> dict:
        return {"kind": "missions", "missions": [m.to_dict() for m in self.missions]}


Content = Union[TextContent, MissionListContent]


def content_from_dict(data: dict) -> Content:
    kind = data.get("kind")
    if kind == "text":
        return TextContent(text=str(data["text"]))
    if kind == "missions":
        return MissionListContent(
            missions=tuple(Mission.from_dict(m) for m in data["missions"])
        )
    raise ValueError(f"Unknown content kind: {kind!r}")


@dataclass
class UsageRecord:
    """Per-user AI call counters for the current day and month."""
    user_id: str
    monthly_calls_used: int = 0
    daily_calls_used: int = 0
    last_call_date: str = ""  # YYYY-MM-DD
    total_cost_this_month: float = 0.0
    reset_month: str = ""  # YYYY-MM

    def rolled_over(self, today: str, current_month: str) -> "UsageRecord":
        """Return a copy with day/month counters reset where the period changed."""
        record = UsageRecord(
            user_id=self.user_id,
            monthly_calls_used=self.monthly_calls_used,
            daily_calls_used=self.daily_calls_used,
            last_call_date=self.last_call_date,
            total_cost_this_month=self.total_cost_this_month,
            reset_month=self.reset_month,
        )
        if record.reset_month != current_month:
            record.monthly_calls_used = 0
            record.daily_calls_used = 0
            record.total_cost_this_month = 0.0
            record.reset_month = current_month
        if record.last_call_date != today:
            record.daily_calls_used = 0
        return record

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "monthlyCallsUsed": self.monthly_calls_used,
            "dailyCallsUsed": self.daily_calls_used,
            "lastCallDate": self.last_call_date,
            "totalCostThisMonth": self.total_cost_this_month,
            "resetMonth": self.reset_month,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UsageRecord":
        return cls(
            user_id=data["userId"],
            monthly_calls_used=int(data.get("monthlyCallsUsed", 0)),
            daily_calls_used=int(data.get("dailyCallsUsed", 0)),
            last_call_date=data.get("lastCallDate", ""),
            total_cost_this_month=float(data.get("totalCostThisMonth", 0.0)),
            reset_month=data.get("resetMonth", ""),
        )


@dataclass
class GlobalBudgetState:
    """Aggregate AI spend across all users for one calendar month."""
    month: str
    total_cost_this_month: float = 0.0
    emergency_stop_active: bool = False

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "totalCostThisMonth": self.total_cost_this_month,
            "emergencyStopActive": self.emergency_stop_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GlobalBudgetState":
        return cls(
            month=data.get("month", ""),
            total_cost_this_month=float(data.get("totalCostThisMonth", 0.0)),
            emergency_stop_active=bool(data.get("emergencyStopActive", False)),
        )


@dataclass
class CacheEntry:
    """Cached generated content with the progress snapshot that produced it."""
    user_id: str
    content_type: ContentType
    language: str
    content: Content
    timestamp: datetime
    user_context: ProgressSnapshot
    tokens_used: int = 0
    cost: float = 0.0

    @property
    def text(self) -> str:
        if not isinstance(self.content, TextContent):
            raise TypeError(f"{self.content_type.value} cache entry does not hold text")
        return self.content.text

    @property
    def missions(self) -> list[Mission]:
        if not isinstance(self.content, MissionListContent):
            raise TypeError(f"{self.content_type.value} cache entry does not hold missions")
        return list(self.content.missions)

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "type": self.content_type.value,
            "language": self.language,
            "content": self.content.to_dict(),
            "timestamp": self.timestamp.isoformat(),
            "userContext": self.user_context.to_dict(),
            "tokensUsed": self.tokens_used,
            "cost": self.cost,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CacheEntry":
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)
        content_type = ContentType(data["type"])
        content = content_from_dict(data["content"])
        expected = MissionListContent if content_type == ContentType.MISSION else TextContent
        if not isinstance(content, expected):
            raise ValueError(
                f"{content_type.value} entry holds {data['content']['kind']!r} content"
            )
        return cls(
            user_id=data["userId"],
            content_type=content_type,
            language=data["language"],
            content=content,
            timestamp=timestamp,
            user_context=ProgressSnapshot.from_dict(data.get("userContext", {})),
            tokens_used=int(data.get("tokensUsed", 0)),
            cost=float(data.get("cost", 0.0)),
        )


@dataclass
class ServedContent:
    """Terminal result of one orchestrated request."""
    content: Content
    source: ContentSource
    content_type: ContentType
    language: str
    reason: str = ""
    cost: float = 0.0
    tokens_used: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        if not isinstance(self.content, TextContent):
            raise TypeError("served content does not hold text")
        return self.content.text

    @property
    def missions(self) -> list[Mission]:
        if not isinstance(self.content, MissionListContent):
            raise TypeError("served content does not hold missions")
        return list(self.content.missions)
