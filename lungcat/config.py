"""Global configuration for Lungcat."""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass, asdict, fields
from typing import Dict, Any


# Gemini-class pricing, USD per token. Budget constants below were tuned
# against the chars/4 token estimate, so keep the two together.
DEFAULT_PRICING: Dict[str, float] = {
    "input": 1.25 / 1_000_000,
    "output": 5.00 / 1_000_000,
}

DEFAULT_MODELS: Dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "gemini": "gemini-1.5-flash",
}

DEFAULT_LANGUAGE = "id"
SUPPORTED_LANGUAGES = ("en", "id")


@dataclass
class UsageLimits:
    """Per-user quota and global budget policy."""
    max_calls_per_month: int = 2
    max_calls_per_day: int = 1
    monthly_budget_usd: float = 5.00  # Shared by ALL users
    progress_invalidation_threshold: int = 7  # Streak days
    default_cache_ttl_hours: float = 168.0
    motivation_cache_days: float = 14.0
    mission_cache_days: float = 7.0
    restrict_to_premium: bool = False  # If True, non-premium users always get fallback
    cache_fallback_content: bool = False
    missions_per_request: int = 3

    def validate(self) -> None:
        if self.max_calls_per_month < 0 or self.max_calls_per_day < 0:
            raise ValueError("call caps must be non-negative")
        if self.monthly_budget_usd < 0:
            raise ValueError("monthly_budget_usd must be non-negative")
        if self.progress_invalidation_threshold < 1:
            raise ValueError("progress_invalidation_threshold must be >= 1")
        if self.missions_per_request < 1:
            raise ValueError("missions_per_request must be >= 1")


@dataclass
class GenerationSettings:
    """Per content-type request knobs sent upstream."""
    temperature: float = 0.7
    max_output_tokens: int = 150


DEFAULT_GENERATION: Dict[str, GenerationSettings] = {
    "motivation": GenerationSettings(temperature=0.7, max_output_tokens=150),
    "milestone": GenerationSettings(temperature=0.7, max_output_tokens=150),
    "mission": GenerationSettings(temperature=0.8, max_output_tokens=500),
    "tip": GenerationSettings(temperature=0.7, max_output_tokens=100),
}


@dataclass
class Settings:
    """Process-level settings read from the environment."""
    provider: str = "openai"
    model: str | None = None
    db_path: str | None = None
    upstream_timeout_seconds: float = 20.0
    admin_api_key: str | None = None
    metrics_file: str | None = None


_limits: UsageLimits = UsageLimits()
_pricing: Dict[str, float] = copy.deepcopy(DEFAULT_PRICING)


def _parse_json_env(var_name: str) -> Dict[str, Any] | None:
    value = os.getenv(var_name)
    if not value:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def get_limits() -> UsageLimits:
    """Return usage limits, with optional env override."""
    parsed = _parse_json_env("LUNGCAT_LIMITS_JSON")
    if parsed:
        known = {f.name for f in fields(UsageLimits)}
        merged = {**asdict(_limits), **{k: v for k, v in parsed.items() if k in known}}
        limits = UsageLimits(**merged)
        limits.validate()
        return limits
    return copy.deepcopy(_limits)


def set_limits(**overrides: Any) -> UsageLimits:
    """Update usage limits at runtime.

    Example:
        set_limits(max_calls_per_month=5, monthly_budget_usd=10.0)
    """
    global _limits
    known = {f.name for f in fields(UsageLimits)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"unknown limit(s): {', '.join(sorted(unknown))}")
    updated = UsageLimits(**{**asdict(_limits), **overrides})
    updated.validate()
    _limits = updated
    return copy.deepcopy(_limits)


def reset_limits() -> None:
    """Restore default limits."""
    global _limits
    _limits = UsageLimits()


def get_pricing() -> Dict[str, float]:
    """Return token pricing, with optional env override."""
    parsed = _parse_json_env("LUNGCAT_PRICING_JSON")
    if parsed and "input" in parsed and "output" in parsed:
        return {"input": float(parsed["input"]), "output": float(parsed["output"])}
    return dict(_pricing)


def set_pricing(pricing: Dict[str, float]) -> None:
    """Set token pricing at runtime."""
    if not isinstance(pricing, dict) or "input" not in pricing or "output" not in pricing:
        raise ValueError("pricing must include 'input' and 'output'")
    global _pricing
    _pricing = {"input": float(pricing["input"]), "output": float(pricing["output"])}


def get_generation_settings(content_type: str) -> GenerationSettings:
    return DEFAULT_GENERATION.get(content_type, DEFAULT_GENERATION["motivation"])


def get_settings() -> Settings:
    """Read process settings from LUNGCAT_* environment variables."""
    timeout = os.getenv("LUNGCAT_UPSTREAM_TIMEOUT")
    try:
        timeout_seconds = float(timeout) if timeout else 20.0
    except ValueError:
        timeout_seconds = 20.0
    return Settings(
        provider=os.getenv("LUNGCAT_PROVIDER", "openai").lower(),
        model=os.getenv("LUNGCAT_MODEL") or None,
        db_path=os.getenv("LUNGCAT_DB_PATH") or None,
        upstream_timeout_seconds=timeout_seconds,
        admin_api_key=os.getenv("LUNGCAT_API_KEY") or None,
        metrics_file=os.getenv("LUNGCAT_METRICS_FILE") or None,
    )


def normalize_language(language: str | None) -> str:
    """Map any input to a supported language code."""
    if not language:
        return DEFAULT_LANGUAGE
    code = language.strip().lower()[:2]
    return code if code in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE
