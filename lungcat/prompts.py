"""
Prompt templates and response parsing for Lungcat.

Prompts are kept short: cost is estimated from prompt length, so every
extra sentence is paid for on every call.
"""

import json
import re
import uuid
from typing import Optional

from lungcat.config import normalize_language
from lungcat.errors import UpstreamError
from lungcat.models import Difficulty, Mission, UserProfile


MOTIVATION_PROMPT_EN = (
    "Personal motivation for {name}: {streak} days streak, level {level}. "
    "Write 2 sentences in English, warm tone."
)

MOTIVATION_PROMPT_ID = """Anda adalah wellness coach Indonesia yang berpengalaman membantu orang berhenti merokok.

Data pengguna:
- Nama: {name}
- Streak: {streak} hari
- Total hari: {total_days} hari
- Level: {level}

INSTRUKSI:
- Tulis motivasi personal dalam bahasa Indonesia asli (bukan terjemahan)
- Gunakan 3-4 kalimat yang hangat dan inspiratif
- Fokus pada pencapaian dan manfaat kesehatan
- Hindari istilah bahasa Inggris
- Gunakan nada yang personal dan menyemangati"""

MILESTONE_PROMPT_EN = (
    "{name} just reached {milestone} smoke-free days (level {level}, latest badge: {badge}). "
    "Write 2 celebratory sentences in English, warm tone, no markdown."
)

MILESTONE_PROMPT_ID = (
    "{name} baru saja mencapai {milestone} hari bebas rokok (level {level}, badge terakhir: {badge}). "
    "Tulis 2 kalimat ucapan selamat dalam bahasa Indonesia yang hangat, tanpa markdown."
)

MISSIONS_PROMPT = (
    "{count} daily missions for {name}, streak {streak}d, in {language_name}. "
    'JSON format: [{{"title":"","description":"","xpReward":15,"difficulty":"easy"}}]'
)

TIP_PROMPT_EN = (
    "One practical quit-smoking tip for {name} ({streak} days smoke-free). "
    "Max 1 sentence, English."
)

TIP_PROMPT_ID = (
    "Berikan 1 tips praktis berhenti merokok untuk {name} ({streak} hari bebas rokok). "
    "Maksimal 1 kalimat, bahasa Indonesia."
)

LANGUAGE_NAMES = {"en": "English", "id": "Bahasa Indonesia"}

XP_MIN = 10
XP_MAX = 30

_FENCE_RE = re.compile(r"```(?:json)?\s*|\s*```")


def _fields(user: UserProfile) -> dict:
    return {
        "name": user.display_name or "User",
        "streak": user.streak,
        "total_days": user.total_days or 0,
        "level": user.level or 1,
        "badge": user.latest_badge or "-",
    }


def build_motivation_prompt(user: UserProfile, language: str) -> str:
    lang = normalize_language(language)
    template = MOTIVATION_PROMPT_EN if lang == "en" else MOTIVATION_PROMPT_ID
    return template.format(**_fields(user))


def build_milestone_prompt(user: UserProfile, language: str, milestone_days: Optional[int] = None) -> str:
    lang = normalize_language(language)
    template = MILESTONE_PROMPT_EN if lang == "en" else MILESTONE_PROMPT_ID
    return template.format(milestone=milestone_days or user.streak, **_fields(user))


def build_missions_prompt(user: UserProfile, language: str, count: int = 3) -> str:
    lang = normalize_language(language)
    return MISSIONS_PROMPT.format(
        count=count,
        language_name=LANGUAGE_NAMES[lang],
        **_fields(user),
    )


def build_tip_prompt(user: UserProfile, language: str) -> str:
    lang = normalize_language(language)
    template = TIP_PROMPT_EN if lang == "en" else TIP_PROMPT_ID
    return template.format(**_fields(user))


def clean_text_response(text: Optional[str], provider: str = "upstream") -> str:
    """Strip whitespace and wrapping quotes; empty output is an error."""
    if text is None:
        raise UpstreamError(provider, "empty response")
    cleaned = text.strip().strip('"').strip()
    if not cleaned:
        raise UpstreamError(provider, "empty response")
    return cleaned


def parse_missions_response(text: str, provider: str = "upstream") -> list[Mission]:
    """
    Parse a JSON array of missions, optionally wrapped in a code fence.

    xpReward is clamped to 10-30, unknown difficulties become "medium" and
    missing fields get defaults.

    Raises:
        UpstreamError: If the text is not a JSON array of objects.
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        raw = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise UpstreamError(provider, f"invalid mission JSON: {exc}") from exc

    if not isinstance(raw, list) or not raw:
        raise UpstreamError(provider, "mission response is not a non-empty JSON array")

    missions = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise UpstreamError(provider, f"mission #{index + 1} is not an object")
        try:
            xp = int(item.get("xpReward") or 15)
        except (TypeError, ValueError):
            xp = 15
        try:
            difficulty = Difficulty(item.get("difficulty"))
        except ValueError:
            difficulty = Difficulty.MEDIUM
        missions.append(
            Mission(
                id=f"ai-{uuid.uuid4().hex[:10]}",
                title=str(item.get("title") or f"Mission {index + 1}"),
                description=str(item.get("description") or "Daily health mission"),
                xp_reward=max(XP_MIN, min(XP_MAX, xp)),
                difficulty=difficulty,
                is_ai_generated=True,
            )
        )
    return missions


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters."""
    return (len(text) + 3) // 4
