"""
Fallback content generator for Lungcat.

Deterministic in shape, zero cost, no network. Every function here is
total: for any input it returns usable content and never raises.
"""

import random
from typing import Optional

from lungcat.catalog import (
    ALWAYS_FIRST_MISSION,
    BASE_MISSIONS,
    DEFAULT_NAME,
    MILESTONE_DAYS,
    MISSION_TEXT,
    MOTIVATION_POOLS,
    TIPS,
)
from lungcat.config import normalize_language
from lungcat.models import Mission, ProgressSnapshot

MILESTONE_BADGE_COUNT = 3


class FallbackGenerator:
    """
    Builds contextual motivation, static missions and tips from local pools.

    Args:
        rng: Random source for picks within a tier. Pass a seeded
             `random.Random` for reproducible output.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    @staticmethod
    def motivation_tier(progress: ProgressSnapshot, badge_count: int = 0) -> str:
        """Pick the message pool that fits the user's progress."""
        if progress.streak <= 0 and progress.total_days > 0:
            return "recovery"
        if progress.streak < 3:
            return "new_user"
        if progress.streak in MILESTONE_DAYS or badge_count >= MILESTONE_BADGE_COUNT:
            return "milestone"
        if progress.total_days >= 90 or progress.level >= 5:
            return "veteran"
        return "early_journey"

    def contextual_motivation(
        self,
        progress: ProgressSnapshot,
        language: str = "id",
        name: str = "",
        badge_count: int = 0,
    ) -> str:
        """
        Motivation text matched to the user's progress tier.

        Args:
            progress: Current progress snapshot.
            language: "en" or "id"; anything else falls back to "id".
            name: Display name for personalisation.
            badge_count: Number of badges earned.
        """
        lang = normalize_language(language)
        tier = self.motivation_tier(progress, badge_count)
        template = self._rng.choice(MOTIVATION_POOLS[lang][tier])
        return template.format(
            name=name.strip() or DEFAULT_NAME[lang],
            streak=max(progress.streak, 0),
        )

    def milestone_message(
        self,
        progress: ProgressSnapshot,
        language: str = "id",
        name: str = "",
        milestone_days: Optional[int] = None,
    ) -> str:
        """Celebration text for a milestone; uses the streak if no milestone is given."""
        lang = normalize_language(language)
        days = milestone_days if milestone_days and milestone_days > 0 else max(progress.streak, 0)
        template = self._rng.choice(MOTIVATION_POOLS[lang]["milestone"])
        return template.format(name=name.strip() or DEFAULT_NAME[lang], streak=days)

    def static_missions(
        self,
        count: int = 3,
        language: str = "id",
        shuffle: bool = True,
    ) -> list[Mission]:
        """
        Select `count` missions from the catalog.

        The daily check-in is always first; the rest are drawn from the
        catalog, shuffled unless `shuffle` is False.
        """
        if count <= 0:
            return []
        lang = normalize_language(language)

        others = [m for m in BASE_MISSIONS if m != ALWAYS_FIRST_MISSION]
        if shuffle:
            others = self._rng.sample(others, k=len(others))
        chosen = [ALWAYS_FIRST_MISSION] + others[: count - 1]

        missions = []
        for mission_id in chosen:
            xp_reward, difficulty = BASE_MISSIONS[mission_id]
            title, description = MISSION_TEXT[lang][mission_id]
            missions.append(
                Mission(
                    id=mission_id,
                    title=title,
                    description=description,
                    xp_reward=xp_reward,
                    difficulty=difficulty,
                    is_ai_generated=False,
                )
            )
        return missions

    def static_tip(self, language: str = "id") -> str:
        """A random practical tip."""
        return self._rng.choice(TIPS[normalize_language(language)])
