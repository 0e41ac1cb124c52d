"""
Basic usage examples for Lungcat.

Runs entirely offline with MockGenerator.
"""

import json

from lungcat import (
    AIOrchestrator,
    MockGenerator,
    UsageLimits,
    UserProfile,
)


MISSIONS_JSON = json.dumps([
    {"title": "Morning Walk", "description": "Walk 15 minutes after breakfast", "xpReward": 20, "difficulty": "easy"},
    {"title": "Craving Log", "description": "Write down each craving and its trigger", "xpReward": 15, "difficulty": "medium"},
    {"title": "Water Goal", "description": "Drink 8 glasses of water", "xpReward": 40, "difficulty": "extreme"},
])


def example_basic():
    """AI first, then cache."""
    print("=" * 60)
    print("Example 1: AI then cache")
    print("=" * 60)

    orchestrator = AIOrchestrator(generator=MockGenerator("Twelve days in, Sari. Your lungs feel it!"))
    user = UserProfile(id="user_1", display_name="Sari", streak=12, total_days=12)

    first = orchestrator.serve_motivation(user, language="en")
    second = orchestrator.serve_motivation(user, language="en")

    print(f"First:  [{first.source.value}] {first.text} (${first.cost:.6f})")
    print(f"Second: [{second.source.value}] {second.text}")
    print()


def example_quota():
    """Quota exhausted: fallback content, no upstream call."""
    print("=" * 60)
    print("Example 2: Quota exhausted")
    print("=" * 60)

    generator = MockGenerator("Keep going!")
    orchestrator = AIOrchestrator(
        generator=generator,
        limits=UsageLimits(max_calls_per_month=1, max_calls_per_day=1),
    )
    user = UserProfile(id="user_2", display_name="Budi", streak=3, total_days=3)

    orchestrator.get_motivation(user, language="id")
    orchestrator.clear_user_cache(user.id)
    served = orchestrator.serve_motivation(user, language="id")

    print(f"[{served.source.value}/{served.reason}] {served.text}")
    print(f"Upstream calls: {generator.call_count}")
    print()


def example_missions():
    """Missions parsed from JSON; xp clamped, bad difficulty defaulted."""
    print("=" * 60)
    print("Example 3: Missions")
    print("=" * 60)

    orchestrator = AIOrchestrator(generator=MockGenerator(MISSIONS_JSON))
    user = UserProfile(id="user_3", display_name="Ana", streak=5, total_days=20)

    for mission in orchestrator.get_missions(user, language="en"):
        print(f"  {mission.title:15} +{mission.xp_reward} XP [{mission.difficulty.value}]")
    print()


def example_emergency_stop():
    """Global budget exhausted: everybody gets fallback until the month changes."""
    print("=" * 60)
    print("Example 4: Emergency stop")
    print("=" * 60)

    orchestrator = AIOrchestrator(generator=MockGenerator("Hello!"))
    orchestrator.budget.record_cost(orchestrator.budget.monthly_budget)

    user = UserProfile(id="user_4", streak=40, total_days=120, level=6)
    served = orchestrator.serve_tip(user, language="en")
    print(f"[{served.source.value}/{served.reason}] {served.text}")
    print(json.dumps(orchestrator.get_usage_stats(user.id), indent=2))
    print()


if __name__ == "__main__":
    example_basic()
    example_quota()
    example_missions()
    example_emergency_stop()
