"""
Command-line interface for Lungcat.

Provides commands for:
- Inspecting a user's AI usage and the global budget
- Serving motivation and missions through the full cost-control path
- Running periodic maintenance (budget rollover, cache eviction)
- Administrative monthly reset
"""

import argparse
import json
import logging
import sys

from lungcat.config import get_settings
from lungcat.metrics import MetricsCollector
from lungcat.models import UserProfile
from lungcat.orchestrator import AIOrchestrator, build_orchestrator
from lungcat.scheduler import MonthlyResetScheduler


def _orchestrator(args) -> AIOrchestrator:
    settings = get_settings()
    if args.db:
        settings.db_path = args.db
    if args.provider:
        settings.provider = args.provider
    metrics = MetricsCollector(metrics_file=settings.metrics_file, enable_logging=args.verbose)
    try:
        return build_orchestrator(settings, metrics=metrics)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


def _user(args) -> UserProfile:
    return UserProfile(
        id=args.user_id,
        display_name=args.name or "",
        streak=args.streak,
        total_days=args.total_days if args.total_days is not None else args.streak,
        level=args.level,
        is_premium=args.premium,
    )


def cmd_stats(args):
    """Show AI usage for a user and the global budget."""
    orchestrator = _orchestrator(args)
    stats = orchestrator.get_usage_stats(args.user_id)

    if args.json:
        print(json.dumps(stats, indent=2))
        return

    print("\n" + "=" * 60)
    print(f"AI USAGE: {args.user_id}")
    print("=" * 60)
    print(f"Calls This Month: {stats['monthlyCallsUsed']} "
          f"({stats['monthlyCallsRemaining']} remaining)")
    print(f"Global Spend: ${stats['monthlyBudgetUsed']:.4f} "
          f"(${stats['monthlyBudgetRemaining']:.4f} remaining)")
    print(f"Emergency Stop: {'ACTIVE' if stats['emergencyStopActive'] else 'off'}")
    print("=" * 60)


def cmd_reset_monthly(args):
    """Clear the month's global spend and the emergency stop."""
    orchestrator = _orchestrator(args)
    orchestrator.reset_monthly_usage()
    state = orchestrator.budget.get_state()
    print(f"Monthly budget reset for {state.month} "
          f"(spend ${state.total_cost_this_month:.4f}, "
          f"emergency stop {'ACTIVE' if state.emergency_stop_active else 'off'})")


def cmd_motivation(args):
    """Serve a motivation message."""
    orchestrator = _orchestrator(args)
    trigger_data = {"milestone_days": args.milestone_days} if args.milestone_days else None
    served = orchestrator.serve_motivation(
        _user(args),
        trigger_type=args.trigger,
        trigger_data=trigger_data,
        language=args.language,
    )

    if args.json:
        print(json.dumps({
            "text": served.text,
            "source": served.source.value,
            "reason": served.reason,
            "cost": served.cost,
        }, indent=2))
        return

    print(served.text)
    print(f"\n[source: {served.source.value}, reason: {served.reason}, cost: ${served.cost:.6f}]")


def cmd_missions(args):
    """Serve daily missions."""
    orchestrator = _orchestrator(args)
    served = orchestrator.serve_missions(_user(args), language=args.language)

    if args.json:
        print(json.dumps({
            "missions": [m.to_dict() for m in served.missions],
            "source": served.source.value,
            "reason": served.reason,
            "cost": served.cost,
        }, indent=2))
        return

    print("\n" + "=" * 60)
    print("DAILY MISSIONS")
    print("=" * 60)
    for mission in served.missions:
        print(f"  [{mission.difficulty.value:6}] {mission.title} (+{mission.xp_reward} XP)")
        print(f"           {mission.description}")
    print("-" * 60)
    print(f"source: {served.source.value}, reason: {served.reason}, cost: ${served.cost:.6f}")


def cmd_tick(args):
    """Run one maintenance pass."""
    orchestrator = _orchestrator(args)
    scheduler = MonthlyResetScheduler(orchestrator, prune_after_days=args.prune_days)
    summary = scheduler.run_pending()
    print(json.dumps(summary, indent=2))


def cmd_evict(args):
    """Delete expired cache entries."""
    orchestrator = _orchestrator(args)
    removed = orchestrator.cache.evict_expired()
    print(f"Evicted {removed} expired cache entries")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Lungcat: AI cost control for the smoke-free tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show a user's AI usage
  lungcat stats user_123 --db lungcat.db

  # Serve a milestone message with the mock provider
  lungcat motivation user_123 --streak 30 --trigger milestone --milestone-days 30 --provider mock

  # Serve today's missions in English
  lungcat missions user_123 --streak 4 --language en

  # Run maintenance (from cron)
  lungcat tick --db lungcat.db
""",
    )
    parser.add_argument("--db", help="SQLite database path (default: LUNGCAT_DB_PATH, else in-memory)")
    parser.add_argument("--provider", choices=["openai", "anthropic", "gemini", "mock"],
                        help="Upstream provider (default: LUNGCAT_PROVIDER)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log decisions to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show AI usage for a user")
    stats_parser.add_argument("user_id", help="User identifier")
    stats_parser.add_argument("--json", action="store_true", help="Print raw JSON")

    # Reset command
    subparsers.add_parser("reset-monthly", help="Reset the global monthly budget")

    # Content commands share the user profile flags
    for name, help_text in (("motivation", "Serve a motivation message"),
                            ("missions", "Serve daily missions")):
        content_parser = subparsers.add_parser(name, help=help_text)
        content_parser.add_argument("user_id", help="User identifier")
        content_parser.add_argument("--name", help="Display name")
        content_parser.add_argument("--streak", type=int, default=0, help="Current streak in days")
        content_parser.add_argument("--total-days", type=int, help="Total smoke-free days (default: streak)")
        content_parser.add_argument("--level", type=int, default=1, help="User level")
        content_parser.add_argument("--premium", action="store_true", help="User is premium")
        content_parser.add_argument("--language", "-l", default="id", choices=["en", "id"])
        content_parser.add_argument("--json", action="store_true", help="Print raw JSON")
        if name == "motivation":
            content_parser.add_argument("--trigger", default="daily", choices=["daily", "milestone"])
            content_parser.add_argument("--milestone-days", type=int, help="Milestone reached, in days")

    # Tick command
    tick_parser = subparsers.add_parser("tick", help="Run one maintenance pass")
    tick_parser.add_argument("--prune-days", type=int, default=90,
                             help="Prune usage records idle this many days on month rollover (0 disables)")

    # Evict command
    subparsers.add_parser("evict", help="Delete expired cache entries")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Dispatch to command handler
    commands = {
        "stats": cmd_stats,
        "reset-monthly": cmd_reset_monthly,
        "motivation": cmd_motivation,
        "missions": cmd_missions,
        "tick": cmd_tick,
        "evict": cmd_evict,
    }

    handler = commands.get(args.command)
    if handler:
        handler(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
