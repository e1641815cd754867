#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - command line entry point

Commands:
- serve         run the web dashboard
- stats         print today's progress and the month report
- export        write a JSON backup or a month CSV to EXPORT_DIR
- add-habit     prompt for a habit name and append it
- delete-habit  delete a habit row after confirmation
- toggle        flip a habit's completion for a day
- mood / sleep  log daily metrics

Version: 1.0.0
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import uvicorn

from dailyhabit.config import TrackerConfig, load_config
from dailyhabit.core.models import ValidationError
from dailyhabit.services.data_export import export_filename, write_export
from dailyhabit.services.interaction import ConsoleInteraction
from dailyhabit.services.sync_service import SyncError
from dailyhabit.services.tracker_service import HabitTracker, build_tracker
from dailyhabit.utils.datetime_utils import MonthWindow, parse_date_key
from dailyhabit.utils.logger import setup_logging

logger = logging.getLogger(__name__)


# ===== COMMANDS =====

def _window(tracker: HabitTracker, args) -> MonthWindow:
    current = tracker.current_window()
    return MonthWindow(args.year or current.year, args.month or current.month)


def _day(args):
    return parse_date_key(args.date) if getattr(args, "date", None) else None


def cmd_stats(tracker: HabitTracker, args) -> int:
    report = {
        "today": tracker.today_stats().to_dict(),
        "month": tracker.month_report(_window(tracker, args)).to_dict(),
    }
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


def cmd_export(tracker: HabitTracker, args) -> int:
    window = _window(tracker, args) if args.format == "csv" else None
    payload = tracker.export(args.format, window)
    path = write_export(payload, tracker.config.export_dir, export_filename(args.format, window))
    print(f"📤 Exported to {path}")
    return 0


def cmd_add_habit(tracker: HabitTracker, args) -> int:
    if args.name:
        habit = tracker.add_habit(args.name, goal=args.goal)
    else:
        habit = tracker.add_habit_interactive(ConsoleInteraction())
    if habit is None:
        print("Nothing added")
        return 1
    print(f"➕ Added habit {habit.name!r} (id {habit.id})")
    return 0


def cmd_delete_habit(tracker: HabitTracker, args) -> int:
    if tracker.habit_store.get(args.habit_id) is None:
        print(f"Habit {args.habit_id} not found")
        return 1
    if not tracker.delete_habit_interactive(args.habit_id, ConsoleInteraction()):
        print("Deletion cancelled")
        return 1
    print(f"🗑 Deleted habit {args.habit_id}")
    return 0


def cmd_toggle(tracker: HabitTracker, args) -> int:
    done = tracker.toggle_habit(args.habit_id, _day(args))
    if done is None:
        print(f"Habit {args.habit_id} not found")
        return 1
    print("✅ Done" if done else "⬜ Not done")
    return 0


def cmd_mood(tracker: HabitTracker, args) -> int:
    tracker.set_mood(args.value, _day(args))
    print(f"😊 Mood set to {args.value}")
    return 0


def cmd_sleep(tracker: HabitTracker, args) -> int:
    if args.adjust is not None:
        hours = tracker.adjust_sleep_hours(args.adjust, _day(args))
    else:
        tracker.set_sleep_hours(args.hours, _day(args))
        hours = args.hours
    print(f"😴 Sleep set to {hours}h")
    return 0


COMMANDS = {
    "stats": cmd_stats,
    "export": cmd_export,
    "add-habit": cmd_add_habit,
    "delete-habit": cmd_delete_habit,
    "toggle": cmd_toggle,
    "mood": cmd_mood,
    "sleep": cmd_sleep,
}


async def run_command(config: TrackerConfig, args) -> int:
    """Run one tracker command, signed in when a user id is available"""
    tracker = build_tracker(config)
    try:
        user_id = args.user or config.server.default_user_id
        if user_id:
            await tracker.sign_in(user_id)
        return COMMANDS[args.command](tracker, args)
    finally:
        await tracker.close()


def serve(config: TrackerConfig, args) -> int:
    host = args.host or config.server.host
    port = args.port or config.server.port
    logger.info(f"🚀 Starting web server on http://{host}:{port}")
    if config.server.debug_mode:
        logger.info(f"📚 API docs: http://{host}:{port}/api/docs")

    uvicorn.run(
        "dailyhabit.dashboard.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
        log_config=None,
        server_header=False,
    )
    return 0


# ===== ARGUMENTS =====

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dailyhabit", description="Daily habit tracker")
    parser.add_argument("--user", help="Identity to sign in as (defaults to DEFAULT_USER_ID)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("serve", help="Run the web dashboard")
    p.add_argument("--host", help="Server host")
    p.add_argument("--port", type=int, help="Server port")
    p.add_argument("--reload", action="store_true", help="Reload on code changes")

    for name, help_text in (("stats", "Show statistics"), ("export", "Export data")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--year", type=int)
        p.add_argument("--month", type=int)
        if name == "export":
            p.add_argument("--format", choices=["json", "csv"], default="json")

    p = sub.add_parser("add-habit", help="Add a habit (prompts when no name is given)")
    p.add_argument("name", nargs="?")
    p.add_argument("--goal", type=int, default=100)

    p = sub.add_parser("delete-habit", help="Delete a habit row")
    p.add_argument("habit_id")

    p = sub.add_parser("toggle", help="Toggle a habit for a day")
    p.add_argument("habit_id")
    p.add_argument("--date", help="YYYY-MM-DD, defaults to today")

    p = sub.add_parser("mood", help="Log mood (1-5)")
    p.add_argument("value", type=int)
    p.add_argument("--date")

    p = sub.add_parser("sleep", help="Log sleep hours")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--hours", type=float)
    group.add_argument("--adjust", type=float, help="Add to the current value, floored at 0")
    p.add_argument("--date")

    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    setup_logging(config)

    if args.command == "serve":
        return serve(config, args)

    try:
        return asyncio.run(run_command(config, args))
    except (ValidationError, SyncError) as e:
        logger.error(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("👋 Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
