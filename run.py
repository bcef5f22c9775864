#!/usr/bin/env python3
"""
Command-line interface for the sleep log.

Examples:
    python run.py sleep 2024-03-02 --bedtime "2024-03-02 23:10" --wake "2024-03-02 07:05"
    python run.py history --days 7
    python run.py stats
    python run.py habit add "Read 20 pages"
    python run.py habit check 2024-03-02 read-20-pages
"""
import argparse
import atexit
import json
import sys
from pathlib import Path

# Load environment variables from .env file FIRST
from dotenv import load_dotenv
dotenv_path = Path(__file__).resolve().parent / '.env'
load_dotenv(dotenv_path=dotenv_path)

from sleeplog.database.table_initializer import initialize_tables
from sleeplog.habits import HabitsManager
from sleeplog.schemas import DailyEntryView, SleepStatsResponse
from sleeplog.sleep import SleepRecordsManager, SleepStatsManager
from sleeplog.utils.errors import SleepLogError
from sleeplog.utils.logging_config import get_logger, log_standout_text, stop_logging

logger = get_logger(__name__)

DEFAULT_USER = "local"


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_sleep(args, records):
    fields = {
        "bedtime": args.bedtime,
        "wakeTime": args.wake,
        "napDurationMin": args.nap,
    }
    record = records.upsert_sleep(args.user, args.date, fields)
    _print_json(DailyEntryView.from_record(record).model_dump(by_alias=True))


def cmd_show(args, records):
    record = records.get_by_date(args.user, args.date)
    _print_json(DailyEntryView.from_record(record).model_dump(by_alias=True))


def cmd_history(args, records):
    if args.all:
        history = records.get_history(args.user)
    elif args.days is not None:
        history = records.get_history(args.user, days=args.days)
    else:
        history = records.get_recent_history(args.user)
    _print_json([DailyEntryView.from_record(r).model_dump(by_alias=True) for r in history])


def cmd_stats(args, records):
    stats = SleepStatsManager(records).get_stats(args.user)
    _print_json(SleepStatsResponse.from_stats(stats).model_dump(by_alias=True))


def cmd_last_night(args, records):
    logged = records.was_last_night_logged(args.user)
    print("yes" if logged else "no")


def cmd_habit(args, records):
    habits = HabitsManager()

    if args.habit_command == "list":
        _print_json([h.to_view().model_dump(by_alias=True) for h in habits.list_habits(args.user)])
    elif args.habit_command == "add":
        _print_json(habits.create_habit(args.user, args.label).to_view().model_dump(by_alias=True))
    elif args.habit_command == "rename":
        _print_json(habits.update_habit(args.user, args.key, args.label).to_view().model_dump(by_alias=True))
    elif args.habit_command == "delete":
        habits.delete_habit(args.user, args.key)
        print(f"Deleted habit '{args.key}'")
    elif args.habit_command in ("check", "uncheck"):
        record = records.set_habit(args.user, args.date, args.key, args.habit_command == "check")
        _print_json(DailyEntryView.from_record(record).model_dump(by_alias=True))
    elif args.habit_command == "clear":
        record = records.remove_habit(args.user, args.date, args.key)
        _print_json(DailyEntryView.from_record(record).model_dump(by_alias=True))


def build_parser():
    parser = argparse.ArgumentParser(description="Daily sleep and habit journal")
    parser.add_argument("--user", default=DEFAULT_USER, help="User id the entries belong to")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("sleep", help="Save a day's sleep fields (replaces all of them)")
    p.add_argument("date", help="YYYY-MM-DD")
    p.add_argument("--bedtime", default=None, help="'YYYY-MM-DD HH:MM' the user went to bed this evening")
    p.add_argument("--wake", default=None, help="'YYYY-MM-DD HH:MM' the user woke this morning")
    p.add_argument("--nap", type=int, default=0, help="Nap minutes")
    p.set_defaults(func=cmd_sleep)

    p = sub.add_parser("show", help="Show one day")
    p.add_argument("date", help="YYYY-MM-DD")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("history", help="Show recent days, newest first")
    p.add_argument("--days", type=int, default=None)
    p.add_argument("--all", action="store_true", help="Show the full history")
    p.set_defaults(func=cmd_history)

    p = sub.add_parser("stats", help="Week, month and year averages")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("last-night", help="Whether last night has both bedtime and wake time")
    p.set_defaults(func=cmd_last_night)

    p = sub.add_parser("habit", help="Habit catalogue and daily checklist")
    habit_sub = p.add_subparsers(dest="habit_command", required=True)
    habit_sub.add_parser("list")
    hp = habit_sub.add_parser("add")
    hp.add_argument("label")
    hp = habit_sub.add_parser("rename")
    hp.add_argument("key")
    hp.add_argument("label")
    hp = habit_sub.add_parser("delete")
    hp.add_argument("key")
    for name in ("check", "uncheck", "clear"):
        hp = habit_sub.add_parser(name)
        hp.add_argument("date", help="YYYY-MM-DD")
        hp.add_argument("key")
    p.set_defaults(func=cmd_habit)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    atexit.register(stop_logging)

    initialize_tables()
    records = SleepRecordsManager()
    log_standout_text(logger, f"command={args.command} user={args.user}", title="sleeplog")

    try:
        args.func(args, records)
    except SleepLogError as e:
        logger.warning(f"{e.code}: {e.message}", extra={"user_id": args.user})
        print(f"Error ({e.code}): {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
