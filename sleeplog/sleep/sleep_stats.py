# sleep_stats.py
"""
Sleep Stats

Rolling averages of bedtime, wake time and duration per period:
- week:  today-7 .. today (inclusive)
- month: today-30 .. today (inclusive)
- year:  the twelve whole months before the current month; the partial
         current month is left out on purpose

Only fully logged days count: bedtime, wake time and a positive duration.
Partially logged days are excluded, never imputed.

Clock times wrap at midnight, so they cannot be averaged as plain minutes
(23:50 and 00:10 would average to 12:00). Times before noon are shifted a
day forward before averaging, then folded back into 00:00-23:59.
"""
from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from sleeplog.utils.logging_config import get_logger
from sleeplog.utils.time_utils import clock_time, subtract_months, today_in

logger = get_logger(__name__)

PERIODS = ("week", "month", "year")

MINUTES_PER_DAY = 24 * 60


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def period_window(period: str, today: date) -> Tuple[date, date]:
    """
    Inclusive (start, end) calendar dates for a period ending at `today`.
    """
    if period == "week":
        return today - timedelta(days=7), today
    if period == "month":
        return today - timedelta(days=30), today
    if period == "year":
        start = subtract_months(today, 12).replace(day=1)
        end = today.replace(day=1) - timedelta(days=1)
        return start, end
    raise ValueError(f"Unknown stats period: {period}")


def _clock_minutes(hhmm: str) -> int:
    hours, minutes = (int(p) for p in hhmm.split(":"))
    if hours < 12:
        # Small hours belong to the night that started the previous evening
        return (hours + 24) * 60 + minutes
    return hours * 60 + minutes


def average_clock_time(times: Sequence[str]) -> Optional[str]:
    """
    Midnight-aware mean of 'HH:MM' clock times, as 'HH:MM'. None for no input.
    """
    if not times:
        return None

    total = sum(_clock_minutes(t) for t in times)
    avg = _round_half_up(total / len(times))
    hours = (avg // 60) % 24
    mins = avg % 60
    return f"{hours:02d}:{mins:02d}"


def average_duration(durations: Sequence[int]) -> Optional[str]:
    """
    Mean of durations in minutes, as 'H:MM' (hours are not wrapped at 24).
    """
    if not durations:
        return None

    avg = _round_half_up(sum(durations) / len(durations))
    hours = avg // 60
    mins = avg % 60
    return f"{hours}:{mins:02d}"


def _qualifies(entry: Any, start: date, end: date) -> bool:
    return (
        start <= entry.date <= end
        and entry.bedtime is not None
        and entry.wake_time is not None
        and (entry.duration_minutes or 0) > 0
    )


def _clock_times(values: Iterable[str], tz: ZoneInfo) -> List[str]:
    times = []
    for value in values:
        try:
            times.append(clock_time(value, tz))
        except ValueError:
            logger.debug(f"Skipping unparseable timestamp in stats: {value!r}")
    return times


def aggregate(
        history: Iterable[Any],
        period: str,
        reference_now: Optional[datetime] = None,
        tz: ZoneInfo = ZoneInfo("UTC"),
) -> Dict[str, Optional[str]]:
    """
    Averages for one period.

    Args:
        history: Entries with date, bedtime, wake_time and duration_minutes
                 (durations already derived)
        period: 'week', 'month' or 'year'
        reference_now: The moment the window ends at (defaults to now)
        tz: Reference timezone for "today" and for reading timestamps

    Returns:
        {'bedtime': 'HH:MM', 'wake_time': 'HH:MM', 'duration': 'H:MM'},
        all None when no entry qualifies
    """
    start, end = period_window(period, today_in(tz, reference_now))
    entries = [e for e in history if _qualifies(e, start, end)]

    if not entries:
        return {"bedtime": None, "wake_time": None, "duration": None}

    return {
        "bedtime": average_clock_time(_clock_times((e.bedtime for e in entries), tz)),
        "wake_time": average_clock_time(_clock_times((e.wake_time for e in entries), tz)),
        "duration": average_duration([e.duration_minutes for e in entries]),
    }


class SleepStatsManager:
    """Stats for a user, computed from the full derived history."""

    def __init__(self, records_manager):
        self.records = records_manager

    @property
    def tz(self) -> ZoneInfo:
        return self.records.tz

    def get_stats(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Dict[str, Optional[str]]]:
        history = self.records.get_history(user_id)
        stats = {period: aggregate(history, period, now, self.tz) for period in PERIODS}
        logger.debug(f"Computed sleep stats over {len(history)} entries", extra={"user_id": user_id})
        return stats
