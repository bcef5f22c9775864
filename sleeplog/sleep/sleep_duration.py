# sleep_duration.py
"""
Sleep Duration Engine

Single responsibility:
- Derive a day's sleep duration from the previous day's bedtime and the
  day's own wake time and nap minutes.
- Decide when a bedtime edit makes the following day's stored duration stale.

A night's sleep is never stored as one object. Bedtime sits on the evening
row (day D-1) and wake time on the morning row (day D), so every derivation
takes both rows' fields explicitly.

Everything here is pure: no database, no clock. Missing or unparseable
timestamps degrade to the nap-only result instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from sleeplog.utils.logging_config import get_logger
from sleeplog.utils.time_utils import parse_timestamp

logger = get_logger(__name__)

MINUTES_PER_DAY = 24 * 60

UTC = ZoneInfo("UTC")


@dataclass(frozen=True)
class SleepFields:
    """The user-entered sleep fields of one daily entry."""
    bedtime: Optional[str] = None
    wake_time: Optional[str] = None
    nap_duration_minutes: int = 0


def clamp_minutes(value: int) -> int:
    return max(0, min(MINUTES_PER_DAY, value))


def _nap_minutes(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def derive_duration(
        previous_bedtime: Optional[str],
        wake_time: Optional[str],
        nap_minutes: Any = 0,
        tz: ZoneInfo = UTC,
) -> int:
    """
    Minutes slept for the day whose wake time is `wake_time`.

    Args:
        previous_bedtime: Bedtime logged on the previous calendar day ('YYYY-MM-DD HH:MM')
        wake_time: Wake time logged on this day
        nap_minutes: Extra sleep on this day (naps)
        tz: Zone the wall-clock timestamps are written in

    Returns:
        Duration in minutes, always within [0, 1440]
    """
    nap = _nap_minutes(nap_minutes)

    if not previous_bedtime or not wake_time:
        return clamp_minutes(nap)

    try:
        bed = parse_timestamp(previous_bedtime, tz)
        wake = parse_timestamp(wake_time, tz)
    except ValueError as e:
        logger.debug(f"Unparseable sleep timestamp, using nap minutes only: {e}")
        return clamp_minutes(nap)

    # Measure in UTC so a DST change overnight counts real elapsed minutes
    elapsed = wake.astimezone(timezone.utc) - bed.astimezone(timezone.utc)
    diff = int(elapsed.total_seconds() / 60)

    # Wake clock time "earlier" than bedtime: the night crossed midnight
    if diff < 0:
        diff += MINUTES_PER_DAY

    total = nap + diff
    if total > MINUTES_PER_DAY:
        total -= MINUTES_PER_DAY

    return clamp_minutes(total)


def derive_entry_duration(previous_entry: Any, entry: Any, tz: ZoneInfo = UTC) -> int:
    """
    derive_duration() over two adjacent entries (rows or records).

    `previous_entry` may be None when nothing was logged the day before.
    """
    previous_bedtime = getattr(previous_entry, "bedtime", None) if previous_entry is not None else None
    return derive_duration(
        previous_bedtime,
        getattr(entry, "wake_time", None),
        getattr(entry, "nap_duration_minutes", 0),
        tz,
    )


def bedtime_changes_next_day(
        new_bedtime: Optional[str],
        stored_bedtime: Optional[str],
) -> bool:
    """
    True when writing `new_bedtime` leaves the next day's stored duration stale.

    A supplied bedtime always triggers a recompute of the next day, and so does
    clearing a bedtime that was previously stored.
    """
    if new_bedtime:
        return True
    return bool(stored_bedtime)
