from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from sleeplog.utils.error_logging import log_warning_banner

DEFAULT_REFERENCE_TZ = "Europe/Moscow"

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"
CLOCK_FORMAT = "%H:%M"


def resolve_timezone(tz_name: Optional[str]) -> ZoneInfo:
    """
    Returns the ZoneInfo for a configured name.
    Falls back to UTC if misconfigured.
    """
    name = tz_name or DEFAULT_REFERENCE_TZ
    try:
        return ZoneInfo(name)
    except Exception as e:
        log_warning_banner(f"Invalid timezone '{name}', falling back to UTC: {e}", context="time_utils.resolve_timezone")
        return ZoneInfo("UTC")


def parse_date(value: Union[str, date]) -> date:
    """
    Parses a YYYY-MM-DD calendar date.

    Raises ValueError on anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid date: {value!r}")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise ValueError(f"Invalid date string: {value}") from e


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_timestamp(value: str, tz: ZoneInfo) -> datetime:
    """
    Parses a 'YYYY-MM-DD HH:MM' timestamp into an aware datetime in `tz`.

    Also accepts ISO 8601 ('T' separator, seconds, offsets). Naive values are
    taken to be wall-clock time in `tz`; aware values are converted to it.
    Raises ValueError if the value cannot be parsed.
    """
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")

    text = value.strip()
    try:
        dt = datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError:
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid timestamp string: {value}") from e

    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def clock_time(value: str, tz: ZoneInfo) -> str:
    """Returns the HH:MM wall-clock part of a timestamp string."""
    return parse_timestamp(value, tz).strftime(CLOCK_FORMAT)


def now_in(tz: ZoneInfo, now: Optional[datetime] = None) -> datetime:
    """
    Current time in `tz`. An explicit `now` (aware, or naive UTC) wins.
    """
    if now is None:
        return datetime.now(timezone.utc).astimezone(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def today_in(tz: ZoneInfo, now: Optional[datetime] = None) -> date:
    return now_in(tz, now).date()


def previous_date(value: date) -> date:
    return value - timedelta(days=1)


def next_date(value: date) -> date:
    return value + timedelta(days=1)


def subtract_months(value: date, months: int) -> date:
    """
    Moves `value` back by whole calendar months, clamping the day to the
    length of the target month (Mar 31 - 1 month -> Feb 28/29).
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = value.day
    while True:
        try:
            return date(year, month, day)
        except ValueError:
            day -= 1
