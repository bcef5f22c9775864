# sleep_records.py
"""
Sleep Records Manager

Request-facing operations on daily entries:
- upsert_sleep: write a day's sleep fields, cascading to the next day when its
  stored duration depends on the bedtime being written
- set_habit / remove_habit: edit the habit checklist of a day
- get_history / get_recent_history / get_by_date: reads with durations re-derived
- was_last_night_logged: whether the most recent night has both ends logged

Every write re-derives duration_minutes in the same transaction and the
returned entry is re-read after commit, so callers never see a duration
computed from fields that did not persist.
"""
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from sleeplog.configs.sleep_config import SleepConfig, get_sleep_config
from sleeplog.schemas import (
    SleepFieldsInput,
    validate_date,
    validate_habit_key,
    validate_sleep_fields,
)
from sleeplog.sleep.sleep_db import (
    DailyRecord,
    get_entry,
    list_entries,
    put_entry,
    run_atomic,
    run_query,
    sleep_fields_of,
    to_record,
)
from sleeplog.sleep.sleep_duration import (
    SleepFields,
    bedtime_changes_next_day,
    derive_duration,
    derive_entry_duration,
)
from sleeplog.utils.errors import NotFoundError, ValidationError
from sleeplog.utils.logging_config import get_logger
from sleeplog.utils.time_utils import format_date, next_date, previous_date, today_in

logger = get_logger(__name__)


class SleepRecordsManager:
    """
    Args:
        tz: Reference timezone for "today"/"yesterday" and for reading timestamps.
            Defaults to the configured reference_timezone.
        config: Source of defaults (recent history window, timezone).
    """

    def __init__(self, tz: Optional[ZoneInfo] = None, config: Optional[SleepConfig] = None):
        self.config = config or get_sleep_config()
        self.tz = tz or self.config.reference_timezone()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_history(
            self,
            user_id: str,
            days: Optional[int] = None,
            now: Optional[datetime] = None,
    ) -> List[DailyRecord]:
        """
        A user's entries, most recent first, with durations re-derived.

        Args:
            days: Only the last N calendar days ending today (reference timezone).
                  None returns the full history.
            now: Override for the current time (tests).
        """
        if days is not None and days < 1:
            raise ValidationError("days must be a positive integer")

        start: Optional[date] = None
        end: Optional[date] = None
        if days is not None:
            end = today_in(self.tz, now)
            start = end - timedelta(days=days - 1)

        def _read(session: Session) -> List[DailyRecord]:
            # One extra day so the oldest entry can see its previous bedtime
            lookup_start = previous_date(start) if start is not None else None
            rows = list_entries(session, user_id, start=lookup_start, end=end)
            by_date = {row.date: row for row in rows}

            records = []
            for row in rows:
                if start is not None and row.date < start:
                    continue
                duration = derive_entry_duration(by_date.get(previous_date(row.date)), row, self.tz)
                records.append(to_record(row, duration))
            return records

        return run_query(_read, context="sleep_records.get_history")

    def get_recent_history(self, user_id: str, now: Optional[datetime] = None) -> List[DailyRecord]:
        return self.get_history(user_id, days=self.config.recent_days, now=now)

    def get_by_date(self, user_id: str, day: Union[str, date]) -> DailyRecord:
        target = validate_date(day)

        def _read(session: Session) -> Optional[DailyRecord]:
            return self._derived_record(session, user_id, target)

        record = run_query(_read, context="sleep_records.get_by_date")
        if record is None:
            raise NotFoundError("Sleep record not found")
        return record

    def was_last_night_logged(self, user_id: str, now: Optional[datetime] = None) -> bool:
        """
        True only if the day before yesterday has a bedtime and yesterday has a wake time.
        """
        yesterday = previous_date(today_in(self.tz, now))
        day_before = previous_date(yesterday)

        def _read(session: Session) -> bool:
            yesterday_entry = get_entry(session, user_id, yesterday)
            if yesterday_entry is None:
                return False
            day_before_entry = get_entry(session, user_id, day_before)
            bedtime = day_before_entry.bedtime if day_before_entry is not None else None
            return bedtime is not None and yesterday_entry.wake_time is not None

        return run_query(_read, context="sleep_records.was_last_night_logged")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert_sleep(
            self,
            user_id: str,
            day: Union[str, date],
            fields: Union[Dict[str, Any], SleepFieldsInput, None],
    ) -> DailyRecord:
        """
        Replace a day's sleep fields and re-derive the affected durations.

        The day's own duration pairs the previous day's bedtime with the new wake
        time. If this write changes the day's bedtime and the next day already has
        an entry, that entry's duration is recomputed in the same transaction.
        Habits on the day are kept as they were.
        """
        target = validate_date(day)
        data = validate_sleep_fields(fields)
        new_fields = SleepFields(
            bedtime=data.bedtime,
            wake_time=data.wake_time,
            nap_duration_minutes=data.nap_duration_minutes,
        )

        def _write(session: Session) -> bool:
            current = get_entry(session, user_id, target)
            previous = get_entry(session, user_id, previous_date(target))
            following = get_entry(session, user_id, next_date(target))

            stored_bedtime = current.bedtime if current is not None else None
            habits = list(current.habits or []) if current is not None else []

            duration = derive_duration(
                previous.bedtime if previous is not None else None,
                new_fields.wake_time,
                new_fields.nap_duration_minutes,
                self.tz,
            )
            put_entry(session, user_id, target, new_fields, habits, duration)

            if following is None or not bedtime_changes_next_day(new_fields.bedtime, stored_bedtime):
                return False

            following_fields = sleep_fields_of(following)
            following.duration_minutes = derive_duration(
                new_fields.bedtime,
                following_fields.wake_time,
                following_fields.nap_duration_minutes,
                self.tz,
            )
            session.flush()
            return True

        cascaded = run_atomic(_write, context="sleep_records.upsert_sleep")
        if cascaded:
            logger.info(
                f"Saved sleep for {format_date(target)} and recomputed {format_date(next_date(target))}",
                extra={"user_id": user_id},
            )
        else:
            logger.info(f"Saved sleep for {format_date(target)}", extra={"user_id": user_id})

        return self._reread(user_id, target)

    def set_habit(self, user_id: str, day: Union[str, date], habit_key: str, value: bool) -> DailyRecord:
        """
        Set one habit's value for a day, creating the entry if needed.
        """
        target = validate_date(day)
        key = validate_habit_key(habit_key)
        if not isinstance(value, bool):
            raise ValidationError("Habit value must be a boolean")

        def _write(session: Session) -> None:
            current = get_entry(session, user_id, target)
            habits = [dict(h) for h in (current.habits or [])] if current is not None else []

            for habit in habits:
                if habit.get("key") == key:
                    habit["value"] = value
                    break
            else:
                habits.append({"key": key, "value": value})

            self._put_with_derived_duration(session, user_id, target, current, habits)

        run_atomic(_write, context="sleep_records.set_habit")
        logger.info(f"Set habit '{key}'={value} on {format_date(target)}", extra={"user_id": user_id})
        return self._reread(user_id, target)

    def remove_habit(self, user_id: str, day: Union[str, date], habit_key: str) -> DailyRecord:
        """
        Remove a habit from a day's checklist. Removing an absent key is a no-op;
        a day with no entry at all raises NotFoundError.
        """
        target = validate_date(day)
        key = validate_habit_key(habit_key)

        def _write(session: Session) -> None:
            current = get_entry(session, user_id, target)
            if current is None:
                raise NotFoundError("Daily entry not found")

            habits = [dict(h) for h in (current.habits or []) if h.get("key") != key]
            self._put_with_derived_duration(session, user_id, target, current, habits)

        run_atomic(_write, context="sleep_records.remove_habit")
        logger.info(f"Removed habit '{key}' from {format_date(target)}", extra={"user_id": user_id})
        return self._reread(user_id, target)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _put_with_derived_duration(self, session, user_id, target, current, habits) -> None:
        previous = get_entry(session, user_id, previous_date(target))
        fields = sleep_fields_of(current)
        duration = derive_duration(
            previous.bedtime if previous is not None else None,
            fields.wake_time,
            fields.nap_duration_minutes,
            self.tz,
        )
        put_entry(session, user_id, target, fields, habits, duration)

    def _derived_record(self, session: Session, user_id: str, target: date) -> Optional[DailyRecord]:
        entry = get_entry(session, user_id, target)
        if entry is None:
            return None
        previous = get_entry(session, user_id, previous_date(target))
        return to_record(entry, derive_entry_duration(previous, entry, self.tz))

    def _reread(self, user_id: str, target: date) -> DailyRecord:
        """Fresh read after commit; the duration is derived from whatever persisted."""
        record = run_query(
            lambda session: self._derived_record(session, user_id, target),
            context="sleep_records.reread",
        )
        if record is None:
            raise NotFoundError("Daily entry not found")
        return record
