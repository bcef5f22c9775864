from datetime import date, datetime, timezone

import pytest

from sleeplog.sleep.sleep_db import get_entry, run_atomic, run_query
from sleeplog.utils.errors import NotFoundError, ValidationError

USER = "u1"


def _dt(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


def _stored_duration(day: str) -> int:
    return run_query(lambda s: get_entry(s, USER, date.fromisoformat(day)).duration_minutes)


def _sleep(records, day, bedtime=None, wake=None, nap=0, user=USER):
    return records.upsert_sleep(user, day, {"bedtime": bedtime, "wakeTime": wake, "napDurationMin": nap})


def _corrupt_stored_duration(day: str, value: int) -> None:
    def _write(session):
        get_entry(session, USER, date.fromisoformat(day)).duration_minutes = value

    run_atomic(_write)


# ----------------------------------------------------------------------
# upsert_sleep
# ----------------------------------------------------------------------

def test_upsert_creates_entry_without_previous_day(records):
    record = _sleep(records, "2024-03-02", wake="2024-03-02 07:00", nap=20)

    assert record.date == date(2024, 3, 2)
    assert record.wake_time == "2024-03-02 07:00"
    assert record.duration_minutes == 20
    assert record.habits == []


def test_upsert_pairs_previous_bedtime_with_wake(records):
    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:00")
    record = _sleep(records, "2024-03-02", wake="2024-03-02 07:00")

    assert record.duration_minutes == 480
    assert _stored_duration("2024-03-02") == 480


def test_new_bedtime_recomputes_following_day(records):
    _sleep(records, "2024-03-02", wake="2024-03-02 07:00", nap=10)
    assert _stored_duration("2024-03-02") == 10

    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:30")

    assert _stored_duration("2024-03-02") == 460
    assert records.get_by_date(USER, "2024-03-02").duration_minutes == 460


def test_clearing_bedtime_recomputes_following_day(records):
    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:00")
    _sleep(records, "2024-03-02", wake="2024-03-02 07:00")
    assert _stored_duration("2024-03-02") == 480

    _sleep(records, "2024-03-01")

    assert _stored_duration("2024-03-02") == 0


def test_bedtime_write_without_following_day_creates_nothing(records):
    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:00")

    with pytest.raises(NotFoundError):
        records.get_by_date(USER, "2024-03-02")


def test_upsert_is_idempotent(records):
    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:00")
    first = _sleep(records, "2024-03-02", bedtime="2024-03-02 22:45", wake="2024-03-02 07:00", nap=15)
    second = _sleep(records, "2024-03-02", bedtime="2024-03-02 22:45", wake="2024-03-02 07:00", nap=15)

    assert first == second
    assert len(records.get_history(USER)) == 2


def test_upsert_replaces_all_sleep_fields(records):
    _sleep(records, "2024-03-02", bedtime="2024-03-02 23:00", wake="2024-03-02 07:00", nap=30)
    record = records.upsert_sleep(USER, "2024-03-02", {"wakeTime": "2024-03-02 06:00"})

    assert record.bedtime is None
    assert record.nap_duration_minutes == 0


def test_upsert_keeps_habits(records):
    records.set_habit(USER, "2024-03-02", "read", True)
    record = _sleep(records, "2024-03-02", wake="2024-03-02 07:00")

    assert record.habits == [{"key": "read", "value": True}]


def test_empty_strings_mean_not_logged(records):
    record = records.upsert_sleep(USER, "2024-03-02", {"bedtime": "", "wakeTime": "  "})

    assert record.bedtime is None
    assert record.wake_time is None


@pytest.mark.parametrize("fields", [
    {"wakeTime": "2024-03-02 25:00"},
    {"bedtime": "2024-02-30 23:00"},
    {"bedtime": "2024-03-02T23:00"},
    {"napDurationMin": -1},
    {"napDurationMin": "30"},
    {"unexpected": 1},
])
def test_invalid_fields_rejected(records, fields):
    with pytest.raises(ValidationError):
        records.upsert_sleep(USER, "2024-03-02", fields)
    assert records.get_history(USER) == []


@pytest.mark.parametrize("day", ["2024-13-01", "2024-3-1", "yesterday", "2024-02-30", "2024-03-02\n", " 2024-03-02"])
def test_invalid_date_rejected(records, day):
    with pytest.raises(ValidationError):
        _sleep(records, day)


def test_users_are_isolated(records):
    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:00", user="someone-else")
    record = _sleep(records, "2024-03-02", wake="2024-03-02 07:00")

    assert record.duration_minutes == 0


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------

def test_get_by_date_missing_raises(records):
    with pytest.raises(NotFoundError):
        records.get_by_date(USER, "2024-03-02")


def test_reads_rederive_stale_duration(records):
    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:00")
    _sleep(records, "2024-03-02", wake="2024-03-02 07:00")

    _corrupt_stored_duration("2024-03-02", 999)

    assert _stored_duration("2024-03-02") == 999
    assert records.get_by_date(USER, "2024-03-02").duration_minutes == 480
    assert records.get_history(USER)[0].duration_minutes == 480


def _seed_week(records):
    for day in range(1, 6):
        _sleep(
            records,
            f"2024-03-0{day}",
            bedtime=f"2024-03-0{day} 23:00",
            wake=f"2024-03-0{day} 07:00",
        )


def test_history_newest_first(records):
    _seed_week(records)

    history = records.get_history(USER)

    assert [r.date.day for r in history] == [5, 4, 3, 2, 1]
    # The first day has no previous bedtime
    assert [r.duration_minutes for r in history] == [480, 480, 480, 480, 0]


def test_history_window_sees_bedtime_before_window(records):
    _seed_week(records)

    history = records.get_history(USER, days=2, now=_dt("2024-03-05T09:00:00"))

    assert [r.date.day for r in history] == [5, 4]
    assert history[-1].duration_minutes == 480


def test_recent_history_uses_configured_days(records):
    _seed_week(records)

    history = records.get_recent_history(USER, now=_dt("2024-03-05T09:00:00"))

    assert [r.date.day for r in history] == [5, 4, 3]


def test_history_window_follows_reference_timezone(records):
    _seed_week(records)

    # 21:30 UTC on the 4th is already the 5th in Moscow
    history = records.get_history(USER, days=1, now=_dt("2024-03-04T21:30:00"))

    assert [r.date.day for r in history] == [5]


def test_history_rejects_non_positive_days(records):
    with pytest.raises(ValidationError):
        records.get_history(USER, days=0)


# ----------------------------------------------------------------------
# was_last_night_logged
# ----------------------------------------------------------------------

def test_last_night_logged_with_both_ends(records):
    _sleep(records, "2024-03-03", bedtime="2024-03-03 23:00")
    _sleep(records, "2024-03-04", wake="2024-03-04 07:00")

    assert records.was_last_night_logged(USER, now=_dt("2024-03-05T09:00:00")) is True


def test_last_night_not_logged_without_bedtime(records):
    _sleep(records, "2024-03-04", wake="2024-03-04 07:00")

    assert records.was_last_night_logged(USER, now=_dt("2024-03-05T09:00:00")) is False


def test_last_night_not_logged_without_wake(records):
    _sleep(records, "2024-03-03", bedtime="2024-03-03 23:00")
    records.set_habit(USER, "2024-03-04", "read", True)

    assert records.was_last_night_logged(USER, now=_dt("2024-03-05T09:00:00")) is False


def test_last_night_uses_reference_timezone(records):
    _sleep(records, "2024-03-03", bedtime="2024-03-03 23:00")
    _sleep(records, "2024-03-04", wake="2024-03-04 07:00")

    # Still the 4th in UTC, already the 5th in Moscow
    assert records.was_last_night_logged(USER, now=_dt("2024-03-04T21:30:00")) is True
    assert records.was_last_night_logged(USER, now=_dt("2024-03-04T20:30:00")) is False


# ----------------------------------------------------------------------
# Habits on daily entries
# ----------------------------------------------------------------------

def test_set_habit_creates_entry(records):
    record = records.set_habit(USER, "2024-03-02", "read", True)

    assert record.habits == [{"key": "read", "value": True}]
    assert record.bedtime is None
    assert record.duration_minutes == 0


def test_set_habit_updates_in_place(records):
    records.set_habit(USER, "2024-03-02", "read", True)
    records.set_habit(USER, "2024-03-02", "walk", True)
    record = records.set_habit(USER, "2024-03-02", "read", False)

    assert record.habits == [{"key": "read", "value": False}, {"key": "walk", "value": True}]


def test_set_habit_keeps_sleep_fields(records):
    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:00")
    _sleep(records, "2024-03-02", wake="2024-03-02 07:00", nap=5)

    record = records.set_habit(USER, "2024-03-02", "read", True)

    assert record.wake_time == "2024-03-02 07:00"
    assert record.duration_minutes == 485


@pytest.mark.parametrize("edit", [
    lambda records: records.set_habit(USER, "2024-03-02", "read", True),
    lambda records: records.remove_habit(USER, "2024-03-02", "walk"),
])
def test_habit_edits_store_rederived_duration(records, edit):
    _sleep(records, "2024-03-01", bedtime="2024-03-01 23:00")
    _sleep(records, "2024-03-02", wake="2024-03-02 07:00")
    _corrupt_stored_duration("2024-03-02", 999)

    edit(records)

    assert _stored_duration("2024-03-02") == 480


def test_set_habit_requires_boolean(records):
    with pytest.raises(ValidationError):
        records.set_habit(USER, "2024-03-02", "read", 1)


def test_remove_habit(records):
    records.set_habit(USER, "2024-03-02", "read", True)
    records.set_habit(USER, "2024-03-02", "walk", False)

    record = records.remove_habit(USER, "2024-03-02", "read")

    assert record.habits == [{"key": "walk", "value": False}]


def test_remove_absent_habit_is_noop(records):
    records.set_habit(USER, "2024-03-02", "read", True)

    record = records.remove_habit(USER, "2024-03-02", "walk")

    assert record.habits == [{"key": "read", "value": True}]


def test_remove_habit_without_entry_raises(records):
    with pytest.raises(NotFoundError):
        records.remove_habit(USER, "2024-03-02", "read")
