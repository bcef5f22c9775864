# sleep_db.py
"""
Sleep Database Layer

Handles all database operations for daily entries:
- Transaction wrapper (run_atomic) and read-only session wrapper (run_query)
- Fetching a single day, a date range, or a user's whole history
- Upserting a day's sleep fields and habit checklist

Functions that touch rows take the session explicitly so several reads and
writes can share one transaction.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sleeplog.models.base import get_session
from sleeplog.models.daily_entries import DailyEntry
from sleeplog.sleep.sleep_duration import SleepFields
from sleeplog.utils.error_logging import log_critical_error
from sleeplog.utils.errors import PersistenceError
from sleeplog.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class DailyRecord:
    """Detached, plain-data copy of a daily_entries row."""
    user_id: str
    date: date
    bedtime: Optional[str] = None
    wake_time: Optional[str] = None
    nap_duration_minutes: int = 0
    duration_minutes: int = 0
    habits: List[Dict[str, Any]] = field(default_factory=list)


def to_record(entry: DailyEntry, duration_minutes: Optional[int] = None) -> DailyRecord:
    """Copy a row out of its session, optionally overriding the duration."""
    return DailyRecord(
        user_id=entry.user_id,
        date=entry.date,
        bedtime=entry.bedtime,
        wake_time=entry.wake_time,
        nap_duration_minutes=entry.nap_duration_minutes or 0,
        duration_minutes=entry.duration_minutes if duration_minutes is None else duration_minutes,
        habits=[dict(h) for h in (entry.habits or [])],
    )


# =========================================================================
# Session wrappers
# =========================================================================

def run_atomic(fn: Callable[[Session], T], context: str = "sleep_db.run_atomic") -> T:
    """
    Run fn(session) inside one transaction.

    Everything fn writes commits together; on any failure the whole transaction
    is rolled back and PersistenceError is raised.
    """
    session = get_session()
    try:
        result = fn(session)
        session.commit()
        return result

    except SQLAlchemyError as e:
        session.rollback()
        log_critical_error(context, "Transaction failed and was rolled back", e)
        raise PersistenceError("Failed to persist changes") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def run_query(fn: Callable[[Session], T], context: str = "sleep_db.run_query") -> T:
    """Run a read-only fn(session); database errors surface as PersistenceError."""
    session = get_session()
    try:
        return fn(session)

    except SQLAlchemyError as e:
        log_critical_error(context, "Query failed", e)
        raise PersistenceError("Failed to read sleep entries") from e
    finally:
        session.close()


# =========================================================================
# Daily Entry Operations
# =========================================================================

def get_entry(session: Session, user_id: str, day: date) -> Optional[DailyEntry]:
    return session.query(DailyEntry).filter(
        DailyEntry.user_id == user_id,
        DailyEntry.date == day,
    ).first()


def list_entries(
        session: Session,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
) -> List[DailyEntry]:
    """
    Entries for a user, newest first, optionally bounded to [start, end] (inclusive).
    """
    query = session.query(DailyEntry).filter(DailyEntry.user_id == user_id)
    if start is not None:
        query = query.filter(DailyEntry.date >= start)
    if end is not None:
        query = query.filter(DailyEntry.date <= end)

    return query.order_by(desc(DailyEntry.date)).all()


def put_entry(
        session: Session,
        user_id: str,
        day: date,
        sleep_fields: SleepFields,
        habits: List[Dict[str, Any]],
        duration_minutes: int,
) -> DailyEntry:
    """
    Upsert the entry for (user_id, day). Nothing is committed here.
    """
    entry = get_entry(session, user_id, day)
    if entry is None:
        entry = DailyEntry(user_id=user_id, date=day)
        session.add(entry)

    entry.bedtime = sleep_fields.bedtime
    entry.wake_time = sleep_fields.wake_time
    entry.nap_duration_minutes = sleep_fields.nap_duration_minutes
    entry.duration_minutes = duration_minutes
    # Assign a fresh list so the JSON column is flagged dirty
    entry.habits = [dict(h) for h in habits]

    session.flush()
    return entry


def sleep_fields_of(entry: Optional[DailyEntry]) -> SleepFields:
    """The stored sleep fields of an entry, or empty fields if it does not exist."""
    if entry is None:
        return SleepFields()
    return SleepFields(
        bedtime=entry.bedtime,
        wake_time=entry.wake_time,
        nap_duration_minutes=entry.nap_duration_minutes or 0,
    )
