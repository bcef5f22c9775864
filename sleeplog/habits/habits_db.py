# habits_db.py
"""
Habit catalogue: the habits a user has defined, keyed by a slug of the label.

Daily entries reference habits by key only; deleting a definition leaves the
values already recorded on daily entries untouched.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import asc
from sqlalchemy.orm import Session

from sleeplog.habits.habit_key import generate_habit_key
from sleeplog.models.habit_definitions import HabitDefinition
from sleeplog.schemas import HabitDefinitionView, validate_habit_key, validate_habit_label
from sleeplog.sleep.sleep_db import run_atomic, run_query
from sleeplog.utils.errors import NotFoundError, ValidationError
from sleeplog.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class HabitRecord:
    key: str
    label: str
    created_at: Optional[datetime] = None

    def to_view(self) -> HabitDefinitionView:
        return HabitDefinitionView(
            key=self.key,
            label=self.label,
            created_at=self.created_at.isoformat() if self.created_at else None,
        )


def _to_record(row: HabitDefinition) -> HabitRecord:
    return HabitRecord(key=row.key, label=row.label, created_at=row.created_at)


def _get_definition(session: Session, user_id: str, key: str) -> Optional[HabitDefinition]:
    return session.query(HabitDefinition).filter(
        HabitDefinition.user_id == user_id,
        HabitDefinition.key == key,
    ).first()


class HabitsManager:

    def list_habits(self, user_id: str) -> List[HabitRecord]:
        def _read(session: Session) -> List[HabitRecord]:
            rows = session.query(HabitDefinition).filter(
                HabitDefinition.user_id == user_id
            ).order_by(asc(HabitDefinition.created_at), asc(HabitDefinition.id)).all()
            return [_to_record(r) for r in rows]

        return run_query(_read, context="habits_db.list_habits")

    def get_habit(self, user_id: str, key: str) -> Optional[HabitRecord]:
        key = validate_habit_key(key)

        def _read(session: Session) -> Optional[HabitRecord]:
            row = _get_definition(session, user_id, key)
            return _to_record(row) if row is not None else None

        return run_query(_read, context="habits_db.get_habit")

    def create_habit(self, user_id: str, label: str) -> HabitRecord:
        """
        Create a habit from its label. If the generated key already exists the
        existing definition is returned unchanged.
        """
        label = validate_habit_label(label)
        key = generate_habit_key(label)
        if not key:
            raise ValidationError(f"Label '{label}' does not produce a usable habit key")

        def _write(session: Session) -> HabitRecord:
            existing = _get_definition(session, user_id, key)
            if existing is not None:
                return _to_record(existing)

            row = HabitDefinition(user_id=user_id, key=key, label=label)
            session.add(row)
            session.flush()
            session.refresh(row)
            logger.info(f"Created habit '{key}'", extra={"user_id": user_id})
            return _to_record(row)

        return run_atomic(_write, context="habits_db.create_habit")

    def update_habit(self, user_id: str, key: str, label: str) -> HabitRecord:
        """Relabel a habit. The key stays the same."""
        key = validate_habit_key(key)
        label = validate_habit_label(label)

        def _write(session: Session) -> HabitRecord:
            row = _get_definition(session, user_id, key)
            if row is None:
                raise NotFoundError("Habit not found")
            row.label = label
            session.flush()
            return _to_record(row)

        return run_atomic(_write, context="habits_db.update_habit")

    def delete_habit(self, user_id: str, key: str) -> None:
        key = validate_habit_key(key)

        def _write(session: Session) -> None:
            row = _get_definition(session, user_id, key)
            if row is None:
                raise NotFoundError("Habit not found")
            session.delete(row)

        run_atomic(_write, context="habits_db.delete_habit")
        logger.info(f"Deleted habit '{key}'", extra={"user_id": user_id})
