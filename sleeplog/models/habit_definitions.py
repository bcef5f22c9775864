"""
SQLAlchemy model for a user's habit catalogue.
"""
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sleeplog.models.base import Base


class HabitDefinition(Base):
    """
    A habit the user tracks daily. `key` is generated from the label and is what
    daily entries reference in their habit checklist.
    """
    __tablename__ = "habit_definitions"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    key = Column(String(128), nullable=False)
    label = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "key", name="uq_habit_user_key"),
    )

    def __repr__(self):
        return f"<HabitDefinition(user={self.user_id}, key='{self.key}', label='{self.label}')>"
