# daily_entries.py
"""
SQLAlchemy model for the daily_entries table.

One row per (user, calendar date). A night's sleep spans two rows:
bedtime is logged on the evening row, wake_time on the next morning's row.

Columns:
    id: Primary key
    user_id: Owner of the entry
    date: Calendar day the entry belongs to
    bedtime: 'YYYY-MM-DD HH:MM' wall-clock time the user went to bed. NULL if not logged.
    wake_time: 'YYYY-MM-DD HH:MM' wall-clock time the user woke. NULL if not logged.
    nap_duration_minutes: Extra sleep not covered by bedtime/wake_time
    duration_minutes: Derived from the previous day's bedtime and this row's wake/nap.
                      Stored as a cached projection; readers re-derive it.
    habits: JSON list of {"key": str, "value": bool}
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, JSON, Index, UniqueConstraint
from sqlalchemy.sql import func
from sleeplog.models.base import Base


class DailyEntry(Base):
    __tablename__ = "daily_entries"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False)
    date = Column(Date, nullable=False)
    bedtime = Column(String(32), nullable=True)
    wake_time = Column(String(32), nullable=True)
    nap_duration_minutes = Column(Integer, nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=False, default=0)
    habits = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_entry_user_date"),
        Index("idx_daily_entry_user_date", "user_id", "date"),
    )

    def __repr__(self):
        return (
            f"<DailyEntry(user={self.user_id}, date={self.date}, bedtime={self.bedtime}, "
            f"wake={self.wake_time}, duration={self.duration_minutes}min)>"
        )
