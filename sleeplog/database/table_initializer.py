"""
Centralized table initialization

Tables:
- daily_entries: per-day sleep fields and habit checklist
- habit_definitions: per-user habit catalogue
"""
from sleeplog.models.base import Base, get_current_engine
from sleeplog.utils.logging_config import get_logger

logger = get_logger(__name__)


def initialize_tables():
    """
    Create all tables (idempotent - only creates if missing).
    """
    logger.info("Initializing sleep log tables...")

    # Import models (this registers them with Base.metadata)
    from sleeplog.models.daily_entries import DailyEntry
    from sleeplog.models.habit_definitions import HabitDefinition

    engine = get_current_engine()
    Base.metadata.create_all(
        engine,
        tables=[DailyEntry.__table__, HabitDefinition.__table__],
        checkfirst=True,
    )
    logger.info("✅ Sleep log tables initialized (2 tables)")
