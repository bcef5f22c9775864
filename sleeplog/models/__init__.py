"""
Models package exports
"""
from sleeplog.models.daily_entries import DailyEntry
from sleeplog.models.habit_definitions import HabitDefinition

__all__ = ['DailyEntry', 'HabitDefinition']
