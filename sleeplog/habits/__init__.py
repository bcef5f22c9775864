"""
Habits Module

Components:
- generate_habit_key(): Label -> key slug
- HabitsManager: Per-user habit catalogue (list, get, create, update, delete)
"""

from sleeplog.habits.habit_key import generate_habit_key
from sleeplog.habits.habits_db import HabitRecord, HabitsManager

__all__ = [
    'generate_habit_key',
    'HabitRecord',
    'HabitsManager',
]
