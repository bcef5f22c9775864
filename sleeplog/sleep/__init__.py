"""
Sleep Module

Components:
- derive_duration(): Pure computation - minutes slept from two adjacent days' fields
- SleepRecordsManager: Reads and writes of daily entries, including the next-day cascade
- aggregate() / SleepStatsManager: Week, month and year averages
"""

from sleeplog.sleep.sleep_duration import (
    SleepFields,
    derive_duration,
)
from sleeplog.sleep.sleep_records import (
    SleepRecordsManager,
)
from sleeplog.sleep.sleep_stats import (
    SleepStatsManager,
    aggregate,
    average_clock_time,
    average_duration,
)

__all__ = [
    'SleepFields',
    'derive_duration',
    'SleepRecordsManager',
    'SleepStatsManager',
    'aggregate',
    'average_clock_time',
    'average_duration',
]
