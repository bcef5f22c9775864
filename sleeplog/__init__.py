"""
sleeplog: daily sleep and habit journal.

Sleep durations are derived from two adjacent days (the previous evening's
bedtime and the morning's wake time) and re-derived on every read.
"""

__version__ = "0.1.0"
