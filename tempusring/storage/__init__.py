"""Storage package."""

from .statistics import SessionData, StatisticsStore, TimerStatistic
from .backup import backup_data, export_all_data, restore_data

__all__ = [
    "SessionData",
    "StatisticsStore",
    "TimerStatistic",
    "backup_data",
    "export_all_data",
    "restore_data",
]
