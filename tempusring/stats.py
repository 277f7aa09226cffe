"""Daily, weekly, monthly and all-time statistics summaries.

Pure functions over :class:`TimerStatistic` records; the store does the I/O.
"""

from __future__ import annotations

import calendar
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any

from .storage.statistics import StatisticsStore, TimerStatistic


@dataclass(frozen=True)
class DailySummary:
    date: str
    completed_pomodoros: int = 0
    total_work_time: int = 0
    total_break_time: int = 0
    total_sessions: int = 0
    efficiency: float = 0.0  # percent of logged sessions that were completed

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WeeklySummary:
    week_start: str
    week_end: str
    total_pomodoros: int
    total_work_time: int
    total_break_time: int
    average_pomodoros_per_day: float
    daily_breakdown: list[DailySummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize_day(stat: TimerStatistic) -> DailySummary:
    total = len(stat.sessions)
    completed = sum(1 for s in stat.sessions if s.completed)
    return DailySummary(
        date=stat.date,
        completed_pomodoros=stat.completed_pomodoros,
        total_work_time=stat.total_work_time,
        total_break_time=stat.total_break_time,
        total_sessions=total,
        efficiency=(completed / total) * 100 if total else 0.0,
    )


def daily_summary(store: StatisticsStore, day: date) -> DailySummary | None:
    stat = store.get(day.isoformat())
    return summarize_day(stat) if stat else None


def weekly_summary(store: StatisticsStore, week_start: date) -> WeeklySummary:
    """Seven days from ``week_start``; days without data count as zero."""
    week_end = week_start + timedelta(days=6)
    by_date = {
        s.date: s for s in store.query(week_start.isoformat(), week_end.isoformat())
    }

    breakdown: list[DailySummary] = []
    for offset in range(7):
        key = (week_start + timedelta(days=offset)).isoformat()
        stat = by_date.get(key)
        breakdown.append(summarize_day(stat) if stat else DailySummary(date=key))

    total_pomodoros = sum(d.completed_pomodoros for d in breakdown)
    return WeeklySummary(
        week_start=week_start.isoformat(),
        week_end=week_end.isoformat(),
        total_pomodoros=total_pomodoros,
        total_work_time=sum(d.total_work_time for d in breakdown),
        total_break_time=sum(d.total_break_time for d in breakdown),
        average_pomodoros_per_day=total_pomodoros / 7,
        daily_breakdown=breakdown,
    )


@dataclass(frozen=True)
class MonthlySummary:
    month: str  # English month name
    year: int
    total_pomodoros: int
    total_work_time: int
    total_break_time: int
    completion_rate: float  # percent of logged sessions that were completed
    productive_hours: float
    weekly_breakdown: list[WeeklySummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TotalSummary:
    total_pomodoros: int
    total_work_time: int
    total_break_time: int
    total_days: int
    average_pomodoros_per_day: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def week_start_for(day: date) -> date:
    """The Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def range_summary(
    store: StatisticsStore, from_date: str | None = None, to_date: str | None = None
) -> list[DailySummary]:
    return [summarize_day(s) for s in store.query(from_date, to_date)]


def monthly_summary(store: StatisticsStore, year: int, month: int) -> MonthlySummary:
    """Totals for one calendar month plus every Sunday-based week touching it."""
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    stats = store.query(first.isoformat(), last.isoformat())

    sessions = [s for stat in stats for s in stat.sessions]
    completed = sum(1 for s in sessions if s.completed)
    total_work = sum(s.total_work_time for s in stats)

    weeks: list[WeeklySummary] = []
    week = week_start_for(first)
    while week <= last:
        weeks.append(weekly_summary(store, week))
        week += timedelta(days=7)

    return MonthlySummary(
        month=calendar.month_name[month],
        year=year,
        total_pomodoros=sum(s.completed_pomodoros for s in stats),
        total_work_time=total_work,
        total_break_time=sum(s.total_break_time for s in stats),
        completion_rate=(completed / len(sessions)) * 100 if sessions else 0.0,
        productive_hours=round(total_work / 3600, 2),
        weekly_breakdown=weeks,
    )


def total_summary(store: StatisticsStore) -> TotalSummary:
    stats = store.query()
    pomodoros = sum(s.completed_pomodoros for s in stats)
    return TotalSummary(
        total_pomodoros=pomodoros,
        total_work_time=sum(s.total_work_time for s in stats),
        total_break_time=sum(s.total_break_time for s in stats),
        total_days=len(stats),
        average_pomodoros_per_day=pomodoros / len(stats) if stats else 0.0,
    )
