"""Per-day session statistics, one JSON file per date.

Files live at ``<data dir>/statistics/<YYYY-MM-DD>.json``.  Saving a record
for a date that already has one replaces it.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any

from ..errors import StorageError
from ..settings import app_data_dir

logger = logging.getLogger(__name__)

STATISTICS_DIRNAME = "statistics"


@dataclass
class SessionData:
    start_time: str  # ISO-8601
    end_time: str
    session_type: str  # work | short_break | long_break
    completed: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionData:
        return cls(
            start_time=str(data["start_time"]),
            end_time=str(data["end_time"]),
            session_type=str(data["session_type"]),
            completed=bool(data["completed"]),
        )


@dataclass
class TimerStatistic:
    """Aggregated sessions for one calendar day."""

    id: str
    date: str  # YYYY-MM-DD
    completed_pomodoros: int = 0
    total_work_time: int = 0  # seconds
    total_break_time: int = 0
    sessions: list[SessionData] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerStatistic:
        """Build from parsed JSON.  Raises ``KeyError``/``TypeError``/
        ``ValueError`` when a field is missing or has the wrong shape."""
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            completed_pomodoros=int(data["completed_pomodoros"]),
            total_work_time=int(data["total_work_time"]),
            total_break_time=int(data["total_break_time"]),
            sessions=[SessionData.from_dict(s) for s in data["sessions"]],
        )


def is_date_in_range(date: str, from_date: str | None, to_date: str | None) -> bool:
    """Inclusive range check by plain string comparison of ISO date keys."""
    if from_date is not None and date < from_date:
        return False
    if to_date is not None and date > to_date:
        return False
    return True


class StatisticsStore:
    def __init__(self, base_dir: Path | None = None) -> None:
        base = Path(base_dir) if base_dir is not None else app_data_dir()
        self._dir = base / STATISTICS_DIRNAME

    @property
    def directory(self) -> Path:
        return self._dir

    def append(self, statistic: TimerStatistic) -> None:
        """Write the record for ``statistic.date``, replacing any existing one."""
        path = self._dir / f"{statistic.date}.json"
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(statistic.to_dict(), indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise StorageError(f"Cannot write statistic {statistic.date}: {exc}") from exc

    def get(self, date: str) -> TimerStatistic | None:
        found = self.query(date, date)
        return found[0] if found else None

    def query(
        self, from_date: str | None = None, to_date: str | None = None
    ) -> list[TimerStatistic]:
        """All readable records within the inclusive range, oldest first.

        Unreadable or malformed files are skipped so one bad day does not
        hide the rest of the history.
        """
        if not self._dir.exists():
            return []

        statistics: list[TimerStatistic] = []
        try:
            paths = sorted(self._dir.glob("*.json"))
        except OSError as exc:
            raise StorageError(f"Cannot list statistics: {exc}") from exc

        for path in paths:
            try:
                stat = TimerStatistic.from_dict(
                    json.loads(path.read_text(encoding="utf-8"))
                )
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("skipping malformed statistic %s: %s", path.name, exc)
                continue
            if is_date_in_range(stat.date, from_date, to_date):
                statistics.append(stat)

        statistics.sort(key=lambda s: s.date)
        return statistics

    def clear(self) -> None:
        try:
            if self._dir.exists():
                shutil.rmtree(self._dir)
                self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot clear statistics: {exc}") from exc
        logger.info("statistics cleared")

    def export_data(self) -> dict[str, dict[str, Any]]:
        """Every record keyed by date."""
        return {stat.date: stat.to_dict() for stat in self.query()}

    def import_data(self, data: dict[str, dict[str, Any]]) -> int:
        """Write every well-formed record from an :meth:`export_data` mapping.

        Returns the number of records written; malformed entries are skipped.
        """
        written = 0
        for key, raw in data.items():
            try:
                stat = TimerStatistic.from_dict(raw)
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("skipping malformed statistic %s: %s", key, exc)
                continue
            self.append(stat)
            written += 1
        return written

    def storage_size(self) -> int:
        """Total bytes of all statistic files."""
        if not self._dir.exists():
            return 0
        return sum(p.stat().st_size for p in self._dir.rglob("*") if p.is_file())
