"""Command surface exposed to the front end.

Every command returns a :class:`CommandResult`.  Expected failures
(``TempusError`` and subclasses) become ``success=False`` results carrying the
error message; anything else is a bug and propagates.

The backend is also where finished sessions are handed to the
:class:`SessionRecorder`; the engine itself never touches storage.
"""

from __future__ import annotations

import functools
import inspect
import logging
import threading
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

from . import stats
from .errors import (
    InternalLockFailure, InvalidArgument, InvalidConfig, StorageError, TempusError,
)
from .recorder import SessionRecorder
from .settings import Preferences, PreferencesStore, app_data_dir
from .storage import backup
from .storage.statistics import StatisticsStore, TimerStatistic
from .timer.engine import TimerConfig, TimerEngine, TimerSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CommandResult(Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> CommandResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, message: str) -> CommandResult[T]:
        return cls(success=False, error=message)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "data": _to_plain(self.data), "error": self.error}


@dataclass(frozen=True)
class TimerTickData:
    timer_data: TimerSnapshot
    session_completed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "timer_data": self.timer_data.to_dict(),
            "session_completed": self.session_completed,
        }


def _to_plain(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_plain(v) for v in value]
    return value


def command(func: Callable[..., Any]) -> Callable[..., CommandResult]:
    """Wrap a backend method so it returns a CommandResult."""

    @functools.wraps(func)
    def wrapper(self: Backend, *args: Any, **kwargs: Any) -> CommandResult:
        try:
            return CommandResult.ok(func(self, *args, **kwargs))
        except InternalLockFailure as exc:
            logger.error("%s failed: %s", func.__name__, exc)
            return CommandResult.failure(str(exc))
        except TempusError as exc:
            logger.info("%s rejected: %s", func.__name__, exc)
            return CommandResult.failure(str(exc))

    wrapper.is_command = True  # type: ignore[attr-defined]
    return wrapper


class Backend:
    """Owns the engine, both stores and the session recorder.

    Commands that move the engine and then notify the recorder hold
    ``_session_lock`` across both steps, so concurrent callers cannot credit
    a finished session to the wrong record.
    """

    def __init__(
        self,
        engine: TimerEngine,
        preferences: PreferencesStore,
        statistics: StatisticsStore,
        recorder: SessionRecorder | None = None,
    ) -> None:
        self.engine = engine
        self.preferences = preferences
        self.statistics = statistics
        self.recorder = recorder or SessionRecorder(statistics)
        self._session_lock = threading.Lock()

    @classmethod
    def from_data_dir(cls, base_dir: Path | None = None, **engine_kwargs: Any) -> Backend:
        """Build stores under ``base_dir`` and an engine using saved preferences."""
        base_dir = Path(base_dir) if base_dir is not None else app_data_dir()
        preferences = PreferencesStore(base_dir)
        statistics = StatisticsStore(base_dir)
        try:
            config = preferences.load().to_timer_config()
        except (StorageError, TypeError, ValueError) as exc:
            logger.warning("using default timer config: %s", exc)
            config = TimerConfig()
        engine = TimerEngine(config, **engine_kwargs)
        return cls(engine, preferences, statistics)

    # ══════════════════════════════════════════════════════════════════
    #  TIMER
    # ══════════════════════════════════════════════════════════════════

    @command
    def start_timer(self) -> TimerSnapshot:
        with self._session_lock:
            snapshot = self.engine.start()
            self.recorder.observe(snapshot)
        return snapshot

    @command
    def pause_timer(self) -> TimerSnapshot:
        with self._session_lock:
            snapshot = self.engine.pause()
            self.recorder.observe(snapshot)
        return snapshot

    @command
    def reset_timer(self) -> TimerSnapshot:
        with self._session_lock:
            snapshot = self.engine.reset()
            self.recorder.session_abandoned(snapshot)
        return snapshot

    @command
    def get_timer_state(self) -> TimerSnapshot:
        return self.engine.get_state()

    @command
    def update_timer_config(self, config: TimerConfig | dict[str, Any]) -> TimerSnapshot:
        if not isinstance(config, TimerConfig):
            try:
                config = TimerConfig.from_dict(config)
            except (TypeError, ValueError) as exc:
                raise InvalidConfig(f"Invalid timer config: {exc}") from exc
        return self.engine.update_config(config)

    @command
    def get_timer_config(self) -> TimerConfig:
        return self.engine.get_config()

    @command
    def complete_session(self) -> TimerSnapshot:
        with self._session_lock:
            snapshot = self.engine.complete_session()
            self.recorder.session_finished(snapshot)
        return snapshot

    @command
    def check_timer_completion(self) -> TimerTickData:
        with self._session_lock:
            completed = self.engine.check_if_completed()
            if completed is not None:
                self.recorder.session_finished(completed)
                return TimerTickData(timer_data=completed, session_completed=True)
        return TimerTickData(timer_data=self.engine.get_state(), session_completed=False)

    # ══════════════════════════════════════════════════════════════════
    #  STORAGE
    # ══════════════════════════════════════════════════════════════════

    @command
    def load_preferences(self) -> Preferences:
        return self.preferences.load()

    @command
    def save_preferences(self, preferences: Preferences | dict[str, Any]) -> None:
        if not isinstance(preferences, Preferences):
            try:
                preferences = Preferences.from_dict(preferences)
            except (AttributeError, TypeError) as exc:
                raise InvalidConfig(f"Invalid preferences: {exc}") from exc
        try:
            preferences.validate()
        except InvalidConfig as exc:
            raise InvalidConfig(f"Invalid preferences: {exc}") from exc
        self.preferences.save(preferences)

    @command
    def save_statistic(self, statistic: TimerStatistic | dict[str, Any]) -> None:
        if not isinstance(statistic, TimerStatistic):
            try:
                statistic = TimerStatistic.from_dict(statistic)
            except (KeyError, TypeError, ValueError) as exc:
                raise StorageError(f"Invalid statistic: {exc}") from exc
        self.statistics.append(statistic)

    @command
    def load_statistics(
        self, from_date: str | None = None, to_date: str | None = None
    ) -> list[TimerStatistic]:
        return self.statistics.query(from_date, to_date)

    @command
    def clear_statistics(self) -> None:
        self.statistics.clear()

    @command
    def get_storage_size(self) -> int:
        try:
            prefs_size = (
                self.preferences.path.stat().st_size
                if self.preferences.path.exists() else 0
            )
            return prefs_size + self.statistics.storage_size()
        except OSError as exc:
            raise StorageError(f"Cannot measure storage: {exc}") from exc

    @command
    def export_data(self) -> dict[str, Any]:
        return backup.export_all_data(self.preferences, self.statistics)

    @command
    def backup_data(self, backup_path: str | Path) -> None:
        backup.backup_data(self.preferences, self.statistics, Path(backup_path))

    @command
    def restore_data(self, backup_path: str | Path) -> None:
        backup.restore_data(self.preferences, self.statistics, Path(backup_path))

    # ══════════════════════════════════════════════════════════════════
    #  SUMMARIES
    # ══════════════════════════════════════════════════════════════════

    @command
    def get_daily_statistics(self, date: str) -> stats.DailySummary | None:
        return stats.daily_summary(self.statistics, _parse_date(date))

    @command
    def get_weekly_statistics(self, week_start: str) -> stats.WeeklySummary:
        return stats.weekly_summary(self.statistics, _parse_date(week_start))

    @command
    def get_monthly_statistics(self, year: int, month: int) -> stats.MonthlySummary:
        if not isinstance(year, int) or not isinstance(month, int) or not 1 <= month <= 12:
            raise InvalidArgument(f"Invalid month: {year!r}-{month!r}")
        return stats.monthly_summary(self.statistics, year, month)

    @command
    def get_statistics_range(
        self, from_date: str | None = None, to_date: str | None = None
    ) -> list[stats.DailySummary]:
        return stats.range_summary(self.statistics, from_date, to_date)

    @command
    def get_total_statistics(self) -> stats.TotalSummary:
        return stats.total_summary(self.statistics)

    # ══════════════════════════════════════════════════════════════════
    #  DISPATCH
    # ══════════════════════════════════════════════════════════════════

    def dispatch(self, name: str, **kwargs: Any) -> CommandResult:
        """Run a command by name, as a transport layer would."""
        method = getattr(self, name, None)
        if method is None or not getattr(method, "is_command", False):
            return CommandResult.failure(f"Unknown command: {name}")
        try:
            inspect.signature(method).bind(**kwargs)
        except TypeError as exc:
            return CommandResult.failure(f"Invalid arguments for {name}: {exc}")
        return method(**kwargs)


COMMAND_NAMES: tuple[str, ...] = tuple(
    name for name, member in vars(Backend).items() if getattr(member, "is_command", False)
)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Invalid date: {value!r}") from exc
