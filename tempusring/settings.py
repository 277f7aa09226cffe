"""User preferences with JSON persistence.

Preferences are stored at:
    <data dir>/preferences.json

where ``<data dir>`` is ``$TEMPUSRING_DATA_DIR`` when set, otherwise
``~/Library/Application Support/TempusRing``.

Usage::

    store = PreferencesStore()
    prefs = store.load()
    prefs.volume = 0.5
    store.save(prefs)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path

from .errors import InvalidConfig, StorageError
from .timer.engine import TimerConfig

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "TEMPUSRING_DATA_DIR"
DEFAULT_APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "TempusRing"
PREFERENCES_FILENAME = "preferences.json"


def app_data_dir() -> Path:
    """Directory holding preferences, statistics and logs."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return DEFAULT_APP_SUPPORT_DIR


@dataclass
class Preferences:
    """All user-configurable settings."""

    # ── appearance ────────────────────────────────────────────────────
    theme: str = "cloudlight"
    language: str = "en"

    # ── timer ─────────────────────────────────────────────────────────
    work_duration: int = 25 * 60           # seconds
    short_break_duration: int = 5 * 60
    long_break_duration: int = 15 * 60
    sessions_until_long_break: int = 4
    auto_start_breaks: bool = False
    auto_start_pomodoros: bool = False

    # ── sound / notifications ─────────────────────────────────────────
    sound_enabled: bool = True
    notifications_enabled: bool = True
    volume: float = 0.7                    # 0.0-1.0

    def to_timer_config(self) -> TimerConfig:
        return TimerConfig(
            work_duration=self.work_duration,
            short_break_duration=self.short_break_duration,
            long_break_duration=self.long_break_duration,
            sessions_until_long_break=self.sessions_until_long_break,
            auto_start_breaks=self.auto_start_breaks,
            auto_start_pomodoros=self.auto_start_pomodoros,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Preferences:
        # Only use keys that exist in the dataclass
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_keys})

    def validate(self) -> None:
        """Raise :class:`InvalidConfig` if any field has the wrong type or
        the timer part does not form a valid :class:`TimerConfig`."""
        for f in fields(self):
            value = getattr(self, f.name)
            expected = _FIELD_TYPES[f.type]
            if expected is bool:
                ok = isinstance(value, bool)
            else:
                ok = isinstance(value, expected) and not isinstance(value, bool)
            if not ok:
                raise InvalidConfig(f"{f.name} must be {f.type}, got {value!r}")
        if not 0.0 <= self.volume <= 1.0:
            raise InvalidConfig(f"volume must be between 0 and 1, got {self.volume}")
        try:
            self.to_timer_config()
        except ValueError as exc:
            raise InvalidConfig(str(exc)) from exc


# Field annotations are strings under postponed evaluation
_FIELD_TYPES: dict[str, type | tuple[type, ...]] = {
    "str": str,
    "int": int,
    "bool": bool,
    "float": (int, float),
}


class PreferencesStore:
    """Loads and saves :class:`Preferences` as a single JSON file."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else app_data_dir()

    @property
    def path(self) -> Path:
        return self._base_dir / PREFERENCES_FILENAME

    def load(self) -> Preferences:
        """Read preferences, falling back to defaults when no file exists."""
        if not self.path.exists():
            return Preferences()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read preferences: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError("Cannot read preferences: expected a JSON object")
        try:
            prefs = Preferences.from_dict(data)
            prefs.validate()
        except InvalidConfig as exc:
            raise StorageError(f"Cannot read preferences: {exc}") from exc
        return prefs

    def save(self, prefs: Preferences) -> None:
        """Write preferences to disk as JSON."""
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(prefs.to_dict(), indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise StorageError(f"Cannot write preferences: {exc}") from exc
        logger.debug("preferences saved to %s", self.path)
