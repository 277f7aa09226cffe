"""Export, backup and restore of all persisted data.

A backup file is a JSON object with up to two keys::

    {"preferences": {...}, "statistics": [{...}, ...]}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..errors import InvalidConfig, StorageError
from ..settings import Preferences, PreferencesStore
from .statistics import StatisticsStore, TimerStatistic

logger = logging.getLogger(__name__)


def export_all_data(
    preferences: PreferencesStore, statistics: StatisticsStore
) -> dict[str, Any]:
    """Collect preferences and the full statistics history.

    A section that cannot be read is left out rather than failing the export.
    """
    data: dict[str, Any] = {}
    try:
        data["preferences"] = preferences.load().to_dict()
    except StorageError as exc:
        logger.warning("export without preferences: %s", exc)
    try:
        data["statistics"] = [s.to_dict() for s in statistics.query()]
    except StorageError as exc:
        logger.warning("export without statistics: %s", exc)
    return data


def backup_data(
    preferences: PreferencesStore, statistics: StatisticsStore, backup_path: Path
) -> None:
    data = export_all_data(preferences, statistics)
    try:
        Path(backup_path).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"Cannot write backup {backup_path}: {exc}") from exc
    logger.info("backup written to %s", backup_path)


def restore_data(
    preferences: PreferencesStore, statistics: StatisticsStore, backup_path: Path
) -> None:
    """Load a backup file and write its contents back into the stores.

    The file itself must be valid JSON.  Inside it, a preferences section or
    statistic record that does not parse is skipped.
    """
    try:
        data = json.loads(Path(backup_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StorageError(f"Cannot read backup {backup_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise StorageError(f"Cannot read backup {backup_path}: expected a JSON object")

    raw_prefs = data.get("preferences")
    if isinstance(raw_prefs, dict):
        try:
            prefs = Preferences.from_dict(raw_prefs)
            prefs.validate()
        except (TypeError, InvalidConfig) as exc:
            logger.warning("backup preferences ignored: %s", exc)
        else:
            preferences.save(prefs)

    raw_stats = data.get("statistics")
    if isinstance(raw_stats, list):
        restored = 0
        for raw in raw_stats:
            try:
                stat = TimerStatistic.from_dict(raw)
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("backup statistic ignored: %s", exc)
                continue
            statistics.append(stat)
            restored += 1
        logger.info("restored %d statistic records from %s", restored, backup_path)
