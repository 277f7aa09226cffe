"""Preferences dialog.

Every widget maps to one :class:`Preferences` field and writes only that
field when it changes, so values the dialog cannot show exactly (a 90 s
break, say) survive edits to other fields.  The caller re-applies the timer
config once the dialog closes.
"""

from __future__ import annotations

import functools
import logging

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QCheckBox, QDialog, QDialogButtonBox, QFormLayout, QGroupBox, QLabel,
    QSlider, QSpinBox, QVBoxLayout, QWidget,
)

from ..errors import StorageError
from ..settings import Preferences, PreferencesStore

logger = logging.getLogger(__name__)

# field, row label, upper bound in minutes
_DURATION_FIELDS: tuple[tuple[str, str, int], ...] = (
    ("work_duration", "Work", 120),
    ("short_break_duration", "Short break", 30),
    ("long_break_duration", "Long break", 60),
)

_TIMER_CHECKS: tuple[tuple[str, str], ...] = (
    ("auto_start_breaks", "Start breaks automatically"),
    ("auto_start_pomodoros", "Start the next pomodoro automatically"),
)

_ALERT_CHECKS: tuple[tuple[str, str], ...] = (
    ("sound_enabled", "Play a sound when a session ends"),
    ("notifications_enabled", "Show a notification when a session ends"),
)


def _minutes_shown(seconds: int) -> int:
    return max(1, round(seconds / 60))


class SettingsDialog(QDialog):
    """Edits a :class:`Preferences` in place and saves after every change."""

    def __init__(
        self,
        preferences: Preferences,
        store: PreferencesStore,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Preferences")
        self.setModal(True)
        self.setMinimumWidth(400)

        self._prefs = preferences
        self._store = store
        self._minute_spins: dict[str, QSpinBox] = {}
        self._checks: dict[str, QCheckBox] = {}

        layout = QVBoxLayout(self)
        layout.addWidget(self._timer_group())
        layout.addWidget(self._alerts_group())
        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close, self)
        buttons.rejected.connect(self.accept)
        layout.addWidget(buttons)

    @property
    def preferences(self) -> Preferences:
        return self._prefs

    # ── groups ───────────────────────────────────────────────────────

    def _timer_group(self) -> QGroupBox:
        group = QGroupBox("Timer", self)
        form = QFormLayout(group)

        for name, label, max_minutes in _DURATION_FIELDS:
            spin = QSpinBox(group)
            spin.setRange(1, max_minutes)
            spin.setSuffix(" min")
            spin.setValue(_minutes_shown(getattr(self._prefs, name)))
            spin.valueChanged.connect(functools.partial(self._on_minutes, name))
            self._minute_spins[name] = spin
            form.addRow(f"{label}:", spin)

        self._cycle_spin = QSpinBox(group)
        self._cycle_spin.setRange(1, 12)
        self._cycle_spin.setValue(self._prefs.sessions_until_long_break)
        self._cycle_spin.valueChanged.connect(self._on_cycle)
        form.addRow("Pomodoros per long break:", self._cycle_spin)

        self._add_checks(form, group, _TIMER_CHECKS)

        note = QLabel("Changing these restarts the long-break countdown.", group)
        note.setWordWrap(True)
        note.setStyleSheet("color: gray; font-size: 11px;")
        form.addRow(note)
        return group

    def _alerts_group(self) -> QGroupBox:
        group = QGroupBox("Alerts", self)
        form = QFormLayout(group)
        self._add_checks(form, group, _ALERT_CHECKS)

        self._vol_slider = QSlider(Qt.Orientation.Horizontal, group)
        self._vol_slider.setRange(0, 100)
        self._vol_slider.setValue(round(self._prefs.volume * 100))
        self._vol_label = QLabel(f"{self._vol_slider.value()}%", group)
        self._vol_slider.valueChanged.connect(self._on_volume)
        form.addRow("Volume:", self._vol_slider)
        form.addRow("", self._vol_label)
        return group

    def _add_checks(
        self, form: QFormLayout, group: QGroupBox, checks: tuple[tuple[str, str], ...]
    ) -> None:
        for name, label in checks:
            box = QCheckBox(label, group)
            box.setChecked(getattr(self._prefs, name))
            box.toggled.connect(functools.partial(self._on_flag, name))
            self._checks[name] = box
            form.addRow(box)

    # ── change handlers ──────────────────────────────────────────────

    def _on_minutes(self, name: str, minutes: int) -> None:
        setattr(self._prefs, name, minutes * 60)
        self._save()

    def _on_cycle(self, value: int) -> None:
        self._prefs.sessions_until_long_break = value
        self._save()

    def _on_flag(self, name: str, checked: bool) -> None:
        setattr(self._prefs, name, checked)
        self._save()

    def _on_volume(self, value: int) -> None:
        self._vol_label.setText(f"{value}%")
        self._prefs.volume = value / 100
        self._save()

    def _save(self) -> None:
        try:
            self._store.save(self._prefs)
        except StorageError as exc:
            logger.error("could not save preferences: %s", exc)
