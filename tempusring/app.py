"""Main application window for Tempus Ring."""

from __future__ import annotations

import logging
from datetime import date

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QCloseEvent
from PyQt6.QtWidgets import (
    QApplication, QHBoxLayout, QLabel, QMainWindow, QProgressBar,
    QPushButton, QStatusBar, QVBoxLayout, QWidget,
)

from .commands import Backend
from .errors import StorageError
from .settings import Preferences
from .timer.engine import TimerPhase, TimerSnapshot
from .ui.controller import TimerController
from .ui.tray import APP_NAME, TrayController, fmt_time

logger = logging.getLogger(__name__)

_STATUS_MESSAGES: dict[TimerPhase, str] = {
    TimerPhase.IDLE: "Ready when you are",
    TimerPhase.WORK: "Focusing...",
    TimerPhase.SHORT_BREAK: "Short break",
    TimerPhase.LONG_BREAK: "Long break",
    TimerPhase.PAUSED: "Paused",
}

_PHASE_TITLES: dict[TimerPhase, str] = {
    TimerPhase.IDLE: "Ready",
    TimerPhase.WORK: "Work",
    TimerPhase.SHORT_BREAK: "Short Break",
    TimerPhase.LONG_BREAK: "Long Break",
    TimerPhase.PAUSED: "Paused",
}


class TempusRingApp(QMainWindow):
    """Main window: phase, countdown, progress and the three controls."""

    def __init__(self, backend: Backend) -> None:
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.setMinimumSize(360, 280)

        self._backend = backend
        self._prefs = self._load_preferences()
        self._controller = TimerController(backend, self)

        # ── central widget ────────────────────────────────────────────
        central = QWidget(self)
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(24, 20, 24, 20)
        layout.setSpacing(12)

        self._phase_label = QLabel(_PHASE_TITLES[TimerPhase.IDLE], central)
        self._phase_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._phase_label.setStyleSheet("font-size: 18px; font-weight: 600;")
        layout.addWidget(self._phase_label)

        self._time_label = QLabel(fmt_time(0), central)
        self._time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._time_label.setStyleSheet("font-size: 48px; font-weight: 700;")
        layout.addWidget(self._time_label)

        self._progress = QProgressBar(central)
        self._progress.setRange(0, 1000)
        self._progress.setTextVisible(False)
        self._progress.setFixedHeight(6)
        layout.addWidget(self._progress)

        self._cycle_label = QLabel("", central)
        self._cycle_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._cycle_label)

        self._today_label = QLabel("", central)
        self._today_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._today_label.setStyleSheet("color: gray;")
        layout.addWidget(self._today_label)
        self._refresh_today()

        buttons = QHBoxLayout()
        self._start_btn = QPushButton("Start", central)
        self._start_btn.clicked.connect(self._controller.toggle)
        self._skip_btn = QPushButton("Skip", central)
        self._skip_btn.clicked.connect(self._controller.skip)
        self._reset_btn = QPushButton("Reset", central)
        self._reset_btn.clicked.connect(self._controller.reset)
        self._settings_btn = QPushButton("⚙", central)
        self._settings_btn.setFixedWidth(36)
        self._settings_btn.clicked.connect(self._open_settings)
        for btn in (self._start_btn, self._skip_btn, self._reset_btn, self._settings_btn):
            buttons.addWidget(btn)
        layout.addLayout(buttons)

        self._status_bar = QStatusBar(self)
        self.setStatusBar(self._status_bar)
        self._status_bar.showMessage(_STATUS_MESSAGES[TimerPhase.IDLE])

        # ── system tray ───────────────────────────────────────────────
        self._tray = TrayController(self._controller, self)
        self._tray.toggle_window_requested.connect(self._toggle_window)
        self._tray.quit_requested.connect(self._quit_app)
        self._tray.show()

        # ── wire signals ──────────────────────────────────────────────
        self._controller.tick.connect(self._on_tick)
        self._controller.state_changed.connect(self._on_state_changed)
        self._controller.session_completed.connect(self._on_session_completed)
        self._controller.command_failed.connect(self._status_bar.showMessage)

    @property
    def controller(self) -> TimerController:
        return self._controller

    def start(self) -> None:
        """Begin polling the backend."""
        self._controller.start_polling()

    # ══════════════════════════════════════════════════════════════════
    #  TIMER SIGNALS
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self, snapshot: TimerSnapshot) -> None:
        self._time_label.setText(fmt_time(snapshot.remaining_time))
        self._progress.setValue(int(snapshot.progress * 1000))
        self._cycle_label.setText(
            f"{snapshot.completed_sessions} done · "
            f"{snapshot.sessions_until_long_break} until long break"
        )

    def _on_state_changed(self, phase: TimerPhase) -> None:
        self._phase_label.setText(_PHASE_TITLES[phase])
        self._status_bar.showMessage(_STATUS_MESSAGES[phase])
        if phase == TimerPhase.IDLE:
            self._start_btn.setText("Start")
        elif phase == TimerPhase.PAUSED:
            self._start_btn.setText("Resume")
        else:
            self._start_btn.setText("Pause")

    def _on_session_completed(self, snapshot: TimerSnapshot) -> None:
        self._refresh_today()
        if self._prefs.sound_enabled:
            QApplication.beep()
        if not self._prefs.notifications_enabled:
            return
        if snapshot.state in (TimerPhase.SHORT_BREAK, TimerPhase.LONG_BREAK):
            self._tray.notify("Nice work!", f"{_PHASE_TITLES[snapshot.state]} started.")
        elif snapshot.state == TimerPhase.WORK:
            self._tray.notify("Break over", "Back to work.")
        else:
            self._tray.notify("Session complete", "Start the next one when ready.")

    def _refresh_today(self) -> None:
        result = self._backend.get_daily_statistics(date.today().isoformat())
        count = result.data.completed_pomodoros if result.success and result.data else 0
        self._today_label.setText(f"Today: {count} pomodoro" + ("" if count == 1 else "s"))

    # ══════════════════════════════════════════════════════════════════
    #  SETTINGS
    # ══════════════════════════════════════════════════════════════════

    def _load_preferences(self) -> Preferences:
        try:
            return self._backend.preferences.load()
        except (StorageError, ValueError) as exc:
            logger.warning("using default preferences: %s", exc)
            return Preferences()

    def _open_settings(self) -> None:
        from .ui.settings_dialog import SettingsDialog

        dlg = SettingsDialog(self._prefs, self._backend.preferences, parent=self)
        dlg.exec()
        self._apply_preferences()

    def _apply_preferences(self) -> None:
        """Push the timer part of the preferences into the engine if it changed."""
        try:
            config = self._prefs.to_timer_config()
        except (TypeError, ValueError) as exc:
            logger.warning("timer settings not applied: %s", exc)
            self._status_bar.showMessage(f"Timer settings not applied: {exc}")
            return
        if config != self._backend.engine.get_config():
            self._controller.run("update_timer_config", config=config)

    # ══════════════════════════════════════════════════════════════════
    #  WINDOW / TRAY
    # ══════════════════════════════════════════════════════════════════

    def _toggle_window(self) -> None:
        if self.isVisible():
            self.hide()
        else:
            self.show()
            self.raise_()
            self.activateWindow()

    def _quit_app(self) -> None:
        self._controller.stop_polling()
        self._tray.hide()
        QApplication.instance().quit()

    def closeEvent(self, event: QCloseEvent) -> None:
        """Closing the window hides it to the tray; quit from the tray menu."""
        event.ignore()
        self.hide()
