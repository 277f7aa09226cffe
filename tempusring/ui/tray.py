"""System tray icon and menu."""

from __future__ import annotations

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QColor, QIcon, QImage, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import QMenu, QSystemTrayIcon, QWidget

from ..timer.engine import TimerPhase, TimerSnapshot
from .controller import TimerController

APP_NAME = "Tempus Ring"

_PHASE_LABELS: dict[TimerPhase, str] = {
    TimerPhase.WORK: "Work",
    TimerPhase.SHORT_BREAK: "Short Break",
    TimerPhase.LONG_BREAK: "Long Break",
    TimerPhase.PAUSED: "Paused",
}


def fmt_time(seconds: int) -> str:
    m, s = divmod(max(0, seconds), 60)
    return f"{m}:{s:02d}"


def tooltip_for(snapshot: TimerSnapshot | None) -> str:
    if snapshot is None or snapshot.state == TimerPhase.IDLE:
        return f"{APP_NAME} - Timer Ready"
    label = _PHASE_LABELS[snapshot.state]
    return f"{APP_NAME} - {label}: {fmt_time(snapshot.remaining_time)}"


def toggle_label(phase: TimerPhase) -> str:
    if phase == TimerPhase.IDLE:
        return "Start Timer"
    if phase == TimerPhase.PAUSED:
        return "Resume Timer"
    return "Pause Timer"


def make_tray_icon(phase: TimerPhase) -> QIcon:
    """Generate a monochrome tray icon.

    - IDLE:        thin circle outline
    - WORK:        filled circle
    - SHORT/LONG:  thin circle with small dot in centre
    - PAUSED:      two vertical pause bars
    """
    size = 64
    img = QImage(size, size, QImage.Format.Format_ARGB32_Premultiplied)
    img.fill(Qt.GlobalColor.transparent)
    p = QPainter(img)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    colour = QColor(0, 0, 0, 220)
    p.setPen(Qt.PenStyle.NoPen)
    p.setBrush(colour)

    cx, cy, r = size // 2, size // 2, size // 2 - 4

    if phase == TimerPhase.WORK:
        p.drawEllipse(cx - r, cy - r, r * 2, r * 2)
    elif phase == TimerPhase.PAUSED:
        bar_w, bar_h, gap = 8, 28, 6
        y = cy - bar_h // 2
        p.drawRoundedRect(cx - gap - bar_w, y, bar_w, bar_h, 3, 3)
        p.drawRoundedRect(cx + gap, y, bar_w, bar_h, 3, 3)
    else:
        p.setPen(QPen(colour, 4))
        p.setBrush(Qt.BrushStyle.NoBrush)
        p.drawEllipse(cx - r, cy - r, r * 2, r * 2)
        if phase in (TimerPhase.SHORT_BREAK, TimerPhase.LONG_BREAK):
            p.setPen(Qt.PenStyle.NoPen)
            p.setBrush(colour)
            dot_r = 6
            p.drawEllipse(cx - dot_r, cy - dot_r, dot_r * 2, dot_r * 2)

    p.end()
    img.setDevicePixelRatio(2.0)
    return QIcon(QPixmap.fromImage(img))


class TrayController(QObject):
    """Tray icon whose menu drives the timer through a TimerController.

    Left-click toggles the main window; the menu offers start/pause,
    reset, show/hide and quit.
    """

    toggle_window_requested = pyqtSignal()
    quit_requested = pyqtSignal()

    def __init__(self, controller: TimerController, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._controller = controller

        self._icon = QSystemTrayIcon(parent)
        self._icon.setIcon(make_tray_icon(TimerPhase.IDLE))
        self._icon.setToolTip(tooltip_for(None))
        self._icon.activated.connect(self._on_activated)

        menu = QMenu(parent)
        self._start_pause_action = menu.addAction(toggle_label(TimerPhase.IDLE))
        self._start_pause_action.triggered.connect(self._controller.toggle)
        self._reset_action = menu.addAction("Reset Timer")
        self._reset_action.triggered.connect(self._controller.reset)
        menu.addSeparator()
        show_hide = menu.addAction("Show/Hide Window")
        show_hide.triggered.connect(lambda: self.toggle_window_requested.emit())
        quit_action = menu.addAction(f"Quit {APP_NAME}")
        quit_action.triggered.connect(lambda: self.quit_requested.emit())
        self._menu = menu
        self._icon.setContextMenu(menu)

        controller.tick.connect(self._on_tick)
        controller.state_changed.connect(self._on_state_changed)

    @property
    def icon(self) -> QSystemTrayIcon:
        return self._icon

    @property
    def start_pause_text(self) -> str:
        return self._start_pause_action.text()

    def show(self) -> None:
        self._icon.show()

    def hide(self) -> None:
        self._icon.hide()

    def notify(self, title: str, body: str) -> None:
        self._icon.showMessage(title, body)

    def _on_tick(self, snapshot: TimerSnapshot) -> None:
        self._icon.setToolTip(tooltip_for(snapshot))

    def _on_state_changed(self, phase: TimerPhase) -> None:
        self._icon.setIcon(make_tray_icon(phase))
        self._start_pause_action.setText(toggle_label(phase))

    def _on_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.toggle_window_requested.emit()
