"""Qt bridge between the backend commands and the widgets.

The engine has no timer of its own.  ``TimerController`` owns a 1 s
``QTimer`` that polls ``check_timer_completion`` and re-emits what it sees as
Qt signals, so widgets only ever react to signals.

Signals
-------
tick(snapshot: TimerSnapshot)
    Emitted on every poll and after every command that returns a snapshot.
state_changed(phase: TimerPhase)
    Emitted when the phase differs from the last published one.
session_completed(snapshot: TimerSnapshot)
    Emitted when a session finished, either because its time ran out
    during a poll or because it was completed by hand.  The snapshot is
    the state after the transition.
command_failed(message: str)
    Emitted when a command returns ``success=False``.
"""

from __future__ import annotations

from typing import Any

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from ..commands import Backend, CommandResult
from ..timer.engine import TimerPhase, TimerSnapshot

POLL_INTERVAL_MS = 1000


class TimerController(QObject):

    tick = pyqtSignal(object)
    state_changed = pyqtSignal(object)
    session_completed = pyqtSignal(object)
    command_failed = pyqtSignal(str)

    def __init__(
        self,
        backend: Backend,
        parent: QObject | None = None,
        *,
        interval_ms: int = POLL_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._backend = backend
        self._last_phase: TimerPhase = TimerPhase.IDLE
        self._last_snapshot: TimerSnapshot | None = None

        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(interval_ms)
        self._qt_timer.timeout.connect(self.poll)

    # ── properties ───────────────────────────────────────────────────

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def phase(self) -> TimerPhase:
        return self._last_phase

    @property
    def snapshot(self) -> TimerSnapshot | None:
        return self._last_snapshot

    @property
    def is_polling(self) -> bool:
        return self._qt_timer.isActive()

    # ── polling ──────────────────────────────────────────────────────

    def start_polling(self) -> None:
        self._qt_timer.start()
        self.poll()

    def stop_polling(self) -> None:
        self._qt_timer.stop()

    def poll(self) -> None:
        result = self._backend.check_timer_completion()
        if not result.success:
            self.command_failed.emit(result.error or "")
            return
        tick_data = result.data
        self._publish(tick_data.timer_data)
        if tick_data.session_completed:
            self.session_completed.emit(tick_data.timer_data)

    # ── controls ─────────────────────────────────────────────────────

    def run(self, name: str, **kwargs: Any) -> CommandResult:
        """Dispatch a backend command and publish any snapshot it returns."""
        result = self._backend.dispatch(name, **kwargs)
        if not result.success:
            self.command_failed.emit(result.error or "")
        elif isinstance(result.data, TimerSnapshot):
            self._publish(result.data)
            if name == "complete_session":
                self.session_completed.emit(result.data)
        return result

    def toggle(self) -> CommandResult:
        """Start, resume or pause depending on the current phase."""
        if self._last_phase in (TimerPhase.IDLE, TimerPhase.PAUSED):
            return self.run("start_timer")
        return self.run("pause_timer")

    def reset(self) -> CommandResult:
        return self.run("reset_timer")

    def skip(self) -> CommandResult:
        """Complete the current session early."""
        return self.run("complete_session")

    # ── internal ─────────────────────────────────────────────────────

    def _publish(self, snapshot: TimerSnapshot) -> None:
        self._last_snapshot = snapshot
        self.tick.emit(snapshot)
        if snapshot.state != self._last_phase:
            self._last_phase = snapshot.state
            self.state_changed.emit(snapshot.state)
