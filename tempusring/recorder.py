"""Copies finished timer sessions into the statistics store.

The engine never talks to storage.  Instead the command layer shows the
recorder every snapshot it hands out; the recorder remembers the session in
progress and, when told that session finished or was abandoned, folds it into
that day's :class:`TimerStatistic`.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from .timer.engine import Session, TimerPhase, TimerSnapshot
from .storage.statistics import SessionData, StatisticsStore, TimerStatistic

logger = logging.getLogger(__name__)


class SessionRecorder:
    def __init__(
        self,
        store: StatisticsStore,
        *,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._now = now
        self._active: Session | None = None
        self._lock = threading.Lock()

    @property
    def active_session(self) -> Session | None:
        return self._active

    def observe(self, snapshot: TimerSnapshot) -> None:
        """Track whichever session the snapshot says is in progress."""
        with self._lock:
            self._active = snapshot.current_session

    def session_finished(self, snapshot: TimerSnapshot) -> None:
        """The tracked session ran to completion; ``snapshot`` is the state after."""
        self._finish(snapshot, completed=True)

    def session_abandoned(self, snapshot: TimerSnapshot) -> None:
        """The tracked session was reset before completing."""
        self._finish(snapshot, completed=False)

    # ── internal ─────────────────────────────────────────────────────

    def _finish(self, snapshot: TimerSnapshot, *, completed: bool) -> None:
        with self._lock:
            finished = self._active
            self._active = snapshot.current_session
            if finished is None:
                return
            self._record(finished, completed)

    def _record(self, session: Session, completed: bool) -> None:
        start = datetime.fromtimestamp(session.start_time)
        end = self._now()
        duration = max(0, int((end - start).total_seconds()))
        day = start.date().isoformat()

        stat = self._store.get(day) or TimerStatistic(id=f"stat_{day}", date=day)
        stat.sessions.append(SessionData(
            start_time=start.isoformat(timespec="seconds"),
            end_time=end.isoformat(timespec="seconds"),
            session_type=session.session_type.value,
            completed=completed,
        ))
        if completed:
            if session.session_type == TimerPhase.WORK:
                stat.completed_pomodoros += 1
                stat.total_work_time += duration
            else:
                stat.total_break_time += duration

        self._store.append(stat)
        logger.debug(
            "recorded %s session %s (completed=%s, %ds)",
            session.session_type.value, session.id, completed, duration,
        )
