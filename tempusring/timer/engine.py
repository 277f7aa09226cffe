"""Timer state machine for Tempus Ring.

States
------
IDLE          Nothing running, no session.
WORK          Work session counting down.
SHORT_BREAK   Short break counting down.
LONG_BREAK    Long break counting down.
PAUSED        Frozen; the session remembers which phase it belongs to.

Transitions
-----------
IDLE → WORK                                  (start)
WORK | SHORT_BREAK | LONG_BREAK → PAUSED     (pause)
PAUSED → {session's phase}                   (start)
WORK → SHORT_BREAK | LONG_BREAK | IDLE       (complete)
SHORT_BREAK | LONG_BREAK → WORK | IDLE       (complete)
Any → IDLE                                   (reset)

Nothing ticks in here.  Remaining time and progress are recomputed from
clock instants on every call, and a finished countdown only turns into a
transition when someone calls ``complete_session()`` or polls
``check_if_completed()``.

Every public method is one critical section on a single lock and returns an
immutable snapshot, so callers on other threads never see half-applied state.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, asdict, fields, replace
from enum import Enum
from typing import Any, Callable, Iterator

from ..errors import IllegalTransition, InternalLockFailure

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


# ── enums ─────────────────────────────────────────────────────────────────


class TimerPhase(Enum):
    IDLE = "idle"
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"
    PAUSED = "paused"


SESSION_PHASES: tuple[TimerPhase, ...] = (
    TimerPhase.WORK,
    TimerPhase.SHORT_BREAK,
    TimerPhase.LONG_BREAK,
)


# ── constants ─────────────────────────────────────────────────────────────

DEFAULT_WORK_DURATION = 25 * 60
DEFAULT_SHORT_BREAK_DURATION = 5 * 60
DEFAULT_LONG_BREAK_DURATION = 15 * 60
DEFAULT_SESSIONS_UNTIL_LONG_BREAK = 4


# ── value objects ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerConfig:
    """Durations (seconds) and auto-start policy.  Replaced wholesale."""

    work_duration: int = DEFAULT_WORK_DURATION
    short_break_duration: int = DEFAULT_SHORT_BREAK_DURATION
    long_break_duration: int = DEFAULT_LONG_BREAK_DURATION
    sessions_until_long_break: int = DEFAULT_SESSIONS_UNTIL_LONG_BREAK
    auto_start_breaks: bool = False
    auto_start_pomodoros: bool = False

    def __post_init__(self) -> None:
        for name in ("work_duration", "short_break_duration", "long_break_duration"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.sessions_until_long_break < 1:
            raise ValueError(
                "sessions_until_long_break must be at least 1, "
                f"got {self.sessions_until_long_break}"
            )

    def duration_for(self, phase: TimerPhase) -> int:
        """Configured seconds for a session phase; 0 for IDLE and PAUSED."""
        if phase == TimerPhase.WORK:
            return self.work_duration
        if phase == TimerPhase.SHORT_BREAK:
            return self.short_break_duration
        if phase == TimerPhase.LONG_BREAK:
            return self.long_break_duration
        return 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerConfig:
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_keys})


@dataclass(frozen=True)
class Session:
    """One timed work or break interval."""

    id: str
    start_time: int  # Unix seconds
    session_type: TimerPhase
    end_time: int | None = None
    completed: bool = False

    def __post_init__(self) -> None:
        if self.session_type not in SESSION_PHASES:
            raise ValueError(f"not a session phase: {self.session_type.value}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "session_type": self.session_type.value,
            "completed": self.completed,
        }


@dataclass(frozen=True)
class TimerSnapshot:
    """What every state-returning engine call hands back."""

    state: TimerPhase
    current_session: Session | None
    remaining_time: int  # whole seconds
    progress: float  # 0.0 → 1.0
    completed_sessions: int
    sessions_until_long_break: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "current_session": (
                self.current_session.to_dict() if self.current_session else None
            ),
            "remaining_time": self.remaining_time,
            "progress": self.progress,
            "completed_sessions": self.completed_sessions,
            "sessions_until_long_break": self.sessions_until_long_break,
        }


@dataclass
class _EngineState:
    config: TimerConfig
    sessions_until_long_break: int
    current_phase: TimerPhase = TimerPhase.IDLE
    phase_start: float | None = None
    pause_start: float | None = None
    paused_duration: float = 0.0
    current_session: Session | None = None
    completed_sessions: int = 0


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine:
    """Lock-guarded Pomodoro state machine.

    ``clock`` returns monotonic seconds and drives all elapsed-time math;
    ``wall_clock`` returns Unix seconds and only stamps sessions.  Tests pass
    fakes for both.
    """

    def __init__(
        self,
        config: TimerConfig | None = None,
        *,
        clock: Clock = time.monotonic,
        wall_clock: Clock = time.time,
    ) -> None:
        config = config or TimerConfig()
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.Lock()
        self._poisoned = False
        self._state = _EngineState(
            config=config,
            sessions_until_long_break=config.sessions_until_long_break,
        )

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self) -> TimerSnapshot:
        """Start a work session from IDLE, or resume from PAUSED."""
        with self._locked() as st:
            now = self._clock()
            previous = st.current_phase
            if previous == TimerPhase.IDLE:
                self._begin_phase(st, TimerPhase.WORK, now)
            elif previous == TimerPhase.PAUSED:
                if st.current_session is None:
                    self._begin_phase(st, TimerPhase.WORK, now)
                else:
                    if st.pause_start is not None:
                        st.paused_duration += now - st.pause_start
                    st.pause_start = None
                    st.current_phase = st.current_session.session_type
            else:
                raise IllegalTransition(
                    f"Cannot start timer in current state: {previous.value}"
                )
            snapshot = self._snapshot(st, now)

        logger.debug("start: %s -> %s", previous.value, snapshot.state.value)
        return snapshot

    def pause(self) -> TimerSnapshot:
        with self._locked() as st:
            if st.current_phase not in SESSION_PHASES:
                raise IllegalTransition(
                    f"Cannot pause timer in current state: {st.current_phase.value}"
                )
            now = self._clock()
            previous = st.current_phase
            st.current_phase = TimerPhase.PAUSED
            st.pause_start = now
            snapshot = self._snapshot(st, now)

        logger.debug("pause: %s -> paused", previous.value)
        return snapshot

    def reset(self) -> TimerSnapshot:
        """Abandon the current session.  Lifetime counters are kept."""
        with self._locked() as st:
            previous = st.current_phase
            self._enter_idle(st)
            snapshot = self._snapshot(st, self._clock())

        logger.debug("reset: %s -> idle", previous.value)
        return snapshot

    def complete_session(self) -> TimerSnapshot:
        """Finish the current session now and move to the next phase."""
        with self._locked() as st:
            now = self._clock()
            previous = st.current_phase
            finished = self._complete(st, now)
            snapshot = self._snapshot(st, now)

        self._log_completion(previous, finished, snapshot)
        return snapshot

    def check_if_completed(self) -> TimerSnapshot | None:
        """Complete the running session if its time is up.

        Meant to be polled by the front end.  Returns the post-transition
        snapshot when a session finished during this call, else ``None``.
        The check and the completion happen under one lock acquisition.
        """
        with self._locked() as st:
            if st.current_phase not in SESSION_PHASES:
                return None
            now = self._clock()
            duration = st.config.duration_for(st.current_phase)
            if self._elapsed(st, now) < duration:
                return None
            previous = st.current_phase
            finished = self._complete(st, now)
            snapshot = self._snapshot(st, now)

        self._log_completion(previous, finished, snapshot)
        return snapshot

    # ══════════════════════════════════════════════════════════════════
    #  QUERIES / CONFIG
    # ══════════════════════════════════════════════════════════════════

    def get_state(self) -> TimerSnapshot:
        with self._locked() as st:
            return self._snapshot(st, self._clock())

    def update_config(self, config: TimerConfig) -> TimerSnapshot:
        """Replace the config.

        The long-break countdown restarts at the new cycle length even in
        the middle of a cycle.
        """
        with self._locked() as st:
            st.config = config
            st.sessions_until_long_break = config.sessions_until_long_break
            snapshot = self._snapshot(st, self._clock())

        logger.debug("config updated: %s", config)
        return snapshot

    def get_config(self) -> TimerConfig:
        with self._locked() as st:
            return st.config

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    @contextmanager
    def _locked(self) -> Iterator[_EngineState]:
        with self._lock:
            if self._poisoned:
                raise InternalLockFailure(
                    "Lock error: timer state poisoned by an earlier failure"
                )
            try:
                yield self._state
            except IllegalTransition:
                raise
            except Exception:
                self._poisoned = True
                raise

    def _begin_phase(self, st: _EngineState, phase: TimerPhase, now: float) -> None:
        st.current_phase = phase
        st.phase_start = now
        st.pause_start = None
        st.paused_duration = 0.0
        st.current_session = Session(
            id=f"{phase.value}_{uuid.uuid4().hex}",
            start_time=int(self._wall_clock()),
            session_type=phase,
        )

    @staticmethod
    def _enter_idle(st: _EngineState) -> None:
        st.current_phase = TimerPhase.IDLE
        st.phase_start = None
        st.pause_start = None
        st.paused_duration = 0.0
        st.current_session = None

    def _complete(self, st: _EngineState, now: float) -> Session | None:
        finished = st.current_session
        if finished is not None:
            finished = replace(
                finished, completed=True, end_time=int(self._wall_clock()),
            )
            if finished.session_type == TimerPhase.WORK:
                st.completed_sessions += 1
                st.sessions_until_long_break -= 1

        cycle_done = st.sessions_until_long_break <= 0
        if cycle_done:
            st.sessions_until_long_break = st.config.sessions_until_long_break

        if st.current_phase == TimerPhase.WORK:
            next_phase = TimerPhase.LONG_BREAK if cycle_done else TimerPhase.SHORT_BREAK
        elif st.current_phase in (TimerPhase.SHORT_BREAK, TimerPhase.LONG_BREAK):
            next_phase = TimerPhase.WORK
        else:
            next_phase = TimerPhase.IDLE

        config = st.config
        auto_start = config.auto_start_breaks or (
            next_phase == TimerPhase.WORK and config.auto_start_pomodoros
        )
        if next_phase != TimerPhase.IDLE and auto_start:
            self._begin_phase(st, next_phase, now)
        else:
            self._enter_idle(st)
        return finished

    @staticmethod
    def _elapsed(st: _EngineState, now: float) -> int:
        """Whole seconds of un-paused time in the current phase."""
        if st.phase_start is None:
            return 0
        until = st.pause_start if st.pause_start is not None else now
        return max(0, int(until - st.phase_start - st.paused_duration))

    def _snapshot(self, st: _EngineState, now: float) -> TimerSnapshot:
        basis = st.current_phase
        if basis == TimerPhase.PAUSED and st.current_session is not None:
            basis = st.current_session.session_type
        duration = st.config.duration_for(basis)

        if st.phase_start is None or duration <= 0:
            remaining, progress = 0, 0.0
        else:
            elapsed = self._elapsed(st, now)
            if elapsed >= duration:
                remaining, progress = 0, 1.0
            else:
                remaining, progress = duration - elapsed, elapsed / duration

        return TimerSnapshot(
            state=st.current_phase,
            current_session=st.current_session,
            remaining_time=remaining,
            progress=progress,
            completed_sessions=st.completed_sessions,
            sessions_until_long_break=st.sessions_until_long_break,
        )

    @staticmethod
    def _log_completion(
        previous: TimerPhase, finished: Session | None, snapshot: TimerSnapshot
    ) -> None:
        logger.info(
            "session completed: %s (%s) -> %s, completed=%d, until_long_break=%d",
            previous.value,
            finished.id if finished else "no session",
            snapshot.state.value,
            snapshot.completed_sessions,
            snapshot.sessions_until_long_break,
        )
