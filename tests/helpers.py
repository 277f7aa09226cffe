"""Shared test helpers for Tempus Ring."""

from datetime import datetime


class FakeClock:
    """Manually advanced clock usable as both engine clocks.

    Call it for monotonic seconds, ``wall()`` for Unix seconds and
    ``datetime()`` for a local ``datetime`` on the same timeline.
    """

    def __init__(self, start: float = 1000.0, wall_start: float = 1_700_000_000.0):
        self._start = start
        self._wall_start = wall_start
        self.now = start
        self.fail_next = False

    def __call__(self) -> float:
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("clock exploded")
        return self.now

    def wall(self) -> float:
        return self._wall_start + (self.now - self._start)

    def datetime(self) -> datetime:
        return datetime.fromtimestamp(self.wall())

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()
