"""Shared test helpers for TicTask."""

from tictask.timer.engine import TimerEngine

T0 = 1_700_000_000_000  # 2023-11-14, epoch ms


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


class FakeClock:
    """Controllable epoch-millisecond clock for the engine."""

    def __init__(self, start_ms: int):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        self.now += int(seconds * 1000) + ms


class RecordingNotifier:
    """Collects ``(title, message)`` notifications."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def __call__(self, title: str, message: str) -> None:
        self.sent.append((title, message))

    @property
    def titles(self) -> list[str]:
        return [title for title, _ in self.sent]


def run_out(engine: TimerEngine, clock: FakeClock) -> None:
    """Let the current countdown run to zero and reconcile once."""
    clock.advance(engine.state.time_remaining)
    engine._on_tick()


def complete_focus(engine: TimerEngine, clock: FakeClock, task_id=None) -> None:
    """Start a focus session and run it to completion."""
    engine.start(task_id)
    run_out(engine, clock)
