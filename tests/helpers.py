"""Shared test helpers for TaskTimers."""

from tasktimers.models import SoundOption
from tasktimers.notifications import FeedbackGateway, NotificationGateway


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
    """Manually advanced wall clock (epoch seconds)."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNotifier(NotificationGateway):
    def __init__(self, authorized: bool = True):
        self.authorized = authorized
        self.scheduled: list[tuple[str, float]] = []
        self.cancelled = 0
        self.completed: list[str] = []

    def on_session_start(self, task_name, fire_at):
        self.scheduled.append((task_name, fire_at))

    def on_session_pause_or_cancel(self):
        self.cancelled += 1

    def on_session_complete(self, task_name):
        self.completed.append(task_name)

    def authorization_granted(self):
        return self.authorized


class FakeFeedback(FeedbackGateway):
    def __init__(self):
        self.completions: list[SoundOption] = []
        self.alerts = 0

    def play_completion(self, sound):
        self.completions.append(sound)

    def alert(self):
        self.alerts += 1


def first_task(engine):
    """The first catalog entry (Reading Time, 20 min, when seeded)."""
    return engine.catalog[0]
