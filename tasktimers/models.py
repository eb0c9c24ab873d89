"""Domain models for TaskTimers.

Plain dataclasses and enums shared by the engine, the catalog and the
persistence gateway.  Nothing here touches Qt or the database.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum


# ── enums ─────────────────────────────────────────────────────────────────


class TimerMode(Enum):
    COUNTDOWN = "countdown"
    COUNTUP = "countup"


class AppTheme(Enum):
    SYSTEM = "system"
    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"
    ORANGE = "orange"


class SoundOption(Enum):
    SYSTEM_DEFAULT = "systemDefault"
    CHIME = "chime"
    BELL = "bell"
    TICK = "tick"
    SILENT = "silent"


def decode_enum(enum_cls, raw, default):
    """Return ``enum_cls(raw)``, or *default* for unknown / missing values."""
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError:
        return default


# ── tasks ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Task:
    """A reusable named duration.  Identity is ``id``; names may repeat."""

    name: str
    duration_seconds: int
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def with_changes(self, **changes) -> Task:
        """Edited copy that keeps the same id."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "duration": self.duration_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        """Build a Task from its serialized form.

        Raises ``KeyError`` / ``ValueError`` / ``TypeError`` on malformed
        records; callers decide whether to skip or discard.
        """
        return cls(
            id=uuid.UUID(str(data["id"])),
            name=str(data["name"]),
            duration_seconds=max(0, int(data["duration"])),
        )


# ── pomodoro ──────────────────────────────────────────────────────────────

POMODORO_WORK_NAME = "Pomodoro • Work"
POMODORO_BREAK_NAME = "Pomodoro • Break"


@dataclass
class PomodoroSettings:
    work_seconds: int = 25 * 60
    break_seconds: int = 5 * 60
    cycles: int = 4
    # Whether a break follows the last work segment before the run ends.
    break_after_final_cycle: bool = True

    def to_dict(self) -> dict:
        return {
            "work": self.work_seconds,
            "break": self.break_seconds,
            "cycles": self.cycles,
            "break_after_final_cycle": self.break_after_final_cycle,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PomodoroSettings:
        """Decode, falling back to the default for each missing field."""
        default = cls()
        return cls(
            work_seconds=max(0, int(data.get("work", default.work_seconds))),
            break_seconds=max(0, int(data.get("break", default.break_seconds))),
            cycles=max(1, int(data.get("cycles", default.cycles))),
            break_after_final_cycle=bool(
                data.get("break_after_final_cycle", default.break_after_final_cycle)
            ),
        )


@dataclass(frozen=True)
class PomodoroState:
    """The Pomodoro overlay as observed from outside the engine."""

    active: bool = False
    on_break: bool = False
    cycle: int = 0

    def to_dict(self) -> dict:
        return {"active": self.active, "on_break": self.on_break, "cycle": self.cycle}

    @classmethod
    def from_dict(cls, data: dict) -> PomodoroState:
        return cls(
            active=bool(data.get("active", False)),
            on_break=bool(data.get("on_break", False)),
            cycle=max(0, int(data.get("cycle", 0))),
        )


# ── snapshots ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SessionSnapshot:
    """Durable copy of the live session, as written to the key-value store."""

    task_id: uuid.UUID
    task_name: str
    task_duration: int
    total_duration: int
    end_at: float
    mode: TimerMode
    paused: bool
    # None when the displayed time was never stored.
    display: int | None
    pomodoro: PomodoroState = PomodoroState()


@dataclass(frozen=True)
class TimerSnapshot:
    """Read-only view of the engine for the UI layer."""

    displayed_time: int
    is_running: bool
    is_paused: bool
    mode: TimerMode
    progress: float
    pomodoro: PomodoroState
    task_name: str | None = None
