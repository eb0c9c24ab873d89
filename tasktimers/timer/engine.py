"""Timer state machine for TaskTimers.

States
------
IDLE      No session.
RUNNING   A session is counting (down or up).
PAUSED    A session is held; no clock is advancing.

Transitions
-----------
IDLE | RUNNING | PAUSED → RUNNING          (start / start_pomodoro)
RUNNING → PAUSED                           (pause)
PAUSED → RUNNING                           (resume)
RUNNING | PAUSED → IDLE                    (cancel)
RUNNING → IDLE, or next Pomodoro segment   (time runs out)

Time keeping
------------
Elapsed and remaining time are always derived from the wall clock and the
``end_at`` timestamp, never by counting ticks.  The one-second ``QTimer``
only triggers a recomputation, so the engine stays correct after the
process has been suspended for any length of time.  The timer is owned
by the engine and delivered by the Qt event loop on the engine's thread,
which serializes ticks with user commands.

Every public command is a silent no-op when it does not apply to the
current state.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime
from enum import Enum
from typing import Callable

from PyQt6.QtCore import QObject, Qt, QTimer, pyqtSignal

from ..catalog import TaskCatalog
from ..database.gateway import PersistenceGateway
from ..models import (
    POMODORO_BREAK_NAME,
    POMODORO_WORK_NAME,
    AppTheme,
    PomodoroSettings,
    PomodoroState,
    SessionSnapshot,
    SoundOption,
    Task,
    TimerMode,
    TimerSnapshot,
)
from ..notifications import FeedbackGateway, NotificationGateway
from ..settings import Settings

logger = logging.getLogger(__name__)


# ── enums ─────────────────────────────────────────────────────────────────


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


# ── constants ─────────────────────────────────────────────────────────────

TICK_INTERVAL_MS = 1000


def _whole_seconds(interval: float) -> int:
    """Floor to whole seconds, ignoring sub-millisecond float noise."""
    return math.floor(round(interval, 3))


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine(QObject):
    """Owns the single live session and the Pomodoro overlay.

    Signals
    -------
    display_changed(seconds: int)
        The displayed time changed (remaining for countdown, elapsed for
        count-up).
    state_changed(new_state: TimerState)
        Emitted on every transition.
    pomodoro_changed(state: PomodoroState)
        Emitted when the Pomodoro overlay changes.
    session_completed(data: dict)
        Emitted when a task (or a whole Pomodoro run) finishes while the
        engine is live.  Keys: ``task_id``, ``task_name``,
        ``duration_seconds``, ``mode``, ``pomodoro_cycles``,
        ``completed_at``.
    """

    display_changed = pyqtSignal(int)
    state_changed = pyqtSignal(object)
    pomodoro_changed = pyqtSignal(object)
    session_completed = pyqtSignal(object)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        gateway: PersistenceGateway | None = None,
        catalog: TaskCatalog | None = None,
        notifier: NotificationGateway | None = None,
        feedback: FeedbackGateway | None = None,
        clock: Callable[[], float] = time.time,
        legacy_name_lookup: bool = True,
    ) -> None:
        super().__init__(parent)

        # ── collaborators ─────────────────────────────────────────────
        self._gateway = gateway or PersistenceGateway()
        self._notifier = notifier or NotificationGateway()
        self._feedback = feedback or FeedbackGateway()
        self._clock = clock
        self._legacy_name_lookup = legacy_name_lookup

        # ── preferences & catalog ─────────────────────────────────────
        self._settings: Settings = self._gateway.read_settings() or Settings()
        self._catalog = (
            catalog if catalog is not None
            else TaskCatalog(self._gateway, parent=self)
        )

        # ── session ───────────────────────────────────────────────────
        self._task: Task | None = None
        self._mode: TimerMode = self._settings.timer_mode
        self._display: int = 0
        self._total: int = 0
        self._started_at: float | None = None
        self._end_at: float | None = None
        self._paused_elapsed: int = 0
        self._is_running: bool = False
        self._is_paused: bool = False

        # ── pomodoro overlay ──────────────────────────────────────────
        self._pomodoro_active: bool = False
        self._on_break: bool = False
        self._cycle: int = 0

        # ── Qt timer ──────────────────────────────────────────────────
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(TICK_INTERVAL_MS)
        self._qt_timer.timeout.connect(self.tick)

        self._restore()

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def state(self) -> TimerState:
        if not self._is_running:
            return TimerState.IDLE
        return TimerState.PAUSED if self._is_paused else TimerState.RUNNING

    @property
    def is_running(self) -> bool:
        """True while a session exists, paused or not."""
        return self._is_running

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def display(self) -> int:
        """Seconds shown to the user."""
        return self._display

    @property
    def total_duration(self) -> int:
        """Session length in seconds, including adjustments."""
        return self._total

    @property
    def elapsed(self) -> int:
        return self._elapsed_seconds()

    @property
    def remaining(self) -> int:
        if not self._is_running:
            return 0
        return max(0, self._total - self._elapsed_seconds())

    @property
    def started_at(self) -> float | None:
        """When the current run segment began (reset on every resume)."""
        return self._started_at

    @property
    def end_at(self) -> float | None:
        return self._end_at

    @property
    def current_task(self) -> Task | None:
        return self._task

    @property
    def progress(self) -> float:
        """0.0 → 1.0 progress through the current session."""
        if self._total <= 0:
            return 0.0
        return min(1.0, max(0.0, self._elapsed_seconds() / self._total))

    @property
    def is_pomodoro_active(self) -> bool:
        return self._pomodoro_active

    @property
    def is_on_break(self) -> bool:
        return self._on_break

    @property
    def current_cycle(self) -> int:
        return self._cycle

    @property
    def pomodoro_state(self) -> PomodoroState:
        return PomodoroState(
            active=self._pomodoro_active,
            on_break=self._on_break,
            cycle=self._cycle,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def catalog(self) -> TaskCatalog:
        return self._catalog

    @property
    def is_ticking(self) -> bool:
        return self._qt_timer.isActive()

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            displayed_time=self._display,
            is_running=self._is_running,
            is_paused=self._is_paused,
            mode=self._mode,
            progress=self.progress,
            pomodoro=self.pomodoro_state,
            task_name=self._task.name if self._task else None,
        )

    def formatted_time(self) -> str:
        hours, rest = divmod(self._display, 3600)
        minutes, seconds = divmod(rest, 60)
        if hours > 0:
            return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
        return f"{minutes:02d}:{seconds:02d}"

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self, task: Task) -> None:
        """Start timing a copy of *task*, replacing any current session."""
        self._set_pomodoro(active=False, on_break=False, cycle=0)
        self._gateway.write_last_task_name(task.name)
        self._configure(task.with_changes())

    def start_pomodoro(self) -> None:
        """Start a Pomodoro run at work segment 1."""
        self._set_pomodoro(active=True, on_break=False, cycle=1)
        self._configure(self._work_task())

    def pause(self) -> None:
        if not self._is_running or self._is_paused:
            return
        now = self._clock()
        if self._end_at is not None and _whole_seconds(self._end_at - now) <= 0:
            # Ran out before the next tick; nothing left to hold.
            self.complete()
            return
        elapsed = self._elapsed_seconds()
        self._display = self._display_for(elapsed)
        self._paused_elapsed = elapsed
        self._end_at = now + max(0, self._total - elapsed)
        self._qt_timer.stop()
        self._is_paused = True
        self._notify("on_session_pause_or_cancel")
        self._persist()
        logger.debug("Paused with %ds elapsed", elapsed)
        self.display_changed.emit(self._display)
        self.state_changed.emit(TimerState.PAUSED)

    def resume(self) -> None:
        if not self._is_running or not self._is_paused:
            return
        now = self._clock()
        self._end_at = now + max(0, self._total - self._paused_elapsed)
        self._started_at = now
        self._is_paused = False
        self._persist()
        self._notify("on_session_start", self._task_name(), self._end_at)
        self._restart_ticking()
        self.state_changed.emit(TimerState.RUNNING)

    def cancel(self) -> None:
        """Drop the session.  A second call finds nothing to clear."""
        if not self._is_running:
            return
        logger.debug("Cancelled %s", self._task_name())
        self._reset()

    def adjust_time(self, seconds: int) -> None:
        """Add (or remove) *seconds* from the session length.

        The new length never drops below one second past the time already
        elapsed, so an adjustment can't finish the timer by itself.
        """
        if not self._is_running or self._task is None:
            return
        elapsed = self._elapsed_seconds()
        self._total = max(elapsed + 1, self._total + seconds)
        remaining = max(0, self._total - elapsed)
        self._end_at = self._clock() + remaining
        self._display = self._display_for(elapsed)
        self._persist()
        if not self._is_paused:
            self._notify("on_session_start", self._task_name(), self._end_at)
        self.display_changed.emit(self._display)

    def tick(self) -> None:
        """Recompute the display from the clock; finish if time is up."""
        if not self._is_running or self._is_paused or self._end_at is None:
            return
        seconds = _whole_seconds(self._end_at - self._clock())
        if seconds <= 0:
            self.complete()
            return
        self._display = self._display_for(self._total - seconds)
        self.display_changed.emit(self._display)

    def recompute_from_clock(self) -> None:
        """One-shot catch-up, e.g. when the application returns to the
        foreground after being suspended."""
        self.tick()

    def on_application_state_changed(self, state: Qt.ApplicationState) -> None:
        """Slot for ``QGuiApplication.applicationStateChanged``."""
        if state == Qt.ApplicationState.ApplicationActive:
            self.recompute_from_clock()

    def complete(self) -> None:
        """Finish the current segment now.  Only a running (not paused)
        session can complete."""
        if not self._is_running or self._is_paused:
            return
        if self._task is None:
            self._reset()
            return
        if self._pomodoro_active:
            self._advance_pomodoro()
            return
        self._finish()

    # ══════════════════════════════════════════════════════════════════
    #  PREFERENCES
    # ══════════════════════════════════════════════════════════════════

    def toggle_mode(self, count_up: bool) -> None:
        mode = TimerMode.COUNTUP if count_up else TimerMode.COUNTDOWN
        self._settings.timer_mode = mode
        self._gateway.write_settings(self._settings)
        if self._mode == mode:
            return
        self._mode = mode
        if self._is_running:
            self._display = self._display_for(self._elapsed_seconds())
            self._persist()
            self.display_changed.emit(self._display)

    def update_theme(self, theme: AppTheme) -> None:
        self._settings.theme = theme
        self._gateway.write_settings(self._settings)

    def update_sound(self, sound: SoundOption) -> None:
        self._settings.sound = sound
        self._gateway.write_settings(self._settings)

    def update_pomodoro(
        self,
        work: int,
        break_time: int,
        cycles: int,
        break_after_final_cycle: bool | None = None,
    ) -> None:
        """Replace the Pomodoro settings.  A run in progress keeps its
        current segment and picks the new values up at the next one."""
        if break_after_final_cycle is None:
            break_after_final_cycle = self._settings.pomodoro.break_after_final_cycle
        self._settings.pomodoro = PomodoroSettings(
            work_seconds=max(0, int(work)),
            break_seconds=max(0, int(break_time)),
            cycles=max(1, int(cycles)),
            break_after_final_cycle=break_after_final_cycle,
        )
        self._gateway.write_settings(self._settings)

    def last_used_task_name(self) -> str | None:
        return self._gateway.read_last_task_name()

    def start_last_task_if_available(self) -> None:
        name = self.last_used_task_name()
        if name is None:
            return
        task = self._catalog.find_by_name(name)
        if task is not None:
            self.start(task)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — timer mechanics
    # ══════════════════════════════════════════════════════════════════

    def _configure(self, task: Task) -> None:
        now = self._clock()
        self._task = task
        self._mode = self._settings.timer_mode
        self._total = max(0, task.duration_seconds)
        self._display = self._display_for(0)
        self._is_running = True
        self._is_paused = False
        self._started_at = now
        self._end_at = now + self._total
        self._paused_elapsed = 0
        self._persist()
        self._notify("on_session_start", task.name, self._end_at)
        self._restart_ticking()
        logger.debug("Started %s for %ds", task.name, self._total)
        self.display_changed.emit(self._display)
        self.state_changed.emit(TimerState.RUNNING)

    def _restart_ticking(self) -> None:
        self._qt_timer.stop()
        self._qt_timer.start()

    def _elapsed_seconds(self) -> int:
        if self._total <= 0:
            return 0
        if self._is_paused:
            return min(self._total, max(0, self._paused_elapsed))
        if self._end_at is None:
            return 0
        remaining = max(0, _whole_seconds(self._end_at - self._clock()))
        return max(0, self._total - remaining)

    def _display_for(self, elapsed: int) -> int:
        elapsed = min(self._total, max(0, elapsed))
        if self._mode == TimerMode.COUNTDOWN:
            return self._total - elapsed
        return elapsed

    def _task_name(self) -> str:
        return self._task.name if self._task else "Timer"

    def _finish(self) -> None:
        """Clear the session and fire completion feedback."""
        task = self._task
        data = {
            "task_id": task.id,
            "task_name": task.name,
            "duration_seconds": self._total,
            "mode": self._mode.value,
            "pomodoro_cycles": self._cycle if self._pomodoro_active else 0,
            "completed_at": datetime.now(),
        }
        self._reset()
        logger.info("Completed %s", task.name)

        self._play("play_completion", self._settings.sound)
        self._notify("on_session_complete", task.name)
        if not self._notify("authorization_granted"):
            self._play("alert")
        self.session_completed.emit(data)

    def _reset(self) -> None:
        self._qt_timer.stop()
        self._task = None
        self._display = 0
        self._total = 0
        self._started_at = None
        self._end_at = None
        self._paused_elapsed = 0
        self._is_running = False
        self._is_paused = False
        self._set_pomodoro(active=False, on_break=False, cycle=0)
        self._notify("on_session_pause_or_cancel")
        self._gateway.clear_session_snapshot()
        self.display_changed.emit(0)
        self.state_changed.emit(TimerState.IDLE)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — pomodoro
    # ══════════════════════════════════════════════════════════════════

    def _advance_pomodoro(self) -> None:
        pomodoro = self._settings.pomodoro
        if self._on_break:
            if self._cycle >= pomodoro.cycles:
                self._finish()
                return
            self._set_pomodoro(active=True, on_break=False, cycle=self._cycle + 1)
            self._configure(self._work_task())
        else:
            if not pomodoro.break_after_final_cycle and self._cycle >= pomodoro.cycles:
                self._finish()
                return
            self._set_pomodoro(active=True, on_break=True, cycle=self._cycle)
            self._configure(self._break_task())

    def _work_task(self) -> Task:
        return Task(name=POMODORO_WORK_NAME,
                    duration_seconds=self._settings.pomodoro.work_seconds)

    def _break_task(self) -> Task:
        return Task(name=POMODORO_BREAK_NAME,
                    duration_seconds=self._settings.pomodoro.break_seconds)

    def _set_pomodoro(self, *, active: bool, on_break: bool, cycle: int) -> None:
        changed = (active, on_break, cycle) != (
            self._pomodoro_active, self._on_break, self._cycle,
        )
        self._pomodoro_active = active
        self._on_break = on_break
        self._cycle = cycle
        if changed:
            self.pomodoro_changed.emit(self.pomodoro_state)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — collaborators
    # ══════════════════════════════════════════════════════════════════

    def _notify(self, method: str, *args):
        """Call the notifier; a failing notifier never breaks the timer."""
        try:
            return getattr(self._notifier, method)(*args)
        except Exception:
            logger.exception("Notifier %s failed", method)
            return None

    def _play(self, method: str, *args) -> None:
        try:
            getattr(self._feedback, method)(*args)
        except Exception:
            logger.exception("Feedback %s failed", method)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — persistence
    # ══════════════════════════════════════════════════════════════════

    def _persist(self) -> None:
        if self._task is None or self._end_at is None:
            return
        self._gateway.write_session_snapshot(SessionSnapshot(
            task_id=self._task.id,
            task_name=self._task.name,
            task_duration=self._task.duration_seconds,
            total_duration=self._total,
            end_at=self._end_at,
            mode=self._mode,
            paused=self._is_paused,
            display=self._display,
            pomodoro=self.pomodoro_state,
        ))

    def _resolve_task(self, snap: SessionSnapshot) -> Task | None:
        """By id; else the synthetic Pomodoro segment; else by name and
        duration (snapshots written before ids were stable)."""
        task = self._catalog.find(snap.task_id)
        if task is not None:
            return task
        if snap.pomodoro.active and snap.task_name in (
            POMODORO_WORK_NAME, POMODORO_BREAK_NAME,
        ):
            return Task(id=snap.task_id, name=snap.task_name,
                        duration_seconds=snap.task_duration)
        if self._legacy_name_lookup and snap.task_name and snap.task_duration > 0:
            return self._catalog.find_by_name(snap.task_name, snap.task_duration)
        return None

    def _restore(self) -> None:
        snap = self._gateway.read_session_snapshot()
        if snap is None:
            return
        task = self._resolve_task(snap)
        if task is None:
            logger.info("Discarding session snapshot for unknown task %s", snap.task_id)
            self._gateway.clear_session_snapshot()
            return

        self._task = task
        self._mode = snap.mode
        self._total = max(0, snap.total_duration or task.duration_seconds)
        if snap.pomodoro.active:
            self._pomodoro_active = True
            self._on_break = snap.pomodoro.on_break
            self._cycle = max(1, snap.pomodoro.cycle)

        if snap.paused:
            if snap.display is not None:
                display = snap.display
            else:
                display = self._total if self._mode == TimerMode.COUNTDOWN else 0
            if self._mode == TimerMode.COUNTDOWN:
                self._paused_elapsed = max(0, self._total - display)
            else:
                self._paused_elapsed = display
            self._display = display
            self._is_running = True
            self._is_paused = True
            self._end_at = self._clock() + max(0, self._total - self._paused_elapsed)
            logger.info("Restored paused %s at %ds", task.name, display)
            return

        self._end_at = snap.end_at
        seconds = _whole_seconds(self._end_at - self._clock())
        if seconds <= 0:
            # Finished while we were away; feedback belongs to a live engine.
            logger.info("Session %s ended while suspended", task.name)
            self._task = None
            self._total = 0
            self._end_at = None
            self._pomodoro_active = False
            self._on_break = False
            self._cycle = 0
            self._gateway.clear_session_snapshot()
            return

        self._is_running = True
        self._is_paused = False
        self._started_at = self._clock()
        self._display = self._display_for(self._total - seconds)
        self._restart_ticking()
        logger.info("Restored running %s with %ds left", task.name, seconds)
