"""Typed persistence gateway over the ``stored_values`` key-value table.

Every operation is synchronous and best-effort: database or decoding
failures are logged and swallowed, and reads report them as "nothing
stored".  Writes are last-write-wins.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..models import (
    AppTheme,
    PomodoroSettings,
    PomodoroState,
    SessionSnapshot,
    SoundOption,
    Task,
    TimerMode,
    decode_enum,
)
from ..settings import Settings
from .db import get_session
from .models import StoredValue

logger = logging.getLogger(__name__)


# ── keys ──────────────────────────────────────────────────────────────────

_PREFIX = "com.tasktimers."

TASK_ID_KEY = _PREFIX + "persistedTaskID"
TASK_NAME_KEY = _PREFIX + "persistedTaskName"
TASK_DURATION_KEY = _PREFIX + "persistedTaskDuration"
TOTAL_DURATION_KEY = _PREFIX + "persistedTotalDuration"
END_DATE_KEY = _PREFIX + "endDate"
MODE_KEY = _PREFIX + "timerMode"
PAUSED_KEY = _PREFIX + "paused"
DISPLAY_KEY = _PREFIX + "display"
POMODORO_STATE_KEY = _PREFIX + "pomodoroState"
TASKS_KEY = _PREFIX + "tasks"
THEME_KEY = "selectedTheme"
SOUND_KEY = "selectedSound"
POMODORO_KEY = _PREFIX + "pomodoro"
LAST_TASK_KEY = _PREFIX + "lastTask"

# The mode key is shared with Settings and survives a cleared session.
SESSION_KEYS = (
    TASK_ID_KEY,
    TASK_NAME_KEY,
    TASK_DURATION_KEY,
    TOTAL_DURATION_KEY,
    END_DATE_KEY,
    PAUSED_KEY,
    DISPLAY_KEY,
    POMODORO_STATE_KEY,
)

SETTINGS_KEYS = (MODE_KEY, THEME_KEY, SOUND_KEY, POMODORO_KEY)

_READ_ERRORS = (SQLAlchemyError, ValueError, TypeError, KeyError, AttributeError)


def _optional_int(value) -> int | None:
    return None if value is None else int(value)


class PersistenceGateway:
    """Durable snapshots of the session, the task catalog and settings."""

    # ══════════════════════════════════════════════════════════════════
    #  SESSION
    # ══════════════════════════════════════════════════════════════════

    def write_session_snapshot(self, snapshot: SessionSnapshot) -> None:
        self._write({
            TASK_ID_KEY: str(snapshot.task_id),
            TASK_NAME_KEY: snapshot.task_name,
            TASK_DURATION_KEY: snapshot.task_duration,
            TOTAL_DURATION_KEY: snapshot.total_duration,
            END_DATE_KEY: snapshot.end_at,
            MODE_KEY: snapshot.mode.value,
            PAUSED_KEY: snapshot.paused,
            DISPLAY_KEY: snapshot.display,
            POMODORO_STATE_KEY: snapshot.pomodoro.to_dict(),
        })

    def read_session_snapshot(self) -> SessionSnapshot | None:
        """The persisted session, or ``None`` when absent or unusable.

        Only the task id and a positive end timestamp are required; every
        other field falls back to a neutral default.
        """
        values = self._read(SESSION_KEYS + (MODE_KEY,))
        try:
            if TASK_ID_KEY not in values:
                return None
            task_id = uuid.UUID(str(values[TASK_ID_KEY]))
            end_at = float(values.get(END_DATE_KEY, 0.0))
            if end_at <= 0:
                return None
            task_duration = int(values.get(TASK_DURATION_KEY, 0))
            return SessionSnapshot(
                task_id=task_id,
                task_name=str(values.get(TASK_NAME_KEY, "")),
                task_duration=task_duration,
                total_duration=int(values.get(TOTAL_DURATION_KEY, task_duration)),
                end_at=end_at,
                mode=decode_enum(TimerMode, values.get(MODE_KEY), TimerMode.COUNTDOWN),
                paused=bool(values.get(PAUSED_KEY, False)),
                display=_optional_int(values.get(DISPLAY_KEY)),
                pomodoro=PomodoroState.from_dict(values.get(POMODORO_STATE_KEY) or {}),
            )
        except _READ_ERRORS as exc:
            logger.warning("Discarding unreadable session snapshot: %s", exc)
            return None

    def clear_session_snapshot(self) -> None:
        self._delete(SESSION_KEYS)

    # ══════════════════════════════════════════════════════════════════
    #  TASK CATALOG
    # ══════════════════════════════════════════════════════════════════

    def write_task_catalog(self, tasks: Iterable[Task]) -> None:
        self._write({TASKS_KEY: [task.to_dict() for task in tasks]})

    def read_task_catalog(self) -> list[Task] | None:
        """Decoded task list, or ``None`` if absent or corrupt."""
        raw = self._read((TASKS_KEY,)).get(TASKS_KEY)
        if raw is None:
            return None
        try:
            return [Task.from_dict(item) for item in raw]
        except _READ_ERRORS as exc:
            logger.warning("Ignoring corrupt task catalog: %s", exc)
            return None

    # ══════════════════════════════════════════════════════════════════
    #  SETTINGS
    # ══════════════════════════════════════════════════════════════════

    def write_settings(self, settings: Settings) -> None:
        self._write({
            MODE_KEY: settings.timer_mode.value,
            THEME_KEY: settings.theme.value,
            SOUND_KEY: settings.sound.value,
            POMODORO_KEY: settings.pomodoro.to_dict(),
        })

    def read_settings(self) -> Settings | None:
        """Settings with per-key defaults, or ``None`` if nothing is stored."""
        values = self._read(SETTINGS_KEYS)
        if not values:
            return None
        settings = Settings()
        settings.timer_mode = decode_enum(TimerMode, values.get(MODE_KEY), settings.timer_mode)
        settings.theme = decode_enum(AppTheme, values.get(THEME_KEY), settings.theme)
        settings.sound = decode_enum(SoundOption, values.get(SOUND_KEY), settings.sound)
        try:
            if isinstance(values.get(POMODORO_KEY), dict):
                settings.pomodoro = PomodoroSettings.from_dict(values[POMODORO_KEY])
        except _READ_ERRORS as exc:
            logger.warning("Using default pomodoro settings: %s", exc)
        return settings

    # ══════════════════════════════════════════════════════════════════
    #  LAST-USED TASK
    # ══════════════════════════════════════════════════════════════════

    def write_last_task_name(self, name: str) -> None:
        self._write({LAST_TASK_KEY: name})

    def read_last_task_name(self) -> str | None:
        value = self._read((LAST_TASK_KEY,)).get(LAST_TASK_KEY)
        return value if isinstance(value, str) else None

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — key-value access
    # ══════════════════════════════════════════════════════════════════

    def _write(self, values: dict) -> None:
        try:
            with get_session() as db:
                for key, value in values.items():
                    db.merge(StoredValue(key=key, value=json.dumps(value)))
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            logger.warning("Could not persist %s: %s", ", ".join(values), exc)

    def _read(self, keys: Iterable[str]) -> dict:
        """Decoded values for whichever of *keys* are present and valid."""
        keys = tuple(keys)
        try:
            with get_session() as db:
                rows = db.execute(
                    select(StoredValue.key, StoredValue.value)
                    .where(StoredValue.key.in_(keys))
                ).all()
        except SQLAlchemyError as exc:
            logger.warning("Could not read %s: %s", ", ".join(keys), exc)
            return {}

        values = {}
        for key, text in rows:
            try:
                values[key] = json.loads(text)
            except ValueError:
                logger.warning("Ignoring undecodable value for %s", key)
        return values

    def _delete(self, keys: Iterable[str]) -> None:
        keys = tuple(keys)
        try:
            with get_session() as db:
                db.execute(delete(StoredValue).where(StoredValue.key.in_(keys)))
        except SQLAlchemyError as exc:
            logger.warning("Could not clear %s: %s", ", ".join(keys), exc)
