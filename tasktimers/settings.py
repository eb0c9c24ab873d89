"""User preferences for TaskTimers.

Settings are persisted through the key-value store (see
``tasktimers.database.gateway``), one key per preference, so each value can
be read back independently and an unknown value falls back to its default.

Usage::

    settings = gateway.read_settings() or Settings()
    settings.sound = SoundOption.BELL
    gateway.write_settings(settings)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .models import AppTheme, PomodoroSettings, SoundOption, TimerMode


APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "TaskTimers"


@dataclass
class Settings:
    """All user-configurable preferences."""

    timer_mode: TimerMode = TimerMode.COUNTDOWN
    theme: AppTheme = AppTheme.SYSTEM
    sound: SoundOption = SoundOption.SYSTEM_DEFAULT
    pomodoro: PomodoroSettings = field(default_factory=PomodoroSettings)
