"""TaskTimers — named task timers with a Pomodoro mode."""

__version__ = "0.1.0"
