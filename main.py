#!/usr/bin/env python3
"""TaskTimers — entry point.

Run with:
    python main.py "Reading Time"
    python -m tasktimers --pomodoro
"""

import sys

from tasktimers.__main__ import main


if __name__ == "__main__":
    sys.exit(main())
