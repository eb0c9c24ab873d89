"""Run a timer from the terminal: python -m tasktimers [TASK | --pomodoro].

Without arguments the last used task is started, or the running session
from the previous launch is picked up again.
"""

import argparse
import logging
import sys

from PyQt6.QtCore import QTimer
from PyQt6.QtGui import QColor, QIcon, QPainter, QPixmap
from PyQt6.QtWidgets import QApplication, QSystemTrayIcon

from .audio.sounds import SoundManager
from .database.db import init_db
from .database.gateway import PersistenceGateway
from .notifications import TrayNotifier
from .timer.engine import TimerEngine, TimerState


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tasktimers")
    parser.add_argument("task", nargs="?", help="name of the task to time")
    parser.add_argument("--pomodoro", action="store_true",
                        help="run a Pomodoro work/break cycle")
    parser.add_argument("--list", action="store_true",
                        help="print the task catalog and exit")
    parser.add_argument("--volume", type=int, default=70, metavar="0-100",
                        help="completion sound volume")
    parser.add_argument("--mute", action="store_true",
                        help="play no completion or alert sounds")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def _tray_icon(app: QApplication) -> QSystemTrayIcon:
    icon = QPixmap(64, 64)
    icon.fill(QColor(0, 0, 0, 0))
    p = QPainter(icon)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    p.setBrush(QColor("#F5A623"))
    p.setPen(QColor("#F5A623").darker(120))
    p.drawEllipse(4, 4, 56, 56)
    p.end()
    tray = QSystemTrayIcon(QIcon(icon), app)
    tray.show()
    return tray


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()

    app = QApplication(sys.argv)
    app.setApplicationName("TaskTimers")
    app.setOrganizationName("TaskTimers")

    sounds = SoundManager(app)
    sounds.set_volume(args.volume)
    sounds.set_enabled(not args.mute)

    notifier = TrayNotifier(_tray_icon(app), app)
    engine = TimerEngine(
        app,
        gateway=PersistenceGateway(),
        notifier=notifier,
        feedback=sounds,
    )

    if args.list:
        for task in engine.catalog:
            print(f"{task.name:<24} {task.duration_seconds // 60:>3} min")
        return 0

    if args.pomodoro:
        engine.start_pomodoro()
    elif args.task:
        task = engine.catalog.find_by_name(args.task)
        if task is None:
            print(f"No task named {args.task!r}", file=sys.stderr)
            return 1
        engine.start(task)
    elif not engine.is_running:
        engine.start_last_task_if_available()

    if not engine.is_running:
        print("Nothing to time.", file=sys.stderr)
        return 1

    def show(_seconds: int) -> None:
        if engine.is_running:
            name = engine.current_task.name
            print(f"\r{name}  {engine.formatted_time()}", end="", flush=True)

    engine.display_changed.connect(show)
    # Leave the completion sound time to play before exiting.
    engine.state_changed.connect(
        lambda state: QTimer.singleShot(1500, app.quit)
        if state == TimerState.IDLE else None
    )
    app.applicationStateChanged.connect(engine.on_application_state_changed)
    if engine.is_paused:
        engine.resume()

    code = app.exec()
    print()
    return code


if __name__ == "__main__":
    sys.exit(main())
