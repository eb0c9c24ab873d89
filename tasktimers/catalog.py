"""Ordered, persisted catalog of reusable task timers.

The catalog is independent of the running session: the engine times a
copy of a task, so editing or deleting an entry here never touches a
timer that is already counting.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Iterator

from PyQt6.QtCore import QObject, pyqtSignal

from .database.gateway import PersistenceGateway
from .models import Task

logger = logging.getLogger(__name__)


DEFAULT_TASKS: tuple[tuple[str, int], ...] = (
    ("Reading Time", 20 * 60),
    ("Meditation", 10 * 60),
    ("Journaling", 5 * 60),
    ("Stretching", 8 * 60),
    ("Study Session", 30 * 60),
)


class TaskCatalog(QObject):
    """CRUD over the task list; every mutation is written through.

    Signals
    -------
    changed()
        Emitted after any add / update / delete / move.
    """

    changed = pyqtSignal()

    def __init__(
        self,
        gateway: PersistenceGateway,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._gateway = gateway
        self._tasks: list[Task] = []
        self.load()

    # ── container protocol ────────────────────────────────────────────

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks))

    def __len__(self) -> int:
        return len(self._tasks)

    def __getitem__(self, index: int) -> Task:
        return self._tasks[index]

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    # ── lookup ────────────────────────────────────────────────────────

    def find(self, task_id: uuid.UUID) -> Task | None:
        return next((t for t in self._tasks if t.id == task_id), None)

    def find_by_name(self, name: str, duration: int | None = None) -> Task | None:
        """First task called *name* (and lasting *duration*, if given)."""
        for task in self._tasks:
            if task.name != name:
                continue
            if duration is None or task.duration_seconds == duration:
                return task
        return None

    # ── mutations ─────────────────────────────────────────────────────

    def add(self, name: str, duration_seconds: int) -> Task:
        task = Task(name=name, duration_seconds=max(0, int(duration_seconds)))
        self._tasks.append(task)
        self._commit()
        return task

    def update(self, task: Task) -> None:
        """Replace the entry with the same id.  No-op if it is gone."""
        for index, existing in enumerate(self._tasks):
            if existing.id == task.id:
                self._tasks[index] = task
                self._commit()
                return

    def delete(self, positions: Iterable[int]) -> None:
        """Remove the tasks at *positions*; out-of-range indices are ignored."""
        doomed = {p for p in positions if 0 <= p < len(self._tasks)}
        if not doomed:
            return
        self._tasks = [t for i, t in enumerate(self._tasks) if i not in doomed]
        self._commit()

    def move(self, from_positions: Iterable[int], to_position: int) -> None:
        """Move the tasks at *from_positions* so they land before the item
        currently at *to_position* (``len(catalog)`` appends)."""
        sources = sorted({p for p in from_positions if 0 <= p < len(self._tasks)})
        if not sources:
            return
        to_position = max(0, min(to_position, len(self._tasks)))
        moving = [self._tasks[p] for p in sources]
        staying = [t for i, t in enumerate(self._tasks) if i not in sources]
        insert_at = to_position - sum(1 for p in sources if p < to_position)
        self._tasks = staying[:insert_at] + moving + staying[insert_at:]
        self._commit()

    # ── persistence ───────────────────────────────────────────────────

    def load(self) -> None:
        """Read the persisted catalog, seeding defaults when there is none."""
        stored = self._gateway.read_task_catalog()
        if stored:
            self._tasks = stored
        else:
            logger.info("Seeding default task catalog")
            self._tasks = [
                Task(name=name, duration_seconds=seconds)
                for name, seconds in DEFAULT_TASKS
            ]
            self._gateway.write_task_catalog(self._tasks)
        self.changed.emit()

    def _commit(self) -> None:
        self._gateway.write_task_catalog(self._tasks)
        self.changed.emit()
