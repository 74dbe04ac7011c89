"""In-memory task store shared by the scanner, editors and the view."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from intelligent_tasks.models import Task

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class TaskStore:
    """Authoritative task set for one session.

    The full set is only ever replaced wholesale by a scan; edits replace a
    single record in place and never insert.
    """

    def __init__(self) -> None:
        self._tasks: list[Task] = []
        self._listeners: list[Listener] = []
        self._scan_sequence = 0
        self.revision = 0

    def __len__(self) -> int:
        return len(self._tasks)

    def all(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def get(self, identity: str) -> Task | None:
        for task in self._tasks:
            if task.identity == identity:
                return task
        return None

    def begin_scan(self) -> int:
        """Issue the sequence number for a scan that is about to start."""
        self._scan_sequence += 1
        return self._scan_sequence

    @property
    def latest_scan(self) -> int:
        return self._scan_sequence

    def replace_all(self, records: Iterable[Task], ticket: int | None = None) -> bool:
        """Swap in a complete scan result.

        A result carrying a ticket older than the newest issued one is stale
        and is discarded.
        """
        if ticket is not None:
            if ticket < self._scan_sequence:
                logger.info(
                    "Discarding stale scan %s; scan %s is newer.",
                    ticket,
                    self._scan_sequence,
                )
                return False
        self._tasks = list(records)
        self._notify()
        return True

    def upsert_by_identity(self, record: Task) -> bool:
        for index, task in enumerate(self._tasks):
            if task.identity == record.identity:
                self._tasks[index] = record
                self._notify()
                return True
        return False

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        self.revision += 1
        for listener in list(self._listeners):
            listener()
