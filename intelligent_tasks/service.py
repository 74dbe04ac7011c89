"""Session orchestration: scanning, metadata edits and suggestions."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from intelligent_tasks.activity import append_activity, build_activity_entry
from intelligent_tasks.advisor import (
    OllamaClient,
    build_suggestion_prompt,
    context_window,
)
from intelligent_tasks.config import AppConfig
from intelligent_tasks.errors import RewriteError, ServiceError
from intelligent_tasks.extractor import AnnotationExtractor
from intelligent_tasks.models import Task
from intelligent_tasks.rewriter import (
    LineTransform,
    RewriteResult,
    apply_line_edit,
    rewrite_priority,
    toggle_pin,
)
from intelligent_tasks.scanner import scan_files
from intelligent_tasks.store import TaskStore
from intelligent_tasks.tags import DEFAULT_PRIORITY, PRIORITIES, is_valid_priority
from intelligent_tasks.view import TaskView
from intelligent_tasks.workspace import enumerate_files, read_lines

logger = logging.getLogger(__name__)

STALE_SOURCE_WARNING = (
    "The source comment could not be updated; the displayed metadata may not "
    "match the file until it is rescanned."
)


@dataclass(frozen=True)
class ScanSummary:
    sequence: int
    files: int
    tasks: int
    applied: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "files": self.files,
            "tasks": self.tasks,
            "applied": self.applied,
        }


@dataclass(frozen=True)
class EditOutcome:
    """Result of a metadata edit.

    ``status`` is ``changed`` when the source line was rewritten,
    ``unchanged`` when it already matched, and ``partial`` when the rewrite
    failed but the in-memory record was updated anyway.
    """

    status: str
    task: Task
    warning: str | None = None
    error: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "changed": self.status == "changed",
            "task": self.task.to_dict(),
            "warning": self.warning,
            "error": self.error,
        }


class TaskService:
    def __init__(
        self, config: AppConfig, advisor: OllamaClient | None = None
    ) -> None:
        self.config = config
        self.store = TaskStore()
        self.view = TaskView(self.store, config.workspace_roots)
        self.extractor = AnnotationExtractor(config.todo_patterns)
        self._advisor = advisor
        self._edit_lock = asyncio.Lock()

    @property
    def advisor(self) -> OllamaClient:
        if self._advisor is None:
            self._advisor = OllamaClient(self.config.ollama_url, self.config.ai_model)
        return self._advisor

    def close(self) -> None:
        if self._advisor is not None:
            self._advisor.close()

    # -------------------- scanning --------------------
    async def scan(self) -> ScanSummary:
        ticket = self.store.begin_scan()
        files = await asyncio.to_thread(
            enumerate_files,
            self.config.workspace_roots,
            self.config.exclude_globs,
            self.config.respect_gitignore,
        )
        tasks = await scan_files(files, self.extractor)
        applied = self.store.replace_all(tasks, ticket)
        logger.info(
            "Scan %s found %s tasks in %s files%s.",
            ticket,
            len(tasks),
            len(files),
            "" if applied else " (discarded as stale)",
        )
        return ScanSummary(
            sequence=ticket, files=len(files), tasks=len(tasks), applied=applied
        )

    async def file_saved(self, file_path: Path) -> ScanSummary | None:
        if not self.config.auto_refresh_on_save:
            return None
        logger.info("Refreshing tasks after save of %s.", file_path)
        return await self.scan()

    # -------------------- lookups --------------------
    def require_task(self, identity: str) -> Task:
        task = self.store.get(identity)
        if task is None:
            raise ServiceError(
                "TASK_NOT_FOUND",
                "Task ID not found; rescan the workspace.",
                {"id": identity},
            )
        return task

    # -------------------- metadata edits --------------------
    async def set_priority(
        self, identity: str, priority: str | None
    ) -> EditOutcome:
        if priority is not None and not is_valid_priority(priority):
            raise ServiceError(
                "INVALID_PRIORITY",
                "priority must be one of low, medium, high.",
                {"priority": str(priority), "allowed": list(PRIORITIES)},
            )
        target = priority.strip().lower() if priority is not None else None
        # Edits are serialized so each one sees the offsets left by the last.
        async with self._edit_lock:
            task = self.require_task(identity)
            updated = replace(task, priority=target or DEFAULT_PRIORITY)
            return await self._edit(
                task,
                updated,
                lambda line: rewrite_priority(line, task.tag, target, task.offset),
                "set_priority",
                f"set {task.tag} priority to {target or 'default'}",
            )

    async def toggle_pin(self, identity: str) -> EditOutcome:
        async with self._edit_lock:
            task = self.require_task(identity)
            updated = replace(task, pinned=not task.pinned)
            return await self._edit(
                task,
                updated,
                lambda line: toggle_pin(line, task.tag, task.offset),
                "toggle_pin",
                f"{'pin' if updated.pinned else 'unpin'} {task.tag}",
            )

    async def _edit(
        self,
        task: Task,
        updated: Task,
        transform: LineTransform,
        operation: str,
        summary: str,
    ) -> EditOutcome:
        try:
            result: RewriteResult = await asyncio.to_thread(
                apply_line_edit, task.file_path, task.line_number, transform
            )
        except RewriteError as exc:
            logger.warning(
                "%s failed for %s:%s: %s",
                operation,
                task.file_path,
                task.line_number,
                exc,
            )
            self.store.upsert_by_identity(updated)
            return EditOutcome(
                status="partial",
                task=updated,
                warning=STALE_SOURCE_WARNING,
                error=exc.error.to_dict(),
            )

        self.store.upsert_by_identity(updated)
        if not result.changed:
            return EditOutcome(status="unchanged", task=updated)

        self._shift_following(task, len(result.after) - len(result.before))
        if self.config.activity_log_path is not None:
            entry = build_activity_entry(
                operation, task.file_path, task.line_number, summary
            )
            try:
                await asyncio.to_thread(
                    append_activity, self.config.activity_log_path, entry
                )
            except OSError as exc:
                logger.warning("Activity log write failed: %s", exc)
        return EditOutcome(status="changed", task=updated)

    def _shift_following(self, edited: Task, delta: int) -> None:
        """Move the offsets of annotations after ``edited`` on the same line."""
        if delta == 0:
            return
        for task in self.store.all():
            if (
                task.file_path == edited.file_path
                and task.line_number == edited.line_number
                and task.offset > edited.offset
            ):
                self.store.upsert_by_identity(
                    replace(task, offset=task.offset + delta)
                )

    def toggle_complete(self, identity: str) -> Task:
        """Flip open/done; completion lives in memory only."""
        task = self.require_task(identity)
        updated = replace(task, status="open" if task.is_done else "done")
        self.store.upsert_by_identity(updated)
        return updated

    # -------------------- suggestions --------------------
    async def suggest(self, identity: str) -> Task:
        task = self.require_task(identity)
        try:
            lines = await asyncio.to_thread(read_lines, task.file_path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("No context for %s: %s", task.file_path, exc)
            lines = []
        context = context_window(lines, task.line_number, self.config.context_lines)
        prompt = build_suggestion_prompt(task, context)
        try:
            suggestion = await asyncio.to_thread(self.advisor.generate, prompt)
        except ServiceError as exc:
            logger.warning("Suggestion failed for %s: %s", identity, exc)
            raise

        # The record may have been replaced while the backend was thinking.
        current = self.store.get(identity) or task
        updated = replace(current, suggestions=[*current.suggestions, suggestion])
        self.store.upsert_by_identity(updated)
        return updated
