"""Filtered, grouped and sorted projection of the task store.

The tree has three node kinds: file groups, tasks, and suggestion leaves.
They are plain records tagged by ``kind``; the ``node_*`` functions dispatch
on that tag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Literal, Sequence, Union

from intelligent_tasks.models import Task
from intelligent_tasks.store import TaskStore
from intelligent_tasks.workspace import relative_label

ALL = "all"

TAG_ICONS = {
    "TODO": "checklist",
    "FIXME": "tools",
    "BUG": "bug",
    "NOTE": "notebook",
}


@dataclass(frozen=True)
class TaskFilters:
    type_filter: str = ALL
    priority_filter: str = ALL
    search_query: str = ""

    @property
    def active(self) -> bool:
        return (
            not _is_all(self.type_filter)
            or not _is_all(self.priority_filter)
            or bool(self.search_query.strip())
        )


@dataclass
class GroupNode:
    file_path: Path
    relative_path: str
    tasks: list[Task] = field(default_factory=list)
    kind: Literal["group"] = "group"


@dataclass
class TaskNode:
    task: Task
    kind: Literal["task"] = "task"


@dataclass
class SuggestionNode:
    task_identity: str
    index: int
    text: str
    kind: Literal["suggestion"] = "suggestion"


Node = Union[GroupNode, TaskNode, SuggestionNode]


def _is_all(value: str | None) -> bool:
    return value is None or not value.strip() or value.strip().lower() == ALL


def matches_filters(task: Task, filters: TaskFilters) -> bool:
    if not _is_all(filters.type_filter):
        if task.tag.upper() != filters.type_filter.strip().upper():
            return False
    if not _is_all(filters.priority_filter):
        if task.priority != filters.priority_filter.strip().lower():
            return False
    query = filters.search_query.strip().lower()
    if query:
        fields = (task.text, task.tag, task.priority, task.file_name)
        if not any(query in value.lower() for value in fields):
            return False
    return True


def filter_tasks(tasks: Iterable[Task], filters: TaskFilters) -> list[Task]:
    return [task for task in tasks if matches_filters(task, filters)]


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Pinned tasks first, then by text."""
    return sorted(tasks, key=lambda task: (not task.pinned, task.text))


def project(
    tasks: Iterable[Task], filters: TaskFilters, roots: Sequence[Path]
) -> list[GroupNode]:
    """Group the visible tasks by file, sorted by group label."""
    grouped: dict[Path, list[Task]] = {}
    for task in filter_tasks(tasks, filters):
        grouped.setdefault(task.file_path, []).append(task)

    groups = [
        GroupNode(
            file_path=file_path,
            relative_path=relative_label(file_path, roots),
            tasks=sort_tasks(file_tasks),
        )
        for file_path, file_tasks in grouped.items()
    ]
    return sorted(groups, key=node_label)


def node_label(node: Node) -> str:
    if node.kind == "group":
        return f"{node.relative_path} ({len(node.tasks)})"
    if node.kind == "task":
        return node.task.text
    return node.text


def node_description(node: Node) -> str | None:
    if node.kind == "task":
        task = node.task
        return f"({task.tag}) {task.file_name}:{task.line_number}"
    if node.kind == "suggestion":
        return f"#{node.index + 1}"
    return None


def node_tooltip(node: Node) -> str:
    if node.kind == "group":
        return str(node.file_path)
    if node.kind == "task":
        task = node.task
        return "\n".join(
            [
                str(task.file_path),
                f"Line: {task.line_number}",
                f"Status: {task.status}",
                f"Priority: {task.priority}",
                f"Pinned: {'yes' if task.pinned else 'no'}",
            ]
        )
    return node.text


def node_icon(node: Node) -> str:
    if node.kind == "group":
        return "folder"
    if node.kind == "task":
        if node.task.is_done:
            return "check"
        return TAG_ICONS.get(node.task.tag.upper(), "tag")
    return "lightbulb"


def node_is_expandable(node: Node) -> bool:
    if node.kind == "group":
        return bool(node.tasks)
    if node.kind == "task":
        return bool(node.task.suggestions)
    return False


def node_children(node: Node) -> list[Node]:
    if node.kind == "group":
        return [TaskNode(task) for task in node.tasks]
    if node.kind == "task":
        task = node.task
        return [
            SuggestionNode(task_identity=task.identity, index=index, text=text)
            for index, text in enumerate(task.suggestions)
        ]
    return []


def node_to_dict(node: Node, *, expand_groups: bool = True) -> dict[str, Any]:
    """Serialize a node; group children are inlined, suggestions stay lazy."""
    payload: dict[str, Any] = {
        "kind": node.kind,
        "label": node_label(node),
        "description": node_description(node),
        "tooltip": node_tooltip(node),
        "icon": node_icon(node),
        "expandable": node_is_expandable(node),
    }
    if node.kind == "group":
        payload["filePath"] = str(node.file_path)
        payload["relativePath"] = node.relative_path
        payload["count"] = len(node.tasks)
        if expand_groups:
            payload["children"] = [
                node_to_dict(child) for child in node_children(node)
            ]
    elif node.kind == "task":
        payload["task"] = node.task.to_dict()
    else:
        payload["taskId"] = node.task_identity
        payload["index"] = node.index
    return payload


class TaskView:
    """Projection of one store under the currently active filters."""

    def __init__(self, store: TaskStore, roots: Sequence[Path]) -> None:
        self.store = store
        self.roots = tuple(roots)
        self.filters = TaskFilters()
        self._cache: list[GroupNode] | None = None
        self._cache_key: tuple[int, TaskFilters] | None = None
        store.subscribe(self.invalidate)

    def invalidate(self) -> None:
        self._cache = None
        self._cache_key = None

    def set_filters(
        self,
        type_filter: str | None = None,
        priority_filter: str | None = None,
        search_query: str | None = None,
    ) -> TaskFilters:
        """Update the given filters; ``None`` leaves a filter as it is."""
        current = self.filters
        self.filters = TaskFilters(
            type_filter=current.type_filter if type_filter is None else type_filter,
            priority_filter=(
                current.priority_filter if priority_filter is None else priority_filter
            ),
            search_query=(
                current.search_query if search_query is None else search_query
            ),
        )
        self.invalidate()
        return self.filters

    def clear_filters(self) -> None:
        self.filters = TaskFilters()
        self.invalidate()

    def groups(self) -> list[GroupNode]:
        key = (self.store.revision, self.filters)
        if self._cache is None or self._cache_key != key:
            self._cache = project(self.store.all(), self.filters, self.roots)
            self._cache_key = key
        return self._cache

    def find_task_node(self, identity: str) -> TaskNode | None:
        task = self.store.get(identity)
        if task is None:
            return None
        return TaskNode(task)

    def children(self, identity: str) -> list[Node] | None:
        node = self.find_task_node(identity)
        if node is None:
            return None
        return node_children(node)
