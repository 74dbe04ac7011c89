"""Task record model."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

TASK_STATUSES = ("open", "done")


def make_identity(file_path: Path | str, line_index: int, offset: int) -> str:
    """Build the per-scan identity ``{path}-{zeroBasedLine}-{offset}``."""
    return f"{file_path}-{line_index}-{offset}"


@dataclass
class Task:
    identity: str
    text: str
    tag: str
    priority: str
    pinned: bool
    file_path: Path
    line_number: int
    offset: int = 0
    status: str = "open"
    created_at: str | None = None
    suggestions: list[str] = field(default_factory=list)

    @property
    def line_index(self) -> int:
        return self.line_number - 1

    @property
    def file_name(self) -> str:
        return self.file_path.name

    @property
    def is_done(self) -> bool:
        return self.status == "done"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.identity,
            "text": self.text,
            "type": self.tag,
            "priority": self.priority,
            "pinned": self.pinned,
            "fileName": str(self.file_path),
            "lineNumber": self.line_number,
            "offset": self.offset,
            "status": self.status,
            "isCompleted": self.is_done,
            "createdAt": self.created_at,
            "suggestions": list(self.suggestions),
        }
