"""In-place rewriting of a single annotation line."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from intelligent_tasks.errors import RewriteError
from intelligent_tasks.grammar import (
    PIN_DECOMPOSITION,
    PRIORITY_DECOMPOSITION,
    build_anchor_pattern,
    format_priority,
)
from intelligent_tasks.tags import is_valid_priority
from intelligent_tasks.workspace import read_line, replace_line

LineTransform = Callable[[str], str]


@dataclass(frozen=True)
class RewriteResult:
    changed: bool
    before: str
    after: str


def _locate_tag(line: str, tag: str, offset: int | None) -> re.Match[str]:
    """Find the annotation head for ``tag``.

    With an ``offset`` only the annotation starting exactly there qualifies;
    without one the first annotation carrying the tag is used.
    """
    anchor = build_anchor_pattern(tag)
    if offset is None:
        match = anchor.search(line)
    elif 0 <= offset < len(line):
        match = anchor.match(line, offset)
    else:
        match = None
    if match is None:
        raise RewriteError(
            "TAG_NOT_FOUND",
            "Annotation tag was not found on the source line.",
            {"tag": tag, "line": line},
        )
    return match


def rewrite_priority(
    line: str, tag: str, priority: str | None, offset: int | None = None
) -> str:
    """Set, replace or clear the parenthesized priority after ``tag``.

    ``priority=None`` removes an existing priority.
    """
    if priority is not None and not is_valid_priority(priority):
        raise RewriteError(
            "INVALID_PRIORITY",
            "Priority must be one of low, medium, high.",
            {"priority": priority},
        )

    anchor = _locate_tag(line, tag, offset)
    head = line[: anchor.end()]
    parts = PRIORITY_DECOMPOSITION.match(line[anchor.end() :])
    existing = parts.group("priority")
    rest = parts.group("rest")

    if priority is None:
        return head + rest

    replacement = format_priority(priority)
    if existing is None:
        # Nothing to replace, so insert directly after the tag.
        return head + replacement + rest

    leading = existing[: len(existing) - len(existing.lstrip())]
    return head + leading + replacement + rest


def toggle_pin(line: str, tag: str, offset: int | None = None) -> str:
    """Add the pin marker after ``tag`` (and its priority) or remove it."""
    anchor = _locate_tag(line, tag, offset)
    head = line[: anchor.end()]
    parts = PIN_DECOMPOSITION.match(line[anchor.end() :])
    priority = parts.group("priority") or ""
    rest = parts.group("rest")

    if parts.group("pin") is not None:
        return head + priority + rest

    marker = "*" if priority else " *"
    return head + priority + marker + rest


def apply_line_edit(
    file_path: Path, line_number: int, transform: LineTransform
) -> RewriteResult:
    """Rewrite one line of ``file_path`` and persist only if it changed."""
    before = read_line(file_path, line_number)
    after = transform(before)
    if after == before:
        return RewriteResult(changed=False, before=before, after=after)
    replace_line(file_path, line_number, after)
    return RewriteResult(changed=True, before=before, after=after)
