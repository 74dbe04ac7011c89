"""Annotation extraction from single lines of text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from intelligent_tasks.grammar import build_annotation_pattern
from intelligent_tasks.tags import normalize_priority, resolve_tags

COMMENT_CLOSERS = ("*/", "-->")


@dataclass(frozen=True)
class AnnotationMatch:
    tag: str
    priority: str
    pinned: bool
    text: str
    offset: int


def strip_comment_closer(text: str) -> str:
    """Trim ``text`` and drop trailing block or HTML comment closers."""
    stripped = text.strip()
    while stripped.endswith(COMMENT_CLOSERS):
        closer = next(c for c in COMMENT_CLOSERS if stripped.endswith(c))
        stripped = stripped[: -len(closer)].strip()
    return stripped


def extract_annotations(line: str, pattern: re.Pattern[str]) -> list[AnnotationMatch]:
    """Return every annotation in ``line`` that carries non-empty text."""
    matches: list[AnnotationMatch] = []
    for match in pattern.finditer(line):
        text = strip_comment_closer(match.group("text") or "")
        if not text:
            continue
        matches.append(
            AnnotationMatch(
                tag=match.group("tag").upper(),
                priority=normalize_priority(match.group("priority")),
                pinned=match.group("pin") is not None,
                text=text,
                offset=match.start(),
            )
        )
    return matches


class AnnotationExtractor:
    """Extractor bound to one resolved tag set."""

    def __init__(self, tags: Any = None) -> None:
        self.tags = resolve_tags(tags)
        self.pattern = build_annotation_pattern(self.tags)

    def extract(self, line: str) -> list[AnnotationMatch]:
        return extract_annotations(line, self.pattern)
