"""Marker keyword and priority vocabulary."""

from __future__ import annotations

from typing import Any

DEFAULT_TAGS: tuple[str, ...] = ("TODO", "FIXME", "BUG", "NOTE")
PRIORITIES: tuple[str, ...] = ("low", "medium", "high")
DEFAULT_PRIORITY = "medium"


def resolve_tags(override: Any = None) -> tuple[str, ...]:
    """Return the active tag set, falling back to the defaults.

    Only a non-empty list or tuple of non-blank strings counts as an override.
    Entries that differ only by case collapse to their first spelling.
    """
    if not isinstance(override, (list, tuple)):
        return DEFAULT_TAGS

    tags: list[str] = []
    seen: set[str] = set()
    for item in override:
        if not isinstance(item, str):
            continue
        tag = item.strip()
        if not tag or tag.upper() in seen:
            continue
        seen.add(tag.upper())
        tags.append(tag)

    return tuple(tags) if tags else DEFAULT_TAGS


def is_valid_priority(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() in PRIORITIES


def normalize_priority(value: Any) -> str:
    if is_valid_priority(value):
        return value.strip().lower()
    return DEFAULT_PRIORITY
