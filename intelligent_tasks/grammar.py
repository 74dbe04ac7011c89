"""Annotation grammar shared by the extractor and the line rewriter.

Every regular expression that reads or rewrites an annotation is assembled
from the named fragments below, so that what the scanner recognizes and what
the rewriter edits cannot drift apart.

An annotation looks like::

    <introducer> <TAG>[(<priority>)][*][:] <free text>

for example ``// TODO(high)*: refactor the parser`` or ``# FIXME: legacy``.
"""

from __future__ import annotations

import re
from typing import Iterable

from intelligent_tasks.tags import PRIORITIES

# Comment introducers. Longer forms come first so that ``<!--`` wins over
# ``--`` and ``/**`` over ``*``. ``REM`` and ``'`` cover batch and VB files.
COMMENT_INTRODUCERS: tuple[str, ...] = (
    r"<!--",
    r"//",
    r"/\*\*?",
    r"#",
    r";",
    r"--",
    r"%",
    r"\*",
    r"REM\b",
    r"'",
)

# The introducer must start the line or follow a non-word character.
COMMENT_PREFIX = r"(?<!\w)(?:" + "|".join(COMMENT_INTRODUCERS) + r")"

PRIORITY_TOKEN = r"\(\s*(?:" + "|".join(PRIORITIES) + r")\s*\)"
PRIORITY_CAPTURE = r"\(\s*(?P<priority>" + "|".join(PRIORITIES) + r")\s*\)"

# A ``*`` directly followed by ``/`` closes a block comment; it is not a pin.
PIN_MARKER = r"\*(?!/)"

SEPARATOR = r"\s*:?\s*"

# What must follow a tag for a later comment on the same line to start a new
# annotation. Prose such as "-- note the change" stays in the free text.
HEAD_TERMINATOR = r"\s*(?:" + PRIORITY_TOKEN + r"|" + PIN_MARKER + r"|:)"

FLAGS = re.IGNORECASE


def tag_alternation(tags: Iterable[str]) -> str:
    """Word-bounded alternation of the escaped tag keywords."""
    escaped = sorted((re.escape(tag) for tag in tags), key=len, reverse=True)
    return r"(?:" + "|".join(escaped) + r")\b"


def build_annotation_pattern(tags: Iterable[str]) -> re.Pattern[str]:
    """Compile the extraction pattern for ``tags``.

    Groups: ``tag``, ``priority``, ``pin``, ``text``. The free text stops where
    the next annotation on the same line begins, which requires a tag followed
    by a priority, a pin marker or a colon.
    """
    tag_pattern = tag_alternation(tags)
    next_annotation = COMMENT_PREFIX + r"\s*" + tag_pattern + HEAD_TERMINATOR
    pattern = (
        COMMENT_PREFIX
        + r"\s*"
        + r"(?P<tag>"
        + tag_pattern
        + r")"
        + r"(?:\s*"
        + PRIORITY_CAPTURE
        + r")?"
        + r"(?:\s*(?P<pin>"
        + PIN_MARKER
        + r"))?"
        + SEPARATOR
        + r"(?P<text>.*?)(?=" + next_annotation + r"|$)"
    )
    return re.compile(pattern, FLAGS)


def build_anchor_pattern(tag: str) -> re.Pattern[str]:
    """Compile a pattern whose ``head`` group ends right after ``tag``."""
    return re.compile(
        r"(?P<head>" + COMMENT_PREFIX + r"\s*" + tag_alternation([tag]) + r")",
        FLAGS,
    )


# Decompositions of the text that follows the tag keyword.
PRIORITY_DECOMPOSITION = re.compile(
    r"^(?P<priority>\s*" + PRIORITY_TOKEN + r")?(?P<rest>.*)$",
    FLAGS | re.DOTALL,
)

PIN_DECOMPOSITION = re.compile(
    r"^(?P<priority>\s*"
    + PRIORITY_TOKEN
    + r")?(?P<pin>\s*"
    + PIN_MARKER
    + r")?(?P<rest>.*)$",
    FLAGS | re.DOTALL,
)


def format_priority(priority: str) -> str:
    return f"({priority.lower()})"
