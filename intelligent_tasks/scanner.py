"""Workspace scanning: file contents to task records."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from intelligent_tasks.extractor import AnnotationExtractor
from intelligent_tasks.models import Task, make_identity
from intelligent_tasks.workspace import read_text

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def scan_text(
    file_path: Path,
    text: str,
    extractor: AnnotationExtractor,
    created_at: str | None = None,
) -> list[Task]:
    """Extract task records from the full content of one file."""
    created_at = created_at or _timestamp()
    tasks: list[Task] = []
    for line_index, line in enumerate(text.splitlines()):
        for match in extractor.extract(line):
            tasks.append(
                Task(
                    identity=make_identity(file_path, line_index, match.offset),
                    text=match.text,
                    tag=match.tag,
                    priority=match.priority,
                    pinned=match.pinned,
                    file_path=file_path,
                    line_number=line_index + 1,
                    offset=match.offset,
                    created_at=created_at,
                )
            )
    return tasks


def scan_file(
    file_path: Path,
    extractor: AnnotationExtractor,
    created_at: str | None = None,
) -> list[Task]:
    """Scan one file; unreadable or non-UTF-8 files contribute nothing."""
    file_path = Path(file_path).resolve()
    try:
        text = read_text(file_path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping %s during scan: %s", file_path, exc)
        return []
    return scan_text(file_path, text, extractor, created_at)


async def scan_files(
    paths: Iterable[Path], extractor: AnnotationExtractor
) -> list[Task]:
    """Scan every file concurrently and merge the results.

    Files are merged in the order given; lines keep their order within a file.
    """
    created_at = _timestamp()
    results = await asyncio.gather(
        *(
            asyncio.to_thread(scan_file, path, extractor, created_at)
            for path in paths
        )
    )
    tasks: list[Task] = []
    for file_tasks in results:
        tasks.extend(file_tasks)
    return tasks
