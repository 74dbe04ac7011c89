"""Workspace file enumeration and line-addressable file access."""

from __future__ import annotations

import fnmatch
import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Iterable, Sequence

from dulwich.ignore import IgnoreFilterManager
from dulwich.repo import Repo

from intelligent_tasks.errors import RewriteError

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_GLOBS: tuple[str, ...] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/.vscode/**",
    "**/out/**",
    "**/coverage/**",
    "**/*.min.*",
    "**/*.map",
)


def _matches_any(relative: str, globs: Sequence[str]) -> bool:
    # Globs are written against "/"-rooted POSIX paths so that "**/x/**"
    # also matches a top-level "x" directory.
    candidate = "/" + relative
    return any(fnmatch.fnmatchcase(candidate, pattern) for pattern in globs)


def _load_gitignore(root: Path) -> IgnoreFilterManager | None:
    if not (root / ".git").exists():
        return None
    try:
        with Repo(str(root)) as repo:
            return IgnoreFilterManager.from_repo(repo)
    except Exception as exc:
        logger.warning("Ignoring .gitignore rules under %s: %s", root, exc)
        return None


def _is_git_ignored(manager: IgnoreFilterManager | None, relative: str) -> bool:
    if manager is None:
        return False
    return bool(manager.is_ignored(relative))


def enumerate_files(
    roots: Iterable[Path],
    exclude_globs: Sequence[str] = DEFAULT_EXCLUDE_GLOBS,
    respect_gitignore: bool = True,
) -> list[Path]:
    """Return candidate files under ``roots``, sorted per root."""
    files: list[Path] = []
    seen: set[Path] = set()
    for root in roots:
        root = Path(root).resolve()
        if not root.is_dir():
            logger.warning("Workspace root %s is not a directory.", root)
            continue
        manager = _load_gitignore(root) if respect_gitignore else None
        collected: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            relative_dir = current.relative_to(root).as_posix()
            prefix = "" if relative_dir == "." else relative_dir + "/"

            kept_dirs: list[str] = []
            for name in sorted(dirnames):
                relative = prefix + name
                if (current / name).is_symlink():
                    continue
                if _matches_any(relative + "/", exclude_globs):
                    continue
                if _is_git_ignored(manager, relative + "/"):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for name in sorted(filenames):
                relative = prefix + name
                path = current / name
                if path.is_symlink():
                    continue
                if _matches_any(relative, exclude_globs):
                    continue
                if _is_git_ignored(manager, relative):
                    continue
                collected.append(path)

        for path in sorted(collected):
            if path not in seen:
                seen.add(path)
                files.append(path)
    return files


def relative_label(file_path: Path, roots: Sequence[Path]) -> str:
    """POSIX path of ``file_path`` relative to the first root containing it."""
    for root in roots:
        try:
            return PurePosixPath(file_path.relative_to(root)).as_posix()
        except ValueError:
            continue
    return file_path.as_posix()


def read_text(file_path: Path) -> str:
    # newline="" keeps "\r\n" so rewritten files retain their line endings.
    with file_path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


def read_lines(file_path: Path) -> list[str]:
    return read_text(file_path).splitlines()


def _atomic_write(target_path: Path, content: str) -> None:
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=target_path.parent,
            delete=False,
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        try:
            os.chmod(temp_path, target_path.stat().st_mode)
        except OSError:
            pass
        os.replace(temp_path, target_path)
    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass


def read_line(file_path: Path, line_number: int) -> str:
    """Return the 1-based line ``line_number`` without its terminator."""
    try:
        lines = read_lines(file_path)
    except (OSError, UnicodeDecodeError) as exc:
        raise RewriteError(
            "FILE_READ_ERROR",
            "Source file could not be read.",
            {"path": str(file_path), "error": str(exc)},
        ) from exc
    if line_number < 1 or line_number > len(lines):
        raise RewriteError(
            "LINE_OUT_OF_RANGE",
            "Line number is outside the file.",
            {"path": str(file_path), "line": line_number, "lineCount": len(lines)},
        )
    return lines[line_number - 1]


def replace_line(file_path: Path, line_number: int, new_text: str) -> None:
    """Replace one line in place and persist the file atomically."""
    try:
        content = read_text(file_path)
    except (OSError, UnicodeDecodeError) as exc:
        raise RewriteError(
            "FILE_READ_ERROR",
            "Source file could not be read.",
            {"path": str(file_path), "error": str(exc)},
        ) from exc

    lines = content.splitlines(keepends=True)
    if line_number < 1 or line_number > len(lines):
        raise RewriteError(
            "LINE_OUT_OF_RANGE",
            "Line number is outside the file.",
            {"path": str(file_path), "line": line_number, "lineCount": len(lines)},
        )

    original = lines[line_number - 1]
    body = original.rstrip("\r\n")
    lines[line_number - 1] = new_text + original[len(body) :]
    try:
        _atomic_write(file_path, "".join(lines))
    except OSError as exc:
        raise RewriteError(
            "FILE_WRITE_ERROR",
            "Source file could not be written.",
            {"path": str(file_path), "error": str(exc)},
        ) from exc
