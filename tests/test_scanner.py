import asyncio
import logging
from pathlib import Path

from intelligent_tasks.extractor import AnnotationExtractor
from intelligent_tasks.scanner import scan_file, scan_files, scan_text


def test_scan_text_builds_records_with_identity_and_location():
    path = Path("/workspace/file.ts")
    text = "const a = 1;\n// TODO(high)*: refactor the parser\n# FIXME: legacy path\n"

    tasks = scan_text(path, text, AnnotationExtractor(), "2024-01-01T00:00:00+00:00")

    assert [task.identity for task in tasks] == [
        "/workspace/file.ts-1-0",
        "/workspace/file.ts-2-0",
    ]
    first, second = tasks
    assert (first.tag, first.priority, first.pinned, first.text) == (
        "TODO",
        "high",
        True,
        "refactor the parser",
    )
    assert first.line_number == 2
    assert first.status == "open"
    assert first.suggestions == []
    assert first.created_at == "2024-01-01T00:00:00+00:00"
    assert (second.tag, second.priority, second.pinned) == ("FIXME", "medium", False)


def test_scan_text_identities_are_unique_for_shared_lines():
    path = Path("/workspace/a.py")
    text = "x()  # TODO: one  # TODO: two\n"

    tasks = scan_text(path, text, AnnotationExtractor())

    assert len({task.identity for task in tasks}) == 2


def test_scan_text_skips_empty_annotations():
    tasks = scan_text(Path("/workspace/a.py"), "// TODO:\n", AnnotationExtractor())

    assert tasks == []


def test_scan_file_logs_and_skips_unreadable_file(tmp_path, caplog):
    binary = tmp_path / "image.bin"
    binary.write_bytes(b"\xff\xfe\x00TODO")

    with caplog.at_level(logging.WARNING, logger="intelligent_tasks.scanner"):
        tasks = scan_file(binary, AnnotationExtractor())

    assert tasks == []
    assert str(binary.resolve()) in caplog.text


def test_scan_files_merges_per_file_results(tmp_path):
    good = tmp_path / "good.py"
    good.write_text("# TODO: first\n# NOTE: second\n", encoding="utf-8")
    other = tmp_path / "other.js"
    other.write_text("// BUG(high): third\n", encoding="utf-8")
    missing = tmp_path / "missing.py"

    tasks = asyncio.run(scan_files([good, missing, other], AnnotationExtractor()))

    assert [task.text for task in tasks] == ["first", "second", "third"]
    assert tasks[0].file_path == good.resolve()
    assert len({task.created_at for task in tasks}) == 1
