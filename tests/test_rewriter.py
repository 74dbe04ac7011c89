import pytest

from intelligent_tasks.errors import RewriteError
from intelligent_tasks.extractor import AnnotationExtractor
from intelligent_tasks.rewriter import (
    apply_line_edit,
    rewrite_priority,
    toggle_pin,
)


def test_rewrite_priority_replaces_existing_token():
    assert rewrite_priority("// TODO(medium): fix", "TODO", "low") == "// TODO(low): fix"


def test_rewrite_priority_same_value_is_unchanged():
    line = "// TODO(low): fix"

    assert rewrite_priority(line, "TODO", "low") == line


def test_rewrite_priority_inserts_after_tag_when_missing():
    assert (
        rewrite_priority("# FIXME: legacy path", "FIXME", "high")
        == "# FIXME(high): legacy path"
    )


def test_rewrite_priority_keeps_pin_marker():
    assert (
        rewrite_priority("// TODO(high)*: refactor", "TODO", "low")
        == "// TODO(low)*: refactor"
    )


def test_rewrite_priority_clears_token():
    assert rewrite_priority("// BUG (high): crash", "BUG", None) == "// BUG: crash"
    assert rewrite_priority("// BUG: crash", "BUG", None) == "// BUG: crash"


def test_rewrite_priority_matches_tag_case_insensitively():
    assert rewrite_priority("// todo(HIGH): fix", "TODO", "low") == "// todo(low): fix"


def test_rewrite_priority_rejects_invalid_value():
    with pytest.raises(RewriteError) as excinfo:
        rewrite_priority("// TODO: fix", "TODO", "urgent")

    assert excinfo.value.code == "INVALID_PRIORITY"


def test_rewrite_priority_missing_tag_raises():
    with pytest.raises(RewriteError) as excinfo:
        rewrite_priority("plain code line", "TODO", "low")

    assert excinfo.value.code == "TAG_NOT_FOUND"


def test_rewrite_priority_targets_annotation_at_offset():
    line = "call()  # TODO: first  # TODO(low): second"
    offset = line.index("# TODO(low)")

    rewritten = rewrite_priority(line, "TODO", "high", offset)

    assert rewritten == "call()  # TODO: first  # TODO(high): second"


@pytest.mark.parametrize("offset", [40, 3])
def test_rewrite_priority_rejects_stale_offset(offset):
    with pytest.raises(RewriteError) as excinfo:
        rewrite_priority("// TODO: fix", "TODO", "high", offset)

    assert excinfo.value.code == "TAG_NOT_FOUND"


def test_toggle_pin_does_not_fall_back_to_first_annotation():
    line = "x()  # TODO(high): first  # TODO: second"
    stale_offset = len("x()  # TODO: first  ")

    with pytest.raises(RewriteError):
        toggle_pin(line, "TODO", stale_offset)

    assert toggle_pin(line, "TODO", line.index("# TODO: second")) == (
        "x()  # TODO(high): first  # TODO *: second"
    )


def test_toggle_pin_inserts_and_removes_marker():
    original = "// BUG: crash on null"

    pinned = toggle_pin(original, "BUG")

    assert pinned == "// BUG *: crash on null"
    assert toggle_pin(pinned, "BUG") == original


def test_toggle_pin_after_priority():
    original = "// TODO(high): refactor the parser"

    pinned = toggle_pin(original, "TODO")

    assert pinned == "// TODO(high)*: refactor the parser"
    assert toggle_pin(pinned, "TODO") == original


def test_toggle_pin_result_is_read_back_by_extractor():
    extractor = AnnotationExtractor()
    line = "    # NOTE(low) keep this in sync"

    pinned = toggle_pin(line, "NOTE")
    match = extractor.extract(pinned)[0]

    assert match.pinned is True
    assert match.priority == "low"
    assert match.text == "keep this in sync"
    assert extractor.extract(toggle_pin(pinned, "NOTE"))[0].pinned is False


def test_toggle_pin_missing_tag_raises():
    with pytest.raises(RewriteError) as excinfo:
        toggle_pin("// FIXME: wrong tag", "TODO")

    assert excinfo.value.code == "TAG_NOT_FOUND"


def test_apply_line_edit_writes_only_the_target_line(tmp_path):
    source = tmp_path / "module.py"
    source.write_text(
        "import os\r\n# TODO(medium): fix\r\nprint('done')\r\n", encoding="utf-8"
    )

    result = apply_line_edit(
        source, 2, lambda line: rewrite_priority(line, "TODO", "low")
    )

    assert result.changed is True
    assert result.before == "# TODO(medium): fix"
    assert result.after == "# TODO(low): fix"
    assert source.read_bytes() == b"import os\r\n# TODO(low): fix\r\nprint('done')\r\n"


def test_apply_line_edit_reports_no_change(tmp_path):
    source = tmp_path / "module.py"
    source.write_text("# TODO(low): fix\n", encoding="utf-8")
    before = source.stat().st_mtime_ns

    result = apply_line_edit(
        source, 1, lambda line: rewrite_priority(line, "TODO", "low")
    )

    assert result.changed is False
    assert source.read_text(encoding="utf-8") == "# TODO(low): fix\n"
    assert source.stat().st_mtime_ns == before


def test_apply_line_edit_out_of_range(tmp_path):
    source = tmp_path / "module.py"
    source.write_text("# TODO: only line\n", encoding="utf-8")

    with pytest.raises(RewriteError) as excinfo:
        apply_line_edit(source, 5, lambda line: line)

    assert excinfo.value.code == "LINE_OUT_OF_RANGE"


def test_apply_line_edit_missing_file(tmp_path):
    with pytest.raises(RewriteError) as excinfo:
        apply_line_edit(tmp_path / "missing.py", 1, lambda line: line)

    assert excinfo.value.code == "FILE_READ_ERROR"
