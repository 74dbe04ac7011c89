from dataclasses import replace
from pathlib import Path

from intelligent_tasks.models import Task, make_identity
from intelligent_tasks.store import TaskStore


def _task(index, text="task", **overrides):
    path = Path("/workspace/file.py")
    fields = {
        "identity": make_identity(path, index, 0),
        "text": text,
        "tag": "TODO",
        "priority": "medium",
        "pinned": False,
        "file_path": path,
        "line_number": index + 1,
    }
    fields.update(overrides)
    return Task(**fields)


def test_identity_format():
    assert make_identity("/workspace/a.ts", 3, 7) == "/workspace/a.ts-3-7"


def test_replace_all_swaps_records_and_notifies():
    store = TaskStore()
    notifications = []
    store.subscribe(lambda: notifications.append(store.revision))

    store.replace_all([_task(0), _task(1)])
    store.replace_all([_task(2)])

    assert [task.line_number for task in store.all()] == [3]
    assert notifications == [1, 2]


def test_upsert_replaces_in_place():
    store = TaskStore()
    store.replace_all([_task(0, "a"), _task(1, "b"), _task(2, "c")])

    updated = replace(store.all()[1], priority="high")
    assert store.upsert_by_identity(updated) is True

    assert [task.text for task in store.all()] == ["a", "b", "c"]
    assert store.all()[1].priority == "high"


def test_upsert_unknown_identity_is_a_noop():
    store = TaskStore()
    store.replace_all([_task(0), _task(1)])
    before = store.all()
    revision = store.revision

    assert store.upsert_by_identity(_task(9)) is False

    assert store.all() == before
    assert len(store) == 2
    assert store.revision == revision


def test_stale_scan_result_is_discarded():
    store = TaskStore()
    first = store.begin_scan()
    second = store.begin_scan()

    assert store.replace_all([_task(0, "newer")], second) is True
    assert store.replace_all([_task(0, "older")], first) is False

    assert [task.text for task in store.all()] == ["newer"]


def test_unsubscribe_stops_notifications():
    store = TaskStore()
    calls = []

    def listener():
        calls.append(1)

    store.subscribe(listener)
    store.unsubscribe(listener)
    store.replace_all([_task(0)])

    assert calls == []
    assert store.get(_task(0).identity) is not None
