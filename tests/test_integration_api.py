import pytest
from fastapi.testclient import TestClient

from intelligent_tasks.main import create_app
from intelligent_tasks.request_scope import SERVICE_TOKEN_HEADER

SETTINGS = [
    "TODO_PATTERNS",
    "EXCLUDE",
    "SCAN_ON_STARTUP",
    "AUTO_REFRESH_ON_SAVE",
    "ACTIVITY_LOG",
    "SERVICE_TOKEN",
]


@pytest.fixture
def workspace(monkeypatch, tmp_path):
    for name in SETTINGS:
        monkeypatch.delenv(f"INTELLIGENT_TASKS_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "ws"
    (root / "lib").mkdir(parents=True)
    (root / "lib" / "queue.rs").write_text(
        "fn pop() {\n    // FIXME(low): drains twice\n}\n", encoding="utf-8"
    )
    (root / "node_modules" / "dep").mkdir(parents=True)
    (root / "node_modules" / "dep" / "index.js").write_text(
        "// TODO: not ours\n", encoding="utf-8"
    )
    monkeypatch.setenv("INTELLIGENT_TASKS_WORKSPACE", str(root))
    monkeypatch.setenv("INTELLIGENT_TASKS_RESPECT_GITIGNORE", "false")
    return root


def _only_task(client):
    response = client.post("/tool:list_tasks", json={})
    assert response.status_code == 200
    groups = response.json()["data"]["groups"]
    assert len(groups) == 1
    return groups[0]["children"][0]["task"]


def test_startup_scan_and_edits(workspace):
    with TestClient(create_app()) as client:
        task = _only_task(client)
        assert task["type"] == "FIXME"
        assert task["priority"] == "low"

        response = client.post(
            "/tool:set_priority", json={"id": task["id"], "priority": "high"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["changed"] is True

        response = client.post("/tool:toggle_pin", json={"id": task["id"]})
        assert response.json()["data"]["task"]["pinned"] is True

        rescanned = client.post("/tool:scan_workspace", json={})
        assert rescanned.json()["data"]["scan"]["tasks"] == 1
        task = _only_task(client)

    assert task["priority"] == "high"
    assert task["pinned"] is True
    assert (workspace / "lib" / "queue.rs").read_text(encoding="utf-8") == (
        "fn pop() {\n    // FIXME(high)*: drains twice\n}\n"
    )


def test_service_errors_return_400(workspace):
    with TestClient(create_app()) as client:
        response = client.post("/tool:toggle_pin", json={"id": "gone-0-0"})

    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "TASK_NOT_FOUND"


def test_service_token_is_enforced(workspace, monkeypatch):
    monkeypatch.setenv("INTELLIGENT_TASKS_SERVICE_TOKEN", "s3cret")

    with TestClient(create_app()) as client:
        health = client.get("/health")
        denied = client.post("/tool:list_tasks", json={})
        allowed = client.post(
            "/tool:list_tasks", json={}, headers={SERVICE_TOKEN_HEADER: "s3cret"}
        )

    assert health.status_code == 200
    assert denied.status_code == 403
    assert denied.json()["error"]["code"] == "AUTH_FORBIDDEN"
    assert allowed.status_code == 200
