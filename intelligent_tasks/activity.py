"""Activity log helpers and endpoint."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import Request

from intelligent_tasks.errors import ServiceError, success_response
from intelligent_tasks.payload import _ensure_payload_dict, _reject_unknown_fields
from intelligent_tasks.request_scope import get_request_service
from intelligent_tasks.router import task_router


def append_activity(log_path: Path, entry: dict[str, Any]) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(entry, sort_keys=True, separators=(",", ":"))
    with log_path.open("a", encoding="utf-8") as log_file:
        log_file.write(payload + "\n")
        log_file.flush()
        os.fsync(log_file.fileno())


def build_activity_entry(
    operation: str,
    file_path: Path,
    line_number: int,
    summary: str,
) -> dict[str, Any]:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "operation": operation,
        "path": file_path.as_posix(),
        "line": line_number,
        "summary": summary,
    }


def read_activity(
    log_path: Path, since: datetime | None = None, limit: int = 50
) -> list[dict[str, Any]]:
    if not log_path.exists():
        return []
    entries: list[dict[str, Any]] = []
    for line in log_path.read_text(encoding="utf-8").splitlines():
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        if since:
            try:
                entry_time = datetime.fromisoformat(entry.get("timestamp"))
            except (TypeError, ValueError):
                entry_time = None
            if entry_time and entry_time < since:
                continue
        entries.append(entry)
    return entries[-limit:]


@task_router.post("/tool:read_activity_log")
def read_activity_log(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Read the most recent source rewrites from the activity log."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"limit", "since"})

    limit = payload.get("limit", 50)
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
        raise ServiceError(
            "INVALID_TYPE",
            "limit must be a positive integer.",
            {"limit": str(limit)},
        )

    since_value = payload.get("since")
    since = None
    if since_value is not None:
        try:
            since = datetime.fromisoformat(str(since_value))
        except ValueError:
            raise ServiceError(
                "INVALID_DATE",
                "since must be ISO date-time.",
                {"since": since_value},
            )
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)

    service = get_request_service(request)
    log_path = service.config.activity_log_path
    if log_path is None:
        return success_response({"entries": [], "enabled": False})
    return success_response(
        {"entries": read_activity(log_path, since, limit), "enabled": True}
    )
