"""Task tool endpoints.

Handlers are coroutines so that every read and write of the session store
happens on the event loop; blocking file and network work is pushed to
worker threads by the service.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import Request

from intelligent_tasks.errors import ServiceError, success_response
from intelligent_tasks.payload import (
    _ensure_payload_dict,
    _read_optional_string,
    _read_priority,
    _reject_unknown_fields,
    _require_identity,
)
from intelligent_tasks.request_scope import get_request_service
from intelligent_tasks.router import task_router
from intelligent_tasks.view import node_to_dict


@task_router.post("/tool:scan_workspace")
async def scan_workspace(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Rescan every workspace file and replace the task set."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, set())

    service = get_request_service(request)
    summary = await service.scan()
    return success_response({"scan": summary.to_dict()})


@task_router.post("/tool:list_tasks")
async def list_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Return the grouped task tree under the active filters.

    Filters given in the payload replace the session's active ones; omitted
    filters keep their current value. ``reset`` clears all filters first.
    """
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"type", "priority", "search", "reset"})

    service = get_request_service(request)
    if payload.get("reset") is True:
        service.view.clear_filters()
    filters = service.view.set_filters(
        type_filter=_read_optional_string(payload, "type"),
        priority_filter=_read_optional_string(payload, "priority"),
        search_query=_read_optional_string(payload, "search"),
    )
    groups = service.view.groups()
    return success_response(
        {
            "filters": {
                "type": filters.type_filter,
                "priority": filters.priority_filter,
                "search": filters.search_query,
            },
            "total": len(service.store),
            "visible": sum(len(group.tasks) for group in groups),
            "groups": [node_to_dict(group) for group in groups],
        }
    )


@task_router.post("/tool:expand_task")
async def expand_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Materialize the suggestion leaves beneath one task."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})
    identity = _require_identity(payload)

    service = get_request_service(request)
    children = service.view.children(identity)
    if children is None:
        raise ServiceError(
            "TASK_NOT_FOUND",
            "Task ID not found; rescan the workspace.",
            {"id": identity},
        )
    return success_response({"children": [node_to_dict(child) for child in children]})


@task_router.post("/tool:set_priority")
async def set_priority(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Set or clear a task's priority in its source comment."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id", "priority"})
    identity = _require_identity(payload)
    priority = _read_priority(payload)

    service = get_request_service(request)
    outcome = await service.set_priority(identity, priority)
    return success_response(outcome.to_dict())


@task_router.post("/tool:toggle_pin")
async def toggle_pin(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Add or remove the pin marker in a task's source comment."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})
    identity = _require_identity(payload)

    service = get_request_service(request)
    outcome = await service.toggle_pin(identity)
    return success_response(outcome.to_dict())


@task_router.post("/tool:toggle_complete")
async def toggle_complete(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Mark a task done, or reopen it."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})
    identity = _require_identity(payload)

    service = get_request_service(request)
    task = service.toggle_complete(identity)
    return success_response({"task": task.to_dict()})


@task_router.post("/tool:suggest_task")
async def suggest_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Ask the suggestion backend for advice on one task."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})
    identity = _require_identity(payload)

    service = get_request_service(request)
    task = await service.suggest(identity)
    return success_response({"task": task.to_dict(), "suggestion": task.suggestions[-1]})


@task_router.post("/tool:file_saved")
async def file_saved(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Notify the service that a file was saved."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"path"})
    raw_path = _read_optional_string(payload, "path")
    if not raw_path:
        raise ServiceError(
            "MISSING_PATH",
            "path is required.",
            {"fields": ["path"]},
        )

    service = get_request_service(request)
    summary = await service.file_saved(Path(raw_path))
    return success_response(
        {
            "refreshed": summary is not None,
            "scan": summary.to_dict() if summary is not None else None,
        }
    )
