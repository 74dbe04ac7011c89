"""Request-scoped access to the session's task service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from intelligent_tasks.errors import ServiceError

if TYPE_CHECKING:
    from intelligent_tasks.service import TaskService

SERVICE_TOKEN_HEADER = "X-Intelligent-Tasks-Token"
AUTH_EXEMPT_PATHS = {"/health"}


def get_request_service(request: Request) -> TaskService:
    """Return the task service attached to the application state."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise ServiceError(
            "SERVICE_UNAVAILABLE",
            "Task service has not been initialized.",
            {},
        )
    return service
