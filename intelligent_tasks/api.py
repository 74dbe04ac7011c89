"""Endpoint registration."""

# ruff: noqa: F401

from __future__ import annotations

from fastapi import FastAPI

from intelligent_tasks.router import task_router

# Import modules to register routes with the shared router.
from intelligent_tasks import activity, task_endpoints

# Re-export endpoints for tests and direct imports.
from intelligent_tasks.activity import read_activity_log
from intelligent_tasks.task_endpoints import (
    expand_task,
    file_saved,
    list_tasks,
    scan_workspace,
    set_priority,
    suggest_task,
    toggle_complete,
    toggle_pin,
)


def register_task_handlers(app: FastAPI) -> None:
    """Attach task routes to the FastAPI application."""
    app.include_router(task_router)
