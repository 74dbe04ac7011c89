"""Shared router for task tool endpoints."""

from __future__ import annotations

from fastapi import APIRouter

task_router = APIRouter()
