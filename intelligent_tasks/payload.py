"""Payload validation helpers for task endpoints."""

from __future__ import annotations

from typing import Any

from intelligent_tasks.errors import ServiceError
from intelligent_tasks.tags import PRIORITIES, is_valid_priority


def _ensure_payload_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ServiceError(
            "INVALID_TYPE",
            "Payload must be an object.",
            {"type": type(payload).__name__},
        )
    return payload


def _reject_unknown_fields(payload: dict[str, Any], allowed_fields: set[str]) -> None:
    unknown_fields = sorted(set(payload) - allowed_fields)
    if unknown_fields:
        raise ServiceError(
            "UNKNOWN_FIELD",
            "Unknown fields are not allowed.",
            {"fields": unknown_fields},
        )


def _require_identity(payload: dict[str, Any]) -> str:
    if "id" not in payload:
        raise ServiceError(
            "MISSING_ID",
            "id is required.",
            {"fields": ["id"]},
        )
    identity = payload["id"]
    if not isinstance(identity, str) or not identity.strip():
        raise ServiceError(
            "INVALID_TYPE",
            "id must be a non-empty string.",
            {"id": str(identity)},
        )
    return identity


def _read_priority(payload: dict[str, Any]) -> str | None:
    """Return the requested priority, or ``None`` to clear it."""
    if "priority" not in payload:
        raise ServiceError(
            "MISSING_FIELDS",
            "priority is required (null clears it).",
            {"fields": ["priority"]},
        )
    priority = payload["priority"]
    if priority is None:
        return None
    if not is_valid_priority(priority):
        raise ServiceError(
            "INVALID_PRIORITY",
            "priority must be one of low, medium, high.",
            {"priority": str(priority), "allowed": list(PRIORITIES)},
        )
    return priority.strip().lower()


def _read_optional_string(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ServiceError(
            "INVALID_TYPE",
            f"{key} must be a string.",
            {key: str(value)},
        )
    return value
