"""Configuration loading for the task service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from intelligent_tasks.workspace import DEFAULT_EXCLUDE_GLOBS

ENV_PREFIX = "INTELLIGENT_TASKS_"
DEFAULT_AI_MODEL = "codellama"
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_CONTEXT_LINES = 5


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class AppConfig:
    workspace_roots: tuple[Path, ...]
    todo_patterns: tuple[str, ...] | None = None
    exclude_globs: tuple[str, ...] = DEFAULT_EXCLUDE_GLOBS
    respect_gitignore: bool = True
    scan_on_startup: bool = True
    auto_refresh_on_save: bool = True
    ai_model: str = DEFAULT_AI_MODEL
    ollama_url: str = DEFAULT_OLLAMA_URL
    context_lines: int = DEFAULT_CONTEXT_LINES
    activity_log_path: Path | None = None
    service_token: str | None = None


def _read_dotenv_value(dotenv_path: Path, key: str) -> str | None:
    """Read a single key from a .env file without mutating the environment."""
    if not dotenv_path.is_file():
        return None
    try:
        content = dotenv_path.read_text(encoding="utf-8")
    except OSError:
        return None

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :].strip()
        if "=" not in stripped:
            continue
        name, value = stripped.split("=", 1)
        name = name.strip()
        if name != key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        return value or None
    return None


def _read_setting(dotenv_path: Path, name: str) -> str | None:
    key = ENV_PREFIX + name
    raw_value = os.environ.get(key)
    if raw_value is None:
        raw_value = _read_dotenv_value(dotenv_path, key)
    return raw_value


def _read_bool(raw_value: str | None, *, default: bool, key: str) -> bool:
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{key} must be a boolean value.")


def _read_int(raw_value: str | None, *, default: int, key: str) -> int:
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = int(raw_value.strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer.") from exc
    if value < 0:
        raise ConfigError(f"{key} must not be negative.")
    return value


def _read_list(raw_value: str | None) -> tuple[str, ...] | None:
    if raw_value is None:
        return None
    items = tuple(item.strip() for item in raw_value.split(",") if item.strip())
    return items or None


def _resolve_path(raw_path: str, base: Path) -> Path:
    path = Path(raw_path).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def load_config() -> AppConfig:
    """Load configuration from the environment, falling back to ``.env``."""
    cwd = Path.cwd()
    dotenv_path = cwd / ".env"

    workspace_key = ENV_PREFIX + "WORKSPACE"
    raw_workspace = (_read_setting(dotenv_path, "WORKSPACE") or "").strip()
    if not raw_workspace:
        raise ConfigError(
            f"{workspace_key} is required; set it to the workspace root path."
        )
    roots = tuple(
        _resolve_path(part.strip(), cwd)
        for part in raw_workspace.split(os.pathsep)
        if part.strip()
    )

    exclude_globs = _read_list(_read_setting(dotenv_path, "EXCLUDE"))

    activity_raw = (_read_setting(dotenv_path, "ACTIVITY_LOG") or "").strip()
    activity_log_path = _resolve_path(activity_raw, cwd) if activity_raw else None

    service_token = _read_setting(dotenv_path, "SERVICE_TOKEN")
    service_token = service_token.strip() if isinstance(service_token, str) else None

    ollama_url = (_read_setting(dotenv_path, "OLLAMA_URL") or "").strip()
    ai_model = (_read_setting(dotenv_path, "AI_MODEL") or "").strip()

    return AppConfig(
        workspace_roots=roots,
        todo_patterns=_read_list(_read_setting(dotenv_path, "TODO_PATTERNS")),
        exclude_globs=exclude_globs or DEFAULT_EXCLUDE_GLOBS,
        respect_gitignore=_read_bool(
            _read_setting(dotenv_path, "RESPECT_GITIGNORE"),
            default=True,
            key=ENV_PREFIX + "RESPECT_GITIGNORE",
        ),
        scan_on_startup=_read_bool(
            _read_setting(dotenv_path, "SCAN_ON_STARTUP"),
            default=True,
            key=ENV_PREFIX + "SCAN_ON_STARTUP",
        ),
        auto_refresh_on_save=_read_bool(
            _read_setting(dotenv_path, "AUTO_REFRESH_ON_SAVE"),
            default=True,
            key=ENV_PREFIX + "AUTO_REFRESH_ON_SAVE",
        ),
        ai_model=ai_model or DEFAULT_AI_MODEL,
        ollama_url=ollama_url or DEFAULT_OLLAMA_URL,
        context_lines=_read_int(
            _read_setting(dotenv_path, "CONTEXT_LINES"),
            default=DEFAULT_CONTEXT_LINES,
            key=ENV_PREFIX + "CONTEXT_LINES",
        ),
        activity_log_path=activity_log_path,
        service_token=service_token or None,
    )
