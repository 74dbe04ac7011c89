"""Suggestion backend: prompt construction and the Ollama client."""

from __future__ import annotations

from typing import Any, Sequence

import httpx

from intelligent_tasks.errors import SuggestionError
from intelligent_tasks.models import Task

PROMPT_TEMPLATE = (
    "You are reviewing an annotation left in a source file.\n"
    "Task type: {tag}\n"
    "Priority: {priority}\n"
    "Description: {text}\n"
    "Location: {location}\n"
    "\n"
    "Surrounding code:\n"
    "{context}\n"
    "\n"
    "Suggest a concise, concrete way to resolve this task. "
    "Answer in a few sentences without repeating the code."
)


def context_window(
    lines: Sequence[str], line_number: int, radius: int
) -> list[tuple[int, str]]:
    """Return ``(line_number, text)`` pairs within ``radius`` of a 1-based line."""
    if not lines:
        return []
    start = max(1, line_number - radius)
    end = min(len(lines), line_number + radius)
    return [(number, lines[number - 1]) for number in range(start, end + 1)]


def build_suggestion_prompt(task: Task, context: Sequence[tuple[int, str]]) -> str:
    numbered = "\n".join(
        f"{'>' if number == task.line_number else ' '} {number:>5} | {text}"
        for number, text in context
    )
    return PROMPT_TEMPLATE.format(
        tag=task.tag,
        priority=task.priority,
        text=task.text,
        location=f"{task.file_name}:{task.line_number}",
        context=numbered or "(no context available)",
    )


class OllamaClient:
    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._http = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def generate(self, prompt: str) -> str:
        try:
            response = self._http.post(
                f"{self._base_url}/api/generate",
                json={
                    "model": self._model,
                    "prompt": prompt,
                    "stream": False,
                },
            )
            response.raise_for_status()
            body: Any = response.json()
        except httpx.HTTPError as exc:
            raise SuggestionError(
                "SUGGESTION_FAILED",
                "Suggestion backend request failed.",
                {"url": self._base_url, "model": self._model, "error": str(exc)},
            ) from exc
        except ValueError as exc:
            raise SuggestionError(
                "SUGGESTION_FAILED",
                "Suggestion backend returned a non-JSON response.",
                {"url": self._base_url, "model": self._model},
            ) from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise SuggestionError(
                "SUGGESTION_EMPTY",
                "Suggestion backend returned no text.",
                {"model": self._model},
            )
        return text.strip()
