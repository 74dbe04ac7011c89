"""Run the task service with uvicorn."""

from __future__ import annotations

import logging
import os

import uvicorn

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = "18170"


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("INTELLIGENT_TASKS_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("INTELLIGENT_TASKS_HOST", DEFAULT_HOST)
    port = int(os.environ.get("INTELLIGENT_TASKS_PORT", DEFAULT_PORT))
    uvicorn.run("intelligent_tasks.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
