"""FastAPI entrypoint for the task service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from intelligent_tasks.api import register_task_handlers
from intelligent_tasks.config import load_config
from intelligent_tasks.errors import ErrorResponse, ServiceError, error_response
from intelligent_tasks.request_scope import AUTH_EXEMPT_PATHS, SERVICE_TOKEN_HEADER
from intelligent_tasks.service import TaskService

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = load_config()
        service = TaskService(config)
        app.state.config = config
        app.state.service = service
        if config.scan_on_startup:
            summary = await service.scan()
            logger.info(
                "Startup scan found %s tasks in %s files.",
                summary.tasks,
                summary.files,
            )
        try:
            yield
        finally:
            service.close()

    app = FastAPI(lifespan=lifespan)

    @app.middleware("http")
    async def enforce_service_token(request: Request, call_next):
        if request.url.path in AUTH_EXEMPT_PATHS:
            return await call_next(request)

        config = getattr(request.app.state, "config", None)
        service_token = getattr(config, "service_token", None)
        if service_token:
            supplied_token = request.headers.get(SERVICE_TOKEN_HEADER)
            if supplied_token != service_token:
                error = ErrorResponse(
                    code="AUTH_FORBIDDEN",
                    message="Invalid service token.",
                    details={"header": SERVICE_TOKEN_HEADER},
                )
                return JSONResponse(
                    status_code=403, content=error_response(error)
                )

        return await call_next(request)

    @app.exception_handler(ServiceError)
    def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_response(exc.error))

    @app.get("/health", status_code=200)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    register_task_handlers(app)
    return app


app = create_app()
