# coach_server/main.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — FastAPI application entrypoint
-------------------------------------------------------
Wires everything together:

- Sets up central logging.
- Builds the storage backend, generation backend and SessionRouter.
- Creates the FastAPI app with CORS open to all origins.
- Registers exception handlers so every failure is a JSON envelope
  {"success": false, "error": "..."} without internal details.
- Mounts routers under settings.api_prefix (default /api):
    * /chat              (POST) public chat endpoint
    * /session/init      (POST)
    * /session/message   (POST)
    * /session/history   (GET)
    * /session/clear     (POST)
    * /health            (GET)

Typical run command (dev):

    uvicorn coach_server.main:app --host 0.0.0.0 --port 8787 --reload

"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coach_server.core.config import Settings, settings as default_settings
from coach_server.core.errors import CoachError, InternalError
from coach_server.core.generate import GenerationBackend, TieredGenerationBackend
from coach_server.models.api_models import ErrorResponse, HealthResponse
from coach_server.routers.chat import router as chat_router
from coach_server.routers.session import router as session_router
from coach_server.runtime_state import SessionRouter, StorageBackend, build_storage_backend
from coach_server.utils import get_logger, setup_logging

setup_logging(
    debug=default_settings.debug,
    level=default_settings.log_level,
    quiet_loggers=default_settings.quiet_loggers,
    quiet_level=default_settings.quiet_log_level,
)
logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Error envelope helpers
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).to_json_dict(),
    )


def _validation_message(exc: RequestValidationError) -> str:
    """
    "userId is required" / "message is required" for missing or blank
    fields, otherwise a generic message.
    """
    missing = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        if err.get("type") in ("missing", "string_too_short") and loc:
            missing.append(loc[-1])
    if not missing:
        return "Invalid request body"
    fields = list(dict.fromkeys(missing))
    verb = "is" if len(fields) == 1 else "are"
    return f"{' and '.join(fields)} {verb} required"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CoachError)
    async def coach_error_handler(request: Request, exc: CoachError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc,
                exc_info=exc,
            )
        return _error(exc.status_code, exc.client_message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error(404, "API endpoint not found")
        if exc.status_code == 405:
            return _error(405, "Method not allowed")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled %s on %s %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return _error(500, InternalError.public_message)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Optional[Settings] = None,
    storage: Optional[StorageBackend] = None,
    generator: Optional[GenerationBackend] = None,
) -> FastAPI:
    """
    Application factory.

    Tests pass their own settings and backends; production uses the
    global settings, file storage and the tiered LLM backend.
    """
    cfg = app_settings or default_settings

    app = FastAPI(
        title=cfg.app_name,
        version=cfg.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = cfg
    app.state.session_router = SessionRouter(
        cfg,
        storage if storage is not None else build_storage_backend(cfg),
        generator if generator is not None else TieredGenerationBackend(cfg),
    )

    # The browser UI may be served from anywhere.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    api = APIRouter(prefix=cfg.api_prefix)
    api.include_router(chat_router)
    api.include_router(session_router)

    @api.get("/health", tags=["meta"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Lightweight health check for monitoring scripts."""
        return HealthResponse(
            message=f"{cfg.app_name} API is running",
            timestamp=datetime.now(timezone.utc),
            version=cfg.app_version,
        )

    app.include_router(api)

    @app.get("/", tags=["meta"])
    async def root():
        """List the available endpoints."""
        p = cfg.api_prefix
        return {
            "success": True,
            "name": cfg.app_name,
            "environment": cfg.environment,
            "endpoints": [
                f"GET {p}/health",
                f"POST {p}/chat",
                f"POST {p}/session/init",
                f"POST {p}/session/message",
                f"GET {p}/session/history",
                f"POST {p}/session/clear",
            ],
        }

    logger.info(
        "FastAPI app created (env=%s, mode=%s, storage=%s)",
        cfg.environment,
        cfg.coach_mode,
        cfg.storage_backend if storage is None else type(storage).__name__,
    )
    return app


# ASGI app for uvicorn / gunicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "coach_server.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=(default_settings.environment != "production"),
    )
