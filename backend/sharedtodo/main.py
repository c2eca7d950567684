"""
Shared Todo Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       bound to one `Database`. Tests pass their own SQLite-backed Database.
Who:   uvicorn (`uvicorn sharedtodo.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌──────────┐ ┌─────────┐ ┌───────────┐  │
    │  │ Rate Limit │→│  Req ID  │→│ Logging │→│ GZip/CORS │  │
    │  └────────────┘ └──────────┘ └─────────┘ └───────────┘  │
    │                                                          │
    │  Routes (/api/v1):                                       │
    │  ┌──────┐ ┌───────┐ ┌─────────────┐ ┌───────┐ ┌───────┐ │
    │  │ auth │ │ notes │ │ invitations │ │ tasks │ │ info  │ │
    │  └──────┘ └───────┘ └─────────────┘ └───────┘ └───────┘ │
    │  + GET /health                                           │
    │                                                          │
    │  Exception Handlers → {"success": false, "error": {...}} │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate configuration (logged, non-fatal)
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from sharedtodo import __version__
from sharedtodo.config import settings
from sharedtodo.database import Database
from sharedtodo.exceptions import (
    DatabaseError,
    RateLimitExceededError,
    SharedTodoError,
    ValidationError,
)
from sharedtodo.middleware.logging import RequestLoggingMiddleware, redact_path
from sharedtodo.middleware.rate_limit import RateLimitMiddleware
from sharedtodo.middleware.request_id import RequestIDMiddleware, request_id_var
from sharedtodo.routes import auth, health, invitations, notes, tasks

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2026-01-15T12:00:00 [INFO] sharedtodo.services.note_service: Note created: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    for name in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "passlib"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Shared Todo backend %s starting (%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Non-fatal: the health endpoint keeps answering
        logger.error("Configuration error: %s", str(e))

    logger.info("API mounted at %s", settings.api_prefix)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Shared Todo backend shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


def validation_details(errors) -> List[Dict[str, str]]:
    """FastAPI/pydantic error list → [{field, message}]."""
    details = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc) or "request", "message": message})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the error envelope.

    Handler hierarchy:
        SharedTodoError         → its own status and code
        RequestValidationError  → 400 VALIDATION_ERROR with field details
        IntegrityError          → 409 CONFLICT (unique constraint races)
        SQLAlchemyError         → 500 DATABASE_ERROR (generic message)
        HTTPException           → its status (unknown routes → 404 NOT_FOUND)
        Exception (fallback)    → 500 INTERNAL_SERVER_ERROR

    Only validation errors carry `details`; everything else is code and
    message, with internal context logged server-side. Logged paths go
    through `redact_path` so invitation tokens never appear in full.
    """

    def app_error_response(request: Request, exc: SharedTodoError) -> JSONResponse:
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            level,
            "[%s] %s %s → %d %s: %s | Context: %s",
            _request_id(request), request.method, redact_path(request.url.path),
            exc.status_code, exc.code, exc.message, exc.context,
        )
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        details = exc.details if isinstance(exc, ValidationError) else None
        return error_response(exc.status_code, exc.code, exc.message, details, headers)

    @app.exception_handler(SharedTodoError)
    async def handle_app_error(request: Request, exc: SharedTodoError):
        return app_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = ValidationError(
            "Request validation failed",
            details=validation_details(exc.errors()),
        )
        return app_error_response(request, error)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning(
            "[%s] %s %s → 409 CONFLICT: %s",
            _request_id(request), request.method, redact_path(request.url.path), exc.orig,
        )
        return error_response(409, "CONFLICT", "The request conflicts with existing data")

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        """SQL text and driver messages stay in the log."""
        logger.error(
            "[%s] %s %s → database error: %s",
            _request_id(request), request.method, redact_path(request.url.path), str(exc),
            exc_info=True,
        )
        error = DatabaseError(context={"error": type(exc).__name__})
        return error_response(error.status_code, error.code, error.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404:
            message = f"Route {request.method} {request.url.path} not found"
        return error_response(exc.status_code, code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace goes to the log only; production hides the message too."""
        logger.error(
            "[%s] %s %s → 500 unexpected error: %s",
            _request_id(request), request.method, redact_path(request.url.path), str(exc),
            exc_info=True,
        )
        message = (
            "An unexpected error occurred. Please try again later."
            if settings.is_production
            else str(exc) or type(exc).__name__
        )
        return error_response(500, "INTERNAL_SERVER_ERROR", message)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: persistence handle to bind; a new one is built from
                  DATABASE_URL when omitted.
    """
    app = FastAPI(
        title="Shared Todo API",
        description=(
            "Collaborative notes with role-based sharing, email invitations "
            "and tasks."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database or Database()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    prefix = settings.api_prefix
    app.include_router(auth.router, prefix=prefix)
    app.include_router(notes.router, prefix=prefix)
    app.include_router(invitations.router, prefix=prefix)
    app.include_router(tasks.router, prefix=prefix)
    app.include_router(health.api_router, prefix=prefix)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `sharedtodo.main:app` to be importable
app = create_app()
