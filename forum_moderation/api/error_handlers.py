"""Error Handlers: global exception handlers for the moderation API.

Invariants:
    - ForumError -> its own to_response() envelope and http_status
    - RequestValidationError -> 400 with field-level details
    - Exception (catch-all) -> 500 that never leaks internal details

Design Decisions:
    - Registered from main.py through register_error_handlers(app)
    - Permission denials log at WARNING, infrastructure failures at ERROR
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from forum_moderation.core.errors import ErrorSeverity, ForumError

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.WARNING,
    ErrorSeverity.CRITICAL: logging.ERROR,
}


def register_error_handlers(app: FastAPI) -> None:
    _register_forum_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_forum_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ForumError)
    async def forum_error_handler(request: Request, exc: ForumError):
        logger.log(
            _LOG_LEVELS.get(exc.severity, logging.ERROR),
            f"{type(exc).__name__}: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "actor_id": exc.context.actor_id,
                "target_user_id": exc.context.target_user_id,
                "sanction_id": exc.context.sanction_id,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all: never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
