"""
Application error taxonomy and the handlers that render it.

Every failure leaves the API as ``{"success": false, "message": ...}``;
validation failures add ``"errors": [{"field", "message"}]``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_LOCATION_ROOTS = {"body", "query", "path", "header", "cookie"}
ROUTE_NOT_FOUND = "Route not found"


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"

    def __init__(
        self,
        errors: List[Dict[str, str]],
        message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors


class DuplicateEmail(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Email already registered. Please login instead."


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authorized to access this route."


class NotFoundOrForbidden(AppError):
    """Raised for a task that is missing *or* owned by someone else."""

    status_code = status.HTTP_404_NOT_FOUND
    message = "Task not found or you do not have permission to access it."


def _error_body(message: str, **extra: Any) -> Dict[str, Any]:
    return {"success": False, "message": message, **extra}


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if not isinstance(p, int)]
    if parts and parts[0] in _LOCATION_ROOTS and len(parts) > 1:
        parts = parts[1:]
    return parts[-1] if parts else "request"


def _clean_message(msg: str) -> str:
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


def internal_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected failure with its traceback and hide the details from the caller."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(AppError.message),
    )


def format_validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    return [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": _clean_message(err.get("msg", ""))}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Attach JSON error handlers for the whole taxonomy."""

    @app.exception_handler(ValidationFailed)
    async def validation_failed_handler(request: Request, exc: ValidationFailed):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, errors=exc.errors),
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        failure = ValidationFailed(format_validation_errors(exc))
        logger.debug("Validation failed on %s %s: %s", request.method, request.url.path, failure.errors)
        return await validation_failed_handler(request, failure)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # task lookups raise NotFoundOrForbidden, so a bare 404 here means no route matched
        message = ROUTE_NOT_FOUND if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        return internal_error_response(request, exc)
