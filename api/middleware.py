"""
Global middleware.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request

from api.errors import internal_error_response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        # Reuse the caller's id when a proxy already assigned one
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            # rendered here so the 500 still carries the request id and timing
            response = internal_error_response(request, exc)
        elapsed = time.perf_counter() - start

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        user = getattr(request.state, "user", None)
        logger.debug(
            "[%s] %s %s -> %d (user=%s) %.3fs",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            user.id if user is not None else "-",
            elapsed,
        )
        return response
