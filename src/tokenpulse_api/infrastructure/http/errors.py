# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Exception-to-response mapping for the HTTP boundary.

Two body shapes leave the service:

* ``{"error": {code, http_status, message, details?, trace_id?}}`` for
  framework errors (request validation, unknown routes, unhandled crashes).
* ``{error, message, updatedAt, ...}`` for :class:`ApiError` raised by the
  token routes (rate limiting, bad queries, aggregation failures).
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.responses import Response

from tokenpulse_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

NO_STORE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class ApiError(Exception):
    """Error rendered as a flat ``{error, message, updatedAt}`` body.

    Args:
        status_code: HTTP status to return.
        error: Short error title.
        message: Human-readable detail.
        headers: Extra response headers.
        extra: Additional body fields (camelCase keys).
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        *,
        headers: Mapping[str, str] | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.headers: dict[str, str] = dict(headers or {})
        self.extra: dict[str, Any] = dict(extra or {})


class RateLimitExceeded(ApiError):
    """429 with ``retryAfter`` in the body and the limiter headers."""

    def __init__(
        self,
        *,
        limit: int,
        reset_epoch_s: int,
        retry_after_s: int,
    ) -> None:
        super().__init__(
            429,
            "Rate limit exceeded",
            "Too many requests. Please try again later.",
            headers={
                "Retry-After": str(retry_after_s),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(reset_epoch_s),
            },
            extra={"retryAfter": retry_after_s},
        )
        self.retry_after_s = retry_after_s


def _trace_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def error_envelope(
    *,
    code: str,
    http_status: int,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    err: dict[str, Any] = {
        "code": code,
        "http_status": http_status,
        "message": message,
    }
    if details is not None:
        err["details"] = details
    if trace_id is not None:
        err["trace_id"] = trace_id
    return {"error": err}


async def handle_api_error(request: Request, exc: ApiError) -> Response:
    payload: dict[str, Any] = {
        "error": exc.error,
        "message": exc.message,
        "updatedAt": datetime.now(tz=UTC).isoformat().replace("+00:00", "Z"),
        **exc.extra,
    }
    headers = {**NO_STORE_HEADERS, **exc.headers}
    return JSONResponse(status_code=exc.status_code, content=payload, headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
    payload = error_envelope(
        code="VALIDATION_ERROR",
        http_status=422,
        message="Request validation failed",
        details={"errors": jsonable_encoder(exc.errors())},
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=422, content=payload)


async def handle_http_exception(request: Request, exc: HTTPException) -> Response:
    payload = error_envelope(
        code="HTTP_ERROR",
        http_status=exc.status_code,
        message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
        details=None if isinstance(exc.detail, str) else {"detail": exc.detail},
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


async def handle_unhandled_exception(request: Request, exc: Exception) -> Response:
    logger.error(
        "http.unhandled_exception",
        extra={
            "extra": {
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "error": str(exc),
            }
        },
    )
    payload = error_envelope(
        code="INTERNAL_ERROR",
        http_status=500,
        message="Internal server error",
        details=None,
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=500, content=payload)
