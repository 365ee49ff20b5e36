# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""HTTP Envelopes (Adapters Layer).

Purpose:
    Transport-facing error shapes:
      - ErrorEnvelope: ``{"error": ErrorObject}`` used by the shared
        handlers for framework errors (validation, unknown routes, crashes).
      - ApiErrorBody / RateLimitErrorBody: the flat ``{error, message, ...}``
        bodies returned by the token routes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field

from tokenpulse_api.adapters.schemas.http.base import BaseHTTPSchema

__all__ = [
    "ApiErrorBody",
    "ErrorEnvelope",
    "ErrorObject",
    "RateLimitErrorBody",
]


# ---------------------------------------------------------------------------
# Error Object / Envelope
# ---------------------------------------------------------------------------


class ErrorObject(BaseHTTPSchema):
    """Structured error object inside ErrorEnvelope.

    Error codes are UPPER_SNAKE_CASE and stable across releases.
    """

    model_config = ConfigDict(
        title="ErrorObject",
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "code": "VALIDATION_ERROR",
                    "http_status": 422,
                    "message": "Request validation failed",
                    "details": {},
                    "trace_id": "req-123",
                }
            ]
        },
    )

    code: str = Field(..., description="Stable machine-readable error code.")
    http_status: int = Field(..., description="Associated HTTP status.")
    message: str = Field(..., description="Human-readable error description.")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional structured details safe for clients.",
    )
    trace_id: str | None = Field(default=None, description="Request correlation identifier.")


class ErrorEnvelope(BaseHTTPSchema):
    r"""Canonical error envelope: {"error": ErrorObject}."""

    model_config = ConfigDict(title="ErrorEnvelope", extra="forbid")

    error: ErrorObject = Field(..., description="Structured error details.")


# ---------------------------------------------------------------------------
# Flat token-route errors
# ---------------------------------------------------------------------------


class ApiErrorBody(BaseHTTPSchema):
    """Flat error body returned by the token routes."""

    model_config = ConfigDict(
        title="ApiErrorBody",
        extra="forbid",
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "error": "Failed to fetch token data",
                    "message": "Instrument configuration is empty",
                    "updatedAt": "2025-01-01T00:00:00Z",
                }
            ]
        },
    )

    error: str = Field(..., description="Short error title.")
    message: str = Field(..., description="Human-readable detail.")
    updated_at: datetime = Field(..., alias="updatedAt", description="Time of the failure.")


class RateLimitErrorBody(ApiErrorBody):
    """429 body; ``retryAfter`` mirrors the ``Retry-After`` header."""

    model_config = ConfigDict(title="RateLimitErrorBody", extra="forbid", populate_by_name=True)

    retry_after: int = Field(..., ge=1, alias="retryAfter", description="Seconds to wait.")
