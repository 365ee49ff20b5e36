# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Presenter utilities.

Purpose:
    Thin, framework-aware helpers used by routers to consistently shape HTTP
    responses and headers.

Responsibilities:
    * Carry a response body together with the headers it must ship with.
    * Apply standard headers (no-store caching, X-Request-ID, rate-limit state).

Layer:
    adapters/presenters
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from fastapi import Response

from tokenpulse_api.infrastructure.http.errors import NO_STORE_HEADERS
from tokenpulse_api.infrastructure.logging.logger import get_json_logger
from tokenpulse_api.infrastructure.resilience.rate_limiter import RateLimitDecision

_LOGGER = get_json_logger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class PresentResult(Generic[T]):
    """Presentation result envelope.

    Attributes:
        body: A Pydantic schema instance.
        headers: Extra HTTP headers to apply.
        status_code: Optional HTTP status override.
    """

    body: T
    headers: Mapping[str, str]
    status_code: int | None = None


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """Return ``X-RateLimit-*`` headers; the reset is in epoch seconds."""
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(math.ceil(decision.reset_time)),
    }


class BasePresenter:
    """Base presenter for HTTP response shaping in adapter layers."""

    @staticmethod
    def standard_headers(
        *,
        decision: RateLimitDecision | None = None,
        trace_id: str | None = None,
    ) -> dict[str, str]:
        """Build the header set every token response carries."""
        headers = dict(NO_STORE_HEADERS)
        if decision is not None:
            headers.update(rate_limit_headers(decision))
        if trace_id:
            headers["X-Request-ID"] = trace_id
        return headers

    @staticmethod
    def apply_headers(result: PresentResult[Any], response: Response) -> None:
        """Apply headers and optional status code to the outgoing response."""
        response.headers.update(dict(result.headers))
        if result.status_code is not None:
            response.status_code = result.status_code
        _LOGGER.debug(
            "presenter.headers_applied",
            extra={"extra": {"headers": sorted(result.headers)}},
        )
