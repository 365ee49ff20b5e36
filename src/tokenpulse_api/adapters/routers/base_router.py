# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""
Base Router (Adapters Layer)

Purpose:
    Provide a canonical APIRouter wrapper and shared utilities for TokenPulse HTTP endpoints:
      - Versioned routing with stable prefixes (e.g., "/v1/tokens").
      - Standard error response mapping for OpenAPI.

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from fastapi import APIRouter

from tokenpulse_api.adapters.schemas.http.envelopes import (
    ApiErrorBody,
    ErrorEnvelope,
    RateLimitErrorBody,
)
from tokenpulse_api.infrastructure.logging.logger import get_json_logger

_LOGGER = get_json_logger(__name__)

# Tag type accepted by FastAPI for APIRouter.tags
TagType = str | Enum


class BaseRouter(APIRouter):
    """Canonical router wrapper for TokenPulse HTTP endpoints.

    Args:
        version: API version segment (e.g., "v1").
        resource: Plural resource segment (e.g., "tokens").
        prefix: Optional explicit prefix (overrides version/resource).
        tags: Default tags applied to all routes mounted on this router.
        dependencies: Optional global dependencies for all routes.
        **kwargs: Additional APIRouter kwargs.
    """

    def __init__(
        self,
        *,
        version: str,
        resource: str,
        prefix: str | None = None,
        tags: Sequence[TagType] | None = None,
        dependencies: Sequence[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        computed_prefix = prefix or f"/{version}/{resource}"
        super().__init__(
            prefix=computed_prefix,
            tags=list(tags) if tags is not None else None,
            dependencies=list(dependencies) if dependencies is not None else None,
            **kwargs,
        )
        _LOGGER.debug(
            "router_initialized",
            extra={"extra": {"prefix": computed_prefix, "tags": [str(t) for t in tags or []]}},
        )

    @staticmethod
    def std_error_responses() -> dict[int | str, dict[str, Any]]:
        """Return the canonical error response mapping for token endpoints.

        Use in routes via:

            responses=BaseRouter.std_error_responses()

        Returns:
            Mapping from HTTP status code to an OpenAPI response object.
        """
        return {
            400: {"model": ApiErrorBody, "description": "Invalid query parameters."},
            404: {"model": ApiErrorBody, "description": "Unknown token symbol."},
            422: {"model": ErrorEnvelope, "description": "Unprocessable content."},
            429: {"model": RateLimitErrorBody, "description": "Rate limit exceeded."},
            500: {"model": ApiErrorBody, "description": "Failed to fetch token data."},
        }
