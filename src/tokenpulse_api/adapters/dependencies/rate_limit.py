# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Inbound rate-limit gate (Adapters Layer).

Purpose:
    Per-client fixed-window admission for the token routes. Each route owns
    its own key namespace so budgets do not bleed into each other.

Design:
    * Client identity: first ``X-Forwarded-For`` entry, then ``X-Real-IP``,
      then the socket peer, then ``"unknown"``.
    * Rejections raise :class:`RateLimitExceeded`, rendered as a flat 429
      body with ``Retry-After`` and ``X-RateLimit-*`` headers.
    * Admitted requests return the decision so presenters can echo the
      remaining budget.

Layer:
    adapters/dependencies
"""

from __future__ import annotations

import math
from collections.abc import Awaitable, Callable

from fastapi import Depends, Request

from tokenpulse_api.config.settings import Settings
from tokenpulse_api.dependencies.market_data import get_app_settings, get_rate_limiter
from tokenpulse_api.infrastructure.http.errors import RateLimitExceeded
from tokenpulse_api.infrastructure.logging.logger import get_json_logger
from tokenpulse_api.infrastructure.observability.metrics_market_data import (
    inc_rate_limit_rejection,
)
from tokenpulse_api.infrastructure.resilience.rate_limiter import (
    RateLimitConfig,
    RateLimitDecision,
    RateLimiter,
)

logger = get_json_logger(__name__)


def client_identifier(request: Request) -> str:
    """Best-effort client identity for rate limiting."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_gate(
    route: str,
    *,
    limit_of: Callable[[Settings], int],
) -> Callable[..., Awaitable[RateLimitDecision]]:
    """Build a dependency enforcing the per-client budget for ``route``.

    Args:
        route: Namespace for limiter keys and the rejection metric label.
        limit_of: Selects the per-window maximum from settings.

    Returns:
        An async FastAPI dependency yielding the admission decision.
    """

    async def _gate(
        request: Request,
        settings: Settings = Depends(get_app_settings),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> RateLimitDecision:
        config = RateLimitConfig(
            max_requests=limit_of(settings),
            window_s=settings.rate_limit_window_s,
        )
        client = client_identifier(request)
        decision = limiter.check(f"{route}:{client}", config)
        if decision.allowed:
            return decision

        retry_after = decision.retry_after_s(limiter.clock())
        inc_rate_limit_rejection(route)
        logger.warning(
            "rate_limit.rejected",
            extra={"extra": {"route": route, "client": client, "retry_after_s": retry_after}},
        )
        raise RateLimitExceeded(
            limit=decision.limit,
            reset_epoch_s=math.ceil(decision.reset_time),
            retry_after_s=retry_after,
        )

    return _gate
