# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Health endpoints (Adapters Layer).

Purpose:
    Expose liveness and readiness signals suitable for container orchestrators
    and load balancers.

Design:
    * ``/health/z`` never touches shared state.
    * ``/health/readiness`` reports the instrument count and provider breaker
      states. An open breaker marks the service ``degraded`` but keeps HTTP
      200, since the fallback chain still serves rows; only an empty
      instrument list yields 503.
"""

from __future__ import annotations

import typing as t
from enum import Enum
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field

from tokenpulse_api.adapters.schemas.http.base import BaseHTTPSchema
from tokenpulse_api.adapters.schemas.http.tokens import CircuitBreakersHTTP
from tokenpulse_api.application.use_cases.tokens.aggregate_tokens import AggregateTokens
from tokenpulse_api.config.settings import Settings
from tokenpulse_api.dependencies.market_data import (
    get_aggregate_tokens,
    get_app_settings,
    get_instruments,
)
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.enums.quote_source import BreakerState
from tokenpulse_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)
router = APIRouter()


class HealthState(str, Enum):
    """Overall service health classification."""

    OK = "ok"
    """All checks passed."""

    DEGRADED = "degraded"
    """At least one provider breaker is open; fallbacks are serving."""

    DOWN = "down"
    """No instruments configured; nothing can be served."""


class CheckResult(BaseHTTPSchema):
    """Result of a single readiness check."""

    name: str = Field(..., examples=["instruments", "primary", "secondary"])
    status: t.Literal["ok", "down"]
    detail: str | None = None


class ReadinessResponse(BaseHTTPSchema):
    """Aggregated readiness response."""

    status: HealthState
    service: str
    version: str
    instruments: int = Field(..., ge=0)
    circuit_breakers: CircuitBreakersHTTP = Field(..., alias="circuitBreakers")
    checks: list[CheckResult] = Field(default_factory=list)


class LivenessResponse(BaseHTTPSchema):
    """Liveness response indicating the process is running."""

    status: t.Literal["ok"] = "ok"


@router.get(
    "/z",
    summary="Liveness",
    operation_id="health_liveness",
    response_model=LivenessResponse,
    status_code=status.HTTP_200_OK,
)
async def liveness() -> LivenessResponse:
    """Return a fast liveness signal (no shared state)."""
    return LivenessResponse()


@router.get(
    "/readiness",
    summary="Readiness",
    operation_id="health_readiness",
    response_model=ReadinessResponse,
    responses={503: {"description": "No instruments configured", "model": ReadinessResponse}},
)
async def readiness(
    response: Response,
    settings: Annotated[Settings, Depends(get_app_settings)],
    instruments: Annotated[tuple[Instrument, ...], Depends(get_instruments)],
    uc: Annotated[AggregateTokens, Depends(get_aggregate_tokens)],
) -> ReadinessResponse:
    """Report instrument count and breaker states."""
    breakers = uc.breaker_states()
    checks = [
        CheckResult(
            name="instruments",
            status="ok" if instruments else "down",
            detail=f"{len(instruments)} configured",
        ),
        CheckResult(
            name="primary",
            status="down" if breakers.primary is BreakerState.OPEN else "ok",
            detail=f"breaker {breakers.primary.value}",
        ),
        CheckResult(
            name="secondary",
            status="down" if breakers.secondary is BreakerState.OPEN else "ok",
            detail=f"breaker {breakers.secondary.value}",
        ),
    ]

    if not instruments:
        overall = HealthState.DOWN
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif all(c.status == "ok" for c in checks):
        overall = HealthState.OK
    else:
        overall = HealthState.DEGRADED

    payload = ReadinessResponse(
        status=overall,
        service=settings.service_name,
        version=settings.service_version,
        instruments=len(instruments),
        circuit_breakers=CircuitBreakersHTTP(
            primary=breakers.primary,
            secondary=breakers.secondary,
        ),
        checks=checks,
    )
    logger.info(
        "readiness_probe",
        extra={
            "extra": {
                "overall": overall.value,
                "checks": [c.model_dump_http() for c in checks],
            }
        },
    )
    return payload
