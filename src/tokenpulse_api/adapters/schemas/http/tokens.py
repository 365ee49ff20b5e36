# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""HTTP Schemas: Tokens (Adapters Layer).

Purpose:
    Wire contracts for ``GET /v1/tokens`` and
    ``GET /v1/tokens/{symbol}/history``. Field names are camelCase on the
    wire; timestamps are ISO-8601 UTC except history points, which carry
    epoch milliseconds for charting clients.

Layer:
    adapters/schemas/http
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field

from tokenpulse_api.adapters.schemas.http.base import BaseHTTPSchema
from tokenpulse_api.domain.enums.quote_source import BreakerState

__all__ = [
    "CircuitBreakersHTTP",
    "HistoryPointHTTP",
    "SourcesHTTP",
    "TokenHistoryResponse",
    "TokenRowHTTP",
    "TokensResponse",
]

Timeframe = Literal["1h", "24h", "7d", "30d"]


class TokenRowHTTP(BaseHTTPSchema):
    """One canonical quote row."""

    model_config = ConfigDict(
        title="TokenRow",
        json_schema_extra={
            "example": {
                "symbol": "AAPL",
                "name": "Apple Inc.",
                "priceUsd": 220.75,
                "change24hPct": 1.25,
                "volume24hUsd": 5000000,
                "source": "primary",
            }
        },
    )

    symbol: str = Field(..., description="Upper-case ticker.")
    name: str = Field(..., description="Instrument display name.")
    price_usd: float = Field(..., gt=0, alias="priceUsd")
    change_24h_pct: float = Field(..., ge=-100, le=10_000, alias="change24hPct")
    volume_24h_usd: float = Field(..., ge=0, alias="volume24hUsd")
    source: str = Field(..., description="Provider tier that produced the row.")


class SourcesHTTP(BaseHTTPSchema):
    """Per-tier row counts.

    ``synthetic`` counts rows produced by the deterministic fallback; those
    rows are also counted under the tag they carry.
    """

    model_config = ConfigDict(title="Sources")

    primary: int = Field(..., ge=0)
    secondary: int = Field(..., ge=0)
    synthetic: int = Field(..., ge=0)
    unavailable: int = Field(..., ge=0)


class CircuitBreakersHTTP(BaseHTTPSchema):
    """Breaker states of the live providers."""

    model_config = ConfigDict(title="CircuitBreakers")

    primary: BreakerState
    secondary: BreakerState


class TokensResponse(BaseHTTPSchema):
    """Aggregated quotes envelope. ``warnings`` is omitted when empty."""

    model_config = ConfigDict(title="TokensResponse")

    data: list[TokenRowHTTP] = Field(default_factory=list)
    updated_at: datetime = Field(..., alias="updatedAt")
    sources: SourcesHTTP
    warnings: list[str] | None = Field(default=None)
    circuit_breakers: CircuitBreakersHTTP = Field(..., alias="circuitBreakers")


class HistoryPointHTTP(BaseHTTPSchema):
    """One history point; ``timestamp`` in epoch milliseconds."""

    model_config = ConfigDict(title="HistoryPoint")

    timestamp: int = Field(..., ge=0)
    price: float
    volume: float = Field(..., ge=0)


class TokenHistoryResponse(BaseHTTPSchema):
    """History series, oldest point first."""

    model_config = ConfigDict(title="TokenHistoryResponse")

    symbol: str
    timeframe: Timeframe
    data: list[HistoryPointHTTP] = Field(default_factory=list)
    count: int = Field(..., ge=0)
    updated_at: datetime = Field(..., alias="updatedAt")
