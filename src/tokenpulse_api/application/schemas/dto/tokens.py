# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Token DTOs (Application Layer).

Purpose:
    Transport-agnostic results of the aggregation and history use cases.
    Adapters map these onto HTTP schemas (camelCase) in presenters.

Layer: application/schemas/dto
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from tokenpulse_api.application.schemas.dto.base import BaseDTO
from tokenpulse_api.domain.entities.quotes import HistoryPoint, TokenRow
from tokenpulse_api.domain.enums.quote_source import BreakerState


class TokenRowDTO(BaseDTO):
    """One canonical quote row."""

    symbol: str
    name: str
    price_usd: float = Field(gt=0)
    change_24h_pct: float = Field(ge=-100, le=10_000)
    volume_24h_usd: float = Field(ge=0)
    source: str

    @classmethod
    def from_entity(cls, row: TokenRow) -> TokenRowDTO:
        """Project a domain row onto the DTO."""
        return cls(
            symbol=row.symbol,
            name=row.name,
            price_usd=row.price_usd,
            change_24h_pct=row.change_24h_pct,
            volume_24h_usd=row.volume_24h_usd,
            source=row.source.value,
        )


class SourceCountsDTO(BaseDTO):
    """Row counts per provider tier.

    Attributes:
        primary: Rows tagged ``primary``.
        secondary: Rows tagged ``secondary`` (includes synthetic rows unless
            they are exposed under their own tag).
        synthetic: Rows produced by the synthetic generator, whatever tag
            they carry.
        unavailable: Instruments that produced no row.
    """

    primary: int = Field(default=0, ge=0)
    secondary: int = Field(default=0, ge=0)
    synthetic: int = Field(default=0, ge=0)
    unavailable: int = Field(default=0, ge=0)


class BreakerStatesDTO(BaseDTO):
    """Breaker state snapshot for the two live providers."""

    primary: BreakerState = BreakerState.CLOSED
    secondary: BreakerState = BreakerState.CLOSED


class TokensEnvelopeDTO(BaseDTO):
    """Aggregation result.

    Attributes:
        data: Rows sorted by symbol ascending.
        updated_at: UTC completion time of the aggregation.
        sources: Per-tier counts.
        warnings: One message per unavailable instrument, in config order.
        circuit_breakers: Breaker states at completion time.
    """

    data: list[TokenRowDTO] = Field(default_factory=list)
    updated_at: datetime
    sources: SourceCountsDTO
    warnings: list[str] = Field(default_factory=list)
    circuit_breakers: BreakerStatesDTO


class HistoryPointDTO(BaseDTO):
    """One history point."""

    timestamp: datetime
    price: float
    volume: float

    @classmethod
    def from_entity(cls, point: HistoryPoint) -> HistoryPointDTO:
        """Project a domain history point onto the DTO."""
        return cls(timestamp=point.timestamp, price=point.price, volume=point.volume)


class TokenHistoryDTO(BaseDTO):
    """History series for one instrument."""

    symbol: str
    timeframe: str
    data: list[HistoryPointDTO] = Field(default_factory=list)
    count: int = Field(ge=0)
    updated_at: datetime
