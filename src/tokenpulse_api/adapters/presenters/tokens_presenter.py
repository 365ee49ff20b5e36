# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Tokens presenter.

Maps application DTOs onto the camelCase wire schemas and attaches the
no-store and rate-limit headers.

Layer:
    adapters/presenters
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from tokenpulse_api.adapters.presenters.base_presenter import BasePresenter, PresentResult
from tokenpulse_api.adapters.schemas.http.tokens import (
    CircuitBreakersHTTP,
    HistoryPointHTTP,
    SourcesHTTP,
    TokenHistoryResponse,
    TokenRowHTTP,
    TokensResponse,
)
from tokenpulse_api.application.schemas.dto.tokens import TokenHistoryDTO, TokensEnvelopeDTO
from tokenpulse_api.infrastructure.resilience.rate_limiter import RateLimitDecision

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _epoch_ms(ts: datetime) -> int:
    return (ts - _EPOCH) // timedelta(milliseconds=1)


class TokensPresenter(BasePresenter):
    """Presenter for the token routes."""

    def present_tokens(
        self,
        dto: TokensEnvelopeDTO,
        *,
        decision: RateLimitDecision | None = None,
        trace_id: str | None = None,
    ) -> PresentResult[TokensResponse]:
        """Build the aggregation response.

        Args:
            dto: Aggregation result.
            decision: Limiter decision for the current request.
            trace_id: Request id echoed back.

        Returns:
            PresentResult carrying :class:`TokensResponse`.
        """
        body = TokensResponse(
            data=[
                TokenRowHTTP(
                    symbol=r.symbol,
                    name=r.name,
                    price_usd=r.price_usd,
                    change_24h_pct=r.change_24h_pct,
                    volume_24h_usd=r.volume_24h_usd,
                    source=r.source,
                )
                for r in dto.data
            ],
            updated_at=dto.updated_at,
            sources=SourcesHTTP(
                primary=dto.sources.primary,
                secondary=dto.sources.secondary,
                synthetic=dto.sources.synthetic,
                unavailable=dto.sources.unavailable,
            ),
            warnings=list(dto.warnings) or None,
            circuit_breakers=CircuitBreakersHTTP(
                primary=dto.circuit_breakers.primary,
                secondary=dto.circuit_breakers.secondary,
            ),
        )
        return PresentResult(
            body=body,
            headers=self.standard_headers(decision=decision, trace_id=trace_id),
        )

    def present_history(
        self,
        dto: TokenHistoryDTO,
        *,
        decision: RateLimitDecision | None = None,
        trace_id: str | None = None,
    ) -> PresentResult[TokenHistoryResponse]:
        """Build the history response with epoch-millisecond timestamps."""
        body = TokenHistoryResponse(
            symbol=dto.symbol,
            timeframe=dto.timeframe,
            data=[
                HistoryPointHTTP(
                    timestamp=_epoch_ms(p.timestamp),
                    price=p.price,
                    volume=p.volume,
                )
                for p in dto.data
            ],
            count=dto.count,
            updated_at=dto.updated_at,
        )
        return PresentResult(
            body=body,
            headers=self.standard_headers(decision=decision, trace_id=trace_id),
        )
