# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""
Tokens Router.

Summary:
    ``GET /v1/tokens`` returns the aggregated quote envelope for every
    configured instrument. ``GET /v1/tokens/{symbol}/history`` returns a
    deterministic price series for one instrument.

Layer:
    adapters/routers
"""
from __future__ import annotations

from typing import Annotated, Literal

from fastapi import Depends, Query, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tokenpulse_api.adapters.dependencies.rate_limit import rate_limit_gate
from tokenpulse_api.adapters.presenters.tokens_presenter import TokensPresenter
from tokenpulse_api.adapters.routers.base_router import BaseRouter
from tokenpulse_api.adapters.schemas.http.tokens import TokenHistoryResponse, TokensResponse
from tokenpulse_api.application.use_cases.tokens.aggregate_tokens import AggregateTokens
from tokenpulse_api.application.use_cases.tokens.get_token_history import (
    DEFAULT_LIMIT,
    DEFAULT_TIMEFRAME,
    MAX_LIMIT,
    GetTokenHistory,
)
from tokenpulse_api.dependencies.market_data import (
    get_aggregate_tokens,
    get_instruments,
    get_token_history,
)
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.infrastructure.http.errors import ApiError
from tokenpulse_api.infrastructure.logging.logger import get_json_logger
from tokenpulse_api.infrastructure.resilience.rate_limiter import RateLimitDecision

logger = get_json_logger(__name__)

router = BaseRouter(version="v1", resource="tokens", tags=["Tokens"])
presenter = TokensPresenter()

tokens_gate = rate_limit_gate("tokens", limit_of=lambda s: s.rate_limit_max_requests)
history_gate = rate_limit_gate("history", limit_of=lambda s: s.history_rate_limit_max_requests)


class HistoryQuery(BaseModel):
    """Query parameters for the history route."""

    model_config = ConfigDict(extra="forbid")

    timeframe: Literal["1h", "24h", "7d", "30d"] = DEFAULT_TIMEFRAME
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)


def _trace_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get(
    "",
    response_model=TokensResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Aggregated quotes for all configured tokens",
)
async def list_tokens(
    request: Request,
    response: Response,
    decision: Annotated[RateLimitDecision, Depends(tokens_gate)],
    uc: Annotated[AggregateTokens, Depends(get_aggregate_tokens)],
    instruments: Annotated[tuple[Instrument, ...], Depends(get_instruments)],
) -> TokensResponse:
    """Return one row per available instrument, sorted by symbol.

    Raises:
        ApiError: 500 when the aggregation itself fails.
    """
    try:
        dto = await uc.execute(instruments)
    except Exception as exc:
        logger.exception("tokens.aggregation_failed")
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to fetch token data",
            str(exc) or "Unknown error",
        ) from exc

    result = presenter.present_tokens(dto, decision=decision, trace_id=_trace_id(request))
    presenter.apply_headers(result, response)
    return result.body


@router.get(
    "/{symbol}/history",
    response_model=TokenHistoryResponse,
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Price history for one token",
)
async def token_history(
    request: Request,
    response: Response,
    symbol: str,
    decision: Annotated[RateLimitDecision, Depends(history_gate)],
    uc: Annotated[GetTokenHistory, Depends(get_token_history)],
    instruments: Annotated[tuple[Instrument, ...], Depends(get_instruments)],
    timeframe: Annotated[
        str | None, Query(description="One of 1h, 24h, 7d, 30d.", examples=["24h"])
    ] = None,
    limit: Annotated[
        str | None, Query(description="Number of points (1..100).", examples=["24"])
    ] = None,
) -> TokenHistoryResponse:
    """Return ``limit`` points for ``symbol`` ordered oldest first.

    Raises:
        ApiError: 400 on invalid query, 404 on unknown symbol, 500 otherwise.
    """
    raw = {k: v for k, v in (("timeframe", timeframe), ("limit", limit)) if v is not None}
    try:
        query = HistoryQuery.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors(include_url=False)[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "query"
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Invalid query parameters",
            f"{field}: {first.get('msg', 'invalid value')}",
        ) from exc

    wanted = symbol.strip().upper()
    instrument = next((i for i in instruments if i.symbol == wanted), None)
    if instrument is None:
        raise ApiError(
            status.HTTP_404_NOT_FOUND,
            "Token not found",
            f"Unknown token symbol: {wanted}",
        )

    try:
        dto = await uc.execute(instrument, timeframe=query.timeframe, limit=query.limit)
    except Exception as exc:
        logger.exception("tokens.history_failed", extra={"extra": {"symbol": wanted}})
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to fetch historical data",
            str(exc) or "Unknown error",
        ) from exc

    result = presenter.present_history(dto, decision=decision, trace_id=_trace_id(request))
    presenter.apply_headers(result, response)
    return result.body
