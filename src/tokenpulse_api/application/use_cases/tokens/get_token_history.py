# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Use Case: Get Token Price History.

Purpose:
    Return a synthetic, deterministic price series for one configured
    instrument. No upstream provider offers history for these instruments,
    so the series is generated and anchored on the synthetic base price.

Layer:
    application/use_cases
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Final

from tokenpulse_api.application.schemas.dto.tokens import HistoryPointDTO, TokenHistoryDTO
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.services.synthetic_quotes import (
    HISTORY_INTERVALS,
    SyntheticQuoteGenerator,
)

DEFAULT_TIMEFRAME: Final[str] = "24h"
DEFAULT_LIMIT: Final[int] = 24
MAX_LIMIT: Final[int] = 100
TIMEFRAMES: Final[tuple[str, ...]] = tuple(HISTORY_INTERVALS)


class GetTokenHistory:
    """Use case producing a history series for one instrument."""

    def __init__(
        self,
        generator: SyntheticQuoteGenerator | None = None,
        *,
        now: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
    ) -> None:
        self._generator = generator or SyntheticQuoteGenerator()
        self._now = now

    async def execute(
        self,
        instrument: Instrument,
        *,
        timeframe: str = DEFAULT_TIMEFRAME,
        limit: int = DEFAULT_LIMIT,
    ) -> TokenHistoryDTO:
        """Build the history series.

        Args:
            instrument: Configured instrument.
            timeframe: One of ``1h``, ``24h``, ``7d`` or ``30d``.
            limit: Number of points, ``1..100``.

        Returns:
            TokenHistoryDTO ordered oldest first.

        Raises:
            ValueError: If ``timeframe`` or ``limit`` is out of range.
        """
        if timeframe not in HISTORY_INTERVALS:
            raise ValueError(f"timeframe must be one of {', '.join(TIMEFRAMES)}")
        if not 1 <= limit <= MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")

        now = self._now()
        points = self._generator.history(
            instrument.symbol, timeframe=timeframe, limit=limit, now=now
        )
        return TokenHistoryDTO(
            symbol=instrument.symbol,
            timeframe=timeframe,
            data=[HistoryPointDTO.from_entity(p) for p in points],
            count=len(points),
            updated_at=now,
        )
