# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Quote Entities.

Purpose:
    Immutable domain representations of provider output (:class:`RawQuote`),
    the canonical validated row (:class:`TokenRow`), and synthetic history
    points (:class:`HistoryPoint`). No I/O.

Layer:
    domain/entities

Notes:
    ``TokenRow`` instances are only constructed by
    :func:`tokenpulse_api.domain.services.normalizer.normalize`; the invariants
    below are re-asserted so a hand-built row cannot violate the contract.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime

from tokenpulse_api.domain.entities.base import BaseEntity
from tokenpulse_api.domain.enums.quote_source import QuoteSource

MAX_PRICE_USD = 1_000_000.0
MAX_VOLUME_USD = 1e15
MIN_CHANGE_PCT = -100.0
MAX_CHANGE_PCT = 10_000.0


@dataclass(frozen=True, slots=True)
class RawQuote(BaseEntity):
    """Numeric triple extracted from a provider payload.

    Values may be non-finite or out of range; the normalizer decides.

    Attributes:
        price_usd: Last price in USD.
        change_24h_pct: 24h change in percent.
        volume_24h_usd: 24h traded volume in USD.
    """

    price_usd: float
    change_24h_pct: float
    volume_24h_usd: float


@dataclass(frozen=True, slots=True)
class TokenRow(BaseEntity):
    """Canonical, validated quote row.

    Attributes:
        symbol: Upper-case, trimmed ticker.
        name: Trimmed instrument name.
        price_usd: Price in ``(0, 1e6]`` rounded to 2 dp.
        change_24h_pct: Change in ``[-100, 10000]`` rounded to 2 dp.
        volume_24h_usd: Volume in ``[0, 1e15]`` rounded to 2 dp.
        source: Provider tier that produced the row.

    Raises:
        ValueError: If invariants are violated.
    """

    symbol: str
    name: str
    price_usd: float
    change_24h_pct: float
    volume_24h_usd: float
    source: QuoteSource

    def __post_init__(self) -> None:
        """Validate invariants for the TokenRow entity."""
        if not self.symbol or self.symbol != self.symbol.strip().upper():
            raise ValueError("symbol must be upper-case, trimmed and non-empty")
        if not self.name or self.name != self.name.strip():
            raise ValueError("name must be trimmed and non-empty")
        if not (math.isfinite(self.price_usd) and 0 < self.price_usd <= MAX_PRICE_USD):
            raise ValueError("price_usd out of range")
        if not (math.isfinite(self.volume_24h_usd) and 0 <= self.volume_24h_usd <= MAX_VOLUME_USD):
            raise ValueError("volume_24h_usd out of range")
        if not (
            math.isfinite(self.change_24h_pct)
            and MIN_CHANGE_PCT <= self.change_24h_pct <= MAX_CHANGE_PCT
        ):
            raise ValueError("change_24h_pct out of range")


@dataclass(frozen=True, slots=True)
class HistoryPoint(BaseEntity):
    """One point of a price history series.

    Attributes:
        timestamp: UTC timestamp of the point (naive values are normalized).
        price: Price in USD rounded to 2 dp.
        volume: Volume in USD rounded to 2 dp.
    """

    timestamp: datetime
    price: float
    volume: float

    def __post_init__(self) -> None:
        """Normalize naive timestamps to UTC."""
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=UTC))
