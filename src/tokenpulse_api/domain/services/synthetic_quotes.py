# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Synthetic quote generator (pure domain service).

Purpose:
    Produce plausible, deterministic quotes and price histories so the
    dashboard is never empty when every live provider is down. Output is not
    a source of truth and is tagged accordingly by the aggregation use case.

Design:
    * Randomness is derived from a stable SHA-256 seed of ``(salt, symbol)``;
      Python's ``hash()`` is never used because it is salted per process.
    * Same symbol yields the same quote across calls and processes.
    * Values are rounded to 2 dp with the normalizer's decimal rounding.

Layer:
    domain/services
"""

from __future__ import annotations

import hashlib
import random
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Final

from tokenpulse_api.domain.entities.quotes import HistoryPoint, RawQuote
from tokenpulse_api.domain.services.normalizer import round_2dp

BASE_PRICES_USD: Final[Mapping[str, float]] = {
    "AAPL": 150.0,
    "MSFT": 300.0,
    "AMZN": 130.0,
    "GOOG": 140.0,
    "META": 250.0,
    "TSLA": 200.0,
    "NFLX": 400.0,
    "NVDA": 800.0,
    "BABA": 80.0,
    "ORCL": 120.0,
}
DEFAULT_BASE_PRICE_USD: Final[float] = 100.0

# Timeframe -> spacing between consecutive history points.
HISTORY_INTERVALS: Final[Mapping[str, timedelta]] = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=1),
    "7d": timedelta(days=1),
    "30d": timedelta(days=1),
}

_SALT_QUOTE: Final[str] = "quote"
_SALT_HISTORY: Final[str] = "history"


def stable_seed(symbol: str, *, salt: str) -> int:
    """Derive a process-independent 63-bit seed for ``symbol``.

    Args:
        symbol: Instrument ticker (case-insensitive).
        salt: Component name so quote and history streams differ.

    Returns:
        Non-negative integer seed.
    """
    payload = f"{salt}|{symbol.strip().upper()}".encode()
    digest = hashlib.sha256(payload).digest()
    return int.from_bytes(digest[:8], byteorder="big") % (2**63)


def base_price_for(symbol: str) -> float:
    """Return the anchor price for ``symbol`` (``100.0`` when unknown)."""
    return BASE_PRICES_USD.get(symbol.strip().upper(), DEFAULT_BASE_PRICE_USD)


class SyntheticQuoteGenerator:
    """Deterministic generator of fallback quotes and histories."""

    def generate(self, symbol: str) -> RawQuote:
        """Return a deterministic raw quote for ``symbol``.

        Price varies within +/-10% of the base price, change within +/-5%
        and volume within ``[1e6, 1e7]`` USD.

        Args:
            symbol: Instrument ticker.

        Returns:
            RawQuote rounded to 2 decimal places.
        """
        rng = random.Random(stable_seed(symbol, salt=_SALT_QUOTE))  # noqa: S311
        price = base_price_for(symbol) * (1 + rng.uniform(-0.1, 0.1))
        change = rng.uniform(-5.0, 5.0)
        volume = rng.uniform(1_000_000.0, 10_000_000.0)
        return RawQuote(
            price_usd=round_2dp(price),
            change_24h_pct=round_2dp(change),
            volume_24h_usd=round_2dp(volume),
        )

    def history(
        self,
        symbol: str,
        *,
        timeframe: str,
        limit: int,
        now: datetime,
    ) -> list[HistoryPoint]:
        """Return ``limit`` synthetic history points ending at ``now``.

        Points are ordered oldest first and spaced by the timeframe interval
        (hourly for ``1h``/``24h``, daily for ``7d``/``30d``). Each price is
        the base price with up to +/-2.5% variation.

        Args:
            symbol: Instrument ticker.
            timeframe: One of :data:`HISTORY_INTERVALS`.
            limit: Number of points to produce (>= 1).
            now: Timestamp of the most recent point.

        Returns:
            List of history points.

        Raises:
            ValueError: If ``timeframe`` is unknown or ``limit`` < 1.
        """
        interval = HISTORY_INTERVALS.get(timeframe)
        if interval is None:
            raise ValueError(f"unsupported timeframe: {timeframe!r}")
        if limit < 1:
            raise ValueError("limit must be >= 1")

        rng = random.Random(stable_seed(f"{symbol}:{timeframe}", salt=_SALT_HISTORY))  # noqa: S311
        base = base_price_for(symbol)
        points: list[HistoryPoint] = []
        for i in range(limit - 1, -1, -1):
            points.append(
                HistoryPoint(
                    timestamp=now - interval * i,
                    price=round_2dp(base * (1 + rng.uniform(-0.025, 0.025))),
                    volume=round_2dp(rng.uniform(100_000.0, 1_100_000.0)),
                )
            )
        return points
