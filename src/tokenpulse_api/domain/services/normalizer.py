# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Quote normalizer (pure domain service).

Purpose:
    Validate a raw numeric quote against domain plausibility bounds and shape
    it into a canonical :class:`TokenRow`. Returns ``None`` instead of raising
    so the aggregation use case can fall through to the next provider tier.

Validation order (first failure wins):
    1. ``symbol`` and ``name`` non-empty after trimming.
    2. ``price_usd`` finite, ``> 0`` and ``<= 1_000_000``.
    3. ``volume_24h_usd`` finite, ``>= 0`` and ``<= 1e15``.
    4. ``change_24h_pct`` finite, within ``[-100, 10000]``.

Rounding:
    Two decimal places through :class:`decimal.Decimal` using
    ``ROUND_HALF_EVEN``. The shortest ``repr`` of the float is quantized, so
    rounding an already-rounded value is a no-op.

Layer:
    domain/services
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_EVEN, Decimal
from numbers import Real

from tokenpulse_api.domain.entities.quotes import (
    MAX_CHANGE_PCT,
    MAX_PRICE_USD,
    MAX_VOLUME_USD,
    MIN_CHANGE_PCT,
    TokenRow,
)
from tokenpulse_api.domain.enums.quote_source import QuoteSource

__all__ = ["normalize", "round_2dp"]

_CENT = Decimal("0.01")


def _as_finite(value: object) -> float | None:
    """Return ``value`` as a finite float, or ``None`` for non-numbers."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    as_float = float(value)
    return as_float if math.isfinite(as_float) else None


def round_2dp(value: float) -> float:
    """Round a finite float to 2 decimal places (banker's rounding).

    Args:
        value: Finite float.

    Returns:
        The rounded value as a float.
    """
    return float(Decimal(repr(float(value))).quantize(_CENT, rounding=ROUND_HALF_EVEN))


def normalize(
    symbol: str,
    name: str,
    price_usd: object,
    change_24h_pct: object,
    volume_24h_usd: object,
    source: QuoteSource | str,
) -> TokenRow | None:
    """Validate and shape a raw quote into a canonical row.

    Args:
        symbol: Instrument ticker (any case, may carry whitespace).
        name: Instrument display name.
        price_usd: Raw price in USD.
        change_24h_pct: Raw 24h change in percent.
        volume_24h_usd: Raw 24h volume in USD.
        source: Provider tier to tag the row with.

    Returns:
        A :class:`TokenRow`, or ``None`` if any bound is violated.
    """
    clean_symbol = (symbol or "").strip().upper()
    clean_name = (name or "").strip()
    if not clean_symbol or not clean_name:
        return None

    price = _as_finite(price_usd)
    if price is None or not (0 < price <= MAX_PRICE_USD):
        return None

    volume = _as_finite(volume_24h_usd)
    if volume is None or not (0 <= volume <= MAX_VOLUME_USD):
        return None

    change = _as_finite(change_24h_pct)
    if change is None or not (MIN_CHANGE_PCT <= change <= MAX_CHANGE_PCT):
        return None

    rounded_price = round_2dp(price)
    # Sub-cent prices would round to zero.
    if rounded_price <= 0:
        return None

    return TokenRow(
        symbol=clean_symbol,
        name=clean_name,
        price_usd=rounded_price,
        change_24h_pct=round_2dp(change) + 0.0,  # collapse -0.0
        volume_24h_usd=round_2dp(volume),
        source=QuoteSource(source),
    )
