# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""CoinGecko Types.

Summary:
    Strict response schema for ``GET /simple/price`` with
    ``vs_currencies=usd&include_24hr_change=true&include_24hr_vol=true``.
    The body maps each requested id to a price object.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, RootModel


class CoinGeckoUsdPrice(BaseModel):
    """Price object for one id."""

    model_config = ConfigDict(extra="ignore")

    usd: float
    usd_24h_change: float | None = None
    usd_24h_vol: float | None = None


class CoinGeckoSimplePriceResponse(RootModel[dict[str, CoinGeckoUsdPrice]]):
    """Top-level ``{id: {usd, usd_24h_change, usd_24h_vol}}`` mapping."""
