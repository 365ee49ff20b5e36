# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Kraken Types.

Summary:
    Strict response schema for ``GET /0/public/Ticker``. Kraken encodes
    numbers as strings; fields are parsed to ``float`` here and range checks
    happen in the gateway.

    Ticker entry fields used:
        * ``c``: ``[last_trade_price, lot_volume]``
        * ``o``: today's opening price
        * ``v``: ``[volume_today, volume_last_24h]`` in base asset units
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class KrakenTickerEntry(BaseModel):
    """One pair entry under ``result``."""

    model_config = ConfigDict(extra="ignore")

    c: tuple[float, float]
    o: float
    v: tuple[float, float]


class KrakenTickerResponse(BaseModel):
    """Top-level ticker response."""

    model_config = ConfigDict(extra="ignore")

    error: list[str] = Field(default_factory=list)
    result: dict[str, KrakenTickerEntry] | None = None
