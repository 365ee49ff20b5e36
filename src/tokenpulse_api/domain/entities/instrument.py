# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Instrument Entity.

Purpose:
    A configured tradable tokenized-stock instrument and its identifiers at
    each upstream provider.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from tokenpulse_api.domain.entities.base import BaseEntity


@dataclass(frozen=True, slots=True)
class Instrument(BaseEntity):
    """Configured instrument.

    Attributes:
        symbol: Upper-case display ticker, unique across the configuration.
        name: Human-readable instrument name.
        coingecko_id: Identifier at the secondary provider.
        kraken_pair: Pair code at the primary provider. When ``None`` the
            primary tier is skipped for this instrument.

    Raises:
        ValueError: If a required identifier is empty or the symbol is not
            upper-case.
    """

    symbol: str
    name: str
    coingecko_id: str
    kraken_pair: str | None = None

    def __post_init__(self) -> None:
        """Validate invariants for the Instrument entity."""
        if not self.symbol or self.symbol != self.symbol.strip().upper():
            raise ValueError("symbol must be upper-case non-empty")
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        if not self.coingecko_id.strip():
            raise ValueError("coingecko_id must be non-empty")
        if self.kraken_pair is not None and not self.kraken_pair.strip():
            raise ValueError("kraken_pair must be non-empty when provided")
