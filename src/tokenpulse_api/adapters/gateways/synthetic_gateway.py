# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Adapter Gateway: deterministic synthetic quotes (last-resort tier).

Wraps :class:`SyntheticQuoteGenerator` behind the same gateway protocol as
the live providers. No network I/O, no circuit breaker.
"""

from __future__ import annotations

from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.entities.quotes import RawQuote
from tokenpulse_api.domain.services.synthetic_quotes import SyntheticQuoteGenerator


class SyntheticQuoteGateway:
    """Fallback adapter producing deterministic quotes per symbol."""

    provider = "synthetic"
    breaker_key: str | None = None

    def __init__(self, generator: SyntheticQuoteGenerator | None = None) -> None:
        self._generator = generator or SyntheticQuoteGenerator()

    def supports(self, instrument: Instrument) -> bool:
        """Synthetic data is available for every instrument."""
        return True

    async def fetch_quote(self, instrument: Instrument) -> RawQuote:
        """Return the synthetic quote for ``instrument.symbol``."""
        return self._generator.generate(instrument.symbol)
