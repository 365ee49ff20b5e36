# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Quote Gateway Protocol.

Synopsis:
    Domain-level Protocol (PEP 544) abstracting a single upstream pricing
    provider. Concrete adapters (Kraken, CoinGecko, synthetic) live in the
    adapters layer and must satisfy this contract.

Design:
    * One call, one instrument: the aggregation use case owns fan-out and
      fallback ordering.
    * Adapters return a fully populated :class:`RawQuote` or raise a
      :class:`~tokenpulse_api.domain.exceptions.base.DomainError` subclass;
      they never return partial data.
    * No HTTP or vendor types cross this boundary.

Layer:
    domain/interfaces/gateways
"""

from __future__ import annotations

from typing import Protocol

from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.entities.quotes import RawQuote


class QuoteGatewayProtocol(Protocol):
    """Abstraction over one upstream quote provider.

    Attributes:
        provider: Stable provider identifier used in logs and metrics.
        breaker_key: Circuit-breaker key, or ``None`` for providers that do
            no network I/O.
    """

    provider: str

    @property
    def breaker_key(self) -> str | None:
        """Return the circuit-breaker key for this provider."""
        ...

    def supports(self, instrument: Instrument) -> bool:
        """Return True when the instrument has an identifier for this provider."""
        ...

    async def fetch_quote(self, instrument: Instrument) -> RawQuote:
        """Return a raw quote for ``instrument``.

        Raises:
            CircuitOpenError: Provider breaker rejected the call.
            UpstreamTimeout: Attempt exceeded its time budget.
            UpstreamError: Transport failure or provider-reported error.
            SymbolNotFound: Provider has no data for the identifier.
            MarketDataValidationError: Payload shape or values are invalid.
        """
        ...
