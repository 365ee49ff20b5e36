# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Adapter Gateway: Kraken public ticker → RawQuote (primary tier).

Design principles:
    * Consult the circuit breaker before any network I/O; an open breaker
      raises :class:`CircuitOpenError` immediately.
    * Delegate timeout/retry/breaker bookkeeping to :class:`ResilientTransport`.
    * Validate the payload strictly (pydantic) and reject implausible values.
    * Derive the 24h change from last vs. open and USD volume from base
      volume times last price.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any

from pydantic import ValidationError

from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.entities.quotes import RawQuote
from tokenpulse_api.domain.exceptions.market_data import (
    CircuitOpenError,
    MarketDataValidationError,
    SymbolNotFound,
    UpstreamError,
)
from tokenpulse_api.infrastructure.external_apis.kraken.settings import KrakenSettings
from tokenpulse_api.infrastructure.external_apis.kraken.types import (
    KrakenTickerEntry,
    KrakenTickerResponse,
)
from tokenpulse_api.infrastructure.observability.metrics_market_data import (
    observe_upstream_request,
)
from tokenpulse_api.infrastructure.resilience.transport import (
    FetchOptions,
    ResilientTransport,
    decode_json,
)


class KrakenQuoteGateway:
    """Primary provider adapter."""

    provider = "kraken"

    def __init__(
        self,
        transport: ResilientTransport,
        settings: KrakenSettings | None = None,
        *,
        options: FetchOptions | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            transport: Shared resilient transport.
            settings: Provider settings (base URL, breaker key).
            options: Timeout/retry options; the breaker key is always taken
                from ``settings``.
        """
        self._transport = transport
        self._settings = settings or KrakenSettings()
        self._options = replace(
            options or FetchOptions(timeout_s=8.0, retries=2),
            breaker_key=self._settings.breaker_key,
        )

    @property
    def breaker_key(self) -> str:
        """Return the circuit-breaker key used by this adapter."""
        return self._settings.breaker_key

    def supports(self, instrument: Instrument) -> bool:
        """Return True when the instrument has a Kraken pair configured."""
        return bool(instrument.kraken_pair)

    async def fetch_quote(self, instrument: Instrument) -> RawQuote:
        """Fetch and extract the ticker for ``instrument.kraken_pair``.

        Raises:
            SymbolNotFound: No pair configured for the instrument.
            CircuitOpenError: Breaker is open for this provider.
            UpstreamError: Transport failure or non-empty ``error`` list.
            UpstreamTimeout: Attempt exceeded its deadline.
            MarketDataValidationError: Payload shape or values are invalid.
        """
        pair = instrument.kraken_pair
        if not pair:
            raise SymbolNotFound(
                "No Kraken pair configured", details={"symbol": instrument.symbol}
            )

        key = self._settings.breaker_key
        check = self._transport.breaker.check(key)
        if not check.allowed:
            raise CircuitOpenError(
                "Kraken circuit breaker is open", details={"state": check.state.value}
            )

        with observe_upstream_request(provider=key):
            response = await self._transport.fetch(
                self._settings.ticker_url,
                params={"pair": pair},
                options=self._options,
            )
            return self.extract(decode_json(response, key), pair=pair)

    @staticmethod
    def extract(raw: Any, *, pair: str) -> RawQuote:
        """Validate a ticker payload and derive the raw quote.

        Args:
            raw: Decoded JSON body.
            pair: Requested pair (for error details only; Kraken may return
                the pair under an alternate name, so the first entry is used).

        Returns:
            RawQuote with derived change and USD volume.
        """
        try:
            body = KrakenTickerResponse.model_validate(raw)
        except ValidationError as exc:
            raise MarketDataValidationError(
                "Unexpected Kraken payload",
                details={"pair": pair, "errors": exc.error_count()},
            ) from exc

        if body.error:
            raise UpstreamError(
                f"Kraken API error: {', '.join(body.error)}",
                details={"pair": pair, "errors": list(body.error)},
            )
        if not body.result:
            raise MarketDataValidationError(
                "No ticker data in Kraken response", details={"pair": pair}
            )

        entry: KrakenTickerEntry = next(iter(body.result.values()))
        last = entry.c[0]
        opening = entry.o
        volume = entry.v[1]

        if not (math.isfinite(last) and last > 0):
            raise MarketDataValidationError("Invalid last price", details={"pair": pair})
        if not (math.isfinite(opening) and opening > 0):
            raise MarketDataValidationError("Invalid opening price", details={"pair": pair})
        if not (math.isfinite(volume) and volume >= 0):
            raise MarketDataValidationError("Invalid volume", details={"pair": pair})

        return RawQuote(
            price_usd=last,
            change_24h_pct=(last - opening) / opening * 100,
            volume_24h_usd=volume * last,
        )
