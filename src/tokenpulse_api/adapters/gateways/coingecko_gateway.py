# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Adapter Gateway: CoinGecko simple price → RawQuote (secondary tier).

The payload already carries USD price, 24h change and 24h USD volume. Price
must be finite and positive; null or non-finite change and volume become 0.
HTTP 429 surfaces as :class:`UpstreamRateLimited` with a provider-specific
message.
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
    UpstreamRateLimited,
)
from tokenpulse_api.infrastructure.external_apis.coingecko.settings import CoinGeckoSettings
from tokenpulse_api.infrastructure.external_apis.coingecko.types import (
    CoinGeckoSimplePriceResponse,
)
from tokenpulse_api.infrastructure.observability.metrics_market_data import (
    observe_upstream_request,
)
from tokenpulse_api.infrastructure.resilience.transport import (
    FetchOptions,
    ResilientTransport,
    decode_json,
)


def _finite_or_zero(value: float | None) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return value


class CoinGeckoQuoteGateway:
    """Secondary provider adapter."""

    provider = "coingecko"

    def __init__(
        self,
        transport: ResilientTransport,
        settings: CoinGeckoSettings | None = None,
        *,
        options: FetchOptions | None = None,
    ) -> None:
        self._transport = transport
        self._settings = settings or CoinGeckoSettings()
        self._options = replace(
            options or FetchOptions(timeout_s=8.0, retries=2),
            breaker_key=self._settings.breaker_key,
        )

    @property
    def breaker_key(self) -> str:
        """Return the circuit-breaker key used by this adapter."""
        return self._settings.breaker_key

    def supports(self, instrument: Instrument) -> bool:
        """Every configured instrument carries a CoinGecko id."""
        return bool(instrument.coingecko_id)

    async def fetch_quote(self, instrument: Instrument) -> RawQuote:
        """Fetch and extract the simple price for ``instrument.coingecko_id``.

        Raises:
            CircuitOpenError: Breaker is open for this provider.
            UpstreamRateLimited: CoinGecko answered 429 on every attempt.
            UpstreamError: Transport failure or other non-2xx status.
            UpstreamTimeout: Attempt exceeded its deadline.
            SymbolNotFound: The id is missing from the response.
            MarketDataValidationError: Payload shape or price is invalid.
        """
        coin_id = instrument.coingecko_id
        key = self._settings.breaker_key
        check = self._transport.breaker.check(key)
        if not check.allowed:
            raise CircuitOpenError(
                "CoinGecko circuit breaker is open", details={"state": check.state.value}
            )

        params = {
            "ids": coin_id,
            "vs_currencies": "usd",
            "include_24hr_change": "true",
            "include_24hr_vol": "true",
        }
        with observe_upstream_request(provider=key):
            try:
                response = await self._transport.fetch(
                    self._settings.simple_price_url,
                    params=params,
                    headers=self._settings.auth_headers(),
                    options=self._options,
                )
            except UpstreamRateLimited as exc:
                raise UpstreamRateLimited(
                    "CoinGecko rate limit exceeded. Please try again later.",
                    details=exc.details,
                ) from exc
            return self.extract(decode_json(response, key), coin_id=coin_id)

    @staticmethod
    def extract(raw: Any, *, coin_id: str) -> RawQuote:
        """Validate a simple-price payload and extract the raw quote.

        Args:
            raw: Decoded JSON body.
            coin_id: Requested CoinGecko id.

        Returns:
            RawQuote with null/non-finite change and volume coerced to 0.
        """
        try:
            body = CoinGeckoSimplePriceResponse.model_validate(raw)
        except ValidationError as exc:
            raise MarketDataValidationError(
                "Unexpected CoinGecko payload",
                details={"coingecko_id": coin_id, "errors": exc.error_count()},
            ) from exc

        item = body.root.get(coin_id)
        if item is None:
            raise SymbolNotFound(
                f"No data found for {coin_id}", details={"coingecko_id": coin_id}
            )
        if not (math.isfinite(item.usd) and item.usd > 0):
            raise MarketDataValidationError(
                f"Invalid price for {coin_id}", details={"coingecko_id": coin_id}
            )

        return RawQuote(
            price_usd=item.usd,
            change_24h_pct=_finite_or_zero(item.usd_24h_change),
            volume_24h_usd=_finite_or_zero(item.usd_24h_vol),
        )
