from __future__ import annotations

from typing import Any

import httpx
import pytest
import respx

from tokenpulse_api.adapters.gateways.coingecko_gateway import CoinGeckoQuoteGateway
from tokenpulse_api.adapters.gateways.synthetic_gateway import SyntheticQuoteGateway
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.exceptions.market_data import (
    CircuitOpenError,
    MarketDataValidationError,
    SymbolNotFound,
    UpstreamRateLimited,
)
from tokenpulse_api.domain.services.synthetic_quotes import SyntheticQuoteGenerator
from tokenpulse_api.infrastructure.external_apis.coingecko.settings import CoinGeckoSettings
from tokenpulse_api.infrastructure.resilience.circuit_breaker import BreakerConfig, CircuitBreaker
from tokenpulse_api.infrastructure.resilience.transport import FetchOptions, ResilientTransport

TSLA = Instrument(symbol="TSLA", name="Tesla", coingecko_id="tesla-xstock")
PRICE_URL = CoinGeckoSettings().simple_price_url


def _gateway(
    client: httpx.AsyncClient,
    sleeps: Any,
    *,
    breaker: CircuitBreaker | None = None,
    settings: CoinGeckoSettings | None = None,
) -> CoinGeckoQuoteGateway:
    transport = ResilientTransport(client, breaker or CircuitBreaker(), sleep=sleeps)
    return CoinGeckoQuoteGateway(
        transport, settings, options=FetchOptions(timeout_s=2.0, retries=1)
    )


@pytest.mark.asyncio
async def test_fetch_quote_reads_usd_fields(sleeps: Any) -> None:
    payload = {"tesla-xstock": {"usd": 251.5, "usd_24h_change": -1.25, "usd_24h_vol": 5e6}}
    async with httpx.AsyncClient() as client:
        gateway = _gateway(client, sleeps)
        with respx.mock:
            route = respx.get(PRICE_URL).mock(return_value=httpx.Response(200, json=payload))
            quote = await gateway.fetch_quote(TSLA)

    params = route.calls.last.request.url.params
    assert params["ids"] == "tesla-xstock"
    assert params["vs_currencies"] == "usd"
    assert params["include_24hr_change"] == "true"
    assert params["include_24hr_vol"] == "true"
    assert (quote.price_usd, quote.change_24h_pct, quote.volume_24h_usd) == (251.5, -1.25, 5e6)


@pytest.mark.asyncio
async def test_api_key_header_is_sent_when_configured(sleeps: Any) -> None:
    settings = CoinGeckoSettings(api_key="demo-key")
    async with httpx.AsyncClient() as client:
        gateway = _gateway(client, sleeps, settings=settings)
        with respx.mock:
            route = respx.get(PRICE_URL).mock(
                return_value=httpx.Response(200, json={"tesla-xstock": {"usd": 10.0}})
            )
            await gateway.fetch_quote(TSLA)

    assert route.calls.last.request.headers["x-cg-demo-api-key"] == "demo-key"


@pytest.mark.asyncio
async def test_rate_limit_gets_provider_message(sleeps: Any) -> None:
    async with httpx.AsyncClient() as client:
        gateway = _gateway(client, sleeps)
        with respx.mock:
            respx.get(PRICE_URL).mock(return_value=httpx.Response(429))
            with pytest.raises(UpstreamRateLimited, match="CoinGecko rate limit exceeded"):
                await gateway.fetch_quote(TSLA)


@pytest.mark.asyncio
async def test_open_breaker_short_circuits(sleeps: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=1))
    breaker.record_failure("coingecko")
    async with httpx.AsyncClient() as client:
        gateway = _gateway(client, sleeps, breaker=breaker)
        with respx.mock:
            route = respx.get(PRICE_URL)
            with pytest.raises(CircuitOpenError):
                await gateway.fetch_quote(TSLA)

    assert route.call_count == 0


def test_extract_missing_id_raises_symbol_not_found() -> None:
    with pytest.raises(SymbolNotFound, match="No data found for tesla-xstock"):
        CoinGeckoQuoteGateway.extract({}, coin_id="tesla-xstock")


@pytest.mark.parametrize("price", [0.0, -3.0, float("inf")])
def test_extract_rejects_non_positive_price(price: float) -> None:
    with pytest.raises(MarketDataValidationError, match="Invalid price"):
        CoinGeckoQuoteGateway.extract({"x": {"usd": price}}, coin_id="x")


def test_extract_rejects_malformed_payload() -> None:
    with pytest.raises(MarketDataValidationError, match="Unexpected CoinGecko payload"):
        CoinGeckoQuoteGateway.extract({"x": {"eur": 1.0}}, coin_id="x")


def test_extract_coerces_missing_change_and_volume_to_zero() -> None:
    quote = CoinGeckoQuoteGateway.extract(
        {"x": {"usd": 12.0, "usd_24h_change": None}}, coin_id="x"
    )

    assert quote.change_24h_pct == 0.0
    assert quote.volume_24h_usd == 0.0


@pytest.mark.asyncio
async def test_synthetic_gateway_matches_generator() -> None:
    gateway = SyntheticQuoteGateway()

    quote = await gateway.fetch_quote(TSLA)

    assert gateway.supports(TSLA)
    assert gateway.breaker_key is None
    assert quote == SyntheticQuoteGenerator().generate("TSLA")
