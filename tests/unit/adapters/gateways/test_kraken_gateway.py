from __future__ import annotations

from typing import Any

import httpx
import pytest
import respx

from tokenpulse_api.adapters.gateways.kraken_gateway import KrakenQuoteGateway
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.exceptions.market_data import (
    CircuitOpenError,
    MarketDataValidationError,
    SymbolNotFound,
    UpstreamError,
)
from tokenpulse_api.infrastructure.external_apis.kraken.settings import KrakenSettings
from tokenpulse_api.infrastructure.resilience.circuit_breaker import BreakerConfig, CircuitBreaker
from tokenpulse_api.infrastructure.resilience.transport import FetchOptions, ResilientTransport

AAPL = Instrument(
    symbol="AAPL", name="Apple", coingecko_id="apple-xstock", kraken_pair="AAPLxUSD"
)
TICKER_URL = KrakenSettings().ticker_url


def _ticker(last: str = "155.0", opening: str = "150.0", volume: str = "1000") -> dict[str, Any]:
    return {
        "error": [],
        "result": {
            "AAPLXUSD": {
                "c": [last, "1.0"],
                "o": opening,
                "v": ["10", volume],
            }
        },
    }


def _gateway(
    client: httpx.AsyncClient, sleeps: Any, breaker: CircuitBreaker | None = None
) -> KrakenQuoteGateway:
    transport = ResilientTransport(client, breaker or CircuitBreaker(), sleep=sleeps)
    return KrakenQuoteGateway(transport, options=FetchOptions(timeout_s=2.0, retries=1))


def test_supports_requires_a_pair() -> None:
    gateway = KrakenQuoteGateway(ResilientTransport(httpx.AsyncClient(), CircuitBreaker()))

    assert gateway.supports(AAPL)
    assert not gateway.supports(Instrument(symbol="X", name="X", coingecko_id="x"))
    assert gateway.breaker_key == "kraken"


@pytest.mark.asyncio
async def test_fetch_quote_derives_change_and_usd_volume(sleeps: Any) -> None:
    async with httpx.AsyncClient() as client:
        gateway = _gateway(client, sleeps)
        with respx.mock:
            route = respx.get(TICKER_URL).mock(return_value=httpx.Response(200, json=_ticker()))
            quote = await gateway.fetch_quote(AAPL)

    assert route.calls.last.request.url.params["pair"] == "AAPLxUSD"
    assert quote.price_usd == 155.0
    assert quote.change_24h_pct == pytest.approx(10 / 3)
    assert quote.volume_24h_usd == pytest.approx(155_000.0)


@pytest.mark.asyncio
async def test_missing_pair_raises_without_calling_upstream(sleeps: Any) -> None:
    async with httpx.AsyncClient() as client:
        gateway = _gateway(client, sleeps)
        with respx.mock:
            route = respx.get(TICKER_URL)
            with pytest.raises(SymbolNotFound):
                await gateway.fetch_quote(Instrument(symbol="X", name="X", coingecko_id="x"))

    assert route.call_count == 0


@pytest.mark.asyncio
async def test_open_breaker_short_circuits(sleeps: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=1))
    breaker.record_failure("kraken")
    async with httpx.AsyncClient() as client:
        gateway = _gateway(client, sleeps, breaker)
        with respx.mock:
            route = respx.get(TICKER_URL)
            with pytest.raises(CircuitOpenError):
                await gateway.fetch_quote(AAPL)

    assert route.call_count == 0


def test_extract_reports_api_error_list() -> None:
    with pytest.raises(UpstreamError, match="Kraken API error: EQuery:Unknown asset pair"):
        KrakenQuoteGateway.extract({"error": ["EQuery:Unknown asset pair"]}, pair="AAPLxUSD")


def test_extract_rejects_empty_result() -> None:
    with pytest.raises(MarketDataValidationError, match="No ticker data"):
        KrakenQuoteGateway.extract({"error": [], "result": {}}, pair="AAPLxUSD")


def test_extract_rejects_malformed_payload() -> None:
    with pytest.raises(MarketDataValidationError, match="Unexpected Kraken payload"):
        KrakenQuoteGateway.extract({"result": {"P": {"c": "oops"}}}, pair="AAPLxUSD")


@pytest.mark.parametrize(
    ("last", "opening", "volume", "message"),
    [
        ("0", "150", "10", "last price"),
        ("155", "0", "10", "opening price"),
        ("155", "150", "-1", "volume"),
    ],
)
def test_extract_rejects_invalid_numbers(
    last: str, opening: str, volume: str, message: str
) -> None:
    with pytest.raises(MarketDataValidationError, match=message):
        KrakenQuoteGateway.extract(_ticker(last, opening, volume), pair="AAPLxUSD")
