from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import UTC, datetime

import pytest

from tokenpulse_api.application.use_cases.tokens.aggregate_tokens import AggregateTokens
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.entities.quotes import RawQuote
from tokenpulse_api.domain.enums.quote_source import BreakerState
from tokenpulse_api.domain.exceptions.market_data import CircuitOpenError, UpstreamError

FIXED_NOW = datetime(2025, 3, 1, 9, 30, tzinfo=UTC)


def _instrument(symbol: str, name: str) -> Instrument:
    slug = f"{name.lower()}-xstock"
    return Instrument(symbol=symbol, name=name, coingecko_id=slug, kraken_pair=f"{symbol}xUSD")


NVDA = _instrument("NVDA", "NVIDIA")
AAPL = _instrument("AAPL", "Apple")
TSLA = _instrument("TSLA", "Tesla")


class FakeGateway:
    """Scripted gateway: a RawQuote or an exception per symbol."""

    def __init__(
        self,
        provider: str,
        outcomes: dict[str, RawQuote | Exception],
        *,
        breaker_key: str | None = None,
        supported: Iterable[str] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.provider = provider
        self.breaker_key = breaker_key
        self._outcomes = outcomes
        self._supported = set(supported) if supported is not None else None
        self._delays = delays or {}
        self.calls: list[str] = []

    def supports(self, instrument: Instrument) -> bool:
        return self._supported is None or instrument.symbol in self._supported

    async def fetch_quote(self, instrument: Instrument) -> RawQuote:
        self.calls.append(instrument.symbol)
        await asyncio.sleep(self._delays.get(instrument.symbol, 0))
        outcome = self._outcomes.get(instrument.symbol, UpstreamError("no script"))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeBreakers:
    def __init__(self, states: dict[str, BreakerState]) -> None:
        self._states = states

    def state_of(self, key: str) -> BreakerState:
        return self._states.get(key, BreakerState.CLOSED)


def _quote(price: float) -> RawQuote:
    return RawQuote(price_usd=price, change_24h_pct=1.234, volume_24h_usd=1_000.005)


def _use_case(
    primary: FakeGateway,
    secondary: FakeGateway,
    synthetic: FakeGateway,
    **kwargs: object,
) -> AggregateTokens:
    return AggregateTokens(
        primary, secondary, synthetic, now=lambda: FIXED_NOW, **kwargs  # type: ignore[arg-type]
    )


@pytest.mark.asyncio
async def test_all_primary_rows_sorted_by_symbol() -> None:
    primary = FakeGateway(
        "kraken", {"NVDA": _quote(120.0), "AAPL": _quote(190.0), "TSLA": _quote(250.0)}
    )
    secondary = FakeGateway("coingecko", {})
    synthetic = FakeGateway("synthetic", {})

    result = await _use_case(primary, secondary, synthetic).execute([NVDA, AAPL, TSLA])

    assert [r.symbol for r in result.data] == ["AAPL", "NVDA", "TSLA"]
    assert {r.source for r in result.data} == {"primary"}
    assert result.sources.model_dump() == {
        "primary": 3,
        "secondary": 0,
        "synthetic": 0,
        "unavailable": 0,
    }
    assert result.warnings == []
    assert result.updated_at == FIXED_NOW
    assert secondary.calls == []
    assert synthetic.calls == []


@pytest.mark.asyncio
async def test_row_order_is_independent_of_completion_order() -> None:
    quotes = {"NVDA": _quote(120.0), "AAPL": _quote(190.0), "TSLA": _quote(250.0)}
    runs: list[list[str]] = []
    for delays in (
        {"NVDA": 0.03, "AAPL": 0.02, "TSLA": 0.01},
        {"NVDA": 0.01, "AAPL": 0.03, "TSLA": 0.02},
    ):
        primary = FakeGateway("kraken", quotes, delays=delays)
        uc = _use_case(primary, FakeGateway("coingecko", {}), FakeGateway("synthetic", {}))
        result = await uc.execute([TSLA, NVDA, AAPL])
        runs.append([r.symbol for r in result.data])

    assert runs[0] == runs[1] == ["AAPL", "NVDA", "TSLA"]


@pytest.mark.asyncio
async def test_primary_failure_falls_back_to_secondary() -> None:
    primary = FakeGateway("kraken", {"AAPL": _quote(190.0), "TSLA": UpstreamError("HTTP 500")})
    secondary = FakeGateway("coingecko", {"TSLA": _quote(251.0)})
    synthetic = FakeGateway("synthetic", {})

    result = await _use_case(primary, secondary, synthetic).execute([AAPL, TSLA])

    by_symbol = {r.symbol: r for r in result.data}
    assert by_symbol["AAPL"].source == "primary"
    assert by_symbol["TSLA"].source == "secondary"
    assert by_symbol["TSLA"].price_usd == 251.0
    assert (result.sources.primary, result.sources.secondary) == (1, 1)
    assert synthetic.calls == []


@pytest.mark.asyncio
async def test_instrument_without_primary_pair_skips_primary() -> None:
    primary = FakeGateway("kraken", {}, supported=["AAPL"])
    secondary = FakeGateway("coingecko", {"TSLA": _quote(251.0)})
    synthetic = FakeGateway("synthetic", {})

    result = await _use_case(primary, secondary, synthetic).execute([TSLA])

    assert primary.calls == []
    assert result.data[0].source == "secondary"


@pytest.mark.asyncio
async def test_rejected_quote_falls_through_to_next_tier() -> None:
    primary = FakeGateway("kraken", {"AAPL": _quote(2_000_000.0)})
    secondary = FakeGateway("coingecko", {"AAPL": _quote(190.0)})
    synthetic = FakeGateway("synthetic", {})

    result = await _use_case(primary, secondary, synthetic).execute([AAPL])

    assert result.data[0].source == "secondary"
    assert result.data[0].price_usd == 190.0


@pytest.mark.asyncio
async def test_synthetic_rows_are_tagged_secondary_by_default() -> None:
    primary = FakeGateway("kraken", {"AAPL": CircuitOpenError("open")})
    secondary = FakeGateway("coingecko", {"AAPL": UpstreamError("HTTP 503")})
    synthetic = FakeGateway("synthetic", {"AAPL": _quote(188.0)})

    result = await _use_case(primary, secondary, synthetic).execute([AAPL])

    assert result.data[0].source == "secondary"
    assert result.sources.secondary == 1
    assert result.sources.synthetic == 1
    assert result.warnings == []


@pytest.mark.asyncio
async def test_synthetic_rows_can_be_exposed() -> None:
    primary = FakeGateway("kraken", {})
    secondary = FakeGateway("coingecko", {})
    synthetic = FakeGateway("synthetic", {"AAPL": _quote(188.0)})

    result = await _use_case(
        primary, secondary, synthetic, expose_synthetic_source=True
    ).execute([AAPL])

    assert result.data[0].source == "synthetic"
    assert result.sources.secondary == 0
    assert result.sources.synthetic == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_price", [0.0, float("nan")])
async def test_total_failure_yields_single_warning_per_instrument(bad_price: float) -> None:
    primary = FakeGateway("kraken", {"AAPL": _quote(190.0)})
    secondary = FakeGateway("coingecko", {})
    synthetic = FakeGateway("synthetic", {"TSLA": _quote(bad_price)})

    result = await _use_case(primary, secondary, synthetic).execute([AAPL, TSLA])

    assert [r.symbol for r in result.data] == ["AAPL"]
    assert result.warnings == ["Token TSLA unavailable from both APIs"]
    assert result.sources.unavailable == 1
    assert result.sources.synthetic == 0


@pytest.mark.asyncio
async def test_values_are_rounded_to_cents() -> None:
    primary = FakeGateway("kraken", {"AAPL": _quote(190.005)})
    secondary = FakeGateway("coingecko", {})
    synthetic = FakeGateway("synthetic", {})

    result = await _use_case(primary, secondary, synthetic).execute([AAPL])

    row = result.data[0]
    assert row.price_usd == 190.0
    assert row.change_24h_pct == 1.23
    assert row.volume_24h_usd == 1000.0


@pytest.mark.asyncio
async def test_unexpected_crash_does_not_abort_other_instruments() -> None:
    class Exploding(FakeGateway):
        def supports(self, instrument: Instrument) -> bool:
            if instrument.symbol == "TSLA":
                raise RuntimeError("boom")
            return True

    primary = Exploding("kraken", {"AAPL": _quote(190.0)})
    secondary = FakeGateway("coingecko", {})
    synthetic = FakeGateway("synthetic", {})

    result = await _use_case(primary, secondary, synthetic).execute([AAPL, TSLA])

    assert [r.symbol for r in result.data] == ["AAPL"]
    assert result.warnings == ["Token TSLA unavailable from both APIs"]


@pytest.mark.asyncio
async def test_breaker_snapshot_reports_live_providers() -> None:
    primary = FakeGateway("kraken", {"AAPL": _quote(190.0)}, breaker_key="kraken")
    secondary = FakeGateway("coingecko", {}, breaker_key="coingecko")
    synthetic = FakeGateway("synthetic", {})
    breakers = FakeBreakers({"kraken": BreakerState.OPEN, "coingecko": BreakerState.HALF_OPEN})

    uc = _use_case(primary, secondary, synthetic, breakers=breakers)
    result = await uc.execute([AAPL])

    assert result.circuit_breakers.primary is BreakerState.OPEN
    assert result.circuit_breakers.secondary is BreakerState.HALF_OPEN
    assert uc.breaker_states() == result.circuit_breakers


@pytest.mark.asyncio
async def test_empty_instrument_list_yields_empty_envelope() -> None:
    uc = _use_case(FakeGateway("k", {}), FakeGateway("c", {}), FakeGateway("s", {}))

    result = await uc.execute([])

    assert result.data == []
    assert result.warnings == []
    assert result.circuit_breakers.primary is BreakerState.CLOSED


def test_rejects_non_positive_concurrency() -> None:
    with pytest.raises(ValueError, match="max_concurrency"):
        _use_case(
            FakeGateway("k", {}), FakeGateway("c", {}), FakeGateway("s", {}), max_concurrency=0
        )
