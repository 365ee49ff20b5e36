from __future__ import annotations

import math

import pytest

from tokenpulse_api.domain.entities.quotes import TokenRow
from tokenpulse_api.domain.enums.quote_source import QuoteSource
from tokenpulse_api.domain.services.normalizer import normalize, round_2dp


def test_normalize_accepts_plausible_quote() -> None:
    row = normalize("AAPL", "Apple", 150.25, 2.5, 1_000_000, "primary")

    assert row == TokenRow(
        symbol="AAPL",
        name="Apple",
        price_usd=150.25,
        change_24h_pct=2.5,
        volume_24h_usd=1_000_000.0,
        source=QuoteSource.PRIMARY,
    )


def test_normalize_rejects_negative_price() -> None:
    assert normalize("AAPL", "Apple", -10, 2.5, 1_000_000, "primary") is None


def test_normalize_rejects_change_above_upper_bound() -> None:
    assert normalize("AAPL", "Apple", 150.25, 15_000, 1_000_000, "primary") is None


@pytest.mark.parametrize(
    ("price", "change", "volume"),
    [
        (0, 1.0, 10.0),
        (1_000_000.01, 1.0, 10.0),
        (math.nan, 1.0, 10.0),
        (math.inf, 1.0, 10.0),
        (10.0, -100.01, 10.0),
        (10.0, math.nan, 10.0),
        (10.0, 1.0, -1.0),
        (10.0, 1.0, 1e16),
        (10.0, 1.0, math.inf),
        ("10", 1.0, 10.0),
        (None, 1.0, 10.0),
        (True, 1.0, 10.0),
    ],
)
def test_normalize_rejects_out_of_bounds_or_non_numeric(
    price: object, change: object, volume: object
) -> None:
    assert normalize("AAPL", "Apple", price, change, volume, "secondary") is None


def test_normalize_accepts_inclusive_bounds() -> None:
    row = normalize("X", "X Corp", 1_000_000, -100, 0, "secondary")

    assert row is not None
    assert row.price_usd == 1_000_000.0
    assert row.change_24h_pct == -100.0
    assert row.volume_24h_usd == 0.0


def test_normalize_trims_and_uppercases() -> None:
    row = normalize("  tsla ", "  Tesla, Inc.  ", 200.0, 0.0, 5.0, QuoteSource.SECONDARY)

    assert row is not None
    assert row.symbol == "TSLA"
    assert row.name == "Tesla, Inc."
    assert row.source is QuoteSource.SECONDARY


@pytest.mark.parametrize(("symbol", "name"), [("", "Apple"), ("   ", "Apple"), ("AAPL", " ")])
def test_normalize_rejects_blank_identity(symbol: str, name: str) -> None:
    assert normalize(symbol, name, 1.0, 0.0, 0.0, "primary") is None


def test_normalize_rejects_sub_cent_price() -> None:
    assert normalize("PENNY", "Penny", 0.004, 0.0, 0.0, "primary") is None


def test_normalize_uses_bankers_rounding() -> None:
    row = normalize("AAPL", "Apple", 0.125, 0.135, 2.675, "primary")

    assert row is not None
    assert row.price_usd == 0.12
    assert row.change_24h_pct == 0.14
    assert row.volume_24h_usd == 2.68


def test_normalize_collapses_negative_zero_change() -> None:
    row = normalize("AAPL", "Apple", 1.0, -0.001, 0.0, "primary")

    assert row is not None
    assert math.copysign(1.0, row.change_24h_pct) == 1.0


def test_normalize_is_idempotent() -> None:
    first = normalize(" nvda", "NVIDIA Corporation ", 812.3456, -3.14159, 123_456.789, "primary")
    assert first is not None

    second = normalize(
        first.symbol,
        first.name,
        first.price_usd,
        first.change_24h_pct,
        first.volume_24h_usd,
        first.source,
    )

    assert second == first


def test_normalize_rejects_unknown_source() -> None:
    with pytest.raises(ValueError):
        normalize("AAPL", "Apple", 1.0, 0.0, 0.0, "kraken")


def test_round_2dp_avoids_binary_float_drift() -> None:
    assert round_2dp(1.005) == 1.0
    assert round_2dp(1234567.891) == 1234567.89
    assert round_2dp(round_2dp(19.999)) == 20.0
