from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import httpx
import pytest
import pytest_asyncio
import respx
from fastapi import FastAPI

from tokenpulse_api.config.settings import get_settings
from tokenpulse_api.dependencies.core.bootstrap import BootstrapState, build_state
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.infrastructure.external_apis.coingecko.settings import CoinGeckoSettings
from tokenpulse_api.infrastructure.external_apis.kraken.settings import KrakenSettings
from tokenpulse_api.main import create_app

KRAKEN = KrakenSettings(base_url="https://kraken.test")
COINGECKO = CoinGeckoSettings(base_url="https://coingecko.test/api/v3")

INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument(
        symbol="TSLA", name="Tesla, Inc.", coingecko_id="tesla-x", kraken_pair="TSLAxUSD"
    ),
    Instrument(
        symbol="AAPL", name="Apple Inc.", coingecko_id="apple-x", kraken_pair="AAPLxUSD"
    ),
)


@pytest.fixture
def api_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Environment applied before the app reads its settings; tests may extend it."""
    env = {"UPSTREAM_RETRIES": "0", "RATE_LIMIT_MAX_REQUESTS": "100"}
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture
def upstream() -> Iterator[respx.MockRouter]:
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest_asyncio.fixture
async def wired(api_env: dict[str, str]) -> AsyncIterator[tuple[FastAPI, BootstrapState]]:
    get_settings.cache_clear()
    app = create_app()
    async with httpx.AsyncClient() as upstream_client:
        state = build_state(
            get_settings(),
            upstream_client,
            instruments=INSTRUMENTS,
            kraken_settings=KRAKEN,
            coingecko_settings=COINGECKO,
        )
        state.apply_to(app)
        yield app, state


@pytest_asyncio.fixture
async def client(wired: tuple[FastAPI, BootstrapState]) -> AsyncIterator[httpx.AsyncClient]:
    app, _ = wired
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def state(wired: tuple[FastAPI, BootstrapState]) -> BootstrapState:
    return wired[1]
