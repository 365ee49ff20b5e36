from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI

from tokenpulse_api.dependencies.core.bootstrap import BootstrapState

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_liveness(client: httpx.AsyncClient) -> None:
    resp = await client.get("/health/z")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_readiness_ok_with_closed_breakers(client: httpx.AsyncClient) -> None:
    resp = await client.get("/health/readiness")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["service"] == "tokenpulse-api"
    assert body["instruments"] == 2
    assert body["circuitBreakers"] == {"primary": "closed", "secondary": "closed"}
    assert [c["name"] for c in body["checks"]] == ["instruments", "primary", "secondary"]


@pytest.mark.asyncio
async def test_readiness_degraded_when_breaker_open(
    client: httpx.AsyncClient, state: BootstrapState
) -> None:
    for _ in range(state.settings.breaker_failure_threshold):
        state.circuit_breaker.record_failure("coingecko")

    resp = await client.get("/health/readiness")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "degraded"
    assert body["circuitBreakers"]["secondary"] == "open"
    secondary = next(c for c in body["checks"] if c["name"] == "secondary")
    assert secondary["status"] == "down"


@pytest.mark.asyncio
async def test_readiness_down_without_instruments(
    client: httpx.AsyncClient, wired: tuple[FastAPI, BootstrapState]
) -> None:
    app, _ = wired
    app.state.instruments = ()

    resp = await client.get("/health/readiness")

    assert resp.status_code == 503
    assert resp.json()["status"] == "down"


@pytest.mark.asyncio
async def test_metrics_exposes_provider_series(client: httpx.AsyncClient) -> None:
    resp = await client.get("/metrics")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert 'tokenpulse_circuit_breaker_open{provider="kraken"}' in resp.text
    assert 'tokenpulse_circuit_breaker_open{provider="coingecko"}' in resp.text


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: httpx.AsyncClient) -> None:
    resp = await client.get("/v1/nope")

    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["http_status"] == 404
    assert error["trace_id"] == resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_openapi_lists_token_routes(client: httpx.AsyncClient) -> None:
    resp = await client.get("/openapi.json")

    paths = resp.json()["paths"]
    assert "/v1/tokens" in paths
    assert "/v1/tokens/{symbol}/history" in paths
    assert "429" in paths["/v1/tokens"]["get"]["responses"]
