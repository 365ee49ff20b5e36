# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Core bootstrap for shared infrastructure (HTTP client, resilience, use cases).

This module owns the lifecycle of process-wide objects used by the FastAPI
app. Configuration is read from Settings; construction is delegated to the
infrastructure and application modules.

The public surface is :func:`bootstrap`, an async context manager yielding a
:class:`BootstrapState`, and :func:`build_state`, the synchronous wiring it
uses (also handy in tests).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from fastapi import FastAPI

from tokenpulse_api.adapters.gateways.coingecko_gateway import CoinGeckoQuoteGateway
from tokenpulse_api.adapters.gateways.kraken_gateway import KrakenQuoteGateway
from tokenpulse_api.adapters.gateways.synthetic_gateway import SyntheticQuoteGateway
from tokenpulse_api.application.use_cases.tokens.aggregate_tokens import AggregateTokens
from tokenpulse_api.application.use_cases.tokens.get_token_history import GetTokenHistory
from tokenpulse_api.config.instruments import load_instruments
from tokenpulse_api.config.settings import Settings, get_settings
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.services.synthetic_quotes import SyntheticQuoteGenerator
from tokenpulse_api.infrastructure.external_apis.coingecko.settings import CoinGeckoSettings
from tokenpulse_api.infrastructure.external_apis.kraken.settings import KrakenSettings
from tokenpulse_api.infrastructure.logging.logger import configure_root_logging, get_json_logger
from tokenpulse_api.infrastructure.observability.metrics_market_data import ensure_registered
from tokenpulse_api.infrastructure.resilience.circuit_breaker import BreakerConfig, CircuitBreaker
from tokenpulse_api.infrastructure.resilience.maintenance import StoreMaintenance
from tokenpulse_api.infrastructure.resilience.rate_limiter import RateLimiter
from tokenpulse_api.infrastructure.resilience.transport import FetchOptions, ResilientTransport

logger = get_json_logger(__name__)


@dataclass
class BootstrapState:
    """State yielded by the bootstrap context manager."""

    settings: Settings
    http_client: httpx.AsyncClient
    instruments: tuple[Instrument, ...]
    rate_limiter: RateLimiter
    circuit_breaker: CircuitBreaker
    aggregate_tokens: AggregateTokens
    token_history: GetTokenHistory
    maintenance: StoreMaintenance

    def apply_to(self, app: FastAPI) -> None:
        """Expose the shared objects on ``app.state`` for DI providers."""
        app.state.settings = self.settings
        app.state.http_client = self.http_client
        app.state.instruments = self.instruments
        app.state.rate_limiter = self.rate_limiter
        app.state.circuit_breaker = self.circuit_breaker
        app.state.aggregate_tokens = self.aggregate_tokens
        app.state.token_history = self.token_history


def build_state(
    settings: Settings,
    http_client: httpx.AsyncClient,
    *,
    instruments: tuple[Instrument, ...] | None = None,
    kraken_settings: KrakenSettings | None = None,
    coingecko_settings: CoinGeckoSettings | None = None,
) -> BootstrapState:
    """Wire limiter, breaker, transport, gateways and use cases.

    Args:
        settings: Application settings.
        http_client: Shared HTTP client (caller owns its lifecycle).
        instruments: Instrument list; loaded from settings when omitted.
        kraken_settings: Primary provider settings (env ``KRAKEN_*`` by default).
        coingecko_settings: Secondary provider settings (env ``COINGECKO_*``).

    Returns:
        BootstrapState with a not-yet-started maintenance task.

    Raises:
        InstrumentConfigError: If the instrument configuration is invalid.
    """
    if instruments is None:
        instruments = load_instruments(settings.instruments_file)

    kraken_cfg = kraken_settings or KrakenSettings()
    coingecko_cfg = coingecko_settings or CoinGeckoSettings()

    limiter = RateLimiter()
    breaker = CircuitBreaker(
        BreakerConfig(
            failure_threshold=settings.breaker_failure_threshold,
            recovery_timeout_s=settings.breaker_recovery_timeout_s,
        )
    )
    transport = ResilientTransport(http_client, breaker)
    options = FetchOptions(
        timeout_s=settings.upstream_timeout_s,
        retries=settings.upstream_retries,
        base_delay_s=settings.upstream_base_delay_s,
        max_delay_s=settings.upstream_max_delay_s,
    )
    generator = SyntheticQuoteGenerator()

    aggregate = AggregateTokens(
        KrakenQuoteGateway(transport, kraken_cfg, options=options),
        CoinGeckoQuoteGateway(transport, coingecko_cfg, options=options),
        SyntheticQuoteGateway(generator),
        breakers=breaker,
        max_concurrency=settings.aggregation_max_concurrency,
        expose_synthetic_source=settings.expose_synthetic_source,
    )
    ensure_registered((kraken_cfg.breaker_key, coingecko_cfg.breaker_key))

    return BootstrapState(
        settings=settings,
        http_client=http_client,
        instruments=instruments,
        rate_limiter=limiter,
        circuit_breaker=breaker,
        aggregate_tokens=aggregate,
        token_history=GetTokenHistory(generator),
        maintenance=StoreMaintenance(
            limiter,
            breaker,
            interval_s=settings.store_sweep_interval_s,
            breaker_retention_s=settings.breaker_retention_s,
        ),
    )


@asynccontextmanager
async def bootstrap(app: FastAPI) -> AsyncGenerator[BootstrapState, None]:
    """Initialize and teardown shared infrastructure.

    Responsibilities:
        * Load settings and configure logging.
        * Load and validate the instrument list (fatal on error).
        * Create the shared HTTPX AsyncClient and the resilience objects.
        * Run the periodic store sweep while the app is serving.
        * Shut everything down on exit, even on error.

    Args:
        app: FastAPI application instance; receives the state on ``app.state``.

    Yields:
        BootstrapState: Resolved settings and shared objects.
    """
    settings: Settings = get_settings()
    configure_root_logging(settings.log_level.upper() if settings.log_level else None)
    logger.info("bootstrap.start")

    # Client default mirrors the per-attempt deadline in FetchOptions.
    http_client = httpx.AsyncClient(timeout=settings.upstream_timeout_s)
    try:
        state = build_state(settings, http_client)
    except Exception:
        await http_client.aclose()
        raise

    state.apply_to(app)
    state.maintenance.start()
    logger.info(
        "bootstrap.ready",
        extra={
            "extra": {
                "instruments": [i.symbol for i in state.instruments],
                "expose_synthetic_source": settings.expose_synthetic_source,
            }
        },
    )

    try:
        yield state
    finally:
        try:
            await state.maintenance.stop()
        except Exception:
            logger.exception("bootstrap.maintenance_stop_failed")

        try:
            await http_client.aclose()
        except Exception:
            logger.exception("bootstrap.http_client_close_failed")

        logger.info("bootstrap.stop")
