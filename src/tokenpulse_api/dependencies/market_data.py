# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Dependency wiring for market data (use cases, limiter, instruments).

Overview:
    FastAPI dependency providers over the objects the lifespan bootstrap
    places on ``app.state``. Tests swap behavior through
    ``app.dependency_overrides`` on these providers.

Layer:
    dependencies
"""

from __future__ import annotations

from fastapi import Request

from tokenpulse_api.application.use_cases.tokens.aggregate_tokens import AggregateTokens
from tokenpulse_api.application.use_cases.tokens.get_token_history import GetTokenHistory
from tokenpulse_api.config.settings import Settings
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.infrastructure.resilience.rate_limiter import RateLimiter


def get_app_settings(request: Request) -> Settings:
    """Return the settings resolved at startup."""
    settings: Settings = request.app.state.settings
    return settings


def get_instruments(request: Request) -> tuple[Instrument, ...]:
    """Return the validated instrument configuration."""
    instruments: tuple[Instrument, ...] = request.app.state.instruments
    return instruments


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the process-wide inbound rate limiter."""
    limiter: RateLimiter = request.app.state.rate_limiter
    return limiter


def get_aggregate_tokens(request: Request) -> AggregateTokens:
    """Return the aggregation use case."""
    use_case: AggregateTokens = request.app.state.aggregate_tokens
    return use_case


def get_token_history(request: Request) -> GetTokenHistory:
    """Return the history use case."""
    use_case: GetTokenHistory = request.app.state.token_history
    return use_case
