# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""
Market Data Domain Exceptions

Purpose:
    Exceptions representing error conditions raised while acquiring quotes from
    upstream pricing providers. Per-instrument failures are absorbed by the
    aggregation use case; anything else is mapped to HTTP by adapters.

Layer: domain/exceptions
"""
from __future__ import annotations

from .base import DomainError


class MarketDataUnavailable(DomainError):
    """Upstream market data dependency is unavailable or timed out."""

    code = "MARKET_DATA_UNAVAILABLE"


class UpstreamError(MarketDataUnavailable):
    """Transport failure, non-2xx status, or a provider-reported error list."""

    code = "UPSTREAM_ERROR"


class UpstreamRateLimited(UpstreamError):
    """Provider answered HTTP 429."""

    code = "UPSTREAM_RATE_LIMITED"


class UpstreamTimeout(MarketDataUnavailable):
    """A single attempt exceeded its time budget. Never retried."""

    code = "UPSTREAM_TIMEOUT"


class CircuitOpenError(MarketDataUnavailable):
    """The provider's circuit breaker rejected the call without network I/O."""

    code = "CIRCUIT_OPEN"


class SymbolNotFound(DomainError):
    """Upstream has no data for the requested identifier."""

    code = "SYMBOL_NOT_FOUND"


class MarketDataValidationError(DomainError):
    """Upstream returned an unexpected payload or an implausible value."""

    code = "UPSTREAM_SCHEMA_ERROR"
