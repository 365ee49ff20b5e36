# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Market data observability helpers and Prometheus metrics.

This module centralizes all Prometheus metrics related to upstream pricing
providers, the aggregation use case, and the resilience layer.

Exports
-------
Core collectors (names are part of the public contract and must remain stable):

* ``tokenpulse_provider_requests_total`` (Counter)
* ``tokenpulse_provider_latency_seconds`` (Histogram)
* ``tokenpulse_provider_retries_total`` (Counter)
* ``tokenpulse_aggregation_rows_total`` (Counter)
* ``tokenpulse_circuit_breaker_open`` (Gauge)
* ``tokenpulse_rate_limit_rejections_total`` (Counter)

Helpers:

* :func:`observe_upstream_request` – context manager for one upstream call.

Design
------
All collectors are created against the *current* default registry
(:data:`prometheus_client.REGISTRY`). If a collector with the same name
already exists in the active registry, the existing instance is reused
instead of registering a duplicate, which keeps module re-imports and test
registry swaps safe.
"""

from __future__ import annotations

from collections.abc import Generator, Sequence
from contextlib import contextmanager, suppress
from dataclasses import dataclass, field
from time import perf_counter
from typing import TypeVar

import prometheus_client as prom
from prometheus_client import Counter, Gauge, Histogram
from prometheus_client.registry import CollectorRegistry

_C = TypeVar("_C", Counter, Gauge, Histogram)


def _get_or_create(
    kind: type[_C],
    name: str,
    doc: str,
    labelnames: Sequence[str] | None = None,
) -> _C:
    """Return a collector of ``kind`` bound to the current default registry.

    1. Look up an existing collector with the given name in the current
       :data:`prom.REGISTRY` and reuse it if it has the right type.
    2. Otherwise, attempt to register a new collector on the same registry.
    3. If a concurrent registration caused a ``Duplicated timeseries`` error,
       look up the collector again and reuse it.

    Args:
        kind: Collector class (``Counter``, ``Gauge`` or ``Histogram``).
        name: Metric name.
        doc: Human-readable metric description.
        labelnames: Optional iterable of label names.

    Returns:
        A collector bound to the current :data:`prom.REGISTRY`.
    """
    registry: CollectorRegistry = prom.REGISTRY
    mapping = getattr(registry, "_names_to_collectors", {})  # internal but stable
    existing = mapping.get(name)
    if isinstance(existing, kind):
        return existing

    labels = tuple(labelnames) if labelnames is not None else ()
    try:
        return kind(name, doc, labels, registry=registry)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            mapping = getattr(registry, "_names_to_collectors", {})
            again = mapping.get(name)
            if isinstance(again, kind):
                return again
        raise


# ---------------------------------------------------------------------------
# Core metrics
# ---------------------------------------------------------------------------

provider_requests_total: Counter = _get_or_create(
    Counter,
    "tokenpulse_provider_requests_total",
    "Upstream provider calls by outcome.",
    labelnames=("provider", "outcome"),
)

provider_latency_seconds: Histogram = _get_or_create(
    Histogram,
    "tokenpulse_provider_latency_seconds",
    "Latency of upstream provider calls including retries (seconds).",
    labelnames=("provider", "outcome"),
)

provider_retries_total: Counter = _get_or_create(
    Counter,
    "tokenpulse_provider_retries_total",
    "Retries attempted against upstream providers.",
    labelnames=("provider", "reason"),
)

aggregation_rows_total: Counter = _get_or_create(
    Counter,
    "tokenpulse_aggregation_rows_total",
    "Aggregated rows by provider tier (unavailable counts missing rows).",
    labelnames=("source",),
)

circuit_breaker_open: Gauge = _get_or_create(
    Gauge,
    "tokenpulse_circuit_breaker_open",
    "1 when the provider circuit breaker is open or half-open, else 0.",
    labelnames=("provider",),
)

rate_limit_rejections_total: Counter = _get_or_create(
    Counter,
    "tokenpulse_rate_limit_rejections_total",
    "Requests rejected by the per-client rate limiter.",
    labelnames=("route",),
)


# ---------------------------------------------------------------------------
# Observation context manager used by gateways
# ---------------------------------------------------------------------------


@dataclass
class UpstreamObservation:
    """State captured while observing an upstream call.

    Attributes:
        provider: Upstream provider identifier (for labelling).
        start: Monotonic start time in seconds.
        outcome: Outcome label (``"success"`` or a short error reason).
    """

    provider: str
    start: float = field(default_factory=perf_counter)
    outcome: str = "success"

    def mark_error(self, reason: str) -> None:
        """Mark the upstream call as failed with a short machine-readable reason."""
        self.outcome = reason


@contextmanager
def observe_upstream_request(*, provider: str) -> Generator[UpstreamObservation, None, None]:
    """Observe one upstream provider call.

    Records a latency sample and a request counter increment labelled with
    the call outcome. Exceptions escaping the block are labelled with the
    exception's ``code`` attribute when present.

    Args:
        provider: Upstream provider identifier (e.g. ``"kraken"``).

    Yields:
        A mutable :class:`UpstreamObservation`.
    """
    obs = UpstreamObservation(provider=provider)
    try:
        yield obs
    except Exception as exc:
        if obs.outcome == "success":
            obs.mark_error(str(getattr(exc, "code", "exception")).lower())
        raise
    finally:
        elapsed = perf_counter() - obs.start
        with suppress(Exception):
            provider_latency_seconds.labels(provider=obs.provider, outcome=obs.outcome).observe(
                elapsed
            )
            provider_requests_total.labels(provider=obs.provider, outcome=obs.outcome).inc()


def set_breaker_gauge(provider: str, *, tripped: bool) -> None:
    """Publish the breaker state for ``provider`` (1 when not closed)."""
    with suppress(Exception):
        circuit_breaker_open.labels(provider=provider).set(1 if tripped else 0)


def inc_retry(provider: str, reason: str) -> None:
    """Count one retry against ``provider``."""
    with suppress(Exception):
        provider_retries_total.labels(provider=provider, reason=reason).inc()


def inc_rows(source: str, count: int = 1) -> None:
    """Count aggregated rows for a provider tier."""
    if count <= 0:
        return
    with suppress(Exception):
        aggregation_rows_total.labels(source=source).inc(count)


def inc_rate_limit_rejection(route: str) -> None:
    """Count one rate-limit rejection for ``route``."""
    with suppress(Exception):
        rate_limit_rejections_total.labels(route=route).inc()


def ensure_registered(breaker_keys: Sequence[str] = ("kraken", "coingecko")) -> None:
    """Materialize the breaker gauge series so a cold scrape shows every provider."""
    for key in breaker_keys:
        with suppress(Exception):
            circuit_breaker_open.labels(provider=key)
