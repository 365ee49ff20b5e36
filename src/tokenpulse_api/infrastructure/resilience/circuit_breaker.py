# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Keyed circuit breaker (store-backed).

State machine per provider key:
    - CLOSED    -> count failures; when threshold reached, go OPEN.
    - OPEN      -> fail-fast until ``next_attempt_at``; the first check at or
                   after it moves to HALF-OPEN and is admitted as the trial.
    - HALF-OPEN -> any success closes; any failure re-opens immediately.

Half-open admits every check until an outcome is recorded; concurrent callers
may all probe the provider at once.

Check and bookkeeping are separate calls so adapters can short-circuit before
any network I/O and the transport can report each attempt's outcome.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, replace

from tokenpulse_api.application.interfaces.state_store import BreakerRecord, BreakerStore
from tokenpulse_api.domain.enums.quote_source import BreakerState
from tokenpulse_api.infrastructure.logging.logger import get_json_logger
from tokenpulse_api.infrastructure.observability.metrics_market_data import set_breaker_gauge
from tokenpulse_api.infrastructure.resilience.stores import InMemoryStateStore

logger = get_json_logger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class BreakerConfig:
    """Thresholds for the circuit breaker."""

    failure_threshold: int = 5
    recovery_timeout_s: float = 120.0


@dataclass(frozen=True, slots=True)
class BreakerCheck:
    """Result of :meth:`CircuitBreaker.check`."""

    allowed: bool
    state: BreakerState


class CircuitBreaker:
    """Circuit breaker registry keyed by provider identifier."""

    def __init__(
        self,
        config: BreakerConfig | None = None,
        store: BreakerStore | None = None,
        *,
        clock: Clock = time.time,
    ) -> None:
        self._config = config or BreakerConfig()
        self._store: BreakerStore = store if store is not None else InMemoryStateStore()
        self._clock = clock

    @property
    def config(self) -> BreakerConfig:
        """Return the default thresholds."""
        return self._config

    def check(self, key: str) -> BreakerCheck:
        """Return whether a call for ``key`` may proceed.

        An open breaker whose recovery deadline has passed transitions to
        half-open on this call, and the call is admitted as the trial.
        """
        now = self._clock()

        def _apply(current: BreakerRecord | None) -> tuple[BreakerRecord, BreakerCheck]:
            record = current or BreakerRecord()
            if record.state is BreakerState.OPEN:
                if record.next_attempt_at is not None and now >= record.next_attempt_at:
                    trial = replace(record, state=BreakerState.HALF_OPEN)
                    return trial, BreakerCheck(allowed=True, state=BreakerState.HALF_OPEN)
                return record, BreakerCheck(allowed=False, state=BreakerState.OPEN)
            return record, BreakerCheck(allowed=True, state=record.state)

        result = self._store.update(key, _apply)
        if result.state is BreakerState.HALF_OPEN:
            logger.info("circuit_breaker.half_open", extra={"extra": {"key": key}})
        return result

    def record_success(self, key: str) -> None:
        """Reset failures for ``key`` and close the breaker."""

        def _apply(current: BreakerRecord | None) -> tuple[BreakerRecord, BreakerState | None]:
            previous = current.state if current is not None else None
            base = current or BreakerRecord()
            return replace(base, failures=0, state=BreakerState.CLOSED), previous

        previous = self._store.update(key, _apply)
        if previous is not None and previous is not BreakerState.CLOSED:
            logger.info("circuit_breaker.closed", extra={"extra": {"key": key}})
        set_breaker_gauge(key, tripped=False)

    def record_failure(self, key: str, config: BreakerConfig | None = None) -> BreakerState:
        """Record one failure for ``key``.

        Args:
            key: Provider identifier.
            config: Optional per-call thresholds overriding the defaults.

        Returns:
            The breaker state after recording the failure.
        """
        cfg = config or self._config
        now = self._clock()

        def _apply(current: BreakerRecord | None) -> tuple[BreakerRecord, BreakerState]:
            if current is None:
                fresh = BreakerRecord(failures=1, state=BreakerState.CLOSED, last_failure_at=now)
                if cfg.failure_threshold <= 1:
                    fresh = replace(
                        fresh,
                        state=BreakerState.OPEN,
                        next_attempt_at=now + cfg.recovery_timeout_s,
                    )
                return fresh, fresh.state
            failures = current.failures + 1
            updated = replace(current, failures=failures, last_failure_at=now)
            if current.state is BreakerState.HALF_OPEN or failures >= cfg.failure_threshold:
                updated = replace(
                    updated,
                    state=BreakerState.OPEN,
                    next_attempt_at=now + cfg.recovery_timeout_s,
                )
            return updated, updated.state

        state = self._store.update(key, _apply)
        if state is BreakerState.OPEN:
            logger.warning(
                "circuit_breaker.open",
                extra={"extra": {"key": key, "recovery_timeout_s": cfg.recovery_timeout_s}},
            )
        set_breaker_gauge(key, tripped=state is not BreakerState.CLOSED)
        return state

    def state_of(self, key: str) -> BreakerState:
        """Return the stored state for ``key`` without transitioning it."""
        record = self._store.get(key)
        return record.state if record is not None else BreakerState.CLOSED

    def failures_of(self, key: str) -> int:
        """Return failures recorded since the last success for ``key``."""
        record = self._store.get(key)
        return record.failures if record is not None else 0

    def sweep(self, retention_s: float) -> int:
        """Drop non-open records whose last failure is older than ``retention_s``."""
        now = self._clock()

        def _stale(record: BreakerRecord) -> bool:
            if record.state is BreakerState.OPEN:
                return False
            return now - (record.last_failure_at or 0.0) > retention_s

        return self._store.sweep(_stale)
