from __future__ import annotations

import asyncio
from typing import Any

import pytest

from tokenpulse_api.domain.enums.quote_source import BreakerState
from tokenpulse_api.infrastructure.resilience.circuit_breaker import BreakerConfig, CircuitBreaker
from tokenpulse_api.infrastructure.resilience.maintenance import StoreMaintenance
from tokenpulse_api.infrastructure.resilience.rate_limiter import RateLimitConfig, RateLimiter
from tokenpulse_api.infrastructure.resilience.stores import InMemoryStateStore


def test_update_is_read_modify_write_and_returns_result() -> None:
    store: InMemoryStateStore[int] = InMemoryStateStore()

    assert store.update("k", lambda cur: ((cur or 0) + 1, "first")) == "first"
    assert store.update("k", lambda cur: ((cur or 0) + 1, cur)) == 1
    assert store.get("k") == 2
    assert len(store) == 1


def test_sweep_and_clear() -> None:
    store: InMemoryStateStore[int] = InMemoryStateStore()
    for i in range(5):
        store.update(f"k{i}", lambda _cur, i=i: (i, None))

    assert store.sweep(lambda v: v % 2 == 0) == 3
    assert len(store) == 2
    store.clear()
    assert len(store) == 0


def test_sweep_once_prunes_both_stores(clock: Any) -> None:
    limiter = RateLimiter(clock=clock)
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=1), clock=clock)
    limiter.check("client", RateLimitConfig(max_requests=1, window_s=10))
    breaker.record_failure("open-provider")
    breaker.record_success("idle-provider")
    maintenance = StoreMaintenance(limiter, breaker, breaker_retention_s=60)

    clock.advance(61)

    assert maintenance.sweep_once() == (1, 1)
    assert breaker.state_of("open-provider") is BreakerState.OPEN


@pytest.mark.asyncio
async def test_start_is_idempotent_and_stop_cancels(clock: Any) -> None:
    maintenance = StoreMaintenance(
        RateLimiter(clock=clock),
        CircuitBreaker(clock=clock),
        interval_s=0.01,
    )

    maintenance.start()
    first_task = maintenance._task
    maintenance.start()

    assert maintenance.running
    assert maintenance._task is first_task

    await asyncio.sleep(0.03)
    await maintenance.stop()

    assert not maintenance.running
    await maintenance.stop()
