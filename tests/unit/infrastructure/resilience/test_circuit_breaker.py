from __future__ import annotations

from typing import Any

from tokenpulse_api.domain.enums.quote_source import BreakerState
from tokenpulse_api.infrastructure.resilience.circuit_breaker import BreakerConfig, CircuitBreaker


def test_breaker_allows_calls_for_unknown_key(clock: Any) -> None:
    breaker = CircuitBreaker(clock=clock)

    check = breaker.check("svc")

    assert check.allowed is True
    assert check.state is BreakerState.CLOSED
    assert breaker.failures_of("svc") == 0


def test_breaker_full_cycle(clock: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=5, recovery_timeout_s=120), clock=clock)

    for _ in range(4):
        assert breaker.record_failure("svc") is BreakerState.CLOSED
    assert breaker.check("svc").allowed is True

    assert breaker.record_failure("svc") is BreakerState.OPEN
    check = breaker.check("svc")
    assert check.state is BreakerState.OPEN
    assert check.allowed is False

    clock.advance(119)
    assert breaker.check("svc").allowed is False

    clock.advance(1)
    trial = breaker.check("svc")
    assert trial.state is BreakerState.HALF_OPEN
    assert trial.allowed is True

    assert breaker.record_failure("svc") is BreakerState.OPEN
    assert breaker.check("svc").allowed is False

    clock.advance(120)
    assert breaker.check("svc").state is BreakerState.HALF_OPEN
    breaker.record_success("svc")

    assert breaker.state_of("svc") is BreakerState.CLOSED
    assert breaker.failures_of("svc") == 0
    assert breaker.check("svc").allowed is True


def test_success_resets_consecutive_failures(clock: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=3), clock=clock)

    breaker.record_failure("svc")
    breaker.record_failure("svc")
    breaker.record_success("svc")
    breaker.record_failure("svc")

    assert breaker.state_of("svc") is BreakerState.CLOSED
    assert breaker.failures_of("svc") == 1


def test_threshold_of_one_opens_on_first_failure(clock: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=1, recovery_timeout_s=5), clock=clock)

    assert breaker.record_failure("svc") is BreakerState.OPEN
    assert breaker.check("svc").allowed is False


def test_per_call_config_overrides_defaults(clock: Any) -> None:
    breaker = CircuitBreaker(clock=clock)

    state = breaker.record_failure("svc", BreakerConfig(failure_threshold=1, recovery_timeout_s=1))

    assert state is BreakerState.OPEN
    clock.advance(1)
    assert breaker.check("svc").state is BreakerState.HALF_OPEN


def test_providers_are_isolated(clock: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=1), clock=clock)

    breaker.record_failure("kraken")

    assert breaker.state_of("kraken") is BreakerState.OPEN
    assert breaker.state_of("coingecko") is BreakerState.CLOSED


def test_state_of_does_not_transition(clock: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=1, recovery_timeout_s=10), clock=clock)
    breaker.record_failure("svc")
    clock.advance(60)

    assert breaker.state_of("svc") is BreakerState.OPEN
    assert breaker.check("svc").state is BreakerState.HALF_OPEN


def test_sweep_keeps_open_records_and_drops_idle_ones(clock: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=1, recovery_timeout_s=10), clock=clock)
    breaker.record_failure("tripped")
    breaker.record_success("healthy")

    clock.advance(3_601)

    assert breaker.sweep(retention_s=3_600) == 1
    assert breaker.state_of("tripped") is BreakerState.OPEN


def test_half_open_admits_every_check_until_an_outcome(clock: Any) -> None:
    breaker = CircuitBreaker(BreakerConfig(failure_threshold=1, recovery_timeout_s=10), clock=clock)
    breaker.record_failure("svc")
    clock.advance(10)

    checks = [breaker.check("svc") for _ in range(3)]

    assert all(c.allowed for c in checks)
    assert {c.state for c in checks} == {BreakerState.HALF_OPEN}

    breaker.record_success("svc")
    assert breaker.check("svc").state is BreakerState.CLOSED
