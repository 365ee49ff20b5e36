# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""State store ports for rate limiting and circuit breaking.

Purpose:
    Define the keyed state records used by the rate limiter and the circuit
    breaker, and the storage port they are persisted through. The default
    adapter is an in-process map; the port allows a shared external store for
    horizontally scaled deployments.

Design:
    * Records are immutable; updates replace the stored value.
    * :meth:`KeyedStateStore.update` is the only read-modify-write primitive
      and must be atomic per key. Implementations must not suspend inside it.

Layer:
    application/interfaces
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from tokenpulse_api.domain.enums.quote_source import BreakerState

V = TypeVar("V")
R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class RateLimitWindow:
    """Fixed-window counter for one client key.

    Attributes:
        count: Requests admitted in the current window.
        window_start: Epoch seconds when the window opened.
        reset_time: Epoch seconds when the window closes.
    """

    count: int
    window_start: float
    reset_time: float


@dataclass(frozen=True, slots=True)
class BreakerRecord:
    """Circuit-breaker state for one provider key.

    Attributes:
        failures: Failures recorded since the last success.
        state: Current breaker state.
        last_failure_at: Epoch seconds of the most recent failure, if any.
        next_attempt_at: Epoch seconds after which an open breaker admits a
            trial call, if open.
    """

    failures: int = 0
    state: BreakerState = BreakerState.CLOSED
    last_failure_at: float | None = None
    next_attempt_at: float | None = None


class KeyedStateStore(Protocol[V]):
    """Key-value store with an atomic per-key update primitive."""

    def get(self, key: str) -> V | None:
        """Return the current value for ``key`` without mutating it."""
        ...

    def update(self, key: str, fn: Callable[[V | None], tuple[V, R]]) -> R:
        """Atomically replace the value for ``key``.

        Args:
            key: Store key.
            fn: Receives the current value (or ``None``) and returns the new
                value plus a result to hand back to the caller.

        Returns:
            The result produced by ``fn``.
        """
        ...

    def sweep(self, predicate: Callable[[V], bool]) -> int:
        """Delete every entry for which ``predicate`` is true.

        Returns:
            Number of entries removed.
        """
        ...

    def __len__(self) -> int:
        """Return the number of stored keys."""
        ...


RateLimitStore = KeyedStateStore[RateLimitWindow]
BreakerStore = KeyedStateStore[BreakerRecord]
