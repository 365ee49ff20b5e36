# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Fixed-window rate limiter (keyed, store-backed).

Algorithm:
    - First request for a key, or ``now >= reset_time``: open a fresh window
      with ``count=1`` and ``reset_time = now + window_s``.
    - ``count >= max_requests``: reject with ``remaining=0`` and the window's
      original ``reset_time``. Rejections do not consume budget.
    - Otherwise increment and report ``remaining = max_requests - count``.

The limiter never raises; callers inspect :attr:`RateLimitDecision.allowed`.
Time is epoch seconds from an injectable clock so ``reset_time`` can be
emitted directly as ``X-RateLimit-Reset``.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

from tokenpulse_api.application.interfaces.state_store import RateLimitStore, RateLimitWindow
from tokenpulse_api.infrastructure.resilience.stores import InMemoryStateStore

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Budget for one rate-limited route."""

    max_requests: int
    window_s: float

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if self.window_s <= 0:
            raise ValueError("window_s must be > 0")


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Outcome of a single rate-limit check.

    Attributes:
        allowed: Whether the request is admitted.
        remaining: Requests left in the current window.
        reset_time: Epoch seconds at which the current window ends.
        limit: Configured maximum per window.
    """

    allowed: bool
    remaining: int
    reset_time: float
    limit: int

    def retry_after_s(self, now: float) -> int:
        """Return whole seconds until the window resets (at least 1)."""
        return max(1, math.ceil(self.reset_time - now))


class RateLimiter:
    """Per-key fixed-window limiter over a :class:`RateLimitStore`."""

    def __init__(self, store: RateLimitStore | None = None, *, clock: Clock = time.time) -> None:
        self._store: RateLimitStore = store if store is not None else InMemoryStateStore()
        self._clock = clock

    @property
    def clock(self) -> Clock:
        """Return the limiter's time source."""
        return self._clock

    def check(self, key: str, config: RateLimitConfig) -> RateLimitDecision:
        """Admit or reject one request for ``key``.

        Args:
            key: Client identifier (optionally namespaced per route).
            config: Window budget.

        Returns:
            The admission decision.
        """
        now = self._clock()

        def _apply(current: RateLimitWindow | None) -> tuple[RateLimitWindow, RateLimitDecision]:
            if current is None or now >= current.reset_time:
                fresh = RateLimitWindow(count=1, window_start=now, reset_time=now + config.window_s)
                return fresh, RateLimitDecision(
                    allowed=True,
                    remaining=config.max_requests - 1,
                    reset_time=fresh.reset_time,
                    limit=config.max_requests,
                )
            if current.count >= config.max_requests:
                return current, RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    reset_time=current.reset_time,
                    limit=config.max_requests,
                )
            bumped = replace(current, count=current.count + 1)
            return bumped, RateLimitDecision(
                allowed=True,
                remaining=max(0, config.max_requests - bumped.count),
                reset_time=bumped.reset_time,
                limit=config.max_requests,
            )

        return self._store.update(key, _apply)

    def sweep(self) -> int:
        """Drop windows that have already ended; return how many were removed."""
        now = self._clock()
        return self._store.sweep(lambda w: now > w.reset_time)


_default_limiter = RateLimiter()


def get_default_rate_limiter() -> RateLimiter:
    """Return the process-wide limiter used by :func:`check_rate_limit`."""
    return _default_limiter


def check_rate_limit(key: str, config: RateLimitConfig) -> RateLimitDecision:
    """Check ``key`` against the process-wide limiter."""
    return _default_limiter.check(key, config)
