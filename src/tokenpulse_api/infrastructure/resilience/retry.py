# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Retry policy and jittered exponential backoff."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry attempts."""

    total: int  # number of retries (not counting the first attempt)
    base: float  # base backoff seconds
    cap: float  # max backoff seconds
    jitter: float = 0.1  # fraction of the delay added as random jitter


def backoff_delay(
    attempt: int,
    policy: RetryPolicy,
    *,
    rand: Callable[[], float] = random.random,
) -> float:
    """Return the sleep before retry number ``attempt + 1``.

    ``delay = min(cap, base * 2**attempt)`` plus up to ``jitter * delay``.

    Args:
        attempt: Zero-based index of the attempt that just failed.
        policy: Backoff configuration.
        rand: Source of uniform ``[0, 1)`` samples.

    Returns:
        Delay in seconds.
    """
    delay = min(policy.cap, policy.base * (2**attempt))
    return delay + rand() * policy.jitter * delay
