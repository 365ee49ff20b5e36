# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Read-only port over circuit-breaker state.

Lets use cases snapshot provider health without depending on the concrete
breaker or its store.
"""

from __future__ import annotations

from typing import Protocol

from tokenpulse_api.domain.enums.quote_source import BreakerState


class BreakerStateReader(Protocol):
    """Anything that can report a breaker state by key without transitioning it."""

    def state_of(self, key: str) -> BreakerState:
        """Return the current state for ``key`` (``closed`` when unknown)."""
        ...
