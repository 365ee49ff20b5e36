# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""
Quote source and breaker state enumerations.

Purpose:
    Stable string identifiers used in canonical rows, envelope counters, and
    circuit-breaker snapshots. Values are part of the public JSON contract.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class QuoteSource(str, Enum):
    """Provider tier that produced a canonical row."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    SYNTHETIC = "synthetic"


class BreakerState(str, Enum):
    """Circuit-breaker state for one provider key."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"
