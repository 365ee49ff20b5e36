# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Configuration exceptions (fatal at startup)."""
from __future__ import annotations

from .base import DomainError


class InstrumentConfigError(DomainError):
    """Instrument configuration is missing, unreadable, or malformed."""

    code = "INSTRUMENT_CONFIG_ERROR"
