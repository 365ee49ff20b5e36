# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""
Config package export.

Keeps import sites clean and stable:
    from tokenpulse_api.config import get_settings, Settings
"""

from __future__ import annotations

from .instruments import DEFAULT_INSTRUMENTS, load_instruments
from .settings import Environment, Settings, get_settings

__all__ = ["DEFAULT_INSTRUMENTS", "Environment", "Settings", "get_settings", "load_instruments"]
