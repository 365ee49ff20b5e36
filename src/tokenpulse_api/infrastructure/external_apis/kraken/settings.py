# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Pydantic settings for the Kraken public ticker adapter."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KrakenSettings(BaseSettings):
    """Configuration for the primary provider (Kraken public REST API).

    Environment variables (with ``model_config.env_prefix``):

    * ``KRAKEN_BASE_URL``
    * ``KRAKEN_BREAKER_KEY``
    """

    base_url: str = Field(
        "https://api.kraken.com",
        description="Base URL for the Kraken public REST API.",
    )
    breaker_key: str = Field(
        "kraken",
        description="Circuit-breaker key for this provider.",
    )

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="KRAKEN_",
        extra="ignore",
    )

    @property
    def ticker_url(self) -> str:
        """Return the absolute ticker endpoint URL."""
        return f"{self.base_url.rstrip('/')}/0/public/Ticker"
