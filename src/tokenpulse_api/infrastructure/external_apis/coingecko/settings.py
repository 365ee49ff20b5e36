# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Pydantic settings for the CoinGecko simple-price adapter."""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoinGeckoSettings(BaseSettings):
    """Configuration for the secondary provider (CoinGecko v3 API).

    Environment variables (with ``model_config.env_prefix``):

    * ``COINGECKO_BASE_URL``
    * ``COINGECKO_API_KEY`` (optional demo/pro key)
    * ``COINGECKO_API_KEY_HEADER``
    * ``COINGECKO_BREAKER_KEY``
    """

    base_url: str = Field(
        "https://api.coingecko.com/api/v3",
        description="Base URL for the CoinGecko v3 API.",
    )
    api_key: SecretStr | None = Field(
        None,
        description="Optional API key sent on every request.",
    )
    api_key_header: str = Field(
        "x-cg-demo-api-key",
        description="Header carrying the API key.",
    )
    breaker_key: str = Field(
        "coingecko",
        description="Circuit-breaker key for this provider.",
    )

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="COINGECKO_",
        extra="ignore",
    )

    @property
    def simple_price_url(self) -> str:
        """Return the absolute simple-price endpoint URL."""
        return f"{self.base_url.rstrip('/')}/simple/price"

    def auth_headers(self) -> dict[str, str]:
        """Return the API key header when a key is configured."""
        if self.api_key is None or not self.api_key.get_secret_value():
            return {}
        return {self.api_key_header: self.api_key.get_secret_value()}
