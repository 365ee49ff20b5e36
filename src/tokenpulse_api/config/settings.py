# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""TokenPulse Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated application configuration for the TokenPulse API. Only
    Adapters/Infrastructure read the process environment; use cases receive
    plain values through DI.

Design:
    - Pydantic v2 BaseSettings with ``extra='forbid'`` to catch unknown keys.
    - Explicit field declarations with constrained types and ranges.
    - Singleton accessor ``get_settings()`` with LRU cache.
    - Provider endpoints live in their own prefixed settings
      (``KRAKEN_*``, ``COINGECKO_*``) next to their adapters.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    CI = "ci"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Typed application configuration for TokenPulse."""

    # ---------------------------
    # Service identity
    # ---------------------------
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment.",
        validation_alias="ENVIRONMENT",
    )
    service_name: str = Field(
        default="tokenpulse-api",
        min_length=1,
        description="Service name reported in logs and health payloads.",
        validation_alias="SERVICE_NAME",
    )
    service_version: str = Field(
        default="0.1.0",
        min_length=1,
        description="Service version reported in health payloads.",
        validation_alias="SERVICE_VERSION",
    )
    log_level: str | None = Field(
        default=None,
        description="Override log level (e.g., 'DEBUG', 'INFO').",
        validation_alias="LOG_LEVEL",
    )

    # ---------------------------
    # CORS
    # ---------------------------
    cors_allow_origins_raw: str | None = Field(
        default=None,
        description="Raw env for allowed CORS origins (comma-separated).",
        validation_alias="ALLOWED_ORIGINS",
    )
    cors_allow_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins. Derived from ALLOWED_ORIGINS.",
    )

    # ---------------------------
    # Inbound rate limiting (fixed window, per client)
    # ---------------------------
    rate_limit_max_requests: int = Field(
        default=100,
        ge=1,
        le=100_000,
        description="Requests allowed per window on GET /v1/tokens.",
        validation_alias="RATE_LIMIT_MAX_REQUESTS",
    )
    rate_limit_window_s: float = Field(
        default=60.0,
        gt=0,
        le=86_400,
        description="Fixed window length in seconds.",
        validation_alias="RATE_LIMIT_WINDOW_S",
    )
    history_rate_limit_max_requests: int = Field(
        default=50,
        ge=1,
        le=100_000,
        description="Requests allowed per window on the history route.",
        validation_alias="HISTORY_RATE_LIMIT_MAX_REQUESTS",
    )

    # ---------------------------
    # Circuit breaker
    # ---------------------------
    breaker_failure_threshold: int = Field(
        default=5,
        ge=1,
        le=1_000,
        description="Consecutive failures that trip a provider breaker.",
        validation_alias="BREAKER_FAILURE_THRESHOLD",
    )
    breaker_recovery_timeout_s: float = Field(
        default=120.0,
        gt=0,
        le=86_400,
        description="Seconds an open breaker waits before a half-open probe.",
        validation_alias="BREAKER_RECOVERY_TIMEOUT_S",
    )
    breaker_retention_s: float = Field(
        default=3_600.0,
        gt=0,
        description="Idle seconds after which a non-open breaker record is swept.",
        validation_alias="BREAKER_RETENTION_S",
    )

    # ---------------------------
    # Upstream transport
    # ---------------------------
    upstream_timeout_s: float = Field(
        default=8.0,
        ge=0.1,
        le=60.0,
        description="Per-attempt timeout in seconds for provider calls.",
        validation_alias="UPSTREAM_TIMEOUT_S",
    )
    upstream_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Retries after the first attempt for provider calls.",
        validation_alias="UPSTREAM_RETRIES",
    )
    upstream_base_delay_s: float = Field(
        default=1.0,
        ge=0,
        le=60.0,
        description="Base delay for exponential backoff.",
        validation_alias="UPSTREAM_BASE_DELAY_S",
    )
    upstream_max_delay_s: float = Field(
        default=30.0,
        ge=0,
        le=600.0,
        description="Cap on a single backoff delay.",
        validation_alias="UPSTREAM_MAX_DELAY_S",
    )

    # ---------------------------
    # Aggregation & state maintenance
    # ---------------------------
    aggregation_max_concurrency: int = Field(
        default=16,
        ge=1,
        le=256,
        description="Instruments processed concurrently per aggregation.",
        validation_alias="AGGREGATION_MAX_CONCURRENCY",
    )
    expose_synthetic_source: bool = Field(
        default=False,
        description="Tag synthetic rows 'synthetic' instead of 'secondary'.",
        validation_alias="EXPOSE_SYNTHETIC_SOURCE",
    )
    store_sweep_interval_s: float = Field(
        default=300.0,
        gt=0,
        description="Interval of the background sweep over limiter/breaker state.",
        validation_alias="STORE_SWEEP_INTERVAL_S",
    )
    instruments_file: Path | None = Field(
        default=None,
        description="JSON file with the instrument list; built-in defaults when unset.",
        validation_alias="INSTRUMENTS_FILE",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def _validate_cross_fields(self) -> Settings:
        """Derive the CORS list and check cross-field invariants.

        Returns:
            Settings: The validated and possibly mutated settings instance.

        Raises:
            ValueError: If CORS or backoff invariants are violated.
        """
        raw = (self.cors_allow_origins_raw or "").strip()
        entries = [e.strip() for e in raw.split(",") if e.strip()]
        if any(e == "*" for e in entries) and self.environment not in (
            Environment.DEVELOPMENT,
            Environment.TEST,
        ):
            raise ValueError("'*' CORS origin is only allowed in development/test environments.")
        self.cors_allow_origins = entries

        if self.upstream_max_delay_s < self.upstream_base_delay_s:
            raise ValueError("UPSTREAM_MAX_DELAY_S must be >= UPSTREAM_BASE_DELAY_S")

        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton ``Settings`` instance.

    Returns:
        Settings: Validated application settings.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = Settings()
        logger.info(
            "Settings initialized",
            extra={
                "environment": settings.environment.value,
                "cors_count": len(settings.cors_allow_origins),
                "rate_limit": {
                    "max_requests": settings.rate_limit_max_requests,
                    "window_s": settings.rate_limit_window_s,
                    "history_max_requests": settings.history_rate_limit_max_requests,
                },
                "breaker": {
                    "threshold": settings.breaker_failure_threshold,
                    "recovery_s": settings.breaker_recovery_timeout_s,
                },
                "upstream": {
                    "timeout_s": settings.upstream_timeout_s,
                    "retries": settings.upstream_retries,
                },
                "instruments_file": (
                    str(settings.instruments_file) if settings.instruments_file else None
                ),
            },
        )
        return settings
    except ValidationError as exc:
        logger.exception("Invalid application configuration")
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
