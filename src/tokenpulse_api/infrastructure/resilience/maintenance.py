# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Periodic sweep of expired rate-limit windows and idle breaker records.

The task is started and stopped by the application lifespan; it never
outlives the event loop that created it.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress

from tokenpulse_api.infrastructure.logging.logger import get_json_logger
from tokenpulse_api.infrastructure.resilience.circuit_breaker import CircuitBreaker
from tokenpulse_api.infrastructure.resilience.rate_limiter import RateLimiter

logger = get_json_logger(__name__)


class StoreMaintenance:
    """Owns the background sweep task for the resilience stores."""

    def __init__(
        self,
        limiter: RateLimiter,
        breaker: CircuitBreaker,
        *,
        interval_s: float = 300.0,
        breaker_retention_s: float = 3600.0,
    ) -> None:
        self._limiter = limiter
        self._breaker = breaker
        self._interval_s = interval_s
        self._breaker_retention_s = breaker_retention_s
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Return True while the sweep task is alive."""
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> tuple[int, int]:
        """Run one sweep and return ``(windows_removed, breakers_removed)``."""
        windows = self._limiter.sweep()
        breakers = self._breaker.sweep(self._breaker_retention_s)
        if windows or breakers:
            logger.debug(
                "store_maintenance.swept",
                extra={"extra": {"rate_limit_windows": windows, "breaker_records": breakers}},
            )
        return windows, breakers

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_s)
            try:
                self.sweep_once()
            except Exception:  # noqa: BLE001
                logger.exception("store_maintenance.sweep_failed")

    def start(self) -> None:
        """Start the sweep task on the running loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="tokenpulse-store-maintenance")
        logger.info("store_maintenance.start", extra={"extra": {"interval_s": self._interval_s}})

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info("store_maintenance.stop")
