# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Resilient HTTP transport: bounded, retried, breaker-accounted, async.

This transport is provider-agnostic and provides:

* Async HTTP (httpx) with a hard per-attempt deadline (``asyncio.timeout``)
  that cancels the in-flight request.
* Timeouts are terminal: recorded as a breaker failure and raised as
  :class:`UpstreamTimeout` without retrying.
* Transport errors and non-2xx responses are retried with jittered
  exponential backoff, up to ``retries`` additional attempts.
* Every attempt outcome is reported to the circuit breaker under the
  caller's ``breaker_key``. The breaker *check* belongs to the adapters.
* HTTP 429 maps to :class:`UpstreamRateLimited`; other failures map to
  :class:`UpstreamError`.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Final

import httpx

from tokenpulse_api.domain.exceptions.market_data import (
    MarketDataValidationError,
    UpstreamError,
    UpstreamRateLimited,
    UpstreamTimeout,
)
from tokenpulse_api.infrastructure.logging.logger import get_json_logger, get_request_id
from tokenpulse_api.infrastructure.observability.metrics_market_data import inc_retry
from tokenpulse_api.infrastructure.resilience.circuit_breaker import CircuitBreaker
from tokenpulse_api.infrastructure.resilience.retry import RetryPolicy, backoff_delay

logger = get_json_logger(__name__)

_DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json",
    "User-Agent": "tokenpulse-api/1.0",
}


@dataclass(frozen=True, slots=True)
class FetchOptions:
    """Per-call resilience options.

    Attributes:
        timeout_s: Deadline for a single attempt.
        retries: Additional attempts after the first one.
        base_delay_s: Backoff base.
        max_delay_s: Backoff cap (before jitter).
        breaker_key: Circuit-breaker key to account outcomes against.
    """

    timeout_s: float = 8.0
    retries: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 30.0
    breaker_key: str | None = None

    @property
    def retry_policy(self) -> RetryPolicy:
        """Return the backoff policy implied by these options."""
        return RetryPolicy(total=self.retries, base=self.base_delay_s, cap=self.max_delay_s)


def _status_error(response: httpx.Response, url: str) -> UpstreamError:
    """Map a non-2xx response to a domain error."""
    details = {"status_code": response.status_code, "url": url}
    if response.status_code == 429:
        return UpstreamRateLimited("Upstream rate limit exceeded (HTTP 429)", details=details)
    reason = response.reason_phrase or "error"
    return UpstreamError(f"HTTP {response.status_code}: {reason}", details=details)


class ResilientTransport:
    """Timeout, retry and breaker bookkeeping around an ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        breaker: CircuitBreaker,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Shared HTTP client (owned by the application lifespan).
            breaker: Circuit breaker that receives per-attempt outcomes.
            sleep: Awaitable sleep used between retries (injectable for tests).
            rand: Uniform ``[0, 1)`` source for backoff jitter.
        """
        self._client = client
        self._breaker = breaker
        self._sleep = sleep
        self._rand = rand

    @property
    def breaker(self) -> CircuitBreaker:
        """Return the breaker this transport reports to."""
        return self._breaker

    def _record(self, key: str | None, *, ok: bool) -> None:
        if key is None:
            return
        if ok:
            self._breaker.record_success(key)
        else:
            self._breaker.record_failure(key)

    async def fetch(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        options: FetchOptions | None = None,
    ) -> httpx.Response:
        """Perform a resilient ``GET``.

        Args:
            url: Absolute URL.
            params: Query parameters.
            headers: Extra request headers.
            options: Resilience options; defaults to :class:`FetchOptions`.

        Returns:
            The successful (2xx) response.

        Raises:
            UpstreamTimeout: An attempt exceeded ``timeout_s``.
            UpstreamError: Retries were exhausted; carries the last failure.
        """
        opts = options or FetchOptions()
        policy = opts.retry_policy
        merged_headers = {**_DEFAULT_HEADERS, **(headers or {})}
        rid = get_request_id()
        if rid:
            merged_headers.setdefault("X-Request-ID", rid)

        attempt = 0
        while True:
            try:
                async with asyncio.timeout(opts.timeout_s):
                    response = await self._client.get(
                        url, params=params, headers=merged_headers, timeout=opts.timeout_s
                    )
            except (TimeoutError, httpx.TimeoutException) as exc:
                self._record(opts.breaker_key, ok=False)
                logger.warning(
                    "upstream.timeout",
                    extra={
                        "extra": {
                            "url": url,
                            "provider": opts.breaker_key,
                            "timeout_s": opts.timeout_s,
                            "attempt": attempt + 1,
                        }
                    },
                )
                raise UpstreamTimeout(
                    f"Request timeout after {opts.timeout_s:g}s",
                    details={"url": url, "timeout_s": opts.timeout_s},
                ) from exc
            except httpx.HTTPError as exc:
                error: UpstreamError = UpstreamError(
                    f"Transport error: {exc.__class__.__name__}",
                    details={"url": url, "reason": str(exc)},
                )
                reason = "transport"
            else:
                if response.is_success:
                    self._record(opts.breaker_key, ok=True)
                    return response
                error = _status_error(response, url)
                reason = f"http_{response.status_code}"

            self._record(opts.breaker_key, ok=False)
            if attempt >= policy.total:
                raise error

            delay = backoff_delay(attempt, policy, rand=self._rand)
            logger.warning(
                "upstream.retry",
                extra={
                    "extra": {
                        "url": url,
                        "provider": opts.breaker_key,
                        "attempt": attempt + 1,
                        "delay_s": round(delay, 3),
                        "reason": reason,
                    }
                },
            )
            inc_retry(opts.breaker_key or "unknown", reason)
            await self._sleep(delay)
            attempt += 1


def decode_json(response: httpx.Response, provider: str) -> Any:
    """Decode a JSON body or raise a validation error.

    Args:
        response: Successful upstream response.
        provider: Provider name for error details.

    Returns:
        The decoded JSON value.

    Raises:
        MarketDataValidationError: If the body is not valid JSON.
    """
    try:
        return response.json()
    except ValueError as exc:
        raise MarketDataValidationError(
            "Failed to parse JSON response", details={"provider": provider, "reason": str(exc)}
        ) from exc
