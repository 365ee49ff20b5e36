# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Use Case: Aggregate Token Quotes.

Purpose:
    For every configured instrument, run the primary → secondary → synthetic
    fallback chain, normalize the first acceptable quote, and assemble one
    envelope with per-tier counts, warnings and breaker states.

Behavior:
    * Instruments run concurrently (bounded by ``max_concurrency``); tiers
      within one instrument run sequentially.
    * A tier fails on any exception (including an open breaker) or when the
      normalizer rejects its quote; the next tier is then tried.
    * An instrument with no acceptable quote contributes no row and one
      warning. Per-instrument failures never abort the aggregation.
    * Rows are sorted by symbol so output order is independent of completion
      order. ``updated_at`` is stamped after every task has settled.

Layer:
    application/use_cases
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from tokenpulse_api.application.interfaces.breaker_state import BreakerStateReader
from tokenpulse_api.application.schemas.dto.tokens import (
    BreakerStatesDTO,
    SourceCountsDTO,
    TokenRowDTO,
    TokensEnvelopeDTO,
)
from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.entities.quotes import TokenRow
from tokenpulse_api.domain.enums.quote_source import BreakerState, QuoteSource
from tokenpulse_api.domain.interfaces.gateways.quote_gateway import QuoteGatewayProtocol
from tokenpulse_api.domain.services.normalizer import normalize
from tokenpulse_api.infrastructure.logging.logger import get_json_logger
from tokenpulse_api.infrastructure.observability.metrics_market_data import inc_rows

logger = get_json_logger(__name__)

UNAVAILABLE_WARNING = "Token {symbol} unavailable from both APIs"


@dataclass(frozen=True, slots=True)
class _Outcome:
    """Result of one instrument's fallback chain."""

    symbol: str
    row: TokenRow | None
    tier: QuoteSource | None


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class AggregateTokens:
    """Use case producing the token quotes envelope.

    Args:
        primary: Primary provider gateway (skipped for instruments without a
            primary identifier).
        secondary: Secondary provider gateway.
        synthetic: Last-resort deterministic gateway.
        breakers: Read-only breaker state source for the snapshot.
        max_concurrency: Upper bound on instruments processed at once.
        expose_synthetic_source: Tag synthetic rows ``synthetic`` instead of
            ``secondary``.
        now: UTC clock for ``updated_at``.
    """

    def __init__(
        self,
        primary: QuoteGatewayProtocol,
        secondary: QuoteGatewayProtocol,
        synthetic: QuoteGatewayProtocol,
        *,
        breakers: BreakerStateReader | None = None,
        max_concurrency: int = 16,
        expose_synthetic_source: bool = False,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._tiers: tuple[tuple[QuoteGatewayProtocol, QuoteSource], ...] = (
            (primary, QuoteSource.PRIMARY),
            (secondary, QuoteSource.SECONDARY),
            (synthetic, QuoteSource.SYNTHETIC),
        )
        self._primary = primary
        self._secondary = secondary
        self._breakers = breakers
        self._max_concurrency = max_concurrency
        self._expose_synthetic = expose_synthetic_source
        self._now = now

    async def execute(self, instruments: Sequence[Instrument]) -> TokensEnvelopeDTO:
        """Aggregate quotes for ``instruments``.

        Args:
            instruments: Validated instrument configuration.

        Returns:
            TokensEnvelopeDTO with rows sorted by symbol.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(instrument: Instrument) -> _Outcome:
            async with semaphore:
                return await self._resolve(instrument)

        results = await asyncio.gather(
            *(_bounded(i) for i in instruments),
            return_exceptions=True,
        )

        outcomes: list[_Outcome] = []
        for instrument, result in zip(instruments, results, strict=True):
            if isinstance(result, _Outcome):
                outcomes.append(result)
                continue
            if not isinstance(result, Exception):
                raise result
            logger.error(
                "aggregation.instrument_crashed",
                extra={
                    "extra": {
                        "symbol": instrument.symbol,
                        "error_type": type(result).__name__,
                        "error": str(result),
                    }
                },
            )
            outcomes.append(_Outcome(symbol=instrument.symbol, row=None, tier=None))

        return self._assemble(outcomes)

    async def _resolve(self, instrument: Instrument) -> _Outcome:
        """Run the fallback chain for one instrument."""
        for gateway, tier in self._tiers:
            if not gateway.supports(instrument):
                continue
            try:
                raw = await gateway.fetch_quote(instrument)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "aggregation.tier_failed",
                    extra={
                        "extra": {
                            "symbol": instrument.symbol,
                            "provider": gateway.provider,
                            "tier": tier.value,
                            "reason": getattr(exc, "code", type(exc).__name__),
                            "error": str(exc),
                        }
                    },
                )
                continue

            label = tier
            if tier is QuoteSource.SYNTHETIC and not self._expose_synthetic:
                label = QuoteSource.SECONDARY
            row = normalize(
                instrument.symbol,
                instrument.name,
                raw.price_usd,
                raw.change_24h_pct,
                raw.volume_24h_usd,
                label,
            )
            if row is None:
                logger.warning(
                    "aggregation.normalization_rejected",
                    extra={
                        "extra": {
                            "symbol": instrument.symbol,
                            "provider": gateway.provider,
                            "tier": tier.value,
                        }
                    },
                )
                continue
            return _Outcome(symbol=instrument.symbol, row=row, tier=tier)

        return _Outcome(symbol=instrument.symbol, row=None, tier=None)

    def _breaker_state(self, gateway: QuoteGatewayProtocol) -> BreakerState:
        key = gateway.breaker_key
        if self._breakers is None or key is None:
            return BreakerState.CLOSED
        return self._breakers.state_of(key)

    def breaker_states(self) -> BreakerStatesDTO:
        """Snapshot the primary/secondary breaker states without transitioning them."""
        return BreakerStatesDTO(
            primary=self._breaker_state(self._primary),
            secondary=self._breaker_state(self._secondary),
        )

    def _assemble(self, outcomes: Sequence[_Outcome]) -> TokensEnvelopeDTO:
        rows = sorted((o.row for o in outcomes if o.row is not None), key=lambda r: r.symbol)
        warnings = [
            UNAVAILABLE_WARNING.format(symbol=o.symbol) for o in outcomes if o.row is None
        ]

        counts = SourceCountsDTO(
            primary=sum(1 for r in rows if r.source is QuoteSource.PRIMARY),
            secondary=sum(1 for r in rows if r.source is QuoteSource.SECONDARY),
            synthetic=sum(1 for o in outcomes if o.tier is QuoteSource.SYNTHETIC),
            unavailable=len(warnings),
        )
        for tier in QuoteSource:
            inc_rows(tier.value, sum(1 for o in outcomes if o.tier is tier))
        inc_rows("unavailable", counts.unavailable)

        envelope = TokensEnvelopeDTO(
            data=[TokenRowDTO.from_entity(r) for r in rows],
            updated_at=self._now(),
            sources=counts,
            warnings=warnings,
            circuit_breakers=self.breaker_states(),
        )
        logger.info(
            "aggregation.complete",
            extra={
                "extra": {
                    "instruments": len(outcomes),
                    "primary": counts.primary,
                    "secondary": counts.secondary,
                    "synthetic": counts.synthetic,
                    "unavailable": counts.unavailable,
                }
            },
        )
        return envelope
