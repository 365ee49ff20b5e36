# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Instrument configuration.

Summary:
    Loads the list of tokenized-stock instruments the service aggregates.
    The list comes from a JSON file (``INSTRUMENTS_FILE``) holding an array
    of ``{symbol, name, krakenPair?, coingeckoId}`` objects, or falls back to
    the built-in defaults. Any defect is fatal at startup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from tokenpulse_api.domain.entities.instrument import Instrument
from tokenpulse_api.domain.exceptions.config import InstrumentConfigError
from tokenpulse_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)


class InstrumentConfig(BaseModel):
    """One entry of the instruments JSON file."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, str_strip_whitespace=True)

    symbol: str = Field(min_length=1)
    name: str = Field(min_length=1)
    kraken_pair: str | None = Field(default=None, alias="krakenPair", min_length=1)
    coingecko_id: str = Field(alias="coingeckoId", min_length=1)

    def to_entity(self) -> Instrument:
        """Build the domain instrument (symbol upper-cased)."""
        return Instrument(
            symbol=self.symbol.upper(),
            name=self.name,
            coingecko_id=self.coingecko_id,
            kraken_pair=self.kraken_pair,
        )


_LIST_ADAPTER: Final[TypeAdapter[list[InstrumentConfig]]] = TypeAdapter(list[InstrumentConfig])

DEFAULT_INSTRUMENTS: Final[tuple[Instrument, ...]] = (
    Instrument(
        symbol="AAPL",
        name="Apple Inc.",
        kraken_pair="AAPLUSD",
        coingecko_id="apple-tokenized-stock-defichain",
    ),
    Instrument(
        symbol="TSLA",
        name="Tesla, Inc.",
        kraken_pair="TSLAUSD",
        coingecko_id="tesla-tokenized-stock-defichain",
    ),
    Instrument(
        symbol="NVDA",
        name="NVIDIA Corporation",
        kraken_pair="NVDAUSD",
        coingecko_id="nvidia-tokenized-stock-defichain",
    ),
)


def parse_instruments(raw: str | bytes) -> tuple[Instrument, ...]:
    """Parse a JSON instrument array.

    Args:
        raw: JSON document.

    Returns:
        Instruments in document order.

    Raises:
        InstrumentConfigError: On malformed JSON, missing fields, an empty
            list, or duplicate symbols.
    """
    try:
        entries = _LIST_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise InstrumentConfigError(
            "Invalid instrument configuration",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc

    if not entries:
        raise InstrumentConfigError("Instrument configuration is empty")

    instruments: list[Instrument] = []
    seen: set[str] = set()
    for entry in entries:
        try:
            instrument = entry.to_entity()
        except ValueError as exc:
            raise InstrumentConfigError(str(exc), details={"symbol": entry.symbol}) from exc
        if instrument.symbol in seen:
            raise InstrumentConfigError(
                f"Duplicate instrument symbol: {instrument.symbol}",
                details={"symbol": instrument.symbol},
            )
        seen.add(instrument.symbol)
        instruments.append(instrument)
    return tuple(instruments)


def load_instruments(path: Path | str | None = None) -> tuple[Instrument, ...]:
    """Load the instrument list.

    Args:
        path: JSON file to read. ``None`` selects :data:`DEFAULT_INSTRUMENTS`.

    Returns:
        Validated instruments.

    Raises:
        InstrumentConfigError: If the file cannot be read or is invalid.
    """
    if path is None:
        logger.info(
            "instruments.loaded",
            extra={"extra": {"source": "default", "count": len(DEFAULT_INSTRUMENTS)}},
        )
        return DEFAULT_INSTRUMENTS

    file = Path(path)
    try:
        raw = file.read_bytes()
    except OSError as exc:
        raise InstrumentConfigError(
            f"Cannot read instrument file: {file}", details={"path": str(file)}
        ) from exc

    instruments = parse_instruments(raw)
    logger.info(
        "instruments.loaded",
        extra={"extra": {"source": str(file), "count": len(instruments)}},
    )
    return instruments
