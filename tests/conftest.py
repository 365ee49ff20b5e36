# tests/conftest.py
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import pytest

from tokenpulse_api.config.settings import get_settings


@dataclass
class FakeClock:
    """Manually advanced epoch-seconds clock."""

    now: float = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep the cached Settings hermetic per test."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("INSTRUMENTS_FILE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class SleepRecorder:
    """Awaitable stand-in for ``asyncio.sleep`` that records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()
