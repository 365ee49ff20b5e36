# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""In-memory keyed state store (process-local).

Backs the rate limiter and circuit breaker by default. Updates are
serialized through a ``threading.Lock`` held only for the synchronous
read-modify-write, never across an ``await``. State is not shared across
processes; plug a shared implementation of
:class:`~tokenpulse_api.application.interfaces.state_store.KeyedStateStore`
for multi-instance deployments.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Generic, TypeVar

V = TypeVar("V")
R = TypeVar("R")


class InMemoryStateStore(Generic[V]):
    """Dict-backed implementation of ``KeyedStateStore``."""

    def __init__(self) -> None:
        self._data: dict[str, V] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        """Return the current value for ``key``."""
        with self._lock:
            return self._data.get(key)

    def update(self, key: str, fn: Callable[[V | None], tuple[V, R]]) -> R:
        """Atomically apply ``fn`` to the value at ``key``."""
        with self._lock:
            new_value, result = fn(self._data.get(key))
            self._data[key] = new_value
            return result

    def sweep(self, predicate: Callable[[V], bool]) -> int:
        """Remove entries matching ``predicate``; return how many were removed."""
        with self._lock:
            stale = [k for k, v in self._data.items() if predicate(v)]
            for k in stale:
                del self._data[k]
            return len(stale)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
