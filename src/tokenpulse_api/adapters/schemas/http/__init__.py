# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""HTTP Schemas package (Adapters Layer).

Purpose:
    Public, adapter-facing HTTP schema surface for TokenPulse. Re-exports
    the error shapes and resource schemas used by routers and presenters.
    BaseHTTPSchema stays internal to this package.

Layer:
    adapters/schemas/http
"""

from __future__ import annotations

from tokenpulse_api.adapters.schemas.http.envelopes import (
    ApiErrorBody,
    ErrorEnvelope,
    ErrorObject,
    RateLimitErrorBody,
)
from tokenpulse_api.adapters.schemas.http.tokens import (
    CircuitBreakersHTTP,
    HistoryPointHTTP,
    SourcesHTTP,
    TokenHistoryResponse,
    TokenRowHTTP,
    TokensResponse,
)

__all__ = [
    # Errors
    "ApiErrorBody",
    "ErrorEnvelope",
    "ErrorObject",
    "RateLimitErrorBody",
    # Tokens
    "CircuitBreakersHTTP",
    "HistoryPointHTTP",
    "SourcesHTTP",
    "TokenHistoryResponse",
    "TokenRowHTTP",
    "TokensResponse",
]
