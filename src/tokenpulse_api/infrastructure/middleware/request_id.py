# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Request ID Middleware.

Summary:
    Assigns a correlation ID to each request and echoes it on the response.
    Uses an incoming ``X-Request-ID`` when it is present and safe; otherwise
    generates a UUID4.

Contract:
    • Reads:  X-Request-ID (optional)
    • Writes: X-Request-ID (always written)
    • Stores: request.state.request_id (str)
    • Enriches logs and outbound provider calls via contextvars
"""

from __future__ import annotations

import re
import uuid
from typing import Final

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from tokenpulse_api.infrastructure.logging.logger import set_request_context

REQUEST_ID_HEADER: Final[str] = "X-Request-ID"
_SAFE_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9\-_.:@]{1,128}$")


def _coerce_request_id(raw: str | None) -> str:
    """Return the caller's id when it matches the safe pattern, else a new UUID4."""
    if raw and _SAFE_RE.match(raw):
        return raw
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Inject a request id onto the request state, log context and response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Attach ``request.state.request_id`` and emit the header on the response."""
        req_id = _coerce_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = req_id
        set_request_context(request_id=req_id)

        response: Response = await call_next(request)
        response.headers.setdefault(REQUEST_ID_HEADER, req_id)
        return response
