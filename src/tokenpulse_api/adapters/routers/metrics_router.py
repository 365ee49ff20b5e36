# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (``/metrics``).

Touches the market-data collectors before rendering so every metric family
appears on the very first scrape, even before any upstream call happened.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from tokenpulse_api.infrastructure.logging.logger import get_json_logger
from tokenpulse_api.infrastructure.observability.metrics_market_data import ensure_registered

logger = get_json_logger(__name__)
router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics_probe() -> Response:
    """Expose Prometheus metrics in text format."""
    ensure_registered()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
