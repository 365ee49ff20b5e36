# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""API Router Aggregator (Adapters Layer).

Purpose:
    Compose and expose the top-level ``router`` that includes all feature routers.

Responsibilities:
    • Mount health endpoints under ``/health``.
    • Mount token quotes and history under ``/v1/tokens/...``.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter

from tokenpulse_api.adapters.routers.health_router import router as health_router
from tokenpulse_api.adapters.routers.tokens_router import router as tokens_router

router = APIRouter()

# Health endpoints (liveness/readiness) under /health.
router.include_router(health_router, prefix="/health", tags=["Health"])

# BaseRouter already carries the /v1/tokens prefix.
router.include_router(tokens_router)
