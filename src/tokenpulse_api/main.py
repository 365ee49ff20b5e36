# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""
Application Entry (Adapters Bootstrap)

Synopsis:
    FastAPI bootstrap that wires middleware, exception handlers and routers.
    Provides an application factory (``create_app``) and a module-level eager
    app (``app``) for ASGI servers and tests.

Design:
    • Bootstrap only (no business logic): routers + middleware + handlers.
    • Lifespan builds the HTTP client, resilience state and use cases, and
      tears them down safely.
    • Root JSON logging configured at import time.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from tokenpulse_api.adapters.routers import api_router, metrics_router
from tokenpulse_api.config.settings import Settings, get_settings
from tokenpulse_api.dependencies.core.bootstrap import bootstrap
from tokenpulse_api.infrastructure.http.errors import (
    ApiError,
    handle_api_error,
    handle_http_exception,
    handle_unhandled_exception,
    handle_validation_error,
)
from tokenpulse_api.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
)
from tokenpulse_api.infrastructure.middleware.request_id import RequestIdMiddleware

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
configure_root_logging()
logger = get_json_logger(__name__)


def _stable_operation_id(route: APIRoute) -> str:
    """Deterministic operationId, e.g. ``get__v1_tokens_symbol_history``."""
    methods = ",".join(sorted(route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "")
    return f"{methods.lower()}_{path.lower()}"


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------
@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize and teardown shared infrastructure via the core bootstrap.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to FastAPI to serve requests.
    """
    async with bootstrap(app):
        yield


# -----------------------------------------------------------------------------
# Middleware & CORS
# -----------------------------------------------------------------------------
def _attach_middlewares(app: FastAPI) -> None:
    """Attach core middleware.

    Order (outermost last): request id correlation wraps compression so
    every log line of a request carries the id.
    """
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(RequestIdMiddleware)


def _attach_cors(app: FastAPI, settings: Settings) -> None:
    """Attach read-only CORS middleware based on settings."""
    if not settings.cors_allow_origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )


def _patch_exception_handlers(app: FastAPI) -> None:
    """Install structured exception handlers."""

    async def _api_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, ApiError):
            raise exc
        return await handle_api_error(request, exc)

    async def _http_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, HTTPException):
            raise exc
        return await handle_http_exception(request, exc)

    async def _validation_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, RequestValidationError):
            raise exc
        return await handle_validation_error(request, exc)

    async def _unhandled_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        return await handle_unhandled_exception(request, exc)

    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(HTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Fully configured application instance.
    """
    settings: Settings = get_settings()

    app = FastAPI(
        title="TokenPulse API",
        version=settings.service_version,
        description="Resilient multi-source price aggregation for tokenized stocks.",
        lifespan=runtime_lifespan,
        generate_unique_id_function=_stable_operation_id,
    )

    _patch_exception_handlers(app)
    _attach_middlewares(app)
    _attach_cors(app, settings)

    app.include_router(api_router)
    app.include_router(metrics_router)

    logger.info(
        "service_startup",
        extra={
            "extra": {
                "service": settings.service_name,
                "env": settings.environment.value,
                "version": settings.service_version,
                "status": "starting",
            }
        },
    )
    return app


# Eager app for ASGI servers and tests.
app: FastAPI = create_app()


if __name__ == "__main__":  # pragma: no cover
    from tokenpulse_api.__main__ import main

    main()
