"""FastAPI application entry-point.

Assembles routers, middleware, exception handlers, and lifecycle hooks.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from chat_backend import __version__
from chat_backend.adapters.inbound.rest.routers import (
    chat_router,
    health_router,
    providers_router,
)
from chat_backend.adapters.inbound.ws import ws_router
from chat_backend.config import Settings, get_settings
from chat_backend.dependencies import ProviderStack, build_provider_stack
from chat_backend.shared.errors import register_exception_handlers
from chat_backend.shared.middleware import (
    LoggingMiddleware,
    MetricsMiddleware,
    RequestIdMiddleware,
)
from chat_backend.shared.observability import configure_logging
from chat_backend.shared.providers.registry import ProviderRegistry

logger = structlog.get_logger(__name__)


def _log_startup_status(app: FastAPI) -> None:
    stack: ProviderStack = app.state.providers
    status = stack.status_reporter.status()
    logger.info(
        "provider_status",
        total_providers=status.total_providers,
        active_providers=status.active_providers,
        used_quota=status.used_quota,
        total_quota=status.total_quota,
    )
    if status.total_providers == 0:
        logger.error(
            "no_providers_configured",
            hint="add GEMINI_API_KEY to your .env file",
        )
    elif status.active_providers == 0:
        logger.error("no_active_providers", hint="check your API keys and quotas")
    else:
        logger.info("ready", daily_requests=status.total_quota)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifecycle: startup & shutdown hooks."""
    settings: Settings = app.state.settings
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.is_production,
    )
    logger.info("application_starting", env=settings.app_env.value, port=settings.app_port)
    _log_startup_status(app)

    yield

    stack: ProviderStack = app.state.providers
    await stack.close()
    logger.info("application_shutdown")


def create_app(
    settings: Settings | None = None,
    *,
    registry: ProviderRegistry | None = None,
) -> FastAPI:
    """Application factory: creates a fully configured FastAPI instance.

    ``registry`` replaces the settings-derived provider pool, mainly so tests
    can plug in scripted backends.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="AI Chat Backend",
        description=(
            "Chat backend that answers user messages through a pool of "
            "quota-limited generation providers, with round-robin rotation, "
            "failover, and a deterministic fallback responder."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.providers = build_provider_stack(settings, registry=registry)

    # ── Middleware (order matters: first added = outermost) ───
    allow_all_origins = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_all_origins else settings.cors_origins,
        allow_origin_regex=".*" if allow_all_origins else None,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ── Exception handlers ───────────────────────────────────
    register_exception_handlers(app)

    # ── REST routers (versioned) ─────────────────────────────
    api_v1 = "/api/v1"
    app.include_router(health_router, prefix=api_v1)
    app.include_router(chat_router, prefix=api_v1)
    app.include_router(providers_router, prefix=api_v1)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "message": "AI Chat Backend is running",
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    # ── WebSocket routers ────────────────────────────────────
    app.include_router(ws_router)

    return app
