"""Health, status, chat and provider-operator REST routers."""

from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from chat_backend import __version__
from chat_backend.application.dtos import (
    AIProbeRequest,
    AIProbeResponse,
    ApiStatusResponse,
    ChatReplyResponse,
    ChatRequest,
    HealthResponse,
    ProviderStatusResponse,
    ReactivateResponse,
)
from chat_backend.application.services import ChatService
from chat_backend.dependencies import (
    get_orchestrator,
    get_registry,
    get_settings_from_app,
    get_status_reporter,
    require_admin,
)
from chat_backend.domain.enums import ReplySource
from chat_backend.domain.services.fallback import respond
from chat_backend.shared.providers.gateway import FailoverOrchestrator
from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.status import StatusReporter


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════
#  Health
# ═══════════════════════════════════════════════════════════════
health_router = APIRouter(tags=["Health"])


@health_router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    reporter: StatusReporter = Depends(get_status_reporter),
) -> HealthResponse:
    settings = get_settings_from_app(request)
    snapshot = ApiStatusResponse.from_status(reporter.status(), _now())
    return HealthResponse(
        **snapshot.model_dump(),
        status="healthy" if snapshot.healthy else "degraded",
        version=__version__,
        environment=settings.app_env.value,
        uptime_seconds=round(time.monotonic() - request.app.state.started_at, 3),
    )


@health_router.get("/api-status", response_model=ApiStatusResponse)
async def api_status(
    reporter: StatusReporter = Depends(get_status_reporter),
) -> ApiStatusResponse:
    return ApiStatusResponse.from_status(reporter.status(), _now())


@health_router.get("/metrics")
async def prometheus_metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# ═══════════════════════════════════════════════════════════════
#  Chat
# ═══════════════════════════════════════════════════════════════
chat_router = APIRouter(tags=["Chat"])


@chat_router.post("/chat", response_model=ChatReplyResponse)
async def chat(
    body: ChatRequest,
    orchestrator: FailoverOrchestrator = Depends(get_orchestrator),
) -> ChatReplyResponse:
    """Reply to one user message; always answers, never errors."""
    reply = await ChatService(orchestrator).reply_to(body.text)
    return ChatReplyResponse.from_reply(reply)


@chat_router.post("/test-ai", response_model=AIProbeResponse)
async def test_ai(
    body: AIProbeRequest,
    orchestrator: FailoverOrchestrator = Depends(get_orchestrator),
    reporter: StatusReporter = Depends(get_status_reporter),
) -> AIProbeResponse:
    """Debug probe: run one generation and report which path answered."""
    message = body.message or ""
    if not message.strip():
        return AIProbeResponse(
            success=False,
            response=respond("test"),
            source=ReplySource.FALLBACK.value,
            error="Message is required",
            status=ApiStatusResponse.from_status(reporter.status(), _now()),
        )

    reply = await orchestrator.generate_reply(message)
    succeeded = reply.source == ReplySource.API
    return AIProbeResponse(
        success=succeeded,
        response=reply.text,
        source=reply.source.value,
        error=None if succeeded else "All providers unavailable",
        status=ApiStatusResponse.from_status(reporter.status(), _now()),
    )


# ═══════════════════════════════════════════════════════════════
#  Provider operations
# ═══════════════════════════════════════════════════════════════
providers_router = APIRouter(prefix="/providers", tags=["Providers"])


@providers_router.get("/status", response_model=ApiStatusResponse)
async def provider_status(
    reporter: StatusReporter = Depends(get_status_reporter),
) -> ApiStatusResponse:
    return ApiStatusResponse.from_status(reporter.status(), _now())


@providers_router.post(
    "/{provider_id}/reactivate",
    response_model=ReactivateResponse,
    dependencies=[Depends(require_admin)],
)
async def reactivate_provider(
    provider_id: str,
    registry: ProviderRegistry = Depends(get_registry),
) -> ReactivateResponse:
    """Operator: put a provider back into rotation with a fresh daily quota."""
    snap = registry.reactivate(provider_id)
    return ReactivateResponse(provider=ProviderStatusResponse.from_snapshot(snap))
