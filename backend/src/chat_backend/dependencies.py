"""Dependency injection: builds the provider stack once and hands it out.

The registry, orchestrator and status reporter are constructed by
``build_provider_stack`` during app creation and stored on ``app.state``.
FastAPI's ``Depends()`` factories below read them back per request.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from chat_backend.adapters.outbound.llm import build_provider_configs, make_backend_factory
from chat_backend.config import Settings
from chat_backend.domain.exceptions import AuthorisationError
from chat_backend.shared.providers.clock import QuotaClock
from chat_backend.shared.providers.gateway import FailoverOrchestrator
from chat_backend.shared.providers.invoker import GenerationInvoker
from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.status import StatusReporter
from chat_backend.shared.security import validate_api_key


@dataclass
class ProviderStack:
    registry: ProviderRegistry
    orchestrator: FailoverOrchestrator
    status_reporter: StatusReporter
    http_client: httpx.AsyncClient | None = None

    async def close(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()


def build_registry(
    settings: Settings,
    client: httpx.AsyncClient,
    *,
    clock: QuotaClock | None = None,
) -> ProviderRegistry:
    """Create the provider registry from settings."""
    configs = build_provider_configs(
        gemini_api_key=settings.gemini_api_key,
        gemini_api_key_2=settings.gemini_api_key_2,
        gemini_api_key_3=settings.gemini_api_key_3,
        gemini_api_keys=settings.gemini_api_keys,
        daily_limit=settings.provider_daily_limit,
        gemini_model=settings.gemini_model,
    )
    factory = make_backend_factory(
        client,
        base_url=settings.gemini_base_url,
        temperature=settings.generation_temperature,
        top_k=settings.generation_top_k,
        top_p=settings.generation_top_p,
        max_output_tokens=settings.generation_max_output_tokens,
    )
    return ProviderRegistry.load(configs, backend_factory=factory, clock=clock)


def build_provider_stack(
    settings: Settings,
    *,
    registry: ProviderRegistry | None = None,
) -> ProviderStack:
    """Wire registry → invoker → orchestrator.

    Passing ``registry`` skips credential loading (used by tests and by
    callers that build providers themselves).
    """
    client: httpx.AsyncClient | None = None
    if registry is None:
        client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
        registry = build_registry(settings, client)

    invoker = GenerationInvoker(
        registry,
        prompt_template=settings.prompt_template,
        timeout_s=settings.provider_timeout_seconds,
    )
    return ProviderStack(
        registry=registry,
        orchestrator=FailoverOrchestrator(registry, invoker),
        status_reporter=StatusReporter(registry),
        http_client=client,
    )


# ── Request-scoped accessors ─────────────────────────────────
def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def get_provider_stack(request: Request) -> ProviderStack:
    return request.app.state.providers  # type: ignore[no-any-return]


def get_orchestrator(request: Request) -> FailoverOrchestrator:
    return get_provider_stack(request).orchestrator


def get_status_reporter(request: Request) -> StatusReporter:
    return get_provider_stack(request).status_reporter


def get_registry(request: Request) -> ProviderRegistry:
    return get_provider_stack(request).registry


async def require_admin(request: Request) -> None:
    """Guard operator endpoints with the configured admin key."""
    settings = get_settings_from_app(request)
    supplied = request.headers.get(settings.api_key_header)
    if not settings.admin_api_key:
        raise AuthorisationError("Operator endpoints are disabled (no admin key configured)")
    if not validate_api_key(supplied, settings.admin_api_key):
        raise AuthorisationError("Invalid or missing admin key")
