"""Failover orchestrator: the single entry-point for reply generation.

Composes RotationSelector and GenerationInvoker into a bounded failover
loop, and degrades to the local fallback responder when no provider can
answer.  ``generate_reply`` never raises: every path ends in a text reply.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from chat_backend.domain.enums import ErrorKind, ReplySource
from chat_backend.domain.exceptions import GenerationError
from chat_backend.domain.services.fallback import respond
from chat_backend.shared.observability.metrics import FALLBACK_REPLIES
from chat_backend.shared.providers.invoker import GenerationInvoker
from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.rotation import RotationSelector
from chat_backend.shared.providers.types import AttemptRecord, Reply

logger = structlog.get_logger(__name__)


class FailoverOrchestrator:
    """Drives at most one attempt per configured provider, then falls back.

    Usage::

        registry = ProviderRegistry.load(configs, backend_factory=factory)
        orchestrator = FailoverOrchestrator(registry, GenerationInvoker(registry))

        reply = await orchestrator.generate_reply("hello")
        reply.text, reply.source   # ("...", ReplySource.API)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        invoker: GenerationInvoker,
        *,
        selector: RotationSelector | None = None,
        responder: Callable[[str], str] = respond,
    ) -> None:
        self._registry = registry
        self._invoker = invoker
        self._selector = selector or RotationSelector()
        self._respond = responder

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    async def generate_reply(self, text: str) -> Reply:
        try:
            return await self._generate(text)
        except Exception as exc:
            logger.exception("generate_reply_unexpected_error", error=str(exc))
            return self._fallback(text, ErrorKind.UNKNOWN, [])

    async def _generate(self, text: str) -> Reply:
        if self._registry.is_empty:
            return self._fallback(text, ErrorKind.NO_PROVIDERS_CONFIGURED, [])
        if not text or not text.strip():
            return self._fallback(text, ErrorKind.INVALID_INPUT, [])

        attempts: list[AttemptRecord] = []
        tried: set[str] = set()
        max_attempts = self._registry.count()

        for attempt in range(max_attempts):
            provider = self._selector.next(self._registry)
            # Rotation wrapped back to a provider this request already used
            if provider is None or provider.provider_id in tried:
                break
            tried.add(provider.provider_id)

            logger.debug(
                "generation_attempt",
                provider=provider.provider_id,
                attempt=attempt + 1,
                max_attempts=max_attempts,
            )
            try:
                reply = await self._invoker.invoke(provider, text)
            except GenerationError as exc:
                attempts.append(
                    AttemptRecord(
                        provider_id=provider.provider_id,
                        error_kind=exc.kind.value,
                        message=exc.message,
                    )
                )
                continue

            if attempts:
                logger.info(
                    "provider_failover_success",
                    provider=provider.provider_id,
                    attempts=len(attempts) + 1,
                    failed_providers=[a.provider_id for a in attempts],
                )
            return Reply(text=reply, source=ReplySource.API)

        return self._fallback(text, ErrorKind.ALL_PROVIDERS_EXHAUSTED, attempts)

    def _fallback(
        self, text: str, reason: ErrorKind, attempts: list[AttemptRecord]
    ) -> Reply:
        FALLBACK_REPLIES.labels(reason=reason.value).inc()
        logger.warning(
            "generation_fallback",
            reason=reason.value,
            attempts=[f"{a.provider_id}: {a.error_kind}" for a in attempts],
        )
        return Reply(text=self._respond(text or ""), source=ReplySource.FALLBACK)
