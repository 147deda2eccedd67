"""Generation invoker: one provider, one backend call, one classified outcome.

The invoker owns the post-call bookkeeping: a success is counted against the
provider's quota, and a classified failure applies its registry side effect
*before* the error is raised, so the orchestrator never re-classifies.
"""

from __future__ import annotations

import asyncio
import time

import httpx
import structlog

from chat_backend.domain.enums import ErrorKind
from chat_backend.domain.exceptions import (
    EmptyResponseError,
    GenerationError,
    InvalidInputError,
)
from chat_backend.shared.observability.metrics import (
    GENERATION_ATTEMPTS,
    GENERATION_LATENCY,
    PROVIDER_QUOTA_USED,
)
from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.types import Provider

logger = structlog.get_logger(__name__)

DEFAULT_PROMPT_TEMPLATE = (
    "You are a helpful AI assistant. Please provide a clear, informative, and "
    "well-structured response to the following message. Use proper formatting "
    "with bullet points and sections where appropriate:\n\n{text}"
)


def classify_error(exc: BaseException) -> ErrorKind:
    """Map a backend failure onto the error taxonomy.

    HTTP status codes are checked first; the substring rules on the message
    are an approximation kept for backends that only report human-readable
    text.  Replace them here once a backend exposes structured error codes.
    """
    if isinstance(exc, GenerationError):
        return exc.kind
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorKind.OVERLOADED

    status = getattr(exc, "status_code", None)
    if status is None and isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
    message = str(exc).lower()

    if status == 429 or "quota" in message or "limit" in message:
        return ErrorKind.QUOTA_EXCEEDED
    if status == 503 or "overloaded" in message:
        return ErrorKind.OVERLOADED
    if status in (401, 403) or "api key" in message:
        return ErrorKind.CREDENTIAL_INVALID
    return ErrorKind.UNKNOWN


class GenerationInvoker:
    """Wraps a single provider call with validation and quota bookkeeping."""

    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
        timeout_s: float | None = 60.0,
    ) -> None:
        self._registry = registry
        self._template = prompt_template
        self._timeout = timeout_s

    def build_prompt(self, text: str) -> str:
        return self._template.format(text=text)

    async def invoke(self, provider: Provider, text: str) -> str:
        """Generate a reply with ``provider``.

        Raises:
            InvalidInputError: ``text`` is blank; no call is made.
            GenerationError: the call failed; ``kind`` holds the classification.
        """
        if not text or not text.strip():
            raise InvalidInputError()

        pid = provider.provider_id
        log = logger.bind(provider=pid)
        prompt = self.build_prompt(text)

        start = time.monotonic()
        try:
            call = provider.backend.generate(prompt)
            if self._timeout is not None:
                raw = await asyncio.wait_for(call, timeout=self._timeout)
            else:
                raw = await call
        except Exception as exc:
            latency = time.monotonic() - start
            kind = classify_error(exc)
            self._apply_failure(provider, kind)
            error_msg = f"{type(exc).__name__}: {exc}"
            GENERATION_ATTEMPTS.labels(provider=pid, outcome=kind.value).inc()
            GENERATION_LATENCY.labels(provider=pid).observe(latency)
            log.warning(
                "provider_request_failed",
                error_kind=kind.value,
                error=error_msg,
                latency_ms=float(f"{latency * 1000:.1f}"),
            )
            raise GenerationError(kind, error_msg, provider_id=pid) from exc

        latency = time.monotonic() - start
        GENERATION_LATENCY.labels(provider=pid).observe(latency)

        reply = (raw or "").strip()
        if not reply:
            GENERATION_ATTEMPTS.labels(provider=pid, outcome=ErrorKind.EMPTY_RESPONSE.value).inc()
            log.warning("provider_empty_response")
            raise EmptyResponseError(pid)

        snap = self._registry.record_success(pid)
        PROVIDER_QUOTA_USED.labels(provider=pid).set(snap.used)
        GENERATION_ATTEMPTS.labels(provider=pid, outcome="success").inc()
        log.info(
            "provider_request_success",
            used=snap.used,
            limit=snap.limit,
            latency_ms=float(f"{latency * 1000:.1f}"),
        )
        return reply

    def _apply_failure(self, provider: Provider, kind: ErrorKind) -> None:
        if kind == ErrorKind.QUOTA_EXCEEDED:
            snap = self._registry.mark_exhausted(provider.provider_id)
            PROVIDER_QUOTA_USED.labels(provider=provider.provider_id).set(snap.used)
        elif kind == ErrorKind.CREDENTIAL_INVALID:
            self._registry.mark_broken(provider.provider_id)
