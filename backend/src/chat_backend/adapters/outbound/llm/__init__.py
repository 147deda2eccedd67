"""LLM backend integrations: one variant per ``ProviderKind``.

Each backend performs a single HTTP call and nothing else.  Rotation,
quota, failover and error classification live in ``shared.providers``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import structlog

from chat_backend.domain.enums import ProviderKind
from chat_backend.shared.providers.types import (
    DEFAULT_DAILY_LIMIT,
    BackendError,
    ProviderBackend,
    ProviderConfig,
)

logger = structlog.get_logger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def build_provider_configs(
    *,
    gemini_api_key: str = "",
    gemini_api_key_2: str = "",
    gemini_api_key_3: str = "",
    gemini_api_keys: str = "",
    daily_limit: int = DEFAULT_DAILY_LIMIT,
    gemini_model: str = "gemini-1.5-flash",
) -> list[ProviderConfig]:
    """Build the ordered ProviderConfig list from settings values."""

    def _parse_keys(multi: str, *singles: str) -> tuple[str, ...]:
        """Merge single keys with a comma-separated pool, keeping order."""
        keys: list[str] = []
        candidates = [*singles, *multi.split(",")] if multi else list(singles)
        for key in candidates:
            key = key.strip()
            if key and key not in keys:
                keys.append(key)
        return tuple(keys)

    keys = _parse_keys(gemini_api_keys, gemini_api_key, gemini_api_key_2, gemini_api_key_3)
    if not keys:
        logger.error("no_gemini_api_keys", hint="set GEMINI_API_KEY in the environment or .env")

    return [
        ProviderConfig(
            kind=ProviderKind.GEMINI,
            credential=key,
            daily_limit=daily_limit,
            metadata={"model": gemini_model},
        )
        for key in keys
    ]


class GeminiBackend:
    """Gemini ``generateContent`` over a shared ``httpx.AsyncClient``."""

    kind = ProviderKind.GEMINI

    def __init__(
        self,
        api_key: str,
        *,
        client: httpx.AsyncClient,
        model: str = "gemini-1.5-flash",
        base_url: str = GEMINI_BASE_URL,
        temperature: float = 0.7,
        top_k: int = 40,
        top_p: float = 0.95,
        max_output_tokens: int = 2048,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("Gemini API key is empty")
        self._api_key = api_key.strip()
        self._client = client
        self._model = model
        self._url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self._generation_config = {
            "temperature": temperature,
            "topK": top_k,
            "topP": top_p,
            "maxOutputTokens": max_output_tokens,
        }

    async def generate(self, prompt: str) -> str | None:
        # Key travels in a header, never in the URL.
        response = await self._client.post(
            self._url,
            headers={
                "x-goog-api-key": self._api_key,
                "Content-Type": "application/json",
            },
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": self._generation_config,
            },
        )
        if response.is_error:
            raise BackendError(
                self._error_message(response),
                status_code=response.status_code,
            )
        return self._extract_text(response.json())

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str | None:
        candidates = data.get("candidates") or []
        if not candidates:
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        return text or None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = response.reason_phrase or "request failed"
        return f"[{response.status_code}] {message}"


_BACKENDS: dict[ProviderKind, Callable[..., ProviderBackend]] = {
    ProviderKind.GEMINI: GeminiBackend,
}


def make_backend_factory(
    client: httpx.AsyncClient,
    **options: Any,
) -> Callable[[ProviderConfig], ProviderBackend]:
    """Return a factory that builds the right backend for each config.

    ``options`` are passed to every backend constructor; per-provider
    ``metadata`` overrides them.
    """

    def _factory(cfg: ProviderConfig) -> ProviderBackend:
        backend_cls = _BACKENDS.get(cfg.kind)
        if backend_cls is None:
            raise ValueError(f"Unknown provider kind: {cfg.kind}")
        return backend_cls(cfg.credential, client=client, **{**options, **cfg.metadata})

    return _factory
