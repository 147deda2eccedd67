"""Shared test fixtures."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterable
from datetime import datetime

import pytest

# Add src to path so imports work
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from chat_backend.domain.enums import ProviderKind
from chat_backend.shared.providers.clock import QuotaClock
from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.types import ProviderConfig


class FakeClock(QuotaClock):
    """Quota clock pinned to a settable day."""

    def __init__(self, today: str = "2024-05-01") -> None:
        self.today = today

    def day_key(self, now: datetime | None = None) -> str:
        if now is not None:
            return now.date().isoformat()
        return self.today


class ScriptedBackend:
    """Backend that replays scripted outcomes, then repeats ``default``.

    An outcome that is an exception instance is raised; anything else is
    returned as the raw reply.
    """

    kind = ProviderKind.GEMINI

    def __init__(self, name: str, outcomes: Iterable[object] = (), default: object = None) -> None:
        self.name = name
        self._outcomes = list(outcomes)
        self._default = f"reply from {name}" if default is None else default
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        outcome = self._outcomes.pop(0) if self._outcomes else self._default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome  # type: ignore[return-value]


RegistryFactory = Callable[..., tuple[ProviderRegistry, list[ScriptedBackend]]]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_registry(clock: FakeClock) -> RegistryFactory:
    """Build a registry of ``n`` scripted providers (ids ``gemini-0`` …)."""

    def _make(
        n: int,
        *,
        daily_limit: int = 50,
        backends: list[ScriptedBackend] | None = None,
    ) -> tuple[ProviderRegistry, list[ScriptedBackend]]:
        backends = backends or [ScriptedBackend(f"gemini-{i}") for i in range(n)]
        by_key = {f"test-key-{i:04d}-secret": b for i, b in enumerate(backends)}
        configs = [
            ProviderConfig(kind=ProviderKind.GEMINI, credential=key, daily_limit=daily_limit)
            for key in by_key
        ]
        registry = ProviderRegistry.load(
            configs,
            backend_factory=lambda cfg: by_key[cfg.credential],
            clock=clock,
        )
        return registry, backends

    return _make


@pytest.fixture
def scripted() -> type[ScriptedBackend]:
    """The ScriptedBackend class, for tests that script outcomes per provider."""
    return ScriptedBackend
