"""Tests for FailoverOrchestrator and StatusReporter."""

from __future__ import annotations

import asyncio

import pytest

from chat_backend.domain.enums import ReplySource
from chat_backend.domain.services.fallback import respond
from chat_backend.shared.providers.gateway import FailoverOrchestrator
from chat_backend.shared.providers.invoker import GenerationInvoker
from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.status import StatusReporter
from chat_backend.shared.providers.types import BackendError


def _orchestrator(registry: ProviderRegistry) -> FailoverOrchestrator:
    return FailoverOrchestrator(registry, GenerationInvoker(registry))


# ═══════════════════════════════════════════════════════════════
#  FailoverOrchestrator
# ═══════════════════════════════════════════════════════════════
class TestFailoverOrchestrator:
    @pytest.mark.asyncio
    async def test_no_providers_always_fallback(self, clock) -> None:
        registry = ProviderRegistry.load([], backend_factory=lambda cfg: None, clock=clock)
        orchestrator = _orchestrator(registry)
        for text in ("hello", "What is Python?", "x" * 80):
            reply = await orchestrator.generate_reply(text)
            assert reply.source == ReplySource.FALLBACK
            assert reply.text == respond(text)

    @pytest.mark.asyncio
    async def test_success_is_tagged_api(self, make_registry) -> None:
        registry, _ = make_registry(1)
        reply = await _orchestrator(registry).generate_reply("hello")
        assert reply.source == ReplySource.API
        assert reply.text == "reply from gemini-0"

    @pytest.mark.asyncio
    async def test_round_robin_fairness(self, make_registry) -> None:
        registry, backends = make_registry(4)
        orchestrator = _orchestrator(registry)
        texts = [(await orchestrator.generate_reply(f"msg {i}")).text for i in range(4)]
        assert sorted(texts) == sorted(f"reply from gemini-{i}" for i in range(4))
        assert [b.calls for b in backends] == [1, 1, 1, 1]
        assert [registry.get(i).used_count for i in range(4)] == [1, 1, 1, 1]

    @pytest.mark.asyncio
    async def test_quota_monotonicity(self, make_registry) -> None:
        registry, backends = make_registry(1, daily_limit=3)
        orchestrator = _orchestrator(registry)
        for k in range(1, 4):
            reply = await orchestrator.generate_reply("hello")
            assert reply.source == ReplySource.API
            assert registry.get(0).used_count == k

        reply = await orchestrator.generate_reply("hello")
        assert reply.source == ReplySource.FALLBACK
        assert backends[0].calls == 3

    @pytest.mark.asyncio
    async def test_quota_error_exhausts_and_falls_back(self, make_registry, scripted) -> None:
        registry, backends = make_registry(
            1,
            daily_limit=5,
            backends=[scripted("a", [BackendError("[429] quota exceeded", status_code=429)])],
        )
        orchestrator = _orchestrator(registry)

        first = await orchestrator.generate_reply("hello")
        assert first.source == ReplySource.FALLBACK
        p = registry.get(0)
        assert p.active is False
        assert p.used_count == 5

        second = await orchestrator.generate_reply("hello")
        assert second.source == ReplySource.FALLBACK
        assert backends[0].calls == 1

    @pytest.mark.asyncio
    async def test_two_providers_daily_limit_one(self, make_registry) -> None:
        registry, backends = make_registry(2, daily_limit=1)
        orchestrator = _orchestrator(registry)

        first = await orchestrator.generate_reply("hello")
        second = await orchestrator.generate_reply("hello")
        third = await orchestrator.generate_reply("hello")

        assert (first.source, first.text) == (ReplySource.API, "reply from gemini-0")
        assert (second.source, second.text) == (ReplySource.API, "reply from gemini-1")
        assert third.source == ReplySource.FALLBACK
        assert third.text == respond("hello")
        assert [b.calls for b in backends] == [1, 1]

    @pytest.mark.asyncio
    async def test_bounded_attempts(self, make_registry, scripted) -> None:
        n = 3
        backends = [scripted(f"b{i}", default=RuntimeError("boom")) for i in range(n)]
        registry, _ = make_registry(n, backends=backends)
        reply = await _orchestrator(registry).generate_reply("hello")
        assert reply.source == ReplySource.FALLBACK
        assert [b.calls for b in backends] == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_no_provider_called_twice_per_request(self, make_registry, scripted) -> None:
        backends = [scripted(f"b{i}", default=RuntimeError("boom")) for i in range(3)]
        registry, _ = make_registry(3, backends=backends)
        registry.mark_exhausted("gemini-1")

        reply = await _orchestrator(registry).generate_reply("hello")

        assert reply.source == ReplySource.FALLBACK
        assert reply.text == respond("hello")
        assert [b.calls for b in backends] == [1, 0, 1]

    @pytest.mark.asyncio
    async def test_fails_over_to_next_provider(self, make_registry, scripted) -> None:
        backends = [
            scripted("a", [RuntimeError("model is overloaded")]),
            scripted("b"),
        ]
        registry, _ = make_registry(2, backends=backends)
        reply = await _orchestrator(registry).generate_reply("hello")
        assert reply.source == ReplySource.API
        assert reply.text == "reply from b"
        # Overloaded provider stays eligible for later requests
        assert registry.get(0).is_eligible

    @pytest.mark.asyncio
    async def test_broken_credential_skipped_on_next_call(self, make_registry, scripted) -> None:
        backends = [
            scripted("a", [BackendError("[400] API key not valid", status_code=400)]),
            scripted("b"),
        ]
        registry, _ = make_registry(2, backends=backends)
        orchestrator = _orchestrator(registry)
        await orchestrator.generate_reply("hello")
        await orchestrator.generate_reply("hello")
        await orchestrator.generate_reply("hello")
        assert backends[0].calls == 1
        assert backends[1].calls == 3

    @pytest.mark.asyncio
    async def test_empty_response_fails_over(self, make_registry, scripted) -> None:
        backends = [scripted("a", ["   "]), scripted("b")]
        registry, _ = make_registry(2, backends=backends)
        reply = await _orchestrator(registry).generate_reply("hello")
        assert reply.text == "reply from b"
        assert registry.get(0).used_count == 0

    @pytest.mark.asyncio
    async def test_blank_input_skips_providers(self, make_registry) -> None:
        registry, backends = make_registry(2)
        reply = await _orchestrator(registry).generate_reply("   ")
        assert reply.source == ReplySource.FALLBACK
        assert [b.calls for b in backends] == [0, 0]

    @pytest.mark.asyncio
    async def test_day_rollover_restores_service(self, make_registry, clock) -> None:
        registry, _ = make_registry(1, daily_limit=1)
        orchestrator = _orchestrator(registry)
        assert (await orchestrator.generate_reply("hello")).source == ReplySource.API
        assert (await orchestrator.generate_reply("hello")).source == ReplySource.FALLBACK

        clock.today = "2024-05-02"
        assert (await orchestrator.generate_reply("hello")).source == ReplySource.API

    @pytest.mark.asyncio
    async def test_never_raises_on_unexpected_error(self, make_registry) -> None:
        registry, _ = make_registry(1)

        class ExplodingInvoker(GenerationInvoker):
            async def invoke(self, provider, text):  # type: ignore[override]
                raise KeyError("unexpected")

        orchestrator = FailoverOrchestrator(registry, ExplodingInvoker(registry))
        reply = await orchestrator.generate_reply("hello")
        assert reply.source == ReplySource.FALLBACK

    @pytest.mark.asyncio
    async def test_concurrent_requests_keep_counts(self, make_registry) -> None:
        registry, _ = make_registry(3, daily_limit=100)
        orchestrator = _orchestrator(registry)
        replies = await asyncio.gather(
            *(orchestrator.generate_reply(f"msg {i}") for i in range(30))
        )
        assert all(r.source == ReplySource.API for r in replies)
        assert sum(registry.get(i).used_count for i in range(3)) == 30
        assert [registry.get(i).used_count for i in range(3)] == [10, 10, 10]


# ═══════════════════════════════════════════════════════════════
#  StatusReporter
# ═══════════════════════════════════════════════════════════════
class TestStatusReporter:
    def test_aggregates_quota(self, make_registry) -> None:
        registry, _ = make_registry(3, daily_limit=10)
        registry.record_success("gemini-0")
        registry.record_success("gemini-0")
        registry.mark_exhausted("gemini-1")

        status = StatusReporter(registry).status()
        assert status.total_providers == 3
        assert status.active_providers == 2
        assert status.total_quota == 30
        assert status.used_quota == 12
        assert status.healthy is True

        first = status.providers[0]
        assert first.id == "gemini-0"
        assert first.kind == "gemini"
        assert first.quota == "2/10"
        assert first.masked_credential == "test-key-0..."

    def test_empty_registry_is_unhealthy(self, clock) -> None:
        registry = ProviderRegistry.load([], backend_factory=lambda cfg: None, clock=clock)
        status = StatusReporter(registry).status()
        assert status.total_providers == 0
        assert status.healthy is False

    def test_applies_day_rollover(self, make_registry, clock) -> None:
        registry, _ = make_registry(2)
        registry.mark_exhausted("gemini-0")
        registry.mark_broken("gemini-1")
        assert StatusReporter(registry).status().active_providers == 0

        clock.today = "2024-05-02"
        status = StatusReporter(registry).status()
        assert status.active_providers == 2
        assert status.used_quota == 0

    def test_as_dict_is_serialisable(self, make_registry) -> None:
        registry, _ = make_registry(1)
        data = StatusReporter(registry).status().as_dict()
        assert data["total_providers"] == 1
        assert data["providers"][0]["masked_credential"] == "test-key-0..."
        assert "secret" not in str(data)
