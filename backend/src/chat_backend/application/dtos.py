"""Data Transfer Objects: Pydantic models for API boundaries.

Outbound models serialise with camelCase keys, which is what the chat
frontend reads.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chat_backend.application.services import ChatReply
from chat_backend.shared.providers.types import ProviderSnapshot, RegistryStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ═══════════════════════════════════════════════════════════════
#  Chat
# ═══════════════════════════════════════════════════════════════
class ChatRequest(BaseModel):
    text: str | None = None


class ChatReplyResponse(_CamelModel):
    text: str
    sender: str = "ai"
    timestamp: datetime
    source: str

    @classmethod
    def from_reply(cls, reply: ChatReply) -> ChatReplyResponse:
        return cls(
            text=reply.text,
            sender=reply.sender,
            timestamp=reply.timestamp,
            source=reply.source.value,
        )


class AIProbeRequest(BaseModel):
    message: str | None = None


# ═══════════════════════════════════════════════════════════════
#  Provider status
# ═══════════════════════════════════════════════════════════════
class ProviderStatusResponse(_CamelModel):
    id: str
    kind: str
    active: bool
    used: int
    limit: int
    quota: str
    masked_credential: str

    @classmethod
    def from_snapshot(cls, snap: ProviderSnapshot) -> ProviderStatusResponse:
        return cls(
            id=snap.id,
            kind=snap.kind,
            active=snap.active,
            used=snap.used,
            limit=snap.limit,
            quota=snap.quota,
            masked_credential=snap.masked_credential,
        )


class ApiStatusResponse(_CamelModel):
    total_providers: int
    active_providers: int
    total_quota: int
    used_quota: int
    providers: list[ProviderStatusResponse]
    healthy: bool
    timestamp: datetime

    @classmethod
    def from_status(cls, status: RegistryStatus, timestamp: datetime) -> ApiStatusResponse:
        return cls(
            total_providers=status.total_providers,
            active_providers=status.active_providers,
            total_quota=status.total_quota,
            used_quota=status.used_quota,
            providers=[ProviderStatusResponse.from_snapshot(p) for p in status.providers],
            healthy=status.healthy,
            timestamp=timestamp,
        )


class HealthResponse(ApiStatusResponse):
    status: str
    version: str
    environment: str
    uptime_seconds: float


class AIProbeResponse(_CamelModel):
    success: bool
    response: str
    source: str
    error: str | None = None
    status: ApiStatusResponse


class ReactivateResponse(_CamelModel):
    status: str = "reactivated"
    provider: ProviderStatusResponse
