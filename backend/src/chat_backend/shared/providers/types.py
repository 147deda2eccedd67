"""Core types for the multi-provider generation router."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

from chat_backend.domain.enums import ProviderKind, ReplySource

DEFAULT_DAILY_LIMIT = 50
MASKED_PREFIX_LENGTH = 10


def mask_credential(credential: str) -> str:
    """Expose only a short prefix of a credential for diagnostics."""
    return credential[:MASKED_PREFIX_LENGTH] + "..."


class ProviderBackend(Protocol):
    """One backend integration bound to a single credential.

    ``generate`` performs exactly one outbound call and returns the raw reply
    text, or ``None`` when the backend answered without any text.
    """

    kind: ProviderKind

    async def generate(self, prompt: str) -> str | None: ...


@dataclass(frozen=True)
class ProviderConfig:
    """Static configuration for a single provider credential.

    Attributes:
        kind:        Which backend integration to use.
        credential:  Authentication material (API key).
        daily_limit: Max successful generations per calendar day.
        provider_id: Optional explicit id; assigned by the registry if empty.
        metadata:    Arbitrary extra config (model name, etc.).
    """

    kind: ProviderKind
    credential: str = field(repr=False)
    daily_limit: int = DEFAULT_DAILY_LIMIT
    provider_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def masked_credential(self) -> str:
        return mask_credential(self.credential)


@dataclass
class Provider:
    """A configured credential plus its daily quota bookkeeping.

    The mutable fields are owned by ``ProviderRegistry``; nothing else
    writes them.
    """

    provider_id: str
    kind: ProviderKind
    credential: str = field(repr=False)
    daily_limit: int
    backend: ProviderBackend = field(repr=False)
    last_reset_day: str
    used_count: int = 0
    active: bool = True

    @property
    def is_eligible(self) -> bool:
        return self.active and self.used_count < self.daily_limit

    @property
    def masked_credential(self) -> str:
        return mask_credential(self.credential)


@dataclass(frozen=True)
class Reply:
    """Result of ``generate_reply``: always text, tagged with its source."""

    text: str
    source: ReplySource


@dataclass(frozen=True)
class AttemptRecord:
    provider_id: str
    error_kind: str
    message: str


@dataclass(frozen=True)
class ProviderSnapshot:
    """Read-only view of one provider's quota state."""

    id: str
    kind: str
    active: bool
    used: int
    limit: int
    masked_credential: str

    @property
    def quota(self) -> str:
        return f"{self.used}/{self.limit}"


@dataclass(frozen=True)
class RegistryStatus:
    """Read-only aggregate over every configured provider."""

    total_providers: int
    active_providers: int
    total_quota: int
    used_quota: int
    providers: list[ProviderSnapshot]

    @property
    def healthy(self) -> bool:
        return self.active_providers > 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class BackendError(Exception):
    """Raised by a backend integration when its outbound call fails.

    ``status_code`` carries the HTTP status when the backend returned one, so
    failure classification can use it before looking at the message text.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)
