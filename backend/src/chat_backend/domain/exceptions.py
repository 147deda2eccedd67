"""Domain-specific exception hierarchy.

All exceptions inherit from ``DomainError`` so callers can catch the entire
family in one clause while still discriminating on subclass.
"""

from __future__ import annotations

from chat_backend.domain.enums import ErrorKind


class DomainError(Exception):
    """Base class for all domain-layer errors."""

    def __init__(self, message: str, *, code: str = "DOMAIN_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# ── Validation ───────────────────────────────────────────────
class ValidationError(DomainError):
    """Input failed domain validation rules."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


# ── Providers ────────────────────────────────────────────────
class ProviderNotFoundError(DomainError):
    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider {provider_id!r} not found", code="PROVIDER_NOT_FOUND")


class GenerationError(DomainError):
    """A single provider attempt failed.

    ``kind`` is the classified failure; the registry side effect for that
    kind has already been applied when this is raised.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        provider_id: str | None = None,
    ) -> None:
        self.kind = kind
        self.provider_id = provider_id
        prefix = f"[{provider_id}] " if provider_id else ""
        super().__init__(f"{prefix}{message}", code=kind.value.upper())


class InvalidInputError(GenerationError):
    def __init__(self, message: str = "Empty input text") -> None:
        super().__init__(ErrorKind.INVALID_INPUT, message)


class EmptyResponseError(GenerationError):
    def __init__(self, provider_id: str, message: str = "Empty response from backend") -> None:
        super().__init__(ErrorKind.EMPTY_RESPONSE, message, provider_id=provider_id)


# ── Auth ─────────────────────────────────────────────────────
class AuthorisationError(DomainError):
    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message, code="AUTHORISATION_ERROR")
