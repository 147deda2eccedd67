"""Domain enumerations for the chat backend."""

from __future__ import annotations

import enum


class ProviderKind(str, enum.Enum):
    """Backend integration used by a provider."""

    GEMINI = "gemini"


class ReplySource(str, enum.Enum):
    """Where a reply came from."""

    API = "api"
    FALLBACK = "fallback"
    ERROR = "error"
    EMERGENCY = "emergency"


class ErrorKind(str, enum.Enum):
    """Failure taxonomy for generation attempts.

    The first six describe a single provider attempt.  The last two describe
    why a whole request fell back to the local responder.
    """

    INVALID_INPUT = "invalid_input"
    EMPTY_RESPONSE = "empty_response"
    QUOTA_EXCEEDED = "quota_exceeded"
    OVERLOADED = "overloaded"
    CREDENTIAL_INVALID = "credential_invalid"
    UNKNOWN = "unknown"
    NO_PROVIDERS_CONFIGURED = "no_providers_configured"
    ALL_PROVIDERS_EXHAUSTED = "all_providers_exhausted"
