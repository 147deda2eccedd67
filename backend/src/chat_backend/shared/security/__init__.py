"""Operator credential checks."""

from __future__ import annotations

import hmac


def validate_api_key(provided: str | None, expected: str) -> bool:
    """Constant-time comparison for API keys; a missing or empty key never matches."""
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())
