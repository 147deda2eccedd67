"""Rotation selector: round-robin with skip over eligible providers."""

from __future__ import annotations

from datetime import datetime

import structlog

from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.types import Provider

logger = structlog.get_logger(__name__)


class RotationSelector:
    """Picks the next eligible provider, starting at the registry cursor.

    The cursor is shared by every request and moves one past the chosen
    provider, so consecutive requests spread across providers instead of
    always hitting the first one.
    """

    def next(self, registry: ProviderRegistry, now: datetime | None = None) -> Provider | None:
        with registry.lock:
            registry.reset_expired(now)
            count = registry.count()
            if count == 0:
                return None

            start = registry.cursor
            for offset in range(count):
                idx = (start + offset) % count
                provider = registry.get(idx)
                if not provider.is_eligible:
                    continue
                registry.cursor = idx + 1
                logger.debug(
                    "provider_selected",
                    provider=provider.provider_id,
                    used=provider.used_count,
                    limit=provider.daily_limit,
                )
                return provider

        logger.warning("no_eligible_providers", total_configured=count)
        return None
