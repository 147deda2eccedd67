"""Status reporter: read-only aggregation over the provider registry."""

from __future__ import annotations

from datetime import datetime

from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.types import RegistryStatus


class StatusReporter:
    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    def status(self, now: datetime | None = None) -> RegistryStatus:
        """Snapshot of quota usage, after applying any pending day rollover."""
        with self._registry.lock:
            self._registry.reset_expired(now)
            providers = self._registry.snapshot()

        return RegistryStatus(
            total_providers=len(providers),
            active_providers=sum(1 for p in providers if p.active),
            total_quota=sum(p.limit for p in providers),
            used_quota=sum(p.used for p in providers),
            providers=providers,
        )
