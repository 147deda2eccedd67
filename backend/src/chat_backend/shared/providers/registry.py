"""Provider registry: owns every provider and its daily quota state.

The registry is built once at startup and injected wherever it is needed.
All mutation of ``used_count``, ``active`` and ``last_reset_day`` goes
through this class under a single lock; callers never write those fields.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import datetime

import structlog

from chat_backend.domain.exceptions import ProviderNotFoundError
from chat_backend.shared.providers.clock import QuotaClock
from chat_backend.shared.providers.types import (
    Provider,
    ProviderBackend,
    ProviderConfig,
    ProviderSnapshot,
)

logger = structlog.get_logger(__name__)

BackendFactory = Callable[[ProviderConfig], ProviderBackend]


class ProviderRegistry:
    """Thread-safe provider pool with lazy calendar-day quota resets."""

    def __init__(
        self,
        providers: Iterable[Provider] = (),
        *,
        clock: QuotaClock | None = None,
    ) -> None:
        self._providers: list[Provider] = list(providers)
        self._index: dict[str, Provider] = {p.provider_id: p for p in self._providers}
        self._clock = clock or QuotaClock()
        # Re-entrant: selection holds it while calling reset_expired().
        self.lock = threading.RLock()
        self._cursor = 0

    # ── Construction ─────────────────────────────────────────
    @classmethod
    def load(
        cls,
        configs: Iterable[ProviderConfig],
        *,
        backend_factory: BackendFactory,
        clock: QuotaClock | None = None,
    ) -> ProviderRegistry:
        """Build providers from configs, skipping any that cannot be constructed."""
        clock = clock or QuotaClock()
        today = clock.day_key()
        providers: list[Provider] = []
        seen: set[str] = set()
        per_kind: dict[str, int] = {}

        for cfg in configs:
            kind_index = per_kind.get(cfg.kind.value, 0)
            per_kind[cfg.kind.value] = kind_index + 1
            provider_id = cfg.provider_id or f"{cfg.kind.value}-{kind_index}"
            log = logger.bind(provider=provider_id, key=cfg.masked_credential)

            if provider_id in seen:
                log.error("provider_duplicate_id_skipped")
                continue
            if cfg.daily_limit <= 0:
                log.error("provider_invalid_daily_limit", daily_limit=cfg.daily_limit)
                continue

            try:
                backend = backend_factory(cfg)
            except Exception as exc:
                log.error("provider_init_failed", error=f"{type(exc).__name__}: {exc}")
                continue

            providers.append(
                Provider(
                    provider_id=provider_id,
                    kind=cfg.kind,
                    credential=cfg.credential,
                    daily_limit=cfg.daily_limit,
                    backend=backend,
                    last_reset_day=today,
                )
            )
            seen.add(provider_id)

        if providers:
            logger.info("providers_initialized", count=len(providers))
        else:
            logger.error("no_providers_initialized")
        return cls(providers, clock=clock)

    # ── Read access ──────────────────────────────────────────
    @property
    def is_empty(self) -> bool:
        return not self._providers

    @property
    def clock(self) -> QuotaClock:
        return self._clock

    @property
    def cursor(self) -> int:
        with self.lock:
            return self._cursor

    @cursor.setter
    def cursor(self, value: int) -> None:
        with self.lock:
            self._cursor = value % len(self._providers) if self._providers else 0

    def count(self) -> int:
        return len(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def get(self, index: int) -> Provider:
        return self._providers[index]

    def find(self, provider_id: str) -> Provider:
        provider = self._index.get(provider_id)
        if provider is None:
            raise ProviderNotFoundError(provider_id)
        return provider

    def snapshot(self) -> list[ProviderSnapshot]:
        with self.lock:
            return [self._snapshot(p) for p in self._providers]

    # ── Day rollover ─────────────────────────────────────────
    def reset_expired(self, now: datetime | None = None) -> list[str]:
        """Reset every provider whose quota day is not today.

        Returns the ids that were reset.  Safe to call repeatedly; a second
        call on the same day is a no-op.
        """
        today = self._clock.day_key(now)
        reset: list[str] = []
        with self.lock:
            for p in self._providers:
                if p.last_reset_day == today:
                    continue
                if today < p.last_reset_day:
                    logger.warning(
                        "quota_day_went_backwards",
                        provider=p.provider_id,
                        last_reset_day=p.last_reset_day,
                        today=today,
                    )
                    continue
                p.used_count = 0
                p.active = True
                p.last_reset_day = today
                reset.append(p.provider_id)
        for pid in reset:
            logger.info("provider_quota_reset", provider=pid, day=today)
        return reset

    # ── Outcome recording ────────────────────────────────────
    def record_success(self, provider_id: str) -> ProviderSnapshot:
        with self.lock:
            p = self.find(provider_id)
            p.used_count = min(p.used_count + 1, p.daily_limit)
            return self._snapshot(p)

    def mark_exhausted(self, provider_id: str) -> ProviderSnapshot:
        """Take a provider out of rotation until the next day, quota spent."""
        with self.lock:
            p = self.find(provider_id)
            p.active = False
            p.used_count = p.daily_limit
            snap = self._snapshot(p)
        logger.warning("provider_quota_exhausted", provider=provider_id)
        return snap

    def mark_broken(self, provider_id: str) -> ProviderSnapshot:
        """Take a provider out of rotation until the next day, quota untouched."""
        with self.lock:
            p = self.find(provider_id)
            p.active = False
            snap = self._snapshot(p)
        logger.warning("provider_marked_broken", provider=provider_id)
        return snap

    def reactivate(self, provider_id: str) -> ProviderSnapshot:
        """Operator override: put a provider back in rotation with a fresh quota."""
        with self.lock:
            p = self.find(provider_id)
            p.active = True
            p.used_count = 0
            snap = self._snapshot(p)
        logger.info("provider_reactivated", provider=provider_id)
        return snap

    @staticmethod
    def _snapshot(p: Provider) -> ProviderSnapshot:
        return ProviderSnapshot(
            id=p.provider_id,
            kind=p.kind.value,
            active=p.active,
            used=p.used_count,
            limit=p.daily_limit,
            masked_credential=p.masked_credential,
        )
