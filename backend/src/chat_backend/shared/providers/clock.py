"""Quota clock: decides which calendar day a quota counter belongs to."""

from __future__ import annotations

from datetime import datetime


class QuotaClock:
    """Local-timezone calendar day keys (ISO dates, e.g. ``2024-05-01``).

    ISO date keys sort chronologically as strings, which the registry relies
    on to keep ``last_reset_day`` from moving backwards.
    """

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def day_key(self, now: datetime | None = None) -> str:
        moment = now if now is not None else self.now()
        if moment.tzinfo is not None:
            moment = moment.astimezone()
        return moment.date().isoformat()
