"""Prometheus metrics for the chat backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


# ── HTTP metrics ─────────────────────────────────────────────
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── Generation metrics ───────────────────────────────────────
GENERATION_ATTEMPTS = Counter(
    "generation_attempts_total",
    "Provider generation attempts",
    ["provider", "outcome"],  # outcome: success or an ErrorKind value
)

GENERATION_LATENCY = Histogram(
    "generation_latency_seconds",
    "Latency of a single provider call",
    ["provider"],
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0),
)

FALLBACK_REPLIES = Counter(
    "fallback_replies_total",
    "Replies served by the local fallback responder",
    ["reason"],
)

PROVIDER_QUOTA_USED = Gauge(
    "provider_quota_used",
    "Successful generations counted against today's quota",
    ["provider"],
)
