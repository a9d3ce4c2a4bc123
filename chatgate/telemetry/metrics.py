# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Prometheus metrics for chatgate.

Counters and histograms for inbound requests and upstream calls, registered
on the default prometheus_client registry.
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

GATEWAY_REQUESTS_TOTAL = Counter(
    "chatgate_requests_total",
    "Total inbound HTTP requests",
    ["route", "method", "status"],
)

UPSTREAM_REQUESTS_TOTAL = Counter(
    "chatgate_upstream_requests_total",
    "Total upstream chat-completion calls",
    ["model", "outcome"],
)

UPSTREAM_LATENCY_MS = Histogram(
    "chatgate_upstream_latency_ms",
    "Upstream chat-completion latency in milliseconds",
    ["model"],
    buckets=(50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 60000, 120000),
)


def render_latest() -> tuple[bytes, str]:
    """Return the exposition body and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
