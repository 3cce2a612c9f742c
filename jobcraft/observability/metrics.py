"""Prometheus metrics for the AI provider layer.

Usage:
    from jobcraft.observability.metrics import (
        PROVIDER_REQUESTS_TOTAL,
        PROVIDER_REQUEST_DURATION,
    )

    PROVIDER_REQUESTS_TOTAL.labels(
        provider="groq", operation="text", status="success"
    ).inc()

Metrics are exposed via the /metrics endpoint of the API server.
"""

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# Private registry so tests can create several apps without collisions
REGISTRY = CollectorRegistry(auto_describe=True)

PROVIDER_REQUESTS_TOTAL = Counter(
    name="jobcraft_provider_requests_total",
    documentation="Total adapter calls by outcome",
    labelnames=["provider", "operation", "status"],  # status: success, failure
    registry=REGISTRY,
)

AGGREGATIONS_TOTAL = Counter(
    name="jobcraft_aggregations_total",
    documentation="Aggregator requests by strategy and outcome",
    labelnames=["strategy", "status"],
    registry=REGISTRY,
)

CACHE_OPERATIONS = Counter(
    name="jobcraft_cache_operations_total",
    documentation="Response cache lookups",
    labelnames=["result"],  # hit, miss, error
    registry=REGISTRY,
)

PROVIDER_REQUEST_DURATION = Histogram(
    name="jobcraft_provider_request_duration_seconds",
    documentation="Wall-clock duration of adapter calls",
    labelnames=["provider", "operation"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content-Type header value for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
