"""Observability: correlation IDs, structured logging, Prometheus metrics.

Usage:
    from jobcraft.observability import correlation_id_context, get_logger

    logger = get_logger("api")
    with correlation_id_context():
        logger.info("request_started")
"""

from jobcraft.observability.context import (
    correlation_id_context,
    get_correlation_id,
    new_correlation_id,
)
from jobcraft.observability.logging import (
    add_correlation_id_processor,
    configure_logging,
    get_logger,
)
from jobcraft.observability.metrics import (
    AGGREGATIONS_TOTAL,
    CACHE_OPERATIONS,
    PROVIDER_REQUEST_DURATION,
    PROVIDER_REQUESTS_TOTAL,
    get_metrics_content_type,
    get_metrics_text,
)

__all__ = [
    "correlation_id_context",
    "get_correlation_id",
    "new_correlation_id",
    "add_correlation_id_processor",
    "configure_logging",
    "get_logger",
    "AGGREGATIONS_TOTAL",
    "CACHE_OPERATIONS",
    "PROVIDER_REQUEST_DURATION",
    "PROVIDER_REQUESTS_TOTAL",
    "get_metrics_content_type",
    "get_metrics_text",
]
