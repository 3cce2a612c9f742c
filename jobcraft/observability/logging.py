"""Structured logging with correlation ID propagation.

Every entry carries the ``correlation_id`` of the request being served,
so the per-provider lines of one fan-out can be grouped:

    {"event": "provider_call_failed", "provider": "cohere",
     "kind": "vendor", "correlation_id": "abc-123", ...}

Usage:
    from jobcraft.observability.logging import configure_logging, get_logger

    configure_logging(level="INFO")
    logger = get_logger("api")
"""

import logging
import sys
from typing import Any, List, Optional

import structlog
from structlog.typing import EventDict, WrappedLogger

from jobcraft.observability.context import get_correlation_id


def add_correlation_id_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor adding ``correlation_id`` ("none" when unset)."""
    event_dict["correlation_id"] = get_correlation_id() or "none"
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: JSON lines when True, colored console output otherwise
        add_timestamp: Add an ISO timestamp to each entry

    Logs go to stderr so CLI output on stdout stays machine-readable.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        add_correlation_id_processor,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: Optional[str] = None, **initial_context: Any) -> Any:
    """Logger bound to a component name and any extra context.

    The logger stays lazy, so it may be created at import time before
    configure_logging runs.
    """
    if component:
        initial_context["component"] = component
    return structlog.get_logger(**initial_context)
