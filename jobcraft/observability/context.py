"""Correlation IDs for request tracing.

One ID is bound per HTTP request or CLI invocation. It lives in a
ContextVar, so every adapter call the aggregator fans out with
``asyncio.gather`` logs under the ID of the request that triggered it.

Usage:
    from jobcraft.observability.context import correlation_id_context

    with correlation_id_context(request.headers.get("X-Correlation-ID")):
        await aggregator.generate_text(prompt, options)
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def new_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    """Current correlation ID, or None outside any request."""
    return _correlation_id.get()


@contextmanager
def correlation_id_context(corr_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block.

    Args:
        corr_id: Incoming ID (e.g. a request header); a UUID is generated
            when missing or blank.

    Yields:
        The bound correlation ID. The previous value is restored on exit.
    """
    bound = corr_id.strip() if corr_id and corr_id.strip() else new_correlation_id()
    token = _correlation_id.set(bound)
    try:
        yield bound
    finally:
        _correlation_id.reset(token)
