"""Process-wide response cache for adapter results.

Backed by diskcache so entries survive restarts and are shared between
worker processes. Entries expire after the configured TTL. Reads and
writes are independent per key; two concurrent misses for the same key
both populate the entry with equivalent values.
"""

from pathlib import Path
from typing import Any, Dict, Optional, cast

import diskcache
import structlog

from jobcraft.models.config import CacheConfig
from jobcraft.observability.metrics import CACHE_OPERATIONS

logger = structlog.get_logger()


class ResponseCache:
    """TTL cache of serialized adapter results keyed by request hash."""

    def __init__(self, config: CacheConfig):
        """Initialize the cache.

        Args:
            config: Cache configuration
        """
        self.config = config
        self.enabled = config.enabled
        self._cache: Optional[diskcache.Cache] = None

        if not self.enabled:
            logger.info("response_cache_disabled")
            return

        cache_dir = Path(config.cache_dir)
        cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(str(cache_dir))

        logger.info(
            "response_cache_initialized",
            cache_dir=str(cache_dir),
            ttl_seconds=config.ttl_seconds,
        )

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the cached entry for ``key`` or None.

        Cache backend errors are logged and treated as a miss.
        """
        if not self.enabled or self._cache is None:
            return None

        try:
            entry = cast(Optional[Dict[str, Any]], self._cache.get(key))
        except Exception as e:
            CACHE_OPERATIONS.labels(result="error").inc()
            logger.error("response_cache_error", error=str(e))
            return None

        if entry is None:
            CACHE_OPERATIONS.labels(result="miss").inc()
            logger.debug("response_cache_miss", cache_key=key[:24])
            return None

        CACHE_OPERATIONS.labels(result="hit").inc()
        logger.debug("response_cache_hit", cache_key=key[:24])
        return entry

    def set(self, key: str, value: Dict[str, Any]) -> None:
        """Store ``value`` under ``key`` for the configured TTL."""
        if not self.enabled or self._cache is None:
            return

        try:
            self._cache.set(key, value, expire=self.config.ttl_seconds)
        except Exception as e:
            logger.error("response_cache_set_error", error=str(e))

    def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        if self._cache is None:
            return 0
        return int(self._cache.clear())

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
