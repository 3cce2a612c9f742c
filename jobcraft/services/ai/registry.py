"""Provider registry.

The registry is an ordered, keyed collection of constructed adapters.
Insertion order is configuration order and drives every order-dependent
behavior in the aggregator (the ``fastest`` strategy and the order of
``providers_used``). It is built once per service instance and passed to
the aggregator explicitly.
"""

from typing import Dict, Iterator, List, Mapping, Optional, Type

import structlog

from jobcraft.models.config import AIConfig, Capability
from jobcraft.services.ai.cache import ResponseCache
from jobcraft.services.ai.providers import PROVIDER_CLASSES, ProviderAdapter

logger = structlog.get_logger()


class ProviderRegistry:
    """Ordered map of provider key -> adapter."""

    def __init__(self, adapters: Optional[List[ProviderAdapter]] = None):
        self._adapters: Dict[str, ProviderAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: ProviderAdapter) -> None:
        """Add an adapter.

        Raises:
            ValueError: If an adapter with the same key is already registered
        """
        if adapter.name in self._adapters:
            raise ValueError(f"Provider {adapter.name} already registered")
        self._adapters[adapter.name] = adapter

    def get(self, key: str) -> Optional[ProviderAdapter]:
        return self._adapters.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._adapters

    def __iter__(self) -> Iterator[ProviderAdapter]:
        return iter(self._adapters.values())

    def __len__(self) -> int:
        return len(self._adapters)

    def keys(self) -> List[str]:
        return list(self._adapters)

    def available(self) -> List[ProviderAdapter]:
        """Adapters currently reporting availability, in registry order."""
        return [a for a in self._adapters.values() if a.is_available()]

    def with_capability(
        self,
        capability: Capability,
        allow: Optional[List[str]] = None,
    ) -> List[ProviderAdapter]:
        """Available adapters supporting ``capability``.

        Args:
            capability: Required capability
            allow: Optional allow-list of keys; its order is preserved

        Returns:
            Matching adapters
        """
        if allow is None:
            candidates = list(self._adapters.values())
        else:
            candidates = [self._adapters[k] for k in allow if k in self._adapters]
        return [a for a in candidates if a.is_available() and a.supports(capability)]


def build_registry(
    config: AIConfig,
    cache: Optional[ResponseCache] = None,
    provider_classes: Optional[Mapping[str, Type[ProviderAdapter]]] = None,
) -> ProviderRegistry:
    """Construct one adapter per enabled and credentialed provider.

    An adapter whose construction raises is logged and omitted, so the
    registry may hold zero, one or many adapters.

    Args:
        config: AI configuration
        cache: Shared response cache
        provider_classes: Key -> adapter class table (defaults to all vendors)

    Returns:
        Populated registry
    """
    classes = provider_classes if provider_classes is not None else PROVIDER_CLASSES
    registry = ProviderRegistry()

    for key, provider_config in config.providers.items():
        if not provider_config.enabled:
            logger.debug("provider_disabled", provider=key)
            continue
        if not provider_config.has_credentials:
            logger.debug("provider_missing_credentials", provider=key)
            continue

        adapter_class = classes.get(key)
        if adapter_class is None:
            logger.warning("provider_unknown", provider=key)
            continue

        try:
            adapter = adapter_class(
                provider_config,
                cache=cache,
                max_retries=config.aggregation.max_retries,
            )
        except Exception as e:
            logger.warning("provider_init_failed", provider=key, error=str(e))
            continue

        registry.register(adapter)

    logger.info("provider_registry_built", providers=registry.keys())
    return registry
