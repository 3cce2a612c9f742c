"""AI Aggregator - multi-provider dispatch.

The aggregator owns a ProviderRegistry and answers one logical request by
querying one or more adapters under a dispatch strategy:

- single: delegate to one named provider
- fastest: first success in registry order
- weighted: positional vote-by-weight sentence merge
- consensus: keep sentences most providers agree on

Fan-out strategies issue their adapter calls concurrently and re-associate
results with providers in registry order, so merges are deterministic.
Every public operation returns a success record or a Failure and never
raises for provider failure.
"""

import asyncio
import json
import re
import time
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

import structlog

from jobcraft.models.config import AggregationConfig, AIConfig, Capability, Strategy
from jobcraft.models.generation import GenerationOptions
from jobcraft.observability.metrics import AGGREGATIONS_TOTAL
from jobcraft.services.ai.cache import ResponseCache
from jobcraft.services.ai.merge import (
    average_embeddings,
    combine_analyses,
    consensus_merge,
    consensus_score,
    weighted_merge,
)
from jobcraft.services.ai.providers.base import (
    ChunkCallback,
    ProviderAdapter,
    emit_chunk,
)
from jobcraft.services.ai.registry import ProviderRegistry, build_registry
from jobcraft.services.ai.results import (
    AggregatedAnalysis,
    AggregatedEmbedding,
    AnalysisResult,
    EmbeddingResult,
    Failure,
    FailureKind,
    GenerationResult,
    TextResult,
)

logger = structlog.get_logger()

EMBEDDING_PROVIDERS = ["huggingface", "cohere", "gemini"]
VISION_PROVIDERS = ["claude", "groq", "gemini"]

DATA_URI_PREFIX = re.compile(r"^data:image/[^;]+;base64,")

GenerationOutcome = Union[GenerationResult, Failure]

T = TypeVar("T", TextResult, EmbeddingResult, AnalysisResult)


class AIAggregator:
    """Dispatches generation requests across registered providers."""

    def __init__(
        self,
        registry: ProviderRegistry,
        aggregation: Optional[AggregationConfig] = None,
        default_provider: str = "groq",
    ):
        """Initialize aggregator.

        Args:
            registry: Adapters to dispatch to, in configuration order
            aggregation: Strategy, weights and consensus threshold
            default_provider: Provider used by ``single`` when none is named
        """
        self.registry = registry
        self.aggregation = aggregation or AggregationConfig()
        self.default_provider = default_provider

        self._strategies: Dict[
            Strategy, Callable[[str, GenerationOptions], Awaitable[GenerationOutcome]]
        ] = {
            Strategy.SINGLE: self._generate_single,
            Strategy.FASTEST: self._generate_fastest,
            Strategy.WEIGHTED: self._generate_weighted,
            Strategy.CONSENSUS: self._generate_consensus,
        }

    @classmethod
    def from_config(
        cls, config: AIConfig, cache: Optional[ResponseCache] = None
    ) -> "AIAggregator":
        """Build the registry from configuration and wrap it."""
        if cache is None and config.cache.enabled:
            cache = ResponseCache(config.cache)
        registry = build_registry(config, cache=cache)
        return cls(
            registry,
            aggregation=config.aggregation,
            default_provider=config.default_provider,
        )

    # ==================== Text generation ====================

    async def generate_text(
        self,
        prompt: str,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationOutcome:
        """Generate text under the requested (or default) strategy.

        Args:
            prompt: User prompt
            options: Generation options; ``strategy`` selects dispatch

        Returns:
            GenerationResult, or Failure when no provider produced text
        """
        options = options or GenerationOptions()
        strategy = options.strategy or self.aggregation.strategy
        handler = self._strategies.get(strategy, self._generate_single)

        logger.info(
            "aggregation_started",
            strategy=strategy.value,
            provider=options.provider,
            registered=len(self.registry),
        )

        start_time = time.time()
        result = await handler(prompt, options)
        elapsed_ms = (time.time() - start_time) * 1000

        if result.error:
            AGGREGATIONS_TOTAL.labels(strategy=strategy.value, status="failure").inc()
            logger.warning(
                "aggregation_failed", strategy=strategy.value, message=result.message
            )
            return result

        result.response_time_ms = round(elapsed_ms, 1)
        AGGREGATIONS_TOTAL.labels(strategy=strategy.value, status="success").inc()
        logger.info(
            "aggregation_completed",
            strategy=strategy.value,
            provider=result.provider,
            providers_used=result.providers_used,
            response_time_ms=result.response_time_ms,
        )
        return result

    async def _generate_single(
        self, prompt: str, options: GenerationOptions
    ) -> GenerationOutcome:
        key = options.provider or self.default_provider
        adapter = self.registry.get(key)

        if adapter is None or not adapter.is_available():
            return Failure(
                message=f"Provider {key} not available",
                provider=key,
                kind=FailureKind.NO_PROVIDERS,
            )

        outcome = await self._call(adapter, adapter.generate_text(prompt, options))
        if outcome.error:
            return outcome

        return GenerationResult(
            strategy=Strategy.SINGLE.value,
            text=outcome.text,
            provider=adapter.name,
            model=outcome.model,
            usage=outcome.usage or None,
        )

    async def _generate_fastest(
        self, prompt: str, options: GenerationOptions
    ) -> GenerationOutcome:
        adapters = self.registry.available()
        if not adapters:
            return _no_providers()

        # All calls start together; the winner is still the first success
        # in registry order, so a quick later provider never beats an
        # earlier one that also succeeds.
        tasks = [
            asyncio.ensure_future(self._call(a, a.generate_text(prompt, options)))
            for a in adapters
        ]
        try:
            for adapter, task in zip(adapters, tasks):
                outcome = await task
                if outcome.error:
                    logger.debug("fastest_candidate_failed", provider=adapter.name)
                    continue
                return GenerationResult(
                    strategy=Strategy.FASTEST.value,
                    text=outcome.text,
                    provider=adapter.name,
                    model=outcome.model,
                    usage=outcome.usage or None,
                )
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        return Failure(message="All providers failed", kind=FailureKind.NO_PROVIDERS)

    async def _generate_weighted(
        self, prompt: str, options: GenerationOptions
    ) -> GenerationOutcome:
        successes = await self._fan_out_text(prompt, options)
        if not successes:
            return _no_providers()

        weights = [self.aggregation.weight_for(a.name) for a, _ in successes]
        total_weight = sum(weights)

        individual = []
        for (adapter, outcome), weight in zip(successes, weights):
            individual.append(
                {
                    "provider": adapter.name,
                    "text": outcome.text,
                    "weight": weight,
                    "normalized_weight": weight / total_weight if total_weight else 0.0,
                }
            )

        text = weighted_merge(
            [(outcome.text, weight) for (_, outcome), weight in zip(successes, weights)]
        )

        return GenerationResult(
            strategy=Strategy.WEIGHTED.value,
            text=text,
            providers_used=[a.name for a, _ in successes],
            individual_responses=individual,
        )

    async def _generate_consensus(
        self, prompt: str, options: GenerationOptions
    ) -> GenerationOutcome:
        successes = await self._fan_out_text(prompt, options)
        if not successes:
            return _no_providers()

        texts = [outcome.text for _, outcome in successes]
        return GenerationResult(
            strategy=Strategy.CONSENSUS.value,
            text=consensus_merge(texts, self.aggregation.consensus_threshold),
            providers_used=[a.name for a, _ in successes],
            consensus_score=consensus_score(texts),
            individual_responses=[
                {"provider": a.name, "text": outcome.text} for a, outcome in successes
            ],
        )

    async def _fan_out_text(
        self, prompt: str, options: GenerationOptions
    ) -> List[Tuple[ProviderAdapter, TextResult]]:
        adapters = self.registry.available()
        outcomes = await asyncio.gather(
            *(self._call(a, a.generate_text(prompt, options)) for a in adapters)
        )
        return _successes(adapters, outcomes)

    # ==================== Embeddings & vision ====================

    async def generate_embedding(
        self, text: str
    ) -> Union[AggregatedEmbedding, Failure]:
        """Element-wise mean embedding across embedding-capable providers."""
        adapters = self.registry.with_capability(
            Capability.EMBEDDING, allow=EMBEDDING_PROVIDERS
        )
        outcomes = await asyncio.gather(
            *(self._call(a, a.generate_embedding(text)) for a in adapters)
        )
        successes = _successes(adapters, outcomes)
        if not successes:
            return Failure(
                message="No embedding providers available",
                kind=FailureKind.NO_PROVIDERS,
            )

        embedding, providers_used = average_embeddings(
            [(a.name, outcome.embedding) for a, outcome in successes]
        )
        logger.info(
            "embedding_aggregated",
            providers_used=providers_used,
            dimensions=len(embedding),
        )
        return AggregatedEmbedding(embedding=embedding, providers_used=providers_used)

    async def analyze_image(
        self, image: str, prompt: str
    ) -> Union[AggregatedAnalysis, Failure]:
        """Analyze an image with every vision-capable provider.

        Args:
            image: Base64 image data, optionally ``data:image/...;base64,``
                prefixed
            prompt: Analysis instruction

        Returns:
            Per-provider analyses plus one labeled combined text
        """
        image_base64 = DATA_URI_PREFIX.sub("", image.strip())

        adapters = self.registry.with_capability(
            Capability.VISION, allow=VISION_PROVIDERS
        )
        outcomes = await asyncio.gather(
            *(self._call(a, a.analyze_image(image_base64, prompt)) for a in adapters)
        )
        successes = _successes(adapters, outcomes)
        if not successes:
            return Failure(
                message="No vision providers available",
                kind=FailureKind.NO_PROVIDERS,
            )

        analyses = [
            {"provider": a.name, "analysis": outcome.analysis} for a, outcome in successes
        ]
        return AggregatedAnalysis(
            analyses=analyses, combined_analysis=combine_analyses(analyses)
        )

    # ==================== Streaming ====================

    async def stream_text(
        self,
        prompt: str,
        on_chunk: ChunkCallback,
        options: Optional[GenerationOptions] = None,
    ) -> None:
        """Stream from the named (or default) provider.

        When that provider is missing or unavailable ``on_chunk`` receives a
        single serialized error payload.
        """
        options = options or GenerationOptions()
        key = options.provider or self.default_provider
        adapter = self.registry.get(key)

        if adapter is None or not adapter.is_available():
            logger.warning("stream_provider_unavailable", provider=key)
            await emit_chunk(
                on_chunk, json.dumps({"error": f"Provider {key} not available"})
            )
            return

        await adapter.stream_text(prompt, on_chunk, options)

    # ==================== Metadata ====================

    def get_available_providers(self) -> Dict[str, Dict[str, Any]]:
        """Name, model catalogue and rate limit of each available provider."""
        return {
            adapter.name: {
                "name": adapter.get_name(),
                "models": adapter.get_model_info(),
                "rate_limit": adapter.get_rate_limit_info(),
                "capabilities": sorted(c.value for c in adapter.capabilities),
            }
            for adapter in self.registry.available()
        }

    # ==================== Helpers ====================

    async def _call(
        self, adapter: ProviderAdapter, call: Awaitable[Union[T, Failure]]
    ) -> Union[T, Failure]:
        """Await one adapter call within its time budget.

        The budget covers every retry attempt the adapter may make and the
        backoff between them. Unexpected adapter exceptions also become a
        Failure.
        """
        budget = adapter.call_budget
        try:
            return await asyncio.wait_for(call, timeout=budget)
        except asyncio.TimeoutError:
            logger.warning("provider_call_timeout", provider=adapter.name, budget=budget)
            return Failure(
                message=f"{adapter.get_name()} timed out after {budget}s",
                provider=adapter.name,
                kind=FailureKind.TRANSPORT,
            )
        except Exception as e:
            logger.exception("provider_call_crashed", provider=adapter.name)
            return Failure(
                message=f"{adapter.get_name()} failed unexpectedly: {e}",
                provider=adapter.name,
                kind=FailureKind.MALFORMED_RESPONSE,
            )


def _successes(
    adapters: Sequence[ProviderAdapter], outcomes: Sequence[Any]
) -> List[Tuple[ProviderAdapter, Any]]:
    return [
        (adapter, outcome)
        for adapter, outcome in zip(adapters, outcomes)
        if not outcome.error
    ]


def _no_providers() -> Failure:
    return Failure(message="No providers available", kind=FailureKind.NO_PROVIDERS)
