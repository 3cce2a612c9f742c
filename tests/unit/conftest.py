"""Shared fixtures: in-memory provider adapters and an aggregator builder."""

import asyncio
from typing import AsyncIterator, List, Optional

import pytest

from jobcraft.models.config import AggregationConfig, ProviderConfig, ProviderModels
from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.aggregator import AIAggregator
from jobcraft.services.ai.exceptions import VendorError
from jobcraft.services.ai.providers.base import (
    EmbeddingCapable,
    ProviderAdapter,
    StreamingCapable,
    VisionCapable,
)
from jobcraft.services.ai.registry import ProviderRegistry
from jobcraft.services.ai.results import AnalysisResult, EmbeddingResult, TextResult


def fake_config(timeout: float = 30.0) -> ProviderConfig:
    return ProviderConfig(
        enabled=True,
        api_key="test-key",
        base_url="https://example.test",
        models=ProviderModels(text="fake-model", embedding="fake-embed", vision="fake-vision"),
        timeout=timeout,
    )


class FakeProvider(ProviderAdapter):
    """Text-only adapter answering from memory.

    ``error`` makes every call fail with a vendor error; ``delay`` sleeps
    before answering so tests can control completion order.
    """

    def __init__(
        self,
        key: str,
        text: str = "",
        error: Optional[str] = None,
        delay: float = 0.0,
        available: bool = True,
        timeout: float = 30.0,
        embedding: Optional[List[float]] = None,
        analysis: str = "",
        chunks: Optional[List[str]] = None,
    ):
        self.key = key
        self.display_name = key.capitalize()
        super().__init__(fake_config(timeout), max_retries=1)
        self.text = text
        self.error = error
        self.delay = delay
        self.available = available
        self.embedding = embedding or []
        self.analysis = analysis
        self.chunks = chunks or []
        self.calls: List[str] = []
        self.images: List[str] = []
        self.cancelled = False

    def is_available(self) -> bool:
        return self.available

    async def _answer(self, operation: str) -> None:
        self.calls.append(operation)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error:
            raise VendorError(self.error, provider=self.key)

    async def _generate_text(
        self, prompt: str, options: GenerationOptions
    ) -> TextResult:
        await self._answer("text")
        return TextResult(provider=self.key, model="fake-model", text=self.text)


class FakeEmbeddingProvider(FakeProvider, EmbeddingCapable):
    async def _generate_embedding(self, text: str) -> EmbeddingResult:
        await self._answer("embedding")
        return EmbeddingResult(
            provider=self.key, model="fake-embed", embedding=list(self.embedding)
        )


class FakeVisionProvider(FakeProvider, VisionCapable):
    async def _analyze_image(self, image_base64: str, prompt: str) -> AnalysisResult:
        await self._answer("vision")
        self.images.append(image_base64)
        return AnalysisResult(provider=self.key, model="fake-vision", analysis=self.analysis)


class FakeStreamingProvider(FakeProvider, StreamingCapable):
    async def _stream_text(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[str]:
        await self._answer("stream")
        for chunk in self.chunks:
            yield chunk


FAKE_CLASSES = {
    "text": FakeProvider,
    "embedding": FakeEmbeddingProvider,
    "vision": FakeVisionProvider,
    "streaming": FakeStreamingProvider,
}


@pytest.fixture
def make_provider():
    """Factory: make_provider("groq", text="...", kind="vision")."""

    def _make(key: str, kind: str = "text", **kwargs) -> FakeProvider:
        return FAKE_CLASSES[kind](key, **kwargs)

    return _make


@pytest.fixture
def make_aggregator():
    """Factory wrapping adapters (in registry order) in an aggregator."""

    def _make(
        *adapters: ProviderAdapter,
        default_provider: str = "groq",
        **aggregation,
    ) -> AIAggregator:
        return AIAggregator(
            ProviderRegistry(list(adapters)),
            aggregation=AggregationConfig(**aggregation),
            default_provider=default_provider,
        )

    return _make
