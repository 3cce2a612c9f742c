"""Provider adapters.

- ProviderAdapter: Abstract base class defining the adapter contract
- EmbeddingCapable / VisionCapable / StreamingCapable: Optional capabilities
- ClaudeProvider, GroqProvider, TogetherProvider, CohereProvider,
  GeminiProvider, HuggingFaceProvider: Concrete vendors
- PROVIDER_CLASSES: Registry key -> adapter class
"""

from typing import Dict, Type

from jobcraft.services.ai.providers.base import (
    EmbeddingCapable,
    ProviderAdapter,
    RateLimitInfo,
    StreamingCapable,
    VisionCapable,
)
from jobcraft.services.ai.providers.claude import ClaudeProvider
from jobcraft.services.ai.providers.cohere import CohereProvider
from jobcraft.services.ai.providers.gemini import GeminiProvider
from jobcraft.services.ai.providers.groq import GroqProvider
from jobcraft.services.ai.providers.huggingface import HuggingFaceProvider
from jobcraft.services.ai.providers.together import TogetherProvider

PROVIDER_CLASSES: Dict[str, Type[ProviderAdapter]] = {
    ClaudeProvider.key: ClaudeProvider,
    HuggingFaceProvider.key: HuggingFaceProvider,
    GroqProvider.key: GroqProvider,
    CohereProvider.key: CohereProvider,
    GeminiProvider.key: GeminiProvider,
    TogetherProvider.key: TogetherProvider,
}

__all__ = [
    "ProviderAdapter",
    "RateLimitInfo",
    "EmbeddingCapable",
    "VisionCapable",
    "StreamingCapable",
    "ClaudeProvider",
    "CohereProvider",
    "GeminiProvider",
    "GroqProvider",
    "HuggingFaceProvider",
    "TogetherProvider",
    "PROVIDER_CLASSES",
]
