"""Hugging Face inference API provider.

Text generation and feature-extraction embeddings. The inference API does
not report token usage, so usage is estimated at four characters per token.
Streaming forwards raw body chunks without decoding vendor framing.
"""

from typing import Any, AsyncIterator, Dict, List

from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.exceptions import MalformedResponseError
from jobcraft.services.ai.providers.base import (
    EmbeddingCapable,
    ProviderAdapter,
    StreamingCapable,
)
from jobcraft.services.ai.results import EmbeddingResult, TextResult


class HuggingFaceProvider(ProviderAdapter, EmbeddingCapable, StreamingCapable):
    """Hugging Face adapter."""

    key = "huggingface"
    display_name = "HuggingFace"

    DEFAULT_MAX_TOKENS = 500
    DEFAULT_RATE_LIMIT = {"limit": 1000, "remaining": 1000, "reset": None}
    RATE_LIMIT_HEADERS = {
        "limit": "x-ratelimit-limit",
        "remaining": "x-ratelimit-remaining",
        "reset": "x-ratelimit-reset",
    }

    TEXT_MODELS = [
        "meta-llama/Llama-3.2-3B-Instruct",
        "mistralai/Mistral-7B-Instruct-v0.3",
        "google/flan-t5-xxl",
    ]
    EMBEDDING_MODELS = [
        "sentence-transformers/all-MiniLM-L6-v2",
        "sentence-transformers/all-mpnet-base-v2",
    ]

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key or ''}",
            "Content-Type": "application/json",
        }

    def _model_url(self, model: str) -> str:
        return f"{self.config.base_url}/models/{model}"

    def _parameters(self, options: GenerationOptions) -> Dict[str, Any]:
        return {
            "max_new_tokens": self._max_tokens(options),
            "temperature": self._temperature(options),
            "top_p": self._top_p(options),
            "do_sample": True,
        }

    async def _generate_text(
        self, prompt: str, options: GenerationOptions
    ) -> TextResult:
        model = self._text_model(options)
        data = await self._post_json(
            self._model_url(model),
            {"inputs": prompt, "parameters": self._parameters(options)},
        )

        text = _generated_text(data)
        return TextResult(
            provider=self.key,
            model=model,
            text=text,
            usage={
                "prompt_tokens": len(prompt) // 4,
                "completion_tokens": len(text) // 4,
            },
        )

    async def _generate_embedding(self, text: str) -> EmbeddingResult:
        model = self.config.models.embedding or self.EMBEDDING_MODELS[0]
        data = await self._post_json(self._model_url(model), {"inputs": text})

        return EmbeddingResult(
            provider=self.key,
            model=model,
            embedding=_flatten_embedding(data),
        )

    async def _stream_text(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[str]:
        model = self._text_model(options)
        parameters = self._parameters(options)
        payload = {"inputs": prompt, "parameters": parameters, "stream": True}

        async for chunk in self._stream_body(self._model_url(model), payload):
            if chunk:
                yield chunk


def _generated_text(data: Any) -> str:
    if isinstance(data, list) and data and isinstance(data[0], dict):
        return str(data[0].get("generated_text", ""))
    if isinstance(data, dict) and "generated_text" in data:
        return str(data["generated_text"])
    raise MalformedResponseError(
        f"Unexpected HuggingFace response: {str(data)[:200]}", provider="huggingface"
    )


def _flatten_embedding(data: Any) -> List[float]:
    # Sentence-transformer pipelines sometimes wrap the vector in a batch list
    if isinstance(data, list) and data and isinstance(data[0], list):
        data = data[0]
    if not isinstance(data, list) or not data:
        raise MalformedResponseError(
            "HuggingFace response has no embedding vector", provider="huggingface"
        )
    return [float(v) for v in data]
