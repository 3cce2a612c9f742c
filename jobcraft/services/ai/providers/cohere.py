"""Cohere provider: generate, embed and NDJSON streaming."""

import json
from typing import Any, AsyncIterator, Dict

from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.exceptions import MalformedResponseError
from jobcraft.services.ai.providers.base import (
    EmbeddingCapable,
    ProviderAdapter,
    StreamingCapable,
)
from jobcraft.services.ai.results import EmbeddingResult, TextResult


class CohereProvider(ProviderAdapter, EmbeddingCapable, StreamingCapable):
    """Cohere adapter."""

    key = "cohere"
    display_name = "Cohere"

    DEFAULT_MAX_TOKENS = 500
    DEFAULT_RATE_LIMIT = {"limit": 100, "remaining": 100, "reset": None}
    RATE_LIMIT_HEADERS = {
        "limit": "x-api-requests-limit",
        "remaining": "x-api-requests-remaining",
        "reset": "x-api-requests-reset",
    }

    TEXT_MODELS = ["command-r", "command-r-plus", "command", "command-light"]
    EMBEDDING_MODELS = [
        "embed-english-v3.0",
        "embed-multilingual-v3.0",
        "embed-english-light-v3.0",
    ]

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key or ''}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _generate_payload(
        self, prompt: str, options: GenerationOptions
    ) -> Dict[str, Any]:
        return {
            "model": self._text_model(options),
            "prompt": prompt,
            "max_tokens": self._max_tokens(options),
            "temperature": self._temperature(options),
            "k": options.top_k or 0,
            "p": self._top_p(options),
            "stop_sequences": options.stop or [],
            "return_likelihoods": "NONE",
        }

    async def _generate_text(
        self, prompt: str, options: GenerationOptions
    ) -> TextResult:
        payload = self._generate_payload(prompt, options)
        data = await self._post_json(f"{self.config.base_url}/generate", payload)

        generations = data.get("generations") or []
        if not generations:
            raise MalformedResponseError(
                "Cohere response has no generations", provider=self.key
            )

        billed = (data.get("meta") or {}).get("billed_units") or {}
        return TextResult(
            provider=self.key,
            model=payload["model"],
            text=generations[0].get("text", ""),
            usage={
                "prompt_tokens": int(billed.get("input_tokens", 0)),
                "completion_tokens": int(billed.get("output_tokens", 0)),
            },
            finish_reason=generations[0].get("finish_reason"),
        )

    async def _generate_embedding(self, text: str) -> EmbeddingResult:
        model = self.config.models.embedding or self.EMBEDDING_MODELS[0]
        data = await self._post_json(
            f"{self.config.base_url}/embed",
            {"model": model, "texts": [text], "input_type": "search_document"},
        )

        embeddings = data.get("embeddings") or []
        if not embeddings:
            raise MalformedResponseError(
                "Cohere response has no embeddings", provider=self.key
            )

        return EmbeddingResult(
            provider=self.key,
            model=model,
            embedding=[float(v) for v in embeddings[0]],
        )

    async def _stream_text(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[str]:
        payload = self._generate_payload(prompt, options)
        payload["stream"] = True

        # Cohere streams newline-delimited JSON, not SSE
        url = f"{self.config.base_url}/generate"
        async for line in self._stream_lines(url, payload):
            try:
                event = json.loads(line)
            except ValueError:
                continue
            if isinstance(event, dict) and event.get("text"):
                yield event["text"]
