"""Google Gemini provider.

Generative Language REST API with the key passed as a query parameter.
Supports text, embeddings (text-embedding-004), vision (inline image
data) and SSE streaming.
"""

from typing import Any, AsyncIterator, Dict, List

from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.exceptions import MalformedResponseError
from jobcraft.services.ai.providers.base import (
    EmbeddingCapable,
    ProviderAdapter,
    StreamingCapable,
    VisionCapable,
)
from jobcraft.services.ai.results import AnalysisResult, EmbeddingResult, TextResult

SAFETY_SETTINGS: List[Dict[str, str]] = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


class GeminiProvider(ProviderAdapter, EmbeddingCapable, VisionCapable, StreamingCapable):
    """Google Gemini adapter."""

    key = "gemini"
    display_name = "Google Gemini"

    DEFAULT_TOP_K = 40
    DEFAULT_RATE_LIMIT = {"limit": 60, "remaining": 60, "reset": None}

    TEXT_MODELS = ["gemini-1.5-flash", "gemini-1.5-pro", "gemini-1.0-pro"]
    EMBEDDING_MODELS = ["text-embedding-004", "embedding-001"]
    VISION_MODELS = ["gemini-1.5-flash", "gemini-1.5-pro"]

    def _params(self, **extra: str) -> Dict[str, str]:
        return {"key": self.config.api_key or "", **extra}

    def _model_url(self, model: str, method: str) -> str:
        return f"{self.config.base_url}/models/{model}:{method}"

    def _generation_config(self, options: GenerationOptions) -> Dict[str, Any]:
        return {
            "temperature": self._temperature(options),
            "topK": options.top_k if options.top_k is not None else self.DEFAULT_TOP_K,
            "topP": self._top_p(options),
            "maxOutputTokens": self._max_tokens(options),
            "stopSequences": options.stop or [],
        }

    def _content_payload(
        self, prompt: str, options: GenerationOptions
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": self._generation_config(options),
            "safetySettings": SAFETY_SETTINGS,
        }
        if options.system:
            payload["systemInstruction"] = {"parts": [{"text": options.system}]}
        return payload

    async def _generate_text(
        self, prompt: str, options: GenerationOptions
    ) -> TextResult:
        model = self._text_model(options)
        data = await self._post_json(
            self._model_url(model, "generateContent"),
            self._content_payload(prompt, options),
            params=self._params(),
        )

        candidates = data.get("candidates") or []
        if not candidates:
            raise MalformedResponseError(
                "Gemini response has no candidates", provider=self.key
            )

        usage = data.get("usageMetadata") or {}
        return TextResult(
            provider=self.key,
            model=model,
            text=_candidate_text(candidates[0]),
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
                "total_tokens": usage.get("totalTokenCount", 0),
            },
            finish_reason=candidates[0].get("finishReason"),
        )

    async def _generate_embedding(self, text: str) -> EmbeddingResult:
        model = self.config.models.embedding or self.EMBEDDING_MODELS[0]
        data = await self._post_json(
            self._model_url(model, "embedContent"),
            {"model": f"models/{model}", "content": {"parts": [{"text": text}]}},
            params=self._params(),
        )

        values = (data.get("embedding") or {}).get("values")
        if not values:
            raise MalformedResponseError(
                "Gemini response has no embedding values", provider=self.key
            )

        return EmbeddingResult(
            provider=self.key,
            model=model,
            embedding=[float(v) for v in values],
        )

    async def _analyze_image(self, image_base64: str, prompt: str) -> AnalysisResult:
        model = self.config.models.vision or self.config.models.text or ""
        data = await self._post_json(
            self._model_url(model, "generateContent"),
            {
                "contents": [
                    {
                        "parts": [
                            {"text": prompt},
                            {
                                "inline_data": {
                                    "mime_type": "image/jpeg",
                                    "data": image_base64,
                                }
                            },
                        ]
                    }
                ]
            },
            params=self._params(),
        )

        candidates = data.get("candidates") or []
        usage = data.get("usageMetadata") or {}
        return AnalysisResult(
            provider=self.key,
            model=model,
            analysis=_candidate_text(candidates[0]) if candidates else "",
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
            },
        )

    async def _stream_text(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[str]:
        model = self._text_model(options)
        lines = self._stream_lines(
            self._model_url(model, "streamGenerateContent"),
            self._content_payload(prompt, options),
            params=self._params(alt="sse"),
        )
        async for event in self._sse_events(lines):
            for candidate in (event.get("candidates") or [])[:1]:
                for part in (candidate.get("content") or {}).get("parts", []):
                    if part.get("text"):
                        yield part["text"]


def _candidate_text(candidate: Dict[str, Any]) -> str:
    parts = (candidate.get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)
