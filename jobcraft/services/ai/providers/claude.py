"""Anthropic (Claude) provider.

Messages API with text, vision (base64 image blocks) and SSE streaming.
Claude does not offer embeddings.
"""

from typing import Any, AsyncIterator, Dict, List

from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.providers.base import (
    ProviderAdapter,
    StreamingCapable,
    VisionCapable,
)
from jobcraft.services.ai.results import AnalysisResult, TextResult


class ClaudeProvider(ProviderAdapter, VisionCapable, StreamingCapable):
    """Anthropic Claude adapter."""

    key = "claude"
    display_name = "Claude (Anthropic)"

    API_VERSION = "2023-06-01"
    DEFAULT_MAX_TOKENS = 4096
    DEFAULT_RATE_LIMIT = {"limit": 50, "remaining": 50, "reset": None}
    RATE_LIMIT_HEADERS = {
        "limit": "anthropic-ratelimit-requests-limit",
        "remaining": "anthropic-ratelimit-requests-remaining",
        "reset": "anthropic-ratelimit-requests-reset",
    }

    TEXT_MODELS = [
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
    ]
    VISION_MODELS = [
        "claude-3-5-sonnet-20241022",
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
    ]
    CONTEXT_WINDOW = 200000

    @property
    def _messages_url(self) -> str:
        return f"{self.config.base_url}/v1/messages"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.config.api_key or "",
            "anthropic-version": self.API_VERSION,
            "Content-Type": "application/json",
        }

    def get_model_info(self) -> Dict[str, Any]:
        info = super().get_model_info()
        info["context_window"] = self.CONTEXT_WINDOW
        return info

    def _text_payload(self, prompt: str, options: GenerationOptions) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self._text_model(options),
            "max_tokens": self._max_tokens(options),
            "temperature": self._temperature(options),
            "system": self._system(options),
            "messages": [{"role": "user", "content": prompt}],
        }
        if options.top_p is not None:
            payload["top_p"] = options.top_p
        if options.stop:
            payload["stop_sequences"] = options.stop
        return payload

    async def _generate_text(
        self, prompt: str, options: GenerationOptions
    ) -> TextResult:
        payload = self._text_payload(prompt, options)
        data = await self._post_json(self._messages_url, payload)

        usage = data.get("usage") or {}
        return TextResult(
            provider=self.key,
            model=payload["model"],
            text=_join_text_blocks(data.get("content", [])),
            usage={
                "input_tokens": usage.get("input_tokens", 0),
                "output_tokens": usage.get("output_tokens", 0),
            },
            finish_reason=data.get("stop_reason"),
        )

    async def _analyze_image(self, image_base64: str, prompt: str) -> AnalysisResult:
        # Claude text models accept image blocks
        model = self.config.models.vision or self.config.models.text or ""
        payload = {
            "model": model,
            "max_tokens": 1000,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": "image/jpeg",
                                "data": image_base64,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        }
        data = await self._post_json(self._messages_url, payload)

        usage = data.get("usage") or {}
        return AnalysisResult(
            provider=self.key,
            model=model,
            analysis=_join_text_blocks(data.get("content", [])),
            usage={
                "input_tokens": usage.get("input_tokens", 0),
                "output_tokens": usage.get("output_tokens", 0),
            },
        )

    async def _stream_text(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[str]:
        payload = self._text_payload(prompt, options)
        payload["stream"] = True

        lines = self._stream_lines(self._messages_url, payload)
        async for event in self._sse_events(lines):
            delta = event.get("delta") or {}
            text = delta.get("text")
            if text:
                yield text


def _join_text_blocks(blocks: List[Dict[str, Any]]) -> str:
    return "".join(
        block.get("text", "") for block in blocks if block.get("type") == "text"
    )
