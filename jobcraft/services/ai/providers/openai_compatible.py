"""Shared implementation for OpenAI-compatible chat completion vendors."""

from typing import Any, AsyncIterator, Dict

from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.exceptions import MalformedResponseError
from jobcraft.services.ai.providers.base import ProviderAdapter, StreamingCapable
from jobcraft.services.ai.results import TextResult


class OpenAICompatibleProvider(ProviderAdapter, StreamingCapable):
    """Adapter for ``/chat/completions`` style APIs (Groq, Together)."""

    RATE_LIMIT_HEADERS = {
        "limit": "x-ratelimit-limit-requests",
        "remaining": "x-ratelimit-remaining-requests",
        "reset": "x-ratelimit-reset-requests",
    }

    @property
    def _completions_url(self) -> str:
        return f"{self.config.base_url}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key or ''}",
            "Content-Type": "application/json",
        }

    def _chat_payload(
        self, prompt: str, options: GenerationOptions, stream: bool = False
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self._text_model(options),
            "messages": [
                {"role": "system", "content": self._system(options)},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self._max_tokens(options),
            "temperature": self._temperature(options),
            "top_p": self._top_p(options),
            "stream": stream,
        }
        if options.stop:
            payload["stop"] = options.stop
        return payload

    async def _generate_text(
        self, prompt: str, options: GenerationOptions
    ) -> TextResult:
        payload = self._chat_payload(prompt, options)
        data = await self._post_json(self._completions_url, payload)

        choices = data.get("choices") or []
        if not choices:
            raise MalformedResponseError(
                f"{self.display_name} response has no choices", provider=self.key
            )

        usage = data.get("usage") or {}
        return TextResult(
            provider=self.key,
            model=data.get("model", payload["model"]),
            text=choices[0]["message"].get("content") or "",
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
            finish_reason=choices[0].get("finish_reason"),
        )

    async def _stream_text(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[str]:
        payload = self._chat_payload(prompt, options, stream=True)

        lines = self._stream_lines(self._completions_url, payload)
        async for event in self._sse_events(lines):
            choices = event.get("choices") or []
            if not choices:
                continue
            content = (choices[0].get("delta") or {}).get("content")
            if content:
                yield content
