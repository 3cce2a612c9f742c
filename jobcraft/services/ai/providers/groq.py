"""Groq provider: OpenAI-compatible text plus LLaVA vision."""

from jobcraft.services.ai.exceptions import MalformedResponseError
from jobcraft.services.ai.providers.base import VisionCapable
from jobcraft.services.ai.providers.openai_compatible import OpenAICompatibleProvider
from jobcraft.services.ai.results import AnalysisResult


class GroqProvider(OpenAICompatibleProvider, VisionCapable):
    """Groq adapter."""

    key = "groq"
    display_name = "Groq"

    DEFAULT_RATE_LIMIT = {"limit": 30, "remaining": 30, "reset": None}

    TEXT_MODELS = [
        "llama-3.1-8b-instant",
        "llama-3.1-70b-versatile",
        "mixtral-8x7b-32768",
        "gemma2-9b-it",
    ]
    VISION_MODELS = ["llava-v1.5-7b-4096-preview"]

    async def _analyze_image(self, image_base64: str, prompt: str) -> AnalysisResult:
        model = self.config.models.vision or self.VISION_MODELS[0]
        payload = {
            "model": model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:image/jpeg;base64,{image_base64}"
                            },
                        },
                    ],
                }
            ],
            "max_tokens": 1000,
        }
        data = await self._post_json(self._completions_url, payload)

        choices = data.get("choices") or []
        if not choices:
            raise MalformedResponseError("Groq response has no choices", provider=self.key)

        usage = data.get("usage") or {}
        return AnalysisResult(
            provider=self.key,
            model=model,
            analysis=choices[0]["message"].get("content") or "",
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
            },
        )
