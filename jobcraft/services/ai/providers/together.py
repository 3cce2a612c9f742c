"""Together AI provider (OpenAI-compatible, text only)."""

from jobcraft.services.ai.providers.openai_compatible import OpenAICompatibleProvider


class TogetherProvider(OpenAICompatibleProvider):
    key = "together"
    display_name = "Together AI"

    DEFAULT_RATE_LIMIT = {"limit": 60, "remaining": 60, "reset": None}

    TEXT_MODELS = [
        "meta-llama/Llama-3.2-3B-Instruct-Turbo",
        "meta-llama/Meta-Llama-3.1-8B-Instruct-Turbo",
        "mistralai/Mixtral-8x7B-Instruct-v0.1",
    ]
