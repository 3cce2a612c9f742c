"""AI provider configuration models.

Mirrors the provider/aggregation/cache configuration surface:
- Per-provider credentials, endpoint, model ids and timeout
- Aggregation strategy, provider weights and consensus threshold
- Response cache toggle and time-to-live

Security Note:
- API keys must be loaded from environment variables
- Placeholder keys are accepted in config but the provider is reported
  as unavailable
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PLACEHOLDER_API_KEYS = {"your_key_here", "YOUR_API_KEY", "PLACEHOLDER", "None"}


class Strategy(str, Enum):
    """Dispatch strategy for one logical generation request."""

    SINGLE = "single"
    FASTEST = "fastest"
    WEIGHTED = "weighted"
    CONSENSUS = "consensus"

    @classmethod
    def parse(cls, value: Optional[str], default: "Strategy") -> "Strategy":
        """Resolve a strategy name, falling back to SINGLE when unrecognized."""
        if value is None:
            return default
        if isinstance(value, Strategy):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.SINGLE


class Capability(str, Enum):
    """Optional capabilities an adapter may implement."""

    TEXT = "text"
    EMBEDDING = "embedding"
    VISION = "vision"
    STREAMING = "streaming"


class ProviderModels(BaseModel):
    """Model identifiers per capability."""

    model_config = ConfigDict(protected_namespaces=())

    text: Optional[str] = None
    embedding: Optional[str] = None
    vision: Optional[str] = None


class ProviderConfig(BaseModel):
    """Configuration for a single LLM backend."""

    model_config = ConfigDict(protected_namespaces=())

    enabled: bool = Field(default=False, description="Whether to register")
    api_key: Optional[str] = Field(
        default=None, description="API key (from environment variable)"
    )
    base_url: str = Field(..., min_length=1, description="Vendor API base URL")
    models: ProviderModels = Field(default_factory=ProviderModels)
    max_tokens: Optional[int] = Field(
        default=None, gt=0, le=200000, description="Vendor default max tokens"
    )
    timeout: float = Field(
        default=30.0, gt=0, le=600, description="Per-call timeout in seconds"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        """True when the API key is non-empty and not a placeholder."""
        if not self.api_key or not self.api_key.strip():
            return False
        return self.api_key.strip() not in PLACEHOLDER_API_KEYS


class AggregationConfig(BaseModel):
    """Multi-provider aggregation settings."""

    strategy: Strategy = Field(
        default=Strategy.WEIGHTED, description="Default dispatch strategy"
    )
    weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "claude": 0.30,
            "huggingface": 0.12,
            "groq": 0.20,
            "cohere": 0.18,
            "gemini": 0.20,
            "together": 0.10,
        }
    )
    default_weight: float = Field(default=0.2, ge=0.0)
    consensus_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Fraction of providers that must contain a sentence",
    )
    max_retries: int = Field(
        default=3, ge=1, le=10, description="Attempts per adapter call"
    )

    @field_validator("strategy", mode="before")
    @classmethod
    def fallback_unknown_strategy(cls, v: object) -> Strategy:
        return Strategy.parse(v, default=Strategy.WEIGHTED)  # type: ignore[arg-type]

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: Dict[str, float]) -> Dict[str, float]:
        for key, weight in v.items():
            if weight < 0:
                raise ValueError(f"Weight for {key} must be non-negative")
        return v

    def weight_for(self, provider: str) -> float:
        return self.weights.get(provider, self.default_weight)


class CacheConfig(BaseModel):
    """Response cache configuration."""

    enabled: bool = True
    ttl_seconds: int = Field(default=3600, ge=1, description="Entry time-to-live")
    cache_dir: str = "./cache/ai"


def default_providers() -> Dict[str, ProviderConfig]:
    """Provider table in configuration (and therefore registry) order."""
    return {
        "claude": ProviderConfig(
            enabled=False,
            base_url="https://api.anthropic.com",
            models=ProviderModels(text="claude-3-5-sonnet-20241022"),
            max_tokens=4096,
        ),
        "huggingface": ProviderConfig(
            enabled=False,
            base_url="https://api-inference.huggingface.co",
            models=ProviderModels(
                text="google/flan-t5-base",
                embedding="sentence-transformers/all-MiniLM-L6-v2",
            ),
        ),
        "groq": ProviderConfig(
            enabled=True,
            base_url="https://api.groq.com/openai/v1",
            models=ProviderModels(
                text="llama-3.1-8b-instant",
                vision="llava-v1.5-7b-4096-preview",
            ),
        ),
        "cohere": ProviderConfig(
            enabled=True,
            base_url="https://api.cohere.ai/v1",
            models=ProviderModels(text="command", embedding="embed-english-v3.0"),
        ),
        "gemini": ProviderConfig(
            enabled=True,
            base_url="https://generativelanguage.googleapis.com/v1beta",
            models=ProviderModels(
                text="gemini-1.5-flash",
                embedding="text-embedding-004",
                vision="gemini-1.5-flash",
            ),
        ),
        "together": ProviderConfig(
            enabled=True,
            base_url="https://api.together.xyz/v1",
            models=ProviderModels(text="meta-llama/Llama-3.2-3B-Instruct-Turbo"),
        ),
    }


class AIConfig(BaseModel):
    """Top-level AI layer configuration."""

    providers: Dict[str, ProviderConfig] = Field(default_factory=default_providers)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    default_provider: str = Field(default="groq", min_length=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "providers": {
                    "groq": {
                        "enabled": True,
                        "api_key": "${GROQ_API_KEY}",
                        "base_url": "https://api.groq.com/openai/v1",
                        "models": {"text": "llama-3.1-8b-instant"},
                        "timeout": 30,
                    }
                },
                "aggregation": {"strategy": "weighted", "consensus_threshold": 0.7},
                "cache": {"enabled": True, "ttl_seconds": 3600},
                "default_provider": "groq",
            }
        }
    )
