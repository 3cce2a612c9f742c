"""Generation request options.

GenerationOptions is the normalized option set handed to the aggregator
and to every adapter. Adapters apply their own defaults for unset fields.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jobcraft.models.config import Strategy


class GenerationOptions(BaseModel):
    """Options for one text generation request."""

    model_config = ConfigDict(protected_namespaces=())

    strategy: Optional[Strategy] = Field(
        default=None, description="Dispatch strategy (aggregator default if None)"
    )
    provider: Optional[str] = Field(
        default=None, description="Provider key, used by the single strategy"
    )
    model: Optional[str] = Field(default=None, description="Override text model")
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, ge=0)
    system: Optional[str] = None
    stop: Optional[List[str]] = None

    @field_validator("strategy", mode="before")
    @classmethod
    def fallback_unknown_strategy(cls, v: Any) -> Optional[Strategy]:
        if v is None:
            return None
        return Strategy.parse(v, default=Strategy.SINGLE)

    def cache_fields(self) -> Dict[str, Any]:
        """Fields that influence an adapter's output.

        Dispatch-only fields (strategy, provider) are excluded so the same
        adapter answer is reused regardless of how it was reached.
        """
        return self.model_dump(exclude_none=True, exclude={"strategy", "provider"})
