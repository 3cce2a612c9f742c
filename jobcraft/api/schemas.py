"""Request bodies for the AI HTTP endpoints."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from jobcraft.models.application import CoverLetterTone, OptimizationType
from jobcraft.models.config import Strategy
from jobcraft.models.generation import GenerationOptions

StrategyName = Literal["weighted", "consensus", "fastest", "single"]


class GenerateRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=10000)
    strategy: Optional[StrategyName] = None
    provider: Optional[str] = Field(default=None, min_length=1, validate_default=True)
    max_tokens: Optional[int] = Field(default=None, ge=10, le=4000)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    system: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("provider")
    @classmethod
    def provider_required_for_single(
        cls, v: Optional[str], info: ValidationInfo
    ) -> Optional[str]:
        if info.data.get("strategy") == "single" and not v:
            raise ValueError("provider is required when strategy is single")
        return v

    def to_options(self) -> GenerationOptions:
        return GenerationOptions(
            strategy=Strategy(self.strategy) if self.strategy else None,
            provider=self.provider,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            system=self.system,
        )


class EmbeddingRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


class AnalyzeImageRequest(BaseModel):
    image: str = Field(..., min_length=1, description="Base64, data URI allowed")
    prompt: str = Field(..., min_length=1, max_length=1000)


class CoverLetterRequest(BaseModel):
    job_title: str = Field(..., min_length=1, max_length=200)
    company_name: str = Field(..., min_length=1, max_length=200)
    job_description: str = Field(..., min_length=1, max_length=5000)
    user_skills: str = Field(..., min_length=1, max_length=2000)
    user_experience: str = Field(..., min_length=1, max_length=3000)
    tone: CoverLetterTone = "professional"


class OptimizeResumeRequest(BaseModel):
    resume_content: str = Field(..., min_length=1, max_length=10000)
    job_description: str = Field(..., min_length=1, max_length=5000)
    optimization_type: OptimizationType = "both"
