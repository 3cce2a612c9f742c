"""Application Materials Service

Turns a job posting and candidate profile into application materials
(ATS keywords, resume summary, experience bullets, cover letter, LinkedIn
post) using the aggregator, and produces standalone cover letters and
ATS-optimized resumes.
"""

from typing import Any, Dict, Iterable, Optional

import structlog

from jobcraft.models.application import (
    ApplicationMaterials,
    CandidateProfile,
    CoverLetterTone,
    JobDetails,
    OptimizationType,
)
from jobcraft.models.config import Strategy
from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.aggregator import AIAggregator
from jobcraft.services.ai.exceptions import ResponseParseError
from jobcraft.services.ai.prompt_builder import (
    APPLICATION_SYSTEM_PROMPT,
    COVER_LETTER_SYSTEM_PROMPT,
    RESUME_OPTIMIZATION_SYSTEM_PROMPT,
    PromptBuilder,
)
from jobcraft.services.ai.response_parser import ResponseParser

logger = structlog.get_logger()


class ApplicationMaterialsService:
    """Generates job-application materials through the aggregator."""

    def __init__(
        self,
        aggregator: AIAggregator,
        prompt_builder: Optional[PromptBuilder] = None,
        response_parser: Optional[ResponseParser] = None,
    ):
        self.aggregator = aggregator
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.response_parser = response_parser or ResponseParser()

    async def generate(
        self,
        job: JobDetails,
        profile: CandidateProfile,
        strategy: Strategy = Strategy.WEIGHTED,
        sections: Optional[Iterable[str]] = None,
    ) -> ApplicationMaterials:
        """Generate application materials.

        Never raises for provider or parsing failure: both yield the
        placeholder error materials with ``generated=False``.

        Args:
            job: Job posting
            profile: Candidate profile
            strategy: Aggregation strategy
            sections: Sections to request (all when empty)

        Returns:
            ApplicationMaterials
        """
        prompt = self.prompt_builder.build_application_prompt(job, profile, sections)
        result = await self.aggregator.generate_text(
            prompt,
            GenerationOptions(
                strategy=strategy,
                max_tokens=2000,
                temperature=0.7,
                system=APPLICATION_SYSTEM_PROMPT,
            ),
        )

        if result.error:
            logger.error(
                "application_generation_failed",
                strategy=strategy.value,
                message=result.message,
            )
            return ApplicationMaterials.error_defaults()

        logger.info(
            "application_raw_response",
            provider=result.provider or result.providers_used,
            strategy=strategy.value,
            content=result.text[:1000],
        )

        try:
            parsed = self.response_parser.parse(result.text)
        except ResponseParseError as e:
            logger.error("application_parse_failed", error=str(e))
            return ApplicationMaterials.error_defaults()

        return ApplicationMaterials(**_as_text_fields(parsed))

    async def generate_cover_letter(
        self,
        job: JobDetails,
        skills: str,
        experience: str,
        tone: CoverLetterTone = "professional",
    ) -> Dict[str, Any]:
        """Generate a cover letter with the weighted strategy.

        Returns:
            ``{cover_letter, providers_used}`` or a failure payload
        """
        prompt = self.prompt_builder.build_cover_letter_prompt(
            job, skills, experience, tone
        )
        result = await self.aggregator.generate_text(
            prompt,
            GenerationOptions(
                strategy=Strategy.WEIGHTED,
                max_tokens=1500,
                temperature=0.8,
                system=COVER_LETTER_SYSTEM_PROMPT,
            ),
        )
        if result.error:
            return result.to_dict()

        return {
            "cover_letter": result.text,
            "providers_used": result.providers_used or [],
        }

    async def optimize_resume(
        self,
        resume_content: str,
        job_description: str,
        optimization_type: OptimizationType = "both",
    ) -> Dict[str, Any]:
        """Optimize a resume for ATS with the consensus strategy.

        Returns:
            ``{optimized_resume, consensus_score, providers_used}`` or a
            failure payload
        """
        prompt = self.prompt_builder.build_resume_optimization_prompt(
            resume_content, job_description, optimization_type
        )
        result = await self.aggregator.generate_text(
            prompt,
            GenerationOptions(
                strategy=Strategy.CONSENSUS,
                max_tokens=2000,
                temperature=0.7,
                system=RESUME_OPTIMIZATION_SYSTEM_PROMPT,
            ),
        )
        if result.error:
            return result.to_dict()

        return {
            "optimized_resume": result.text,
            "consensus_score": result.consensus_score,
            "providers_used": result.providers_used or [],
        }


def _as_text_fields(parsed: Dict[str, Any]) -> Dict[str, str]:
    """Keep known material fields, flattening list values into lines."""
    fields: Dict[str, str] = {}
    for name in ApplicationMaterials.model_fields:
        if name == "generated" or name not in parsed:
            continue
        value = parsed[name]
        if isinstance(value, list):
            value = "\n".join(str(item) for item in value)
        fields[name] = "" if value is None else str(value)
    return fields
