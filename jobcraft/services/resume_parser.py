"""Resume Parser Service

Recovers structured candidate data (name, role, experience, skills,
highlights, education, contact details) from a resume document.

Document-to-text conversion is delegated to a TextExtractor; the default
handles text, markdown and PDF files.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog

from jobcraft.models.application import ContactInfo, ResumeData
from jobcraft.models.config import Strategy
from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.aggregator import AIAggregator
from jobcraft.services.ai.exceptions import ResponseParseError
from jobcraft.services.ai.prompt_builder import PromptBuilder
from jobcraft.services.ai.response_parser import ResponseParser
from jobcraft.services.text_extraction import (
    DocumentTextExtractor,
    TextExtractionError,
    TextExtractor,
)

logger = structlog.get_logger()


class ResumeParsingError(Exception):
    """Raised when the aggregator could not produce a reply to parse."""


class ResumeParserService:
    """Parses resumes into ResumeData with a single fast provider."""

    PARSING_PROVIDER = "groq"

    def __init__(
        self,
        aggregator: AIAggregator,
        extractor: Optional[TextExtractor] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        response_parser: Optional[ResponseParser] = None,
    ):
        self.aggregator = aggregator
        self.extractor = extractor or DocumentTextExtractor()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.response_parser = response_parser or ResponseParser()

    async def parse_resume(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Extract, prompt and parse.

        Args:
            path: Resume document

        Returns:
            ``{success: True, data, raw_text}`` or ``{success: False, error}``
        """
        path = Path(path)
        try:
            resume_text = self.extractor.extract(path)
            if not resume_text.strip():
                raise TextExtractionError("Unable to extract text from resume file")

            data = await self.parse_text(resume_text)
        except (TextExtractionError, ResumeParsingError) as e:
            logger.error("resume_parse_failed", filename=path.name, error=str(e))
            return {"success": False, "error": str(e)}

        return {"success": True, "data": data.model_dump(), "raw_text": resume_text}

    async def parse_text(self, resume_text: str) -> ResumeData:
        """Parse already-extracted resume text.

        Raises:
            ResumeParsingError: If the aggregator returned a failure
        """
        prompt = self.prompt_builder.build_resume_parsing_prompt(resume_text)
        result = await self.aggregator.generate_text(
            prompt,
            GenerationOptions(
                strategy=Strategy.SINGLE,
                provider=self.PARSING_PROVIDER,
                max_tokens=1500,
                temperature=0.3,
            ),
        )
        if result.error:
            raise ResumeParsingError(f"AI parsing failed: {result.message}")

        try:
            parsed = self.response_parser.parse_json(result.text)
        except ResponseParseError:
            logger.warning("resume_response_unparsed", content=result.text[:500])
            return ResumeData()

        return clean_resume_data(parsed)


def clean_resume_data(data: Dict[str, Any]) -> ResumeData:
    """Merge parsed fields over defaults and coerce types."""
    text_fields = {
        name: _as_text(data.get(name))
        for name in (
            "candidate_name",
            "current_role",
            "skills_list",
            "career_highlights",
            "education_details",
        )
    }

    contact = data.get("contact_info")
    if isinstance(contact, dict):
        contact_info = ContactInfo(
            **{k: _as_text(contact.get(k)) for k in ContactInfo.model_fields}
        )
    else:
        contact_info = ContactInfo()

    return ResumeData(
        years_experience=_as_years(data.get("years_experience")),
        contact_info=contact_info,
        **text_fields,
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(str(item) for item in value)
    return str(value)


def _as_years(value: Any) -> int:
    """Integer years; non-numeric values become 0."""
    if isinstance(value, bool):
        return 0
    try:
        return max(int(float(str(value).strip())), 0)
    except (ValueError, OverflowError):
        return 0
