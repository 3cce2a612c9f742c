"""Tests for ResumeParserService and document text extraction."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jobcraft.models.config import Strategy
from jobcraft.services.ai.results import Failure, GenerationResult
from jobcraft.services.resume_parser import ResumeParserService, clean_resume_data
from jobcraft.services.text_extraction import (
    DocumentTextExtractor,
    PdfTextExtractor,
    PlainTextExtractor,
    TextExtractionError,
)

RESUME_TEXT = "Jane Doe\nSenior Engineer\njane@example.com\nPython, Go"


def aggregator_returning(result) -> MagicMock:
    aggregator = MagicMock()
    aggregator.generate_text = AsyncMock(return_value=result)
    return aggregator


class StaticExtractor:
    def __init__(self, text: str = RESUME_TEXT, error: str = ""):
        self.text = text
        self.error = error

    def extract(self, path: Path) -> str:
        if self.error:
            raise TextExtractionError(self.error)
        return self.text


class TestParseResume:
    """Tests for parse_resume."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        """Parsed fields are merged over defaults."""
        reply = json.dumps(
            {
                "candidate_name": "Jane Doe",
                "current_role": "Senior Engineer",
                "years_experience": "7",
                "skills_list": "Python, Go",
                "contact_info": {"email": "jane@example.com"},
            }
        )
        aggregator = aggregator_returning(
            GenerationResult(strategy="single", text=reply, provider="groq")
        )
        service = ResumeParserService(aggregator, extractor=StaticExtractor())

        result = await service.parse_resume("resume.txt")

        assert result["success"]
        assert result["raw_text"] == RESUME_TEXT
        data = result["data"]
        assert data["candidate_name"] == "Jane Doe"
        assert data["years_experience"] == 7
        assert data["education_details"] == ""
        assert data["contact_info"] == {
            "email": "jane@example.com",
            "phone": "",
            "location": "",
        }

    @pytest.mark.asyncio
    async def test_uses_single_fast_provider(self) -> None:
        aggregator = aggregator_returning(
            GenerationResult(strategy="single", text="{}", provider="groq")
        )
        service = ResumeParserService(aggregator, extractor=StaticExtractor())

        await service.parse_resume("resume.txt")

        prompt, options = aggregator.generate_text.call_args.args
        assert RESUME_TEXT in prompt
        assert options.strategy == Strategy.SINGLE
        assert options.provider == "groq"
        assert options.max_tokens == 1500
        assert options.temperature == 0.3

    @pytest.mark.asyncio
    async def test_aggregator_failure(self) -> None:
        aggregator = aggregator_returning(Failure(message="Provider groq not available"))
        service = ResumeParserService(aggregator, extractor=StaticExtractor())

        result = await service.parse_resume("resume.txt")

        assert result == {
            "success": False,
            "error": "AI parsing failed: Provider groq not available",
        }

    @pytest.mark.asyncio
    async def test_extraction_failure(self) -> None:
        aggregator = aggregator_returning(None)
        service = ResumeParserService(
            aggregator, extractor=StaticExtractor(error="Unsupported resume format: .doc")
        )

        result = await service.parse_resume("resume.doc")

        assert result == {"success": False, "error": "Unsupported resume format: .doc"}
        aggregator.generate_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_text(self) -> None:
        aggregator = aggregator_returning(None)
        service = ResumeParserService(aggregator, extractor=StaticExtractor(text="  \n"))

        result = await service.parse_resume("resume.txt")

        assert result["error"] == "Unable to extract text from resume file"

    @pytest.mark.asyncio
    async def test_unparseable_reply_gives_empty_data(self) -> None:
        aggregator = aggregator_returning(
            GenerationResult(strategy="single", text="No idea.", provider="groq")
        )
        service = ResumeParserService(aggregator, extractor=StaticExtractor())

        result = await service.parse_resume("resume.txt")

        assert result["success"]
        assert result["data"]["candidate_name"] == ""


class TestCleanResumeData:
    """Tests for clean_resume_data."""

    @pytest.mark.parametrize(
        "value,expected",
        [("7", 7), (7.9, 7), ("seven", 0), (None, 0), (True, 0), ("-3", 0)],
    )
    def test_years_experience(self, value, expected) -> None:
        assert clean_resume_data({"years_experience": value}).years_experience == expected

    def test_list_values_are_joined(self) -> None:
        data = clean_resume_data({"career_highlights": ["Led team", "Cut costs"]})

        assert data.career_highlights == "Led team\nCut costs"

    def test_non_mapping_contact_info(self) -> None:
        data = clean_resume_data({"contact_info": "jane@example.com"})

        assert data.contact_info.email == ""


class TestTextExtraction:
    """Tests for the document extractors."""

    def test_plain_text(self, tmp_path) -> None:
        path = tmp_path / "resume.md"
        path.write_text("# Jane\nPython", encoding="utf-8")

        assert DocumentTextExtractor().extract(path) == "# Jane\nPython"

    def test_unsupported_suffix(self, tmp_path) -> None:
        with pytest.raises(TextExtractionError, match="Unsupported resume format"):
            DocumentTextExtractor().extract(tmp_path / "resume.docx")

    def test_plain_text_missing_file(self, tmp_path) -> None:
        with pytest.raises(TextExtractionError):
            PlainTextExtractor().extract(tmp_path / "missing.txt")

    def test_pdf_missing_file(self, tmp_path) -> None:
        with pytest.raises(TextExtractionError, match="PDF file not found"):
            PdfTextExtractor().extract(tmp_path / "missing.pdf")

    def test_pdf_pages_joined(self, tmp_path) -> None:
        """Non-empty page texts are joined with newlines."""
        path = tmp_path / "resume.pdf"
        path.write_bytes(b"%PDF-1.4")
        pages = [MagicMock(), MagicMock(), MagicMock()]
        pages[0].extract_text.return_value = "Page one"
        pages[1].extract_text.return_value = None
        pages[2].extract_text.return_value = "Page three"
        pdf = MagicMock()
        pdf.__enter__.return_value.pages = pages

        with patch("jobcraft.services.text_extraction.pdfplumber.open", return_value=pdf):
            text = PdfTextExtractor().extract(path)

        assert text == "Page one\nPage three"

    def test_pdf_read_error(self, tmp_path) -> None:
        path = tmp_path / "resume.pdf"
        path.write_bytes(b"not a pdf")

        with patch(
            "jobcraft.services.text_extraction.pdfplumber.open",
            side_effect=ValueError("bad xref"),
        ):
            with pytest.raises(TextExtractionError, match="bad xref"):
                PdfTextExtractor().extract(path)
