"""Tests for ResponseParser."""

import json

import pytest

from jobcraft.services.ai.exceptions import ResponseParseError
from jobcraft.services.ai.response_parser import SECTION_DEFAULTS, ResponseParser


@pytest.fixture
def parser() -> ResponseParser:
    return ResponseParser()


class TestParseJsonStrategies:
    """Tests for the JSON strategies of parse()."""

    def test_fenced_json_with_prose(self, parser) -> None:
        """Surrounding prose and a json fence are ignored."""
        content = 'Here is the result:\n```json\n{"a":1}\n```\nThanks'

        assert parser.parse(content) == {"a": 1}

    @pytest.mark.parametrize(
        "value",
        [
            {"x": 1, "y": "z"},
            {"outer": {"inner": [1, 2]}, "k": "v"},
            {"text": "uses {braces} and \"quotes\""},
        ],
    )
    def test_serialized_object_round_trips(self, parser, value) -> None:
        """Any serialized object parses back to itself."""
        assert parser.parse(json.dumps(value)) == value

    def test_flat_object_in_prose(self, parser) -> None:
        content = 'Sure! {"cover_letter": "Dear team"} Hope it helps.'

        assert parser.parse(content) == {"cover_letter": "Dear team"}

    def test_nested_object_in_prose(self, parser) -> None:
        """A nested object without fences is recovered whole."""
        content = 'Result: {"a": {"b": 1}, "c": 2} done'

        assert parser.parse(content) == {"a": {"b": 1}, "c": 2}

    def test_plain_fence(self, parser) -> None:
        content = 'Output:\n```\n{"a": {"b": [1]}}\n```'

        assert parser.parse(content) == {"a": {"b": [1]}}

    def test_array_is_rejected(self, parser) -> None:
        """Decoded values must be objects."""
        with pytest.raises(ResponseParseError):
            parser.parse("[1, 2, 3]")

    def test_invalid_json_fails(self, parser) -> None:
        with pytest.raises(ResponseParseError):
            parser.parse("```json\n{not json}\n```")


class TestParseSections:
    """Tests for heuristic section extraction."""

    def test_bold_labels(self, parser) -> None:
        """Two labeled sections are enough; the rest use placeholders."""
        content = (
            "**Summary**: Great engineer.\n"
            "**Cover Letter**: Dear team, hire me.\n"
        )

        result = parser.parse(content)

        assert result["resume_summary"] == "Great engineer."
        assert result["cover_letter"] == "Dear team, hire me."
        assert result["ats_keywords"] == SECTION_DEFAULTS["ats_keywords"]
        assert result["linkedin_post"] == SECTION_DEFAULTS["linkedin_post"]

    def test_plain_labels(self, parser) -> None:
        content = "Keywords: python, aws\nLinkedIn: Excited to apply!"

        result = parser.parse(content)

        assert result["ats_keywords"] == "python, aws"
        assert result["linkedin_post"] == "Excited to apply!"

    def test_placeholders_use_real_newlines(self, parser) -> None:
        content = "Keywords: python\nSummary: Builder of things."

        result = parser.parse(content)

        assert "\n" in result["resume_experience"]
        assert "\\n" not in result["resume_experience"]

    def test_single_section_is_not_enough(self, parser) -> None:
        with pytest.raises(ResponseParseError):
            parser.parse("Summary: only this one.")

    def test_custom_labels(self) -> None:
        parser = ResponseParser(
            section_labels={"headline": "headline", "pitch": "pitch"},
            section_defaults={"extra": "n/a"},
        )

        result = parser.parse("Headline: Senior dev\nPitch: I ship.")

        assert result == {"headline": "Senior dev", "pitch": "I ship.", "extra": "n/a"}


class TestParseJsonOnly:
    """Tests for parse_json()."""

    def test_whole_text(self, parser) -> None:
        assert parser.parse_json('  {"name": "Ada"}  ') == {"name": "Ada"}

    def test_any_fence(self, parser) -> None:
        content = 'Parsed:\n```json\n{"contact_info": {"email": "a@b.c"}}\n```'

        assert parser.parse_json(content) == {"contact_info": {"email": "a@b.c"}}

    def test_outer_braces(self, parser) -> None:
        content = 'The data is {"years_experience": 7} as requested.'

        assert parser.parse_json(content) == {"years_experience": 7}

    def test_sections_are_not_used(self, parser) -> None:
        """Heuristic extraction is only part of parse()."""
        with pytest.raises(ResponseParseError):
            parser.parse_json("**Summary**: x\n**Cover Letter**: y")
