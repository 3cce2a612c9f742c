"""Response Parser Module

Recovers a JSON object from free-form model text.

Models asked for "JSON only" still wrap answers in markdown fences, add
prose around them, or drop the JSON entirely. The parser tries an ordered
chain of strategies and the first one that yields a JSON object wins:

1. A flat ``{...}`` object (no nested braces) anywhere in the text
2. A ```json fenced block
3. A plain ``` fenced block containing ``{...}``
4. Everything between the first ``{`` and the last ``}``
5. Heuristic "Label: content" section extraction (application materials)
"""

import json
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Pattern

import structlog

from jobcraft.services.ai.exceptions import ResponseParseError

logger = structlog.get_logger()

# Flat object. Quoted strings may contain braces and escaped quotes.
FLAT_OBJECT = re.compile(r'\{(?:[^{}"]|"(?:[^"\\]|\\.)*")*\}', re.DOTALL)
JSON_FENCE = re.compile(r"```json\s*(\{.*?\})\s*```", re.DOTALL)
PLAIN_FENCE = re.compile(r"```\s*(\{.*?\})\s*```", re.DOTALL)
ANY_FENCE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)

# Output field -> label searched for in prose
SECTION_LABELS: Dict[str, str] = {
    "ats_keywords": "keywords",
    "resume_summary": "summary",
    "resume_experience": "experience",
    "cover_letter": "cover letter",
    "linkedin_post": "linkedin",
}

SECTION_DEFAULTS: Dict[str, str] = {
    "ats_keywords": "job title, company name, relevant skills, industry terms",
    "resume_summary": "Professional with relevant experience seeking new opportunities.",
    "resume_experience": (
        "• Relevant experience in the field\n"
        "• Strong track record of achievements\n"
        "• Proven ability to deliver results"
    ),
    "cover_letter": (
        "Dear Hiring Manager,\n\nI am writing to express my interest in this position..."
    ),
    "linkedin_post": (
        "Excited to apply for this new opportunity! "
        "Looking forward to bringing my skills to the team."
    ),
}

MIN_SECTIONS_FOUND = 2


def _section_patterns(label: str) -> List[Pattern[str]]:
    quoted = re.escape(label)
    return [
        re.compile(
            r"\*\*" + quoted + r"\*\*:?\s*([^\*]+?)(?=\*\*|\Z)",
            re.IGNORECASE | re.DOTALL,
        ),
        re.compile(quoted + r":?\s*([^\n]+)", re.IGNORECASE),
        re.compile(r"^" + quoted + r":?\s*(.+?)$", re.IGNORECASE | re.MULTILINE),
    ]


class ResponseParser:
    """Extracts a JSON object from model output.

    Each JSON candidate must decode *and* decode to an object; scalars and
    arrays are rejected so the next strategy gets a chance.
    """

    def __init__(
        self,
        section_labels: Optional[Mapping[str, str]] = None,
        section_defaults: Optional[Mapping[str, str]] = None,
    ):
        """Initialize parser.

        Args:
            section_labels: Field -> label map for heuristic extraction
            section_defaults: Field -> placeholder used to fill gaps
        """
        self.section_labels = dict(section_labels or SECTION_LABELS)
        self.section_defaults = dict(section_defaults or SECTION_DEFAULTS)
        self._section_patterns = {
            field: _section_patterns(label)
            for field, label in self.section_labels.items()
        }

    def parse(self, content: str) -> Dict[str, Any]:
        """Run the full strategy chain.

        Args:
            content: Raw model text

        Returns:
            Recovered mapping

        Raises:
            ResponseParseError: If every strategy fails
        """
        strategies: List[Callable[[str], Optional[Dict[str, Any]]]] = [
            self._from_flat_object,
            self._from_json_fence,
            self._from_plain_fence,
            self._from_outer_braces,
            self._from_sections,
        ]
        return self._run(content, strategies)

    def parse_json(self, content: str) -> Dict[str, Any]:
        """JSON-only chain: whole text, any fenced block, outer braces.

        Raises:
            ResponseParseError: If no strategy yields a JSON object
        """
        strategies: List[Callable[[str], Optional[Dict[str, Any]]]] = [
            self._from_whole_text,
            self._from_any_fence,
            self._from_outer_braces,
        ]
        return self._run(content, strategies)

    def _run(
        self,
        content: str,
        strategies: List[Callable[[str], Optional[Dict[str, Any]]]],
    ) -> Dict[str, Any]:
        for strategy in strategies:
            result = strategy(content)
            if result is not None:
                logger.debug(
                    "response_parsed",
                    strategy=strategy.__name__.lstrip("_"),
                    fields=len(result),
                )
                return result

        logger.warning("response_parse_failed", content=content[:500])
        raise ResponseParseError(
            f"No JSON object could be recovered from response: {content[:200]}"
        )

    # ==================== JSON strategies ====================

    def _from_flat_object(self, content: str) -> Optional[Dict[str, Any]]:
        match = FLAT_OBJECT.search(content)
        if not match:
            return None
        # A flat object nested inside a larger one is only a fragment;
        # leave it to the outer-brace strategy.
        prefix = content[: match.start()]
        if prefix.count("{") > prefix.count("}"):
            return None
        return _decode_object(match.group(0))

    def _from_json_fence(self, content: str) -> Optional[Dict[str, Any]]:
        match = JSON_FENCE.search(content)
        return _decode_object(match.group(1)) if match else None

    def _from_plain_fence(self, content: str) -> Optional[Dict[str, Any]]:
        match = PLAIN_FENCE.search(content)
        return _decode_object(match.group(1)) if match else None

    def _from_any_fence(self, content: str) -> Optional[Dict[str, Any]]:
        match = ANY_FENCE.search(content)
        return _decode_object(match.group(1)) if match else None

    def _from_whole_text(self, content: str) -> Optional[Dict[str, Any]]:
        return _decode_object(content.strip())

    def _from_outer_braces(self, content: str) -> Optional[Dict[str, Any]]:
        start = content.find("{")
        end = content.rfind("}")
        if start == -1 or end <= start:
            return None
        return _decode_object(content[start : end + 1])

    # ==================== Heuristic strategy ====================

    def _from_sections(self, content: str) -> Optional[Dict[str, Any]]:
        """Pull labelled sections out of prose.

        Succeeds only when at least two sections are found; the remaining
        fields are filled with generic placeholders.
        """
        extracted: Dict[str, Any] = {}
        for field, patterns in self._section_patterns.items():
            for pattern in patterns:
                match = pattern.search(content)
                if match:
                    extracted[field] = match.group(1).strip()
                    break

        if len(extracted) < MIN_SECTIONS_FOUND:
            return None

        for field, default in self.section_defaults.items():
            extracted.setdefault(field, default)
        return extracted


def _decode_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        decoded = json.loads(candidate)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None
