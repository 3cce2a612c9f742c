"""Document text extraction for resumes.

- PlainTextExtractor: UTF-8 text and markdown files
- PdfTextExtractor: PDF text via pdfplumber
- DocumentTextExtractor: Dispatches on file suffix

Word documents are not handled; callers needing them inject their own
TextExtractor.
"""

from pathlib import Path
from typing import Dict, Optional, Protocol

import pdfplumber
import structlog

logger = structlog.get_logger()


class TextExtractionError(Exception):
    """Raised when a document cannot be turned into text."""


class TextExtractor(Protocol):
    def extract(self, path: Path) -> str:
        """Return the document's text.

        Raises:
            TextExtractionError: If the document cannot be read
        """
        ...


class PlainTextExtractor:
    """Reads UTF-8 text documents."""

    def extract(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TextExtractionError(f"Failed to read {path.name}: {e}")


class PdfTextExtractor:
    """Extracts page text from PDFs with pdfplumber."""

    def extract(self, path: Path) -> str:
        if not path.exists():
            raise TextExtractionError(f"PDF file not found: {path}")

        try:
            with pdfplumber.open(path) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            logger.error("pdf_text_extraction_failed", error=str(e), path=str(path))
            raise TextExtractionError(f"Failed to read PDF {path.name}: {e}")

        text = "\n".join(p for p in pages if p.strip())
        logger.debug("pdf_text_extracted", pages=len(pages), text_length=len(text))
        return text


class DocumentTextExtractor:
    """Picks an extractor by file suffix."""

    def __init__(self, extractors: Optional[Dict[str, TextExtractor]] = None):
        plain = PlainTextExtractor()
        self.extractors: Dict[str, TextExtractor] = extractors or {
            ".txt": plain,
            ".md": plain,
            ".pdf": PdfTextExtractor(),
        }

    def extract(self, path: Path) -> str:
        extractor = self.extractors.get(path.suffix.lower())
        if extractor is None:
            raise TextExtractionError(f"Unsupported resume format: {path.suffix}")
        return extractor.extract(path)
