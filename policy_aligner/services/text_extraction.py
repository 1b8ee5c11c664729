"""Plain-text extraction and sentence-based sectioning of uploaded documents."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
SECTION_SEPARATOR = ". "
DEFAULT_MAX_SECTION_LENGTH = 1000


class TextExtractionError(Exception):
    """Raised when a stored document cannot be decoded into text."""


@dataclass(frozen=True)
class TextSection:
    text: str
    start: int
    end: int


def _extract_pdf(path: Path) -> str:
    from pypdf import PdfReader

    reader = PdfReader(str(path))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n\n".join(pages)


def _extract_docx(path: Path) -> str:
    from docx import Document as WordDocument

    document = WordDocument(str(path))
    paragraphs = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
    return "\n\n".join(paragraphs)


def _extract_plain_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


_EXTRACTORS = {
    ".pdf": _extract_pdf,
    ".docx": _extract_docx,
    ".doc": _extract_docx,
    ".txt": _extract_plain_text,
}


def extract_text(path: Path, file_type: str | None = None) -> str:
    """Return the plain text of ``path``, choosing a decoder by extension."""

    suffix = (file_type or path.suffix).lower()
    extractor = _EXTRACTORS.get(suffix)
    if extractor is None:
        raise TextExtractionError(f"No text extractor registered for '{suffix}' files")
    try:
        return extractor(path)
    except Exception as exc:
        raise TextExtractionError(f"Failed to extract text from {path.name}: {exc}") from exc


def split_text_into_sections(
    text: str, max_section_length: int = DEFAULT_MAX_SECTION_LENGTH
) -> list[TextSection]:
    """Group sentences into sections no longer than ``max_section_length``.

    Sentences are joined with ". " and a new section starts whenever the next
    sentence would push the current one past the limit. A single sentence longer
    than the limit becomes its own section. Offsets refer to ``text``: ``start``
    is where the first sentence begins and ``end`` is where the last one ends.
    Sentences are located with a forward-moving cursor so repeated sentences map
    to successive occurrences.
    """

    sections: list[TextSection] = []
    current: list[str] = []
    current_length = 0
    section_start = 0
    section_end = 0
    cursor = 0

    for fragment in SENTENCE_BOUNDARY.split(text):
        sentence = fragment.strip()
        if not sentence:
            continue

        position = text.find(sentence, cursor)
        if position < 0:
            position = cursor
        sentence_end = position + len(sentence)
        cursor = sentence_end

        added_length = len(sentence) + (len(SECTION_SEPARATOR) if current else 0)
        if current and current_length + added_length > max_section_length:
            sections.append(TextSection(SECTION_SEPARATOR.join(current), section_start, section_end))
            current = []
            current_length = 0
            added_length = len(sentence)

        if not current:
            section_start = position
        current.append(sentence)
        current_length += added_length
        section_end = sentence_end

    if current:
        sections.append(TextSection(SECTION_SEPARATOR.join(current), section_start, section_end))

    return sections
