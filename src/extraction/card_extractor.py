# src/extraction/card_extractor.py - v1
"""Composite card extractor.

Pulls the original and user-added sections out of a ``.card.txt`` file
using exact-line delimiters. A card without the original delimiters is
still returned in full so legacy or damaged cards remain viewable; the
result carries a warning diagnostic instead of raising.
"""

from __future__ import annotations

import logging

from orcsindex.core.models import CleanContent, Diagnostic, FileClass, SourceType
from orcsindex.extraction.base_extractor import BaseContentExtractor
from orcsindex.extraction.source_extractor import source_type_for
from orcsindex.parsing.card_format import (
    METADATA_END,
    METADATA_START,
    ORIGINAL_END,
    ORIGINAL_START,
    USER_ADDED_END,
    USER_ADDED_START,
    read_quoted_fields,
)

logger = logging.getLogger(__name__)


def find_section(lines: list[str], start_marker: str, end_marker: str) -> tuple[int, int] | None:
    """Return (start, end) line indexes of a delimiter pair, else None.

    A delimiter must occupy a whole line; the end marker must follow the
    start marker.
    """
    start = _find_line(lines, start_marker, 0)
    if start is None:
        return None
    end = _find_line(lines, end_marker, start + 1)
    if end is None:
        return None
    return start, end


def _find_line(lines: list[str], marker: str, offset: int) -> int | None:
    for idx in range(offset, len(lines)):
        if lines[idx].rstrip("\r") == marker:
            return idx
    return None


def section_text(text: str, start_marker: str, end_marker: str) -> str | None:
    """Text strictly between a delimiter pair, trimmed; None if absent."""
    lines = text.split("\n")
    bounds = find_section(lines, start_marker, end_marker)
    if bounds is None:
        return None
    start, end = bounds
    return "\n".join(lines[start + 1:end]).strip()


def card_metadata(text: str) -> dict[str, str]:
    """Quoted ``key: "value"`` fields from the card's metadata block.

    Content sections are excluded so a quoted line inside the original
    document can never be mistaken for card metadata.
    """
    block = section_text(text, METADATA_START, METADATA_END)
    if block is None:
        lines = text.split("\n")
        cut = _find_line(lines, ORIGINAL_START, 0)
        block = "\n".join(lines[:cut] if cut is not None else lines)
    return read_quoted_fields(block)


class CompositeCardExtractor(BaseContentExtractor):
    """Extractor for ``.card.txt`` composite cards."""

    @property
    def file_class(self) -> FileClass:
        return "composite_card"

    def extract(self, raw: bytes | str, filename: str) -> CleanContent:
        text = self._read_content(raw)
        original = section_text(text, ORIGINAL_START, ORIGINAL_END)

        if original is None:
            message = f"Card file {filename} missing content delimiters, using full content"
            logger.warning(message)
            return CleanContent(
                content=text.strip(),
                source_type=source_type_for(filename),
                has_metadata=True,
                diagnostics=[
                    Diagnostic(
                        level="warning",
                        code="missing_delimiters",
                        message=message,
                        source=filename,
                    )
                ],
            )

        user_added = section_text(text, USER_ADDED_START, USER_ADDED_END)
        source_file = card_metadata(text).get("source_file")
        return CleanContent(
            content=original,
            user_added_content=user_added,
            source_type=_embedded_source_type(source_file),
            has_metadata=True,
            original_filename=source_file or None,
        )


def _embedded_source_type(source_file: str | None) -> SourceType | None:
    if not source_file:
        return None
    if source_file.endswith(".csv"):
        return "csv"
    if source_file.endswith(".txt"):
        return "text"
    return None
