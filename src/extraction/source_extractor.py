# src/extraction/source_extractor.py - v2
"""Source document extractor: plain .txt and .csv files pass through trimmed."""

from __future__ import annotations

from orcsindex.core.models import CleanContent, FileClass, SourceType
from orcsindex.extraction.base_extractor import BaseContentExtractor


def source_type_for(filename: str) -> SourceType | None:
    """Infer the source type from a filename extension."""
    name = filename.lower()
    if name.endswith(".csv"):
        return "csv"
    if name.endswith(".txt"):
        return "text"
    return None


class SourceDocumentExtractor(BaseContentExtractor):
    """Extractor for original source documents."""

    @property
    def file_class(self) -> FileClass:
        return "source_document"

    def extract(self, raw: bytes | str, filename: str) -> CleanContent:
        text = self._read_content(raw)
        return CleanContent(
            content=text.strip(),
            source_type=source_type_for(filename),
            has_metadata=False,
        )
