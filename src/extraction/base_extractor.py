# src/extraction/base_extractor.py - v2
"""Abstract content extractor interface, one implementation per file class."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from orcsindex.core.models import CleanContent, Diagnostic, FileClass

logger = logging.getLogger(__name__)


class BaseContentExtractor(ABC):
    """Unified interface for turning raw file bytes into clean content."""

    @property
    @abstractmethod
    def file_class(self) -> FileClass:
        """The filename class this extractor handles."""

    @abstractmethod
    def extract(self, raw: bytes | str, filename: str) -> CleanContent:
        """Return clean content. Never raises on malformed input."""

    @staticmethod
    def _read_content(raw: bytes | str) -> str:
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return raw


class FailClosedExtractor(BaseContentExtractor):
    """Extractor for files whose content must never be shown or indexed.

    Metadata sidecars and unrecognised files yield empty content and a
    warning, never a partial view of their metadata.
    """

    def __init__(self, file_class: FileClass) -> None:
        self._file_class = file_class

    @property
    def file_class(self) -> FileClass:
        return self._file_class

    def extract(self, raw: bytes | str, filename: str) -> CleanContent:
        if self._file_class == "metadata_sidecar":
            code = "metadata_file"
            message = f"Refusing to extract content from metadata file: {filename}"
        else:
            code = "unknown_file_type"
            message = f"Unknown file type for content extraction: {filename}"
        logger.warning(message)
        return CleanContent(
            content="",
            source_type=None,
            has_metadata=False,
            diagnostics=[
                Diagnostic(level="warning", code=code, message=message, source=filename)
            ],
        )
