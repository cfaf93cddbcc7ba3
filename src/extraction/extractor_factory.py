# src/extraction/extractor_factory.py - v3
"""Factory: classify a filename and instantiate the matching extractor."""

from __future__ import annotations

import re

from orcsindex.core.models import FileClass
from orcsindex.extraction.base_extractor import BaseContentExtractor, FailClosedExtractor
from orcsindex.extraction.card_extractor import CompositeCardExtractor
from orcsindex.extraction.source_extractor import SourceDocumentExtractor

METADATA_FILE_RE = re.compile(r"\.(entity|relate|attrib|comment|kv)\.txt$", re.IGNORECASE)
CARD_FILE_RE = re.compile(r"\.card\.txt$", re.IGNORECASE)
SOURCE_FILE_RE = re.compile(r"\.(txt|csv)$", re.IGNORECASE)

# Registry maps file class -> extractor class.
_EXTRACTOR_REGISTRY: dict[FileClass, type[BaseContentExtractor]] = {}


def _register_defaults() -> None:
    """Register built-in extractors."""
    for cls in [SourceDocumentExtractor, CompositeCardExtractor]:
        instance = cls()
        _EXTRACTOR_REGISTRY[instance.file_class] = cls


_register_defaults()


def classify(filename: str) -> FileClass:
    """Classify a filename by suffix.

    Sidecar suffixes are tested first because they also end in ``.txt``.
    """
    if METADATA_FILE_RE.search(filename):
        return "metadata_sidecar"
    if CARD_FILE_RE.search(filename):
        return "composite_card"
    if SOURCE_FILE_RE.search(filename):
        return "source_document"
    return "unknown"


def create_extractor(file_class: FileClass) -> BaseContentExtractor:
    """Create an extractor for a file class.

    Metadata sidecars and unknown files always get a fail-closed
    extractor, whatever is registered.
    """
    if file_class in ("metadata_sidecar", "unknown"):
        return FailClosedExtractor(file_class)
    cls = _EXTRACTOR_REGISTRY.get(file_class)
    if cls is None:
        return FailClosedExtractor("unknown")
    return cls()


def extractor_for(filename: str) -> BaseContentExtractor:
    """Shortcut: classify then create."""
    return create_extractor(classify(filename))
