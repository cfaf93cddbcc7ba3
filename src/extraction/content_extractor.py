# src/extraction/content_extractor.py - v1
"""Single entry point for clean content extraction.

Keeps source text strictly apart from metadata: sidecar files are never
read as content, composite cards only expose their delimited sections,
and every extracted body can be checked for leaked metadata with
``validate`` before it is shown or indexed.

Usage:
    from orcsindex.extraction.content_extractor import extract, validate
    clean = extract(raw_bytes, "report.card.txt")
    if not validate(clean.content):
        ...  # render a contamination error
"""

from __future__ import annotations

import logging
import re

from orcsindex.core.models import CleanContent, Diagnostic, IntegrityResult
from orcsindex.extraction.extractor_factory import classify, extractor_for
from orcsindex.parsing.inline_tags import strip_inline_tags

logger = logging.getLogger(__name__)

UUID_RE = re.compile(
    r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}", re.IGNORECASE
)
YAML_LINE_RE = re.compile(r"^[a-z_]+:\s", re.MULTILINE)
TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}", re.IGNORECASE)

_CONTAMINATION_CHECKS: dict[str, re.Pattern[str]] = {
    "uuid": UUID_RE,
    "yaml_key": YAML_LINE_RE,
    "timestamp": TIMESTAMP_RE,
}

MIN_TOKEN_LENGTH = 3

__all__ = [
    "classify",
    "compare_integrity",
    "extract",
    "is_metadata_file",
    "is_source_file",
    "strip_inline_tags",
    "validate",
    "validation_diagnostics",
]


def extract(raw: bytes | str, filename: str) -> CleanContent:
    """Extract clean content from any file. Never raises on bad content."""
    return extractor_for(filename).extract(raw, filename)


def is_source_file(filename: str) -> bool:
    """True for files whose content may be searched or displayed."""
    return classify(filename) in ("source_document", "composite_card")


def is_metadata_file(filename: str) -> bool:
    """True for sidecar files that must never be treated as content."""
    return classify(filename) == "metadata_sidecar"


def _tripped_checks(content: str) -> list[str]:
    return [name for name, pattern in _CONTAMINATION_CHECKS.items() if pattern.search(content)]


def validation_diagnostics(content: str, source: str | None = None) -> list[Diagnostic]:
    """One error diagnostic per contamination check the content trips."""
    tripped = _tripped_checks(content)
    return [
        Diagnostic(
            level="error",
            code="contamination",
            message=f"Extracted content contains metadata ({name})",
            source=source,
        )
        for name in tripped
    ]


def validate(content: str, source: str | None = None) -> bool:
    """Check extracted content for leaked metadata.

    Returns False when the content holds a UUID, a ``key: `` line at the
    start of a line, or an ISO-8601 timestamp.
    """
    tripped = _tripped_checks(content)
    if tripped:
        logger.error(
            "Metadata contamination detected in clean content for %s: %s",
            source or "<content>",
            ", ".join(tripped),
        )
        return False
    return True


def _normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _unique_missing(words: list[str], other: set[str]) -> list[str]:
    result: list[str] = []
    seen: set[str] = set()
    for word in words:
        if len(word) < MIN_TOKEN_LENGTH or word in other or word in seen:
            continue
        seen.add(word)
        result.append(word)
    return result


def compare_integrity(card_content: str, original_content: str) -> IntegrityResult:
    """Compare a card body (tags stripped) with its original source text.

    Diagnostic only: reports words missing from the card and words the
    card added, tokens of three characters or more, deduplicated, in
    order of first appearance.
    """
    normalized_card = _normalize_whitespace(strip_inline_tags(card_content))
    normalized_original = _normalize_whitespace(original_content)

    if normalized_card == normalized_original:
        return IntegrityResult(is_valid=True)

    original_words = normalized_original.split()
    card_words = normalized_card.split()

    return IntegrityResult(
        is_valid=False,
        missing_text=_unique_missing(original_words, set(card_words)),
        extra_text=_unique_missing(card_words, set(original_words)),
        original_content=normalized_original,
        card_content=normalized_card,
    )
