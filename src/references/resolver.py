# src/references/resolver.py - v1
"""Resolve stored references against current document text.

Character ranges are checked against the annotation's stored text. When
the document was edited upstream and the range no longer holds that
text, the first verbatim occurrence of the text is used instead
(re-anchoring). If the text occurs several times the first one wins and
``ResolvedSpan.occurrences`` reports how many there were, so callers can
flag ambiguous re-anchors. Cell references are ordinal: a cell either
exists at (row, col) or the reference is broken.

All functions are pure; references may be resolved in parallel.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal

from orcsindex.core.models import BrokenSpan, CellReference, ResolvedSpan, SpanReference
from orcsindex.extraction.table_reader import cell_value, read_table
from orcsindex.references.reference_string import format_span_reference, parse_reference

logger = logging.getLogger(__name__)

Role = Literal["source", "target"]


def _broken_reason(role: Role) -> Literal["missing_source_entity", "missing_target_entity"]:
    return "missing_target_entity" if role == "target" else "missing_source_entity"


def resolve(
    reference: str,
    document_text: str,
    stored_text: str | None = None,
    role: Role = "source",
) -> ResolvedSpan | BrokenSpan:
    """Resolve a reference string against the current document text.

    Args:
        reference: ``id@start-end`` or ``id[row,col]``.
        document_text: Current clean content of the referenced document.
        stored_text: Text the annotation was created against. When None,
            a character range is valid as long as it is within bounds.
        role: Which end of a link this reference anchors; selects the
            broken reason.

    Returns:
        ResolvedSpan (valid or re-anchored) or BrokenSpan.

    Raises:
        ValueError: If document_text is None.
        ReferenceSyntaxError: If the reference string is malformed.
    """
    if document_text is None:
        raise ValueError(f"Cannot resolve {reference!r} against a missing document")

    parsed = parse_reference(reference)
    if isinstance(parsed, CellReference):
        return _resolve_cell(reference, parsed, document_text, role)
    return _resolve_span(reference, parsed, document_text, stored_text, role)


def _resolve_span(
    reference: str,
    parsed: SpanReference,
    document_text: str,
    stored_text: str | None,
    role: Role,
) -> ResolvedSpan | BrokenSpan:
    in_bounds = parsed.end <= len(document_text)
    current = document_text[parsed.start:parsed.end] if in_bounds else None

    if stored_text is None:
        if current is not None:
            return ResolvedSpan(
                reference=reference,
                document_id=parsed.document_id,
                status="valid",
                start=parsed.start,
                end=parsed.end,
                text=current,
            )
        return BrokenSpan(
            reference=reference,
            document_id=parsed.document_id,
            reason=_broken_reason(role),
            details=f"Range {parsed.start}-{parsed.end} is outside a document of length {len(document_text)}",
        )

    if current == stored_text:
        return ResolvedSpan(
            reference=reference,
            document_id=parsed.document_id,
            status="valid",
            start=parsed.start,
            end=parsed.end,
            text=stored_text,
        )

    position = document_text.find(stored_text) if stored_text else -1
    if position == -1:
        logger.info("Reference %s is broken: text %r no longer in document", reference, stored_text)
        return BrokenSpan(
            reference=reference,
            document_id=parsed.document_id,
            reason=_broken_reason(role),
            details=f"Text {stored_text!r} not found in {parsed.document_id}",
        )

    start, end = position, position + len(stored_text)
    occurrences = document_text.count(stored_text)
    if occurrences > 1:
        logger.warning(
            "Reference %s re-anchored to first of %d occurrences of %r",
            reference, occurrences, stored_text,
        )
    else:
        logger.debug("Reference %s re-anchored to %d-%d", reference, start, end)
    return ResolvedSpan(
        reference=format_span_reference(parsed.document_id, start, end),
        document_id=parsed.document_id,
        status="reanchored",
        start=start,
        end=end,
        text=stored_text,
        occurrences=occurrences,
    )


def _resolve_cell(
    reference: str,
    parsed: CellReference,
    document_text: str,
    role: Role,
) -> ResolvedSpan | BrokenSpan:
    value = cell_value(read_table(document_text), parsed.row, parsed.col)
    if value is None:
        return BrokenSpan(
            reference=reference,
            document_id=parsed.document_id,
            reason=_broken_reason(role),
            details=f"No cell at row {parsed.row}, column {parsed.col}",
        )
    return ResolvedSpan(
        reference=reference,
        document_id=parsed.document_id,
        status="valid",
        row=parsed.row,
        col=parsed.col,
        text=value,
    )


def resolve_many(
    items: Iterable[tuple[str, str, str | None]],
    role: Role = "source",
) -> list[ResolvedSpan | BrokenSpan]:
    """Resolve (reference, document_text, stored_text) triples in order."""
    return [resolve(ref, text, stored, role) for ref, text, stored in items]
