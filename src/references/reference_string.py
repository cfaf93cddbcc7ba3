# src/references/reference_string.py - v1
"""Reference string grammar.

    <documentId>@<start>-<end>    character range, start <= end
    <documentId>[<row>,<col>]     table cell, non-negative integers

Exactly one addressing mode per reference. The document id is matched
non-greedily so ids containing "@" or "[" are cut at the last address.
"""

from __future__ import annotations

import re

from orcsindex.core.models import CellReference, SpanReference

SPAN_REFERENCE_RE = re.compile(r"^(.+?)@(\d+)-(\d+)$")
CELL_REFERENCE_RE = re.compile(r"^(.+?)\[(\d+),(\d+)\]$")


class ReferenceSyntaxError(ValueError):
    """Raised when a string is not a valid reference."""


def parse_reference(reference: str) -> SpanReference | CellReference:
    """Parse a reference string into its addressing mode.

    Raises:
        ReferenceSyntaxError: If the string matches neither mode or a
            character range has start > end.
    """
    span = SPAN_REFERENCE_RE.match(reference)
    if span:
        start, end = int(span.group(2)), int(span.group(3))
        if start > end:
            raise ReferenceSyntaxError(
                f"Reference {reference!r} has start {start} after end {end}"
            )
        return SpanReference(document_id=span.group(1), start=start, end=end)

    cell = CELL_REFERENCE_RE.match(reference)
    if cell:
        return CellReference(
            document_id=cell.group(1), row=int(cell.group(2)), col=int(cell.group(3))
        )

    raise ReferenceSyntaxError(f"Not a reference string: {reference!r}")


def is_reference(reference: str) -> bool:
    """True when the string parses as a reference."""
    try:
        parse_reference(reference)
    except ReferenceSyntaxError:
        return False
    return True


def format_span_reference(document_id: str, start: int, end: int) -> str:
    if start < 0 or end < start:
        raise ReferenceSyntaxError(f"Invalid range {start}-{end}")
    return f"{document_id}@{start}-{end}"


def format_cell_reference(document_id: str, row: int, col: int) -> str:
    if row < 0 or col < 0:
        raise ReferenceSyntaxError(f"Invalid cell [{row},{col}]")
    return f"{document_id}[{row},{col}]"


def document_id_of(reference: str) -> str | None:
    """Document id of a reference, or None when it does not parse."""
    try:
        return parse_reference(reference).document_id
    except ReferenceSyntaxError:
        return None
