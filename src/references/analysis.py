# src/references/analysis.py - v1
"""Find where an entity is mentioned across source documents.

Two kinds of mention are reported:

- tagged: legacy inline tags ``[type:text](uuid)`` whose uuid is the
  entity id;
- untagged: plain occurrences of the entity name (and optionally its
  aliases) that no tag covers yet, each with a heuristic confidence so
  an analyst can review the likeliest candidates first.

Only source documents and composite cards are searched, and only when
their extracted content passes the contamination check.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from orcsindex.core.models import (
    Diagnostic,
    Entity,
    ReferenceAnalysis,
    SourceType,
    TaggedReference,
    UntaggedReference,
)
from orcsindex.extraction.content_extractor import (
    extract,
    is_source_file,
    validate,
    validation_diagnostics,
)
from orcsindex.parsing.inline_tags import (
    parse_inline_tags,
    strip_inline_tags,
    strip_inline_tags_with_spans,
)

logger = logging.getLogger(__name__)

CONTEXT_RADIUS = 100
UNTAGGED_LIMIT = 20
MIN_TERM_LENGTH = 2

BASE_CONFIDENCE = 0.5
EXACT_BONUS = 0.3
CONTEXT_TYPE_BONUS = 0.1
SHORT_MATCH_PENALTY = 0.2
CAPITALIZED_BONUS = 0.1


def extract_context(content: str, position: int, length: int, radius: int = CONTEXT_RADIUS) -> str:
    """Text around a match, cut back to sentence boundaries when both exist."""
    start = max(0, position - radius)
    end = min(len(content), position + length + radius)
    before = content[start:position]
    match = content[position:position + length]
    after = content[position + length:end]

    sentence_start = before.rfind(".") + 1
    sentence_end = after.find(".")
    if sentence_start > 0 and sentence_end > 0:
        return (before[sentence_start:] + match + after[:sentence_end + 1]).strip()
    return content[start:end].strip()


def _source_type(filename: str) -> SourceType:
    return "csv" if ".csv" in filename.lower() else "text"


def confidence(term: str, matched: str, context: str, entity_type: str) -> float:
    """Heuristic likelihood that ``matched`` refers to the entity."""
    score = BASE_CONFIDENCE
    if matched == term:
        score += EXACT_BONUS
    if entity_type and entity_type.lower() in context.lower():
        score += CONTEXT_TYPE_BONUS
    if len(matched) < 3:
        score -= SHORT_MATCH_PENALTY
    if matched[:1].isupper():
        score += CAPITALIZED_BONUS
    return round(max(0.0, min(1.0, score)), 4)


def _reasons(term: str, matched: str, context: str, entity: Entity, is_alias: bool) -> list[str]:
    reasons = ["Alias match" if is_alias else "Exact name match"]
    if matched == term:
        reasons.append("Case-exact")
    if matched[:1].isupper():
        reasons.append("Proper noun formatting")
    if entity.entity_type and entity.entity_type in context.lower():
        reasons.append(f"Context mentions {entity.entity_type}")
    return reasons


def _overlaps(start: int, end: int, spans: list[tuple[int, int]]) -> bool:
    return any(start < span_end and span_start < end for span_start, span_end in spans)


def find_tagged(entity: Entity, content: str, filename: str, radius: int = CONTEXT_RADIUS) -> list[TaggedReference]:
    return [
        TaggedReference(
            filename=filename,
            text=tag.text,
            context=extract_context(content, tag.start_index, len(tag.full_match), radius),
            start=tag.start_index,
            end=tag.end_index,
            source_type=_source_type(filename),
        )
        for tag in parse_inline_tags(content)
        if tag.tag_id == entity.id
    ]


def find_untagged(
    entity: Entity,
    content: str,
    filename: str,
    include_aliases: bool = False,
    radius: int = CONTEXT_RADIUS,
) -> list[UntaggedReference]:
    """Untagged mentions of the entity name in tag-stripped content.

    Positions are offsets into the stripped content. Matches overlapping
    the display text of any former tag are skipped.
    """
    stripped, tag_spans = strip_inline_tags_with_spans(content)
    terms = [(entity.canonical_name, False)]
    if include_aliases:
        terms += [(alias, True) for alias in entity.aliases]

    found: list[UntaggedReference] = []
    for term, is_alias in terms:
        term = term.strip()
        if len(term) < MIN_TERM_LENGTH:
            continue
        pattern = re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)
        for m in pattern.finditer(stripped):
            if _overlaps(m.start(), m.end(), tag_spans):
                continue
            matched = m.group(0)
            context = extract_context(stripped, m.start(), len(matched), radius)
            found.append(UntaggedReference(
                filename=filename,
                text=matched,
                context=context,
                start=m.start(),
                end=m.end(),
                source_type=_source_type(filename),
                confidence=confidence(term, matched, context, entity.entity_type),
                reasons=_reasons(term, matched, context, entity, is_alias),
            ))
    return found


def _dedupe(references: list[UntaggedReference]) -> list[UntaggedReference]:
    seen: set[tuple[str, int, str]] = set()
    unique: list[UntaggedReference] = []
    for ref in references:
        key = (ref.filename, ref.start, ref.text)
        if key in seen:
            continue
        seen.add(key)
        unique.append(ref)
    return unique


def analyze_references(
    entity: Entity,
    documents: Mapping[str, bytes | str],
    include_aliases: bool = False,
    context_radius: int = CONTEXT_RADIUS,
    limit: int = UNTAGGED_LIMIT,
) -> ReferenceAnalysis:
    """Collect tagged and untagged mentions of an entity.

    Args:
        entity: Entity to look for.
        documents: Filename -> raw file content. Sidecars and unknown
            files are ignored.
        include_aliases: Also search for the entity's aliases.
        context_radius: Characters of context on each side of a match.
        limit: Maximum number of untagged candidates returned.

    Returns:
        ReferenceAnalysis; untagged candidates sorted by confidence,
        highest first. Skipped documents are listed as diagnostics.
    """
    tagged: list[TaggedReference] = []
    untagged: list[UntaggedReference] = []
    diagnostics: list[Diagnostic] = []

    for filename, raw in documents.items():
        if not is_source_file(filename):
            logger.debug("Skipping non-source file %s", filename)
            continue
        clean = extract(raw, filename)
        diagnostics.extend(clean.diagnostics)
        # Legacy tags carry uuids; they are annotations, not leaked metadata
        plain = strip_inline_tags(clean.content)
        if not validate(plain, filename):
            diagnostics.extend(validation_diagnostics(plain, filename))
            continue
        tagged += find_tagged(entity, clean.content, filename, context_radius)
        untagged += find_untagged(entity, clean.content, filename, include_aliases, context_radius)

    ranked = sorted(_dedupe(untagged), key=lambda ref: -ref.confidence)[:limit]
    logger.info(
        "Reference analysis for %s: %d tagged, %d untagged candidates",
        entity.id, len(tagged), len(ranked),
    )
    return ReferenceAnalysis(
        entity_id=entity.id,
        tagged=tagged,
        untagged=ranked,
        diagnostics=diagnostics,
    )
