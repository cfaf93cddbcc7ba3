# src/index/builder.py - v2
"""MasterIndex builder: one full, single-pass build per call.

Every rebuild starts from scratch and returns a new frozen snapshot; no
previous index is patched. Broken links, cards and orphaned sidecars are
reported as BrokenReference entries and never stop the build.

When current document text is supplied, every stored annotation span is
resolved against it: entity references, link provenance offsets and
snippet offsets. Snippets and links carry the text they were created
against, so drifted spans are re-anchored; a span whose document is
present but whose text is gone becomes a BrokenReference.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Literal

from orcsindex.core.kinds import TAG_KINDS
from orcsindex.core.models import (
    BrokenReference,
    BrokenSpan,
    Entity,
    IndexedFile,
    IndexStats,
    Link,
    MasterIndex,
    ReferenceCheck,
    ResolvedSpan,
    Snippet,
)
from orcsindex.references.reference_string import (
    ReferenceSyntaxError,
    format_span_reference,
    parse_reference,
)
from orcsindex.references.resolver import resolve

logger = logging.getLogger(__name__)

INDEX_VERSION = "2025.001"

_DOCUMENT_KINDS = ("txt", "csv", "orcs_card")


def build_master_index(
    files: list[IndexedFile],
    entities: list[Entity],
    links: list[Link],
    snippets: list[Snippet],
    cards: Iterable[str] | None = None,
    version: str = INDEX_VERSION,
    documents: Mapping[str, str] | None = None,
) -> MasterIndex:
    """Build a MasterIndex snapshot from consistent input lists.

    Args:
        files: Every indexed file, sources and sidecars alike.
        entities: Current entity records.
        links: Current link records.
        snippets: Current snippet records.
        cards: Known card ids. When None, the ``card_uuid`` of each
            composite card file is used.
        version: Index format version stamped on the snapshot.
        documents: Document id -> current clean content. When given,
            stored annotation spans are resolved and recorded as
            ``reference_checks``.

    Returns:
        Frozen MasterIndex with broken references and stats.
    """
    card_ids = set(cards) if cards is not None else {
        f.card_uuid for f in files if f.kind == "orcs_card" and f.card_uuid
    }

    broken: list[BrokenReference] = []
    broken += _check_links(links, {e.id for e in entities})
    broken += _check_cards(files, snippets, card_ids)
    broken += _check_orphans(files)

    checks: list[ReferenceCheck] = []
    if documents is not None:
        checks = check_annotation_references(entities, links, snippets, documents)
        broken += _check_drift(checks, documents)

    stats = IndexStats(
        total_files=len(files),
        total_entities=len(entities),
        total_links=len(links),
        total_snippets=len(snippets),
        broken_reference_count=len(broken),
        reanchored_reference_count=_count_reanchored(checks),
        entity_counts=dict(Counter(e.entity_type for e in entities)),
    )

    index = MasterIndex(
        version=version,
        last_updated=datetime.now(timezone.utc),
        files=list(files),
        entities=list(entities),
        links=list(links),
        snippets=list(snippets),
        broken_references=broken,
        reference_checks=checks,
        stats=stats,
    )
    logger.info(
        "Index built: %d files, %d entities, %d links, %d snippets, %d broken",
        stats.total_files, stats.total_entities, stats.total_links,
        stats.total_snippets, stats.broken_reference_count,
    )
    return index


def _check_links(links: list[Link], entity_ids: set[str]) -> list[BrokenReference]:
    broken: list[BrokenReference] = []
    for link in links:
        if link.source_entity_id not in entity_ids:
            broken.append(BrokenReference(
                reference_id=link.id,
                reason="missing_source_entity",
                details=f"Source entity {link.source_entity_id} not found",
                file_path=link.file_path,
            ))
        if link.target_entity_id not in entity_ids:
            broken.append(BrokenReference(
                reference_id=link.id,
                reason="missing_target_entity",
                details=f"Target entity {link.target_entity_id} not found",
                file_path=link.file_path,
            ))
    return broken


def _check_cards(
    files: list[IndexedFile],
    snippets: list[Snippet],
    card_ids: set[str],
) -> list[BrokenReference]:
    broken: list[BrokenReference] = []
    for f in files:
        if f.card_uuid and f.card_uuid not in card_ids:
            broken.append(BrokenReference(
                reference_id=f.id,
                reason="missing_card",
                details=f"Card {f.card_uuid} claimed by {f.name} not found",
                file_path=f.path,
            ))
    for snippet in snippets:
        if snippet.card_id not in card_ids:
            broken.append(BrokenReference(
                reference_id=snippet.id,
                reason="missing_card",
                details=f"Card {snippet.card_id} for snippet not found",
                file_path=None,
            ))
    return broken


def _check_orphans(files: list[IndexedFile]) -> list[BrokenReference]:
    """Sidecars that reference documents, none of which still exist.

    A sidecar that references nothing is an unreferenced annotation, a
    normal state, and is not reported.
    """
    current: set[str] = set()
    for f in files:
        if f.kind in _DOCUMENT_KINDS:
            current.add(f.name)
            if f.card_uuid:
                current.add(f.card_uuid)

    broken: list[BrokenReference] = []
    for f in files:
        if f.kind not in TAG_KINDS or not f.referenced_documents:
            continue
        if not any(doc in current for doc in f.referenced_documents):
            broken.append(BrokenReference(
                reference_id=f.id,
                reason="orphaned_file",
                details=(
                    f"{f.name} references only missing documents: "
                    f"{', '.join(f.referenced_documents)}"
                ),
                file_path=f.path,
            ))
    return broken


def _resolve_stored(
    reference: str,
    documents: Mapping[str, str],
    stored_text: str | None,
    missing_reason: Literal["missing_source_entity", "missing_card"] = "missing_source_entity",
) -> ResolvedSpan | BrokenSpan:
    try:
        document_id = parse_reference(reference).document_id
    except ReferenceSyntaxError as exc:
        logger.warning("Malformed reference %r: %s", reference, exc)
        return BrokenSpan(
            reference=reference,
            document_id="",
            reason="missing_source_entity",
            details=str(exc),
        )
    text = documents.get(document_id)
    if text is None:
        return BrokenSpan(
            reference=reference,
            document_id=document_id,
            reason=missing_reason,
            details=f"Document {document_id} not found",
        )
    return resolve(reference, text, stored_text)


def check_annotation_references(
    entities: list[Entity],
    links: list[Link],
    snippets: list[Snippet],
    documents: Mapping[str, str],
) -> list[ReferenceCheck]:
    """Resolve every stored annotation span against current document text.

    Entity references carry no stored text and are checked for bounds
    only. Link provenance and snippets are checked against the text they
    were created on, and re-anchored when it moved. Links without
    offsets are skipped.
    """
    checks: list[ReferenceCheck] = []
    for entity in entities:
        for reference in entity.references:
            checks.append(ReferenceCheck(
                annotation_id=entity.id,
                annotation_kind="entity",
                result=_resolve_stored(reference, documents, None),
                file_path=entity.file_path,
            ))
    for link in links:
        provenance = link.provenance
        if provenance is None or provenance.offsets is None:
            continue
        reference = format_span_reference(
            provenance.source_card_id, provenance.offsets.start, provenance.offsets.end,
        )
        checks.append(ReferenceCheck(
            annotation_id=link.id,
            annotation_kind="link",
            result=_resolve_stored(reference, documents, provenance.text, "missing_card"),
            file_path=link.file_path,
        ))
    for snippet in snippets:
        reference = format_span_reference(snippet.card_id, snippet.offsets.start, snippet.offsets.end)
        checks.append(ReferenceCheck(
            annotation_id=snippet.id,
            annotation_kind="snippet",
            result=_resolve_stored(reference, documents, snippet.text, "missing_card"),
        ))
    reanchored = _count_reanchored(checks)
    if reanchored:
        logger.info("%d of %d annotation references re-anchored", reanchored, len(checks))
    return checks


def _count_reanchored(checks: list[ReferenceCheck]) -> int:
    return sum(
        1 for c in checks
        if isinstance(c.result, ResolvedSpan) and c.result.status == "reanchored"
    )


def _check_drift(checks: list[ReferenceCheck], documents: Mapping[str, str]) -> list[BrokenReference]:
    """Broken spans into documents that still exist.

    Spans into missing documents are already covered by the card and
    orphan checks.
    """
    broken: list[BrokenReference] = []
    for check in checks:
        result = check.result
        if isinstance(result, BrokenSpan) and result.document_id in documents:
            broken.append(BrokenReference(
                reference_id=check.annotation_id,
                reason=result.reason,
                details=f"{check.annotation_kind} reference {result.reference}: {result.details}",
                file_path=check.file_path,
            ))
    return broken


def validate_entity_references(
    index: MasterIndex,
    documents: Mapping[str, str],
    stored_texts: Mapping[str, str] | None = None,
) -> list[ResolvedSpan | BrokenSpan]:
    """Re-check every entity reference against current document text.

    Args:
        index: Snapshot whose entities are checked.
        documents: Document id -> current clean content.
        stored_texts: Optional reference -> text the annotation was
            created against; enables re-anchoring.

    Returns:
        One result per reference string, in entity order.
    """
    texts = stored_texts or {}
    return [
        _resolve_stored(reference, documents, texts.get(reference))
        for entity in index.entities
        for reference in entity.references
    ]
