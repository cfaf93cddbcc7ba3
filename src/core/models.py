# src/core/models.py - v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from orcsindex.core.kinds import FileKind, resolve_entity_type

EntityType = Literal[
    "person",
    "org",
    "location",
    "selector",
    "date",
    "event",
    "object",
    "concept",
    "entity",
]

Direction = Literal["none", "forward", "backward", "bidirectional"]

BrokenReason = Literal[
    "missing_source_entity",
    "missing_target_entity",
    "missing_card",
    "orphaned_file",
]

FileClass = Literal["source_document", "metadata_sidecar", "composite_card", "unknown"]

SourceType = Literal["text", "csv"]


# === DIAGNOSTICS ===


class Diagnostic(BaseModel):
    """A non-fatal finding attached to a best-effort result."""

    level: Literal["info", "warning", "error"]
    code: str
    message: str
    source: str | None = None


# === DOCUMENTS ===


class CleanContent(BaseModel):
    """Content extracted from a file with all metadata sections removed."""

    content: str
    user_added_content: str | None = None
    source_type: SourceType | None = None
    has_metadata: bool = False
    original_filename: str | None = None
    diagnostics: list[Diagnostic] = Field(default_factory=list)


class IntegrityResult(BaseModel):
    """Word-level comparison between a card body and its original source."""

    is_valid: bool
    missing_text: list[str] = Field(default_factory=list)
    extra_text: list[str] = Field(default_factory=list)
    original_content: str | None = None
    card_content: str | None = None


class OrcsCard(BaseModel):
    """Structured view of a card file."""

    id: str
    title: str
    source: str
    source_hash: str = ""
    citation: str = ""
    classification: str = "Proprietary Information"
    handling: list[str] = Field(default_factory=list)
    created: str
    modified: str
    content: str
    key_value_pairs: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)


# === PARSED MENTIONS ===


class ParsedLink(BaseModel):
    """A single [[type:canonical|display]] mention found in text."""

    type: str
    canonical_name: str
    display_name: str
    start_index: int
    end_index: int
    full_match: str


class InlineTag(BaseModel):
    """A legacy [type:text](uuid) mention found in text."""

    tag_type: str
    text: str
    tag_id: str
    start_index: int
    end_index: int
    full_match: str


# === ANNOTATIONS ===


class Offsets(BaseModel):
    """Character range inside a document's content."""

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> Offsets:
        if self.start > self.end:
            raise ValueError(f"start ({self.start}) must be <= end ({self.end})")
        return self


class Entity(BaseModel):
    """A canonicalized real-world referent."""

    id: str
    entity_type: EntityType = "entity"
    canonical_name: str
    display_name: str | None = None
    aliases: list[str] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)
    references: list[str] = Field(default_factory=list)
    file_path: str | None = None

    @field_validator("entity_type", mode="before")
    @classmethod
    def _map_legacy_type(cls, v: object) -> object:
        return resolve_entity_type(v) if isinstance(v, str) else v


class Provenance(BaseModel):
    """Where a link was asserted.

    ``text`` is the card text under ``offsets`` when the link was created;
    rebuilds use it to detect and re-anchor drift.
    """

    source_card_id: str
    offsets: Offsets | None = None
    text: str | None = None


class Link(BaseModel):
    """Relationship or attribute connecting two entities."""

    id: str
    source_entity_id: str
    target_entity_id: str
    predicate: str
    is_relationship: bool = True
    is_attribute: bool = False
    is_normalization: bool = False
    direction: Direction = "forward"
    properties: dict[str, str] = Field(default_factory=dict)
    provenance: Provenance | None = None
    file_path: str | None = None


class Snippet(BaseModel):
    """Highlighted excerpt of a card with optional commentary."""

    id: str
    card_id: str
    text: str
    offsets: Offsets
    comment: str | None = None
    analyst: str | None = None
    classification: str | None = None
    created: datetime | None = None

    @model_validator(mode="after")
    def _check_non_empty_range(self) -> Snippet:
        if self.offsets.start >= self.offsets.end:
            raise ValueError("snippet offsets must satisfy start < end")
        return self


# === REFERENCES ===


class SpanReference(BaseModel):
    """Parsed `<id>@<start>-<end>` reference."""

    document_id: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)


class CellReference(BaseModel):
    """Parsed `<id>[<row>,<col>]` reference."""

    document_id: str
    row: int = Field(ge=0)
    col: int = Field(ge=0)


class ResolvedSpan(BaseModel):
    """A reference that still points at valid text or cell."""

    reference: str
    document_id: str
    status: Literal["valid", "reanchored"]
    start: int | None = None
    end: int | None = None
    row: int | None = None
    col: int | None = None
    text: str | None = None
    occurrences: int = 1

    @property
    def is_broken(self) -> bool:
        return False


class BrokenSpan(BaseModel):
    """A reference that could not be resolved against current text."""

    reference: str
    document_id: str
    reason: BrokenReason
    details: str

    @property
    def is_broken(self) -> bool:
        return True


class ReferenceCheck(BaseModel):
    """Outcome of resolving one stored annotation reference on rebuild."""

    annotation_id: str
    annotation_kind: Literal["entity", "link", "snippet"]
    result: ResolvedSpan | BrokenSpan
    file_path: str | None = None


# === REFERENCE ANALYSIS ===


class TaggedReference(BaseModel):
    """A legacy inline tag in a document that points at an entity."""

    filename: str
    text: str
    context: str
    start: int
    end: int
    source_type: SourceType = "text"


class UntaggedReference(BaseModel):
    """A plain-text mention that may refer to an entity."""

    filename: str
    text: str
    context: str
    start: int
    end: int
    source_type: SourceType = "text"
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: list[str] = Field(default_factory=list)


class ReferenceAnalysis(BaseModel):
    """Tagged and candidate untagged mentions of one entity."""

    entity_id: str
    tagged: list[TaggedReference] = Field(default_factory=list)
    untagged: list[UntaggedReference] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)


# === SIMILARITY ===


class SimilarMatch(BaseModel):
    """An existing entity that may duplicate a candidate name."""

    entity: Entity
    score: int
    reasons: list[str] = Field(default_factory=list)


# === INDEX ===


class IndexedFile(BaseModel):
    """A file known to the index."""

    id: str
    path: str
    name: str
    kind: FileKind
    hash: str
    timestamp: float = 0.0
    card_uuid: str | None = None
    source_file: str | None = None
    referenced_documents: list[str] = Field(default_factory=list)


class BrokenReference(BaseModel):
    """Diagnostic entry for an annotation whose target is gone."""

    reference_id: str
    reason: BrokenReason
    details: str
    file_path: str | None = None


class IndexStats(BaseModel):
    """Aggregate counts computed once per build."""

    total_files: int = 0
    total_entities: int = 0
    total_links: int = 0
    total_snippets: int = 0
    broken_reference_count: int = 0
    reanchored_reference_count: int = 0
    entity_counts: dict[str, int] = Field(default_factory=dict)


class MasterIndex(BaseModel):
    """Point-in-time snapshot of every indexed file and annotation."""

    model_config = ConfigDict(frozen=True)

    version: str
    last_updated: datetime
    files: list[IndexedFile] = Field(default_factory=list)
    entities: list[Entity] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    snippets: list[Snippet] = Field(default_factory=list)
    broken_references: list[BrokenReference] = Field(default_factory=list)
    reference_checks: list[ReferenceCheck] = Field(default_factory=list)
    stats: IndexStats = Field(default_factory=IndexStats)
