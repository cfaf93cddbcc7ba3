# src/core/kinds.py - v1
"""Closed sets of tag and file kinds plus the legacy alias table.

Older tag files and API payloads used several spellings for the same
kind (``kv_pair``, ``relate``, ``label``, ...). Every spelling is mapped
to a current kind exactly once, here, when data is loaded.
"""

from __future__ import annotations

from typing import Literal, get_args

TagKind = Literal["entity", "relationship", "attribute", "comment", "kv"]

FileKind = Literal[
    "txt",
    "csv",
    "orcs_card",
    "entity",
    "relationship",
    "attribute",
    "comment",
    "kv",
    "unknown",
]

TAG_KINDS: tuple[str, ...] = get_args(TagKind)

# Legacy spelling -> current tag kind.
LEGACY_KIND_ALIASES: dict[str, TagKind] = {
    "entity": "entity",
    "entities": "entity",
    "label": "entity",
    "relationship": "relationship",
    "relationships": "relationship",
    "relate": "relationship",
    "relation": "relationship",
    "attribute": "attribute",
    "attributes": "attribute",
    "attrib": "attribute",
    "data": "attribute",
    "comment": "comment",
    "comments": "comment",
    "kv": "kv",
    "kv_pair": "kv",
    "kv_pairs": "kv",
}

# Sidecar filename suffix -> tag kind. Order matters for suffix matching.
SIDECAR_SUFFIXES: dict[str, TagKind] = {
    ".entity.txt": "entity",
    ".relate.txt": "relationship",
    ".attrib.txt": "attribute",
    ".comment.txt": "comment",
    ".kv.txt": "kv",
}

# Tag kind -> directory name under the user data root.
TAG_DIRECTORIES: dict[TagKind, str] = {
    "entity": "entities",
    "relationship": "relationships",
    "attribute": "attributes",
    "comment": "comments",
    "kv": "kv_pairs",
}

CARD_SUFFIX = ".card.txt"


class UnknownKindError(ValueError):
    """Raised when a tag kind spelling is not in the alias table."""


def resolve_tag_kind(value: str) -> TagKind:
    """Map any current or legacy spelling to a current tag kind."""
    kind = LEGACY_KIND_ALIASES.get(value.strip().lower())
    if kind is None:
        raise UnknownKindError(
            f"Unknown tag kind {value!r}. "
            f"Known: {', '.join(sorted(LEGACY_KIND_ALIASES))}"
        )
    return kind


def file_kind(filename: str) -> FileKind:
    """Classify a filename into a FileKind by suffix."""
    name = filename.lower()
    if name.endswith(CARD_SUFFIX):
        return "orcs_card"
    for suffix, kind in SIDECAR_SUFFIXES.items():
        if name.endswith(suffix):
            return kind
    if name.endswith(".csv"):
        return "csv"
    if name.endswith(".txt"):
        return "txt"
    return "unknown"


# Entity type spellings seen in older tag files -> current entity type.
ENTITY_TYPE_ALIASES: dict[str, str] = {
    "organization": "org",
    "organisation": "org",
    "company": "org",
    "place": "location",
    "loc": "location",
    "phone": "selector",
    "email": "selector",
    "document": "object",
    "thing": "object",
    "idea": "concept",
    "generic": "entity",
    "": "entity",
}


def resolve_entity_type(value: str) -> str:
    """Map a legacy entity type spelling to its current name.

    Unknown spellings are returned lowercased so model validation can
    reject them.
    """
    lowered = value.strip().lower()
    return ENTITY_TYPE_ALIASES.get(lowered, lowered)
