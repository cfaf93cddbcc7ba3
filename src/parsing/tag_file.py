# src/parsing/tag_file.py - v2
"""Tag sidecar files (``*.entity.txt``, ``*.relate.txt``, ...).

A tag file is a list of ``key: "value"`` lines plus bracketed lists and
one-line JSON objects:

    id: "7f0c..."
    type: "relationship"
    name: "employs"
    displayName: "Bob"
    entityType: "person"
    sourceCard: "c1d2..."
    sourceOffsets: "10-13"
    sourceText: "Bob"
    isRelationship: "true"
    isAttribute: "false"
    isNormalization: "false"
    properties: {"since": "2019"}
    aliases: ["Bob", "Bobby"]
    references: ["report.txt@10-13"]
    connectedEntities: [
      {id: "e1", direction: 1},
      {id: "e2", direction: 1}
    ]

Quoted values use JSON string escapes. Older files without the flag,
offset or property lines still load; the missing fields take their
defaults. Parsing never raises: a file without ``id`` or ``name`` yields
None.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field

from orcsindex.core.kinds import TagKind, UnknownKindError, resolve_tag_kind
from orcsindex.core.models import Direction, Entity, Link, Offsets, Provenance
from orcsindex.parsing.card_format import QUOTED_VALUE, quote_value, read_quoted_fields, unquote_value

logger = logging.getLogger(__name__)

_LIST_RE_TEMPLATE = rf"{{key}}:\s*\[((?:\s*{QUOTED_VALUE}\s*,?)*)\s*\]"
_QUOTED_RE = re.compile(QUOTED_VALUE)
_PROPERTIES_RE = re.compile(r"^\s*properties:\s*(\{.*\})\s*$", re.MULTILINE)
_OFFSETS_RE = re.compile(r"^(\d+)-(\d+)$")
_CONNECTED_RE = re.compile(r"connectedEntities:\s*\[([\s\S]*?)\]\s*$", re.MULTILINE)
_CONNECTED_ITEM_RE = re.compile(rf"id:\s*({QUOTED_VALUE})[\s\S]*?direction:\s*(\d)")

# Numeric direction codes used in tag files.
DIRECTION_CODES: dict[int, Direction] = {
    0: "none",
    1: "forward",
    2: "backward",
    3: "bidirectional",
}
_CODE_FOR_DIRECTION = {v: k for k, v in DIRECTION_CODES.items()}


@dataclass
class TagRecord:
    """Raw fields of one tag file, kind already resolved."""

    id: str
    name: str
    kind: TagKind
    file_path: str | None = None
    display_name: str | None = None
    entity_type: str = "entity"
    source_card: str | None = None
    source_offsets: tuple[int, int] | None = None
    source_text: str | None = None
    is_relationship: bool | None = None
    is_attribute: bool | None = None
    is_normalization: bool = False
    properties: dict[str, str] = field(default_factory=dict)
    aliases: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    connected: list[tuple[str, int]] = field(default_factory=list)


def _quoted_list(text: str, key: str) -> list[str]:
    match = re.search(_LIST_RE_TEMPLATE.format(key=key), text)
    if not match:
        return []
    values = (unquote_value(token) for token in _QUOTED_RE.findall(match.group(1)))
    return [v for v in values if v]


def _flag(fields: dict[str, str], key: str) -> bool | None:
    value = fields.get(key)
    if value is None:
        return None
    return value.strip().lower() == "true"


def _properties(text: str, file_path: str | None) -> dict[str, str]:
    match = _PROPERTIES_RE.search(text)
    if not match:
        return {}
    try:
        raw = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        logger.warning("Tag file %s has unreadable properties (%s); ignored", file_path, e)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Tag file %s properties are not an object; ignored", file_path)
        return {}
    return {str(k): str(v) for k, v in raw.items()}


def _offsets(value: str | None, file_path: str | None) -> tuple[int, int] | None:
    if not value:
        return None
    match = _OFFSETS_RE.match(value.strip())
    if not match:
        logger.warning("Tag file %s has malformed sourceOffsets %r; ignored", file_path, value)
        return None
    return int(match.group(1)), int(match.group(2))


def parse_tag_file(text: str, expected_kind: TagKind, file_path: str | None = None) -> TagRecord | None:
    """Parse a tag file. The declared ``type`` wins over the directory kind."""
    fields = read_quoted_fields(text)
    tag_id, name = fields.get("id"), fields.get("name")
    if not tag_id or not name:
        logger.debug("Tag file %s has no id or name; skipped", file_path)
        return None

    kind = expected_kind
    declared = fields.get("type")
    if declared:
        try:
            kind = resolve_tag_kind(declared)
        except UnknownKindError:
            logger.warning("Tag file %s declares unknown type %r; using %s", file_path, declared, expected_kind)

    connected: list[tuple[str, int]] = []
    block = _CONNECTED_RE.search(text)
    if block:
        connected = [
            (unquote_value(m.group(1)), int(m.group(2)))
            for m in _CONNECTED_ITEM_RE.finditer(block.group(1))
        ]

    return TagRecord(
        id=tag_id,
        name=name,
        kind=kind,
        file_path=file_path,
        display_name=fields.get("displayName") or None,
        entity_type=fields.get("entityType", "entity"),
        source_card=fields.get("sourceCard"),
        source_offsets=_offsets(fields.get("sourceOffsets"), file_path),
        source_text=fields.get("sourceText"),
        is_relationship=_flag(fields, "isRelationship"),
        is_attribute=_flag(fields, "isAttribute"),
        is_normalization=bool(_flag(fields, "isNormalization")),
        properties=_properties(text, file_path),
        aliases=_quoted_list(text, "aliases"),
        references=_quoted_list(text, "references"),
        connected=connected,
    )


def to_entity(record: TagRecord) -> Entity:
    return Entity(
        id=record.id,
        entity_type=record.entity_type,
        canonical_name=record.name,
        display_name=record.display_name,
        aliases=record.aliases,
        properties=record.properties,
        references=record.references,
        file_path=record.file_path,
    )


def _provenance(record: TagRecord) -> Provenance | None:
    if not record.source_card:
        return None
    offsets = None
    if record.source_offsets is not None:
        start, end = record.source_offsets
        offsets = Offsets(start=start, end=end)
    return Provenance(source_card_id=record.source_card, offsets=offsets, text=record.source_text)


def to_links(record: TagRecord) -> list[Link]:
    """Expand a relationship/attribute tag into pairwise links.

    A tag joining exactly two entities gives one link carrying the tag
    id; larger groups give one link per pair with a composite id. The
    stronger of the two direction codes wins. Explicit flag lines
    override the flags implied by the tag kind.
    """
    pairs = [
        (record.connected[i], record.connected[j])
        for i in range(len(record.connected))
        for j in range(i + 1, len(record.connected))
    ]
    is_relationship = record.is_relationship
    if is_relationship is None:
        is_relationship = record.kind == "relationship"
    is_attribute = record.is_attribute
    if is_attribute is None:
        is_attribute = record.kind == "attribute"
    provenance = _provenance(record)

    links: list[Link] = []
    for (src_id, src_dir), (tgt_id, tgt_dir) in pairs:
        link_id = record.id if len(pairs) == 1 else f"{src_id}-{record.id}-{tgt_id}"
        links.append(Link(
            id=link_id,
            source_entity_id=src_id,
            target_entity_id=tgt_id,
            predicate=record.name,
            is_relationship=is_relationship,
            is_attribute=is_attribute,
            is_normalization=record.is_normalization,
            direction=DIRECTION_CODES.get(max(src_dir, tgt_dir), "forward"),
            properties=dict(record.properties),
            provenance=provenance,
            file_path=record.file_path,
        ))
    return links


def _format_list(values: list[str]) -> str:
    return "[" + ", ".join(quote_value(v) for v in values) + "]"


def _format_properties(properties: dict[str, str]) -> str:
    return "properties: " + json.dumps(properties, ensure_ascii=False, sort_keys=True)


def _format_flag(value: bool) -> str:
    return quote_value("true" if value else "false")


def format_entity_file(entity: Entity) -> str:
    lines = [
        f"id: {quote_value(entity.id)}",
        'type: "entity"',
        f"name: {quote_value(entity.canonical_name)}",
    ]
    if entity.display_name:
        lines.append(f"displayName: {quote_value(entity.display_name)}")
    lines += [
        f"entityType: {quote_value(entity.entity_type)}",
        _format_properties(entity.properties),
        f"aliases: {_format_list(entity.aliases)}",
        f"references: {_format_list(entity.references)}",
        "",
    ]
    return "\n".join(lines)


def format_link_file(link: Link, references: list[str] | None = None) -> str:
    kind = "attribute" if link.is_attribute and not link.is_relationship else "relationship"
    code = _CODE_FOR_DIRECTION[link.direction]
    lines = [
        f"id: {quote_value(link.id)}",
        f'type: "{kind}"',
        f"name: {quote_value(link.predicate)}",
        f"isRelationship: {_format_flag(link.is_relationship)}",
        f"isAttribute: {_format_flag(link.is_attribute)}",
        f"isNormalization: {_format_flag(link.is_normalization)}",
    ]
    if link.provenance is not None:
        lines.append(f"sourceCard: {quote_value(link.provenance.source_card_id)}")
        offsets = link.provenance.offsets
        if offsets is not None:
            lines.append(f'sourceOffsets: "{offsets.start}-{offsets.end}"')
        if link.provenance.text is not None:
            lines.append(f"sourceText: {quote_value(link.provenance.text)}")
    lines += [
        _format_properties(link.properties),
        f"references: {_format_list(references or [])}",
        "connectedEntities: [",
        f"  {{id: {quote_value(link.source_entity_id)}, direction: {code}}},",
        f"  {{id: {quote_value(link.target_entity_id)}, direction: {code}}}",
        "]",
        "",
    ]
    return "\n".join(lines)
