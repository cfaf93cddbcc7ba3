# src/annotations/factory.py - v2
"""Create Entity, Link and Snippet records with validated offsets.

The analyst recorded on a snippet is always passed in by the caller
(typically ``Settings.analyst_name``); nothing here reads ambient state.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from orcsindex.core.models import Direction, Entity, Link, Offsets, Provenance, Snippet

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def create_entity(
    name: str,
    entity_type: str,
    display_name: str | None = None,
    aliases: list[str] | None = None,
    properties: dict[str, str] | None = None,
    references: list[str] | None = None,
) -> Entity:
    """Create a new entity with a fresh id.

    Raises:
        ValueError: If the name is blank.
        pydantic.ValidationError: If the entity type is unknown.
    """
    canonical = name.strip()
    if not canonical:
        raise ValueError("Entity name must not be empty")
    entity = Entity(
        id=_new_id(),
        entity_type=entity_type,
        canonical_name=canonical,
        display_name=display_name,
        aliases=[a.strip() for a in aliases or [] if a.strip()],
        properties=dict(properties or {}),
        references=list(references or []),
    )
    logger.debug("Created entity %s (%s)", entity.id, entity.entity_type)
    return entity


def create_link(
    source_entity_id: str,
    target_entity_id: str,
    predicate: str,
    source_card_id: str,
    is_relationship: bool = True,
    is_attribute: bool = False,
    direction: Direction = "forward",
    properties: dict[str, str] | None = None,
    offsets: tuple[int, int] | None = None,
    document_text: str | None = None,
) -> Link:
    """Create a link asserted in a card.

    Args:
        offsets: Optional (start, end) of the assertion inside
            ``document_text``. The text under them is kept on the
            provenance so later rebuilds can re-anchor the link.
        document_text: Current clean text of the source card; required
            whenever offsets are given.

    Raises:
        ValueError: If offsets are given without document text or fall
            outside ``0 <= start <= end <= len(document_text)``.
    """
    checked: Offsets | None = None
    anchored_text: str | None = None
    if offsets is not None:
        if document_text is None:
            raise ValueError("offsets require the document text they point into")
        start, end = offsets
        if not 0 <= start <= end <= len(document_text):
            raise ValueError(
                f"Invalid offsets {start}-{end} for a document of length {len(document_text)}"
            )
        checked = Offsets(start=start, end=end)
        anchored_text = document_text[start:end]

    link = Link(
        id=_new_id(),
        source_entity_id=source_entity_id,
        target_entity_id=target_entity_id,
        predicate=predicate,
        is_relationship=is_relationship,
        is_attribute=is_attribute,
        direction=direction,
        properties=dict(properties or {}),
        provenance=Provenance(source_card_id=source_card_id, offsets=checked, text=anchored_text),
    )
    logger.debug("Created link %s: %s -[%s]-> %s", link.id, source_entity_id, predicate, target_entity_id)
    return link


def create_snippet(
    card_id: str,
    text: str,
    start: int,
    end: int,
    card_classification: str,
    analyst: str | None = None,
    comment: str | None = None,
    classification: str | None = None,
) -> Snippet:
    """Create a highlighted snippet of a card.

    The snippet inherits the card's classification unless one is given.

    Raises:
        ValueError: If ``start >= end`` or start is negative.
    """
    if start < 0 or start >= end:
        raise ValueError(f"Snippet offsets must satisfy 0 <= start < end, got {start}-{end}")
    return Snippet(
        id=_new_id(),
        card_id=card_id,
        text=text,
        offsets=Offsets(start=start, end=end),
        comment=comment,
        analyst=analyst or None,
        classification=classification or card_classification,
        created=datetime.now(timezone.utc),
    )
