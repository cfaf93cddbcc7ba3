# tests/conftest.py - v2
"""Shared test fixtures for unit and integration tests.

Provides sample entities/links/snippets, card texts and a populated
user data directory under tmp_path. No network or global state.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from orcsindex.core.models import Entity, IndexedFile, Link, Offsets, Provenance, Snippet
from orcsindex.parsing.card_format import format_composite_card

CARD_UUID = "0b6c2f4e-8a51-4d3b-9f21-6c7d8e9fa0b1"
ALICE_ID = "e-alice"
ACME_ID = "e-acme"

REPORT_TEXT = "Alice Smith works at Acme Corp. Acme Corp is based in Springfield."
CSV_TEXT = "name,employer\nAlice Smith,Acme Corp\nBob Jones,Initech\n"


# === FIXTURES: Sample data ===


@pytest.fixture
def report_text() -> str:
    return REPORT_TEXT


@pytest.fixture
def card_text() -> str:
    """Composite card wrapping report.txt, with user notes."""
    return format_composite_card(
        card_uuid=CARD_UUID,
        source_file="report.txt",
        original_content=REPORT_TEXT,
        user_added_content="Follow up on [[person:Alice Smith|Alice]].",
        metadata={"created": "2025-01-15T10:00:00Z"},
    )


@pytest.fixture
def sample_entities() -> list[Entity]:
    return [
        Entity(
            id=ALICE_ID,
            entity_type="person",
            canonical_name="Alice Smith",
            aliases=["Alice"],
            references=["report.txt@0-11"],
        ),
        Entity(
            id=ACME_ID,
            entity_type="org",
            canonical_name="Acme Corp",
            aliases=["Acme"],
            references=["report.txt@21-30"],
        ),
    ]


@pytest.fixture
def sample_link() -> Link:
    return Link(
        id="l-works-at",
        source_entity_id=ALICE_ID,
        target_entity_id=ACME_ID,
        predicate="works_at",
        provenance=Provenance(source_card_id=CARD_UUID, offsets=Offsets(start=0, end=30)),
        file_path="relationships/l-works-at.relate.txt",
    )


@pytest.fixture
def sample_snippet() -> Snippet:
    return Snippet(
        id="s-1",
        card_id=CARD_UUID,
        text="Alice Smith",
        offsets=Offsets(start=0, end=11),
        analyst="jdoe",
        classification="Proprietary Information",
    )


@pytest.fixture
def sample_files() -> list[IndexedFile]:
    return [
        IndexedFile(id="f-report", path="raw/report.txt", name="report.txt", kind="txt", hash="h1"),
        IndexedFile(
            id="f-card",
            path="raw/report.card.txt",
            name="report.card.txt",
            kind="orcs_card",
            hash="h2",
            card_uuid=CARD_UUID,
            source_file="report.txt",
        ),
        IndexedFile(
            id="f-alice",
            path="entities/e-alice.entity.txt",
            name="e-alice.entity.txt",
            kind="entity",
            hash="h3",
            referenced_documents=["report.txt"],
        ),
    ]


# === FIXTURES: User data directory ===


ALICE_TAG = """id: "e-alice"
type: "entity"
name: "Alice Smith"
entityType: "person"
aliases: ["Alice"]
references: ["report.txt@0-11"]
"""

ACME_TAG = """id: "e-acme"
type: "entity"
name: "Acme Corp"
entityType: "organization"
aliases: ["Acme"]
references: ["report.txt@21-30"]
"""

WORKS_AT_TAG = f"""id: "l-works-at"
type: "relationship"
name: "works_at"
sourceCard: "{CARD_UUID}"
references: ["report.txt@0-30"]
connectedEntities: [
  {{id: "e-alice", direction: 1}},
  {{id: "e-acme", direction: 1}}
]
"""


@pytest.fixture
def user_data_dir(tmp_path: Path, card_text: str) -> Path:
    """A user data root with one document, its card, two entities and a link."""
    root = tmp_path / "user_data"
    (root / "raw").mkdir(parents=True)
    (root / "entities").mkdir()
    (root / "relationships").mkdir()
    (root / "raw" / "report.txt").write_text(REPORT_TEXT, encoding="utf-8")
    (root / "raw" / "report.card.txt").write_text(card_text, encoding="utf-8")
    (root / "raw" / "people.csv").write_text(CSV_TEXT, encoding="utf-8")
    (root / "entities" / "e-alice.entity.txt").write_text(ALICE_TAG, encoding="utf-8")
    (root / "entities" / "e-acme.entity.txt").write_text(ACME_TAG, encoding="utf-8")
    (root / "relationships" / "l-works-at.relate.txt").write_text(WORKS_AT_TAG, encoding="utf-8")
    return root


@pytest.fixture
def card_uuid() -> str:
    return CARD_UUID
