# tests/unit/index/test_unit_builder.py - v2
"""Tests for index/builder.py - snapshot build and broken reference classification."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from orcsindex.core.models import IndexedFile, Link, Snippet, Offsets
from orcsindex.index.builder import INDEX_VERSION, build_master_index, validate_entity_references


def _build(files=(), entities=(), links=(), snippets=(), **kwargs):
    return build_master_index(list(files), list(entities), list(links), list(snippets), **kwargs)


class TestBuildMasterIndex:
    def test_consistent_inputs_have_no_broken_references(
        self, sample_files, sample_entities, sample_link, sample_snippet,
    ):
        index = _build(sample_files, sample_entities, [sample_link], [sample_snippet])
        assert index.broken_references == []
        assert index.version == INDEX_VERSION
        assert index.stats.total_files == 3
        assert index.stats.total_entities == 2
        assert index.stats.total_links == 1
        assert index.stats.total_snippets == 1
        assert index.stats.broken_reference_count == 0
        assert index.stats.entity_counts == {"person": 1, "org": 1}

    def test_snapshot_is_frozen(self, sample_entities):
        index = _build(entities=sample_entities)
        with pytest.raises(ValidationError):
            index.version = "other"

    def test_missing_link_ends(self, sample_entities):
        link = Link(id="l-1", source_entity_id="gone-a", target_entity_id="gone-b",
                    predicate="knows", file_path="relationships/l-1.relate.txt")
        index = _build(entities=sample_entities, links=[link])
        reasons = [(b.reference_id, b.reason) for b in index.broken_references]
        assert reasons == [("l-1", "missing_source_entity"), ("l-1", "missing_target_entity")]
        assert index.broken_references[0].file_path == "relationships/l-1.relate.txt"
        assert index.stats.broken_reference_count == 2

    def test_missing_target_only(self, sample_entities, sample_link):
        link = sample_link.model_copy(update={"target_entity_id": "gone"})
        index = _build(entities=sample_entities, links=[link])
        assert [b.reason for b in index.broken_references] == ["missing_target_entity"]

    def test_file_claiming_missing_card(self, sample_files):
        sidecar = IndexedFile(id="f-x", path="comments/x.comment.txt", name="x.comment.txt",
                              kind="comment", hash="h", card_uuid="no-such-card")
        index = _build(files=[*sample_files, sidecar])
        assert [(b.reference_id, b.reason) for b in index.broken_references] == [("f-x", "missing_card")]

    def test_snippet_on_missing_card(self):
        snippet = Snippet(id="s-9", card_id="no-card", text="x", offsets=Offsets(start=0, end=1))
        index = _build(snippets=[snippet])
        assert [b.reason for b in index.broken_references] == ["missing_card"]

    def test_explicit_card_ids(self, sample_snippet, card_uuid):
        assert _build(snippets=[sample_snippet], cards=[card_uuid]).broken_references == []
        assert len(_build(snippets=[sample_snippet], cards=[]).broken_references) == 1

    def test_orphaned_sidecar(self, sample_files):
        orphan = IndexedFile(id="f-o", path="entities/o.entity.txt", name="o.entity.txt",
                             kind="entity", hash="h", referenced_documents=["deleted.txt"])
        index = _build(files=[*sample_files, orphan])
        assert [(b.reference_id, b.reason) for b in index.broken_references] == [("f-o", "orphaned_file")]

    def test_sidecar_referencing_card_uuid_is_not_orphaned(self, sample_files, card_uuid):
        sidecar = IndexedFile(id="f-s", path="entities/s.entity.txt", name="s.entity.txt",
                              kind="entity", hash="h", referenced_documents=[card_uuid])
        assert _build(files=[*sample_files, sidecar]).broken_references == []

    def test_unreferenced_sidecar_is_not_orphaned(self):
        sidecar = IndexedFile(id="f-u", path="kv_pairs/u.kv.txt", name="u.kv.txt", kind="kv", hash="h")
        assert _build(files=[sidecar]).broken_references == []

    def test_only_sidecar_with_missing_documents_is_orphaned(self, sample_files):
        orphan = IndexedFile(id="f-o", path="comments/o.comment.txt", name="o.comment.txt",
                             kind="comment", hash="h", referenced_documents=["gone.txt", "gone.csv"])
        unreferenced = IndexedFile(id="f-u", path="kv_pairs/u.kv.txt", name="u.kv.txt",
                                   kind="kv", hash="h")
        index = _build(files=[*sample_files, unreferenced, orphan])
        (broken,) = index.broken_references
        assert (broken.reference_id, broken.reason) == ("f-o", "orphaned_file")
        assert "gone.txt, gone.csv" in broken.details
        assert index.stats.broken_reference_count == 1

    def test_custom_version(self):
        assert _build(version="test-1").version == "test-1"


class TestValidateEntityReferences:
    def test_valid_and_drifted(self, sample_entities, report_text):
        index = _build(entities=sample_entities)
        drifted = "Intro text " + report_text
        results = validate_entity_references(
            index,
            {"report.txt": drifted},
            stored_texts={"report.txt@0-11": "Alice Smith", "report.txt@21-30": "Acme Corp"},
        )
        assert [r.status for r in results] == ["reanchored", "reanchored"]
        assert (results[0].start, results[0].end) == (11, 22)

    def test_unchanged_document(self, sample_entities, report_text):
        results = validate_entity_references(_build(entities=sample_entities), {"report.txt": report_text})
        assert all(r.status == "valid" for r in results)

    def test_missing_document(self, sample_entities):
        results = validate_entity_references(_build(entities=sample_entities), {})
        assert all(r.is_broken for r in results)
        assert "not found" in results[0].details

    def test_malformed_reference(self, sample_entities):
        entity = sample_entities[0].model_copy(update={"references": ["not-a-ref"]})
        (result,) = validate_entity_references(_build(entities=[entity]), {})
        assert result.is_broken
