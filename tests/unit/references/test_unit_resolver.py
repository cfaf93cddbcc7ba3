# tests/unit/references/test_unit_resolver.py - v1
"""Tests for references/resolver.py - validity, drift re-anchoring, cells."""

from __future__ import annotations

import pytest

from orcsindex.core.models import BrokenSpan, ResolvedSpan
from orcsindex.references.reference_string import ReferenceSyntaxError
from orcsindex.references.resolver import resolve, resolve_many

TEXT = "Alice Smith works at Acme Corp."


class TestSpanResolution:
    def test_unmodified_document_keeps_offsets(self):
        result = resolve("doc@21-30", TEXT, stored_text="Acme Corp")
        assert isinstance(result, ResolvedSpan)
        assert result.status == "valid"
        assert (result.start, result.end) == (21, 30)
        assert result.reference == "doc@21-30"
        assert not result.is_broken

    def test_ten_inserted_characters_reanchor(self):
        edited = "0123456789" + TEXT
        result = resolve("doc@21-30", edited, stored_text="Acme Corp")
        assert result.status == "reanchored"
        assert (result.start, result.end) == (31, 40)
        assert result.reference == "doc@31-40"
        assert result.occurrences == 1

    def test_duplicate_text_picks_first_and_reports_count(self, caplog):
        edited = "Acme Corp bought Acme Corp."
        result = resolve("doc@5-14", edited, stored_text="Acme Corp")
        assert (result.start, result.end) == (0, 9)
        assert result.occurrences == 2
        assert "first of 2" in caplog.text

    def test_text_gone_is_broken_with_role(self):
        source = resolve("doc@21-30", "nothing here", stored_text="Acme Corp")
        target = resolve("doc@21-30", "nothing here", stored_text="Acme Corp", role="target")
        assert isinstance(source, BrokenSpan)
        assert source.is_broken
        assert source.reason == "missing_source_entity"
        assert target.reason == "missing_target_entity"

    def test_without_stored_text_in_bounds(self):
        result = resolve("doc@0-5", TEXT)
        assert result.status == "valid"
        assert result.text == "Alice"

    def test_without_stored_text_out_of_bounds(self):
        assert resolve("doc@0-500", TEXT).is_broken

    def test_none_document_raises(self):
        with pytest.raises(ValueError):
            resolve("doc@0-1", None)

    def test_malformed_reference_raises(self):
        with pytest.raises(ReferenceSyntaxError):
            resolve("doc@oops", TEXT)


class TestCellResolution:
    CSV = "name,employer\nAlice Smith,Acme Corp\n"

    def test_existing_cell(self):
        result = resolve("people.csv[1,1]", self.CSV)
        assert result.status == "valid"
        assert result.text == "Acme Corp"
        assert (result.row, result.col) == (1, 1)

    def test_missing_cell_is_broken(self):
        result = resolve("people.csv[5,0]", self.CSV, role="target")
        assert result.is_broken
        assert result.reason == "missing_target_entity"

    def test_cells_are_not_reanchored(self):
        # Stored text is ignored for cells: identity is ordinal.
        assert resolve("people.csv[1,0]", self.CSV, stored_text="Acme Corp").text == "Alice Smith"


class TestResolveMany:
    def test_in_order(self):
        results = resolve_many([
            ("doc@0-5", TEXT, "Alice"),
            ("doc@0-5", TEXT, "Zed"),
        ])
        assert [r.is_broken for r in results] == [False, True]
