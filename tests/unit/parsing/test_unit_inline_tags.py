# tests/unit/parsing/test_unit_inline_tags.py - v2
"""Tests for parsing/inline_tags.py - legacy [type:text](uuid) tags."""

from __future__ import annotations

from orcsindex.parsing.inline_tags import (
    is_position_tagged,
    parse_inline_tags,
    strip_inline_tags,
    strip_inline_tags_with_spans,
)

UUID = "0b6c2f4e-8a51-4d3b-9f21-6c7d8e9fa0b1"
TEXT = f"Met [entity:Alice]({UUID}) and [Relationship:works at]({UUID}) today."


class TestParseInlineTags:
    def test_finds_all_tags(self):
        tags = parse_inline_tags(TEXT)
        assert [t.text for t in tags] == ["Alice", "works at"]
        assert tags[0].tag_type == "entity"
        assert tags[1].tag_type == "relationship"
        assert tags[0].tag_id == UUID

    def test_offsets(self):
        tag = parse_inline_tags(TEXT)[0]
        assert TEXT[tag.start_index:tag.end_index] == tag.full_match

    def test_ordinary_markdown_link_is_not_a_tag(self):
        assert parse_inline_tags("[docs](https://example.com)") == []

    def test_other_tag_types_are_not_tags(self):
        assert parse_inline_tags("See [note:appendix](1234) for details") == []

    def test_type_is_case_insensitive(self):
        tags = parse_inline_tags(f"[KV:color=red]({UUID})")
        assert tags[0].tag_type == "kv"


class TestStrip:
    def test_keeps_display_text(self):
        assert strip_inline_tags(TEXT) == "Met Alice and works at today."

    def test_no_tags_unchanged(self):
        assert strip_inline_tags("nothing here") == "nothing here"

    def test_leaves_markdown_with_other_types(self):
        text = "See [note:appendix](1234) for details"
        assert strip_inline_tags(text) == text

    def test_with_spans_matches_plain_strip(self):
        stripped, spans = strip_inline_tags_with_spans(TEXT)
        assert stripped == strip_inline_tags(TEXT)
        assert [stripped[s:e] for s, e in spans] == ["Alice", "works at"]


class TestIsPositionTagged:
    def test_inside_tag(self):
        start = TEXT.index("Alice")
        assert is_position_tagged(TEXT, start, len("Alice"))

    def test_outside_tag(self):
        assert not is_position_tagged(TEXT, TEXT.index("today"), 5)
