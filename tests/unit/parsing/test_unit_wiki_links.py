# tests/unit/parsing/test_unit_wiki_links.py - v1
"""Tests for parsing/wiki_links.py - state scanner, plain text, HTML, formatting."""

from __future__ import annotations

import pytest

from orcsindex.parsing.wiki_links import (
    extract_type,
    format_link,
    infer_entity_type,
    is_valid_single_link,
    parse,
    to_html,
    to_plain_text,
)

CONTACT = "Contact [[person:Robert Richard Renasco|Bob]] at [[selector:555-0100]]"


class TestParse:
    def test_contact_scenario(self):
        links = parse(CONTACT)
        assert len(links) == 2
        assert (links[0].type, links[0].canonical_name, links[0].display_name) == (
            "person", "Robert Richard Renasco", "Bob",
        )
        assert (links[1].type, links[1].canonical_name, links[1].display_name) == (
            "selector", "555-0100", "555-0100",
        )

    def test_offsets_cover_full_match(self):
        link = parse(CONTACT)[0]
        assert CONTACT[link.start_index:link.end_index] == link.full_match
        assert link.full_match == "[[person:Robert Richard Renasco|Bob]]"

    def test_bare_value_gets_inferred_type(self):
        link = parse("see [[Jane Doe]]")[0]
        assert link.type == "entity"
        assert link.canonical_name == "Jane Doe"
        assert link.display_name == "Jane Doe"

    def test_bare_value_with_display(self):
        link = parse("[[Jane Doe|Jane]]")[0]
        assert link.canonical_name == "Jane Doe"
        assert link.display_name == "Jane"

    def test_type_is_lowercased(self):
        assert parse("[[PERSON:Jane]]")[0].type == "person"

    def test_empty_display_falls_back_to_canonical(self):
        assert parse("[[person:Jane|]]")[0].display_name == "Jane"

    @pytest.mark.parametrize("text", [
        "[[]]",
        "[[:Jane]]",
        "[[person:]]",
        "[[person:Jane",
        "[[person:Jane]",
        "[person:Jane]]",
        "[[person:Ja]ne]]",
    ])
    def test_malformed_is_not_a_link(self, text):
        assert parse(text) == []

    def test_nested_opener_aborts_outer_candidate(self):
        links = parse("[[person:[[org:Acme]]]]")
        assert [(l.type, l.canonical_name) for l in links] == [("org", "Acme")]

    def test_malformed_candidate_does_not_hide_later_link(self):
        links = parse("[[broken and then [[person:Jane]]")
        assert [l.canonical_name for l in links] == ["Jane"]

    def test_no_links(self):
        assert parse("plain text [with] brackets") == []


class TestInferEntityType:
    @pytest.mark.parametrize("value,expected", [
        ("+1 (555) 010-0199", "selector"),
        ("2024-555-0100", "selector"),
        ("jane@example.com", "selector"),
        ("2024-03-01T09:30", "date"),
        ("3/1/2024", "date"),
        ("Acme Corp", "entity"),
        ("555-01", "entity"),
    ])
    def test_priority_order(self, value, expected):
        assert infer_entity_type(value) == expected

    def test_bare_iso_date_reads_as_phone_number(self):
        # Digits and dashes only, eight digits: the phone rule wins.
        assert infer_entity_type("2024-03-01") == "selector"


class TestPlainText:
    def test_contact_scenario(self):
        assert to_plain_text(CONTACT) == "Contact Bob at 555-0100"

    @pytest.mark.parametrize("text", [
        CONTACT,
        "[[[[a]]b]]",
        "[[x|[[y]]]]",
        "no links",
        "[[a]][[b|c]]]]",
    ])
    def test_idempotent(self, text):
        once = to_plain_text(text)
        assert to_plain_text(once) == once


class TestHtml:
    def test_wraps_with_type_and_encoded_name(self):
        html = to_html("Hi [[person:Jane Doe|Jane]]")
        assert 'class="wiki-link wiki-link-person"' in html
        assert 'data-canonical="Jane%20Doe"' in html
        assert ">Jane</span>" in html
        assert html.startswith("Hi ")

    def test_escapes_display(self):
        html = to_html("[[entity:A&B|<b>]]")
        assert "&lt;b&gt;" in html
        assert "A%26B" in html

    def test_without_click_data(self):
        html = to_html("[[person:Jane]]", class_prefix="tag", entity_on_click=False)
        assert "data-canonical" not in html
        assert 'class="tag tag-person"' in html


class TestFormatLink:
    def test_omits_equal_display(self):
        assert format_link("person", "Jane", "Jane") == "[[person:Jane]]"

    def test_keeps_distinct_display(self):
        assert format_link("person", "Jane Doe", "Jane") == "[[person:Jane Doe|Jane]]"

    @pytest.mark.parametrize("text", [
        "[[person:Robert Richard Renasco|Bob]]",
        "[[selector:555-0100]]",
        "[[Jane Doe]]",
        "[[2024-03-01|March 1st]]",
    ])
    def test_round_trip(self, text):
        link = parse(text)[0]
        again = parse(format_link(link.type, link.canonical_name, link.display_name))[0]
        assert (again.type, again.canonical_name, again.display_name) == (
            link.type, link.canonical_name, link.display_name,
        )


class TestSingleLink:
    def test_valid(self):
        assert is_valid_single_link("[[person:Jane]]")

    @pytest.mark.parametrize("text", ["[[person:Jane]] ", "x[[a]]", "[[a]][[b]]", "[[a"])
    def test_invalid(self, text):
        assert not is_valid_single_link(text)

    def test_extract_type(self):
        assert extract_type("[[org:Acme]]") == "org"
        assert extract_type("[[jane@example.com]]") == "selector"
        assert extract_type("not a link") is None
