# src/parsing/card_format.py - v2
"""Card file text format.

A plain card is a block of ``KEY: value`` headers, a ``KEYVALUE_PAIRS:``
section, a ``CONTENT:`` body and a ``TAGS:`` list, closed by the
``=== END ... ===`` triad. A composite card instead carries a quoted
metadata block followed by the delimited original and user-added
sections.
"""

from __future__ import annotations

import json
import re

from orcsindex.core.models import OrcsCard

FORMAT_VERSION = "2025.003"

ORIGINAL_START = "=== ORIGINAL CONTENT START ==="
ORIGINAL_END = "=== ORIGINAL CONTENT END ==="
USER_ADDED_START = "=== USER ADDED START ==="
USER_ADDED_END = "=== USER ADDED END ==="
METADATA_START = "=== ORCS METADATA START ==="
METADATA_END = "=== ORCS METADATA END ==="

# A double-quoted value; backslash escapes follow JSON string rules.
QUOTED_VALUE = r'"(?:[^"\\]|\\.)*"'

_QUOTED_FIELD_RE = re.compile(rf"^\s*([A-Za-z_]+):\s*({QUOTED_VALUE})\s*$", re.MULTILINE)

_HEADER_FIELDS = {
    "UUID:": "id",
    "TITLE:": "title",
    "SOURCE_HASH:": "source_hash",
    "SOURCE:": "source",
    "CITATION:": "citation",
    "CREATED:": "created",
    "MODIFIED:": "modified",
}

_REQUIRED = ("id", "title", "source", "created", "modified", "content")


def parse_card(text: str) -> OrcsCard | None:
    """Parse a plain card. Returns None when required fields are missing."""
    fields: dict[str, str] = {}
    handling: list[str] = []
    kv_pairs: dict[str, str] = {}
    tags: list[str] = []
    content_lines: list[str] = []
    section = ""

    for line in text.split("\n"):
        stripped = line.strip()

        if stripped.startswith("=== CLASSIFICATION:"):
            fields["classification"] = _banner_value(stripped, "=== CLASSIFICATION:")
            continue
        if stripped.startswith("=== HANDLING:"):
            handling.append(_banner_value(stripped, "=== HANDLING:"))
            continue
        if stripped.startswith("=== END"):
            break
        if stripped == "KEYVALUE_PAIRS:":
            section = "kv"
            continue
        if stripped == "CONTENT:":
            section = "content"
            continue
        if stripped == "TAGS:":
            section = "tags"
            continue

        if section == "content":
            content_lines.append(line)
            continue

        header = _match_header(stripped)
        if header is not None:
            name, value = header
            fields[name] = value
        elif section == "kv" and ":" in stripped:
            key, _, value = stripped.partition(":")
            kv_pairs[key.strip()] = value.strip()
        elif section == "tags" and stripped.startswith("tag_ref:"):
            tags.append(stripped[len("tag_ref:"):].strip())

    if content_lines:
        fields["content"] = "\n".join(content_lines).strip()

    if any(not fields.get(name) for name in _REQUIRED):
        return None

    return OrcsCard(
        handling=handling,
        key_value_pairs=kv_pairs,
        tags=tags,
        **fields,
    )


def _banner_value(line: str, prefix: str) -> str:
    value = line[len(prefix):]
    if value.endswith("==="):
        value = value[:-3]
    return value.strip()


def _match_header(line: str) -> tuple[str, str] | None:
    for prefix, name in _HEADER_FIELDS.items():
        if line.startswith(prefix):
            return name, line[len(prefix):].strip()
    return None


def format_card(card: OrcsCard) -> str:
    """Render a plain card. Content is re-read trimmed by parse_card."""
    last_handling = card.handling[-1] if card.handling else ""
    lines = [
        f"=== CLASSIFICATION: {card.classification} ===",
        *[f"=== HANDLING: {h} ===" for h in card.handling],
        f"=== ORCS FORMAT VERSION: {FORMAT_VERSION} ===",
        f"UUID: {card.id}",
        f"TITLE: {card.title}",
        f"SOURCE: {card.source}",
        f"SOURCE_HASH: {card.source_hash}",
        f"CITATION: {card.citation}",
        f"CREATED: {card.created}",
        f"MODIFIED: {card.modified}",
        "",
        "KEYVALUE_PAIRS:",
        *[f"{k}: {v}" for k, v in card.key_value_pairs.items()],
        "",
        "CONTENT:",
        card.content,
        "",
        "TAGS:",
        *[f"tag_ref: {tag_id}" for tag_id in card.tags],
        "",
        f"=== END HANDLING: {last_handling} ===",
        f"=== END ORCS FORMAT VERSION: {FORMAT_VERSION} ===",
        f"=== END CLASSIFICATION: {card.classification} ===",
        "",
    ]
    return "\n".join(lines)


def format_composite_card(
    card_uuid: str,
    source_file: str,
    original_content: str,
    user_added_content: str | None = None,
    metadata: dict[str, str] | None = None,
) -> str:
    """Render a composite card with delimited content sections."""
    meta = {"uuid": card_uuid, "source_file": source_file, **(metadata or {})}
    lines = [METADATA_START]
    lines += [f"{key}: {quote_value(value)}" for key, value in meta.items()]
    lines += [METADATA_END, "", ORIGINAL_START, original_content, ORIGINAL_END]
    if user_added_content is not None:
        lines += ["", USER_ADDED_START, user_added_content, USER_ADDED_END]
    lines.append("")
    return "\n".join(lines)


def read_quoted_fields(text: str) -> dict[str, str]:
    """Collect ``key: "value"`` lines; the first occurrence of a key wins."""
    found: dict[str, str] = {}
    for m in _QUOTED_FIELD_RE.finditer(text):
        found.setdefault(m.group(1), unquote_value(m.group(2)))
    return found


def quote_value(value: str) -> str:
    """Double-quote a value, escaping quotes, backslashes and newlines."""
    return json.dumps(value, ensure_ascii=False)


def unquote_value(token: str) -> str:
    """Inverse of quote_value.

    Older files wrote values verbatim, so a token whose escapes are not
    valid JSON (``"C:\\data"``) is returned as the text between its quotes.
    """
    try:
        return json.loads(token)
    except json.JSONDecodeError:
        return token[1:-1]
