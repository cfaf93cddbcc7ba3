# src/parsing/inline_tags.py - v2
"""Legacy inline tag grammar: [type:displayText](uuid).

Older cards embed annotations as markdown-link-shaped tags. They are
still recognised and stripped but never produced by new code.
"""

from __future__ import annotations

import re

from orcsindex.core.models import InlineTag

INLINE_TAG_RE = re.compile(
    r"\[(entity|relationship|attribute|comment|kv):([^\]]+)\]\(([0-9a-f-]+)\)",
    re.IGNORECASE,
)


def parse_inline_tags(text: str) -> list[InlineTag]:
    """Return every legacy tag in text, left to right."""
    return [
        InlineTag(
            tag_type=m.group(1).lower(),
            text=m.group(2),
            tag_id=m.group(3),
            start_index=m.start(),
            end_index=m.end(),
            full_match=m.group(0),
        )
        for m in INLINE_TAG_RE.finditer(text)
    ]


def strip_inline_tags(text: str) -> str:
    """Replace each legacy tag with its display text (single global pass)."""
    return INLINE_TAG_RE.sub(r"\2", text)


def is_position_tagged(text: str, position: int, length: int) -> bool:
    """True when [position, position + length) lies inside a legacy tag."""
    for m in INLINE_TAG_RE.finditer(text):
        if m.start() <= position and position + length <= m.end():
            return True
    return False


def strip_inline_tags_with_spans(text: str) -> tuple[str, list[tuple[int, int]]]:
    """Strip legacy tags and report where each display text landed.

    Returns the stripped text (identical to ``strip_inline_tags``) and
    the (start, end) range of every former tag inside it.
    """
    parts: list[str] = []
    spans: list[tuple[int, int]] = []
    last = 0
    length = 0
    for m in INLINE_TAG_RE.finditer(text):
        before = text[last:m.start()]
        parts.append(before)
        length += len(before)
        display = m.group(2)
        spans.append((length, length + len(display)))
        parts.append(display)
        length += len(display)
        last = m.end()
    parts.append(text[last:])
    return "".join(parts), spans
