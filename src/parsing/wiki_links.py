# src/parsing/wiki_links.py - v2
"""Wiki-link grammar: [[value]], [[type:value]], [[type:value|display]].

Links are found by a small state scanner rather than a regex so malformed
input has a fixed, testable outcome:

    OUTSIDE     looking for the "[[" opener
    IN_BRACKET  reading the first segment (type or canonical name)
    IN_TYPE     reading the canonical name after an explicit "type:"
    IN_DISPLAY  reading the display text after "|"

Any "[" inside a link, a lone "]" or end of text before "]]" abandons the
candidate and scanning resumes one character after its opener. Nothing
partial is ever emitted.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Callable, Iterator
from urllib.parse import quote

from orcsindex.core.models import ParsedLink

logger = logging.getLogger(__name__)

OPEN = "[["
CLOSE = "]]"

_IN_BRACKET = "in_bracket"
_IN_TYPE = "in_type"
_IN_DISPLAY = "in_display"

_PHONE_RE = re.compile(r"^[+\d\s\-()]+$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_US_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}")

# Characters encodeURIComponent leaves untouched.
_URI_SAFE = "-_.!~*'()"


def infer_entity_type(value: str) -> str:
    """Guess an entity type for an untyped link value.

    Phone and email are checked before dates: a phone number such as
    "2024-555-0100" would otherwise pass the looser date prefix test.
    """
    if _PHONE_RE.match(value) and sum(ch.isdigit() for ch in value) >= 7:
        return "selector"
    if _EMAIL_RE.match(value):
        return "selector"
    if _ISO_DATE_RE.match(value) or _US_DATE_RE.match(value):
        return "date"
    return "entity"


def _scan_one(text: str, opener: int) -> ParsedLink | None:
    """Try to read a link whose "[[" starts at ``opener``."""
    state = _IN_BRACKET
    head: list[str] = []
    canonical: list[str] = []
    display: list[str] = []
    link_type: str | None = None

    i = opener + len(OPEN)
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "]":
            if not text.startswith(CLOSE, i):
                return None
            end = i + len(CLOSE)
            return _finish(text, opener, end, state, head, link_type, canonical, display)
        if ch == "[":
            return None

        if state == _IN_BRACKET:
            if ch == ":":
                link_type = "".join(head)
                state = _IN_TYPE
            elif ch == "|":
                state = _IN_DISPLAY
            else:
                head.append(ch)
        elif state == _IN_TYPE:
            if ch == "|":
                state = _IN_DISPLAY
            else:
                canonical.append(ch)
        else:
            display.append(ch)
        i += 1

    # Unterminated.
    return None


def _finish(
    text: str,
    opener: int,
    end: int,
    state: str,
    head: list[str],
    link_type: str | None,
    canonical: list[str],
    display: list[str],
) -> ParsedLink | None:
    if link_type is None:
        canonical_name = "".join(head)
        resolved_type = infer_entity_type(canonical_name) if canonical_name else ""
    else:
        canonical_name = "".join(canonical)
        resolved_type = link_type.lower()
        if not resolved_type:
            return None
    if not canonical_name:
        return None

    display_name = "".join(display) if state == _IN_DISPLAY else ""
    if not display_name:
        display_name = canonical_name

    return ParsedLink(
        type=resolved_type,
        canonical_name=canonical_name,
        display_name=display_name,
        start_index=opener,
        end_index=end,
        full_match=text[opener:end],
    )


def iter_links(text: str) -> Iterator[ParsedLink]:
    """Yield links left to right without overlap."""
    pos = 0
    while True:
        opener = text.find(OPEN, pos)
        if opener == -1:
            return
        link = _scan_one(text, opener)
        if link is None:
            logger.debug("Ignoring malformed wiki-link at offset %d", opener)
            pos = opener + 1
            continue
        yield link
        pos = link.end_index


def parse(text: str) -> list[ParsedLink]:
    """Parse every well-formed wiki-link in text."""
    return list(iter_links(text))


def _replace_links(text: str, render: Callable[[ParsedLink], str]) -> str:
    parts: list[str] = []
    last = 0
    for link in iter_links(text):
        parts.append(text[last:link.start_index])
        parts.append(render(link))
        last = link.end_index
    parts.append(text[last:])
    return "".join(parts)


def to_plain_text(text: str) -> str:
    """Replace every link with its display text.

    Replacing links can join surrounding brackets into a new link
    ("[[[[a]]b]]" -> "[[ab]]"), so reduction repeats until no link is
    left. Each pass shortens the text, so the loop terminates, and the
    result is a fixed point: applying it twice equals applying it once.
    """
    current = text
    while True:
        reduced = _replace_links(current, lambda link: link.display_name)
        if reduced == current:
            return reduced
        current = reduced


def to_html(
    text: str,
    class_prefix: str = "wiki-link",
    entity_on_click: bool = True,
) -> str:
    """Wrap each link in a span carrying its type and encoded canonical name."""

    def _render(link: ParsedLink) -> str:
        data_attrs = ""
        if entity_on_click:
            data_attrs = (
                f'data-entity-type="{html.escape(link.type)}" '
                f'data-canonical="{quote(link.canonical_name, safe=_URI_SAFE)}"'
            )
        return (
            f'<span class="{class_prefix} {class_prefix}-{html.escape(link.type)}" '
            f'{data_attrs} title="{html.escape(link.canonical_name)}">'
            f"{html.escape(link.display_name)}</span>"
        )

    return _replace_links(text, _render)


def format_link(link_type: str, canonical_name: str, display_name: str | None = None) -> str:
    """Build link text; the inverse of parse for explicitly typed links."""
    if display_name and display_name != canonical_name:
        return f"[[{link_type}:{canonical_name}|{display_name}]]"
    return f"[[{link_type}:{canonical_name}]]"


def is_valid_single_link(text: str) -> bool:
    """True when text is exactly one well-formed link and nothing else."""
    if not text.startswith(OPEN):
        return False
    link = _scan_one(text, 0)
    return link is not None and link.end_index == len(text)


def extract_type(text: str) -> str | None:
    """Return the (explicit or inferred) type of a single link, else None."""
    if not is_valid_single_link(text):
        return None
    link = _scan_one(text, 0)
    return link.type if link else None
