# src/graph/similarity.py - v1
"""Duplicate-entity suggestions for the tag creation flow.

Scores existing entities against a candidate name with additive string
heuristics. Advisory only: callers show the matches and a human decides
whether to reuse an entity; nothing is merged here.
"""

from __future__ import annotations

import logging

from orcsindex.core.models import Entity, SimilarMatch

logger = logging.getLogger(__name__)

EXACT_MATCH_SCORE = 100
PARTIAL_MATCH_SCORE = 75
ALIAS_MATCH_SCORE = 50
SAME_TYPE_SCORE = 25
DEFAULT_LIMIT = 3


def _alias_matches(candidate: str, aliases: list[str]) -> bool:
    for alias in aliases:
        alias_lower = alias.strip().lower()
        if not alias_lower:
            continue
        if alias_lower == candidate or alias_lower in candidate or candidate in alias_lower:
            return True
    return False


def score_entity(candidate_name: str, candidate_type: str | None, entity: Entity) -> SimilarMatch:
    """Score one entity; the match may have score 0."""
    candidate = candidate_name.strip().lower()
    name = entity.canonical_name.strip().lower()
    score = 0
    reasons: list[str] = []

    if name == candidate:
        score += EXACT_MATCH_SCORE
        reasons.append("Exact match")
    elif name and (candidate in name or name in candidate):
        score += PARTIAL_MATCH_SCORE
        reasons.append("Partial match")

    if _alias_matches(candidate, entity.aliases):
        score += ALIAS_MATCH_SCORE
        reasons.append("Alias match")

    if candidate_type is not None and entity.entity_type == candidate_type:
        score += SAME_TYPE_SCORE
        reasons.append("Same type")

    return SimilarMatch(entity=entity, score=score, reasons=reasons)


def score(
    candidate_name: str,
    candidate_type: str | None,
    existing_entities: list[Entity],
    limit: int = DEFAULT_LIMIT,
) -> list[SimilarMatch]:
    """Rank existing entities that may duplicate the candidate.

    Returns at most ``limit`` matches with score > 0, highest first.
    Ties keep the order of ``existing_entities``.
    """
    if not candidate_name.strip() or not existing_entities:
        return []

    matches = [score_entity(candidate_name, candidate_type, e) for e in existing_entities]
    ranked = sorted((m for m in matches if m.score > 0), key=lambda m: -m.score)
    top = ranked[:limit]
    logger.debug(
        "Similarity for %r: %d candidates scored, %d kept",
        candidate_name, len(matches), len(top),
    )
    return top
