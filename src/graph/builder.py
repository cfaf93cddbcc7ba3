# src/graph/builder.py - v2
"""Entity graph builder: NetworkX view of a MasterIndex snapshot.

Nodes are entities, edges are links whose both ends exist. The graph is
what the UI layout collaborator consumes; broken links never reach it.
"""

from __future__ import annotations

import logging
from typing import Any

import networkx as nx

from orcsindex.core.models import Link, MasterIndex

logger = logging.getLogger(__name__)


def build_graph(index: MasterIndex) -> nx.MultiDiGraph:
    """Build a directed multigraph from the entities and links of an index.

    Edge direction follows the link: ``forward`` and ``none`` run
    source -> target, ``backward`` runs target -> source, and
    ``bidirectional`` adds both edges.
    """
    graph = nx.MultiDiGraph()

    for entity in index.entities:
        graph.add_node(
            entity.id,
            canonical_name=entity.canonical_name,
            display_name=entity.display_name or entity.canonical_name,
            entity_type=entity.entity_type,
            aliases=list(entity.aliases),
            reference_count=len(entity.references),
        )

    skipped = 0
    for link in index.links:
        if not (graph.has_node(link.source_entity_id) and graph.has_node(link.target_entity_id)):
            skipped += 1
            continue
        for source, target in _edge_endpoints(link):
            graph.add_edge(source, target, key=link.id, **_edge_attrs(link))

    logger.info(
        "Entity graph: %d nodes, %d edges (%d links skipped as broken)",
        graph.number_of_nodes(), graph.number_of_edges(), skipped,
    )
    return graph


def _edge_endpoints(link: Link) -> list[tuple[str, str]]:
    src, tgt = link.source_entity_id, link.target_entity_id
    if link.direction == "backward":
        return [(tgt, src)]
    if link.direction == "bidirectional":
        return [(src, tgt), (tgt, src)]
    return [(src, tgt)]


def _edge_attrs(link: Link) -> dict[str, Any]:
    return {
        "link_id": link.id,
        "predicate": link.predicate,
        "direction": link.direction,
        "is_relationship": link.is_relationship,
        "is_attribute": link.is_attribute,
        "is_normalization": link.is_normalization,
        "source_card_id": link.provenance.source_card_id if link.provenance else None,
    }


def neighbors(graph: nx.MultiDiGraph, entity_id: str) -> list[str]:
    """Entities connected to entity_id in either direction, sorted."""
    if not graph.has_node(entity_id):
        return []
    found = set(graph.successors(entity_id)) | set(graph.predecessors(entity_id))
    found.discard(entity_id)
    return sorted(found)


def to_node_link_data(graph: nx.MultiDiGraph) -> dict[str, Any]:
    """JSON-ready node-link payload for the graph renderer."""
    return nx.node_link_data(graph, edges="links")
