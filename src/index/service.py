# src/index/service.py - v2
"""IndexService: owns the current MasterIndex and serves read-only queries.

A rebuild reads a consistent snapshot from the document store, builds a
new index from scratch, writes it to disk and then swaps the reference
under a lock. Readers hold whatever snapshot they fetched; they never
observe a half-built index. Rebuilds are serialized, so the index on
disk and the one in memory always come from the same build.

The service is also where settings meet the annotation helpers:
similarity limits, reference analysis bounds, analyst name and default
classification are read from Settings here and passed on explicitly.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import uuid
from pathlib import Path

from pydantic import ValidationError

from orcsindex.annotations.factory import create_snippet
from orcsindex.config.settings import Settings, load_settings
from orcsindex.core.models import (
    BrokenReference,
    Entity,
    IndexedFile,
    IndexStats,
    Link,
    MasterIndex,
    ReferenceAnalysis,
    ReferenceCheck,
    SimilarMatch,
    Snippet,
)
from orcsindex.extraction.content_extractor import is_source_file
from orcsindex.graph.similarity import score
from orcsindex.index.builder import build_master_index, check_annotation_references
from orcsindex.logging.context import clear_context, set_build_context
from orcsindex.references.analysis import analyze_references
from orcsindex.storage.base_store import BaseDocumentStore

logger = logging.getLogger(__name__)


class IndexService:
    """Build, persist, load and query the master index."""

    def __init__(
        self,
        store: BaseDocumentStore,
        settings: Settings | None = None,
        index_path: Path | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Source of files, annotations and document text.
            settings: Loaded settings; defaults come from .env.
            index_path: Where the index JSON is persisted. Defaults to
                ``settings.index_path``.
        """
        self._store = store
        self._settings = settings or load_settings()
        self._index_path = index_path or self._settings.index_path
        self._lock = threading.Lock()
        self._rebuild_lock = threading.Lock()
        self._index: MasterIndex | None = None

    @property
    def index(self) -> MasterIndex | None:
        """Current snapshot, or None before the first build/load."""
        with self._lock:
            return self._index

    def _require_index(self) -> MasterIndex:
        index = self.index
        if index is None:
            index = self.load()
        return index

    # --- Build & persistence ---

    def rebuild(self) -> MasterIndex:
        """Full rebuild from the store; persists and swaps the new index.

        Concurrent callers run one after another. Readers are only blocked
        for the final swap.
        """
        with self._rebuild_lock:
            build_id = uuid.uuid4().hex[:12]
            set_build_context(build_id, operation="rebuild")
            try:
                snapshot = self._store.snapshot()
                index = build_master_index(
                    files=snapshot.files,
                    entities=snapshot.entities,
                    links=snapshot.links,
                    snippets=snapshot.snippets,
                    version=self._settings.index_version,
                    documents=snapshot.documents,
                )
                self._save(index)
                with self._lock:
                    self._index = index
                logger.info("Rebuild %s complete", build_id)
                return index
            finally:
                clear_context()

    def _save(self, index: MasterIndex) -> None:
        path = self._index_path
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(index.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)
        logger.debug("Index written to %s", path)

    def load(self) -> MasterIndex:
        """Load the persisted index; rebuild when missing, stale or unreadable."""
        path = self._index_path
        if not path.exists():
            logger.info("No index at %s; building", path)
            return self.rebuild()
        try:
            index = MasterIndex.model_validate_json(path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning("Index at %s unreadable (%s); rebuilding", path, e)
            return self.rebuild()
        if index.version != self._settings.index_version:
            logger.info(
                "Index version %s differs from %s; rebuilding",
                index.version, self._settings.index_version,
            )
            return self.rebuild()
        with self._lock:
            self._index = index
        logger.info("Loaded index from %s (%d files)", path, index.stats.total_files)
        return index

    # --- Queries ---

    def get_entity(self, entity_id: str) -> Entity | None:
        for entity in self._require_index().entities:
            if entity.id == entity_id:
                return entity
        return None

    def get_links_for_entity(self, entity_id: str) -> list[Link]:
        """Links with the entity at either end."""
        return [
            link for link in self._require_index().links
            if entity_id in (link.source_entity_id, link.target_entity_id)
        ]

    def get_broken_references(self) -> list[BrokenReference]:
        return list(self._require_index().broken_references)

    def get_stats(self) -> IndexStats:
        return self._require_index().stats

    def get_file_by_path(self, path: str) -> IndexedFile | None:
        for f in self._require_index().files:
            if f.path == path:
                return f
        return None

    def file_changed(self, path: str) -> bool:
        """True when the file's current sha256 differs from the indexed one.

        Files unknown to the index, or no longer readable, count as changed.
        """
        indexed = self.get_file_by_path(path)
        if indexed is None:
            return True
        try:
            current = hashlib.sha256(self._store.read(path)).hexdigest()
        except OSError:
            return True
        return current != indexed.hash

    def check_references(self) -> list[ReferenceCheck]:
        """Re-resolve every stored annotation span against current document text.

        Unlike ``index.reference_checks`` this reads the documents now, so
        edits made since the last rebuild show up as re-anchored or broken.
        """
        index = self._require_index()
        return check_annotation_references(
            index.entities, index.links, index.snippets, self._store.load_documents(),
        )

    # --- Annotation helpers ---

    def find_similar(self, name: str, entity_type: str | None = None) -> list[SimilarMatch]:
        """Indexed entities that may duplicate a new name."""
        entities = self._require_index().entities
        return score(name, entity_type, entities, limit=self._settings.similarity_top_k)

    def analyze_entity_references(self, entity_id: str, include_aliases: bool = False) -> ReferenceAnalysis:
        """Tagged and untagged mentions of an indexed entity across documents.

        Raises:
            KeyError: If the entity is not in the index.
        """
        index = self._require_index()
        entity = next((e for e in index.entities if e.id == entity_id), None)
        if entity is None:
            raise KeyError(f"Entity {entity_id} is not indexed")

        documents: dict[str, bytes] = {}
        for f in index.files:
            if not is_source_file(f.name):
                continue
            try:
                documents[f.name] = self._store.read(f.path)
            except OSError as e:
                logger.warning("Cannot read %s for reference analysis: %s", f.path, e)
        return analyze_references(
            entity,
            documents,
            include_aliases=include_aliases,
            context_radius=self._settings.reference_context_radius,
            limit=self._settings.untagged_reference_limit,
        )

    def add_snippet(
        self,
        card_id: str,
        text: str,
        start: int,
        end: int,
        card_classification: str | None = None,
        comment: str | None = None,
        classification: str | None = None,
    ) -> Snippet:
        """Create and store a snippet by the configured analyst.

        The card's classification falls back to the configured default.
        The index picks the snippet up on the next rebuild.
        """
        snippet = create_snippet(
            card_id,
            text,
            start,
            end,
            card_classification or self._settings.default_classification,
            analyst=self._settings.analyst_name,
            comment=comment,
            classification=classification,
        )
        self._store.save_snippet(snippet)
        return snippet
