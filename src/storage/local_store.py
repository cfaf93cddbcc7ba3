# src/storage/local_store.py - v2
"""Local filesystem document store (default backend).

Layout under the user data root (see storage.layout):

    raw/            source documents (.txt, .csv) and composite cards
    entities/       *.entity.txt sidecars
    relationships/  *.relate.txt sidecars
    attributes/     *.attrib.txt sidecars
    comments/       *.comment.txt sidecars
    kv_pairs/       *.kv.txt sidecars
    snippets/       one JSON file per snippet

Unreadable or invalid files are logged and skipped; a single bad file
never aborts a listing.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from pydantic import ValidationError

from orcsindex.core.kinds import TAG_DIRECTORIES, TAG_KINDS, TagKind, file_kind
from orcsindex.core.models import Entity, IndexedFile, Link, Snippet
from orcsindex.extraction.card_extractor import card_metadata
from orcsindex.extraction.content_extractor import extract, validate
from orcsindex.parsing.inline_tags import strip_inline_tags
from orcsindex.parsing.tag_file import (
    TagRecord,
    format_entity_file,
    format_link_file,
    parse_tag_file,
    to_entity,
    to_links,
)
from orcsindex.references.reference_string import document_id_of
from orcsindex.storage.base_store import BaseDocumentStore
from orcsindex.storage.layout import IGNORED_NAMES, ensure_layout, raw_dir, snippets_dir, tag_dir

logger = logging.getLogger(__name__)


class LocalDocumentStore(BaseDocumentStore):
    """Read and write documents and annotations on the local filesystem."""

    def __init__(self, root: str | Path) -> None:
        """Initialize on a user data root, creating the layout if missing.

        Args:
            root: User data directory.
        """
        self._root = Path(root)
        ensure_layout(self._root)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        return self._root / path

    def _relative(self, path: Path) -> str:
        return path.relative_to(self._root).as_posix()

    # --- Raw access ---

    def read(self, path: str) -> bytes:
        """Read raw bytes of a file relative to the root."""
        return self._resolve(path).read_bytes()

    def write(self, path: str, content: bytes | str) -> None:
        """Write content to a file relative to the root."""
        p = self._resolve(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            p.write_bytes(content)
        else:
            p.write_text(content, encoding="utf-8")

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def delete(self, path: str) -> None:
        """Delete a file; missing files are ignored."""
        self._resolve(path).unlink(missing_ok=True)

    def _iter_dir(self, directory: Path, suffix: str | None = None) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            p for p in directory.iterdir()
            if p.is_file()
            and p.name not in IGNORED_NAMES
            and (suffix is None or p.name.lower().endswith(suffix))
        )

    # --- Listing ---

    def list_files(self) -> list[IndexedFile]:
        files: list[IndexedFile] = []
        for path in self._iter_dir(raw_dir(self._root)):
            indexed = self._index_document(path)
            if indexed is not None:
                files.append(indexed)
        for kind in TAG_KINDS:
            for path in self._iter_dir(tag_dir(self._root, kind)):
                indexed = self._index_sidecar(path, kind)
                if indexed is not None:
                    files.append(indexed)
        logger.debug("Listed %d files under %s", len(files), self._root)
        return files

    def _base_entry(self, path: Path, raw: bytes) -> dict:
        relative = self._relative(path)
        return {
            "id": hashlib.md5(relative.encode("utf-8")).hexdigest(),
            "path": relative,
            "name": path.name,
            "kind": file_kind(path.name),
            "hash": hashlib.sha256(raw).hexdigest(),
            "timestamp": path.stat().st_mtime,
        }

    def _index_document(self, path: Path) -> IndexedFile | None:
        try:
            raw = path.read_bytes()
        except OSError as e:
            logger.warning("Cannot read %s: %s", path, e)
            return None
        entry = self._base_entry(path, raw)
        if entry["kind"] == "orcs_card":
            meta = card_metadata(raw.decode("utf-8", errors="replace"))
            entry["card_uuid"] = meta.get("uuid") or None
            entry["source_file"] = meta.get("source_file") or None
        return IndexedFile(**entry)

    def _index_sidecar(self, path: Path, kind: TagKind) -> IndexedFile | None:
        record = self._read_tag(path, kind)
        try:
            raw = path.read_bytes()
        except OSError as e:
            logger.warning("Cannot read %s: %s", path, e)
            return None
        entry = self._base_entry(path, raw)
        entry["kind"] = record.kind if record is not None else kind
        if record is not None:
            entry["card_uuid"] = record.source_card
            entry["referenced_documents"] = _referenced_documents(record)
        return IndexedFile(**entry)

    # --- Annotations ---

    def _read_tag(self, path: Path, kind: TagKind) -> TagRecord | None:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read tag file %s: %s", path, e)
            return None
        return parse_tag_file(text, kind, self._relative(path))

    def _records(self, kind: TagKind) -> list[TagRecord]:
        records: list[TagRecord] = []
        for path in self._iter_dir(tag_dir(self._root, kind)):
            record = self._read_tag(path, kind)
            if record is not None:
                records.append(record)
        return records

    def load_entities(self) -> list[Entity]:
        entities: list[Entity] = []
        for record in self._records("entity"):
            if record.kind != "entity":
                continue
            try:
                entities.append(to_entity(record))
            except ValidationError as e:
                logger.warning("Skipping invalid entity file %s: %s", record.file_path, e)
        return entities

    def load_links(self) -> list[Link]:
        links: list[Link] = []
        for kind in ("relationship", "attribute"):
            for record in self._records(kind):
                try:
                    links.extend(to_links(record))
                except ValidationError as e:
                    logger.warning("Skipping invalid link file %s: %s", record.file_path, e)
        return links

    def load_snippets(self) -> list[Snippet]:
        snippets: list[Snippet] = []
        for path in self._iter_dir(snippets_dir(self._root), ".json"):
            try:
                snippets.append(Snippet.model_validate_json(path.read_bytes()))
            except (OSError, ValidationError) as e:
                logger.warning("Skipping invalid snippet file %s: %s", path, e)
        return snippets

    def load_documents(self) -> dict[str, str]:
        """Clean content by file name, cards also by their uuid.

        Content that fails the contamination check (after legacy inline
        tags are stripped) is left out so nothing is ever resolved against
        leaked metadata.
        """
        documents: dict[str, str] = {}
        for path in self._iter_dir(raw_dir(self._root)):
            try:
                raw = path.read_bytes()
            except OSError as e:
                logger.warning("Cannot read %s: %s", path, e)
                continue
            clean = extract(raw, path.name)
            # Legacy inline tags carry uuids of their own annotations.
            if not validate(strip_inline_tags(clean.content), path.name):
                continue
            documents[path.name] = clean.content
            if file_kind(path.name) == "orcs_card":
                card_uuid = card_metadata(raw.decode("utf-8", errors="replace")).get("uuid")
                if card_uuid:
                    documents[card_uuid] = clean.content
        return documents

    # --- Writers ---

    def save_document(self, name: str, content: bytes | str) -> str:
        """Store a source document or card under raw/; returns its path."""
        path = f"{raw_dir(Path('.')).as_posix()}/{name}"
        self.write(path, content)
        return path

    def save_entity(self, entity: Entity) -> str:
        path = f"{TAG_DIRECTORIES['entity']}/{entity.id}.entity.txt"
        self.write(path, format_entity_file(entity))
        return path

    def save_link(self, link: Link, references: list[str] | None = None) -> str:
        if link.is_attribute and not link.is_relationship:
            path = f"{TAG_DIRECTORIES['attribute']}/{link.id}.attrib.txt"
        else:
            path = f"{TAG_DIRECTORIES['relationship']}/{link.id}.relate.txt"
        self.write(path, format_link_file(link, references))
        return path

    def save_snippet(self, snippet: Snippet) -> str:
        path = f"{snippets_dir(Path('.')).as_posix()}/{snippet.id}.json"
        self.write(path, snippet.model_dump_json(indent=2))
        return path


def _referenced_documents(record: TagRecord) -> list[str]:
    docs: list[str] = []
    for reference in record.references:
        doc = document_id_of(reference)
        if doc and doc not in docs:
            docs.append(doc)
    return docs
