# src/storage/base_store.py - v2
"""Abstract document store: the storage collaborator's narrow interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from orcsindex.core.models import Entity, IndexedFile, Link, Snippet


@dataclass
class StoreSnapshot:
    """Fully materialised view of the store, read before a build starts."""

    files: list[IndexedFile] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    snippets: list[Snippet] = field(default_factory=list)
    documents: dict[str, str] = field(default_factory=dict)


class BaseDocumentStore(ABC):
    """Unified interface for reading documents and annotations."""

    @abstractmethod
    def list_files(self) -> list[IndexedFile]:
        """Every file known to the store, sources and sidecars."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Read raw bytes of a file."""

    @abstractmethod
    def write(self, path: str, content: bytes | str) -> None:
        """Write raw content to a file."""

    @abstractmethod
    def load_entities(self) -> list[Entity]:
        """Current entity records."""

    @abstractmethod
    def load_links(self) -> list[Link]:
        """Current link records."""

    @abstractmethod
    def load_snippets(self) -> list[Snippet]:
        """Current snippet records."""

    @abstractmethod
    def load_documents(self) -> dict[str, str]:
        """Document id -> current clean content."""

    @abstractmethod
    def save_snippet(self, snippet: Snippet) -> str:
        """Persist a snippet; returns where it was stored."""

    def snapshot(self) -> StoreSnapshot:
        """Read everything a build needs in one pass."""
        return StoreSnapshot(
            files=self.list_files(),
            entities=self.load_entities(),
            links=self.load_links(),
            snippets=self.load_snippets(),
            documents=self.load_documents(),
        )
