# src/storage/layout.py - v2
"""User data directory structure.

Defines path conventions for raw documents, tag sidecars, snippets and
the persisted index under a single user data root.
"""

from __future__ import annotations

from pathlib import Path

from orcsindex.core.kinds import TAG_DIRECTORIES, TagKind

RAW_DIR = "raw"
SNIPPETS_DIR = "snippets"
INDEX_FILE = "index.json"

# Placeholder files kept in otherwise empty directories.
IGNORED_NAMES = frozenset({".gitkeep", ".DS_Store"})


def raw_dir(root: Path) -> Path:
    """Return raw/ directory holding source documents and cards."""
    return root / RAW_DIR


def tag_dir(root: Path, kind: TagKind) -> Path:
    """Return the sidecar directory for a tag kind."""
    return root / TAG_DIRECTORIES[kind]


def snippets_dir(root: Path) -> Path:
    """Return snippets/ directory."""
    return root / SNIPPETS_DIR


def index_path(root: Path, file_name: str = INDEX_FILE) -> Path:
    """Return path of the persisted master index."""
    return root / file_name


def ensure_layout(root: Path) -> None:
    """Create every directory of the layout."""
    raw_dir(root).mkdir(parents=True, exist_ok=True)
    snippets_dir(root).mkdir(parents=True, exist_ok=True)
    for kind in TAG_DIRECTORIES:
        tag_dir(root, kind).mkdir(parents=True, exist_ok=True)
