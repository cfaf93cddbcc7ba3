# src/logging/context.py - v2
"""Contextual logging support: attach document_id, build_id, operation to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per build or per document.
_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_build_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "build_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    document_id: str | None = None
    build_id: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        document_id=_document_id.get(),
        build_id=_build_id.get(),
        operation=_operation.get(),
    )


def set_build_context(build_id: str, operation: str | None = None) -> None:
    """Set build-level context (called once per index rebuild)."""
    _build_id.set(build_id)
    _operation.set(operation)


def set_document_context(document_id: str | None) -> None:
    """Set the document currently being processed."""
    _document_id.set(document_id)


def clear_context() -> None:
    """Reset all context variables."""
    _document_id.set(None)
    _build_id.set(None)
    _operation.set(None)
