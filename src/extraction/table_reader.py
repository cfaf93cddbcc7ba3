# src/extraction/table_reader.py - v1
"""Tabular view of CSV document text for cell references."""

from __future__ import annotations

import csv
import io


def read_table(text: str) -> list[list[str]]:
    """Parse CSV text into rows of cells. Blank lines are skipped."""
    reader = csv.reader(io.StringIO(text))
    return [row for row in reader if row]


def cell_value(rows: list[list[str]], row: int, col: int) -> str | None:
    """Cell at (row, col), 0-based, or None when out of range."""
    if row < 0 or col < 0 or row >= len(rows):
        return None
    cells = rows[row]
    if col >= len(cells):
        return None
    return cells[col]
