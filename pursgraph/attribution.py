"""Attribute a usage location to its innermost enclosing declaration.

All coordinates here are 0-based ``(row, column)`` pairs, the way
tree-sitter reports them. The analyzer reports 1-based line/column pairs;
:func:`usage_span` converts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Point:
    row: int
    column: int


@dataclass(frozen=True)
class Span:
    start: Point
    end: Point

    def contains(self, other: "Span") -> bool:
        """True when *other* lies inside this span.

        Rows must nest; on a shared first row the start column may not
        precede ours, on a shared last row the end column may not exceed ours.
        """
        if other.start.row < self.start.row or other.end.row > self.end.row:
            return False
        if other.start.row == self.start.row and other.start.column < self.start.column:
            return False
        if other.end.row == self.end.row and other.end.column > self.end.column:
            return False
        return True

    def size(self) -> Tuple[int, int]:
        """Row extent first, then column extent on the closing row."""
        rows = self.end.row - self.start.row
        start_col = self.start.column if rows == 0 else 0
        return rows, self.end.column - start_col


@dataclass(frozen=True)
class Candidate:
    """A declaration span and the name bound by that declaration."""

    name: str
    span: Span


def usage_span(start: Sequence[int], end: Sequence[int]) -> Span:
    """Convert analyzer ``[line, column]`` pairs (1-based) to a 0-based span."""
    return Span(
        Point(start[0] - 1, start[1] - 1),
        Point(end[0] - 1, end[1] - 1),
    )


def innermost_enclosing(candidates: Iterable[Candidate], usage: Span) -> Optional[Candidate]:
    """Smallest candidate containing *usage*; the earliest one wins ties."""
    best: Optional[Candidate] = None
    best_size: Optional[Tuple[int, int]] = None
    for cand in candidates:
        if not cand.span.contains(usage):
            continue
        size = cand.span.size()
        if best_size is None or size < best_size:
            best, best_size = cand, size
    return best
