"""Source positions and spans."""

from __future__ import annotations

import bisect
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Position:
    """A point in source text.

    Attributes:
        offset: 0-based character offset into the text.
        line: 1-based line number.
        column: 1-based column, counted in characters.
    """

    offset: int
    line: int
    column: int


@dataclass(frozen=True, order=True)
class Span:
    """A half-open ``[start, end)`` range of source text."""

    start: Position
    end: Position

    @classmethod
    def point(cls, position: Position) -> Span:
        """Return a zero-width span at *position*."""
        return cls(position, position)

    @property
    def line(self) -> int:
        return self.start.line

    @property
    def column(self) -> int:
        return self.start.column

    def contains(self, other: Span) -> bool:
        return self.start.offset <= other.start.offset and other.end.offset <= self.end.offset

    def cover(self, other: Span) -> Span:
        """Return the smallest span covering both *self* and *other*."""
        return Span(min(self.start, other.start), max(self.end, other.end))

    def __str__(self) -> str:
        return f"{self.start.line}:{self.start.column}"


def advance(position: Position, text: str) -> Position:
    """Return the position reached after reading *text* from *position*."""
    newlines = text.count("\n")
    if not newlines:
        return Position(position.offset + len(text), position.line, position.column + len(text))
    tail = len(text) - text.rindex("\n") - 1
    return Position(position.offset + len(text), position.line + newlines, tail + 1)


class LineIndex:
    """Maps character offsets to line/column positions for one text."""

    def __init__(self, text: str, origin: Position | None = None) -> None:
        self._origin = origin or Position(0, 1, 1)
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    def position(self, offset: int) -> Position:
        """Return the Position of *offset* (relative to the indexed text)."""
        row = bisect.bisect_right(self._line_starts, offset) - 1
        column = offset - self._line_starts[row] + 1
        if row == 0:
            column += self._origin.column - 1
        return Position(
            offset=self._origin.offset + offset,
            line=self._origin.line + row,
            column=column,
        )

    def span(self, start: int, end: int) -> Span:
        return Span(self.position(start), self.position(end))
