"""Parser error types."""

from __future__ import annotations

from guidelint.model.span import Span


class ParseError(Exception):
    """A structural problem found while building a tree.

    Parsers raise it where the problem is detected, record it, and carry on
    from the next reliable boundary; it is never fatal for a whole file.
    """

    def __init__(self, message: str, span: Span):
        self.span = span
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column
