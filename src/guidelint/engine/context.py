"""Read-only views handed to rule predicates while a file is walked."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from guidelint.model.config import Language
from guidelint.model.diagnostic import Diagnostic, Severity
from guidelint.model.span import Span
from guidelint.model.token import Token


@dataclass(frozen=True)
class SourceFile:
    """One input file: its text, language and token stream."""

    path: str
    text: str
    language: Language
    tokens: tuple[Token, ...] = ()
    lines: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.text.split("\n")))


class TreeIndex:
    """Parent links for every node of the trees built from one file."""

    def __init__(self) -> None:
        self._parents: dict[int, Any] = {}

    def add(self, root: Any) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            for child in list(getattr(node, "children", ())) + list(
                getattr(node, "declarations", ())
            ):
                self._parents[id(child)] = node
                stack.append(child)

    def parent(self, node: Any) -> Any | None:
        return self._parents.get(id(node))


class RuleContext:
    """Everything a predicate may look at, bound to the rule being run.

    A predicate never mutates anything it is given; it only returns
    diagnostics built with :meth:`diagnostic`.
    """

    def __init__(
        self, source: SourceFile, index: TreeIndex, rule_id: str, severity: Severity
    ) -> None:
        self.source = source
        self._index = index
        self.rule_id = rule_id
        self.severity = severity

    @property
    def path(self) -> str:
        return self.source.path

    @property
    def text(self) -> str:
        return self.source.text

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self.source.tokens

    @property
    def lines(self) -> tuple[str, ...]:
        return self.source.lines

    def line(self, number: int) -> str:
        """Return 1-based line *number* without its newline."""
        return self.source.lines[number - 1]

    def slice(self, span: Span) -> str:
        return self.source.text[span.start.offset:span.end.offset]

    # --- tree relationships ---------------------------------------------------

    def parent(self, node: Any) -> Any | None:
        return self._index.parent(node)

    def ancestors(self, node: Any) -> Iterator[Any]:
        parent = self._index.parent(node)
        while parent is not None:
            yield parent
            parent = self._index.parent(parent)

    def siblings(self, node: Any) -> list[Any]:
        parent = self._index.parent(node)
        if parent is None:
            return [node]
        for attr in ("children", "declarations"):
            group = getattr(parent, attr, ())
            if any(member is node for member in group):
                return list(group)
        return [node]

    def previous_sibling(self, node: Any) -> Any | None:
        group = self.siblings(node)
        for i, member in enumerate(group):
            if member is node:
                return group[i - 1] if i else None
        return None

    # --- diagnostics ----------------------------------------------------------

    def diagnostic(self, span: Span, message: str, fix: str | None = None) -> Diagnostic:
        return Diagnostic(
            path=self.source.path,
            rule_id=self.rule_id,
            severity=self.severity,
            message=message,
            span=span,
            fix=fix,
        )
