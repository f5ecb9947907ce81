"""CSS tree model: Stylesheet, StyleRule, AtRule, Selector and Declaration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

from guidelint.model.span import Span
from guidelint.model.token import Token


@dataclass(frozen=True)
class Selector:
    """One selector of a comma-separated selector group."""

    text: str
    tokens: tuple[Token, ...]
    span: Span


@dataclass(frozen=True)
class Declaration:
    """A ``property: value`` pair.

    ``span`` runs from the property name to the end of the value and does not
    include the terminating semicolon.
    """

    kind: ClassVar[str] = "declaration"

    property: str
    value: str
    value_tokens: tuple[Token, ...]
    span: Span
    property_span: Span
    colon: Span
    important: bool = False
    semicolon: Span | None = None
    # tokens between the property name and the colon, and right after it
    before_colon: tuple[Token, ...] = ()
    after_colon: tuple[Token, ...] = ()

    @property
    def is_custom_property(self) -> bool:
        return self.property.startswith("--")


@dataclass(eq=False)
class StyleRule:
    """A selector group with its declaration block.

    An ``implicit`` rule has no selectors or braces: it groups declarations
    written bare at the top level of a stylesheet.
    """

    kind: ClassVar[str] = "style_rule"

    selectors: list[Selector]
    span: Span
    prelude: Span | None = None
    brace: Span | None = None
    declarations: list[Declaration] = field(default_factory=list)
    children: list[CssNode] = field(default_factory=list)
    implicit: bool = False


@dataclass(eq=False)
class AtRule:
    """An ``@``-rule, either a statement (``@import ...;``) or a block."""

    kind: ClassVar[str] = "at_rule"

    name: str  # as written, without the "@"
    name_span: Span
    prelude_tokens: tuple[Token, ...]
    span: Span
    brace: Span | None = None
    declarations: list[Declaration] = field(default_factory=list)
    children: list[CssNode] = field(default_factory=list)
    has_declarations: bool = False

    @property
    def lower_name(self) -> str:
        return self.name.lower()

    @property
    def prelude(self) -> str:
        return "".join(t.text for t in self.prelude_tokens).strip()

    @property
    def prelude_span(self) -> Span | None:
        if not self.prelude_tokens:
            return None
        return self.prelude_tokens[0].span.cover(self.prelude_tokens[-1].span)

    @property
    def is_block(self) -> bool:
        return self.brace is not None


@dataclass(eq=False)
class Stylesheet:
    kind: ClassVar[str] = "stylesheet"

    span: Span
    children: list[CssNode] = field(default_factory=list)


CssNode = Union[StyleRule, AtRule]
