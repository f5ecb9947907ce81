"""HTML tree model: Document, Element, Attribute and leaf nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from guidelint.model.span import Span


class QuoteStyle(Enum):
    """How an attribute value was quoted in the source."""

    DOUBLE = "double"
    SINGLE = "single"
    UNQUOTED = "unquoted"
    NONE = "none"  # boolean attribute, no value at all


@dataclass(frozen=True)
class Attribute:
    """A single attribute as written inside a start tag."""

    name: str  # as written, case preserved
    value: str | None
    quote: QuoteStyle
    span: Span
    value_span: Span | None = None

    @property
    def lower_name(self) -> str:
        return self.name.lower()


@dataclass(eq=False)
class TextNode:
    kind: ClassVar[str] = "text"

    text: str
    span: Span
    cdata: bool = False


@dataclass(eq=False)
class CommentNode:
    kind: ClassVar[str] = "comment"

    text: str
    span: Span


@dataclass(eq=False)
class Doctype:
    kind: ClassVar[str] = "doctype"

    text: str
    span: Span


@dataclass(eq=False)
class Element:
    """An element node.

    ``span`` covers the start tag through the end tag (or through the last
    child when the end tag was omitted). ``end_tag`` is ``None`` when the
    element was closed implicitly or is void.
    """

    kind: ClassVar[str] = "element"

    tag_name: str  # lowercase
    source_name: str  # as written
    attributes: list[Attribute]
    start_tag: Span
    span: Span
    children: list[Node] = field(default_factory=list)
    self_closing: bool = False
    end_tag: Span | None = None

    def get(self, name: str) -> Attribute | None:
        """Return the first attribute called *name* (case-insensitive)."""
        name = name.lower()
        for attr in self.attributes:
            if attr.lower_name == name:
                return attr
        return None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def iter_elements(self):
        """Yield descendant elements in document order."""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter_elements()

    @property
    def text(self) -> str:
        return "".join(c.text for c in self.children if isinstance(c, TextNode))


@dataclass(eq=False)
class Document:
    """Synthetic root of a parsed HTML file."""

    kind: ClassVar[str] = "document"

    span: Span
    children: list[Node] = field(default_factory=list)

    def iter_elements(self):
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter_elements()

    def find(self, tag_name: str) -> Element | None:
        for element in self.iter_elements():
            if element.tag_name == tag_name:
                return element
        return None


Node = Union[Element, TextNode, CommentNode, Doctype]
