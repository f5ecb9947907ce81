"""HTML tree construction from a token stream.

A deliberately small subset of the HTML5 tree-construction algorithm: enough
to know element nesting and attribute lists. Optional end tags (``li``, ``p``,
``td`` ...) are closed implicitly by the start tags that follow them, the same
way browsers do, and are not reported.
"""

from __future__ import annotations

import re

from guidelint.model.html import (
    Attribute,
    CommentNode,
    Doctype,
    Document,
    Element,
    QuoteStyle,
    TextNode,
)
from guidelint.model.span import Position, Span, advance
from guidelint.model.token import Token, TokenKind
from guidelint.parser.errors import ParseError

__all__ = ["parse_html", "VOID_ELEMENTS", "OPTIONAL_END_TAGS", "IMPLIED_END_TAGS"]

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# Start tags that close an open <p>.
_CLOSES_P = frozenset({
    "address", "article", "aside", "blockquote", "details", "dialog", "dd",
    "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form",
    "h1", "h2", "h3", "h4", "h5", "h6", "header", "hgroup", "hr", "li",
    "main", "menu", "nav", "ol", "p", "pre", "section", "table", "ul",
})

_CELL_CLOSERS = frozenset({"td", "th", "tr", "thead", "tbody", "tfoot"})

# element -> start tags that implicitly end it when it is the current node
IMPLIED_END_TAGS: dict[str, frozenset[str]] = {
    "p": _CLOSES_P,
    "li": frozenset({"li"}),
    "dt": frozenset({"dt", "dd"}),
    "dd": frozenset({"dt", "dd"}),
    "option": frozenset({"option", "optgroup"}),
    "optgroup": frozenset({"optgroup"}),
    "tr": frozenset({"tr", "thead", "tbody", "tfoot"}),
    "td": _CELL_CLOSERS,
    "th": _CELL_CLOSERS,
    "thead": frozenset({"tbody", "tfoot"}),
    "tbody": frozenset({"tbody", "tfoot"}),
    "tfoot": frozenset({"tbody"}),
    "rt": frozenset({"rt", "rp"}),
    "rp": frozenset({"rt", "rp"}),
    "head": frozenset({"body"}),
}

# Elements whose end tag may be omitted.
OPTIONAL_END_TAGS = frozenset(IMPLIED_END_TAGS) | {"html", "body", "colgroup", "caption"}

_ATTRIBUTE_RE = re.compile(r"([^\s=]+)(?:(\s*=\s*)(.*))?", re.S)
_CLOSE_NAME_RE = re.compile(r"</([^\s/<>]+)")


def _attribute(token: Token) -> Attribute:
    m = _ATTRIBUTE_RE.fullmatch(token.text)
    assert m is not None
    name, equals, raw = m.group(1), m.group(2), m.group(3)
    if equals is None:
        return Attribute(name=name, value=None, quote=QuoteStyle.NONE, span=token.span)
    start = advance(token.span.start, name + equals)
    value_span = Span(start, token.span.end)
    if raw[:1] == '"':
        return Attribute(name, raw[1:-1], QuoteStyle.DOUBLE, token.span, value_span)
    if raw[:1] == "'":
        return Attribute(name, raw[1:-1], QuoteStyle.SINGLE, token.span, value_span)
    return Attribute(name, raw, QuoteStyle.UNQUOTED, token.span, value_span)


class _HtmlParser:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.errors: list[ParseError] = []
        if tokens:
            span = Span(tokens[0].span.start, tokens[-1].span.end)
        else:
            span = Span.point(Position(0, 1, 1))
        self.document = Document(span=span)
        self.stack: list[Document | Element] = [self.document]

    @property
    def current(self) -> Document | Element:
        return self.stack[-1]

    def parse(self) -> Document:
        while self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            if tok.kind is TokenKind.TAG_OPEN:
                self._start_tag()
                continue
            if tok.kind is TokenKind.TAG_CLOSE:
                self._end_tag(tok)
            elif tok.kind is TokenKind.TEXT:
                self._text(tok)
            elif tok.kind is TokenKind.CDATA:
                self.current.children.append(TextNode(tok.text[9:-3], tok.span, cdata=True))
            elif tok.kind is TokenKind.COMMENT:
                self.current.children.append(CommentNode(tok.text, tok.span))
            elif tok.kind is TokenKind.DOCTYPE:
                self.current.children.append(Doctype(tok.text, tok.span))
            elif tok.kind is TokenKind.UNKNOWN:
                self._unknown()
                continue
            self.pos += 1
        while len(self.stack) > 1:
            element = self.stack.pop()
            assert isinstance(element, Element)
            if element.tag_name not in OPTIONAL_END_TAGS:
                self.errors.append(
                    ParseError(f"Element <{element.source_name}> is never closed.", element.start_tag)
                )
            self._close(element)
        return self.document

    # --- token handlers -------------------------------------------------------

    def _text(self, tok: Token) -> None:
        children = self.current.children
        last = children[-1] if children else None
        if isinstance(last, TextNode) and not last.cdata and last.span.end == tok.span.start:
            last.text += tok.text
            last.span = last.span.cover(tok.span)
            return
        children.append(TextNode(tok.text, tok.span))

    def _unknown(self) -> None:
        first = self.tokens[self.pos]
        last = first
        while self.pos < len(self.tokens) and self.tokens[self.pos].kind is TokenKind.UNKNOWN:
            last = self.tokens[self.pos]
            self.pos += 1
        span = first.span.cover(last.span)
        text = first.text if first is last else first.text + "..."
        self.errors.append(ParseError(f"Unrecognized markup {text!r}.", span))

    def _start_tag(self) -> None:
        open_tok = self.tokens[self.pos]
        source_name = open_tok.text[1:]
        last = open_tok
        end_tok: Token | None = None
        attributes: list[Attribute] = []
        self.pos += 1
        while self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            if tok.kind is TokenKind.TAG_END:
                end_tok = last = tok
                self.pos += 1
                break
            if tok.kind is TokenKind.ATTRIBUTE:
                attributes.append(_attribute(tok))
            elif tok.kind is TokenKind.UNKNOWN:
                self.errors.append(
                    ParseError(f"Malformed attribute {tok.text!r} in <{source_name}>.", tok.span)
                )
            elif tok.kind is not TokenKind.WHITESPACE:
                break
            last = tok
            self.pos += 1
        if end_tok is None:
            self.errors.append(
                ParseError(f"Start tag <{source_name}> is not terminated by '>'.", open_tok.span)
            )

        tag_name = source_name.lower()
        self._close_implied(tag_name)
        start_tag = open_tok.span.cover(last.span)
        self_closing = end_tok is not None and end_tok.text == "/>"
        element = Element(
            tag_name=tag_name,
            source_name=source_name,
            attributes=attributes,
            start_tag=start_tag,
            span=start_tag,
            self_closing=self_closing,
        )
        self.current.children.append(element)
        if tag_name not in VOID_ELEMENTS and not self_closing:
            self.stack.append(element)

    def _end_tag(self, tok: Token) -> None:
        m = _CLOSE_NAME_RE.match(tok.text)
        assert m is not None
        name = m.group(1).lower()
        for depth in range(len(self.stack) - 1, 0, -1):
            candidate = self.stack[depth]
            assert isinstance(candidate, Element)
            if candidate.tag_name == name:
                break
        else:
            self.errors.append(ParseError(f"Unexpected closing tag {tok.text!r}.", tok.span))
            return
        while len(self.stack) - 1 > depth:
            inner = self.stack.pop()
            assert isinstance(inner, Element)
            if inner.tag_name not in OPTIONAL_END_TAGS:
                self.errors.append(
                    ParseError(
                        f"Element <{inner.source_name}> is not closed before {tok.text!r}.",
                        inner.start_tag,
                    )
                )
            self._close(inner)
        element = self.stack.pop()
        assert isinstance(element, Element)
        element.end_tag = tok.span
        element.span = element.span.cover(tok.span)

    # --- helpers --------------------------------------------------------------

    def _close_implied(self, tag_name: str) -> None:
        while len(self.stack) > 1:
            top = self.current
            assert isinstance(top, Element)
            closers = IMPLIED_END_TAGS.get(top.tag_name)
            if closers is None or tag_name not in closers:
                return
            self._close(self.stack.pop())

    @staticmethod
    def _close(element: Document | Element) -> None:
        if element.children:
            element.span = element.span.cover(element.children[-1].span)


def parse_html(tokens: list[Token]) -> tuple[Document, list[ParseError]]:
    """Build a Document tree from HTML *tokens*.

    Returns the tree together with every recoverable problem found on the
    way; parsing never stops early.
    """
    parser = _HtmlParser(tokens)
    document = parser.parse()
    return document, parser.errors
