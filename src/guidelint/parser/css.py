"""Hand-written recursive-descent parser for CSS token streams.

Syntax handled:
    @charset "utf-8";                    statement at-rule
    @media screen { a { ... } }           at-rule nesting rules
    @font-face { font-family: x; }        at-rule holding declarations
    h1, .title { color: #333; }           style rule
    .card { &:hover { ... } }             nested style rule
    color: red;                           bare declaration (implicit block)

Problems raise ParseError, which is recorded before the parser resumes at the
next ``;`` or ``}``.
"""

from __future__ import annotations

import re

from guidelint.model.css import AtRule, Declaration, Selector, StyleRule, Stylesheet
from guidelint.model.span import Position, Span
from guidelint.model.token import TRIVIA, Token, TokenKind
from guidelint.parser.errors import ParseError

__all__ = ["parse_css", "NESTED_AT_RULES", "is_keyframes"]

# At-rules whose block holds rules rather than declarations.
NESTED_AT_RULES = frozenset({
    "media", "supports", "document", "-moz-document", "layer", "container",
    "scope", "starting-style",
})

_KEYFRAMES_RE = re.compile(r"(?:-[a-z]+-)?keyframes")

_SKIPPED = TRIVIA | {TokenKind.BOM}
_OPENERS = frozenset({TokenKind.PAREN_OPEN, TokenKind.BRACKET_OPEN, TokenKind.FUNCTION})
_CLOSERS = frozenset({TokenKind.PAREN_CLOSE, TokenKind.BRACKET_CLOSE})
_BRACES = frozenset({TokenKind.BRACE_OPEN, TokenKind.BRACE_CLOSE})


def is_keyframes(name: str) -> bool:
    return _KEYFRAMES_RE.fullmatch(name.lower()) is not None


def _strip(tokens: list[Token]) -> list[Token]:
    start, end = 0, len(tokens)
    while start < end and tokens[start].kind in _SKIPPED:
        start += 1
    while end > start and tokens[end - 1].kind in _SKIPPED:
        end -= 1
    return tokens[start:end]


def _cover(tokens: list[Token]) -> Span:
    return tokens[0].span.cover(tokens[-1].span)


def _split_selectors(tokens: list[Token]) -> list[Selector]:
    groups: list[list[Token]] = [[]]
    depth = 0
    for tok in tokens:
        if tok.kind in _OPENERS:
            depth += 1
        elif tok.kind in _CLOSERS and depth:
            depth -= 1
        if tok.kind is TokenKind.COMMA and depth == 0:
            groups.append([])
            continue
        groups[-1].append(tok)
    selectors = []
    for group in groups:
        group = _strip(group)
        if group:
            text = "".join(t.text for t in group)
            selectors.append(Selector(text=text, tokens=tuple(group), span=_cover(group)))
    return selectors


class _CssParser:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.errors: list[ParseError] = []

    # --- token helpers --------------------------------------------------------

    def _next_significant(self) -> Token | None:
        """Skip whitespace and comments; return (without consuming) the next token."""
        while self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            if tok.kind is TokenKind.BAD_COMMENT:
                self.errors.append(ParseError("Unterminated comment.", tok.span))
            elif tok.kind not in _SKIPPED:
                return tok
            self.pos += 1
        return None

    def _collect(self, stop: frozenset[TokenKind]) -> tuple[list[Token], Token | None]:
        """Consume tokens up to (not including) the first *stop* token.

        Braces stop collection at any nesting depth; other stop kinds only
        outside parentheses and brackets.
        """
        start = self.pos
        depth = 0
        while self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            if tok.kind in stop and (depth == 0 or tok.kind in _BRACES):
                return self.tokens[start:self.pos], tok
            if tok.kind in _OPENERS:
                depth += 1
            elif tok.kind in _CLOSERS and depth:
                depth -= 1
            self.pos += 1
        return self.tokens[start:self.pos], None

    def _report_anomalies(self, tokens: list[Token]) -> None:
        for tok in tokens:
            if tok.kind is TokenKind.UNKNOWN:
                self.errors.append(ParseError(f"Unrecognized character {tok.text!r}.", tok.span))
            elif tok.kind is TokenKind.BAD_COMMENT:
                self.errors.append(ParseError("Unterminated comment.", tok.span))
            elif tok.kind is TokenKind.BAD_STRING:
                self.errors.append(ParseError("Unterminated string.", tok.span))

    def _end_position(self) -> Position:
        if self.tokens:
            return self.tokens[-1].span.end
        return Position(0, 1, 1)

    # --- rule lists -----------------------------------------------------------

    def rule_list(self, children: list, nested: bool) -> Token | None:
        """Parse rules into *children* until EOF, or until ``}`` when *nested*.

        Returns the closing brace token when one ends the list.
        """
        while True:
            tok = self._next_significant()
            if tok is None:
                return None
            if tok.kind is TokenKind.BRACE_CLOSE:
                self.pos += 1
                if nested:
                    return tok
                self.errors.append(ParseError("Unexpected '}'.", tok.span))
                continue
            try:
                if tok.kind is TokenKind.AT_KEYWORD:
                    children.append(self.at_rule())
                else:
                    self.qualified_rule(children)
            except ParseError as exc:
                self.errors.append(exc)

    def qualified_rule(self, children: list) -> None:
        stop_kinds = frozenset({TokenKind.BRACE_OPEN, TokenKind.BRACE_CLOSE, TokenKind.SEMICOLON})
        prelude, stop = self._collect(stop_kinds)
        prelude = _strip(prelude)
        if stop is not None and stop.kind is TokenKind.BRACE_OPEN:
            self.pos += 1
            children.append(self.style_rule(prelude, stop))
            return

        semicolon = None
        if stop is not None and stop.kind is TokenKind.SEMICOLON:
            semicolon = stop
            self.pos += 1
        if not prelude:
            return
        if prelude[0].kind is not TokenKind.IDENT or not any(
            t.kind is TokenKind.COLON for t in prelude
        ):
            raise ParseError(f"Expected '{{' after {prelude[0].text!r}.", _cover(prelude))

        # bare declarations are grouped into one selector-less block
        declaration = self.declaration(prelude, semicolon)
        block = children[-1] if children else None
        if not (isinstance(block, StyleRule) and block.implicit):
            block = StyleRule(selectors=[], span=declaration.span, implicit=True)
            children.append(block)
        block.declarations.append(declaration)
        block.span = block.span.cover(declaration.span)

    def style_rule(self, prelude: list[Token], brace: Token) -> StyleRule:
        self._report_anomalies(prelude)
        start = prelude[0].span.start if prelude else brace.span.start
        rule = StyleRule(
            selectors=_split_selectors(prelude),
            span=Span(start, brace.span.end),
            prelude=_cover(prelude) if prelude else None,
            brace=brace.span,
        )
        close = self.declaration_block(rule)
        rule.span = Span(start, close.span.end if close else self._end_position())
        return rule

    def at_rule(self) -> AtRule:
        name_tok = self.tokens[self.pos]
        self.pos += 1
        stop_kinds = frozenset({TokenKind.BRACE_OPEN, TokenKind.BRACE_CLOSE, TokenKind.SEMICOLON})
        prelude, stop = self._collect(stop_kinds)
        prelude = _strip(prelude)
        self._report_anomalies(prelude)
        rule = AtRule(
            name=name_tok.text[1:],
            name_span=name_tok.span,
            prelude_tokens=tuple(prelude),
            span=name_tok.span.cover(prelude[-1].span) if prelude else name_tok.span,
        )
        if stop is None or stop.kind is TokenKind.BRACE_CLOSE:
            self.errors.append(ParseError(f"At-rule {name_tok.text} is missing ';'.", rule.span))
            return rule
        self.pos += 1
        rule.span = rule.span.cover(stop.span)
        if stop.kind is TokenKind.SEMICOLON:
            return rule

        rule.brace = stop.span
        if rule.lower_name in NESTED_AT_RULES or is_keyframes(rule.name):
            close = self.rule_list(rule.children, nested=True)
            if close is None:
                self.errors.append(
                    ParseError(f"Block of {name_tok.text} is never closed.", rule.span)
                )
        else:
            rule.has_declarations = True
            close = self.declaration_block(rule)
        rule.span = Span(rule.span.start, close.span.end if close else self._end_position())
        return rule

    # --- declaration blocks ---------------------------------------------------

    def declaration_block(self, owner: StyleRule | AtRule) -> Token | None:
        """Parse declarations (and nested rules) up to the closing ``}``."""
        stop_kinds = frozenset({TokenKind.SEMICOLON, TokenKind.BRACE_OPEN, TokenKind.BRACE_CLOSE})
        while True:
            tok = self._next_significant()
            if tok is None:
                self.errors.append(ParseError("Block is never closed; expected '}'.", owner.span))
                return None
            if tok.kind is TokenKind.BRACE_CLOSE:
                self.pos += 1
                return tok
            if tok.kind is TokenKind.SEMICOLON:
                self.pos += 1
                continue
            try:
                if tok.kind is TokenKind.AT_KEYWORD:
                    owner.children.append(self.at_rule())
                    continue
                parts, stop = self._collect(stop_kinds)
                parts = _strip(parts)
                if stop is not None and stop.kind is TokenKind.BRACE_OPEN:
                    self.pos += 1
                    owner.children.append(self.style_rule(parts, stop))
                    continue
                semicolon = None
                if stop is not None and stop.kind is TokenKind.SEMICOLON:
                    semicolon = stop
                    self.pos += 1
                owner.declarations.append(self.declaration(parts, semicolon))
            except ParseError as exc:
                self.errors.append(exc)

    def declaration(self, parts: list[Token], semicolon: Token | None) -> Declaration:
        name = parts[0]
        if name.kind is not TokenKind.IDENT:
            raise ParseError(f"Expected a property name, found {name.text!r}.", _cover(parts))
        for tok in parts:
            if tok.kind is TokenKind.BAD_STRING:
                raise ParseError("Unterminated string.", tok.span)

        i = 1
        while i < len(parts) and parts[i].kind in _SKIPPED:
            i += 1
        if i == len(parts) or parts[i].kind is not TokenKind.COLON:
            raise ParseError(f"Declaration {name.text!r} is missing ':'.", _cover(parts))
        before_colon = parts[1:i]
        colon = parts[i]
        rest = parts[i + 1:]
        j = 0
        while j < len(rest) and rest[j].kind in _SKIPPED:
            j += 1
        after_colon = rest[:j]
        value_tokens = rest[j:]
        if not value_tokens:
            raise ParseError(f"Declaration {name.text!r} has no value.", _cover(parts))
        self._report_anomalies(value_tokens)

        important = any(t.kind is TokenKind.IMPORTANT for t in value_tokens)
        plain = [t for t in value_tokens if t.kind is not TokenKind.IMPORTANT]
        return Declaration(
            property=name.text,
            value="".join(t.text for t in plain).strip(),
            value_tokens=tuple(value_tokens),
            span=Span(name.span.start, value_tokens[-1].span.end),
            property_span=name.span,
            colon=colon.span,
            important=important,
            semicolon=semicolon.span if semicolon else None,
            before_colon=tuple(before_colon),
            after_colon=tuple(after_colon),
        )


def parse_css(tokens: list[Token]) -> tuple[Stylesheet, list[ParseError]]:
    """Build a Stylesheet tree from CSS *tokens*.

    Returns the tree together with every recoverable problem found on the
    way; parsing never stops early.
    """
    if tokens:
        span = Span(tokens[0].span.start, tokens[-1].span.end)
    else:
        span = Span.point(Position(0, 1, 1))
    sheet = Stylesheet(span=span)
    parser = _CssParser(tokens)
    parser.rule_list(sheet.children, nested=False)
    return sheet, parser.errors
