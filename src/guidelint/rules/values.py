"""Helpers shared by rules that look inside CSS values and selectors."""

from __future__ import annotations

import re
from typing import Iterator, Sequence

from guidelint.model.span import Position, Span, advance
from guidelint.model.token import Token, TokenKind

_URL_RE = re.compile(r"url\(\s*(.*?)\s*\)", re.I | re.S)
_UPPER_RE = re.compile(r"[A-Z]")

# Tokens whose text is content, not code: never subject to casing rules.
LITERAL_KINDS = frozenset({TokenKind.STRING, TokenKind.BAD_STRING, TokenKind.URL})


def url_target(token: Token) -> tuple[str, str]:
    """Split a URL token into ``(target, quote)``; quote is ``""`` when unquoted."""
    m = _URL_RE.fullmatch(token.text)
    inner = m.group(1) if m else ""
    if inner[:1] in ("'", '"'):
        return inner[1:-1], inner[0]
    return inner, ""


def iter_value_tokens(tokens: Sequence[Token]) -> Iterator[tuple[Token, tuple[str, ...]]]:
    """Yield each token with the names of the functions enclosing it.

    ``calc(1px + max(0px, 2em))`` yields ``0px`` with ``("calc", "max")``.
    """
    functions: list[str] = []
    for tok in tokens:
        if tok.kind is TokenKind.FUNCTION:
            yield tok, tuple(functions)
            functions.append(tok.text[:-1].lower())
            continue
        if tok.kind is TokenKind.PAREN_OPEN:
            functions.append("")
        elif tok.kind is TokenKind.PAREN_CLOSE and functions:
            functions.pop()
            continue
        yield tok, tuple(functions)


def iter_selector_tokens(tokens: Sequence[Token]) -> Iterator[tuple[int, Token, bool]]:
    """Yield ``(index, token, in_attribute)`` for the tokens of a selector.

    ``in_attribute`` is true between ``[`` and ``]``.
    """
    depth = 0
    for i, tok in enumerate(tokens):
        if tok.kind is TokenKind.BRACKET_OPEN:
            depth += 1
        elif tok.kind is TokenKind.BRACKET_CLOSE and depth:
            depth -= 1
        yield i, tok, depth > 0


def first_uppercase(tokens: Sequence[Token], skip: frozenset[TokenKind] = LITERAL_KINDS) -> Token | None:
    for tok in tokens:
        if tok.kind not in skip and _UPPER_RE.search(tok.text):
            return tok
    return None


def has_uppercase(text: str) -> bool:
    return _UPPER_RE.search(text) is not None


def sub_span(token: Token, start: int, end: int | None = None) -> Span:
    """Span of ``token.text[start:end]``."""
    end = len(token.text) if end is None else end
    begin = advance(token.span.start, token.text[:start])
    return Span(begin, advance(begin, token.text[start:end]))


def text_span(origin: Position, text: str, start: int, end: int) -> Span:
    """Span of ``text[start:end]`` where ``text`` begins at *origin*."""
    begin = advance(origin, text[:start])
    return Span(begin, advance(begin, text[start:end]))
