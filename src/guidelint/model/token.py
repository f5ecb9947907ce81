"""Token model shared by the HTML and CSS lexers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from guidelint.model.span import Span


class TokenKind(Enum):
    # shared
    BOM = "bom"
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    UNKNOWN = "unknown"

    # HTML
    DOCTYPE = "doctype"
    CDATA = "cdata"
    TAG_OPEN = "tag_open"
    ATTRIBUTE = "attribute"
    TAG_END = "tag_end"
    TAG_CLOSE = "tag_close"
    TEXT = "text"

    # CSS
    BAD_COMMENT = "bad_comment"
    AT_KEYWORD = "at_keyword"
    IDENT = "ident"
    FUNCTION = "function"
    HASH = "hash"
    STRING = "string"
    BAD_STRING = "bad_string"
    URL = "url"
    NUMBER = "number"
    PERCENTAGE = "percentage"
    DIMENSION = "dimension"
    IMPORTANT = "important"
    COLON = "colon"
    SEMICOLON = "semicolon"
    COMMA = "comma"
    BRACE_OPEN = "brace_open"
    BRACE_CLOSE = "brace_close"
    PAREN_OPEN = "paren_open"
    PAREN_CLOSE = "paren_close"
    BRACKET_OPEN = "bracket_open"
    BRACKET_CLOSE = "bracket_close"
    DELIM = "delim"


TRIVIA = frozenset({TokenKind.WHITESPACE, TokenKind.COMMENT})


@dataclass(frozen=True)
class Token:
    """A lexical token: its kind, the exact source text and where it sits."""

    kind: TokenKind
    text: str
    span: Span

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.span})"
