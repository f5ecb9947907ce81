"""guidelint model layer -- public type re-exports."""

from guidelint.model.config import (
    Language,
    ResolvedConfig,
    UnsupportedLanguageError,
    detect_language,
)
from guidelint.model.css import AtRule, Declaration, Selector, StyleRule, Stylesheet
from guidelint.model.diagnostic import Diagnostic, Severity
from guidelint.model.html import (
    Attribute,
    CommentNode,
    Doctype,
    Document,
    Element,
    QuoteStyle,
    TextNode,
)
from guidelint.model.span import LineIndex, Position, Span
from guidelint.model.token import Token, TokenKind

__all__ = [
    # span
    "Position",
    "Span",
    "LineIndex",
    # token
    "Token",
    "TokenKind",
    # html
    "Document",
    "Element",
    "Attribute",
    "QuoteStyle",
    "TextNode",
    "CommentNode",
    "Doctype",
    # css
    "Stylesheet",
    "StyleRule",
    "AtRule",
    "Selector",
    "Declaration",
    # diagnostic
    "Severity",
    "Diagnostic",
    # config
    "Language",
    "ResolvedConfig",
    "UnsupportedLanguageError",
    "detect_language",
]
