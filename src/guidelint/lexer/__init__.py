"""Tokenizers for HTML and CSS source."""

from guidelint.lexer.css import tokenize_css
from guidelint.lexer.html import RAW_TEXT_ELEMENTS, tokenize_html

__all__ = ["tokenize_html", "tokenize_css", "RAW_TEXT_ELEMENTS"]
