"""Tolerant HTML and CSS parsers."""

from guidelint.parser.css import parse_css
from guidelint.parser.errors import ParseError
from guidelint.parser.html import parse_html

__all__ = ["parse_html", "parse_css", "ParseError"]
