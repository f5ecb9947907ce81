"""CSS tokenizer built on a lark basic lexer (see ``css.lark``)."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from lark import Lark

from guidelint.model.span import LineIndex, Position
from guidelint.model.token import Token, TokenKind

__all__ = ["tokenize_css"]

GRAMMAR_PATH = Path(__file__).parent / "css.lark"

# lark terminal names that differ from TokenKind member names
_RENAMED = {"WS": TokenKind.WHITESPACE}


@lru_cache(maxsize=1)
def _lark() -> Lark:
    return Lark(GRAMMAR_PATH.read_text(encoding="utf-8"), parser="lalr", lexer="basic")


def _kind(terminal: str) -> TokenKind:
    return _RENAMED.get(terminal) or TokenKind[terminal]


def tokenize_css(text: str, origin: Position | None = None) -> list[Token]:
    """Split CSS *text* into a flat, positioned token stream.

    *origin* is the position of ``text[0]`` in the enclosing file, used when
    the CSS comes from an HTML ``<style>`` element.
    """
    index = LineIndex(text, origin)
    return [
        Token(_kind(tok.type), tok.value, index.span(tok.start_pos, tok.end_pos))
        for tok in _lark().lex(text, dont_ignore=True)
    ]
