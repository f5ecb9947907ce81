"""Hand-written, mode-switching tokenizer for HTML source.

The scanner is total: anything it cannot classify becomes an ``UNKNOWN``
token, and joining the text of every token reproduces the input exactly.

Modes:
    data     -- text, comments, doctype, start and end tags
    tag      -- attributes and whitespace between ``<name`` and ``>``
    raw text -- contents of ``script``/``style``/``textarea``/``title``,
                which run up to the matching end tag
"""

from __future__ import annotations

import re

from guidelint.model.span import LineIndex
from guidelint.model.token import Token, TokenKind

__all__ = ["tokenize_html", "RAW_TEXT_ELEMENTS"]

RAW_TEXT_ELEMENTS = frozenset({"script", "style", "textarea", "title"})

_COMMENT_RE = re.compile(r"<!--.*?-->", re.S)
_CDATA_RE = re.compile(r"<!\[CDATA\[.*?\]\]>", re.S)
_DOCTYPE_RE = re.compile(r"<!doctype\b[^<>]*>", re.I)
_BOGUS_COMMENT_RE = re.compile(r"<[!?][^<>]*>")
_TAG_OPEN_RE = re.compile(r"<([a-zA-Z][^\s/<>]*)")
_TAG_CLOSE_RE = re.compile(r"</([a-zA-Z][^\s/<>]*)[^<>]*>")
_BAD_CLOSE_RE = re.compile(r"</[a-zA-Z][^\s/<>]*")
_TEXT_RE = re.compile(r"<?[^<]*")

_WHITESPACE_RE = re.compile(r"\s+")
_TAG_END_RE = re.compile(r"/?>")
_ATTR_NAME_RE = re.compile(r"[^\s\"'>/=<]+")
_ATTR_EQUALS_RE = re.compile(r"\s*=\s*")
_UNQUOTED_VALUE_RE = re.compile(r"[^\s\"'=<>`]+")


class _Scanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.index = LineIndex(text)
        self.tokens: list[Token] = []

    def emit(self, kind: TokenKind, end: int) -> None:
        self.tokens.append(
            Token(kind, self.text[self.pos:end], self.index.span(self.pos, end))
        )
        self.pos = end

    def run(self) -> list[Token]:
        if self.text.startswith("\ufeff"):
            self.emit(TokenKind.BOM, 1)
        while self.pos < len(self.text):
            self.data()
        return self.tokens

    # --- data mode ------------------------------------------------------------

    def data(self) -> None:
        text, pos = self.text, self.pos
        if text.startswith("<!--", pos):
            m = _COMMENT_RE.match(text, pos)
            self.emit(TokenKind.COMMENT if m else TokenKind.UNKNOWN, m.end() if m else pos + 4)
            return
        if text.startswith("<![CDATA[", pos):
            m = _CDATA_RE.match(text, pos)
            self.emit(TokenKind.CDATA if m else TokenKind.UNKNOWN, m.end() if m else pos + 9)
            return
        m = _DOCTYPE_RE.match(text, pos)
        if m:
            self.emit(TokenKind.DOCTYPE, m.end())
            return
        if text.startswith(("<!", "<?"), pos):
            m = _BOGUS_COMMENT_RE.match(text, pos)
            self.emit(TokenKind.COMMENT if m else TokenKind.UNKNOWN, m.end() if m else pos + 2)
            return
        if text.startswith("</", pos):
            m = _TAG_CLOSE_RE.match(text, pos)
            if m:
                self.emit(TokenKind.TAG_CLOSE, m.end())
                return
            bad = _BAD_CLOSE_RE.match(text, pos)
            if bad:
                self.emit(TokenKind.UNKNOWN, bad.end())
                return
        m = _TAG_OPEN_RE.match(text, pos)
        if m:
            self.emit(TokenKind.TAG_OPEN, m.end())
            self.tag(m.group(1).lower())
            return
        m = _TEXT_RE.match(text, pos)
        self.emit(TokenKind.TEXT, m.end())

    # --- tag mode -------------------------------------------------------------

    def tag(self, name: str) -> None:
        text = self.text
        while self.pos < len(text):
            pos = self.pos
            if text[pos] == "<":
                return  # unterminated start tag; resume in data mode
            m = _WHITESPACE_RE.match(text, pos)
            if m:
                self.emit(TokenKind.WHITESPACE, m.end())
                continue
            m = _TAG_END_RE.match(text, pos)
            if m:
                self.emit(TokenKind.TAG_END, m.end())
                if name in RAW_TEXT_ELEMENTS and m.group() == ">":
                    self.raw_text(name)
                return
            m = _ATTR_NAME_RE.match(text, pos)
            if m:
                self.attribute(m.end())
                continue
            self.emit(TokenKind.UNKNOWN, pos + 1)

    def attribute(self, name_end: int) -> None:
        text = self.text
        eq = _ATTR_EQUALS_RE.match(text, name_end)
        if not eq:
            self.emit(TokenKind.ATTRIBUTE, name_end)
            return
        value_start = eq.end()
        quote = text[value_start:value_start + 1]
        if quote in ("'", '"'):
            close = text.find(quote, value_start + 1)
            if close == -1:
                # unterminated quote: give up on this tag up to the next "<"
                resync = text.find("<", value_start)
                self.emit(TokenKind.UNKNOWN, len(text) if resync == -1 else resync)
                return
            self.emit(TokenKind.ATTRIBUTE, close + 1)
            return
        m = _UNQUOTED_VALUE_RE.match(text, value_start)
        if m:
            self.emit(TokenKind.ATTRIBUTE, m.end())
        else:
            # "name=" with nothing after it
            self.emit(TokenKind.ATTRIBUTE, text.index("=", name_end) + 1)

    # --- raw text mode --------------------------------------------------------

    def raw_text(self, name: str) -> None:
        end_re = re.compile(rf"</{re.escape(name)}(?=[\s/>])", re.I)
        m = end_re.search(self.text, self.pos)
        end = m.start() if m else len(self.text)
        if end > self.pos:
            self.emit(TokenKind.TEXT, end)


def tokenize_html(text: str) -> list[Token]:
    """Split HTML *text* into a flat, positioned token stream."""
    return _Scanner(text).run()
