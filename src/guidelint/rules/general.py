"""Rules shared by HTML and CSS files.

Each predicate takes a node and a RuleContext and returns a list of
Diagnostic objects describing any issues found.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from guidelint.lexer import tokenize_css
from guidelint.model.css import AtRule, Declaration, StyleRule
from guidelint.model.diagnostic import Diagnostic, Severity
from guidelint.model.html import Document, Element, TextNode
from guidelint.model.span import Position, Span, advance
from guidelint.model.token import TokenKind
from guidelint.rules.catalog import Rule
from guidelint.rules.values import (
    LITERAL_KINDS,
    first_uppercase,
    has_uppercase,
    iter_selector_tokens,
    url_target,
)

if TYPE_CHECKING:
    from guidelint.engine.context import RuleContext

_HTTP_RE = re.compile(r"\s*https?:(?=//)", re.I)
_URL_ATTRIBUTES = frozenset({"src", "href"})

# Whitespace in these elements is content, so its indentation is not checked.
_PREFORMATTED = frozenset({"pre", "textarea"})

# Foreign content keeps its own casing (viewBox, linearGradient ...).
_FOREIGN = frozenset({"svg", "math"})

_COMMENT_KINDS = frozenset({TokenKind.COMMENT, TokenKind.BAD_COMMENT, TokenKind.CDATA})


# ---------------------------------------------------------------------------
# protocol-relative-url
# ---------------------------------------------------------------------------


def _protocol(url: str) -> str | None:
    m = _HTTP_RE.match(url)
    return url[m.end():] if m else None


def check_protocol_element(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for attr in element.attributes:
        if attr.lower_name not in _URL_ATTRIBUTES or not attr.value:
            continue
        relative = _protocol(attr.value)
        if relative is not None:
            diagnostics.append(
                ctx.diagnostic(
                    attr.value_span or attr.span,
                    f"Omit the protocol from {attr.value!r}.",
                    fix=f"Use {relative!r}.",
                )
            )
    return diagnostics


def _protocol_in_tokens(tokens, ctx: RuleContext, strings: bool) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for tok in tokens:
        if tok.kind is TokenKind.URL:
            target, _ = url_target(tok)
        elif strings and tok.kind is TokenKind.STRING:
            target = tok.text[1:-1]
        else:
            continue
        relative = _protocol(target)
        if relative is not None:
            diagnostics.append(
                ctx.diagnostic(
                    tok.span,
                    f"Omit the protocol from {target!r}.",
                    fix=f"Use {relative!r}.",
                )
            )
    return diagnostics


def check_protocol_declaration(decl: Declaration, ctx: RuleContext) -> list[Diagnostic]:
    return _protocol_in_tokens(decl.value_tokens, ctx, strings=False)


def check_protocol_at_rule(rule: AtRule, ctx: RuleContext) -> list[Diagnostic]:
    # @import 'https://...' names a URL with a plain string
    strings = rule.lower_name == "import"
    return _protocol_in_tokens(rule.prelude_tokens, ctx, strings=strings)


# ---------------------------------------------------------------------------
# indentation
# ---------------------------------------------------------------------------


def _comment_lines(tokens) -> set[int]:
    lines: set[int] = set()
    for tok in tokens:
        if tok.kind in _COMMENT_KINDS:
            lines.update(range(tok.span.start.line + 1, tok.span.end.line + 1))
    return lines


def _exempt_lines(root, ctx: RuleContext) -> set[int]:
    """Lines whose leading whitespace belongs to a comment or preformatted text.

    CSS comments inside <style> are part of one HTML text token, so the
    element's text is tokenized as CSS to find them.
    """
    exempt = _comment_lines(ctx.tokens)
    if isinstance(root, Document):
        for element in root.iter_elements():
            if element.tag_name in _PREFORMATTED:
                exempt.update(range(element.start_tag.end.line + 1, element.span.end.line + 1))
            elif element.tag_name == "style":
                for child in element.children:
                    if isinstance(child, TextNode):
                        exempt |= _comment_lines(tokenize_css(child.text, origin=child.span.start))
    return exempt


def check_indentation(root, ctx: RuleContext) -> list[Diagnostic]:
    """Indent with spaces only, two at a time.

    Only the leading whitespace of a line is checked; a tab after the first
    non-blank character (alignment inside a line) is not reported.
    """
    diagnostics: list[Diagnostic] = []
    exempt = _exempt_lines(root, ctx)
    offset = 0
    for number, line in enumerate(ctx.lines, start=1):
        start = offset
        offset += len(line) + 1
        if number in exempt or not line.strip():
            continue
        body = line.lstrip(" \t")
        indent = line[: len(line) - len(body)]
        if not indent:
            continue
        span = Span(Position(start, number, 1), Position(start + len(indent), number, len(indent) + 1))
        if "\t" in indent:
            diagnostics.append(
                ctx.diagnostic(span, "Indent with spaces, not tabs.", fix="Replace tabs with two spaces.")
            )
        elif len(indent) % 2:
            diagnostics.append(
                ctx.diagnostic(
                    span,
                    f"Indentation of {len(indent)} spaces is not a multiple of 2.",
                )
            )
    return diagnostics


# ---------------------------------------------------------------------------
# trailing-whitespace
# ---------------------------------------------------------------------------


def check_trailing_whitespace(root, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    offset = 0
    for number, line in enumerate(ctx.lines, start=1):
        start = offset
        offset += len(line) + 1
        content = line[:-1] if line.endswith("\r") else line
        trimmed = content.rstrip()
        if trimmed == content:
            continue
        span = Span(
            Position(start + len(trimmed), number, len(trimmed) + 1),
            Position(start + len(content), number, len(content) + 1),
        )
        diagnostics.append(ctx.diagnostic(span, "Remove trailing whitespace."))
    return diagnostics


# ---------------------------------------------------------------------------
# utf8-no-bom
# ---------------------------------------------------------------------------


def check_no_bom(root, ctx: RuleContext) -> list[Diagnostic]:
    if not ctx.text.startswith("\ufeff"):
        return []
    span = Span(Position(0, 1, 1), Position(1, 1, 2))
    return [
        ctx.diagnostic(
            span,
            "File starts with a byte-order mark.",
            fix="Save the file as UTF-8 without a BOM.",
        )
    ]


# ---------------------------------------------------------------------------
# lowercase
# ---------------------------------------------------------------------------


def check_lowercase_element(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    if element.tag_name in _FOREIGN or any(
        getattr(a, "tag_name", None) in _FOREIGN for a in ctx.ancestors(element)
    ):
        return []
    diagnostics: list[Diagnostic] = []
    if has_uppercase(element.source_name):
        name_start = advance(element.start_tag.start, "<")
        diagnostics.append(
            ctx.diagnostic(
                Span(name_start, advance(name_start, element.source_name)),
                f"Element name <{element.source_name}> should be lowercase.",
                fix=f"Use <{element.tag_name}>.",
            )
        )
    for attr in element.attributes:
        if has_uppercase(attr.name):
            diagnostics.append(
                ctx.diagnostic(
                    Span(attr.span.start, advance(attr.span.start, attr.name)),
                    f"Attribute name {attr.name!r} should be lowercase.",
                    fix=f"Use {attr.lower_name!r}.",
                )
            )
    return diagnostics


def check_lowercase_selectors(rule: StyleRule, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for selector in rule.selectors:
        tokens = selector.tokens
        for i, tok, in_attribute in iter_selector_tokens(tokens):
            if tok.kind in LITERAL_KINDS:
                continue
            # [type=Text]: an unquoted attribute value is content
            if in_attribute and i and tokens[i - 1].kind is TokenKind.DELIM and tokens[i - 1].text == "=":
                continue
            if has_uppercase(tok.text):
                diagnostics.append(
                    ctx.diagnostic(
                        tok.span,
                        f"Selector {selector.text!r} should be lowercase.",
                        fix=f"Use {selector.text.lower()!r}.",
                    )
                )
                break
    return diagnostics


def check_lowercase_declaration(decl: Declaration, ctx: RuleContext) -> list[Diagnostic]:
    if decl.is_custom_property:
        return []
    diagnostics: list[Diagnostic] = []
    if has_uppercase(decl.property):
        diagnostics.append(
            ctx.diagnostic(
                decl.property_span,
                f"Property {decl.property!r} should be lowercase.",
                fix=f"Use {decl.property.lower()!r}.",
            )
        )
    offender = first_uppercase(decl.value_tokens)
    if offender is not None:
        diagnostics.append(
            ctx.diagnostic(
                offender.span,
                f"Value {decl.value!r} of {decl.property!r} should be lowercase "
                "(strings and URLs excepted).",
            )
        )
    return diagnostics


def check_lowercase_at_rule(rule: AtRule, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if has_uppercase(rule.name):
        diagnostics.append(
            ctx.diagnostic(
                rule.name_span,
                f"At-rule @{rule.name} should be lowercase.",
                fix=f"Use @{rule.lower_name}.",
            )
        )
    offender = first_uppercase(rule.prelude_tokens)
    if offender is not None:
        diagnostics.append(
            ctx.diagnostic(offender.span, f"{offender.text!r} in @{rule.name} should be lowercase.")
        )
    return diagnostics


# ---------------------------------------------------------------------------
# Rule registry
# ---------------------------------------------------------------------------

RULES = [
    Rule(
        id="protocol-relative-url",
        summary="Omit http:/https: from URLs of embedded resources.",
        handlers={
            "element": check_protocol_element,
            "declaration": check_protocol_declaration,
            "at_rule": check_protocol_at_rule,
        },
    ),
    Rule(
        id="indentation",
        summary="Indent by two spaces at a time; never use tabs.",
        handlers={"file": check_indentation},
    ),
    Rule(
        id="lowercase",
        summary="Use only lowercase for element and attribute names, selectors, properties and values.",
        handlers={
            "element": check_lowercase_element,
            "style_rule": check_lowercase_selectors,
            "declaration": check_lowercase_declaration,
            "at_rule": check_lowercase_at_rule,
        },
    ),
    Rule(
        id="trailing-whitespace",
        summary="Remove trailing white spaces.",
        handlers={"file": check_trailing_whitespace},
    ),
    Rule(
        id="utf8-no-bom",
        summary="Use UTF-8 without a byte-order mark.",
        handlers={"file": check_no_bom},
        severity=Severity.ERROR,
    ),
]
