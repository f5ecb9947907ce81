"""Style rules for HTML documents."""

from __future__ import annotations

import html
import re
import unicodedata
from typing import TYPE_CHECKING

from guidelint.model.diagnostic import Diagnostic, Severity
from guidelint.model.html import Doctype, Element, QuoteStyle, TextNode
from guidelint.model.span import Position, Span
from guidelint.parser.html import OPTIONAL_END_TAGS, VOID_ELEMENTS
from guidelint.rules.catalog import Rule
from guidelint.rules.values import text_span

if TYPE_CHECKING:
    from guidelint.engine.context import RuleContext


# ---------------------------------------------------------------------------
# Known value sets
# ---------------------------------------------------------------------------

_DOCTYPE_RE = re.compile(r"<!doctype\s+html\s*>", re.I)
_ENTITY_RE = re.compile(r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")

# References to characters with special meaning in HTML, plus invisible ones.
_ALLOWED_ENTITIES = frozenset({
    "amp", "lt", "gt", "quot", "apos",
    "nbsp", "shy", "zwj", "zwnj", "lrm", "rlm", "ensp", "emsp", "thinsp",
})
_INVISIBLE_CATEGORIES = frozenset({"Cc", "Cf", "Zs", "Zl", "Zp"})

_SCRIPT_TYPES = frozenset({
    "text/javascript",
    "application/javascript",
    "application/x-javascript",
    "text/ecmascript",
    "application/ecmascript",
})

BLOCK_ELEMENTS = frozenset({
    "address", "article", "aside", "blockquote", "caption", "dd", "details",
    "dialog", "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer",
    "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hgroup", "hr",
    "li", "main", "nav", "ol", "p", "pre", "section", "table", "tbody", "td",
    "tfoot", "th", "thead", "tr", "ul",
})

_RAW_TEXT_PARENTS = frozenset({"script", "style"})


# ---------------------------------------------------------------------------
# Document rules
# ---------------------------------------------------------------------------


def check_doctype(doctype: Doctype, ctx: RuleContext) -> list[Diagnostic]:
    """Use the HTML5 doctype."""
    if _DOCTYPE_RE.fullmatch(doctype.text):
        return []
    return [
        ctx.diagnostic(
            doctype.span,
            f"Use the HTML5 doctype instead of {doctype.text!r}.",
            fix="<!DOCTYPE html>",
        )
    ]


def check_meta_charset(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    """<head> must declare utf-8 with <meta charset>."""
    if element.tag_name != "head":
        return []
    metas = [e for e in element.iter_elements() if e.tag_name == "meta"]
    diagnostics: list[Diagnostic] = []
    declared = False
    for meta in metas:
        charset = meta.get("charset")
        if charset is not None:
            declared = True
            if (charset.value or "").strip().lower() != "utf-8":
                diagnostics.append(
                    ctx.diagnostic(
                        charset.span,
                        f"Declare the encoding as utf-8, not {charset.value!r}.",
                        fix='<meta charset="utf-8">',
                    )
                )
        equiv = meta.get("http-equiv")
        if equiv is not None and (equiv.value or "").lower() == "content-type":
            declared = True
    if not declared:
        diagnostics.append(
            ctx.diagnostic(
                element.start_tag,
                "Specify the document encoding with <meta charset=\"utf-8\">.",
                fix='Add <meta charset="utf-8"> as the first child of <head>.',
            )
        )
    return diagnostics


# ---------------------------------------------------------------------------
# Element rules
# ---------------------------------------------------------------------------


def check_void_self_close(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    if not (element.self_closing and element.tag_name in VOID_ELEMENTS):
        return []
    end = element.start_tag.end
    slash = Position(end.offset - 2, end.line, end.column - 2)
    return [
        ctx.diagnostic(
            Span(slash, end),
            f"Do not close void element <{element.tag_name}> with '/>'.",
            fix=f"Write <{element.tag_name}>.",
        )
    ]


def check_alt_attribute(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    """Images need alternative text; alt="" is fine for decorative ones."""
    if element.tag_name != "img" or element.has("alt"):
        return []
    return [
        ctx.diagnostic(
            element.start_tag,
            "Image is missing an alt attribute.",
            fix='Add alt text, or alt="" if the image is purely decorative.',
        )
    ]


def check_double_quotes(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for attr in element.attributes:
        if attr.quote is QuoteStyle.SINGLE:
            problem = "single quotes"
        elif attr.quote is QuoteStyle.UNQUOTED:
            problem = "no quotes"
        else:
            continue
        diagnostics.append(
            ctx.diagnostic(
                attr.value_span or attr.span,
                f"Attribute {attr.name!r} uses {problem}; use double quotes.",
                fix=f'{attr.name}="{attr.value}"',
            )
        )
    return diagnostics


def check_type_attribute(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    """Omit type attributes for style sheets and scripts."""
    type_attr = element.get("type")
    if type_attr is None or type_attr.value is None:
        return []
    value = type_attr.value.strip().lower()
    redundant = False
    if element.tag_name == "script":
        redundant = value in _SCRIPT_TYPES
    elif element.tag_name == "style":
        redundant = value == "text/css"
    elif element.tag_name == "link":
        rel = element.get("rel")
        redundant = (
            value == "text/css"
            and rel is not None
            and "stylesheet" in (rel.value or "").lower().split()
        )
    if not redundant:
        return []
    return [
        ctx.diagnostic(
            type_attr.span,
            f"Omit type={type_attr.value!r} on <{element.tag_name}>.",
            fix="Remove the type attribute.",
        )
    ]


def check_block_newline(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    """Start every block, list or table element on a new line."""
    if element.tag_name not in BLOCK_ELEMENTS:
        return []
    start = element.start_tag.start
    before = ctx.line(start.line)[: start.column - 1]
    if not before.strip().lstrip("\ufeff"):
        return []
    return [
        ctx.diagnostic(
            element.start_tag,
            f"Put <{element.tag_name}> on its own line.",
        )
    ]


def check_optional_tags(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if element.tag_name in ("html", "head", "body") and not element.attributes:
        diagnostics.append(
            ctx.diagnostic(
                element.start_tag,
                f"Optional start tag <{element.source_name}> may be omitted.",
            )
        )
    if element.end_tag is not None and element.tag_name in OPTIONAL_END_TAGS:
        diagnostics.append(
            ctx.diagnostic(
                element.end_tag,
                f"Optional end tag </{element.source_name}> may be omitted.",
            )
        )
    return diagnostics


# ---------------------------------------------------------------------------
# entity-references
# ---------------------------------------------------------------------------


def _needless_entities(text: str, origin: Position, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for m in _ENTITY_RE.finditer(text):
        reference = m.group()
        name = reference[1:-1]
        if name in _ALLOWED_ENTITIES:
            continue
        char = html.unescape(reference)
        if char == reference:
            continue  # not a known reference
        if len(char) == 1 and (
            char in "<>&\"'" or unicodedata.category(char) in _INVISIBLE_CATEGORIES
        ):
            continue
        diagnostics.append(
            ctx.diagnostic(
                text_span(origin, text, m.start(), m.end()),
                f"Use the character {char!r} instead of the reference {reference!r}.",
                fix=f"Replace {reference} with {char}.",
            )
        )
    return diagnostics


def check_entities_text(node: TextNode, ctx: RuleContext) -> list[Diagnostic]:
    parent = ctx.parent(node)
    if node.cdata or getattr(parent, "tag_name", None) in _RAW_TEXT_PARENTS:
        return []
    return _needless_entities(node.text, node.span.start, ctx)


def check_entities_attributes(element: Element, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for attr in element.attributes:
        if not attr.value or attr.value_span is None:
            continue
        origin = attr.value_span.start
        raw = ctx.slice(attr.value_span)
        if attr.quote in (QuoteStyle.DOUBLE, QuoteStyle.SINGLE):
            raw = raw[1:-1]
            origin = Position(origin.offset + 1, origin.line, origin.column + 1)
        diagnostics.extend(_needless_entities(raw, origin, ctx))
    return diagnostics


# ---------------------------------------------------------------------------
# Rule registry
# ---------------------------------------------------------------------------

RULES = [
    Rule(
        id="doctype-html5",
        summary="Use <!DOCTYPE html>.",
        handlers={"doctype": check_doctype},
        severity=Severity.ERROR,
    ),
    Rule(
        id="void-element-self-close",
        summary="Do not close void elements with '/>'.",
        handlers={"element": check_void_self_close},
    ),
    Rule(
        id="alt-attribute",
        summary="Provide alternative text for images.",
        handlers={"element": check_alt_attribute},
        severity=Severity.ERROR,
    ),
    Rule(
        id="double-quotes",
        summary="Use double quotation marks for attribute values.",
        handlers={"element": check_double_quotes},
    ),
    Rule(
        id="type-attribute",
        summary="Omit type attributes for style sheets and scripts.",
        handlers={"element": check_type_attribute},
    ),
    Rule(
        id="entity-references",
        summary="Do not use character references except for markup and invisible characters.",
        handlers={"text": check_entities_text, "element": check_entities_attributes},
    ),
    Rule(
        id="meta-charset",
        summary='Declare the encoding with <meta charset="utf-8">.',
        handlers={"element": check_meta_charset},
    ),
    Rule(
        id="block-element-newline",
        summary="Use a new line for every block, list or table element.",
        handlers={"element": check_block_newline},
    ),
    Rule(
        id="omit-optional-tags",
        summary="Omit optional start and end tags.",
        handlers={"element": check_optional_tags},
        default_enabled=False,
    ),
]
