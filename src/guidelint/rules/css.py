"""Style rules for CSS stylesheets and embedded <style> blocks."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from guidelint.model.css import AtRule, Declaration, StyleRule
from guidelint.model.diagnostic import Diagnostic, Severity
from guidelint.model.span import Span
from guidelint.model.token import Token, TokenKind
from guidelint.parser.css import is_keyframes
from guidelint.rules.catalog import Rule
from guidelint.rules.values import iter_selector_tokens, iter_value_tokens, sub_span, url_target

if TYPE_CHECKING:
    from guidelint.engine.context import RuleContext

_HEX_RE = re.compile(r"#([0-9a-fA-F]{6})")
_LEADING_ZERO_RE = re.compile(r"[+-]?0\.[0-9]")
_ZERO_RE = re.compile(r"([+-]?0+(?:\.0+)?)([a-zA-Z]+)")
_PREFIX_RE = re.compile(r"-([a-z]+)-(.+)")
_NEEDS_QUOTES_RE = re.compile(r"[\s()'\"]")

LENGTH_UNITS = frozenset({
    "px", "em", "rem", "ex", "ch", "cm", "mm", "q", "in", "pt", "pc",
    "vw", "vh", "vmin", "vmax", "vi", "vb",
    "svw", "svh", "lvw", "lvh", "dvw", "dvh",
    "cqw", "cqh", "cqi", "cqb", "cqmin", "cqmax",
})

# Inside these functions "0px" is not interchangeable with "0".
_MATH_FUNCTIONS = frozenset({"calc", "min", "max", "clamp", "-webkit-calc", "-moz-calc"})

_SIDES = ("top", "right", "bottom", "left")
_COMBINATORS = frozenset({">", "+", "~"})


def _is_block_rule(node) -> bool:
    if isinstance(node, StyleRule):
        return not node.implicit
    return isinstance(node, AtRule) and node.is_block


def _in_keyframes(node, ctx: RuleContext) -> bool:
    return any(isinstance(a, AtRule) and is_keyframes(a.name) for a in ctx.ancestors(node))


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------


def _double_quoted(tokens, ctx: RuleContext, where: str) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for tok in tokens:
        if tok.kind is not TokenKind.STRING or not tok.text.startswith('"'):
            continue
        inner = tok.text[1:-1]
        if "'" in inner:
            continue
        diagnostics.append(
            ctx.diagnostic(
                tok.span,
                f"Use single quotes for strings in {where}.",
                fix=f"'{inner}'",
            )
        )
    return diagnostics


def check_single_quotes_selectors(rule: StyleRule, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for selector in rule.selectors:
        strings = [tok for _, tok, in_attr in iter_selector_tokens(selector.tokens) if in_attr]
        diagnostics.extend(_double_quoted(strings, ctx, "attribute selectors"))
    return diagnostics


def check_single_quotes_declaration(decl: Declaration, ctx: RuleContext) -> list[Diagnostic]:
    return _double_quoted(decl.value_tokens, ctx, "property values")


def check_single_quotes_at_rule(rule: AtRule, ctx: RuleContext) -> list[Diagnostic]:
    if rule.lower_name == "charset":
        return []
    return _double_quoted(rule.prelude_tokens, ctx, f"@{rule.lower_name}")


def _quoted_urls(tokens, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for tok in tokens:
        if tok.kind is not TokenKind.URL:
            continue
        target, quote = url_target(tok)
        if not quote or _NEEDS_QUOTES_RE.search(target):
            continue
        diagnostics.append(
            ctx.diagnostic(
                tok.span,
                "Do not quote URLs inside url().",
                fix=f"url({target})",
            )
        )
    return diagnostics


def check_url_unquoted_declaration(decl: Declaration, ctx: RuleContext) -> list[Diagnostic]:
    return _quoted_urls(decl.value_tokens, ctx)


def check_url_unquoted_at_rule(rule: AtRule, ctx: RuleContext) -> list[Diagnostic]:
    return _quoted_urls(rule.prelude_tokens, ctx)


def check_charset_quotes(rule: AtRule, ctx: RuleContext) -> list[Diagnostic]:
    """@charset only accepts a double-quoted encoding name."""
    if rule.lower_name != "charset":
        return []
    return [
        ctx.diagnostic(tok.span, "Use double quotes in @charset.", fix=f'"{tok.text[1:-1]}"')
        for tok in rule.prelude_tokens
        if tok.kind is TokenKind.STRING and tok.text.startswith("'")
    ]


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------


def _named_parts(tokens: tuple[Token, ...]):
    """Yield ``(token, sigil)`` for every id and class name in a selector."""
    for i, tok, in_attribute in iter_selector_tokens(tokens):
        if in_attribute:
            continue
        if tok.kind is TokenKind.HASH:
            yield tok, "#"
        elif (
            tok.kind is TokenKind.IDENT
            and i
            and tokens[i - 1].kind is TokenKind.DELIM
            and tokens[i - 1].text == "."
        ):
            yield tok, "."


def check_id_class_hyphen(rule: StyleRule, ctx: RuleContext) -> list[Diagnostic]:
    """Separate words in ID and class names with a hyphen."""
    diagnostics: list[Diagnostic] = []
    for selector in rule.selectors:
        for tok, sigil in _named_parts(selector.tokens):
            if "_" not in tok.text:
                continue
            name = tok.text.lstrip("#")
            diagnostics.append(
                ctx.diagnostic(
                    tok.span,
                    f"Use hyphens, not underscores, in {sigil}{name}.",
                    fix=f"{sigil}{name.replace('_', '-')}",
                )
            )
    return diagnostics


def check_type_selector_qualifier(rule: StyleRule, ctx: RuleContext) -> list[Diagnostic]:
    """Do not qualify ID and class names with type selectors."""
    if rule.implicit or _in_keyframes(rule, ctx):
        return []
    diagnostics: list[Diagnostic] = []
    for selector in rule.selectors:
        tokens = selector.tokens
        for i, tok, in_attribute in iter_selector_tokens(tokens):
            if in_attribute or tok.kind is not TokenKind.IDENT or i + 1 >= len(tokens):
                continue
            prev = tokens[i - 1] if i else None
            in_type_position = (
                prev is None
                or prev.kind is TokenKind.WHITESPACE
                or (prev.kind is TokenKind.DELIM and prev.text in _COMBINATORS)
            )
            if not in_type_position:
                continue
            nxt = tokens[i + 1]
            if nxt.kind is TokenKind.HASH or (nxt.kind is TokenKind.DELIM and nxt.text == "."):
                diagnostics.append(
                    ctx.diagnostic(
                        tok.span.cover(nxt.span),
                        f"Do not qualify {nxt.text}... with type selector {tok.text!r}.",
                    )
                )
    return diagnostics


def check_selector_newline(rule: StyleRule, ctx: RuleContext) -> list[Diagnostic]:
    """Start a new line for each selector of a group."""
    if len(rule.selectors) < 2 or _in_keyframes(rule, ctx):
        return []
    diagnostics: list[Diagnostic] = []
    for prev, selector in zip(rule.selectors, rule.selectors[1:]):
        if selector.span.start.line == prev.span.end.line:
            diagnostics.append(
                ctx.diagnostic(selector.span, f"Put selector {selector.text!r} on its own line.")
            )
    return diagnostics


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def check_three_digit_hex(decl: Declaration, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for tok in decl.value_tokens:
        if tok.kind is not TokenKind.HASH:
            continue
        m = _HEX_RE.fullmatch(tok.text)
        if not m:
            continue
        digits = m.group(1)
        pairs = [digits[i:i + 2] for i in range(0, 6, 2)]
        if all(p[0].lower() == p[1].lower() for p in pairs):
            short = "#" + "".join(p[0] for p in pairs)
            diagnostics.append(
                ctx.diagnostic(tok.span, f"Use {short} instead of {tok.text}.", fix=short)
            )
    return diagnostics


def check_leading_zero(decl: Declaration, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for tok in decl.value_tokens:
        if tok.kind not in (TokenKind.NUMBER, TokenKind.PERCENTAGE, TokenKind.DIMENSION):
            continue
        if _LEADING_ZERO_RE.match(tok.text):
            fixed = tok.text.replace("0.", ".", 1)
            diagnostics.append(
                ctx.diagnostic(tok.span, f"Omit the leading 0 in {tok.text}.", fix=fixed)
            )
    return diagnostics


def check_zero_unit(decl: Declaration, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for tok, functions in iter_value_tokens(decl.value_tokens):
        if tok.kind is not TokenKind.DIMENSION or _MATH_FUNCTIONS.intersection(functions):
            continue
        m = _ZERO_RE.fullmatch(tok.text)
        if not m or m.group(2).lower() not in LENGTH_UNITS:
            continue
        diagnostics.append(
            ctx.diagnostic(
                sub_span(tok, len(m.group(1))),
                f"Omit the unit after 0 in {tok.text}.",
                fix="0",
            )
        )
    return diagnostics


def check_property_colon_space(decl: Declaration, ctx: RuleContext) -> list[Diagnostic]:
    """``property: value`` with one space after the colon and none before."""
    diagnostics: list[Diagnostic] = []
    if decl.before_colon:
        gap = decl.before_colon[0].span.cover(decl.before_colon[-1].span)
        diagnostics.append(
            ctx.diagnostic(gap, f"Remove the space before ':' in {decl.property!r}.")
        )
    if not decl.after_colon:
        diagnostics.append(
            ctx.diagnostic(
                decl.colon,
                f"Add a space after ':' in {decl.property!r}.",
                fix=f"{decl.property}: {decl.value}",
            )
        )
    return diagnostics


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def check_declaration_semicolon(block, ctx: RuleContext) -> list[Diagnostic]:
    """End every declaration with a semicolon, including the last one."""
    if not block.declarations:
        return []
    last = block.declarations[-1]
    if last.semicolon is not None:
        return []
    return [
        ctx.diagnostic(
            Span.point(last.span.end),
            f"Declaration {last.property!r} is missing a semicolon.",
            fix=";",
        )
    ]


def check_brace_spacing(rule, ctx: RuleContext) -> list[Diagnostic]:
    """Use a single space between the last selector and the opening brace."""
    if rule.brace is None:
        return []
    if isinstance(rule, StyleRule):
        before = rule.prelude
    else:
        before = rule.prelude_span or rule.name_span
    if before is None:
        return []
    gap = Span(before.end, rule.brace.start)
    if ctx.slice(gap) == " ":
        return []
    if gap.start == gap.end:
        message = "Add a space before '{'."
    else:
        message = "Use exactly one space before '{'."
    return [ctx.diagnostic(gap, message, fix=" {")]


def _sort_key(name: str) -> tuple[str, int, str]:
    name = name.lower()
    m = _PREFIX_RE.fullmatch(name)
    if m:
        return m.group(2), 0, m.group(1)
    return name, 1, ""


def check_alphabetical(block, ctx: RuleContext) -> list[Diagnostic]:
    """Alphabetize declarations, ignoring vendor prefixes.

    Prefixed variants of a property sort before it, among themselves by
    prefix.  Only adjacent declarations are compared.
    """
    declarations = [d for d in block.declarations if not d.is_custom_property]
    diagnostics: list[Diagnostic] = []
    for prev, decl in zip(declarations, declarations[1:]):
        if _sort_key(prev.property) > _sort_key(decl.property):
            diagnostics.append(
                ctx.diagnostic(
                    prev.property_span,
                    f"Declaration {prev.property!r} should come after {decl.property!r}.",
                )
            )
    return diagnostics


def check_declaration_newline(block, ctx: RuleContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for prev, decl in zip(block.declarations, block.declarations[1:]):
        end = prev.semicolon or prev.span
        if decl.span.start.line == end.end.line:
            diagnostics.append(
                ctx.diagnostic(
                    decl.property_span, f"Put declaration {decl.property!r} on its own line."
                )
            )
    return diagnostics


def check_shorthand(block, ctx: RuleContext) -> list[Diagnostic]:
    names = {d.property.lower(): d for d in block.declarations}
    diagnostics: list[Diagnostic] = []
    for family in ("margin", "padding"):
        longhands = [names.get(f"{family}-{side}") for side in _SIDES]
        if all(longhands):
            first = min(longhands, key=lambda d: d.span.start)
            diagnostics.append(
                ctx.diagnostic(
                    first.property_span,
                    f"Use the {family!r} shorthand instead of its four longhands.",
                )
            )
    return diagnostics


# ---------------------------------------------------------------------------
# rule-blank-line
# ---------------------------------------------------------------------------


def check_rule_blank_line(rule, ctx: RuleContext) -> list[Diagnostic]:
    """Separate rules by a blank line."""
    if not _is_block_rule(rule):
        return []
    parent = ctx.parent(rule)
    if isinstance(parent, AtRule) and is_keyframes(parent.name):
        return []
    prev = ctx.previous_sibling(rule)
    if prev is None or not _is_block_rule(prev):
        return []
    start = rule.span.start.line
    between = range(prev.span.end.line + 1, start)
    if any(not ctx.line(n).strip() for n in between):
        return []
    return [
        ctx.diagnostic(
            Span(rule.span.start, rule.brace.start if rule.brace else rule.span.end),
            "Separate rules with a blank line.",
        )
    ]


# ---------------------------------------------------------------------------
# Rule registry
# ---------------------------------------------------------------------------

RULES = [
    Rule(
        id="single-quotes",
        summary="Use single quotes for strings in selectors and property values.",
        handlers={
            "style_rule": check_single_quotes_selectors,
            "declaration": check_single_quotes_declaration,
            "at_rule": check_single_quotes_at_rule,
        },
    ),
    Rule(
        id="url-unquoted",
        summary="Do not use quotation marks in URI values.",
        handlers={
            "declaration": check_url_unquoted_declaration,
            "at_rule": check_url_unquoted_at_rule,
        },
    ),
    Rule(
        id="charset-double-quotes",
        summary="Use double quotes in @charset.",
        handlers={"at_rule": check_charset_quotes},
    ),
    Rule(
        id="id-class-hyphen",
        summary="Separate words in ID and class names by a hyphen.",
        handlers={"style_rule": check_id_class_hyphen},
    ),
    Rule(
        id="three-digit-hex",
        summary="Use 3 character hexadecimal notation where possible.",
        handlers={"declaration": check_three_digit_hex},
    ),
    Rule(
        id="leading-zero",
        summary="Omit leading 0s in values.",
        handlers={"declaration": check_leading_zero},
    ),
    Rule(
        id="zero-unit",
        summary='Omit unit specification after "0" values.',
        handlers={"declaration": check_zero_unit},
    ),
    Rule(
        id="declaration-semicolon",
        summary="Use a semicolon after every declaration.",
        handlers={"block": check_declaration_semicolon},
        severity=Severity.ERROR,
    ),
    Rule(
        id="property-colon-space",
        summary="Use a space after a property name's colon, and none before it.",
        handlers={"declaration": check_property_colon_space},
    ),
    Rule(
        id="brace-spacing",
        summary="Use a space between the last selector and the declaration block.",
        handlers={"style_rule": check_brace_spacing, "at_rule": check_brace_spacing},
    ),
    Rule(
        id="alphabetical-declarations",
        summary="Put declarations in alphabetical order.",
        handlers={"block": check_alphabetical},
    ),
    Rule(
        id="type-selector-qualifier",
        summary="Avoid qualifying ID and class names with type selectors.",
        handlers={"style_rule": check_type_selector_qualifier},
    ),
    Rule(
        id="selector-newline",
        summary="Start a new line for each selector.",
        handlers={"style_rule": check_selector_newline},
    ),
    Rule(
        id="declaration-newline",
        summary="Start a new line for each declaration.",
        handlers={"block": check_declaration_newline},
    ),
    Rule(
        id="rule-blank-line",
        summary="Separate rules by new lines.",
        handlers={"style_rule": check_rule_blank_line, "at_rule": check_rule_blank_line},
    ),
    Rule(
        id="shorthand-properties",
        summary="Use shorthand properties where possible.",
        handlers={"block": check_shorthand},
        default_enabled=False,
    ),
]
