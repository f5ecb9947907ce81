"""Tree walker: visits every node once and runs the handlers registered for it."""

from __future__ import annotations

import logging
from typing import Any

from guidelint.engine.context import RuleContext, SourceFile, TreeIndex
from guidelint.lexer import tokenize_css
from guidelint.model.css import AtRule, StyleRule, Stylesheet
from guidelint.model.diagnostic import Diagnostic, Severity
from guidelint.model.html import Document, Element, TextNode
from guidelint.parser import ParseError, parse_css
from guidelint.rules.catalog import INTERNAL_RULE_ERROR, PARSE_ERROR, BoundHandler, Dispatch

logger = logging.getLogger("guidelint.engine")


def parse_error_diagnostic(path: str, error: ParseError) -> Diagnostic:
    return Diagnostic(
        path=path,
        rule_id=PARSE_ERROR,
        severity=Severity.ERROR,
        message=error.message,
        span=error.span,
    )


class Walker:
    """Pre-order, document-order traversal of one file's trees.

    Handlers registered for the ``file`` kind run once on the root. HTML
    ``<style>`` contents are parsed as CSS in file coordinates and walked
    with the CSS kinds.
    """

    def __init__(self, source: SourceFile, dispatch: Dispatch, index: TreeIndex) -> None:
        self.source = source
        self.dispatch = dispatch
        self.index = index
        self.diagnostics: list[Diagnostic] = []
        self._contexts: dict[str, RuleContext] = {}

    def run(self, root: Document | Stylesheet) -> list[Diagnostic]:
        self._visit_kind("file", root)
        if isinstance(root, Document):
            for child in root.children:
                self._html(child)
        else:
            for child in root.children:
                self._css(child)
        return self.diagnostics

    # --- HTML -----------------------------------------------------------------

    def _html(self, node: Any) -> None:
        self._visit_kind(node.kind, node)
        if not isinstance(node, Element):
            return
        if node.tag_name == "style":
            self._embedded_css(node)
        for child in node.children:
            self._html(child)

    def _embedded_css(self, element: Element) -> None:
        for child in element.children:
            if not isinstance(child, TextNode):
                continue
            tokens = tokenize_css(child.text, origin=child.span.start)
            sheet, errors = parse_css(tokens)
            self.diagnostics.extend(parse_error_diagnostic(self.source.path, e) for e in errors)
            self.index.add(sheet)
            for rule in sheet.children:
                self._css(rule)

    # --- CSS ------------------------------------------------------------------

    def _css(self, node: StyleRule | AtRule) -> None:
        self._visit_kind(node.kind, node)
        if isinstance(node, StyleRule):
            if node.declarations or node.implicit:
                self._visit_kind("block", node)
        elif node.has_declarations:
            self._visit_kind("block", node)
        members = list(node.declarations) + list(node.children)
        members.sort(key=lambda member: member.span.start.offset)
        for member in members:
            if member.kind == "declaration":
                self._visit_kind("declaration", member)
            else:
                self._css(member)

    # --- handler invocation ---------------------------------------------------

    def _context(self, bound: BoundHandler) -> RuleContext:
        ctx = self._contexts.get(bound.rule.id)
        if ctx is None:
            ctx = RuleContext(self.source, self.index, bound.rule.id, bound.severity)
            self._contexts[bound.rule.id] = ctx
        return ctx

    def _visit_kind(self, kind: str, node: Any) -> None:
        for bound in self.dispatch.get(kind, ()):
            try:
                found = bound.handler(node, self._context(bound))
            except Exception as exc:
                logger.warning(
                    "Rule %s failed on %s node in %s", bound.rule.id, kind, self.source.path,
                    exc_info=True,
                )
                self.diagnostics.append(
                    Diagnostic(
                        path=self.source.path,
                        rule_id=INTERNAL_RULE_ERROR,
                        severity=Severity.ERROR,
                        message=f"Rule {bound.rule.id!r} failed on {kind}: {exc!r}",
                        span=node.span,
                    )
                )
                continue
            self.diagnostics.extend(found)
