"""Tests for the rule engine: dispatch, traversal, failures and batch runs."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import pytest

from guidelint.engine import check_file, check_files, read_source
from guidelint.model.config import Language, ResolvedConfig, UnsupportedLanguageError
from guidelint.model.diagnostic import Diagnostic, Severity
from guidelint.report import report
from guidelint.rules import (
    DEFAULT_CATALOG,
    INTERNAL_RULE_ERROR,
    PARSE_ERROR,
    Rule,
    RuleCatalog,
    UnknownRuleError,
)

FIXTURES = Path(__file__).parent.parent / "fixtures"

MESSY_CSS = (
    "\ufeffA.Foo{\n"
    "\tCOLOR:#EEBBCC;\n"
    "   margin: 0px; padding: 0.5em\n"
    "}\n"
    "h1, h2 {\n"
    "  font-family: \"Open Sans\";  \n"
    "}\n"
)

MESSY_HTML = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01//EN">\n'
    "<HTML>\n"
    "<head><title>x</title></head>\n"
    "<body><IMG SRC='http://example.com/a.png'/>\n"
    "<style type=\"text/css\">\n"
    "  .a_b { color: #FFFFFF }\n"
    "</style>\n"
    "</body>\n"
    "</HTML>\n"
)


def _only(diagnostics, rule_id):
    return [d for d in diagnostics if d.rule_id == rule_id]


# ---------------------------------------------------------------------------
# End-to-end examples
# ---------------------------------------------------------------------------


class TestExamples:
    def test_uppercase_html(self):
        diags = _only(check_file("index.html", '<A HREF="#">Home</A>'), "lowercase")
        assert [(d.line, d.column) for d in diags] == [(1, 2), (1, 4)]
        assert all(d.severity is Severity.WARNING for d in diags)

    def test_uppercase_hex(self):
        diags = check_file("a.css", "a {\n  color: #E5E5E5;\n}\n")
        assert [d.rule_id for d in diags] == ["lowercase"]

    def test_uppercase_hex_bare_declaration(self):
        diags = check_file("a.css", "color: #E5E5E5;")
        assert [d.rule_id for d in diags] == ["lowercase"]
        assert (diags[0].line, diags[0].column) == (1, 8)

    def test_reducible_hex(self):
        diags = check_file("a.css", "a {\n  color: #eebbcc;\n}\n")
        assert [d.rule_id for d in diags] == ["three-digit-hex"]
        assert diags[0].fix == "#ebc"

    def test_void_element(self):
        assert [d.rule_id for d in check_file("a.html", "<br/>")] == ["void-element-self-close"]
        assert check_file("a.html", "<br>") == []

    def test_missing_semicolon(self):
        diags = _only(check_file("a.css", "{ height: 100px\n }"), "declaration-semicolon")
        assert len(diags) == 1
        d = diags[0]
        assert d.severity is Severity.ERROR
        assert (d.line, d.column) == (1, 16)
        assert d.span.start.offset == 15

    @pytest.mark.parametrize("name", ["clean.html", "clean.css"])
    def test_clean_fixture(self, name):
        path = str(FIXTURES / name)
        assert check_file(path, read_source(path)) == []

    def test_messy_css_reports_many_rules(self):
        ids = {d.rule_id for d in check_file("a.css", MESSY_CSS)}
        assert {
            "utf8-no-bom",
            "lowercase",
            "indentation",
            "brace-spacing",
            "three-digit-hex",
            "property-colon-space",
            "zero-unit",
            "leading-zero",
            "declaration-newline",
            "declaration-semicolon",
            "rule-blank-line",
            "selector-newline",
            "single-quotes",
            "trailing-whitespace",
            "type-selector-qualifier",
        } <= ids

    def test_messy_html_reports_many_rules(self):
        ids = {d.rule_id for d in check_file("a.html", MESSY_HTML)}
        assert {
            "doctype-html5",
            "lowercase",
            "meta-charset",
            "alt-attribute",
            "void-element-self-close",
            "double-quotes",
            "protocol-relative-url",
            "type-attribute",
            "id-class-hyphen",
            "declaration-semicolon",
        } <= ids


# ---------------------------------------------------------------------------
# Determinism and ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_repeatable(self):
        assert check_file("a.css", MESSY_CSS) == check_file("a.css", MESSY_CSS)

    def test_sorted_by_position(self):
        diags = check_file("a.html", MESSY_HTML)
        keys = [(d.line, d.column, d.rule_id) for d in diags]
        assert keys == sorted(keys)

    def test_catalog_order_does_not_matter(self):
        reversed_catalog = RuleCatalog(reversed(list(DEFAULT_CATALOG)))
        for path, text in (("a.css", MESSY_CSS), ("a.html", MESSY_HTML)):
            assert check_file(path, text, catalog=reversed_catalog) == check_file(path, text)

    def test_no_duplicates(self):
        diags = check_file("a.css", MESSY_CSS)
        keys = [(d.rule_id, d.span) for d in diags]
        assert len(keys) == len(set(keys))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestConfiguration:
    def test_catalog_ids(self):
        ids = DEFAULT_CATALOG.ids()
        assert ids == sorted(ids)
        assert len(ids) == len(DEFAULT_CATALOG) == 30
        assert PARSE_ERROR not in ids
        assert INTERNAL_RULE_ERROR not in ids

    def test_default_config_skips_opt_in_rules(self):
        enabled = ResolvedConfig.default().enabled_rules
        assert "omit-optional-tags" not in enabled
        assert "shorthand-properties" not in enabled
        assert "zero-unit" in enabled

    def test_enable_opt_in_rule(self):
        config = ResolvedConfig.default().enable("omit-optional-tags")
        diags = check_file("a.html", "<ul>\n  <li>a</li>\n</ul>\n", config)
        assert [d.rule_id for d in diags] == ["omit-optional-tags"]

    def test_disabled_rule_is_silent(self):
        config = ResolvedConfig.default().disable("lowercase")
        diags = check_file("a.css", "a {\n  color: #E5E5E5;\n}\n", config)
        assert diags == []

    def test_empty_config_reports_only_parse_errors(self):
        diags = check_file("a.css", "a { color: red;\n", ResolvedConfig())
        assert [d.rule_id for d in diags] == [PARSE_ERROR]

    def test_severity_override(self):
        config = ResolvedConfig(enabled_rules={"zero-unit"}).with_severity("zero-unit", Severity.ERROR)
        (diag,) = check_file("a.css", "a {\n  margin: 0px;\n}\n", config)
        assert diag.severity is Severity.ERROR

    def test_unknown_enabled_rule(self):
        with pytest.raises(UnknownRuleError) as info:
            check_file("a.css", "", ResolvedConfig(enabled_rules={"no-such-rule"}))
        assert info.value.rule_ids == ["no-such-rule"]

    def test_unknown_severity_override(self):
        config = ResolvedConfig().with_severity("no-such-rule", Severity.ERROR)
        with pytest.raises(UnknownRuleError):
            check_file("a.css", "", config)


# ---------------------------------------------------------------------------
# Languages
# ---------------------------------------------------------------------------


class TestLanguages:
    def test_unsupported_suffix(self):
        with pytest.raises(UnsupportedLanguageError):
            check_file("notes.txt", "hello")

    def test_explicit_language(self):
        diags = check_file("notes.txt", "a {\n  color: #E5E5E5;\n}\n", language=Language.CSS)
        assert [d.rule_id for d in diags] == ["lowercase"]

    def test_suffix_is_case_insensitive(self):
        assert check_file("INDEX.HTM", "<br/>") != []

    @pytest.mark.parametrize("path", ["empty.css", "empty.html"])
    def test_empty_file(self, path):
        assert check_file(path, "") == []


# ---------------------------------------------------------------------------
# Parse errors and embedded style sheets
# ---------------------------------------------------------------------------


class TestParseErrors:
    def test_html_parse_error(self):
        diags = _only(check_file("a.html", "<div><span></div>"), PARSE_ERROR)
        assert len(diags) == 1
        assert diags[0].severity is Severity.ERROR
        assert diags[0].column == 6

    def test_css_parse_error_keeps_other_findings(self):
        diags = check_file("a.css", "a {\n  color red;\n  margin: 0px;\n}\n")
        assert {d.rule_id for d in diags} == {PARSE_ERROR, "zero-unit"}

    def test_embedded_style_parse_error(self):
        text = "<style>\n  a { color: red;\n</style>\n"
        diags = _only(check_file("a.html", text), PARSE_ERROR)
        assert len(diags) == 1
        assert diags[0].line == 2

    def test_embedded_style_positions(self):
        text = "<p>x</p>\n<style>\n  .a_b {\n    margin: 0px;\n  }\n</style>\n"
        diags = check_file("a.html", text)
        assert [(d.rule_id, d.line, d.column) for d in diags] == [
            ("id-class-hyphen", 3, 4),
            ("zero-unit", 4, 14),
        ]


# ---------------------------------------------------------------------------
# Failing rules
# ---------------------------------------------------------------------------


def _explode(node, ctx):
    raise RuntimeError("kaboom")


def _flag_declarations(node, ctx):
    return [ctx.diagnostic(node.property_span, f"saw {node.property}")]


BROKEN_CATALOG = RuleCatalog([
    Rule(id="explodes", summary="Always fails.", handlers={"declaration": _explode}),
    Rule(id="flags", summary="Flags every declaration.", handlers={"declaration": _flag_declarations}),
])


class TestFailingRules:
    def test_failure_becomes_diagnostic(self):
        config = ResolvedConfig(enabled_rules={"explodes", "flags"})
        diags = check_file("a.css", "a {\n  color: red;\n  margin: 0;\n}\n", config, catalog=BROKEN_CATALOG)
        errors = _only(diags, INTERNAL_RULE_ERROR)
        assert len(errors) == 2
        assert all(d.severity is Severity.ERROR for d in errors)
        assert "kaboom" in errors[0].message
        assert "'explodes'" in errors[0].message
        # the other rule still runs on every node
        assert len(_only(diags, "flags")) == 2

    def test_failure_is_logged(self, caplog):
        config = ResolvedConfig(enabled_rules={"explodes"})
        with caplog.at_level(logging.WARNING, logger="guidelint.engine"):
            check_file("a.css", "a {\n  color: red;\n}\n", config, catalog=BROKEN_CATALOG)
        assert any("explodes" in r.getMessage() for r in caplog.records)

    def test_context_helpers(self):
        seen: list[str] = []

        def record_parent(node, ctx):
            parent = ctx.parent(node)
            seen.append(type(parent).__name__)
            return []

        catalog = RuleCatalog([Rule(id="parents", summary="x", handlers={"declaration": record_parent})])
        check_file(
            "a.css",
            "@media print {\n  a {\n    color: red;\n  }\n}\n",
            ResolvedConfig(enabled_rules={"parents"}),
            catalog=catalog,
        )
        assert seen == ["StyleRule"]


# ---------------------------------------------------------------------------
# Batch runs
# ---------------------------------------------------------------------------


SOURCES = {
    "a.css": "a {\n  margin: 0px;\n}\n",
    "b.css": "b {\n  color: #E5E5E5;\n}\n",
    "c.html": "<br/>\n",
    "d.html": "<p>fine</p>\n",
}


class TestCheckFiles:
    def test_matches_sequential_run(self):
        result = check_files(SOURCES, loader=SOURCES.__getitem__, max_workers=4)
        expected = report(d for path, text in SOURCES.items() for d in check_file(path, text))
        assert result.diagnostics == expected
        assert result.failures == []
        assert not result.cancelled

    def test_loader_error_is_a_failure(self):
        sources = {"a.css": SOURCES["a.css"]}
        result = check_files(["a.css", "missing.css"], loader=sources.__getitem__)

        assert [d.path for d in result.diagnostics] == ["a.css"]
        assert [f.path for f in result.failures] == ["missing.css"]
        assert isinstance(result.failures[0].error, KeyError)

    def test_files_on_disk(self, tmp_path: Path):
        (tmp_path / "a.css").write_text(SOURCES["a.css"], encoding="utf-8")
        (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
        paths = [str(tmp_path / "a.css"), str(tmp_path / "missing.css"), str(tmp_path / "notes.txt")]

        result = check_files(paths)

        assert [d.rule_id for d in result.diagnostics] == ["zero-unit"]
        assert [f.path for f in result.failures] == sorted(paths[1:])
        assert isinstance(result.failures[0].error, OSError)
        assert isinstance(result.failures[1].error, UnsupportedLanguageError)

    def test_bom_is_preserved_on_read(self, tmp_path: Path):
        path = tmp_path / "a.css"
        path.write_bytes(b"\xef\xbb\xbfa {\r\n  color: red;\r\n}\r\n")
        result = check_files([str(path)])
        assert [d.rule_id for d in result.diagnostics] == ["utf8-no-bom"]

    def test_undecodable_file(self, tmp_path: Path):
        path = tmp_path / "a.css"
        path.write_bytes(b"a { content: '\xff'; }\n")
        result = check_files([str(path)])
        assert isinstance(result.failures[0].error, UnicodeDecodeError)

    def test_summary(self):
        result = check_files(["x.css"], loader=lambda _: "a { color: red }\n")
        assert result.summary.errors == 1
        assert result.summary.exit_code == 1

    def test_cancelled_before_start(self):
        cancel = threading.Event()
        cancel.set()
        result = check_files(SOURCES, loader=SOURCES.__getitem__, cancel=cancel)
        assert result.diagnostics == []
        assert result.failures == []
        assert result.cancelled

    def test_cancelled_during_run(self):
        cancel = threading.Event()

        def loader(path: str) -> str:
            cancel.set()
            return SOURCES[path]

        result = check_files(SOURCES, loader=loader, max_workers=1, cancel=cancel)

        assert result.cancelled
        assert {d.path for d in result.diagnostics} == {"a.css"}

    def test_unknown_rule_fails_before_any_file(self):
        loaded: list[str] = []

        def loader(path: str) -> str:
            loaded.append(path)
            return ""

        with pytest.raises(UnknownRuleError):
            check_files(["a.css"], ResolvedConfig(enabled_rules={"nope"}), loader=loader)
        assert loaded == []


def test_diagnostic_str():
    (diag,) = check_file("a.html", "<br/>")
    assert isinstance(diag, Diagnostic)
    assert str(diag).startswith("a.html:1:4: warning [void-element-self-close] ")
