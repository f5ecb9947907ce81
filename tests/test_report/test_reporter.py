"""Tests for diagnostic ordering, summaries and serialization."""

import json

from guidelint.model.diagnostic import Diagnostic, Severity
from guidelint.model.span import Position, Span
from guidelint.report import format_text, report, summarize, to_json, to_records


def _diag(rule_id="zero-unit", line=1, column=1, *, path="a.css", severity=Severity.WARNING,
          message="msg", fix=None, length=1):
    start = Position(offset=(line - 1) * 100 + column - 1, line=line, column=column)
    end = Position(offset=start.offset + length, line=line, column=column + length)
    return Diagnostic(
        path=path,
        rule_id=rule_id,
        severity=severity,
        message=message,
        span=Span(start, end),
        fix=fix,
    )


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------


class TestReport:
    def test_sorted_by_path_then_position_then_rule(self):
        diags = [
            _diag("b-rule", 2, 1),
            _diag("a-rule", 1, 5, path="b.css"),
            _diag("z-rule", 1, 3),
            _diag("a-rule", 1, 3),
        ]
        ordered = report(diags)
        assert [(d.path, d.line, d.column, d.rule_id) for d in ordered] == [
            ("a.css", 1, 3, "a-rule"),
            ("a.css", 1, 3, "z-rule"),
            ("a.css", 2, 1, "b-rule"),
            ("b.css", 1, 5, "a-rule"),
        ]

    def test_duplicates_removed(self):
        first = _diag(message="first")
        second = _diag(message="second")
        assert report([second, first]) == [first]

    def test_same_rule_different_span_kept(self):
        assert len(report([_diag(length=1), _diag(length=2)])) == 2

    def test_same_span_different_rule_kept(self):
        assert len(report([_diag("a"), _diag("b")])) == 2

    def test_empty(self):
        assert report([]) == []


# ---------------------------------------------------------------------------
# summarize
# ---------------------------------------------------------------------------


class TestSummary:
    def test_counts(self):
        summary = summarize([
            _diag(severity=Severity.ERROR),
            _diag(severity=Severity.WARNING),
            _diag(severity=Severity.WARNING),
        ])
        assert (summary.errors, summary.warnings, summary.total) == (1, 2, 3)
        assert summary.exit_code == 1

    def test_warnings_only_exit_zero(self):
        assert summarize([_diag()]).exit_code == 0

    def test_nothing_found(self):
        summary = summarize([])
        assert summary.total == 0
        assert summary.exit_code == 0


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerialization:
    def test_records(self):
        (record,) = to_records([_diag("zero-unit", 2, 12, fix="0", length=2)])
        assert record == {
            "path": "a.css",
            "rule": "zero-unit",
            "severity": "warning",
            "message": "msg",
            "line": 2,
            "column": 12,
            "end_line": 2,
            "end_column": 14,
            "fix": "0",
        }

    def test_json(self):
        text = to_json([_diag(severity=Severity.ERROR)], indent=None)
        loaded = json.loads(text)
        assert loaded[0]["severity"] == "error"
        assert loaded[0]["fix"] is None

    def test_text(self):
        diags = [_diag("a-rule", 1, 2), _diag("b-rule", 3, 4, severity=Severity.ERROR)]
        assert format_text(diags).splitlines() == [
            "a.css:1:2: warning [a-rule] msg",
            "a.css:3:4: error [b-rule] msg",
        ]

    def test_text_empty(self):
        assert format_text([]) == ""
