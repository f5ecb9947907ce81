"""Collect, order and serialize diagnostics."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable

from guidelint.model.diagnostic import Diagnostic


def _sort_key(d: Diagnostic) -> tuple:
    return (
        d.path,
        d.span.start.line,
        d.span.start.column,
        d.rule_id,
        d.span.end.line,
        d.span.end.column,
        d.message,
    )


def report(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Return *diagnostics* sorted by location, with exact duplicates removed.

    Two diagnostics are duplicates when they share path, rule id and span;
    the one that sorts first is kept.
    """
    seen: set[tuple] = set()
    result: list[Diagnostic] = []
    for d in sorted(diagnostics, key=_sort_key):
        key = (d.path, d.rule_id, d.span)
        if key in seen:
            continue
        seen.add(key)
        result.append(d)
    return result


@dataclass(frozen=True)
class Summary:
    errors: int = 0
    warnings: int = 0

    @property
    def total(self) -> int:
        return self.errors + self.warnings

    @property
    def exit_code(self) -> int:
        """1 when any error was found, else 0."""
        return 1 if self.errors else 0


def summarize(diagnostics: Iterable[Diagnostic]) -> Summary:
    errors = warnings = 0
    for d in diagnostics:
        if d.is_error:
            errors += 1
        else:
            warnings += 1
    return Summary(errors=errors, warnings=warnings)


def to_records(diagnostics: Iterable[Diagnostic]) -> list[dict[str, Any]]:
    """Flatten diagnostics into JSON-ready dicts."""
    return [
        {
            "path": d.path,
            "rule": d.rule_id,
            "severity": d.severity.value,
            "message": d.message,
            "line": d.span.start.line,
            "column": d.span.start.column,
            "end_line": d.span.end.line,
            "end_column": d.span.end.column,
            "fix": d.fix,
        }
        for d in diagnostics
    ]


def to_json(diagnostics: Iterable[Diagnostic], indent: int | None = 2) -> str:
    return json.dumps(to_records(diagnostics), indent=indent)


def format_text(diagnostics: Iterable[Diagnostic]) -> str:
    """Render one ``path:line:col: severity [rule] message`` line per diagnostic."""
    return "\n".join(str(d) for d in diagnostics)
