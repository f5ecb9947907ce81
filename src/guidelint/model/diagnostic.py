"""Diagnostic model: structured style findings for one source file."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from guidelint.model.span import Span


class Severity(Enum):
    """Severity level for a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single style violation found in a source file.

    Attributes:
        path: The file the finding belongs to.
        rule_id: Identifier of the rule that produced this diagnostic.
        severity: How serious the issue is.
        message: Human-readable description of the problem.
        span: Where in the source text the problem is.
        fix: Suggested remediation, if available.
    """

    path: str
    rule_id: str
    severity: Severity
    message: str
    span: Span
    fix: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARNING

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    def __str__(self) -> str:
        return (
            f"{self.path}:{self.line}:{self.column}: "
            f"{self.severity.value} [{self.rule_id}] {self.message}"
        )
