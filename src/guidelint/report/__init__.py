"""Diagnostic reporting: ordering, summaries and serialization."""

from guidelint.report.reporter import (
    Summary,
    format_text,
    report,
    summarize,
    to_json,
    to_records,
)

__all__ = ["report", "Summary", "summarize", "to_records", "to_json", "format_text"]
