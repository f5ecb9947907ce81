"""guidelint -- checks HTML and CSS sources against a house style guide."""

from guidelint.engine import FileFailure, RunResult, check_file, check_files, read_source
from guidelint.model import Diagnostic, Language, ResolvedConfig, Severity, UnsupportedLanguageError
from guidelint.report import Summary, format_text, report, summarize, to_json, to_records
from guidelint.rules import DEFAULT_CATALOG, Rule, RuleCatalog, UnknownRuleError

__version__ = "0.1.0"

__all__ = [
    "check_file",
    "check_files",
    "read_source",
    "FileFailure",
    "RunResult",
    "Diagnostic",
    "Severity",
    "Language",
    "ResolvedConfig",
    "UnsupportedLanguageError",
    "DEFAULT_CATALOG",
    "Rule",
    "RuleCatalog",
    "UnknownRuleError",
    "Summary",
    "report",
    "summarize",
    "to_records",
    "to_json",
    "format_text",
]
