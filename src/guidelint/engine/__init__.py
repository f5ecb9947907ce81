"""Rule engine: walks parsed trees and collects diagnostics."""

from guidelint.engine.checker import (
    FileFailure,
    RunResult,
    check_file,
    check_files,
    read_source,
)
from guidelint.engine.context import RuleContext, SourceFile, TreeIndex
from guidelint.engine.walker import Walker

__all__ = [
    "check_file",
    "check_files",
    "read_source",
    "FileFailure",
    "RunResult",
    "RuleContext",
    "SourceFile",
    "TreeIndex",
    "Walker",
]
