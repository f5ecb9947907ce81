"""Entry points that lint one file or many files concurrently."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Iterable

from guidelint.engine.context import SourceFile, TreeIndex
from guidelint.engine.walker import Walker, parse_error_diagnostic
from guidelint.lexer import tokenize_css, tokenize_html
from guidelint.model.config import Language, ResolvedConfig, detect_language
from guidelint.model.diagnostic import Diagnostic
from guidelint.parser import parse_css, parse_html
from guidelint.report import Summary, report, summarize
from guidelint.rules import DEFAULT_CATALOG, RuleCatalog
from guidelint.rules.catalog import Dispatch

logger = logging.getLogger("guidelint.engine")

Loader = Callable[[str], str]


@dataclass(frozen=True)
class FileFailure:
    """A file that could not be linted at all (unreadable or unsupported)."""

    path: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.path}: {self.error}"


@dataclass
class RunResult:
    """Outcome of :func:`check_files`."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def summary(self) -> Summary:
        return summarize(self.diagnostics)


def read_source(path: str) -> str:
    """Read *path* as UTF-8, keeping line endings and any byte-order mark."""
    with open(path, encoding="utf-8", newline="") as fh:
        return fh.read()


def _dispatch(config: ResolvedConfig | None, catalog: RuleCatalog | None) -> Dispatch:
    catalog = catalog or DEFAULT_CATALOG
    if config is None:
        config = ResolvedConfig.default(catalog)
    return catalog.dispatch(config)


def _lint(path: str, text: str, language: Language, dispatch: Dispatch) -> list[Diagnostic]:
    if language is Language.HTML:
        tokens = tokenize_html(text)
        root, errors = parse_html(tokens)
    else:
        tokens = tokenize_css(text)
        root, errors = parse_css(tokens)
    logger.debug("Checking %s (%s, %d tokens)", path, language.value, len(tokens))

    source = SourceFile(path=path, text=text, language=language, tokens=tuple(tokens))
    index = TreeIndex()
    index.add(root)
    diagnostics = [parse_error_diagnostic(path, e) for e in errors]
    diagnostics.extend(Walker(source, dispatch, index).run(root))
    return diagnostics


def check_file(
    path: str,
    text: str,
    config: ResolvedConfig | None = None,
    *,
    language: Language | None = None,
    catalog: RuleCatalog | None = None,
) -> list[Diagnostic]:
    """Lint *text* as the contents of *path*.

    The language is taken from the path suffix unless given explicitly.
    Returns the reported (deduplicated, sorted) diagnostics.

    Raises:
        UnsupportedLanguageError: If the suffix names no supported language.
        UnknownRuleError: If *config* names a rule the catalog lacks.
    """
    dispatch = _dispatch(config, catalog)
    if language is None:
        language = detect_language(path)
    return report(_lint(path, text, language, dispatch))


def check_files(
    paths: Iterable[str],
    config: ResolvedConfig | None = None,
    *,
    loader: Loader = read_source,
    max_workers: int | None = None,
    cancel: threading.Event | None = None,
    catalog: RuleCatalog | None = None,
) -> RunResult:
    """Lint many files concurrently.

    A file that cannot be loaded or checked (unreadable, undecodable,
    unsupported, or any other loader error) becomes a FileFailure entry
    instead of diagnostics; the other files are unaffected. Setting *cancel*
    stops any file that has not started yet; files already finished keep
    their results.
    """
    dispatch = _dispatch(config, catalog)

    def lint_one(path: str) -> list[Diagnostic] | None:
        if cancel is not None and cancel.is_set():
            return None
        language = detect_language(path)
        return _lint(path, loader(path), language, dispatch)

    diagnostics: list[Diagnostic] = []
    failures: list[FileFailure] = []
    finished = 0
    with ThreadPoolExecutor(max_workers=max_workers or os.cpu_count()) as pool:
        futures = {}
        for path in paths:
            if cancel is not None and cancel.is_set():
                break
            futures[pool.submit(lint_one, path)] = path
        for future in as_completed(futures):
            path = futures[future]
            try:
                found = future.result()
            except Exception as exc:
                logger.warning("Could not check %s: %s", path, exc)
                failures.append(FileFailure(path, exc))
                continue
            if found is not None:
                finished += 1
                diagnostics.extend(found)

    cancelled = cancel is not None and cancel.is_set()
    if cancelled:
        logger.info("Run cancelled; %d file(s) checked before stopping", finished)
    failures.sort(key=lambda f: f.path)
    return RunResult(diagnostics=report(diagnostics), failures=failures, cancelled=cancelled)
