"""Run configuration: which rules are enabled and at what severity."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import PurePath
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from guidelint.model.diagnostic import Severity

if TYPE_CHECKING:
    from guidelint.rules.catalog import RuleCatalog


class Language(Enum):
    HTML = "html"
    CSS = "css"


class UnsupportedLanguageError(ValueError):
    """Raised when a file's language cannot be determined from its path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Cannot determine language of {path!r}")


_SUFFIXES = {
    ".html": Language.HTML,
    ".htm": Language.HTML,
    ".xhtml": Language.HTML,
    ".css": Language.CSS,
}


def detect_language(path: str) -> Language:
    """Map a file path to the language its suffix names."""
    language = _SUFFIXES.get(PurePath(path).suffix.lower())
    if language is None:
        raise UnsupportedLanguageError(path)
    return language


@dataclass(frozen=True)
class ResolvedConfig:
    """Enabled rule ids plus per-rule severity overrides.

    Supplied by whatever resolves user configuration; the engine only reads it.
    """

    enabled_rules: frozenset[str] = frozenset()
    severity_overrides: Mapping[str, Severity] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "enabled_rules", frozenset(self.enabled_rules))
        object.__setattr__(
            self, "severity_overrides", MappingProxyType(dict(self.severity_overrides))
        )

    @classmethod
    def default(cls, catalog: RuleCatalog | None = None) -> ResolvedConfig:
        """Enable every rule the catalog marks as on by default."""
        if catalog is None:
            from guidelint.rules import DEFAULT_CATALOG

            catalog = DEFAULT_CATALOG
        return cls(enabled_rules=frozenset(r.id for r in catalog if r.default_enabled))

    def is_enabled(self, rule_id: str) -> bool:
        return rule_id in self.enabled_rules

    def severity_for(self, rule_id: str, default: Severity) -> Severity:
        return self.severity_overrides.get(rule_id, default)

    def enable(self, *rule_ids: str) -> ResolvedConfig:
        return replace(self, enabled_rules=self.enabled_rules | set(rule_ids))

    def disable(self, *rule_ids: str) -> ResolvedConfig:
        return replace(self, enabled_rules=self.enabled_rules - set(rule_ids))

    def with_severity(self, rule_id: str, severity: Severity) -> ResolvedConfig:
        overrides = dict(self.severity_overrides)
        overrides[rule_id] = severity
        return replace(self, severity_overrides=overrides)
