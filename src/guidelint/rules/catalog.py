"""Rule records and the immutable catalog that dispatches them by node kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping

from guidelint.model.diagnostic import Diagnostic, Severity

if TYPE_CHECKING:
    from guidelint.engine.context import RuleContext
    from guidelint.model.config import ResolvedConfig

# Rule ids emitted by the engine itself rather than by a catalog entry.
PARSE_ERROR = "parse-error"
INTERNAL_RULE_ERROR = "internal-rule-error"
RESERVED_IDS = frozenset({PARSE_ERROR, INTERNAL_RULE_ERROR})

# Node kinds a handler can be registered for.
NODE_KINDS = frozenset({
    "file",
    # HTML
    "element", "text", "comment", "doctype",
    # CSS
    "style_rule", "at_rule", "declaration", "block",
})

Handler = Callable[[Any, "RuleContext"], list[Diagnostic]]


class UnknownRuleError(KeyError):
    """Raised when a rule id is not registered in the catalog."""

    def __init__(self, rule_ids: Iterable[str]) -> None:
        self.rule_ids = sorted(rule_ids)
        super().__init__(f"Unknown rule id(s): {', '.join(self.rule_ids)}")

    def __str__(self) -> str:
        return self.args[0]


@dataclass(frozen=True)
class Rule:
    """A style rule: metadata plus one predicate per node kind it inspects.

    Attributes:
        id: Unique identifier, e.g. ``"zero-unit"``.
        summary: One-line description of what the rule enforces.
        handlers: Node kind -> predicate ``(node, ctx) -> list[Diagnostic]``.
        severity: Default severity of the diagnostics it emits.
        default_enabled: Whether the default config turns the rule on.
    """

    id: str
    summary: str
    handlers: Mapping[str, Handler] = field(hash=False)
    severity: Severity = Severity.WARNING
    default_enabled: bool = True

    def __post_init__(self) -> None:
        unknown = set(self.handlers) - NODE_KINDS
        if unknown:
            raise ValueError(f"Rule {self.id!r} registers unknown node kinds: {sorted(unknown)}")
        object.__setattr__(self, "handlers", MappingProxyType(dict(self.handlers)))


@dataclass(frozen=True)
class BoundHandler:
    rule: Rule
    handler: Handler
    severity: Severity


Dispatch = Mapping[str, tuple[BoundHandler, ...]]


class RuleCatalog:
    """Read-only registry of rules keyed by id."""

    def __init__(self, rules: Iterable[Rule]) -> None:
        by_id: dict[str, Rule] = {}
        for rule in rules:
            if rule.id in by_id or rule.id in RESERVED_IDS:
                raise ValueError(f"Duplicate rule id {rule.id!r}")
            by_id[rule.id] = rule
        self._rules: Mapping[str, Rule] = MappingProxyType(by_id)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __getitem__(self, rule_id: str) -> Rule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise UnknownRuleError([rule_id]) from None

    def ids(self) -> list[str]:
        return sorted(self._rules)

    def dispatch(self, config: ResolvedConfig) -> Dispatch:
        """Return node kind -> handlers of every rule *config* enables.

        Raises UnknownRuleError if the config names a rule that does not exist.
        """
        unknown = (set(config.enabled_rules) | set(config.severity_overrides)) - set(self._rules)
        if unknown:
            raise UnknownRuleError(unknown)
        table: dict[str, list[BoundHandler]] = {}
        for rule in self._rules.values():
            if not config.is_enabled(rule.id):
                continue
            severity = config.severity_for(rule.id, rule.severity)
            for kind, handler in rule.handlers.items():
                table.setdefault(kind, []).append(BoundHandler(rule, handler, severity))
        return MappingProxyType({kind: tuple(bound) for kind, bound in table.items()})
