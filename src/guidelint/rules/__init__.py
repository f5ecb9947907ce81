"""Rule catalog: every style rule guidelint knows, keyed by id."""

from guidelint.rules import css, general, html
from guidelint.rules.catalog import (
    INTERNAL_RULE_ERROR,
    NODE_KINDS,
    PARSE_ERROR,
    BoundHandler,
    Rule,
    RuleCatalog,
    UnknownRuleError,
)

DEFAULT_CATALOG = RuleCatalog(general.RULES + html.RULES + css.RULES)

__all__ = [
    "DEFAULT_CATALOG",
    "INTERNAL_RULE_ERROR",
    "NODE_KINDS",
    "PARSE_ERROR",
    "BoundHandler",
    "Rule",
    "RuleCatalog",
    "UnknownRuleError",
]
