"""Ordered-rule classification of attributes into identity and state.

An element is the same whether it is expanded or collapsed, selected or not,
so attributes that only carry transient state never become part of an
identity. Rules are evaluated top to bottom and the first one that applies
decides; the later rules are catch-alls that only run once the specific
ones have had a chance to veto.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Sequence, Tuple

ARIA_STABLE_ATTRIBUTES = (
    "role",
    "aria-label",
    "aria-labelledby",
    "aria-describedby",
    "aria-controls",
    "aria-owns",
    "aria-level",
    "aria-posinset",
    "aria-setsize",
    "aria-haspopup",
)

ARIA_STATE_ATTRIBUTES = (
    "aria-selected",
    "aria-checked",
    "aria-pressed",
    "aria-expanded",
    "aria-hidden",
    "aria-disabled",
    "aria-current",
    "aria-busy",
    "aria-invalid",
    "aria-grabbed",
    "aria-live",
    "aria-atomic",
)

DATA_STATE_ATTRIBUTES = (
    "data-state",
    "data-active",
    "data-inactive",
    "data-selected",
    "data-open",
    "data-closed",
    "data-visible",
    "data-hidden",
    "data-disabled",
    "data-enabled",
    "data-loading",
    "data-error",
    "data-success",
    "data-highlighted",
    "data-focused",
    "data-hover",
    "data-orientation",
    "data-theme",
)

LIBRARY_DATA_PREFIXES = (
    "data-radix-",
    "data-headlessui-",
    "data-reach-",
    "data-mui-",
    "data-chakra-",
    "data-mantine-",
    "data-tw-",
)

DATA_ID_PATTERNS = (
    "data-testid",
    "data-test-id",
    "data-test",
    "data-cy",
    "data-qa",
    "data-automation-id",
    "data-id",
    "data-component",
    "data-entity-id",
    "data-product-id",
    "data-user-id",
)

HTML_STABLE_ATTRIBUTES = ("id", "name", "type", "placeholder", "title", "for", "alt", "href")

HTML_STATE_ATTRIBUTES = ("disabled", "checked", "selected", "hidden", "readonly", "required", "value")

GENERATED_ID_PATTERNS = (
    re.compile(r"^radix-"),
    re.compile(r"^headlessui-"),
    re.compile(r"^mui-"),
    re.compile(r":\w+:"),
)

RuleKind = Literal["whitelist-exact", "blacklist-exact", "prefix-blacklist", "suffix-whitelist", "pattern-blacklist", "default"]


@dataclass(frozen=True, slots=True)
class AttributeRule:
    """One step of the classification chain.

    ``applies`` decides whether the rule speaks for an attribute; when it
    does, ``stable`` is the verdict. ``check`` lets a rule compute the
    verdict from the value instead (used for ``id``).
    """

    name: str
    kind: RuleKind
    applies: Callable[[str, str], bool]
    stable: bool = True
    check: Optional[Callable[[str, str], bool]] = None

    def verdict(self, attr: str, value: str) -> Optional[bool]:
        if not self.applies(attr, value):
            return None
        if self.check is not None:
            return self.check(attr, value)
        return self.stable


def _exact(names: Sequence[str]) -> Callable[[str, str], bool]:
    members = frozenset(names)
    return lambda attr, _value: attr in members


def _prefixed(prefixes: Sequence[str]) -> Callable[[str, str], bool]:
    return lambda attr, _value: attr.startswith(tuple(prefixes))


def _id_not_generated(_attr: str, value: str) -> bool:
    return not any(pattern.search(value) for pattern in GENERATED_ID_PATTERNS)


DEFAULT_RULES: Tuple[AttributeRule, ...] = (
    AttributeRule("aria-stable", "whitelist-exact", _exact(ARIA_STABLE_ATTRIBUTES), True),
    AttributeRule("aria-state", "blacklist-exact", _exact(ARIA_STATE_ATTRIBUTES), False),
    AttributeRule("data-state", "blacklist-exact", _exact(DATA_STATE_ATTRIBUTES), False),
    AttributeRule("library-prefix", "prefix-blacklist", _prefixed(LIBRARY_DATA_PREFIXES), False),
    AttributeRule("data-id", "whitelist-exact", _exact(DATA_ID_PATTERNS), True),
    AttributeRule(
        "data-suffix-id",
        "suffix-whitelist",
        lambda attr, _value: attr.startswith("data-") and attr.endswith("-id"),
        True,
    ),
    AttributeRule("generated-id", "pattern-blacklist", lambda attr, _value: attr == "id", check=_id_not_generated),
    AttributeRule("html-stable", "whitelist-exact", _exact(HTML_STABLE_ATTRIBUTES), True),
    AttributeRule("html-state", "blacklist-exact", _exact(HTML_STATE_ATTRIBUTES), False),
    AttributeRule("data-default", "default", lambda attr, _value: attr.startswith("data-"), True),
    AttributeRule("reject", "default", lambda _attr, _value: True, False),
)


class AttributeStabilityClassifier:
    """Evaluate an attribute against an ordered rule chain."""

    def __init__(self, rules: Sequence[AttributeRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def matching_rule(self, name: str, value: str = "") -> AttributeRule:
        for rule in self.rules:
            if rule.verdict(name, value) is not None:
                return rule
        return self.rules[-1]

    def is_stable(self, name: str, value: str = "") -> bool:
        for rule in self.rules:
            verdict = rule.verdict(name, value)
            if verdict is not None:
                return verdict
        return False


_DEFAULT_CLASSIFIER = AttributeStabilityClassifier()


def is_stable_attribute(name: str, value: str = "") -> bool:
    return _DEFAULT_CLASSIFIER.is_stable(name, value)


__all__ = [
    "ARIA_STABLE_ATTRIBUTES",
    "ARIA_STATE_ATTRIBUTES",
    "AttributeRule",
    "AttributeStabilityClassifier",
    "DATA_ID_PATTERNS",
    "DATA_STATE_ATTRIBUTES",
    "DEFAULT_RULES",
    "HTML_STABLE_ATTRIBUTES",
    "HTML_STATE_ATTRIBUTES",
    "LIBRARY_DATA_PREFIXES",
    "is_stable_attribute",
]
