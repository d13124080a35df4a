"""Per-node semantic snapshots."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from seql.cache import MISSING, IdentityCache
from seql.classify.attributes import AttributeStabilityClassifier
from seql.classify.classes import ClassStabilityClassifier
from seql.classify.ids import ID_REFERENCE_ATTRIBUTES, has_dynamic_id_reference, is_dynamic_id
from seql.classify.text import normalize_text, truncate
from seql.classify.urls import URL_ATTRIBUTES, clean_attribute_value
from seql.models import Semantics, TextContent
from seql.options import GeneratorOptions
from seql.tree.base import TreeProvider

from .svg import SvgFingerprinter

log = logging.getLogger(__name__)

# Higher means more useful as an identity signal; 0 keeps an attribute out.
ATTRIBUTE_PRIORITY: Dict[str, int] = {
    "data-testid": 100,
    "data-qa": 99,
    "data-cy": 98,
    "data-test": 97,
    "data-test-id": 96,
    "aria-label": 90,
    "aria-labelledby": 85,
    "aria-describedby": 80,
    "name": 75,
    "href": 70,
    "src": 70,
    "type": 65,
    "role": 60,
    "alt": 55,
    "title": 50,
    "for": 45,
    "placeholder": 40,
}
DATA_PRIORITY = 30
ARIA_PRIORITY = 25

IGNORED_ATTRIBUTES = frozenset({"id", "class", "style", "xmlns", "tabindex", "contenteditable"})

TEXT_TAGS = frozenset(
    {
        "button",
        "a",
        "label",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "p",
        "span",
        "li",
        "th",
        "td",
        "dt",
        "dd",
        "legend",
        "figcaption",
        "summary",
    }
)

_DYNAMIC_VALUES = (
    re.compile(r"^[a-f0-9]{32,}$", re.I),
    re.compile(r"^\d{10,}$"),
    re.compile(r"^(undefined|null|\[object)"),
    re.compile(r"^\{\{.*\}\}$"),
)


def attribute_priority(name: str) -> int:
    if name in ATTRIBUTE_PRIORITY:
        return ATTRIBUTE_PRIORITY[name]
    if name.startswith("data-"):
        return DATA_PRIORITY
    if name.startswith("aria-"):
        return ARIA_PRIORITY
    return 0


def is_service_attribute(name: str) -> bool:
    """Attributes owned by the page's framework or runtime, not its author."""
    if name in IGNORED_ATTRIBUTES or name.startswith("on"):
        return True
    if name.startswith(("ng-", "_ng")):
        return True
    return name.startswith(("data-react", "data-v-"))


def is_dynamic_value(value: str) -> bool:
    return any(pattern.search(value) for pattern in _DYNAMIC_VALUES)


def score_semantics(semantics: Semantics) -> float:
    """Richness of a node's semantics in ``[0.5, 1.0]``."""
    score = 0.5
    if semantics.id:
        score += 0.15
    if semantics.classes:
        score += 0.1
    if semantics.attributes:
        score += 0.1
    if semantics.role:
        score += 0.1
    if semantics.text:
        score += 0.05
    return min(score, 1.0)


class SemanticExtractor:
    """Build :class:`Semantics` for a node from the stability classifiers."""

    def __init__(
        self,
        provider: TreeProvider,
        options: Optional[GeneratorOptions] = None,
        cache: Optional[IdentityCache] = None,
        *,
        attributes: Optional[AttributeStabilityClassifier] = None,
        classes: Optional[ClassStabilityClassifier] = None,
    ) -> None:
        self.provider = provider
        self.options = options or GeneratorOptions()
        self.cache = cache
        self.attribute_classifier = attributes or AttributeStabilityClassifier()
        self.class_classifier = classes or ClassStabilityClassifier()
        self.svg = SvgFingerprinter(provider)

    def extract(self, node: Any) -> Semantics:
        if self.cache is not None:
            cached = self.cache.get_semantics(node, self.options)
            if cached is not MISSING:
                return cached

        provider = self.provider
        node_id = provider.get_attribute(node, "id")
        classes = list(provider.classes(node))
        if not self.options.include_utility_classes:
            classes = self.class_classifier.stable(classes)

        svg = None
        if self.options.enable_svg_fingerprint and self.svg.is_svg(node):
            svg = self.svg.fingerprint(node)

        semantics = Semantics(
            id=node_id if node_id and not is_dynamic_id(node_id) else None,
            classes=classes,
            attributes=self.extract_attributes(node),
            text=self.extract_text(node),
            role=provider.role(node) or None,
            svg=svg,
        )
        if self.cache is not None:
            self.cache.set_semantics(node, semantics, self.options)
        return semantics

    def score(self, node: Any) -> float:
        return score_semantics(self.extract(node))

    def extract_attributes(self, node: Any) -> Dict[str, str]:
        attrs: Dict[str, str] = {}
        for name, raw in self.provider.attributes(node).items():
            if is_service_attribute(name):
                continue
            if not self.attribute_classifier.is_stable(name, raw):
                continue
            if name in ID_REFERENCE_ATTRIBUTES and has_dynamic_id_reference(raw):
                continue
            if attribute_priority(name) == 0:
                continue
            value = clean_attribute_value(name, raw) if name in URL_ATTRIBUTES else raw
            if not value or not value.strip() or is_dynamic_value(value):
                continue
            attrs[name] = value
        return attrs

    def extract_text(self, node: Any) -> Optional[TextContent]:
        if self.provider.tag(node) not in TEXT_TAGS:
            return None
        raw = self.provider.own_text(node) or self.provider.text(node)
        normalized = normalize_text(raw)
        if not normalized:
            return None
        limit = self.options.max_text_length
        normalized, cut = truncate(normalized, limit)
        raw_kept, _ = truncate(raw.strip(), limit)
        return TextContent(raw=raw_kept, normalized=normalized, match_mode="partial" if cut else "exact")
