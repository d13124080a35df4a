"""Semantic filtering of narrowed candidates."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from seql.classify.text import normalize_text
from seql.classify.urls import URL_ATTRIBUTES, urls_match
from seql.generator.svg import SvgFingerprinter
from seql.models import Semantics, TextContent
from seql.tree.base import TreeProvider


class SemanticsMatcher:
    def __init__(self, provider: TreeProvider, *, path_only_urls: bool = True, base_url: Optional[str] = None) -> None:
        self.provider = provider
        self.path_only_urls = path_only_urls
        self.base_url = base_url
        self.svg = SvgFingerprinter(provider)

    def node_text(self, node: Any) -> str:
        """Direct text of ``node``, or its full text when it has none."""
        return normalize_text(self.provider.own_text(node) or self.provider.text(node))

    def match_text(self, node: Any, text: TextContent) -> bool:
        actual = self.node_text(node)
        if not actual:
            return False
        if text.match_mode == "partial":
            return text.normalized in actual
        return actual == text.normalized

    def match_text_lenient(self, node: Any, text: TextContent) -> bool:
        actual = self.node_text(node)
        if not actual:
            return False
        return text.normalized in actual or actual in text.normalized

    def match_attributes(self, node: Any, expected: Mapping[str, str]) -> bool:
        attrs = self.provider.attributes(node)
        for name, value in expected.items():
            actual = attrs.get(name)
            if name in URL_ATTRIBUTES:
                if not urls_match(value, actual, path_only=self.path_only_urls, base_url=self.base_url):
                    return False
            elif actual != value:
                return False
        return True

    def matches(self, node: Any, semantics: Semantics, *, lenient: bool = False) -> bool:
        if semantics.text is not None:
            text_ok = self.match_text_lenient if lenient else self.match_text
            if not text_ok(node, semantics.text):
                return False
        if semantics.attributes and not self.match_attributes(node, semantics.attributes):
            return False
        if semantics.role and self.provider.role(node) != semantics.role:
            return False
        if semantics.svg is not None and not self.svg.matches(node, semantics.svg):
            return False
        return True

    def filter(self, nodes: Sequence[Any], semantics: Semantics, *, lenient: bool = False) -> List[Any]:
        return [node for node in nodes if self.matches(node, semantics, lenient=lenient)]
