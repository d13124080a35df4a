"""Choice of the semantic root an identity's path starts from."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional

from seql.cache import MISSING, IdentityCache
from seql.classify.ids import is_dynamic_id
from seql.options import GeneratorOptions
from seql.tree.base import TreeProvider

log = logging.getLogger(__name__)

# Tier A: landmark tags selected as soon as they are seen.
ANCHOR_TAGS = frozenset({"form", "main", "nav", "section", "article", "footer", "header"})
# Tier B: landmark roles, also selected immediately.
ANCHOR_ROLES = frozenset(
    {"form", "navigation", "main", "region", "contentinfo", "complementary", "banner", "search"}
)
TEST_MARKERS = ("data-testid", "data-qa", "data-test")

SEMANTIC_TAG_SCORE = 0.5
ROLE_SCORE = 0.3
ARIA_LABEL_SCORE = 0.1
STABLE_ID_SCORE = 0.1
TEST_MARKER_SCORE = 0.05
DEPTH_PENALTY_THRESHOLD = 5
DEPTH_PENALTY_FACTOR = 0.05
DEGRADED_SCORE = 0.3

Tier = Literal["A", "B", "C"]


@dataclass(slots=True)
class AnchorCandidate:
    node: Any
    score: float
    tier: Tier
    depth: int
    degraded: bool = False


class AnchorFinder:
    def __init__(
        self,
        provider: TreeProvider,
        options: Optional[GeneratorOptions] = None,
        cache: Optional[IdentityCache] = None,
    ) -> None:
        self.provider = provider
        self.options = options or GeneratorOptions()
        self.cache = cache

    def score(self, node: Any) -> float:
        provider = self.provider
        attrs = provider.attributes(node)
        score = 0.0
        if provider.tag(node) in ANCHOR_TAGS:
            score += SEMANTIC_TAG_SCORE
        if provider.role(node) in ANCHOR_ROLES:
            score += ROLE_SCORE
        if "aria-label" in attrs or "aria-labelledby" in attrs:
            score += ARIA_LABEL_SCORE
        node_id = attrs.get("id")
        if node_id and not is_dynamic_id(node_id):
            score += STABLE_ID_SCORE
        if any(marker in attrs for marker in TEST_MARKERS):
            score += TEST_MARKER_SCORE
        return min(score, 1.0)

    def tier(self, node: Any) -> Tier:
        if self.provider.tag(node) in ANCHOR_TAGS:
            return "A"
        if self.provider.role(node) in ANCHOR_ROLES:
            return "B"
        return "C"

    @staticmethod
    def depth_penalty(score: float, depth: int) -> float:
        if depth <= DEPTH_PENALTY_THRESHOLD:
            return score
        return max(0.0, score - (depth - DEPTH_PENALTY_THRESHOLD) * DEPTH_PENALTY_FACTOR)

    def find(self, target: Any) -> Optional[AnchorCandidate]:
        """Walk up from ``target`` and pick its anchor.

        Returns ``None`` only when no ancestor scores and falling back to the
        root is disabled. A target without a parent is its own anchor.
        """
        if self.cache is not None:
            cached = self.cache.get_anchor(target, self.options)
            if cached is not MISSING:
                return cached
        result = self._find(target)
        if self.cache is not None:
            self.cache.set_anchor(target, result, self.options)
        return result

    def _find(self, target: Any) -> Optional[AnchorCandidate]:
        provider = self.provider
        current = provider.parent(target)
        if current is None:
            return AnchorCandidate(target, DEGRADED_SCORE, "C", 0, degraded=True)

        best: Optional[AnchorCandidate] = None
        depth = 0
        while current is not None and depth < self.options.max_path_depth:
            if provider.tag(current) == "body":
                break
            raw = self.score(current)
            if raw > 0:
                tier = self.tier(current)
                candidate = AnchorCandidate(current, self.depth_penalty(raw, depth), tier, depth)
                if tier in ("A", "B"):
                    log.debug("Anchor <%s> tier %s at depth %d", provider.tag(current), tier, depth)
                    return candidate
                if best is None or candidate.score > best.score:
                    best = candidate
            current = provider.parent(current)
            depth += 1

        if best is not None:
            return best
        if not self.options.fallback_to_root:
            return None
        fallback = self.fallback_root(target)
        log.debug("No semantic anchor for <%s>; using <%s>", provider.tag(target), provider.tag(fallback))
        return AnchorCandidate(fallback, DEGRADED_SCORE, "C", depth, degraded=True)

    def fallback_root(self, target: Any) -> Any:
        """The document body when there is one, else the tree root."""
        for ancestor in self.provider.ancestors(target):
            if self.provider.tag(ancestor) == "body":
                return ancestor
        return self.provider.root_of(target)
