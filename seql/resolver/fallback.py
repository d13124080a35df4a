"""Recovery when resolution finds no match or several."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from seql.classify.text import normalize_text
from seql.models import Identity, ResolveResult, Semantics
from seql.tree.base import TreeProvider

log = logging.getLogger(__name__)

ANCHOR_FALLBACK_FACTOR = 0.3
STRICT_FACTOR = 0.7
ALLOW_MULTIPLE_FACTOR = 0.5
FIRST_FACTOR = 0.7
BEST_SCORE_BASE = 0.7
BEST_SCORE_RANGE = 0.2

# Share of the combined best-score ranking given to semantics; the rest
# comes from how well the candidate's ancestors match the recorded path.
SEMANTIC_SHARE = 0.8


class FallbackHandler:
    def __init__(self, provider: TreeProvider) -> None:
        self.provider = provider

    def on_missing(self, identity: Identity, anchors: Sequence[Any], warnings: List[str]) -> ResolveResult:
        policy = identity.fallback.on_missing
        if policy == "anchor-only":
            if anchors:
                log.warning("Target <%s> not found; returning its anchor", identity.target.tag)
                return ResolveResult(
                    status="degraded-fallback",
                    nodes=[anchors[0]],
                    confidence=identity.meta.confidence * ANCHOR_FALLBACK_FACTOR,
                    warnings=[*warnings, "Target not found, returning anchor"],
                    degradation_reason="anchor-fallback",
                )
            return ResolveResult(
                status="error",
                warnings=[*warnings, "Anchor also not found"],
                degradation_reason="anchor-not-found",
            )
        if policy == "strict":
            return ResolveResult(
                status="error",
                warnings=[*warnings, "Element not found (strict mode)"],
                degradation_reason="strict-not-found",
            )
        return ResolveResult(status="error", warnings=[*warnings, "Element not found"], degradation_reason="not-found")

    def on_multiple(
        self,
        identity: Identity,
        candidates: Sequence[Any],
        path_scores: Optional[Dict[int, Tuple[float, int]]] = None,
        policy: Optional[str] = None,
    ) -> ResolveResult:
        """Apply ``policy`` (default ``identity.fallback.on_multiple``).

        ``candidates`` are in document order.
        """
        policy = policy or identity.fallback.on_multiple
        confidence = identity.meta.confidence
        if policy == "first":
            return ResolveResult(
                status="success",
                nodes=[candidates[0]],
                confidence=confidence * FIRST_FACTOR,
                warnings=["Multiple matches, returning first"],
                degradation_reason="first-of-multiple",
            )
        if policy == "best-score":
            node, score = self.best(identity.target.semantics, candidates, path_scores or {})
            return ResolveResult(
                status="success",
                nodes=[node],
                confidence=confidence * (BEST_SCORE_BASE + score * BEST_SCORE_RANGE),
                warnings=[f"Multiple matches ({len(candidates)}), selected best-scoring element"],
                degradation_reason="best-of-multiple",
            )
        return ResolveResult(
            status="ambiguous",
            nodes=list(candidates),
            confidence=confidence * ALLOW_MULTIPLE_FACTOR,
            warnings=[f"Multiple matches: {len(candidates)}"],
            degradation_reason="multiple-matches",
        )

    def best(
        self,
        semantics: Semantics,
        candidates: Sequence[Any],
        path_scores: Dict[int, Tuple[float, int]],
    ) -> Tuple[Any, float]:
        """Highest combined score; the earliest in document order wins ties."""
        raw = [path_scores.get(id(node), (0.0, 0))[0] for node in candidates]
        low, high = min(raw), max(raw)
        spread = high - low
        best_node = candidates[0]
        best_score = -1.0
        for node, path in zip(candidates, raw):
            structural = (path - low) / spread if spread else 0.0
            score = SEMANTIC_SHARE * self.semantic_score(node, semantics) + (1 - SEMANTIC_SHARE) * structural
            if score > best_score:
                best_node, best_score = node, score
        return best_node, best_score

    def semantic_score(self, node: Any, semantics: Semantics) -> float:
        """Normalised agreement between ``node`` and ``semantics``.

        Visibility is not scored; hidden nodes are only dropped by an explicit
        visibility constraint.
        """
        provider = self.provider
        attrs = provider.attributes(node)
        score = 0.0
        total = 0.0
        if semantics.id:
            total += 0.3
            if attrs.get("id") == semantics.id:
                score += 0.3
        if semantics.classes:
            total += 0.25
            present = set(provider.classes(node))
            score += 0.25 * sum(1 for cls in semantics.classes if cls in present) / len(semantics.classes)
        if semantics.attributes:
            total += 0.2
            hits = sum(1 for name, value in semantics.attributes.items() if attrs.get(name) == value)
            score += 0.2 * hits / len(semantics.attributes)
        if semantics.role:
            total += 0.15
            if provider.role(node) == semantics.role:
                score += 0.15
        if semantics.text:
            total += 0.1
            text = normalize_text(provider.text(node))
            if text == semantics.text.normalized:
                score += 0.1
            elif semantics.text.normalized in text:
                score += 0.05
        return score / total if total else 0.0
