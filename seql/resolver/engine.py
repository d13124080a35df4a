"""Five-phase resolution of an identity against a tree.

1. narrowing by structure (anchor, path, target patterns)
2. semantic filtering (text, attributes, role, SVG fingerprint)
3. uniqueness check
4. constraints in descending priority
5. fallback policy for zero or several survivors

Run-time uncertainty is reported through :class:`ResolveResult.status`,
never raised.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from seql.cache import IdentityCache
from seql.models import Identity, ResolveResult
from seql.options import ResolverOptions
from seql.tree.base import TreeProvider

from .constraints import ConstraintsEvaluator
from .fallback import STRICT_FACTOR, FallbackHandler
from .matcher import SemanticsMatcher
from .narrowing import CandidateNarrower, candidate_nodes, scores_by_node

log = logging.getLogger(__name__)

LENIENT_FACTOR = 0.8
CONSTRAINED_FACTOR = 0.9


class ResolutionEngine:
    def __init__(
        self,
        provider: TreeProvider,
        options: Optional[ResolverOptions] = None,
        cache: Optional[IdentityCache] = None,
    ) -> None:
        self.provider = provider
        self.options = options or ResolverOptions()
        self.cache = cache if cache is not None else IdentityCache()
        self.narrower = CandidateNarrower(provider, self.cache)
        self.matcher = SemanticsMatcher(
            provider,
            path_only_urls=self.options.match_urls_by_path_only,
            base_url=self.options.base_url,
        )
        self.constraints = ConstraintsEvaluator(provider)
        self.fallback = FallbackHandler(provider)

    def matching_nodes(self, identity: Identity, root: Any) -> List[Any]:
        """Every node passing narrowing and exact semantic filtering, uncapped."""
        nodes = candidate_nodes(self.narrower.narrow(identity, root))
        return self.matcher.filter(nodes, identity.target.semantics)

    def resolve(self, identity: Identity, root: Any) -> ResolveResult:
        if root is None:
            return ResolveResult(
                status="error",
                warnings=["No tree to resolve against"],
                degradation_reason="invalid-context",
            )
        confidence = identity.meta.confidence
        target = identity.target.semantics

        # Phase 1
        narrowed = self.narrower.narrow(identity, root, limit=self.options.max_candidates)
        nodes = candidate_nodes(narrowed)
        path_scores = scores_by_node(narrowed)
        log.debug("Phase 1: %d structural candidates", len(nodes))

        # Phase 2
        filtered = self.matcher.filter(nodes, target)
        factor = 1.0
        warnings: List[str] = []
        reason: Optional[str] = None
        if not filtered and nodes and target.text is not None:
            relaxed = self.matcher.filter(nodes, target, lenient=True)
            if relaxed:
                log.warning("Exact text match failed for <%s>; using relaxed matching", identity.target.tag)
                filtered = relaxed
                factor = LENIENT_FACTOR
                warnings.append("Used relaxed text matching due to exact match failure")
                reason = "relaxed-text-matching"
        log.debug("Phase 2: %d candidates after semantic filtering", len(filtered))

        # Phase 3
        if len(filtered) == 1:
            return ResolveResult(
                status="success",
                nodes=filtered,
                confidence=_clamp(confidence * factor),
                warnings=warnings,
                degradation_reason=reason,
            )
        if not filtered:
            detail = (
                f"Structural narrowing found {len(nodes)} candidates but semantic filtering rejected all"
                if nodes
                else "Structural narrowing found no candidates"
            )
            return self._missing(identity, root, [*warnings, detail])

        # Phase 4
        order = {id(node): path_scores[id(node)][1] for node in filtered}
        survivors = sorted(filtered, key=lambda node: order[id(node)])
        for constraint in identity.constraints:
            survivors = self.constraints.apply(survivors, constraint)
            log.debug("Phase 4: %s left %d candidates", constraint.kind, len(survivors))
            if len(survivors) == 1:
                return ResolveResult(
                    status="success",
                    nodes=survivors,
                    confidence=_clamp(confidence * CONSTRAINED_FACTOR * factor),
                    warnings=warnings,
                    degradation_reason=reason,
                )
            if not survivors:
                return self._missing(identity, root, [*warnings, "Constraints eliminated all candidates"])

        # Phase 5
        uniqueness = identity.constraint("uniqueness")
        mode = uniqueness.params.get("mode") if uniqueness is not None else None
        if self.options.strict_mode or mode == "strict":
            return ResolveResult(
                status="ambiguous",
                nodes=survivors,
                confidence=_clamp(confidence * STRICT_FACTOR * factor),
                warnings=[*warnings, f"Non-unique resolution: {len(survivors)} matches"],
                degradation_reason="ambiguous",
            )
        policy = "allow-multiple" if mode == "allow-multiple" else None
        result = self.fallback.on_multiple(identity, survivors, path_scores, policy=policy)
        result.confidence = _clamp(result.confidence * factor)
        result.warnings = [*warnings, *result.warnings]
        return result

    def _missing(self, identity: Identity, root: Any, warnings: List[str]) -> ResolveResult:
        if not self.options.enable_fallback:
            return ResolveResult(
                status="error",
                warnings=["No matching elements found", *warnings],
                degradation_reason="not-found",
            )
        anchors = self.narrower.anchors(identity, root) if identity.fallback.on_missing == "anchor-only" else []
        return self.fallback.on_missing(identity, anchors, warnings)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))
