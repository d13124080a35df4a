"""Identity generation for a single node."""

from __future__ import annotations

import logging
from typing import Any, Optional

from seql.cache import MISSING, IdentityCache
from seql.models import AnchorNode, Constraint, FallbackPolicy, Identity, IdentityMeta, TargetNode
from seql.options import GeneratorOptions
from seql.resolver.engine import ResolutionEngine
from seql.tree.base import TreeProvider

from .anchor import AnchorFinder
from .path import PathBuilder, PathResult
from .scoring import ConfidenceScorer
from .semantics import SemanticExtractor

log = logging.getLogger(__name__)


def default_constraints() -> tuple[Constraint, ...]:
    return (Constraint.uniqueness("best-score"),)


def degradation_reason(anchor_degraded: bool, path: PathResult) -> Optional[str]:
    if anchor_degraded and path.degraded:
        return "anchor-and-path-degraded"
    if anchor_degraded:
        return "no-semantic-anchor"
    return path.degradation_reason


class IdentityGenerator:
    """Compose anchor finding, path building and scoring into an :class:`Identity`."""

    def __init__(
        self,
        provider: TreeProvider,
        options: Optional[GeneratorOptions] = None,
        cache: Optional[IdentityCache] = None,
    ) -> None:
        self.provider = provider
        self.options = options or GeneratorOptions()
        self.cache = cache if cache is not None else IdentityCache()
        self.extractor = SemanticExtractor(provider, self.options, self.cache)
        self.anchors = AnchorFinder(provider, self.options, self.cache)
        self.engine = ResolutionEngine(provider, cache=self.cache)
        self.paths = PathBuilder(provider, self.extractor, self.engine.matching_nodes, self.options)
        self.scorer = ConfidenceScorer()

    def generate(self, target: Any) -> Optional[Identity]:
        """Return the identity of ``target``, or ``None`` when none is trustworthy."""
        if target is None:
            return None
        cached = self.cache.get_identity(target, self.options)
        if cached is not MISSING:
            return cached

        anchor = self.anchors.find(target)
        if anchor is None:
            log.debug("No anchor for <%s> and root fallback disabled", self.provider.tag(target))
            return None

        anchor_node = AnchorNode(
            tag=self.provider.tag(anchor.node),
            semantics=self.extractor.extract(anchor.node),
            score=anchor.score,
            degraded=anchor.degraded,
        )
        target_node = TargetNode(
            tag=self.provider.tag(target),
            semantics=self.extractor.extract(target),
            score=self.extractor.score(target),
        )
        path = self.paths.build(anchor, anchor_node, target, target_node)
        target_node = target_node.model_copy(update={"ordinal": path.target_ordinal})
        anchor_node = anchor_node.model_copy(update={"ordinal": path.anchor_ordinal})

        identity = Identity(
            anchor=anchor_node,
            path=tuple(path.path),
            target=target_node,
            constraints=default_constraints(),
            fallback=FallbackPolicy(),
        )
        if path.unique:
            uniqueness = "unique"
        elif path.found:
            uniqueness = "ambiguous"
        else:
            uniqueness = "degraded"
        confidence = self.scorer.score_identity(identity, uniqueness)
        degraded = anchor.degraded or path.degraded
        identity = identity.model_copy(
            update={
                "meta": IdentityMeta(
                    confidence=confidence,
                    degraded=degraded,
                    degradation_reason=degradation_reason(anchor.degraded, path),
                    source_tag=self.options.source_tag,
                )
            }
        )

        if confidence < self.options.confidence_threshold:
            log.debug("Confidence %.3f below threshold for <%s>", confidence, target_node.tag)
            return None
        self.cache.set_identity(target, identity, self.options)
        return identity
