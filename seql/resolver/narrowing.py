"""Structural narrowing of an identity to candidate nodes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from seql.cache import MISSING, IdentityCache
from seql.classify.urls import URL_ATTRIBUTES
from seql.models import Identity, PathNode
from seql.tree.base import AttributeTest, NodePattern, StructuralPredicate, TreeProvider

log = logging.getLogger(__name__)

TAG_MATCH = 10
ORDINAL_MATCH = 20
ORDINAL_MISMATCH = -10
TAG_MISMATCH = -5
CLASS_MATCH = 2
ATTRIBUTE_MATCH = 3
LENGTH_PENALTY = 2


def node_pattern(node: PathNode) -> NodePattern:
    semantics = node.semantics
    tests = tuple(
        AttributeTest(name, value, "url" if name in URL_ATTRIBUTES else "equals")
        for name, value in semantics.attributes.items()
    )
    return NodePattern(
        tag=node.tag,
        node_id=semantics.id,
        classes=tuple(semantics.classes),
        attributes=tests,
        ordinal=node.ordinal,
    )


def anchor_predicate(identity: Identity) -> StructuralPredicate:
    return StructuralPredicate((node_pattern(identity.anchor),))


def body_predicate(identity: Identity) -> StructuralPredicate:
    """Path and target patterns, evaluated below one anchor instance."""
    patterns = [node_pattern(node) for node in identity.path]
    patterns.append(node_pattern(identity.target))
    return StructuralPredicate(tuple(patterns))


@dataclass(slots=True)
class Candidate:
    node: Any
    anchor: Any
    path_score: float
    order: int


class CandidateNarrower:
    """Find nodes shaped like an identity's anchor, path and target.

    Candidates are ranked by how well their real ancestor chain matches the
    recorded path, so the right occurrence among duplicated subtrees (table
    rows, list items) comes first. Equal scores keep document order.
    """

    def __init__(self, provider: TreeProvider, cache: Optional[IdentityCache] = None) -> None:
        self.provider = provider
        self.cache = cache

    def anchors(self, identity: Identity, root: Any) -> List[Any]:
        return self._query(root, anchor_predicate(identity), include_root=True, scoped=False)

    def narrow(self, identity: Identity, root: Any, limit: Optional[int] = None) -> List[Candidate]:
        provider = self.provider
        predicate = body_predicate(identity)
        order = provider.document_index(root)
        found: Dict[int, Candidate] = {}
        for anchor in self.anchors(identity, root):
            matches = self._query(anchor, predicate, include_root=False, scoped=True)
            if not matches and not identity.path and predicate.subject.matches(anchor, provider):
                # identity whose target is its own anchor
                matches = [anchor]
            for node in matches:
                score = self.path_score(node, anchor, identity.path)
                previous = found.get(id(node))
                if previous is None or score > previous.path_score:
                    found[id(node)] = Candidate(node, anchor, score, order.get(id(node), len(order)))
        ranked = sorted(found.values(), key=lambda item: (-item.path_score, item.order))
        log.debug("Narrowed %s to %d candidates", identity.target.tag, len(ranked))
        if limit is not None:
            ranked = ranked[:limit]
        return ranked

    def path_score(self, candidate: Any, anchor: Any, recorded: Sequence[PathNode]) -> float:
        """Compare the candidate's real ancestors below ``anchor`` with ``recorded``.

        Recorded nodes are aligned greedily to the next real ancestor with
        the same tag, since recorded paths skip structural wrappers.
        """
        provider = self.provider
        actual: List[Any] = []
        current = provider.parent(candidate)
        while current is not None and current is not anchor:
            actual.append(current)
            current = provider.parent(current)
        actual.reverse()

        score = 0.0
        cursor = 0
        for node in recorded:
            match_at = None
            for index in range(cursor, len(actual)):
                if provider.tag(actual[index]) == node.tag:
                    match_at = index
                    break
            if match_at is None:
                score += TAG_MISMATCH
                continue
            element = actual[match_at]
            cursor = match_at + 1
            score += TAG_MATCH
            if node.ordinal is not None:
                score += ORDINAL_MATCH if provider.sibling_position(element) == node.ordinal else ORDINAL_MISMATCH
            present = set(provider.classes(element))
            score += CLASS_MATCH * sum(1 for cls in node.semantics.classes if cls in present)
            attrs = provider.attributes(element)
            score += ATTRIBUTE_MATCH * sum(
                1 for name, value in node.semantics.attributes.items() if attrs.get(name) == value
            )
        score -= LENGTH_PENALTY * abs(len(actual) - len(recorded))
        return score

    def _query(self, root: Any, predicate: StructuralPredicate, *, include_root: bool, scoped: bool) -> List[Any]:
        if self.cache is None:
            return self.provider.query(root, predicate, include_root=include_root, scoped=scoped)
        key = self.cache.narrowing_key(root, f"{int(include_root)}{int(scoped)} {predicate.to_css()}")
        cached = self.cache.get_narrowing(key)
        if cached is not MISSING:
            return list(cached)
        nodes = self.provider.query(root, predicate, include_root=include_root, scoped=scoped)
        self.cache.set_narrowing(key, nodes)
        return nodes


def candidate_nodes(candidates: Sequence[Candidate]) -> List[Any]:
    return [candidate.node for candidate in candidates]


def scores_by_node(candidates: Sequence[Candidate]) -> Dict[int, Tuple[float, int]]:
    return {id(candidate.node): (candidate.path_score, candidate.order) for candidate in candidates}
