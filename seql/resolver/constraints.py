"""Evaluation of identity constraints over a candidate list."""

from __future__ import annotations

import logging
from typing import Any, List, Sequence

from seql.classify.text import normalize_text
from seql.models import Constraint
from seql.tree.base import TreeProvider

log = logging.getLogger(__name__)


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, left in enumerate(a, start=1):
        current = [i]
        for j, right in enumerate(b, start=1):
            cost = 0 if left == right else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


class ConstraintsEvaluator:
    """Apply one constraint at a time to candidates given in document order."""

    def __init__(self, provider: TreeProvider) -> None:
        self.provider = provider

    def apply(self, candidates: Sequence[Any], constraint: Constraint) -> List[Any]:
        kind = constraint.kind
        params = constraint.params
        if kind == "visibility":
            if not params.get("required", True):
                return list(candidates)
            return [node for node in candidates if self.provider.is_visible(node)]
        if kind == "text-proximity":
            reference = normalize_text(str(params.get("reference", "")))
            max_distance = int(params.get("max_distance", 5))
            return [
                node
                for node in candidates
                if levenshtein(normalize_text(self.provider.text(node)), reference) <= max_distance
            ]
        if kind == "position":
            return self._position(candidates, str(params.get("strategy", "first-in-dom")))
        # uniqueness is decided by the engine, not by filtering
        return list(candidates)

    def _position(self, candidates: Sequence[Any], strategy: str) -> List[Any]:
        if len(candidates) <= 1:
            return list(candidates)
        if strategy in ("top-most", "left-most"):
            axis = 1 if strategy == "top-most" else 0
            boxes = [(self.provider.bounding_box(node), index) for index, node in enumerate(candidates)]
            if all(box is not None for box, _ in boxes):
                _, best = min(boxes, key=lambda item: (item[0][axis], item[1]))
                return [candidates[best]]
            log.debug("No layout for %s; falling back to document order", strategy)
        return [candidates[0]]
