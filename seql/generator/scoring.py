"""Confidence of a generated identity."""

from __future__ import annotations

from typing import Literal, Sequence

from seql.models import Identity

ANCHOR_WEIGHT = 0.4
PATH_WEIGHT = 0.3
TARGET_WEIGHT = 0.2
UNIQUENESS_WEIGHT = 0.1
DEGRADED_PENALTY = 0.2
POSITION_PENALTY = 0.1
EMPTY_PATH_SCORE = 0.5

Uniqueness = Literal["unique", "ambiguous", "degraded"]

UNIQUENESS_BONUS = {"unique": 1.0, "ambiguous": 0.5, "degraded": 0.0}


class ConfidenceScorer:
    """``0.4 anchor + 0.3 path + 0.2 target + 0.1 uniqueness``, clamped to [0, 1].

    A degraded anchor costs 0.2. An identity that relies on sibling
    positions costs another 0.1.
    """

    def score(
        self,
        anchor_score: float,
        path_scores: Sequence[float],
        target_score: float,
        *,
        uniqueness: Uniqueness = "unique",
        anchor_degraded: bool = False,
        uses_position: bool = False,
    ) -> float:
        path_score = sum(path_scores) / len(path_scores) if path_scores else EMPTY_PATH_SCORE
        value = (
            ANCHOR_WEIGHT * anchor_score
            + PATH_WEIGHT * path_score
            + TARGET_WEIGHT * target_score
            + UNIQUENESS_WEIGHT * UNIQUENESS_BONUS[uniqueness]
        )
        if anchor_degraded:
            value -= DEGRADED_PENALTY
        if uses_position:
            value -= POSITION_PENALTY
        return round(max(0.0, min(1.0, value)), 4)

    def score_identity(self, identity: Identity, uniqueness: Uniqueness = "unique") -> float:
        return self.score(
            identity.anchor.score,
            [node.score for node in identity.path],
            identity.target.score,
            uniqueness=uniqueness,
            anchor_degraded=identity.anchor.degraded,
            uses_position=identity.uses_position,
        )
