"""Typed models for element identities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

IDENTITY_VERSION = "1"

ConstraintKind = Literal["uniqueness", "visibility", "text-proximity", "position"]
UniquenessMode = Literal["strict", "best-score", "allow-multiple"]
PositionStrategy = Literal["first-in-dom", "top-most", "left-most"]
OnMultiple = Literal["best-score", "allow-multiple", "first"]
OnMissing = Literal["anchor-only", "strict", "none"]
ResolveStatus = Literal["success", "ambiguous", "degraded-fallback", "error"]
TextMatchMode = Literal["exact", "partial"]
SvgShape = Literal["path", "circle", "rect", "line", "polyline", "polygon", "ellipse", "g", "text", "use", "svg"]

# Evaluation priority per constraint kind; higher runs first.
CONSTRAINT_PRIORITY: Dict[str, int] = {
    "uniqueness": 100,
    "visibility": 80,
    "text-proximity": 60,
    "position": 40,
}


class _Frozen(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class TextContent(_Frozen):
    """Text of a node as seen at generation time."""

    raw: str
    normalized: str
    match_mode: TextMatchMode = "exact"


class SvgFingerprint(_Frozen):
    shape: SvgShape
    d_hash: Optional[str] = None
    geom_hash: Optional[str] = None
    has_animation: bool = False
    role: Optional[str] = None
    title_text: Optional[str] = None


class Semantics(_Frozen):
    """Identity-bearing features of a single node."""

    id: Optional[str] = None
    classes: Tuple[str, ...] = ()
    attributes: Dict[str, str] = Field(default_factory=dict)
    text: Optional[TextContent] = None
    role: Optional[str] = None
    svg: Optional[SvgFingerprint] = None

    @field_validator("classes", mode="before")
    @classmethod
    def _dedupe_classes(cls, value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split()
        return tuple(sorted(set(value)))

    @field_validator("attributes")
    @classmethod
    def _sort_attributes(cls, value: Dict[str, str]) -> Dict[str, str]:
        return {key: value[key] for key in sorted(value)}

    def is_empty(self) -> bool:
        return not (self.id or self.classes or self.attributes or self.text or self.role or self.svg)


class PathNode(_Frozen):
    tag: str
    semantics: Semantics = Field(default_factory=Semantics)
    score: float = Field(default=0.5, ge=0.0, le=1.0)
    ordinal: Optional[int] = Field(default=None, ge=1)

    @field_validator("tag")
    @classmethod
    def _lower_tag(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("tag must not be empty")
        return value


class TargetNode(PathNode):
    """Same shape as a path node; marks the node being identified."""


class AnchorNode(PathNode):
    degraded: bool = False


class Constraint(_Frozen):
    kind: ConstraintKind
    params: Dict[str, Any] = Field(default_factory=dict)
    priority: int = 0

    @classmethod
    def uniqueness(cls, mode: UniquenessMode = "best-score") -> "Constraint":
        return cls(kind="uniqueness", params={"mode": mode}, priority=CONSTRAINT_PRIORITY["uniqueness"])

    @classmethod
    def visibility(cls, required: bool = True) -> "Constraint":
        return cls(kind="visibility", params={"required": required}, priority=CONSTRAINT_PRIORITY["visibility"])

    @classmethod
    def text_proximity(cls, reference: str, max_distance: int = 5) -> "Constraint":
        return cls(
            kind="text-proximity",
            params={"reference": reference, "max_distance": max_distance},
            priority=CONSTRAINT_PRIORITY["text-proximity"],
        )

    @classmethod
    def position(cls, strategy: PositionStrategy = "first-in-dom") -> "Constraint":
        return cls(kind="position", params={"strategy": strategy}, priority=CONSTRAINT_PRIORITY["position"])


class FallbackPolicy(_Frozen):
    on_multiple: OnMultiple = "best-score"
    on_missing: OnMissing = "anchor-only"
    max_depth: int = Field(default=3, ge=0)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdentityMeta(_Frozen):
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    degraded: bool = False
    degradation_reason: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
    source_tag: str = "seql"


class Identity(_Frozen):
    """Portable description of one node: anchor, path, target and rules."""

    version: str = IDENTITY_VERSION
    anchor: AnchorNode
    path: Tuple[PathNode, ...] = ()
    target: TargetNode
    constraints: Tuple[Constraint, ...] = ()
    fallback: FallbackPolicy = Field(default_factory=FallbackPolicy)
    meta: IdentityMeta = Field(default_factory=IdentityMeta)

    _STRUCTURAL_FIELDS: ClassVar[Tuple[str, ...]] = ("version", "anchor", "path", "target", "constraints")

    @field_validator("constraints", mode="after")
    @classmethod
    def _order_constraints(cls, value: Tuple[Constraint, ...]) -> Tuple[Constraint, ...]:
        return tuple(sorted(value, key=lambda item: -item.priority))

    @property
    def uses_position(self) -> bool:
        """True when any node relies on its sibling position."""
        nodes: List[PathNode] = [self.anchor, *self.path, self.target]
        return any(node.ordinal is not None for node in nodes)

    @property
    def confidence(self) -> float:
        return self.meta.confidence

    def constraint(self, kind: ConstraintKind) -> Optional[Constraint]:
        for item in self.constraints:
            if item.kind == kind:
                return item
        return None

    def structure(self) -> Dict[str, Any]:
        """Fields that define the identity, without generation metadata."""
        return self.model_dump(include=set(self._STRUCTURAL_FIELDS))


@dataclass(slots=True)
class ResolveResult:
    """Outcome of resolving an identity against a tree."""

    status: ResolveStatus
    nodes: List[Any] = field(default_factory=list)
    confidence: float = 0.0
    warnings: List[str] = field(default_factory=list)
    degradation_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def degraded(self) -> bool:
        return self.degradation_reason is not None

    @property
    def node(self) -> Any:
        return self.nodes[0] if self.nodes else None


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def ordered_nodes(identity: Identity) -> Sequence[PathNode]:
    return (identity.anchor, *identity.path, identity.target)


__all__ = [
    "AnchorNode",
    "CONSTRAINT_PRIORITY",
    "Constraint",
    "FallbackPolicy",
    "IDENTITY_VERSION",
    "Identity",
    "IdentityMeta",
    "PathNode",
    "ResolveResult",
    "Semantics",
    "SvgFingerprint",
    "TargetNode",
    "TextContent",
    "ValidationResult",
    "ordered_nodes",
]
