"""Structural fingerprints for vector-graphic nodes."""

from __future__ import annotations

import math
import re
from typing import Any, Optional

from seql.models import SvgFingerprint
from seql.tree.base import TreeProvider

SVG_SHAPES = ("path", "circle", "rect", "line", "polyline", "polygon", "ellipse", "g", "text", "use", "svg")
GEOMETRY_SHAPES = ("circle", "rect", "ellipse", "line")
ANIMATION_TAGS = frozenset({"animate", "animatetransform", "animatemotion"})

_PATH_COMMAND = re.compile(r"[MLHVCSQTAZ][^MLHVCSQTAZ]*", re.I)
_NUMBER = re.compile(r"-?\d+\.?\d*")


def simple_hash(text: str) -> str:
    """32-bit rolling string hash rendered as 8 hex digits."""
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 1 << 32
    return format(abs(value), "x").rjust(8, "0")


def _float(value: Optional[str]) -> float:
    try:
        return float(value) if value is not None else 0.0
    except ValueError:
        return 0.0


def path_hash(d: str) -> str:
    commands = _PATH_COMMAND.findall(d)[:5]
    normalized = " ".join(
        _NUMBER.sub(lambda match: f"{float(match.group()):.1f}", command.strip()) for command in commands
    )
    return simple_hash(normalized)


def geometry_hash(shape: str, attributes: Any) -> str:
    parts = []
    if shape == "circle":
        parts.append(f"r={attributes.get('r', '0')}")
    elif shape in ("rect", "ellipse"):
        first, second = ("width", "height") if shape == "rect" else ("rx", "ry")
        a, b = _float(attributes.get(first)), _float(attributes.get(second))
        if a > 0 and b > 0:
            parts.append(f"ratio={a / b:.2f}")
    elif shape == "line":
        angle = math.atan2(
            _float(attributes.get("y2")) - _float(attributes.get("y1")),
            _float(attributes.get("x2")) - _float(attributes.get("x1")),
        )
        parts.append(f"angle={angle:.2f}")
    return simple_hash(";".join(parts))


class SvgFingerprinter:
    def __init__(self, provider: TreeProvider) -> None:
        self.provider = provider

    def is_svg(self, node: Any) -> bool:
        tag = self.provider.tag(node)
        if tag == "svg":
            return True
        if tag not in SVG_SHAPES:
            return False
        return any(self.provider.tag(ancestor) == "svg" for ancestor in self.provider.ancestors(node))

    def fingerprint(self, node: Any) -> SvgFingerprint:
        provider = self.provider
        tag = provider.tag(node)
        shape = tag if tag in SVG_SHAPES else "path"
        attrs = provider.attributes(node)
        d_hash = None
        geom_hash = None
        if shape == "path" and attrs.get("d"):
            d_hash = path_hash(attrs["d"])
        elif shape in GEOMETRY_SHAPES:
            geom_hash = geometry_hash(shape, attrs)
        title_text = None
        for child in provider.children(node):
            if provider.tag(child) == "title":
                title_text = provider.text(child).strip() or None
                break
        has_animation = any(
            provider.tag(descendant) in ANIMATION_TAGS for descendant in provider.iter_descendants(node)
        )
        return SvgFingerprint(
            shape=shape,
            d_hash=d_hash,
            geom_hash=geom_hash,
            has_animation=has_animation,
            role=attrs.get("role") or None,
            title_text=title_text,
        )

    def matches(self, node: Any, expected: SvgFingerprint) -> bool:
        """Compare the parts of a fingerprint that identify the shape."""
        if self.provider.tag(node) != expected.shape:
            return False
        actual = self.fingerprint(node)
        if expected.d_hash and expected.shape == "path" and actual.d_hash and actual.d_hash != expected.d_hash:
            return False
        if expected.geom_hash and expected.shape in GEOMETRY_SHAPES and actual.geom_hash != expected.geom_hash:
            return False
        if expected.title_text and actual.title_text != expected.title_text:
            return False
        return True
