"""Tree-provider contract consumed by the generator and the resolver.

The core never touches a concrete DOM. Everything it needs from a tree goes
through :class:`TreeProvider`: reading a node (tag, attributes, classes, text,
role, parent, children, visibility) and finding the nodes under a root that
satisfy a :class:`StructuralPredicate`.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Literal, Mapping, Optional, Sequence, Tuple

from seql.classify.urls import urls_match

AttributeMode = Literal["equals", "url"]


@dataclass(frozen=True, slots=True)
class AttributeTest:
    name: str
    value: str
    mode: AttributeMode = "equals"

    def check(self, actual: Optional[str]) -> bool:
        if actual is None:
            return False
        if self.mode == "url":
            return urls_match(self.value, actual, path_only=True)
        return actual == self.value


@dataclass(frozen=True, slots=True)
class NodePattern:
    """Structural description of a single node."""

    tag: str
    node_id: Optional[str] = None
    classes: Tuple[str, ...] = ()
    attributes: Tuple[AttributeTest, ...] = ()
    ordinal: Optional[int] = None

    def matches(self, node: Any, provider: "TreeProvider") -> bool:
        if provider.tag(node) != self.tag:
            return False
        attrs = provider.attributes(node)
        if self.node_id is not None and attrs.get("id") != self.node_id:
            return False
        if self.classes:
            present = set(provider.classes(node))
            if not all(cls in present for cls in self.classes):
                return False
        for test in self.attributes:
            if not test.check(attrs.get(test.name)):
                return False
        if self.ordinal is not None and provider.sibling_position(node) != self.ordinal:
            return False
        return True

    def to_css(self) -> str:
        parts = [self.tag]
        if self.node_id is not None:
            parts.append("#" + css_escape(self.node_id))
        parts.extend("." + css_escape(cls) for cls in self.classes)
        for test in self.attributes:
            value = test.value.replace("\\", "\\\\").replace('"', '\\"')
            if test.mode == "url":
                parts.append(f'[{test.name}*="{value}"]')
            else:
                parts.append(f'[{test.name}="{value}"]')
        if self.ordinal is not None:
            parts.append(f":nth-child({self.ordinal})")
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class StructuralPredicate:
    """Chain of node patterns joined by descendant combinators.

    The last pattern describes the node being looked for; each earlier pattern
    must match some ancestor, in order, nearest ancestors last.
    """

    patterns: Tuple[NodePattern, ...] = field(default_factory=tuple)

    @property
    def subject(self) -> NodePattern:
        return self.patterns[-1]

    def matches(self, node: Any, provider: "TreeProvider", within: Any = None) -> bool:
        """Return True when ``node`` satisfies the chain.

        When ``within`` is given, ancestor patterns may only be satisfied by
        nodes strictly below ``within``.
        """
        if not self.patterns or not self.subject.matches(node, provider):
            return False
        remaining = list(self.patterns[:-1])
        current = provider.parent(node)
        while remaining:
            if current is None or (within is not None and current is within):
                return False
            if remaining[-1].matches(current, provider):
                remaining.pop()
            current = provider.parent(current)
        return True

    def to_css(self) -> str:
        return " ".join(pattern.to_css() for pattern in self.patterns)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.to_css()


def css_escape(value: str) -> str:
    out = []
    for char in value:
        if char in "!\"#$%&'()*+,./:;<=>?@[\\]^`{|}~":
            out.append("\\" + char)
        else:
            out.append(char)
    return "".join(out)


class TreeProvider(abc.ABC):
    """Read access to an attributed tree plus structural queries."""

    @abc.abstractmethod
    def tag(self, node: Any) -> str:
        """Lower-case tag name."""

    @abc.abstractmethod
    def attributes(self, node: Any) -> Mapping[str, str]:
        ...

    @abc.abstractmethod
    def classes(self, node: Any) -> Sequence[str]:
        ...

    @abc.abstractmethod
    def text(self, node: Any) -> str:
        """Full text content of the node and its descendants."""

    def own_text(self, node: Any) -> str:
        """Text held directly by the node, excluding child elements."""
        return self.text(node)

    @abc.abstractmethod
    def parent(self, node: Any) -> Any:
        ...

    @abc.abstractmethod
    def children(self, node: Any) -> Sequence[Any]:
        ...

    @abc.abstractmethod
    def role(self, node: Any) -> Optional[str]:
        ...

    @abc.abstractmethod
    def is_visible(self, node: Any) -> bool:
        ...

    def bounding_box(self, node: Any) -> Optional[Tuple[float, float, float, float]]:
        """``(x, y, width, height)`` when the backend knows the layout."""
        return None

    # -- helpers built on the primitives ---------------------------------

    def get_attribute(self, node: Any, name: str) -> Optional[str]:
        return self.attributes(node).get(name)

    def ancestors(self, node: Any) -> Iterator[Any]:
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def root_of(self, node: Any) -> Any:
        current = node
        parent = self.parent(current)
        while parent is not None:
            current = parent
            parent = self.parent(current)
        return current

    def contains(self, ancestor: Any, node: Any) -> bool:
        return any(candidate is ancestor for candidate in self.ancestors(node))

    def iter_descendants(self, node: Any, include_self: bool = False) -> Iterator[Any]:
        """Depth-first, document-order walk."""
        if include_self:
            yield node
        stack = list(reversed(self.children(node)))
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.children(current)))

    def sibling_position(self, node: Any) -> Optional[int]:
        parent = self.parent(node)
        if parent is None:
            return None
        for index, sibling in enumerate(self.children(parent), start=1):
            if sibling is node:
                return index
        return None

    def document_index(self, root: Any) -> dict:
        """Map ``id(node)`` to its document-order position under ``root``."""
        return {id(node): index for index, node in enumerate(self.iter_descendants(root, include_self=True))}

    def query(
        self,
        root: Any,
        predicate: StructuralPredicate,
        *,
        include_root: bool = True,
        scoped: bool = False,
    ) -> List[Any]:
        """All nodes under ``root`` matching ``predicate``, in document order.

        ``scoped`` restricts ancestor patterns to nodes strictly below ``root``.
        """
        within = root if scoped else None
        return [
            node
            for node in self.iter_descendants(root, include_self=include_root)
            if predicate.matches(node, self, within=within)
        ]


__all__ = [
    "AttributeTest",
    "NodePattern",
    "StructuralPredicate",
    "TreeProvider",
    "css_escape",
]
