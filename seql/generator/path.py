"""Path from anchor to target, made unique against the originating tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from seql.classify.classes import is_stable_class
from seql.classify.ids import is_dynamic_id
from seql.classify.text import looks_like_pii
from seql.models import AnchorNode, Identity, PathNode, Semantics, TargetNode
from seql.options import GeneratorOptions
from seql.tree.base import TreeProvider

from .anchor import TEST_MARKERS, AnchorCandidate
from .semantics import SemanticExtractor

log = logging.getLogger(__name__)

SEMANTIC_TAGS = frozenset(
    {
        # sectioning
        "article", "aside", "details", "figcaption", "figure", "footer", "header", "main", "mark", "nav",
        "section", "summary", "time",
        # forms
        "button", "datalist", "fieldset", "form", "input", "label", "legend", "meter", "optgroup", "option",
        "output", "progress", "select", "textarea",
        # interactive and media
        "a", "audio", "video", "canvas", "dialog", "menu",
        # text content
        "blockquote", "dd", "dl", "dt", "hr", "li", "ol", "ul", "p", "pre", "h1", "h2", "h3", "h4", "h5", "h6",
        # tables
        "caption", "col", "colgroup", "table", "tbody", "td", "tfoot", "th", "thead", "tr",
        # svg
        "svg", "path", "circle", "rect", "line", "polyline", "polygon", "ellipse", "g", "text", "use",
    }
)

# Resolves a tentative identity against the originating tree.
Probe = Callable[[Identity, Any], List[Any]]


def emitted(semantics: Semantics) -> Semantics:
    """``semantics`` without text the canonical string would leave out."""
    text = semantics.text
    if text is not None and looks_like_pii(text.normalized):
        return semantics.model_copy(update={"text": None})
    return semantics


@dataclass(slots=True)
class PathResult:
    path: List[PathNode]
    target_ordinal: Optional[int] = None
    anchor_ordinal: Optional[int] = None
    unique: bool = False
    found: bool = True
    degraded: bool = False
    degradation_reason: Optional[str] = None
    steps: List[str] = field(default_factory=list)


class PathBuilder:
    def __init__(
        self,
        provider: TreeProvider,
        extractor: SemanticExtractor,
        probe: Probe,
        options: Optional[GeneratorOptions] = None,
    ) -> None:
        self.provider = provider
        self.extractor = extractor
        self.probe = probe
        self.options = options or GeneratorOptions()

    def has_signal(self, node: Any) -> bool:
        """True when a non-semantic tag still carries identity signals."""
        attrs = self.provider.attributes(node)
        if "role" in attrs or any(name.startswith("aria-") for name in attrs):
            return True
        if any(is_stable_class(cls) for cls in self.provider.classes(node)):
            return True
        if any(marker in attrs for marker in TEST_MARKERS):
            return True
        node_id = attrs.get("id")
        return bool(node_id) and not is_dynamic_id(node_id)

    def should_include(self, node: Any) -> bool:
        return self.provider.tag(node) in SEMANTIC_TAGS or self.has_signal(node)

    def raw_path(self, anchor: Any, target: Any) -> tuple[List[Any], bool]:
        """Ancestors strictly between anchor and target, anchor side first."""
        if anchor is target:
            return [], False
        nodes: List[Any] = []
        current = self.provider.parent(target)
        while current is not None and current is not anchor and len(nodes) < self.options.max_path_depth:
            nodes.append(current)
            current = self.provider.parent(current)
        overflow = current is not None and current is not anchor
        nodes.reverse()
        return nodes, overflow

    def build(self, anchor: AnchorCandidate, anchor_node: AnchorNode, target: Any, target_node: TargetNode) -> PathResult:
        provider = self.provider
        root = provider.root_of(target)
        raw, overflow = self.raw_path(anchor.node, target)
        kept = [node for node in raw if self.should_include(node)]
        ordinals: Dict[int, int] = {}
        anchor_ordinal: Optional[int] = None
        steps: List[str] = []

        def attempt(path: Sequence[Any], positions: Dict[int, int], ordinal: Optional[int] = None) -> List[Any]:
            identity = self._identity(anchor_node, ordinal, path, positions, target, target_node)
            return self.probe(identity, root)

        def unique(matches: Sequence[Any]) -> bool:
            return len(matches) == 1 and matches[0] is target

        def add_ordinals(matches: List[Any]) -> List[Any]:
            nonlocal ordinals
            # sibling positions, innermost path node first, target last
            for node in [*reversed(kept), target]:
                if id(node) in ordinals:
                    continue
                position = provider.sibling_position(node)
                if position is None:
                    continue
                trial_positions = {**ordinals, id(node): position}
                trial_matches = attempt(kept, trial_positions, anchor_ordinal)
                if not any(match is target for match in trial_matches):
                    continue
                if len(trial_matches) < len(matches):
                    ordinals, matches = trial_positions, trial_matches
                    steps.append(f"ordinal:{provider.tag(node)}#{position}:{len(matches)}")
                if unique(matches):
                    break
            return matches

        matches = attempt(kept, ordinals)
        steps.append(f"minimal:{len(matches)}")

        if not unique(matches):
            # reinsert dropped wrappers, nearest to the target first
            dropped = [node for node in reversed(raw) if not any(node is k for k in kept)]
            for node in dropped:
                trial = [item for item in raw if any(item is k for k in kept) or item is node]
                trial_matches = attempt(trial, ordinals)
                if unique(trial_matches) or len(trial_matches) < len(matches):
                    kept, matches = trial, trial_matches
                    steps.append(f"insert:{provider.tag(node)}:{len(matches)}")
                if unique(matches):
                    break

        if not unique(matches):
            matches = add_ordinals(matches)

        if not unique(matches) and anchor.node is not target:
            # duplicated anchors (repeated cards, list entries): pin the anchor instance
            position = provider.sibling_position(anchor.node)
            if position is not None:
                trial_matches = attempt(kept, ordinals, position)
                if any(match is target for match in trial_matches) and len(trial_matches) < len(matches):
                    anchor_ordinal, matches = position, trial_matches
                    steps.append(f"anchor:{provider.tag(anchor.node)}#{position}:{len(matches)}")
                    if not unique(matches):
                        matches = add_ordinals(matches)

        log.debug("Path for <%s>: %s", provider.tag(target), " ".join(steps))
        return PathResult(
            path=self._path_nodes(kept, ordinals),
            target_ordinal=ordinals.get(id(target)),
            anchor_ordinal=anchor_ordinal,
            unique=unique(matches),
            found=any(match is target for match in matches),
            degraded=overflow,
            degradation_reason="path-depth-overflow" if overflow else None,
            steps=steps,
        )

    def _path_nodes(self, nodes: Sequence[Any], ordinals: Dict[int, int]) -> List[PathNode]:
        return [
            PathNode(
                tag=self.provider.tag(node),
                semantics=self.extractor.extract(node),
                score=self.extractor.score(node),
                ordinal=ordinals.get(id(node)),
            )
            for node in nodes
        ]

    def _identity(
        self,
        anchor_node: AnchorNode,
        anchor_ordinal: Optional[int],
        nodes: Sequence[Any],
        ordinals: Dict[int, int],
        target: Any,
        target_node: TargetNode,
    ) -> Identity:
        """Tentative identity carrying only what its canonical string can carry."""
        path = [
            node.model_copy(update={"semantics": emitted(node.semantics)})
            for node in self._path_nodes(nodes, ordinals)
        ]
        return Identity(
            anchor=anchor_node.model_copy(update={"semantics": emitted(anchor_node.semantics), "ordinal": anchor_ordinal}),
            path=tuple(path),
            target=target_node.model_copy(
                update={"semantics": emitted(target_node.semantics), "ordinal": ordinals.get(id(target))}
            ),
        )
