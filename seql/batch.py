"""Prioritised, cancellable identity generation over many nodes."""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from seql.cache import MISSING, IdentityCache
from seql.classify.ids import is_dynamic_id
from seql.generator.generator import IdentityGenerator
from seql.models import Identity
from seql.options import GeneratorOptions
from seql.tree.base import TreeProvider

log = logging.getLogger(__name__)

SKIP_TAGS = frozenset({"script", "style", "noscript", "meta", "link", "head", "title"})
SEMANTIC_TAGS = frozenset(
    {
        "form",
        "main",
        "nav",
        "section",
        "article",
        "footer",
        "header",
        "button",
        "a",
        "input",
        "label",
        "select",
        "textarea",
    }
)
MARKER_ATTRIBUTES = ("role", "aria-label", "aria-labelledby", "data-testid", "data-qa", "data-test")

ProgressCallback = Callable[[int, int], None]


class Priority(enum.IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3


@dataclass(slots=True)
class BatchItem:
    node: Any
    identity: Identity
    generation_ms: float


@dataclass(slots=True)
class BatchFailure:
    node: Any
    error: str


@dataclass(slots=True)
class BatchStats:
    total_elements: int = 0
    planned: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    total_ms: float = 0.0
    avg_ms_per_element: float = 0.0
    cache_hit_rate: float = 0.0


@dataclass(slots=True)
class BatchResult:
    results: List[BatchItem] = field(default_factory=list)
    failed: List[BatchFailure] = field(default_factory=list)
    stats: BatchStats = field(default_factory=BatchStats)

    def identities(self) -> List[Identity]:
        return [item.identity for item in self.results]


class BatchOrchestrator:
    """Generate identities for many nodes against one shared cache.

    Nodes are processed highest priority first (stable id, then ARIA or test
    markers, then the rest) so a ``limit`` keeps the most valuable ones.
    ``cancel`` is polled before each node; a node already started always
    finishes. ``on_progress(done, planned)`` runs every ``progress_interval``
    nodes and once at the end.
    """

    def __init__(
        self,
        provider: TreeProvider,
        options: Optional[GeneratorOptions] = None,
        cache: Optional[IdentityCache] = None,
        *,
        limit: Optional[int] = None,
        skip_non_semantic: bool = True,
        progress_interval: int = 100,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        if progress_interval < 1:
            raise ValueError("progress_interval must be >= 1")
        self.provider = provider
        self.cache = cache if cache is not None else IdentityCache()
        self.generator = IdentityGenerator(provider, options, self.cache)
        self.limit = limit
        self.skip_non_semantic = skip_non_semantic
        self.progress_interval = progress_interval
        self.on_progress = on_progress
        self.cancel = cancel or threading.Event()

    def priority(self, node: Any) -> Priority:
        node_id = self.provider.get_attribute(node, "id")
        if node_id and not is_dynamic_id(node_id):
            return Priority.HIGH
        attributes = self.provider.attributes(node)
        if any(name in attributes for name in MARKER_ATTRIBUTES):
            return Priority.MEDIUM
        return Priority.LOW

    def should_skip(self, node: Any) -> bool:
        tag = self.provider.tag(node)
        if tag in SKIP_TAGS:
            return True
        if not self.skip_non_semantic:
            return False
        return self.priority(node) is Priority.LOW and tag not in SEMANTIC_TAGS

    def plan(self, nodes: Iterable[Any]) -> List[Any]:
        """Nodes to process, in processing order, after skipping and the limit."""
        kept = [node for node in nodes if not self.should_skip(node)]
        # sorted() is stable: equal priorities keep document order
        ordered = sorted(kept, key=lambda node: -self.priority(node))
        if self.limit is not None:
            ordered = ordered[: max(self.limit, 0)]
        return ordered

    def run(self, root: Any) -> BatchResult:
        """Process every descendant of ``root``."""
        return self.run_nodes(self.provider.iter_descendants(root))

    def run_nodes(self, nodes: Iterable[Any]) -> BatchResult:
        started = time.perf_counter()
        planned = self.plan(nodes)
        result = BatchResult()
        stats = result.stats
        stats.planned = len(planned)
        log.debug("Batch run over %d nodes", len(planned))

        attempted = 0
        for index, node in enumerate(planned):
            if self.cancel.is_set():
                stats.cancelled = True
                log.debug("Batch cancelled after %d of %d nodes", attempted, len(planned))
                break
            attempted += 1
            self._process(node, result)
            if self.on_progress is not None and (index + 1) % self.progress_interval == 0:
                self.on_progress(index + 1, len(planned))

        if self.on_progress is not None:
            self.on_progress(attempted, len(planned))

        elapsed = (time.perf_counter() - started) * 1000
        stats.total_elements = attempted
        stats.successful = len(result.results)
        stats.failed = len(result.failed)
        stats.total_ms = elapsed
        stats.avg_ms_per_element = elapsed / stats.successful if stats.successful else 0.0
        stats.cache_hit_rate = self.cache.stats()["overall_hit_rate"]
        return result

    def _process(self, node: Any, result: BatchResult) -> None:
        cached = self.cache.get_identity(node, self.generator.options)
        if cached is not MISSING:
            result.results.append(BatchItem(node, cached, 0.0))
            return
        started = time.perf_counter()
        try:
            identity = self.generator.generate(node)
        except Exception as exc:  # noqa: BLE001
            log.warning("Identity generation failed for <%s>: %s", self.provider.tag(node), exc)
            result.failed.append(BatchFailure(node, str(exc)))
            return
        elapsed = (time.perf_counter() - started) * 1000
        if identity is None:
            result.stats.skipped += 1
        else:
            result.results.append(BatchItem(node, identity, elapsed))


def generate_batch(
    provider: TreeProvider,
    root: Any,
    options: Optional[GeneratorOptions] = None,
    cache: Optional[IdentityCache] = None,
    **settings: Any,
) -> BatchResult:
    return BatchOrchestrator(provider, options, cache, **settings).run(root)


__all__ = [
    "BatchFailure",
    "BatchItem",
    "BatchOrchestrator",
    "BatchResult",
    "BatchStats",
    "Priority",
    "generate_batch",
]
