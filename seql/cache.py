"""Multi-level cache for generation and resolution.

Node-keyed caches (identities, anchors, semantics) hold their nodes weakly,
so entries disappear together with the node. Narrowing results are keyed by
string and kept in a bounded LRU.
"""

from __future__ import annotations

import itertools
import logging
import weakref
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional

from seql.config import SeqlConfig, load_config

log = logging.getLogger(__name__)

MISSING: Any = object()


@dataclass(slots=True)
class CacheStats:
    hits: int = 0
    misses: int = 0

    @property
    def lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        return self.hits / self.lookups if self.lookups else 0.0

    def record(self, hit: bool) -> None:
        if hit:
            self.hits += 1
        else:
            self.misses += 1

    def as_dict(self) -> Dict[str, float]:
        return {"hits": self.hits, "misses": self.misses, "hit_rate": self.hit_rate}


class LRUCache:
    """Bounded mapping that evicts the least recently used key."""

    def __init__(self, max_size: int = 1000) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._data: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.stats = CacheStats()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._data

    def get(self, key: Hashable) -> Any:
        if key not in self._data:
            self.stats.record(False)
            return MISSING
        self._data.move_to_end(key)
        self.stats.record(True)
        return self._data[key]

    def put(self, key: Hashable, value: Any) -> None:
        if key in self._data:
            self._data.move_to_end(key)
        self._data[key] = value
        while len(self._data) > self.max_size:
            evicted, _ = self._data.popitem(last=False)
            log.debug("Evicted narrowing entry %s", evicted)

    def pop(self, key: Hashable) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()


class NodeCache:
    """Per-node values whose lifetime follows the node.

    Each node holds one value per ``scope`` (typically the frozen options a
    value was computed under). Nodes that cannot be weakly referenced are held
    strongly and must be dropped with :meth:`invalidate`.
    """

    def __init__(self) -> None:
        self._weak: "weakref.WeakKeyDictionary[Any, Dict[Hashable, Any]]" = weakref.WeakKeyDictionary()
        self._strong: Dict[Any, Dict[Hashable, Any]] = {}
        self.stats = CacheStats()

    def __len__(self) -> int:
        return sum(len(values) for values in self._weak.values()) + sum(len(values) for values in self._strong.values())

    def _values(self, node: Any) -> Optional[Dict[Hashable, Any]]:
        try:
            return self._weak.get(node)
        except TypeError:
            return self._strong.get(node)

    def get(self, node: Any, scope: Hashable = None) -> Any:
        values = self._values(node)
        value = MISSING if values is None else values.get(scope, MISSING)
        self.stats.record(value is not MISSING)
        return value

    def put(self, node: Any, value: Any, scope: Hashable = None) -> None:
        values = self._values(node)
        if values is None:
            values = {}
            try:
                self._weak[node] = values
            except TypeError:
                self._strong[node] = values
        values[scope] = value

    def invalidate(self, node: Any) -> None:
        try:
            self._weak.pop(node, None)
        except TypeError:
            self._strong.pop(node, None)

    def clear(self) -> None:
        self._weak.clear()
        self._strong.clear()


class IdentityCache:
    """Caches shared by the generator, the resolver and batch runs."""

    def __init__(self, narrowing_size: int = 1000) -> None:
        self.identities = NodeCache()
        self.anchors = NodeCache()
        self.semantics = NodeCache()
        self.narrowing = LRUCache(narrowing_size)
        self._roots: "weakref.WeakKeyDictionary[Any, int]" = weakref.WeakKeyDictionary()
        self._root_ids: Dict[int, int] = {}
        self._counter = itertools.count(1)

    @classmethod
    def from_config(cls, config: SeqlConfig) -> "IdentityCache":
        return cls(config.narrowing_cache_size)

    def get_identity(self, node: Any, scope: Hashable = None) -> Any:
        return self.identities.get(node, scope)

    def set_identity(self, node: Any, identity: Any, scope: Hashable = None) -> None:
        self.identities.put(node, identity, scope)

    def get_anchor(self, node: Any, scope: Hashable = None) -> Any:
        return self.anchors.get(node, scope)

    def set_anchor(self, node: Any, anchor: Any, scope: Hashable = None) -> None:
        self.anchors.put(node, anchor, scope)

    def get_semantics(self, node: Any, scope: Hashable = None) -> Any:
        return self.semantics.get(node, scope)

    def set_semantics(self, node: Any, semantics: Any, scope: Hashable = None) -> None:
        self.semantics.put(node, semantics, scope)

    def root_token(self, root: Any) -> int:
        """Small integer naming ``root`` in narrowing keys."""
        try:
            token = self._roots.get(root)
            if token is None:
                token = next(self._counter)
                self._roots[root] = token
            return token
        except TypeError:
            return self._root_ids.setdefault(id(root), next(self._counter))

    def narrowing_key(self, root: Any, query: str) -> str:
        return f"{self.root_token(root)}|{query}"

    def get_narrowing(self, key: str) -> Any:
        return self.narrowing.get(key)

    def set_narrowing(self, key: str, nodes: Any) -> None:
        self.narrowing.put(key, list(nodes))

    def invalidate(self, node: Any) -> None:
        """Forget everything cached for ``node``."""
        self.identities.invalidate(node)
        self.anchors.invalidate(node)
        self.semantics.invalidate(node)

    def invalidate_narrowing(self, key: Optional[str] = None) -> None:
        if key is None:
            self.narrowing.clear()
        else:
            self.narrowing.pop(key)

    def clear(self) -> None:
        self.identities.clear()
        self.anchors.clear()
        self.semantics.clear()
        self.narrowing.clear()

    def stats(self) -> Dict[str, Any]:
        levels = {
            "identities": self.identities.stats,
            "anchors": self.anchors.stats,
            "semantics": self.semantics.stats,
            "narrowing": self.narrowing.stats,
        }
        hits = sum(level.hits for level in levels.values())
        lookups = sum(level.lookups for level in levels.values())
        report: Dict[str, Any] = {name: level.as_dict() for name, level in levels.items()}
        report["narrowing"]["size"] = len(self.narrowing)
        report["narrowing"]["max_size"] = self.narrowing.max_size
        report["overall_hit_rate"] = hits / lookups if lookups else 0.0
        return report


def create_cache(narrowing_size: int = 1000) -> IdentityCache:
    return IdentityCache(narrowing_size)


_default_cache: Optional[IdentityCache] = None


def default_cache() -> IdentityCache:
    """Process-wide cache for callers that do not manage their own.

    Sized from :func:`~seql.config.load_config` when first created.
    """
    global _default_cache
    if _default_cache is None:
        _default_cache = IdentityCache.from_config(load_config())
    return _default_cache


def reset_default_cache() -> None:
    global _default_cache
    if _default_cache is not None:
        _default_cache.clear()
    _default_cache = None


__all__ = [
    "CacheStats",
    "IdentityCache",
    "LRUCache",
    "MISSING",
    "NodeCache",
    "create_cache",
    "default_cache",
    "reset_default_cache",
]
