"""One-call helpers over the generator, resolver and codec."""

from __future__ import annotations

from typing import Any, List, Optional

from seql.cache import IdentityCache, default_cache
from seql.codec import parse, stringify
from seql.generator.generator import IdentityGenerator
from seql.models import Identity, ResolveResult
from seql.options import CodecOptions, GeneratorOptions, ResolverOptions
from seql.resolver.engine import ResolutionEngine
from seql.tree.base import TreeProvider
from seql.tree.element import ElementTreeProvider

_element_provider = ElementTreeProvider()


def generate(
    target: Any,
    options: Optional[GeneratorOptions] = None,
    *,
    provider: Optional[TreeProvider] = None,
    cache: Optional[IdentityCache] = None,
) -> Optional[Identity]:
    """Identity of ``target``, or ``None`` when no trustworthy one exists.

    Without ``cache`` the process-wide :func:`~seql.cache.default_cache` is used.
    """
    generator = IdentityGenerator(provider or _element_provider, options, cache if cache is not None else default_cache())
    return generator.generate(target)


def resolve(
    identity: Identity,
    root: Any,
    options: Optional[ResolverOptions] = None,
    *,
    provider: Optional[TreeProvider] = None,
    cache: Optional[IdentityCache] = None,
) -> ResolveResult:
    engine = ResolutionEngine(provider or _element_provider, options, cache if cache is not None else default_cache())
    return engine.resolve(identity, root)


def generate_string(
    target: Any,
    options: Optional[GeneratorOptions] = None,
    codec_options: Optional[CodecOptions] = None,
    *,
    provider: Optional[TreeProvider] = None,
    cache: Optional[IdentityCache] = None,
) -> Optional[str]:
    identity = generate(target, options, provider=provider, cache=cache)
    if identity is None:
        return None
    return stringify(identity, codec_options)


def resolve_string(
    text: str,
    root: Any,
    options: Optional[ResolverOptions] = None,
    *,
    provider: Optional[TreeProvider] = None,
    cache: Optional[IdentityCache] = None,
) -> List[Any]:
    """Nodes matched by a canonical string; parse errors propagate."""
    result = resolve(parse(text), root, options, provider=provider, cache=cache)
    return list(result.nodes)


__all__ = ["generate", "generate_string", "resolve", "resolve_string"]
