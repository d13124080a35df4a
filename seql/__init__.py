"""Semantic element identities: generate, serialise and resolve them."""

from .errors import SeqlError, SeqlParseError, TreeError
from .models import (
    AnchorNode,
    Constraint,
    FallbackPolicy,
    Identity,
    IdentityMeta,
    PathNode,
    ResolveResult,
    Semantics,
    SvgFingerprint,
    TargetNode,
    TextContent,
    ValidationResult,
)
from .config import SeqlConfig, load_config
from .options import CodecOptions, GeneratorOptions, ResolverOptions
from .cache import IdentityCache, create_cache, default_cache, reset_default_cache
from .tree import Element, ElementTreeProvider, TreeProvider, h, parse_html
from .generator.generator import IdentityGenerator
from .resolver.engine import ResolutionEngine
from .codec import SeqlCodec, parse, stringify
from .batch import BatchOrchestrator, BatchResult
from .validation import is_identity, validate_identity
from .api import generate, generate_string, resolve, resolve_string

__all__ = [
    "AnchorNode",
    "BatchOrchestrator",
    "BatchResult",
    "CodecOptions",
    "Constraint",
    "Element",
    "ElementTreeProvider",
    "FallbackPolicy",
    "GeneratorOptions",
    "Identity",
    "IdentityCache",
    "IdentityGenerator",
    "IdentityMeta",
    "PathNode",
    "ResolutionEngine",
    "ResolveResult",
    "ResolverOptions",
    "Semantics",
    "SeqlCodec",
    "SeqlConfig",
    "SeqlError",
    "SeqlParseError",
    "SvgFingerprint",
    "TargetNode",
    "TextContent",
    "TreeError",
    "TreeProvider",
    "ValidationResult",
    "create_cache",
    "default_cache",
    "generate",
    "generate_string",
    "h",
    "is_identity",
    "load_config",
    "parse",
    "parse_html",
    "reset_default_cache",
    "resolve",
    "resolve_string",
    "stringify",
    "validate_identity",
]
