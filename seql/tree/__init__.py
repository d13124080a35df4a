"""Tree-provider contract and the reference in-memory backend."""

from .base import AttributeTest, NodePattern, StructuralPredicate, TreeProvider
from .element import Element, ElementTreeProvider, h
from .html import body_of, parse_html

__all__ = [
    "AttributeTest",
    "Element",
    "ElementTreeProvider",
    "NodePattern",
    "StructuralPredicate",
    "TreeProvider",
    "body_of",
    "h",
    "parse_html",
]
