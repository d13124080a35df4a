"""Stability classifiers for attributes, classes, ids, URLs and text."""

from .attributes import AttributeStabilityClassifier, is_stable_attribute
from .classes import ClassStabilityClassifier, classify_class, filter_classes, is_semantic_class, is_stable_class
from .ids import ID_REFERENCE_ATTRIBUTES, has_dynamic_id_reference, is_dynamic_id, is_stable_id
from .text import looks_like_pii, normalize_text
from .urls import clean_attribute_value, normalize_url, urls_match

__all__ = [
    "AttributeStabilityClassifier",
    "ClassStabilityClassifier",
    "ID_REFERENCE_ATTRIBUTES",
    "classify_class",
    "clean_attribute_value",
    "filter_classes",
    "has_dynamic_id_reference",
    "is_dynamic_id",
    "is_semantic_class",
    "is_stable_attribute",
    "is_stable_class",
    "is_stable_id",
    "looks_like_pii",
    "normalize_text",
    "normalize_url",
    "urls_match",
]
