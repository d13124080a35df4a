"""Detection of generated identifiers."""

from __future__ import annotations

import re
from typing import Optional

_DYNAMIC_ID_PATTERNS = (
    re.compile(r"^[a-z]+-\d+$", re.I),  # input-123
    re.compile(r"^[a-z]+(-[a-z]+)+-\d+$", re.I),  # react-day-picker-1
    re.compile(r"^[a-z]+(_[a-z]+)*_\d+$", re.I),  # radix_dialog_1
    re.compile(r"^\d+$"),
    re.compile(r"^:[a-z0-9]+:$", re.I),  # :r0:
    re.compile(r"^[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}$", re.I),
)
_HASH_LIKE = re.compile(r"^[a-z]{1,3}[A-Za-z0-9]{8,}$")
_LIBRARY_PREFIXES = (re.compile(r"^radix-"), re.compile(r"^mui-\d+$"))

# Attributes whose values name other elements by id.
ID_REFERENCE_ATTRIBUTES = frozenset(
    {
        "aria-labelledby",
        "aria-describedby",
        "aria-controls",
        "aria-owns",
        "aria-activedescendant",
        "for",
        "form",
        "list",
        "headers",
        "aria-details",
        "aria-errormessage",
        "aria-flowto",
    }
)


def is_dynamic_id(value: str) -> bool:
    """Return True for ids that look generated rather than authored.

    Semantic camelCase such as ``firstName`` is kept: a token is hash-like
    only when it mixes digits with upper case letters, or is 20+ characters.
    """
    if any(pattern.match(value) for pattern in _DYNAMIC_ID_PATTERNS):
        return True
    if _HASH_LIKE.match(value):
        has_digits = any(char.isdigit() for char in value)
        has_upper = any(char.isupper() for char in value)
        if (has_digits and has_upper) or len(value) >= 20:
            return True
    return any(pattern.match(value) for pattern in _LIBRARY_PREFIXES)


def is_stable_id(value: Optional[str]) -> bool:
    return bool(value) and not is_dynamic_id(value)


def has_dynamic_id_reference(value: str) -> bool:
    """True when any id in a space-separated reference list is generated."""
    return any(is_dynamic_id(token) for token in value.split())


__all__ = ["ID_REFERENCE_ATTRIBUTES", "has_dynamic_id_reference", "is_dynamic_id", "is_stable_id"]
