"""Cleaning and comparison of URL-valued attributes (``href``, ``src``)."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

URL_ATTRIBUTES = frozenset({"href", "src"})

SPECIAL_PROTOCOLS = ("javascript:", "mailto:", "tel:", "data:", "blob:", "file:")

_DYNAMIC_FRAGMENT_PATTERNS = (
    re.compile(r"\d{5,}"),
    re.compile(r"[a-f0-9]{8,}", re.I),
    re.compile(r"(session|token|temp|random|timestamp|nonce|cache)", re.I),
    re.compile(r"^\d+$"),
    re.compile(r"^[a-f0-9-]{32,}$", re.I),
)


def is_absolute(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def is_dynamic_fragment(fragment: str) -> bool:
    return bool(fragment) and any(pattern.search(fragment) for pattern in _DYNAMIC_FRAGMENT_PATTERNS)


def clean_url(value: str, *, preserve_query_for_absolute: bool = True, remove_dynamic_fragments: bool = True) -> str:
    """Drop the parts of a URL that change between page loads.

    Relative URLs always lose their query; absolute ones keep it unless
    ``preserve_query_for_absolute`` is off. Fragments that look generated
    (long digit runs, hex hashes, session/token words) are removed.
    """
    if not value:
        return value
    with_query, _, fragment = value.partition("#")
    base, _, query = with_query.partition("?")
    cleaned = base
    if is_absolute(value) and preserve_query_for_absolute and query:
        cleaned += "?" + query
    if fragment and not (remove_dynamic_fragments and is_dynamic_fragment(fragment)):
        cleaned += "#" + fragment
    return cleaned


def clean_attribute_value(name: str, value: str, **options: bool) -> str:
    """Clean ``value`` when ``name`` is a URL attribute, else return it untouched."""
    if name in URL_ATTRIBUTES:
        return clean_url(value, **options)
    return value


def normalize_url(url: str, base_url: Optional[str] = None) -> str:
    """Canonical form of ``url`` for comparison.

    Same-origin absolute URLs become relative (path, query and fragment);
    relative, protocol-relative, special-protocol and cross-origin URLs are
    returned unchanged, as is anything that does not parse.
    """
    if not url or not is_absolute(url) or base_url is None:
        return url
    try:
        parsed = urlsplit(url)
        base = urlsplit(base_url)
    except ValueError:
        return url
    if (parsed.scheme, parsed.netloc) != (base.scheme, base.netloc):
        return url
    relative = parsed.path or "/"
    if parsed.query:
        relative += "?" + parsed.query
    if parsed.fragment:
        relative += "#" + parsed.fragment
    return relative


def url_path(url: str) -> str:
    """Path component of ``url``, ignoring origin, query and fragment."""
    if not url or url.startswith(SPECIAL_PROTOCOLS):
        return url
    try:
        path = urlsplit(url).path
    except ValueError:
        return url
    if is_absolute(url) or url.startswith("//"):
        return path or "/"
    return path


def urls_match(expected: str, actual: Optional[str], path_only: bool = True, base_url: Optional[str] = None) -> bool:
    """Compare two URL attribute values the way resolution does.

    ``path_only`` compares paths only, so ``/docs`` equals
    ``https://other.example/docs``; otherwise both sides are cleaned and
    normalised against ``base_url``.
    """
    if actual is None:
        return False
    left = clean_url(expected, preserve_query_for_absolute=False)
    right = clean_url(actual, preserve_query_for_absolute=False)
    if path_only:
        return url_path(left) == url_path(right)
    return normalize_url(left, base_url) == normalize_url(right, base_url)


__all__ = [
    "URL_ATTRIBUTES",
    "clean_attribute_value",
    "clean_url",
    "is_dynamic_fragment",
    "normalize_url",
    "url_path",
    "urls_match",
]
