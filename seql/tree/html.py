"""Build :class:`Element` trees from HTML markup."""

from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from .element import Element


def _convert(tag: Tag) -> Element:
    attributes = {}
    for key, value in tag.attrs.items():
        # bs4 hands multi-valued attributes (class, rel, ...) back as lists
        attributes[key] = " ".join(value) if isinstance(value, list) else str(value)
    element = Element(tag.name, attributes)
    for child in tag.children:
        if isinstance(child, Tag):
            element.append(_convert(child))
        elif type(child) is NavigableString:
            element.append(str(child))
    return element


def parse_html(markup: str, parser: str = "lxml") -> Element:
    """Parse ``markup`` and return the ``<html>`` element of the document."""
    soup = BeautifulSoup(markup, parser)
    root: Optional[Tag] = soup.find("html")
    if root is None:
        root = soup.find(True)
    if root is None:
        return Element("html", children=[Element("body")])
    return _convert(root)


def body_of(root: Element) -> Element:
    """Return the ``<body>`` of a parsed document, or ``root`` itself."""
    if root.tag == "body":
        return root
    body = root.find("body")
    return body if body is not None else root
