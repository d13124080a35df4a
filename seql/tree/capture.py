"""Capture a live playwright page as an :class:`Element` tree."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from playwright.async_api import Frame, Page

from .element import Element

log = logging.getLogger(__name__)

SNAPSHOT_SCRIPT = """
(rootSelector) => {
  const root = rootSelector ? document.querySelector(rootSelector) : document.documentElement;
  if (!root) return null;
  const serialize = (element) => {
    const attributes = {};
    for (const attr of Array.from(element.attributes)) {
      attributes[attr.name] = attr.value;
    }
    const rect = element.getBoundingClientRect();
    const style = window.getComputedStyle(element);
    const visible = style.display !== 'none' && style.visibility !== 'hidden' && style.opacity !== '0';
    const children = [];
    for (const node of Array.from(element.childNodes)) {
      if (node.nodeType === Node.TEXT_NODE) {
        if (node.textContent) children.push(node.textContent);
      } else if (node.nodeType === Node.ELEMENT_NODE) {
        const tag = node.tagName.toLowerCase();
        if (tag === 'script' || tag === 'style' || tag === 'noscript') continue;
        children.push(serialize(node));
      }
    }
    return {
      tag: element.tagName.toLowerCase(),
      attributes,
      visible,
      box: {x: rect.x, y: rect.y, width: rect.width, height: rect.height},
      children,
    };
  };
  return serialize(root);
}
"""


async def capture_tree(page: Page | Frame, root_selector: Optional[str] = None) -> Optional[Element]:
    """Serialise the page (or the subtree at ``root_selector``) in one round trip.

    Returns ``None`` when the selector matches nothing.
    """
    data: Optional[Dict[str, Any]] = await page.evaluate(SNAPSHOT_SCRIPT, root_selector)
    if not data:
        log.debug("Page capture returned nothing for root %r", root_selector)
        return None
    return Element.from_snapshot(data)
