"""In-memory attributed tree and the provider that reads it."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from seql.errors import TreeError

from .base import TreeProvider


# Implicit ARIA roles for tags that carry one without an explicit attribute.
IMPLICIT_ROLES: Dict[str, str] = {
    "article": "article",
    "aside": "complementary",
    "button": "button",
    "dialog": "dialog",
    "footer": "contentinfo",
    "form": "form",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "header": "banner",
    "img": "img",
    "li": "listitem",
    "main": "main",
    "nav": "navigation",
    "ol": "list",
    "option": "option",
    "section": "region",
    "select": "combobox",
    "table": "table",
    "td": "cell",
    "textarea": "textbox",
    "th": "columnheader",
    "tr": "row",
    "ul": "list",
}

_INPUT_ROLES: Dict[str, str] = {
    "button": "button",
    "checkbox": "checkbox",
    "email": "textbox",
    "image": "button",
    "number": "spinbutton",
    "radio": "radio",
    "range": "slider",
    "reset": "button",
    "search": "searchbox",
    "submit": "button",
    "tel": "textbox",
    "text": "textbox",
    "url": "textbox",
}

Child = Union["Element", str]


class Element:
    """A tagged node with attributes, text and ordered children.

    ``nodes`` holds both child elements and text fragments in document
    order; :attr:`elements` exposes the element children only. ``rendered``
    is set by page captures that know the computed visibility.
    """

    def __init__(
        self,
        tag: str,
        attributes: Optional[Mapping[str, str]] = None,
        children: Optional[Iterable[Child]] = None,
        *,
        box: Optional[Tuple[float, float, float, float]] = None,
        rendered: Optional[bool] = None,
    ) -> None:
        self.tag = tag.lower()
        self.attributes: Dict[str, str] = dict(attributes or {})
        self.parent: Optional[Element] = None
        self.nodes: List[Child] = []
        self.box = box
        self.rendered = rendered
        for child in children or ():
            self.append(child)

    def __repr__(self) -> str:
        attrs = "".join(f' {key}="{value}"' for key, value in self.attributes.items())
        return f"<{self.tag}{attrs}>"

    # -- construction ----------------------------------------------------

    def append(self, child: Child) -> Child:
        if isinstance(child, Element):
            if child.parent is not None:
                child.parent.remove(child)
            child.parent = self
        elif not isinstance(child, str):
            raise TreeError(f"Unsupported child type: {type(child).__name__}")
        self.nodes.append(child)
        return child

    def insert(self, index: int, child: "Element") -> "Element":
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        # index counts element children only
        elements_seen = 0
        for position, node in enumerate(self.nodes):
            if isinstance(node, Element):
                if elements_seen == index:
                    self.nodes.insert(position, child)
                    return child
                elements_seen += 1
        self.nodes.append(child)
        return child

    def remove(self, child: "Element") -> None:
        for position, node in enumerate(self.nodes):
            if node is child:
                del self.nodes[position]
                child.parent = None
                return
        raise TreeError("Node is not a child of this element", details={"tag": child.tag})

    # -- accessors -------------------------------------------------------

    @property
    def elements(self) -> List["Element"]:
        return [node for node in self.nodes if isinstance(node, Element)]

    @property
    def class_list(self) -> List[str]:
        seen: List[str] = []
        for cls in self.attributes.get("class", "").split():
            if cls not in seen:
                seen.append(cls)
        return seen

    @property
    def own_text(self) -> str:
        return " ".join(node.strip() for node in self.nodes if isinstance(node, str) and node.strip())

    @property
    def text_content(self) -> str:
        parts: List[str] = []
        for node in self.nodes:
            parts.append(node if isinstance(node, str) else node.text_content)
        return "".join(parts)

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    def set_text(self, text: str) -> None:
        for node in list(self.nodes):
            if isinstance(node, Element):
                node.parent = None
        self.nodes = [text]

    def find_all(self, tag: str) -> List["Element"]:
        """Descendant elements with the given tag, in document order."""
        return [node for node in _walk(self) if node.tag == tag.lower()]

    def find(self, tag: str, **attrs: str) -> Optional["Element"]:
        for node in _walk(self):
            if node.tag != tag.lower():
                continue
            if all(node.attributes.get(key.replace("_", "-")) == value for key, value in attrs.items()):
                return node
        return None

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "Element":
        """Rebuild a tree from the nested mapping produced by a page capture."""
        raw_box = data.get("box")
        box = None
        if isinstance(raw_box, Mapping):
            try:
                box = (
                    float(raw_box.get("x", 0)),
                    float(raw_box.get("y", 0)),
                    float(raw_box.get("width", 0)),
                    float(raw_box.get("height", 0)),
                )
            except (TypeError, ValueError):
                box = None
        attributes = {str(k): str(v) for k, v in (data.get("attributes") or {}).items() if v is not None}
        rendered = data.get("visible")
        element = cls(
            str(data.get("tag", "div")),
            attributes,
            box=box,
            rendered=rendered if isinstance(rendered, bool) else None,
        )
        for child in data.get("children") or []:
            if isinstance(child, str):
                element.append(child)
            elif isinstance(child, Mapping):
                element.append(cls.from_snapshot(child))
        return element


def _walk(node: Element) -> Iterable[Element]:
    stack = list(reversed(node.elements))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.elements))


def h(tag: str, attributes: Optional[Mapping[str, str]] = None, *children: Child, **kwargs: str) -> Element:
    """Shorthand builder: ``h("ul", {"class": "menu"}, h("li", None, "Home"))``.

    Keyword arguments are added as attributes with ``_`` turned into ``-``
    (``class_`` becomes ``class``).
    """
    attrs = dict(attributes or {})
    for key, value in kwargs.items():
        attrs[key.rstrip("_").replace("_", "-")] = value
    return Element(tag, attrs, children)


def _parse_style(style: str) -> Dict[str, str]:
    declarations: Dict[str, str] = {}
    for chunk in style.split(";"):
        if ":" not in chunk:
            continue
        key, value = chunk.split(":", 1)
        declarations[key.strip().lower()] = value.strip().lower()
    return declarations


class ElementTreeProvider(TreeProvider):
    """:class:`TreeProvider` over :class:`Element` trees."""

    def _check(self, node: Any) -> Element:
        if not isinstance(node, Element):
            raise TreeError(f"Expected an Element, got {type(node).__name__}")
        return node

    def tag(self, node: Any) -> str:
        return self._check(node).tag

    def attributes(self, node: Any) -> Mapping[str, str]:
        return self._check(node).attributes

    def classes(self, node: Any) -> Sequence[str]:
        return self._check(node).class_list

    def text(self, node: Any) -> str:
        return self._check(node).text_content

    def own_text(self, node: Any) -> str:
        return self._check(node).own_text

    def parent(self, node: Any) -> Optional[Element]:
        return self._check(node).parent

    def children(self, node: Any) -> Sequence[Element]:
        return self._check(node).elements

    def role(self, node: Any) -> Optional[str]:
        element = self._check(node)
        explicit = element.attributes.get("role")
        if explicit:
            return explicit.strip().split()[0]
        if element.tag == "a":
            return "link" if "href" in element.attributes else None
        if element.tag == "input":
            return _INPUT_ROLES.get(element.attributes.get("type", "text").lower())
        return IMPLICIT_ROLES.get(element.tag)

    def is_visible(self, node: Any) -> bool:
        current: Optional[Element] = self._check(node)
        while current is not None:
            if _hidden(current):
                return False
            current = current.parent
        return True

    def bounding_box(self, node: Any) -> Optional[Tuple[float, float, float, float]]:
        return self._check(node).box


def _hidden(element: Element) -> bool:
    attrs = element.attributes
    if element.rendered is False or "hidden" in attrs:
        return True
    if attrs.get("type") == "hidden" and element.tag == "input":
        return True
    style = _parse_style(attrs.get("style", ""))
    if style.get("display") == "none" or style.get("visibility") == "hidden":
        return True
    return style.get("opacity") in {"0", "0.0"}


__all__ = ["Element", "ElementTreeProvider", "IMPLICIT_ROLES", "h"]
