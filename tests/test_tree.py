import asyncio

import pytest

from seql.errors import TreeError
from seql.tree import AttributeTest, Element, NodePattern, StructuralPredicate, body_of, h, parse_html
from seql.tree.capture import SNAPSHOT_SCRIPT, capture_tree


def _page():
    return h(
        "html",
        None,
        h(
            "body",
            None,
            h(
                "form",
                {"id": "login-form"},
                h("input", {"type": "email", "name": "email"}),
                h("button", {"type": "submit", "class": "btn-primary"}, "Sign in"),
            ),
            h("a", {"href": "/help"}, "Help"),
            h("a", None, "Anchor"),
        ),
    )


def test_builder_and_accessors():
    root = _page()
    button = root.find("button", type="submit")
    assert button is not None
    assert button.class_list == ["btn-primary"]
    assert button.own_text == "Sign in"
    assert button.parent.tag == "form"
    assert [node.tag for node in root.find_all("a")] == ["a", "a"]
    assert h("div", None, class_="x").attributes == {"class": "x"}


def test_mutation_helpers():
    form = Element("form")
    first = form.append(Element("input"))
    second = Element("button")
    form.insert(0, second)
    assert form.elements == [second, first]
    form.remove(first)
    assert first.parent is None
    with pytest.raises(TreeError):
        form.remove(first)
    form.set_text("replaced")
    assert form.elements == []
    assert form.text_content == "replaced"


def test_roles(provider):
    root = _page()
    anchors = root.find_all("a")
    assert provider.role(root.find("form")) == "form"
    assert provider.role(root.find("button")) == "button"
    assert provider.role(root.find("input")) == "textbox"
    assert provider.role(anchors[0]) == "link"
    assert provider.role(anchors[1]) is None
    assert provider.role(h("div", {"role": "tab panel"})) == "tab"


def test_visibility(provider):
    hidden_parent = h("div", {"style": "display: none"}, h("span", None, "x"))
    assert not provider.is_visible(hidden_parent.elements[0])
    assert not provider.is_visible(h("p", {"hidden": ""}))
    assert not provider.is_visible(h("input", {"type": "hidden"}))
    assert not provider.is_visible(h("p", {"style": "opacity:0"}))
    assert not provider.is_visible(Element("p", rendered=False))
    assert provider.is_visible(h("p", {"style": "color: red"}))


def test_provider_rejects_foreign_nodes(provider):
    with pytest.raises(TreeError):
        provider.tag("not a node")


def test_sibling_position_counts_elements_only(provider):
    row = h("tr", None, "text", h("td"), " ", h("td"))
    assert provider.sibling_position(row.elements[1]) == 2
    assert provider.sibling_position(row) is None


def test_query_returns_document_order(provider):
    root = _page()
    predicate = StructuralPredicate((NodePattern("form"), NodePattern("button", attributes=(AttributeTest("type", "submit"),))))
    assert provider.query(root, predicate) == [root.find("button")]
    assert predicate.to_css() == 'form button[type="submit"]'
    every_a = provider.query(root, StructuralPredicate((NodePattern("a"),)))
    assert every_a == root.find_all("a")


def test_scoped_query_excludes_the_scope_itself(provider):
    outer = h("section", None, h("section", None, h("p", None, "x")))
    predicate = StructuralPredicate((NodePattern("section"), NodePattern("p")))
    assert provider.query(outer, predicate, scoped=True, include_root=False) == [outer.find("p")]
    inner_only = StructuralPredicate((NodePattern("section"), NodePattern("section"), NodePattern("p")))
    assert provider.query(outer.elements[0], inner_only, scoped=True) == []


def test_url_attribute_tests_match_by_path(provider):
    pattern = NodePattern("a", attributes=(AttributeTest("href", "/help", "url"),))
    link = h("a", {"href": "https://example.com/help?ref=nav"})
    assert pattern.matches(link, provider)
    assert pattern.to_css() == 'a[href*="/help"]'


def test_parse_html_builds_element_tree():
    root = parse_html(
        "<!DOCTYPE html><html><body><!-- note --><div class='card  card'>Hello <b>world</b></div></body></html>"
    )
    assert root.tag == "html"
    body = body_of(root)
    div = body.find("div")
    assert div.class_list == ["card"]
    assert div.text_content == "Hello world"
    assert "note" not in body.text_content


def test_parse_html_fragment_gets_a_body():
    root = parse_html("<p>only</p>")
    assert body_of(root).find("p").own_text == "only"


class FakePage:
    def __init__(self, payload) -> None:
        self.payload = payload
        self.calls = []

    async def evaluate(self, script, arg=None):
        self.calls.append((script, arg))
        return self.payload


def test_capture_tree_rebuilds_snapshot(provider):
    page = FakePage(
        {
            "tag": "BODY",
            "attributes": {"class": "app"},
            "visible": True,
            "children": [
                {
                    "tag": "button",
                    "attributes": {"id": "go"},
                    "visible": False,
                    "box": {"x": 10, "y": 20, "width": 30, "height": 40},
                    "children": ["Go"],
                }
            ],
        }
    )
    root = asyncio.run(capture_tree(page, "body"))
    assert page.calls == [(SNAPSHOT_SCRIPT, "body")]
    assert root.tag == "body"
    button = root.find("button")
    assert button.box == (10.0, 20.0, 30.0, 40.0)
    assert provider.bounding_box(button) == (10.0, 20.0, 30.0, 40.0)
    assert not provider.is_visible(button)
    assert provider.text(button) == "Go"


def test_capture_tree_without_match_returns_none():
    assert asyncio.run(capture_tree(FakePage(None), "#missing")) is None
