from seql.codec import parse, stringify
from seql.generator.anchor import AnchorFinder
from seql.generator.generator import IdentityGenerator
from seql.generator.semantics import SemanticExtractor
from seql.generator.svg import SvgFingerprinter, simple_hash
from seql.options import GeneratorOptions
from seql.resolver.engine import ResolutionEngine
from seql.tree import body_of, h, parse_html

LOGIN_PAGE = """
<html><body>
  <header><nav><a href="/home">Home</a></nav></header>
  <main>
    <form id="login-form">
      <label for="email">Email</label>
      <input id="email" name="email" type="email">
      <button id="submit-btn" type="submit">Submit</button>
    </form>
  </main>
</body></html>
"""


def _calendar():
    days = [31, *range(1, 32)] + [1, 2, 3]
    rows = []
    for start in range(0, 35, 7):
        rows.append("<tr>" + "".join(f"<td>{day}</td>" for day in days[start : start + 7]) + "</tr>")
    return parse_html("<html><body><main><table><tbody>" + "".join(rows) + "</tbody></table></main></body></html>")


def test_login_button_identity(provider):
    root = parse_html(LOGIN_PAGE)
    button = root.find("button")

    identity = IdentityGenerator(provider).generate(button)

    assert identity is not None
    assert identity.confidence > 0.7
    assert identity.anchor.tag == "form"
    assert identity.path == ()
    assert not identity.uses_position
    text = stringify(identity)
    assert "form#login-form" in text
    assert 'type="submit"' in text
    assert text.startswith("v1: form#login-form :: button[")


def test_generated_identity_resolves_to_its_node(provider):
    root = parse_html(LOGIN_PAGE)
    generator = IdentityGenerator(provider)
    engine = ResolutionEngine(provider)
    for node in provider.iter_descendants(body_of(root)):
        identity = generator.generate(node)
        if identity is None:
            continue
        result = engine.resolve(identity, root)
        assert result.node is node, stringify(identity)


def test_duplicate_cells_get_a_row_ordinal(provider):
    root = _calendar()
    cells = [cell for cell in root.find_all("td") if cell.own_text == "31"]
    assert len(cells) == 2

    identity = IdentityGenerator(provider).generate(cells[1])

    assert identity.anchor.tag == "main"
    assert [node.tag for node in identity.path] == ["table", "tbody", "tr"]
    assert identity.path[-1].ordinal == 5
    assert "tr#5" in stringify(identity)
    result = ResolutionEngine(provider).resolve(identity, root)
    assert result.status == "success"
    assert result.nodes == [cells[1]]


def test_generation_is_deterministic(provider):
    root = parse_html(LOGIN_PAGE)
    field = root.find("input")
    first = IdentityGenerator(provider).generate(field)
    second = IdentityGenerator(provider).generate(field)
    assert first.structure() == second.structure()
    assert stringify(first) == stringify(second)


def test_state_attributes_do_not_change_identity(provider):
    button = h("button", {"data-testid": "menu-toggle", "aria-expanded": "false", "data-state": "closed"}, "Menu")
    root = h("html", None, h("body", None, h("nav", None, button)))
    before = IdentityGenerator(provider).generate(button)

    button.set_attribute("aria-expanded", "true")
    button.set_attribute("data-state", "open")
    button.set_attribute("aria-pressed", "true")
    button.set_attribute("disabled", "")
    after = IdentityGenerator(provider).generate(button)

    assert before.structure() == after.structure()
    assert ResolutionEngine(provider).resolve(before, root).node is button


def test_semantics_skip_unstable_signals(provider):
    node = h(
        "a",
        {
            "id": "link-123",
            "class": "nav-link css-1a2b3c mt-4",
            "href": "/account?session=abc",
            "aria-expanded": "true",
            "onclick": "go()",
            "data-v-1a2b": "",
            "aria-labelledby": "label-7",
        },
        "My account",
    )
    semantics = SemanticExtractor(provider).extract(node)
    assert semantics.id is None
    assert semantics.classes == ("nav-link",)
    assert semantics.attributes == {"href": "/account"}
    assert semantics.role == "link"
    assert semantics.text.normalized == "My account"


def test_long_text_is_cut_and_matched_partially(provider):
    node = h("p", None, "word " * 40)
    text = SemanticExtractor(provider).extract(node).text
    assert len(text.normalized) <= 100
    assert text.match_mode == "partial"


def test_anchor_tiers(provider):
    target = h("span", None, "x")
    region = h("div", {"role": "region", "aria-label": "Filters"}, h("div", None, target))
    h("html", None, h("body", None, h("section", None, region)))
    anchor = AnchorFinder(provider).find(target)
    assert anchor.node is region
    assert anchor.tier == "B"
    assert not anchor.degraded


def test_missing_anchor_falls_back_to_body(provider):
    target = h("span", None, "x")
    body = h("body", None, h("div", None, target))
    h("html", None, body)
    anchor = AnchorFinder(provider).find(target)
    assert anchor.node is body
    assert anchor.degraded
    assert AnchorFinder(provider, GeneratorOptions(fallback_to_root=False)).find(target) is None


def test_root_node_is_its_own_anchor(provider):
    root = h("html", None, h("body"))
    identity = IdentityGenerator(provider).generate(root)
    assert identity.anchor.tag == "html"
    assert identity.target.tag == "html"
    assert identity.meta.degraded


def test_deep_paths_report_overflow(provider):
    target = h("button", None, "Deep")
    node = target
    for _ in range(6):
        node = h("div", None, node)
    h("html", None, h("body", None, h("form", {"id": "deep-form"}, node)))

    identity = IdentityGenerator(provider, GeneratorOptions(max_path_depth=2)).generate(target)

    assert identity.meta.degraded
    assert identity.meta.degradation_reason == "anchor-and-path-degraded"


def test_low_confidence_returns_none(provider):
    root = parse_html(LOGIN_PAGE)
    generator = IdentityGenerator(provider, GeneratorOptions(confidence_threshold=0.99))
    assert generator.generate(root.find("button")) is None


def test_identities_are_cached_per_node(provider):
    root = parse_html(LOGIN_PAGE)
    generator = IdentityGenerator(provider)
    button = root.find("button")
    assert generator.generate(button) is generator.generate(button)
    assert generator.cache.stats()["identities"]["hits"] == 1


def test_svg_fingerprints(provider):
    icon = h("svg", None, h("path", {"d": "M0 0 L10 10 Z"}), h("title", None, "Close"))
    other = h("svg", None, h("path", {"d": "M0 0 L20 5 Z"}))
    fingerprinter = SvgFingerprinter(provider)
    path = icon.elements[0]
    fingerprint = fingerprinter.fingerprint(path)
    assert fingerprint.shape == "path"
    assert fingerprint.d_hash is not None
    assert fingerprinter.matches(path, fingerprint)
    assert not fingerprinter.matches(other.elements[0], fingerprint)
    assert fingerprinter.fingerprint(icon).title_text == "Close"
    assert simple_hash("abc") == format(96354, "x").rjust(8, "0")


def test_repeated_cards_pin_the_anchor_instance(provider):
    root = parse_html(
        "<html><body><main><section>"
        '<article class="card"><h2>Lamp</h2><button>Add</button></article>'
        '<article class="card"><h2>Desk</h2><button>Add</button></article>'
        "</section></main></body></html>"
    )
    first, second = root.find_all("button")

    identity = IdentityGenerator(provider).generate(second)

    assert identity.anchor.tag == "article"
    assert identity.anchor.ordinal == 2
    assert "article.card#2 :: " in stringify(identity)
    engine = ResolutionEngine(provider)
    result = engine.resolve(identity, root)
    assert result.status == "success"
    assert result.nodes == [second]
    assert engine.resolve(parse(stringify(identity)), root).nodes == [second]
    assert engine.resolve(IdentityGenerator(provider).generate(first), root).nodes == [first]


def test_personal_text_is_not_relied_on_for_uniqueness(provider):
    root = parse_html(
        "<html><body><main><ul><li>alice@example.com</li><li>bob@example.com</li></ul></main></body></html>"
    )
    alice, bob = root.find_all("li")

    text = stringify(IdentityGenerator(provider).generate(bob))

    assert "example.com" not in text
    assert text.startswith("v1: main :: ul > li#2")
    result = ResolutionEngine(provider).resolve(parse(text), root)
    assert result.status == "success"
    assert result.nodes == [bob]
