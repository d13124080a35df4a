from seql.codec import parse
from seql.generator.generator import IdentityGenerator
from seql.models import AnchorNode, Constraint, FallbackPolicy, Identity, IdentityMeta, Semantics, TargetNode, TextContent
from seql.options import ResolverOptions
from seql.resolver.constraints import ConstraintsEvaluator, levenshtein
from seql.resolver.engine import ResolutionEngine
from seql.resolver.narrowing import CandidateNarrower
from seql.tree import Element, h


def _form(*children):
    form = h("form", {"id": "checkout"}, *children)
    root = h("html", None, h("body", None, form))
    return root, form


def _identity(text="Pay", constraints=(), fallback=None, **target):
    return Identity(
        anchor=AnchorNode(tag="form", semantics=Semantics(id="checkout"), score=0.9),
        target=TargetNode(
            tag="button",
            semantics=Semantics(text=TextContent(raw=text, normalized=text), **target),
        ),
        constraints=constraints,
        fallback=fallback or FallbackPolicy(),
        meta=IdentityMeta(confidence=0.8),
    )


def test_unique_match_succeeds(provider):
    root, form = _form(h("button", None, "Pay"), h("button", None, "Cancel"))
    result = ResolutionEngine(provider).resolve(_identity(), root)
    assert result.ok
    assert result.nodes == [form.elements[0]]
    assert result.confidence == 0.8
    assert result.degradation_reason is None


def test_hidden_sole_match_still_resolves(provider):
    root, form = _form(h("button", {"style": "display:none"}, "Pay"))
    result = ResolutionEngine(provider).resolve(_identity(), root)
    assert result.status == "success"
    assert result.node is form.elements[0]


def test_tie_goes_to_document_order(provider):
    root, form = _form(h("button", None, "Pay"), h("button", None, "Pay"))
    result = ResolutionEngine(provider).resolve(_identity(), root)
    assert result.status == "success"
    assert result.node is form.elements[0]
    assert result.degradation_reason == "best-of-multiple"
    assert result.confidence < 0.8


def test_best_score_prefers_better_semantic_match(provider):
    wrapped = h("button", None, "Pay", h("span", None, "later"))
    plain = h("button", None, "Pay")
    root, form = _form(wrapped, plain)
    result = ResolutionEngine(provider).resolve(_identity(), root)
    assert result.node is plain


def test_allow_multiple_policy(provider):
    root, form = _form(h("button", None, "Pay"), h("button", None, "Pay"))
    result = ResolutionEngine(provider).resolve(_identity(fallback=FallbackPolicy(on_multiple="allow-multiple")), root)
    assert result.status == "ambiguous"
    assert result.nodes == form.elements
    assert result.confidence == 0.8 * 0.5


def test_first_policy(provider):
    root, form = _form(h("button", None, "Pay"), h("button", None, "Pay"))
    result = ResolutionEngine(provider).resolve(_identity(fallback=FallbackPolicy(on_multiple="first")), root)
    assert result.status == "success"
    assert result.node is form.elements[0]
    assert result.degradation_reason == "first-of-multiple"


def test_strict_uniqueness_reports_ambiguity(provider):
    root, form = _form(h("button", None, "Pay"), h("button", None, "Pay"))
    identity = _identity(constraints=(Constraint.uniqueness("strict"),))
    result = ResolutionEngine(provider).resolve(identity, root)
    assert result.status == "ambiguous"
    assert len(result.nodes) == 2

    strict = ResolutionEngine(provider, ResolverOptions(strict_mode=True)).resolve(_identity(), root)
    assert strict.status == "ambiguous"


def test_allow_multiple_uniqueness_overrides_policy(provider):
    root, form = _form(h("button", None, "Pay"), h("button", None, "Pay"))
    identity = _identity(constraints=(Constraint.uniqueness("allow-multiple"),))
    result = ResolutionEngine(provider).resolve(identity, root)
    assert result.status == "ambiguous"
    assert result.nodes == form.elements


def test_visibility_constraint_breaks_ties(provider):
    root, form = _form(h("button", {"hidden": ""}, "Pay"), h("button", None, "Pay"))
    identity = _identity(constraints=(Constraint.uniqueness(), Constraint.visibility()))
    result = ResolutionEngine(provider).resolve(identity, root)
    assert result.status == "success"
    assert result.node is form.elements[1]
    assert result.confidence == 0.8 * 0.9


def test_position_constraint_uses_layout(provider):
    low = Element("button", box=(0, 200, 50, 20), children=["Pay"])
    high = Element("button", box=(0, 10, 50, 20), children=["Pay"])
    root, form = _form(low, high)
    identity = _identity(constraints=(Constraint.position("top-most"),))
    result = ResolutionEngine(provider).resolve(identity, root)
    assert result.node is high


def test_position_without_layout_uses_document_order(provider):
    first, second = h("button", None, "Pay"), h("button", None, "Pay")
    assert ConstraintsEvaluator(provider).apply([first, second], Constraint.position("left-most")) == [first]


def test_text_proximity_constraint(provider):
    near, far = h("button", None, "Pay now"), h("button", None, "Something else")
    kept = ConstraintsEvaluator(provider).apply([near, far], Constraint.text_proximity("Pay now!", max_distance=2))
    assert kept == [near]
    assert levenshtein("kitten", "sitting") == 3


def test_lenient_text_matching(provider):
    root, form = _form(h("button", None, "Pay securely"))
    result = ResolutionEngine(provider).resolve(_identity(text="Pay"), root)
    assert result.status == "success"
    assert result.node is form.elements[0]
    assert result.confidence == 0.8 * 0.8
    assert result.degradation_reason == "relaxed-text-matching"
    assert result.warnings


def test_missing_target_returns_anchor(provider):
    root, form = _form(h("button", None, "Cancel"), h("a", {"href": "/x"}, "Pay"))
    result = ResolutionEngine(provider).resolve(_identity(text="Checkout"), root)
    assert result.status == "degraded-fallback"
    assert result.node is form
    assert result.degradation_reason == "anchor-fallback"


def test_missing_target_strict_policy(provider):
    root, _ = _form(h("button", None, "Cancel"))
    identity = _identity(text="Checkout", fallback=FallbackPolicy(on_missing="strict"))
    result = ResolutionEngine(provider).resolve(identity, root)
    assert result.status == "error"
    assert result.nodes == []


def test_fallback_can_be_disabled(provider):
    root, _ = _form(h("button", None, "Cancel"))
    result = ResolutionEngine(provider, ResolverOptions(enable_fallback=False)).resolve(_identity(text="Checkout"), root)
    assert result.status == "error"
    assert result.degradation_reason == "not-found"


def test_missing_anchor_is_an_error(provider):
    root = h("html", None, h("body", None, h("button", None, "Pay")))
    result = ResolutionEngine(provider).resolve(_identity(), root)
    assert result.status == "error"
    assert result.degradation_reason == "anchor-not-found"


def test_no_tree_is_an_error(provider):
    result = ResolutionEngine(provider).resolve(_identity(), None)
    assert result.status == "error"


def test_url_attributes_match_by_path(provider):
    root, form = _form(h("a", {"href": "https://shop.example/cart?ref=mail"}, "Cart"))
    identity = parse('v1: form#checkout :: a[href="/cart",text="Cart"]')
    assert ResolutionEngine(provider).resolve(identity, root).node is form.elements[0]
    strict_urls = ResolutionEngine(provider, ResolverOptions(match_urls_by_path_only=False))
    assert strict_urls.resolve(identity, root).node is not form.elements[0]


def test_candidates_ranked_by_recorded_path(provider):
    rows = [h("tr", None, h("td", None, "31")) for _ in range(3)]
    root = h("html", None, h("body", None, h("main", None, h("table", None, h("tbody", None, *rows)))))
    identity = IdentityGenerator(provider).generate(rows[2].elements[0])
    candidates = CandidateNarrower(provider).narrow(identity, root)
    assert candidates[0].node is rows[2].elements[0]
    assert ResolutionEngine(provider).resolve(identity, root).node is rows[2].elements[0]


def test_narrowing_results_are_cached(provider):
    root, form = _form(h("button", None, "Pay"))
    engine = ResolutionEngine(provider)
    engine.resolve(_identity(), root)
    engine.resolve(_identity(), root)
    assert engine.cache.stats()["narrowing"]["hits"] >= 2
