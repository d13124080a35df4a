import pytest

from seql import api
from seql.errors import MissingVersionError
from seql.generator.generator import IdentityGenerator
from seql.models import AnchorNode, Constraint, Identity, IdentityMeta, Semantics, TargetNode
from seql.tree import parse_html
from seql.validation import is_identity, validate_identity

PAGE = """
<html><body><main>
  <form id="profile"><input name="nickname"><button type="submit">Save</button></form>
</main></body></html>
"""


def _generated(provider):
    root = parse_html(PAGE)
    return root, IdentityGenerator(provider).generate(root.find("button"))


def test_generated_identity_is_valid(provider):
    _, identity = _generated(provider)
    result = validate_identity(identity)
    assert result.valid
    assert result.errors == []
    assert not any("version" in warning for warning in result.warnings)


def test_dumped_identity_round_trips_through_validation(provider):
    _, identity = _generated(provider)
    data = identity.model_dump(mode="json")
    assert is_identity(data)
    result = validate_identity(data)
    assert result.valid, result.errors
    assert result.warnings == []


def test_missing_fields_are_errors():
    data = {
        "version": "1",
        "anchor": {"score": 0.5, "semantics": {}},
        "path": [{"tag": "div"}, {}],
        "target": {"tag": "button", "score": 0.5, "semantics": {}},
    }
    result = validate_identity(data)
    assert not result.valid
    assert "Anchor missing tag" in result.errors
    assert "Path node 1 missing tag" in result.errors
    assert "Missing meta field" in result.warnings
    assert "Missing fallback rules" in result.warnings


def test_field_values_are_checked():
    data = {
        "version": "1",
        "anchor": {"tag": "form", "score": 0.5, "semantics": {}},
        "path": [],
        "target": {"tag": "button", "score": 0.5, "semantics": {}},
        "meta": {"confidence": 2.0},
        "fallback": {},
    }
    result = validate_identity(data)
    assert not result.valid
    assert any(error.startswith("meta.confidence") for error in result.errors)
    assert "Missing timestamp" in result.warnings


def test_suspicious_identities_warn():
    identity = Identity(
        version="7",
        anchor=AnchorNode(tag="body", score=0.3, degraded=True),
        target=TargetNode(tag="div"),
        constraints=(Constraint.uniqueness(), Constraint.uniqueness("strict")),
        meta=IdentityMeta(degraded=True, degradation_reason="no-semantic-anchor"),
    )
    warnings = validate_identity(identity).warnings
    assert "Unknown version: 7" in warnings
    assert "Confidence is zero" in warnings
    assert "Identity is degraded (no-semantic-anchor)" in warnings
    assert "Target has no semantics and no ordinal" in warnings
    assert "Duplicate constraint kinds" in warnings


def test_non_mappings_are_rejected():
    assert not validate_identity(["v1"]).valid
    assert not is_identity("v1: form :: button")
    assert not is_identity({"version": "1", "anchor": {}, "target": {}})
    assert is_identity(Identity(anchor=AnchorNode(tag="form"), target=TargetNode(tag="a", semantics=Semantics(id="x"))))


def test_string_helpers_round_trip(provider):
    root = parse_html(PAGE)
    button = root.find("button")
    text = api.generate_string(button)
    assert text.startswith("v1: form#profile :: ")
    assert api.resolve_string(text, root) == [button]
    assert api.resolve(api.generate(button), root).node is button


def test_resolve_string_propagates_parse_errors():
    with pytest.raises(MissingVersionError):
        api.resolve_string("form :: button", parse_html(PAGE))
