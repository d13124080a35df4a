from seql.classify.attributes import AttributeStabilityClassifier, is_stable_attribute
from seql.classify.classes import (
    ClassStabilityClassifier,
    classify_class,
    filter_classes,
    is_dynamic_class,
    is_semantic_class,
    is_stable_class,
    is_utility_class,
)
from seql.classify.ids import has_dynamic_id_reference, is_dynamic_id, is_stable_id
from seql.classify.text import normalize_text, truncate
from seql.classify.urls import clean_attribute_value, clean_url, normalize_url, urls_match


def test_generated_ids_are_dynamic():
    for value in ("input-123", "react-day-picker-1", "radix_dialog_1", "42", ":r0:", "a1B2c3D4e5"):
        assert is_dynamic_id(value), value
    assert is_dynamic_id("550e8400-e29b-41d4-a716-446655440000")
    assert is_dynamic_id("radix-trigger")
    assert is_dynamic_id("mui-12")


def test_authored_ids_are_stable():
    for value in ("login-form", "firstName", "submit-btn", "main"):
        assert not is_dynamic_id(value), value
    assert is_stable_id("login-form")
    assert not is_stable_id(None)
    assert not is_stable_id("")


def test_id_reference_lists():
    assert has_dynamic_id_reference("label-1 hint")
    assert not has_dynamic_id_reference("email-label hint")


def test_class_categories():
    assert is_dynamic_class("css-1a2b3c")
    assert is_dynamic_class("jss12")
    assert is_dynamic_class("sc-bdVaJa-0")
    assert is_utility_class("mt-4")
    assert is_utility_class("hover:bg-blue-500")
    assert is_utility_class("flex")
    assert is_utility_class("x")
    assert is_semantic_class("submit-button")
    assert is_semantic_class("btn-primary")
    assert is_stable_class("submit-button")
    assert not is_stable_class("mt-4")


def test_negative_utilities_are_filtered():
    assert is_utility_class("-mt-2")
    assert is_utility_class("-translate-x-4")
    assert not is_stable_class("-mt-2")


def test_classify_class_flags():
    result = classify_class("btn-primary")
    assert result.is_semantic and result.is_stable
    result = classify_class("css-abc123")
    assert result.is_dynamic and not result.is_stable


def test_filter_classes_keeps_order():
    stable, rejected = filter_classes(["submit-button", "css-abc123", "mt-4", "btn-primary"])
    assert stable == ["submit-button", "btn-primary"]
    assert rejected == ["css-abc123", "mt-4"]


def test_rank_puts_semantic_classes_first():
    ranked = ClassStabilityClassifier().rank(["zeta-thing", "btn-primary"])
    assert ranked[0] == "btn-primary"


def test_attribute_rules():
    assert is_stable_attribute("role")
    assert is_stable_attribute("aria-label")
    assert not is_stable_attribute("aria-expanded")
    assert not is_stable_attribute("data-state")
    assert not is_stable_attribute("data-radix-collection-item")
    assert is_stable_attribute("data-testid")
    assert is_stable_attribute("data-order-id")
    assert is_stable_attribute("id", "main")
    assert not is_stable_attribute("id", "radix-:r1:")
    assert is_stable_attribute("name")
    assert not is_stable_attribute("disabled")
    assert not is_stable_attribute("value")
    assert is_stable_attribute("data-section")
    assert not is_stable_attribute("onclick")
    assert not is_stable_attribute("style")


def test_first_matching_rule_decides():
    classifier = AttributeStabilityClassifier()
    assert classifier.matching_rule("aria-label").name == "aria-stable"
    assert classifier.matching_rule("data-state").name == "data-state"
    assert classifier.matching_rule("onclick").name == "reject"


def test_text_normalisation():
    assert normalize_text("  Sign \n\t in  ") == "Sign in"
    assert normalize_text(None) == ""
    assert truncate("abcdef", 3) == ("abc", True)
    assert truncate("abc", 3) == ("abc", False)


def test_url_cleaning():
    assert clean_url("/search?q=1#section") == "/search#section"
    assert clean_url("https://example.com/a?q=1") == "https://example.com/a?q=1"
    assert clean_url("/p#a1b2c3d4e5") == "/p"
    assert clean_url("/p#session-7") == "/p"
    assert clean_attribute_value("title", "a?b") == "a?b"


def test_url_normalisation_and_matching():
    assert normalize_url("https://ex.com/a?b=1", "https://ex.com/") == "/a?b=1"
    assert normalize_url("https://other.com/a", "https://ex.com/") == "https://other.com/a"
    assert normalize_url("/a") == "/a"
    assert urls_match("/docs", "https://other.example/docs")
    assert not urls_match("/docs", "/blog")
    assert urls_match("/docs", "https://ex.com/docs", path_only=False, base_url="https://ex.com")
    assert not urls_match("/docs", "https://other.com/docs", path_only=False, base_url="https://ex.com")
    assert not urls_match("/docs", None)
