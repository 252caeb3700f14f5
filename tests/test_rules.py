import pytest

from reconciler.links import RuleSetNotFound, load_retailer_rules, rules_for
from reconciler.links.rules import (
    REASON_FOREIGN_DOMAIN,
    REASON_LISTING,
    REASON_MALFORMED,
    REASON_UNRECOGNIZED,
    CanonicalMatch,
    RetailerRules,
    UnresolvableInput,
)


@pytest.fixture(scope="module")
def amazon():
    return rules_for(load_retailer_rules(), "Amazon")


def test_product_page_with_slug_and_ref(amazon):
    outcome = amazon.canonicalize("https://www.amazon.com/Some-Product-Name/dp/B07XYZ1234/ref=sr_1_1")
    assert outcome == CanonicalMatch(url="https://www.amazon.com/dp/B07XYZ1234", identifier="B07XYZ1234", rule="dp")


@pytest.mark.parametrize(
    "raw_url, rule",
    [
        ("https://www.amazon.com/gp/product/B0BVP8MFYC?psc=1&tag=golf-20", "gp-product"),
        ("https://smile.amazon.com/gp/aw/d/B0BVP8MFYC", "gp-aw-d"),
        ("http://amazon.com/exec/obidos/ASIN/B0BVP8MFYC/", "obidos"),
        ("https://www.amazon.com/gp/offer-listing?ASIN=B0BVP8MFYC", "asin-param"),
    ],
)
def test_other_product_shapes(amazon, raw_url, rule):
    outcome = amazon.canonicalize(raw_url)
    assert isinstance(outcome, CanonicalMatch)
    assert outcome.url == "https://www.amazon.com/dp/B0BVP8MFYC"
    assert outcome.rule == rule


def test_dp_path_preferred_over_query_fallback(amazon):
    outcome = amazon.canonicalize("https://www.amazon.com/dp/B0BVP8MFYC?asin=B000000000")
    assert outcome.identifier == "B0BVP8MFYC"


def test_search_page_needs_review(amazon):
    outcome = amazon.canonicalize("https://www.amazon.com/s?k=golf+driver")
    assert outcome == UnresolvableInput(REASON_LISTING)
    assert outcome.is_listing


@pytest.mark.parametrize(
    "raw_url, reason",
    [
        ("not a url", REASON_MALFORMED),
        ("http://[::1", REASON_MALFORMED),
        ("", REASON_MALFORMED),
        ("ftp://www.amazon.com/dp/B0BVP8MFYC", REASON_MALFORMED),
        ("https://www.2ndswing.com/p-123-putter.aspx", REASON_FOREIGN_DOMAIN),
        ("https://www.notamazon.com/dp/B0BVP8MFYC", REASON_FOREIGN_DOMAIN),
        ("https://www.amazon.com/Titleist-Putter/dp/B0BVP8", REASON_UNRECOGNIZED),
        ("https://www.amazon.com/b/?node=3410851", REASON_LISTING),
    ],
)
def test_unresolvable_urls(amazon, raw_url, reason):
    assert amazon.canonicalize(raw_url) == UnresolvableInput(reason)


def test_canonicalization_is_stable(amazon):
    raw = "https://www.amazon.com/Some-Product-Name/dp/B07XYZ1234/ref=sr_1_1?tag=abc"
    once = amazon.canonicalize(raw)
    twice = amazon.canonicalize(once.url)
    assert once.url == twice.url
    assert amazon.is_canonical(twice.url)


def test_is_canonical_requires_exact_shape(amazon):
    assert amazon.is_canonical("https://www.amazon.com/dp/B07XYZ1234")
    assert not amazon.is_canonical("https://www.amazon.com/dp/B07XYZ1234?tag=x")
    assert not amazon.is_canonical("https://amazon.com/dp/B07XYZ1234")
    assert not amazon.is_canonical(None)


def test_new_retailer_is_a_data_addition(tmp_path):
    rules_file = tmp_path / "retailers.yml"
    rules_file.write_text(
        """
- retailer: Golf Shop
  domains: [golfshop.example]
  identifier: "[0-9]{6}"
  template: "https://golfshop.example/item/{identifier}"
  rules:
    - name: item
      kind: path
      pattern: "/(?:item|product)/(?P<id>{identifier})"
"""
    )
    rule_sets = load_retailer_rules(rules_file)
    outcome = rules_for(rule_sets, "golf shop").canonicalize("https://www.golfshop.example/product/123456?utm=x")
    assert outcome.url == "https://golfshop.example/item/123456"
    with pytest.raises(RuleSetNotFound):
        rules_for(rule_sets, "Amazon")


def test_unknown_rule_kind_is_rejected():
    with pytest.raises(ValueError):
        RetailerRules.from_config(
            {
                "retailer": "Bad",
                "identifier": "[0-9]+",
                "template": "https://bad.example/{identifier}",
                "rules": [{"name": "x", "kind": "fragment"}],
            }
        )


@pytest.mark.parametrize(
    "rule",
    [
        {"name": "no-pattern", "kind": "path"},
        {"name": "no-param", "kind": "query"},
    ],
)
def test_incomplete_rule_is_rejected(rule):
    with pytest.raises(ValueError):
        RetailerRules.from_config(
            {
                "retailer": "Bad",
                "identifier": "[0-9]+",
                "template": "https://bad.example/{identifier}",
                "rules": [rule],
            }
        )
