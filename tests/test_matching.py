"""
Tests for fuzzy name matching
"""

import pytest

from linear_bridge.services.matching import acronym_of, filter_by_name, filter_variants, matches


def test_filter_variants():
    assert filter_variants("  SOC   Two ") == ["soc two", "soctwo", "soc-two", "soc_two"]


def test_acronym_of_splits_on_separators():
    assert acronym_of("Security Operations-Center_Team") == "soct"


@pytest.mark.parametrize(
    "name, filter_text, slug",
    [
        ("SOC II Compliance", "SOC", None),
        ("Data Platform", "data platform", None),
        ("Data-Platform Migration", "data platform", None),
        ("Billing", "billing v2", "billing-v2-8f3a"),
        ("Billing", "billingv2", "billingv2"),
    ],
)
def test_variant_substring_matches(name, filter_text, slug):
    assert matches(name, filter_text, slug=slug, fuzzy=False)


def test_description_substring_matches():
    assert matches("Project X", "compliance", description="Annual SOC compliance audit")


def test_acronym_rule():
    assert matches("Security Operations Center", "SOC")
    assert matches("Global Security Operations Center", "soc")


def test_acronym_requires_enough_words():
    """Two words cannot spell a three-letter acronym"""
    assert not matches("Security Ops", "SOC")


def test_acronym_rule_is_fuzzy_only():
    assert not matches("Security Operations Center", "SOC", fuzzy=False)


def test_multi_token_rule():
    assert matches("Redesign of the mobile app", "mobile redesign")
    assert matches("Mobile app", "mobile onboarding", description="Onboarding flow overhaul")
    assert not matches("Redesign of the mobile app", "mobile billing")
    assert not matches("Redesign of the mobile app", "mobile redesign", fuzzy=False)


def test_empty_filter_matches_everything():
    assert matches("Anything", "")
    assert matches(None, "   ")


def test_no_match():
    assert not matches("Website Redesign", "SOC", slug="website-redesign-1a2b")


def test_filter_by_name_keeps_order():
    candidates = [
        {"name": "Security Operations Center"},
        {"name": "Website Redesign"},
        {"name": "SOC II Compliance"},
    ]

    kept = filter_by_name(candidates, "soc", lambda c: (c["name"], None, None))

    assert [c["name"] for c in kept] == ["Security Operations Center", "SOC II Compliance"]


@pytest.mark.parametrize(
    "description",
    ["Complete API\nredesign", "complete API  redesign", "  api redesign\t"],
)
def test_description_whitespace_is_normalized(description):
    """Line breaks and repeated spaces in markdown descriptions still match exactly"""
    assert matches("Platform", "api redesign", description=description, fuzzy=False)


def test_slug_is_normalized():
    assert matches("Billing", "billing-v2", slug="  Billing-V2-8F3A ", fuzzy=False)


def test_hyphenated_name_matches_spaced_filter():
    assert matches("API-Redesign", "api redesign", fuzzy=False)


def test_acronym_of_three_words():
    assert matches("Security And Compliance", "SAC")


def test_multi_token_description_needs_fuzzy():
    description = "complete redesign of our REST API endpoints"
    assert matches("Platform", "api redesign", description=description, fuzzy=True)
    assert not matches("Platform", "api redesign", description=description, fuzzy=False)
