"""Tests for the remediation knowledge tables."""

import pytest

from techseo.modules.technical_audit.knowledge import (
    GENERAL_RECOMMENDATIONS,
    GENERIC_RECOMMENDATIONS,
    RECOMMENDATIONS,
    category_recommendations_for_types,
    format_issue_type,
    get_recommendations_for_type,
    normalize_issue_type,
)


class TestRecommendationTable:
    """Per-type remediation bullets."""

    @pytest.mark.parametrize("issue_type", [
        "broken_links", "missing_title", "missing_meta_description", "missing_h1",
        "duplicate_content", "slow_page", "mobile_unfriendly", "mixed_content",
        "redirect_chain", "low_word_count",
    ])
    def test_core_types_have_bullets(self, issue_type):
        bullets = get_recommendations_for_type(issue_type)
        assert bullets
        assert bullets != list(GENERIC_RECOMMENDATIONS)

    def test_slow_page_has_six_bullets(self):
        assert len(get_recommendations_for_type("slow_page")) == 6

    def test_generic_fallback(self):
        assert get_recommendations_for_type("something_new") == [
            "Fix the identified issues to improve SEO performance",
            "Regularly monitor for similar issues",
            "Consider consulting with an SEO specialist for complex issues",
        ]

    def test_aliases_share_entries(self):
        assert get_recommendations_for_type("broken_link") == get_recommendations_for_type("broken_links")
        assert get_recommendations_for_type("low_content") == get_recommendations_for_type("low_word_count")
        assert get_recommendations_for_type("missing_viewport") == get_recommendations_for_type("mobile_unfriendly")

    def test_lookup_normalizes_case_and_whitespace(self):
        assert get_recommendations_for_type("Missing Title") == get_recommendations_for_type("missing_title")

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            RECOMMENDATIONS["missing_title"] = ("Nope",)

    def test_returned_list_is_a_copy(self):
        bullets = get_recommendations_for_type("missing_h1")
        bullets.append("mutated")
        assert "mutated" not in get_recommendations_for_type("missing_h1")


class TestFormatting:
    """Issue type name helpers."""

    @pytest.mark.parametrize("raw,expected", [
        ("missing_meta_description", "Missing Meta Description"),
        ("custom_weird_issue", "Custom Weird Issue"),
        ("H1", "H1"),
        ("MISSING_TITLE", "Missing Title"),
    ])
    def test_format_issue_type(self, raw, expected):
        assert format_issue_type(raw) == expected

    def test_normalize_issue_type(self):
        assert normalize_issue_type("  Slow   Page ") == "slow_page"
        assert normalize_issue_type(None) == ""


class TestCategoryRecommendations:
    """Site-wide category bundles."""

    def test_no_types(self):
        assert category_recommendations_for_types([]) == {}

    def test_triggered_categories_in_order(self):
        bundles = category_recommendations_for_types(["slow_page", "missing_title", "missing_viewport"])
        assert list(bundles) == [
            "title_issues", "performance_issues", "mobile_issues", "general_recommendations",
        ]
        assert bundles["general_recommendations"] == list(GENERAL_RECOMMENDATIONS)

    def test_unknown_type_only_gets_general(self):
        assert list(category_recommendations_for_types(["custom_thing"])) == ["general_recommendations"]
