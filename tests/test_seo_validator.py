"""Tests for rule-based SEO scoring."""

from app.utils.seo_validator import (
    analyze_keyword_usage,
    count_words,
    generate_recommendations,
    get_seo_grade,
    score_status,
    validate_seo_fields,
)


def complete_post() -> dict:
    return {
        "title": "Choosing a CRM for your startup",
        "slug": "choosing-a-crm-for-your-startup",
        "content": "<p>" + "crm startup tools " * 110 + "</p>",
        "excerpt": "e" * 120,
        "tags": ["crm", "startups"],
        "featured_image": {"url": "https://cdn.example.com/crm.png", "alt": "CRM dashboard"},
        "seo": {
            "title": "Choosing a CRM for your startup in 2024 guide",
            "description": "d" * 130,
            "keywords": ["crm", "startup", "sales"],
            "og_title": "Choosing a CRM",
            "og_description": "How to pick a CRM",
            "og_image": {"url": "https://cdn.example.com/og.png"},
            "canonical_url": "https://example.com/blog/choosing-a-crm",
        },
    }


def test_complete_post_scores_100():
    result = validate_seo_fields(complete_post())
    assert result["score"] == 100
    assert result["status"] == "excellent"
    assert result["issues"] == []
    assert result["warnings"] == []


def test_empty_post_collects_every_penalty():
    result = validate_seo_fields({})
    assert result["score"] == 16
    assert result["status"] == "poor"
    assert {item["field"] for item in result["issues"]} == {
        "seo.title", "seo.description", "seo.og_image", "slug",
    }
    assert result["summary"]["total_issues"] == 4


def test_category_skips_post_only_rules():
    result = validate_seo_fields({}, "category")
    assert result["score"] == 44
    fields = {item["field"] for item in result["issues"] + result["warnings"]}
    assert "excerpt" not in fields
    assert "seo.og_image" not in fields


def test_featured_image_without_alt_and_bad_canonical():
    post = complete_post()
    post["featured_image"] = {"url": "https://cdn.example.com/crm.png"}
    post["seo"]["canonical_url"] = "not a url"
    result = validate_seo_fields(post)
    assert result["score"] == 85


def test_status_and_grade_thresholds():
    assert score_status(90) == "excellent"
    assert score_status(70) == "good"
    assert score_status(50) == "needs-improvement"
    assert score_status(49) == "poor"
    assert get_seo_grade(85)["grade"] == "B"
    assert get_seo_grade(59)["grade"] == "F"


def test_count_words_strips_html():
    assert count_words("<p>Hello <b>big</b> world</p>") == 3
    assert count_words(None) == 0


def test_keyword_usage():
    result = analyze_keyword_usage("<p>crm crm tools for teams</p>", ["crm", "billing"])
    usage = {row["keyword"]: row for row in result["usage"]}
    assert usage["crm"]["count"] == 2
    assert usage["crm"]["status"] == "high"
    assert usage["billing"]["status"] == "missing"
    assert analyze_keyword_usage("text", [])["usage"] == []


def test_recommendations_for_post_without_links():
    post = complete_post()
    types = [rec["type"] for rec in generate_recommendations(post)]
    assert "content" in types
    assert "title" not in types
