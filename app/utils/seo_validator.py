"""Rule-based SEO scoring of blog posts and categories.

Entities may be ORM objects or plain dicts; both expose ``title``, ``slug``,
``seo`` (dict with title/description/keywords/og_* /canonical_url) and, for
posts, ``content``, ``excerpt``, ``tags`` and ``featured_image``.
"""

import re
from typing import Any
from urllib.parse import urlparse

POST = "post"
CATEGORY = "category"

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_CTA_WORDS = ("learn", "discover", "find out", "get", "download", "read", "explore")


def _field(entity: Any, name: str, default: Any = None) -> Any:
    if isinstance(entity, dict):
        return entity.get(name, default)
    return getattr(entity, name, default)


def _seo(entity: Any) -> dict:
    return _field(entity, "seo") or {}


def _image_url(image: Any) -> str | None:
    return image.get("url") if isinstance(image, dict) else None


def strip_html(html: str | None) -> str:
    if not html:
        return ""
    return _WS_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def count_words(text: str | None) -> int:
    if not text:
        return 0
    return len([word for word in strip_html(text).split() if word])


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


def score_status(score: int) -> str:
    if score >= 90:
        return "excellent"
    if score >= 70:
        return "good"
    if score >= 50:
        return "needs-improvement"
    return "poor"


def _item(field: str, severity: str, message: str, impact: str) -> dict:
    return {"field": field, "severity": severity, "message": message, "impact": impact}


def validate_seo_fields(entity: Any, entity_type: str = POST) -> dict:
    """Score SEO completeness from 100 down, one fixed penalty per problem."""
    issues: list[dict] = []
    warnings: list[dict] = []
    recommendations: list[dict] = []
    score = 100
    seo = _seo(entity)

    title = seo.get("title")
    if not title:
        issues.append(_item("seo.title", "error", "SEO title is missing", "high"))
        score -= 15
    elif len(title) < 30:
        warnings.append(_item(
            "seo.title", "warning",
            f"SEO title is too short ({len(title)} chars). Recommended: 50-60 characters", "medium",
        ))
        score -= 5
    elif len(title) > 60:
        warnings.append(_item(
            "seo.title", "warning",
            f"SEO title is too long ({len(title)} chars). It will be truncated in search results", "medium",
        ))
        score -= 5

    description = seo.get("description")
    if not description:
        issues.append(_item("seo.description", "error", "Meta description is missing", "high"))
        score -= 15
    elif len(description) < 120:
        warnings.append(_item(
            "seo.description", "warning",
            f"Meta description is too short ({len(description)} chars). Recommended: 150-160 characters", "medium",
        ))
        score -= 5
    elif len(description) > 160:
        warnings.append(_item(
            "seo.description", "warning",
            f"Meta description is too long ({len(description)} chars). It will be truncated in search results",
            "medium",
        ))
        score -= 5

    if not seo.get("og_title"):
        warnings.append(_item("seo.og_title", "warning", "Open Graph title is missing. Using SEO title as fallback", "low"))
        score -= 3

    if not seo.get("og_description"):
        warnings.append(_item(
            "seo.og_description", "warning",
            "Open Graph description is missing. Using meta description as fallback", "low",
        ))
        score -= 3

    featured_url = _image_url(_field(entity, "featured_image"))
    if entity_type == POST:
        og_url = _image_url(seo.get("og_image"))
        if not og_url and not featured_url:
            issues.append(_item(
                "seo.og_image", "error",
                "Open Graph image is missing. Required for proper social media sharing", "high",
            ))
            score -= 15
        elif not og_url and featured_url:
            recommendations.append(_item(
                "seo.og_image", "info",
                "Using featured image as OG image. Consider optimizing a specific image for social sharing (1200x630px)",
                "low",
            ))

    keywords = seo.get("keywords") or []
    if not keywords:
        warnings.append(_item("seo.keywords", "warning", "No SEO keywords defined", "medium"))
        score -= 5
    elif len(keywords) < 3:
        recommendations.append(_item(
            "seo.keywords", "info",
            f"Only {len(keywords)} keywords defined. Recommended: 3-5 keywords", "low",
        ))
        score -= 2
    elif len(keywords) > 10:
        warnings.append(_item(
            "seo.keywords", "warning",
            f"Too many keywords ({len(keywords)}). Focus on 3-5 most important keywords", "low",
        ))
        score -= 3

    canonical = seo.get("canonical_url")
    if canonical and not is_valid_url(canonical):
        issues.append(_item("seo.canonical_url", "error", "Canonical URL is not a valid URL", "medium"))
        score -= 10

    slug = _field(entity, "slug")
    if not slug:
        issues.append(_item("slug", "error", "URL slug is missing", "high"))
        score -= 15
    else:
        if len(slug) > 60:
            warnings.append(_item(
                "slug", "warning",
                f"Slug is too long ({len(slug)} chars). Recommended: under 60 characters", "low",
            ))
            score -= 3
        if len(slug.split("-")) > 10:
            recommendations.append(_item("slug", "info", "Slug contains many words. Consider making it more concise", "low"))

    if entity_type == POST:
        content = _field(entity, "content")
        if content:
            words = count_words(content)
            if words < 300:
                warnings.append(_item(
                    "content", "warning",
                    f"Content is short ({words} words). Recommended: at least 300 words for better SEO", "medium",
                ))
                score -= 5
            elif words > 2000:
                recommendations.append(_item(
                    "content", "info",
                    f"Content is lengthy ({words} words). Consider breaking into multiple posts "
                    "or adding a table of contents",
                    "low",
                ))

        excerpt = _field(entity, "excerpt")
        if not excerpt or len(excerpt) < 100:
            warnings.append(_item(
                "excerpt", "warning",
                "Excerpt is too short or missing. It should be compelling and at least 100 characters", "medium",
            ))
            score -= 5

        if not _field(entity, "tags"):
            warnings.append(_item(
                "tags", "warning",
                "No tags defined. Tags help with content discovery and internal linking", "low",
            ))
            score -= 3

        if not featured_url:
            warnings.append(_item(
                "featured_image", "warning",
                "Featured image is missing. Images improve engagement and social sharing", "medium",
            ))
            score -= 5
        elif not (_field(entity, "featured_image") or {}).get("alt"):
            warnings.append(_item(
                "featured_image.alt", "warning",
                "Featured image is missing alt text. Important for accessibility and SEO", "medium",
            ))
            score -= 5

    score = max(0, score)
    return {
        "score": score,
        "status": score_status(score),
        "issues": issues,
        "warnings": warnings,
        "recommendations": recommendations,
        "summary": {
            "total_issues": len(issues),
            "total_warnings": len(warnings),
            "total_recommendations": len(recommendations),
        },
    }


def analyze_keyword_usage(content: str | None, keywords: list[str] | None) -> dict:
    """Whole-word, case-insensitive keyword counts and density in tag-stripped content."""
    if not keywords:
        return {"analysis": "No keywords defined", "usage": []}

    clean = strip_html(content).lower()
    word_count = count_words(content)
    usage = []

    for keyword in keywords:
        pattern = re.compile(rf"\b{re.escape(keyword.lower())}\b", re.IGNORECASE)
        count = len(pattern.findall(clean))
        density = round(count / word_count * 100, 2) if word_count else 0.0

        if count == 0:
            status, message = "missing", "Keyword not found in content"
        elif density < 0.5:
            status, message = "low", "Keyword density is low. Consider using it more naturally"
        elif density > 3:
            status, message = "high", "Keyword density is high. Avoid keyword stuffing"
        else:
            status, message = "good", "Keyword usage is optimal"

        usage.append({
            "keyword": keyword,
            "count": count,
            "density": density,
            "status": status,
            "message": message,
        })

    return {"analysis": "Keyword analysis complete", "usage": usage, "total_word_count": word_count}


def generate_recommendations(entity: Any, entity_type: str = POST) -> list[dict]:
    recommendations: list[dict] = []
    seo = _seo(entity)
    keywords = [k.lower() for k in seo.get("keywords") or []]
    title = _field(entity, "title") or _field(entity, "name")
    slug = _field(entity, "slug")
    description = seo.get("description")

    if title and keywords and not any(k in title.lower() for k in keywords):
        recommendations.append({
            "type": "title", "priority": "high",
            "message": "Consider including one of your target keywords in the title",
        })

    if slug and keywords and not any(k in slug.lower() for k in keywords):
        recommendations.append({
            "type": "slug", "priority": "medium",
            "message": "Consider including your primary keyword in the URL slug",
        })

    if description and keywords and not any(k in description.lower() for k in keywords):
        recommendations.append({
            "type": "description", "priority": "medium",
            "message": "Include your primary keyword in the meta description",
        })

    if description and not any(word in description.lower() for word in _CTA_WORDS):
        recommendations.append({
            "type": "description", "priority": "low",
            "message": 'Add a call-to-action in your meta description (e.g., "Learn more", "Discover how")',
        })

    if entity_type == POST:
        content = _field(entity, "content") or ""
        if content and not re.search(r"<a ", content, re.IGNORECASE):
            recommendations.append({
                "type": "content", "priority": "medium",
                "message": "Add internal links to other relevant blog posts to improve SEO and user engagement",
            })

        image_count = len(re.findall(r"<img ", content, re.IGNORECASE))
        if image_count == 0 and not _image_url(_field(entity, "featured_image")):
            recommendations.append({
                "type": "images", "priority": "medium",
                "message": "Add images to make content more engaging and improve SEO",
            })
        if image_count and len(re.findall(r'alt="', content, re.IGNORECASE)) < image_count:
            recommendations.append({
                "type": "images", "priority": "high",
                "message": "Some images are missing alt text. Add descriptive alt text for better accessibility and SEO",
            })

    return recommendations


def get_seo_grade(score: int) -> dict:
    if score >= 90:
        return {"grade": "A", "color": "green", "label": "Excellent"}
    if score >= 80:
        return {"grade": "B", "color": "blue", "label": "Good"}
    if score >= 70:
        return {"grade": "C", "color": "yellow", "label": "Fair"}
    if score >= 60:
        return {"grade": "D", "color": "orange", "label": "Needs Improvement"}
    return {"grade": "F", "color": "red", "label": "Poor"}
