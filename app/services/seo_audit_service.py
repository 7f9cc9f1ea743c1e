"""SEO audits over blog posts and blog categories."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.models.blog import BlogCategory, BlogPost, PostStatus
from app.repositories.base import BaseRepository
from app.repositories.blog import BlogCategoryRepository, BlogPostRepository
from app.utils.seo_validator import (
    CATEGORY,
    POST,
    analyze_keyword_usage,
    generate_recommendations,
    get_seo_grade,
    validate_seo_fields,
)

logger = logging.getLogger(__name__)


async def check_duplicate_slug(repo: BaseRepository, slug: str, exclude_id: Optional[UUID] = None) -> dict:
    if await repo.slug_exists(slug, exclude_id):
        return {"is_duplicate": True, "message": "This slug is already in use by another record"}
    return {"is_duplicate": False, "message": "Slug is unique"}


def _empty_summary(total_key: str, total: int) -> dict:
    return {
        total_key: total,
        "excellent": 0,
        "good": 0,
        "needs_improvement": 0,
        "poor": 0,
        "critical_issues": 0,
        "missing_meta_descriptions": 0,
        "missing_keywords": 0,
    }


def _bucket(summary: dict, validation: dict) -> None:
    score = validation["score"]
    if score >= 90:
        summary["excellent"] += 1
    elif score >= 70:
        summary["good"] += 1
    elif score >= 50:
        summary["needs_improvement"] += 1
    else:
        summary["poor"] += 1
    if validation["issues"]:
        summary["critical_issues"] += 1


def _audit_row(entity, validation: dict, label: str) -> dict:
    return {
        "id": entity.id,
        label: getattr(entity, label),
        "slug": entity.slug,
        "status": entity.status,
        "score": validation["score"],
        "grade": get_seo_grade(validation["score"])["grade"],
        "issue_count": len(validation["issues"]),
        "warning_count": len(validation["warnings"]),
        "top_issues": validation["issues"][:3],
    }


def _has_og_image(post: BlogPost) -> bool:
    return bool((post.seo or {}).get("og_image") or (post.featured_image or {}).get("url"))


class SeoAuditService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.posts = BlogPostRepository(db)
        self.categories = BlogCategoryRepository(db)

    async def audit_post(self, post_id: UUID) -> dict:
        post = await self.posts.get_by_id(post_id)
        if not post:
            raise NotFoundError("Blog post not found", "POST_NOT_FOUND")

        validation = validate_seo_fields(post, POST)
        keywords = (post.seo or {}).get("keywords")
        return {
            "id": post.id,
            "title": post.title,
            "slug": post.slug,
            "status": post.status,
            "validation": validation,
            "slug_check": await check_duplicate_slug(self.posts, post.slug, post.id),
            "keyword_analysis": analyze_keyword_usage(post.content, keywords) if keywords else None,
            "recommendations": generate_recommendations(post, POST),
            "grade": get_seo_grade(validation["score"]),
            "last_audited": datetime.utcnow(),
        }

    async def audit_category(self, category_id: UUID) -> dict:
        category = await self.categories.get_by_id(category_id)
        if not category:
            raise NotFoundError("Blog category not found", "BLOG_CATEGORY_NOT_FOUND")

        validation = validate_seo_fields(category, CATEGORY)
        return {
            "id": category.id,
            "name": category.name,
            "slug": category.slug,
            "status": category.status,
            "validation": validation,
            "slug_check": await check_duplicate_slug(self.categories, category.slug, category.id),
            "recommendations": generate_recommendations(category, CATEGORY),
            "grade": get_seo_grade(validation["score"]),
            "last_audited": datetime.utcnow(),
        }

    async def audit_all_posts(self, status: Optional[str] = None) -> dict:
        """Dashboard view: score buckets, duplicate slugs and the worst posts first."""
        posts = await self.posts.all_for_audit(status)
        summary = _empty_summary("total_posts", len(posts))
        summary["missing_og_images"] = 0
        audits = []

        for post in posts:
            validation = validate_seo_fields(post, POST)
            _bucket(summary, validation)
            seo = post.seo or {}
            if not seo.get("description"):
                summary["missing_meta_descriptions"] += 1
            if not seo.get("keywords"):
                summary["missing_keywords"] += 1
            if not _has_og_image(post):
                summary["missing_og_images"] += 1
            audits.append(_audit_row(post, validation, "title"))

        duplicates = await self.posts.duplicate_slugs()
        summary["duplicate_slugs"] = len(duplicates)
        audits.sort(key=lambda row: row["score"])
        logger.info("SEO audit of %d posts: %d with critical issues", len(posts), summary["critical_issues"])

        return {"summary": summary, "duplicate_slugs": duplicates, "audits": audits, "audited_at": datetime.utcnow()}

    async def audit_all_categories(self) -> dict:
        categories = await self.categories.find(order_by=(BlogCategory.name.asc(),))
        summary = _empty_summary("total_categories", len(categories))
        audits = []

        for category in categories:
            validation = validate_seo_fields(category, CATEGORY)
            _bucket(summary, validation)
            seo = category.seo or {}
            if not seo.get("description"):
                summary["missing_meta_descriptions"] += 1
            if not seo.get("keywords"):
                summary["missing_keywords"] += 1
            audits.append(_audit_row(category, validation, "name"))

        audits.sort(key=lambda row: row["score"])
        return {"summary": summary, "audits": audits, "audited_at": datetime.utcnow()}

    async def critical_issues(self) -> dict:
        """Published and draft posts missing a meta description, OG image or SEO title."""
        posts = await self.posts.find(
            BlogPost.status.in_([PostStatus.PUBLISHED.value, PostStatus.DRAFT.value]),
            order_by=(BlogPost.created_at.desc(),),
        )
        flagged = []
        for post in posts:
            seo = post.seo or {}
            issues = []
            if not seo.get("description"):
                issues.append({"type": "missing_meta_description", "severity": "high",
                               "message": "Meta description is missing"})
            if not _has_og_image(post):
                issues.append({"type": "missing_og_image", "severity": "high",
                               "message": "Open Graph image is missing"})
            if not seo.get("title"):
                issues.append({"type": "missing_seo_title", "severity": "high", "message": "SEO title is missing"})
            if issues:
                flagged.append({"id": post.id, "title": post.title, "slug": post.slug,
                                "status": post.status, "issues": issues})

        return {"total_critical_issues": len(flagged), "issues": flagged}

    async def duplicate_slugs(self) -> dict:
        duplicates = await self.posts.duplicate_slugs()
        return {"total_duplicates": len(duplicates), "duplicates": duplicates}
