"""Blog category management."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.blog import BlogCategory, BlogCategoryStatus, BlogPost
from app.repositories.base import PaginatedResult
from app.repositories.blog import BlogCategoryRepository, BlogPostRepository
from app.schemas.blog import BlogCategoryCreate, BlogCategoryUpdate
from app.utils.slugify import create_unique_slug, generate_slug

logger = logging.getLogger(__name__)


def _seo_defaults(seo: Optional[dict], name: str, description: Optional[str]) -> dict:
    seo = dict(seo or {})
    seo["title"] = seo.get("title") or name[:60]
    seo["description"] = seo.get("description") or (description or "")[:160] or None
    seo.setdefault("keywords", [])
    return seo


class BlogCategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.categories = BlogCategoryRepository(db)

    async def get(self, category_id: UUID) -> BlogCategory:
        category = await self.categories.get_by_id(category_id)
        if not category:
            raise NotFoundError("Blog category not found", "BLOG_CATEGORY_NOT_FOUND")
        return category

    async def get_by_slug(self, slug: str) -> BlogCategory:
        category = await self.categories.get_by_slug(slug)
        if not category or category.status != BlogCategoryStatus.ACTIVE.value or not category.is_visible:
            raise NotFoundError("Blog category not found", "BLOG_CATEGORY_NOT_FOUND")
        return category

    async def list_categories(self, **filters) -> PaginatedResult[BlogCategory]:
        return await self.categories.find_page(**filters)

    async def menu(self) -> list[BlogCategory]:
        return await self.categories.menu()

    async def featured(self, limit: int = 6) -> list[BlogCategory]:
        return await self.categories.featured(limit)

    async def search(self, query: str, limit: int = 20) -> list[BlogCategory]:
        if len((query or "").strip()) < 2:
            raise ValidationError(
                "Search query must be at least 2 characters long",
                [{"field": "q", "message": "Too short"}],
                code="INVALID_SEARCH_QUERY",
            )
        return await self.categories.search(query.strip(), limit)

    async def _check_name(self, name: str, exclude_id: Optional[UUID] = None) -> None:
        existing = await self.categories.get_by_name(name)
        if existing and existing.id != exclude_id:
            raise ConflictError("A blog category with this name already exists", "DUPLICATE_NAME")

    async def _resolve_slug(self, requested: Optional[str], name: str, exclude_id: Optional[UUID] = None) -> str:
        if requested:
            slug = generate_slug(requested)
            if not slug:
                raise ValidationError("Invalid slug", [{"field": "slug", "message": "Slug has no usable characters"}])
            if await self.categories.slug_exists(slug, exclude_id):
                raise ConflictError("A blog category with this slug already exists", "SLUG_EXISTS")
            return slug
        return await self.generate_slug(name, exclude_id)

    async def create(self, data: BlogCategoryCreate, user_id: Optional[UUID]) -> BlogCategory:
        await self._check_name(data.name)
        fields = data.model_dump(mode="python")
        fields["slug"] = await self._resolve_slug(data.slug, data.name)
        fields["seo"] = _seo_defaults(fields.get("seo"), data.name, data.description)
        fields["created_by"] = user_id
        fields["updated_by"] = user_id
        category = await self.categories.create(**fields)
        logger.info("Blog category created: %s", category.slug)
        return category

    async def update(self, category_id: UUID, data: BlogCategoryUpdate, user_id: Optional[UUID]) -> BlogCategory:
        category = await self.get(category_id)
        changes = data.model_dump(exclude_unset=True, mode="python")

        if changes.get("name") and changes["name"].lower() != category.name.lower():
            await self._check_name(changes["name"], category.id)
        if changes.get("slug") and changes["slug"] != category.slug:
            changes["slug"] = await self._resolve_slug(changes["slug"], category.name, category.id)
        else:
            changes.pop("slug", None)
        if "seo" in changes:
            changes["seo"] = _seo_defaults(
                {**(category.seo or {}), **(changes["seo"] or {})},
                changes.get("name", category.name),
                changes.get("description", category.description),
            )

        changes["updated_by"] = user_id
        return await self.categories.update(category, **changes)

    async def delete(self, category_id: UUID) -> None:
        category = await self.get(category_id)
        posts = await BlogPostRepository(self.db).count(BlogPost.category_id == category.id)
        if posts:
            raise ValidationError(
                "Blog category cannot be deleted while it has posts",
                [{"field": "id", "message": f"{posts} posts"}],
                code="CATEGORY_HAS_DEPENDENCIES",
            )
        await self.categories.delete(category)
        logger.info("Blog category deleted: %s", category.slug)

    async def update_counters(self, category_id: Optional[UUID]) -> Optional[BlogCategory]:
        """post_count = published, visible posts in the category."""
        if not category_id:
            return None
        category = await self.categories.get_by_id(category_id)
        if not category:
            return None
        category.post_count = await BlogPostRepository(self.db).count_published_in(category.id)
        return await self.categories.save(category)

    async def validate_slug(self, slug: str, exclude_id: Optional[UUID] = None) -> dict:
        normalized = generate_slug(slug)
        available = bool(normalized) and not await self.categories.slug_exists(normalized, exclude_id)
        return {
            "slug": normalized,
            "available": available,
            "is_valid": bool(normalized) and normalized == slug,
            "suggested_slug": None if available else await self.generate_slug(slug, exclude_id),
        }

    async def generate_slug(self, text: str, exclude_id: Optional[UUID] = None) -> str:
        return await create_unique_slug(text, lambda s: self.categories.slug_exists(s, exclude_id))
