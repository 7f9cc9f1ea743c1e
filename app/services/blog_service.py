"""Blog posts: authoring with image uploads, publishing and engagement counters."""

import logging
import math
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.blog import BlogPost, PostStatus
from app.models.user import User
from app.repositories.base import PaginatedResult
from app.repositories.blog import BlogPostRepository
from app.schemas.blog import BlogPostCreate, BlogPostUpdate
from app.services.blob_storage import MAX_GALLERY_IMAGES, blob_service
from app.services.blog_category_service import BlogCategoryService
from app.services.tracking import increment_counter
from app.utils.best_effort import best_effort
from app.utils.seo_validator import count_words
from app.utils.slugify import create_unique_slug, generate_slug

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200


def calculate_read_time(content: Optional[str]) -> int:
    """Minutes to read at 200 words per minute, never less than one."""
    return max(1, math.ceil(count_words(content) / WORDS_PER_MINUTE))


def _seo_defaults(seo: Optional[dict], title: str, excerpt: Optional[str]) -> dict:
    seo = dict(seo or {})
    seo["title"] = seo.get("title") or title[:60]
    seo["description"] = seo.get("description") or (excerpt or "")[:160] or None
    seo.setdefault("keywords", [])
    return seo


class BlogService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.posts = BlogPostRepository(db)

    async def get(self, post_id: UUID) -> BlogPost:
        post = await self.posts.get_by_id(post_id)
        if not post:
            raise NotFoundError("Blog post not found", "POST_NOT_FOUND")
        return post

    async def get_published(self, post_id: UUID) -> BlogPost:
        post = await self.get(post_id)
        if post.status != PostStatus.PUBLISHED.value or not post.is_visible:
            raise NotFoundError("Blog post not found", "POST_NOT_FOUND")
        return post

    async def get_by_slug(self, slug: str) -> BlogPost:
        post = await self.posts.get_by_slug(slug)
        if not post or post.status != PostStatus.PUBLISHED.value or not post.is_visible:
            raise NotFoundError("Blog post not found", "POST_NOT_FOUND")
        return post

    async def related(self, post: BlogPost, limit: int = 3) -> list[BlogPost]:
        return await self.posts.related(post, limit)

    async def list_published(self, **filters) -> PaginatedResult[BlogPost]:
        return await self.posts.find_page(published_only=True, **filters)

    async def list_all(self, **filters) -> PaginatedResult[BlogPost]:
        return await self.posts.find_page(**filters)

    async def search(self, query: str, page: Optional[int], limit: Optional[int]) -> PaginatedResult[BlogPost]:
        query = (query or "").strip()
        if len(query) < 2:
            raise ValidationError(
                "Search query must be at least 2 characters long",
                [{"field": "q", "message": "Too short"}],
                code="INVALID_SEARCH_QUERY",
            )
        return await self.posts.find_page(search=query, published_only=True, page=page, limit=limit)

    async def by_category(self, category_id: UUID, page: Optional[int], limit: Optional[int]) -> PaginatedResult[BlogPost]:
        await BlogCategoryService(self.db).get(category_id)
        return await self.posts.find_page(category_id=category_id, published_only=True, page=page, limit=limit)

    async def stats(self) -> dict:
        return await self.posts.stats()

    async def _resolve_slug(self, requested: Optional[str], title: str, exclude_id: Optional[UUID] = None) -> str:
        if requested:
            slug = generate_slug(requested)
            if not slug:
                raise ValidationError("Invalid slug", [{"field": "slug", "message": "Slug has no usable characters"}])
            if await self.posts.slug_exists(slug, exclude_id):
                raise ConflictError("A blog post with this slug already exists", "SLUG_EXISTS")
            return slug
        return await self.generate_slug(title, exclude_id)

    async def _refresh_counters(self, *category_ids: Optional[UUID]) -> None:
        service = BlogCategoryService(self.db)
        for category_id in dict.fromkeys(c for c in category_ids if c):
            await service.update_counters(category_id)

    async def create(
        self,
        data: BlogPostCreate,
        user: User,
        featured_image: Optional[UploadFile] = None,
        gallery: Optional[list[UploadFile]] = None,
    ) -> BlogPost:
        gallery = gallery or []
        if len(gallery) > MAX_GALLERY_IMAGES:
            raise ValidationError(
                f"A maximum of {MAX_GALLERY_IMAGES} gallery images is allowed",
                [{"field": "gallery", "message": f"{len(gallery)} images"}],
                code="TOO_MANY_FILES",
            )
        if data.category_id:
            await BlogCategoryService(self.db).get(data.category_id)

        fields = data.model_dump(mode="python", exclude={"featured_image_alt"})
        fields["slug"] = await self._resolve_slug(data.slug, data.title)
        fields["seo"] = _seo_defaults(fields.get("seo"), data.title, data.excerpt)
        fields["read_time"] = calculate_read_time(data.content)
        fields["author_id"] = user.id
        fields["author_name"] = data.author_name or user.name
        if data.status == PostStatus.PUBLISHED.value:
            fields["published_at"] = datetime.utcnow()

        if featured_image:
            fields["featured_image"] = await blob_service.upload_image(
                featured_image, "blog", data.featured_image_alt or data.title
            )
        fields["gallery"] = await blob_service.upload_images(gallery, "blog/gallery")

        post = await self.posts.create(**fields)
        logger.info("Blog post created: %s (%s)", post.slug, post.status)

        await self._refresh_counters(post.category_id)
        return post

    async def update(
        self,
        post_id: UUID,
        data: BlogPostUpdate,
        featured_image: Optional[UploadFile] = None,
        gallery: Optional[list[UploadFile]] = None,
    ) -> BlogPost:
        post = await self.get(post_id)
        gallery = gallery or []
        changes = data.model_dump(exclude_unset=True, mode="python", exclude={"featured_image_alt", "replace_gallery"})
        old_category_id = post.category_id
        stale_blobs: list[Optional[str]] = []

        if changes.get("category_id"):
            await BlogCategoryService(self.db).get(changes["category_id"])
        if changes.get("slug") and changes["slug"] != post.slug:
            changes["slug"] = await self._resolve_slug(changes["slug"], post.title, post.id)
        else:
            changes.pop("slug", None)
        if "content" in changes:
            changes["read_time"] = calculate_read_time(changes["content"])
        if "seo" in changes:
            changes["seo"] = _seo_defaults(
                {**(post.seo or {}), **(changes["seo"] or {})},
                changes.get("title", post.title),
                changes.get("excerpt", post.excerpt),
            )
        # published_at records the first publication only
        if changes.get("status") == PostStatus.PUBLISHED.value and post.published_at is None:
            changes["published_at"] = datetime.utcnow()

        if featured_image:
            changes["featured_image"] = await blob_service.upload_image(
                featured_image, "blog", data.featured_image_alt or changes.get("title", post.title)
            )
            stale_blobs.append((post.featured_image or {}).get("blob_name"))
        if gallery:
            existing = [] if data.replace_gallery else list(post.gallery or [])
            if len(existing) + len(gallery) > MAX_GALLERY_IMAGES:
                raise ValidationError(
                    f"A maximum of {MAX_GALLERY_IMAGES} gallery images is allowed",
                    [{"field": "gallery", "message": f"{len(existing) + len(gallery)} images"}],
                    code="TOO_MANY_FILES",
                )
            if data.replace_gallery:
                stale_blobs.extend(image.get("blob_name") for image in post.gallery or [])
            changes["gallery"] = [*existing, *await blob_service.upload_images(gallery, "blog/gallery")]

        post = await self.posts.update(post, **changes)
        logger.info("Blog post updated: %s", post.slug)

        for blob_name in filter(None, stale_blobs):
            await best_effort("replaced blog image cleanup", blob_service.delete_image(blob_name), post=str(post_id))
        await self._refresh_counters(old_category_id, post.category_id)
        return post

    async def delete(self, post_id: UUID) -> None:
        post = await self.get(post_id)
        blobs = [(post.featured_image or {}).get("blob_name"), *(i.get("blob_name") for i in post.gallery or [])]
        category_id = post.category_id
        await self.posts.delete(post)
        logger.info("Blog post deleted: %s", post_id)

        for blob_name in filter(None, blobs):
            await best_effort("blog image cleanup", blob_service.delete_image(blob_name), post=str(post_id))
        await self._refresh_counters(category_id)

    async def remove_gallery_image(self, post_id: UUID, blob_name: str) -> BlogPost:
        post = await self.get(post_id)
        remaining = [image for image in post.gallery or [] if image.get("blob_name") != blob_name]
        if len(remaining) == len(post.gallery or []):
            raise NotFoundError("Image not found in gallery", "IMAGE_NOT_FOUND")

        post = await self.posts.update(post, gallery=remaining)
        await best_effort("gallery image cleanup", blob_service.delete_image(blob_name), post=str(post_id))
        return post

    async def track_share(self, post_id: UUID) -> BlogPost:
        post = await self.get_published(post_id)
        return await increment_counter(self.db, BlogPost, post.id, "share_count")

    async def track_click(self, post_id: UUID) -> BlogPost:
        post = await self.get_published(post_id)
        return await increment_counter(self.db, BlogPost, post.id, "click_count")

    async def validate_slug(self, slug: str, exclude_id: Optional[UUID] = None) -> dict:
        normalized = generate_slug(slug)
        available = bool(normalized) and not await self.posts.slug_exists(normalized, exclude_id)
        return {
            "slug": normalized,
            "available": available,
            "is_valid": bool(normalized) and normalized == slug,
            "suggested_slug": None if available else await self.generate_slug(slug, exclude_id),
        }

    async def generate_slug(self, text: str, exclude_id: Optional[UUID] = None) -> str:
        return await create_unique_slug(text, lambda s: self.posts.slug_exists(s, exclude_id))
