"""Perk lifecycle: public browsing, admin CRUD with image uploads, moderation."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AppError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.models.perk import ApprovalStatus, Perk, PerkStatus
from app.models.user import User, UserRole
from app.repositories.base import PaginatedResult
from app.repositories.category import CategoryRepository
from app.repositories.perk import PerkFilters, PerkRepository
from app.schemas.perk import PerkCreate, PerkSeo, PerkUpdate
from app.services.blob_storage import MAX_GALLERY_IMAGES, blob_service
from app.services.category_service import CategoryService
from app.services.tracking import increment_counter
from app.utils.best_effort import best_effort
from app.utils.slugify import create_unique_slug, generate_slug

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


def _seo_defaults(seo: dict, title: str, short_description: Optional[str]) -> dict:
    seo = dict(seo or {})
    seo["title"] = seo.get("title") or title[:60]
    seo["description"] = seo.get("description") or (short_description or "")[:160] or None
    seo.setdefault("keywords", [])
    return seo


def _check_gallery_size(count: int) -> None:
    if count > MAX_GALLERY_IMAGES:
        raise ValidationError(
            f"A maximum of {MAX_GALLERY_IMAGES} gallery images is allowed",
            [{"field": "gallery", "message": f"{count} images"}],
            code="TOO_MANY_FILES",
        )


def _image_blobs(images: dict) -> list[str]:
    """Blob names referenced by the main image, vendor logo and gallery of ``images``."""
    blobs = [(images.get("main_image") or {}).get("blob_name"), (images.get("vendor_logo") or {}).get("blob_name")]
    blobs.extend(image.get("blob_name") for image in images.get("gallery") or [])
    return [blob_name for blob_name in blobs if blob_name]


class PerkService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.perks = PerkRepository(db)

    # ---- lookups ----

    async def get(self, perk_id: UUID) -> Perk:
        perk = await self.perks.get_by_id(perk_id)
        if not perk:
            raise NotFoundError("Perk not found", "PERK_NOT_FOUND")
        return perk

    async def get_public(self, perk_id: UUID) -> Perk:
        perk = await self.get(perk_id)
        if perk.status != PerkStatus.ACTIVE.value or not perk.is_visible:
            raise NotFoundError("Perk not found", "PERK_NOT_FOUND")
        return perk

    async def get_by_slug(self, slug: str) -> Perk:
        perk = await self.perks.get_by_slug(slug)
        if not perk or perk.status != PerkStatus.ACTIVE.value or not perk.is_visible:
            raise NotFoundError("Perk not found", "PERK_NOT_FOUND")
        return perk

    async def list_public(
        self, filters: PerkFilters, page: Optional[int], limit: Optional[int], sort_by: Optional[str]
    ) -> PaginatedResult[Perk]:
        filters.public_only = True
        return await self.perks.find_page(filters, page, limit, sort_by)

    async def list_all(
        self, filters: PerkFilters, page: Optional[int], limit: Optional[int], sort_by: Optional[str]
    ) -> PaginatedResult[Perk]:
        filters.public_only = False
        return await self.perks.find_page(filters, page, limit, sort_by)

    async def featured(self, limit: int = 6) -> list[Perk]:
        return await self.perks.featured(limit)

    async def search(self, query: str, filters: PerkFilters, page: Optional[int], limit: Optional[int]):
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ValidationError(
                "Search query must be at least 2 characters long",
                [{"field": "q", "message": "Too short"}],
                code="INVALID_SEARCH_QUERY",
            )
        filters.search = query
        return await self.list_public(filters, page, limit, "popular")

    async def by_category(
        self, category_id: UUID, page: Optional[int], limit: Optional[int], sort_by: Optional[str]
    ) -> PaginatedResult[Perk]:
        """Public perks in a category and all of its subcategories."""
        categories = CategoryRepository(self.db)
        if not await categories.get_by_id(category_id):
            raise NotFoundError("Category not found", "CATEGORY_NOT_FOUND")
        ids = [category_id, *await categories.descendant_ids(category_id)]
        return await self.list_public(PerkFilters(category_ids=ids), page, limit, sort_by)

    async def expiring(self, days: int = 7, limit: Optional[int] = None) -> list[Perk]:
        return await self.perks.expiring(days, limit)

    async def stats(self) -> dict:
        return await self.perks.stats()

    # ---- tracking ----

    async def track_click(self, perk_id: UUID) -> Perk:
        perk = await self.get_public(perk_id)
        return await increment_counter(self.db, Perk, perk.id, "click_count")

    # ---- create / update / delete ----

    async def _resolve_slug(self, requested: Optional[str], title: str, exclude_id: Optional[UUID] = None) -> str:
        if requested:
            slug = generate_slug(requested)
            if not slug:
                raise ValidationError("Invalid slug", [{"field": "slug", "message": "Slug has no usable characters"}])
            if await self.perks.slug_exists(slug, exclude_id):
                raise ConflictError("A perk with this slug already exists", "SLUG_EXISTS")
            return slug
        return await self.generate_slug(title, exclude_id)

    async def _check_category(self, category_id: Optional[UUID]) -> None:
        if category_id and not await CategoryRepository(self.db).get_by_id(category_id):
            raise NotFoundError("Category not found", "CATEGORY_NOT_FOUND")

    async def _refresh_counters(self, *category_ids: Optional[UUID]) -> None:
        service = CategoryService(self.db)
        for category_id in dict.fromkeys(c for c in category_ids if c):
            await service.update_counters(category_id)

    async def _delete_blobs(self, operation: str, blob_names, **context) -> None:
        for blob_name in blob_names:
            await best_effort(operation, blob_service.delete_image(blob_name), **context)

    async def create(
        self,
        data: PerkCreate,
        user: User,
        main_image: Optional[UploadFile] = None,
        vendor_logo: Optional[UploadFile] = None,
        gallery: Optional[list[UploadFile]] = None,
    ) -> Perk:
        gallery = gallery or []
        _check_gallery_size(len(gallery))
        await self._check_category(data.category_id)

        fields = data.model_dump(mode="python", exclude={"main_image_alt", "vendor_logo_alt"})
        fields["slug"] = await self._resolve_slug(data.slug, data.title)
        fields["seo"] = _seo_defaults(fields.get("seo"), data.title, data.short_description)
        fields["created_by"] = user.id
        fields["updated_by"] = user.id

        if main_image:
            fields["main_image"] = await blob_service.upload_image(main_image, "perks", data.main_image_alt or data.title)
        if vendor_logo:
            fields["vendor_logo"] = await blob_service.upload_image(
                vendor_logo, "vendors", data.vendor_logo_alt or data.vendor_name
            )
        fields["gallery"] = await blob_service.upload_images(gallery, "perks/gallery")

        try:
            perk = await self.perks.create(**fields)
        except AppError:
            await self._delete_blobs("unsaved perk image cleanup", _image_blobs(fields), slug=fields["slug"])
            raise
        logger.info("Perk created: %s by %s", perk.slug, user.email)

        await self._refresh_counters(perk.category_id)
        return perk

    async def update(
        self,
        perk_id: UUID,
        data: PerkUpdate,
        user: User,
        main_image: Optional[UploadFile] = None,
        vendor_logo: Optional[UploadFile] = None,
        gallery: Optional[list[UploadFile]] = None,
    ) -> Perk:
        perk = await self.get(perk_id)
        gallery = gallery or []
        changes = data.model_dump(
            exclude_unset=True, mode="python", exclude={"main_image_alt", "vendor_logo_alt", "replace_gallery"}
        )
        old_category_id = perk.category_id
        stale_blobs: list[str] = []
        uploaded: list[str] = []

        if "category_id" in changes:
            await self._check_category(changes["category_id"])
        if changes.get("slug") and changes["slug"] != perk.slug:
            changes["slug"] = await self._resolve_slug(changes["slug"], perk.title, perk.id)
        else:
            changes.pop("slug", None)
        if "seo" in changes:
            changes["seo"] = _seo_defaults(
                {**(perk.seo or {}), **(changes["seo"] or {})},
                changes.get("title", perk.title),
                changes.get("short_description", perk.short_description),
            )

        if main_image:
            changes["main_image"] = await blob_service.upload_image(
                main_image, "perks", data.main_image_alt or changes.get("title", perk.title)
            )
            uploaded.append(changes["main_image"]["blob_name"])
            stale_blobs.append((perk.main_image or {}).get("blob_name"))
        if vendor_logo:
            changes["vendor_logo"] = await blob_service.upload_image(
                vendor_logo, "vendors", data.vendor_logo_alt or changes.get("vendor_name", perk.vendor_name)
            )
            uploaded.append(changes["vendor_logo"]["blob_name"])
            stale_blobs.append((perk.vendor_logo or {}).get("blob_name"))
        if gallery:
            existing = [] if data.replace_gallery else list(perk.gallery or [])
            _check_gallery_size(len(existing) + len(gallery))
            if data.replace_gallery:
                stale_blobs.extend(image.get("blob_name") for image in perk.gallery or [])
            new_images = await blob_service.upload_images(gallery, "perks/gallery")
            uploaded.extend(image["blob_name"] for image in new_images)
            changes["gallery"] = [*existing, *new_images]

        changes["updated_by"] = user.id
        try:
            perk = await self.perks.update(perk, **changes)
        except AppError:
            await self._delete_blobs("unsaved perk image cleanup", uploaded, perk=str(perk_id))
            raise
        logger.info("Perk updated: %s", perk.slug)

        await self._delete_blobs("replaced perk image cleanup", filter(None, stale_blobs), perk=str(perk_id))
        await self._refresh_counters(old_category_id, perk.category_id)
        return perk

    async def update_seo(self, perk_id: UUID, user: User, seo: PerkSeo) -> Perk:
        perk = await self.get(perk_id)
        if user.role != UserRole.SUPER_ADMIN.value and not perk.can_edit_seo(user.id):
            raise AuthorizationError("You can only edit SEO for your own perks", "SEO_EDIT_FORBIDDEN")
        merged = {**(perk.seo or {}), **seo.model_dump(exclude_unset=True)}
        return await self.perks.update(perk, seo=_seo_defaults(merged, perk.title, perk.short_description), updated_by=user.id)

    async def delete(self, perk_id: UUID) -> None:
        perk = await self.get(perk_id)
        blobs = _image_blobs({"main_image": perk.main_image, "vendor_logo": perk.vendor_logo, "gallery": perk.gallery})
        category_id = perk.category_id
        await self.perks.delete(perk)
        logger.info("Perk deleted: %s", perk_id)

        await self._delete_blobs("perk image cleanup", blobs, perk=str(perk_id))
        await self._refresh_counters(category_id)

    # ---- moderation ----

    def _approval_note(self, content: Optional[str], user: User) -> list[dict]:
        if not content:
            return []
        return [{"content": content, "added_by": str(user.id), "added_at": datetime.utcnow().isoformat()}]

    async def approve(self, perk_id: UUID, user: User, notes: Optional[str] = None) -> Perk:
        perk = await self.get(perk_id)
        perk = await self.perks.update(
            perk,
            approval_status=ApprovalStatus.APPROVED.value,
            status=PerkStatus.ACTIVE.value,
            reviewed_by=user.id,
            reviewed_at=datetime.utcnow(),
            rejection_reason=None,
            approval_notes=[*(perk.approval_notes or []), *self._approval_note(notes, user)],
        )
        logger.info("Perk approved: %s by %s", perk.slug, user.email)
        await self._refresh_counters(perk.category_id)
        return perk

    async def reject(self, perk_id: UUID, user: User, reason: str, notes: Optional[str] = None) -> Perk:
        perk = await self.get(perk_id)
        perk = await self.perks.update(
            perk,
            approval_status=ApprovalStatus.REJECTED.value,
            status=PerkStatus.REJECTED.value,
            reviewed_by=user.id,
            reviewed_at=datetime.utcnow(),
            rejection_reason=reason,
            approval_notes=[*(perk.approval_notes or []), *self._approval_note(notes, user)],
        )
        logger.info("Perk rejected: %s by %s (%s)", perk.slug, user.email, reason)
        await self._refresh_counters(perk.category_id)
        return perk

    # ---- slugs ----

    async def validate_slug(self, slug: str, exclude_id: Optional[UUID] = None) -> dict:
        normalized = generate_slug(slug)
        available = bool(normalized) and not await self.perks.slug_exists(normalized, exclude_id)
        return {
            "slug": normalized,
            "available": available,
            "is_valid": bool(normalized) and normalized == slug,
            "suggested_slug": None if available else await self.generate_slug(slug, exclude_id),
        }

    async def generate_slug(self, text: str, exclude_id: Optional[UUID] = None) -> str:
        return await create_unique_slug(text, lambda s: self.perks.slug_exists(s, exclude_id))
