"""Perk category hierarchy: create/move/delete rules, tree building, counters."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.category import MAX_CATEGORY_LEVEL, Category, CategoryStatus
from app.models.perk import Perk, PerkStatus
from app.repositories.base import PaginatedResult
from app.repositories.category import CategoryRepository
from app.repositories.perk import PerkRepository
from app.schemas.category import CategoryCreate, CategoryUpdate
from app.services.blob_storage import blob_service
from app.utils.best_effort import best_effort
from app.utils.slugify import create_unique_slug, generate_slug

logger = logging.getLogger(__name__)

MAX_TREE_DEPTH = 3


def _tree_node(category: Category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "level": category.level,
        "path": category.path,
        "icon": category.icon,
        "color": category.color,
        "image": category.image,
        "perk_count": category.perk_count,
        "total_perk_count": category.total_perk_count,
        "display_order": category.display_order,
        "children": [],
    }


def build_tree(categories: list[Category], max_depth: int = MAX_TREE_DEPTH) -> list[dict]:
    """Nest a flat, ordered category list; nodes deeper than ``max_depth`` are dropped."""
    nodes = {category.id: _tree_node(category) for category in categories}
    roots: list[dict] = []
    for category in categories:
        node = nodes[category.id]
        parent = nodes.get(category.parent_id) if category.parent_id else None
        if category.parent_id is None:
            roots.append(node)
        elif parent is not None and category.level <= max_depth:
            parent["children"].append(node)
    return roots


class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.categories = CategoryRepository(db)

    async def get(self, category_id: UUID) -> Category:
        category = await self.categories.get_by_id(category_id)
        if not category:
            raise NotFoundError("Category not found", "CATEGORY_NOT_FOUND")
        return category

    async def get_public(self, category_id: UUID) -> Category:
        category = await self.get(category_id)
        if category.status != CategoryStatus.ACTIVE.value or not category.is_visible:
            raise NotFoundError("Category not found", "CATEGORY_NOT_FOUND")
        return category

    async def get_by_slug(self, slug: str) -> Category:
        category = await self.categories.get_by_slug(slug)
        if not category or category.status != CategoryStatus.ACTIVE.value or not category.is_visible:
            raise NotFoundError("Category not found", "CATEGORY_NOT_FOUND")
        return category

    async def list_categories(self, **filters) -> PaginatedResult[Category]:
        return await self.categories.find_page(**filters)

    async def _resolve_slug(self, requested: Optional[str], name: str, exclude_id: Optional[UUID] = None) -> str:
        if requested:
            slug = generate_slug(requested)
            if not slug:
                raise ValidationError("Invalid slug", [{"field": "slug", "message": "Slug has no usable characters"}])
            if await self.categories.slug_exists(slug, exclude_id):
                raise ConflictError("A category with this slug already exists", "SLUG_EXISTS")
            return slug
        return await create_unique_slug(name, lambda s: self.categories.slug_exists(s, exclude_id))

    async def _parent_for(self, parent_id: Optional[UUID]) -> Optional[Category]:
        if parent_id is None:
            return None
        parent = await self.categories.get_by_id(parent_id)
        if not parent:
            raise NotFoundError("Parent category not found", "PARENT_NOT_FOUND")
        if parent.level >= MAX_CATEGORY_LEVEL:
            raise ValidationError(
                "Maximum category depth exceeded",
                [{"field": "parent_id", "message": f"Categories can be nested at most {MAX_CATEGORY_LEVEL} levels deep"}],
                code="MAX_DEPTH_EXCEEDED",
            )
        return parent

    async def create(self, data: CategoryCreate, user_id: Optional[UUID]) -> Category:
        parent = await self._parent_for(data.parent_id)
        fields = data.model_dump(mode="python")
        fields["slug"] = await self._resolve_slug(data.slug, data.name)
        fields["level"] = parent.level + 1 if parent else 0
        fields["path"] = f"{parent.path or parent.slug}/{fields['slug']}" if parent else fields["slug"]
        fields["seo_title"] = data.seo_title or data.name[:60]
        fields["seo_description"] = data.seo_description or (data.description or "")[:160] or None
        fields["created_by"] = user_id
        fields["updated_by"] = user_id

        category = await self.categories.create(**fields)
        logger.info("Category created: %s (level %d)", category.slug, category.level)

        if parent:
            await self.update_counters(parent.id)
        return category

    async def update(self, category_id: UUID, data: CategoryUpdate, user_id: Optional[UUID]) -> Category:
        category = await self.get(category_id)
        changes = data.model_dump(exclude_unset=True, mode="python")
        old_parent_id = category.parent_id

        # Renaming keeps the slug; only an explicit new slug changes it
        if changes.get("slug") and changes["slug"] != category.slug:
            changes["slug"] = await self._resolve_slug(changes["slug"], category.name, category.id)
        else:
            changes.pop("slug", None)

        parent_changed = "parent_id" in changes and changes["parent_id"] != old_parent_id
        if parent_changed:
            new_parent_id = changes["parent_id"]
            if new_parent_id is not None:
                if new_parent_id == category.id or new_parent_id in await self.categories.descendant_ids(category.id):
                    raise ValidationError(
                        "Category cannot be moved under itself or one of its descendants",
                        [{"field": "parent_id", "message": "Circular hierarchy"}],
                        code="CIRCULAR_HIERARCHY",
                    )
            parent = await self._parent_for(new_parent_id)
            changes["level"] = parent.level + 1 if parent else 0
            await self._check_subtree_depth(category, changes["level"])

        changes["updated_by"] = user_id
        category = await self.categories.update(category, **changes)

        if parent_changed or "slug" in changes:
            await self._rebuild_paths(category)
        if parent_changed:
            if old_parent_id:
                await self.update_counters(old_parent_id)
            if category.parent_id:
                await self.update_counters(category.parent_id)
        return category

    async def _check_subtree_depth(self, category: Category, new_level: int) -> None:
        deepest = category.level
        for descendant_id in await self.categories.descendant_ids(category.id):
            descendant = await self.categories.get_by_id(descendant_id)
            if descendant:
                deepest = max(deepest, descendant.level)
        if new_level + (deepest - category.level) > MAX_CATEGORY_LEVEL:
            raise ValidationError(
                "Maximum category depth exceeded",
                [{"field": "parent_id", "message": "Moving here would nest subcategories too deep"}],
                code="MAX_DEPTH_EXCEEDED",
            )

    async def _rebuild_paths(self, category: Category) -> None:
        """Recompute level and path for ``category`` and everything below it."""
        parent = await self.categories.get_by_id(category.parent_id) if category.parent_id else None
        category.level = parent.level + 1 if parent else 0
        category.path = f"{parent.path or parent.slug}/{category.slug}" if parent else category.slug
        await self.categories.save(category)
        for child in await self.categories.children(category.id):
            await self._rebuild_paths(child)

    async def delete(self, category_id: UUID) -> None:
        category = await self.get(category_id)
        children = await self.categories.count(Category.parent_id == category.id)
        perks = await PerkRepository(self.db).count(Perk.category_id == category.id)
        if children or perks:
            raise ValidationError(
                "Category cannot be deleted because it has subcategories or perks",
                [{"field": "id", "message": f"{children} subcategories, {perks} perks"}],
                code="CATEGORY_HAS_DEPENDENCIES",
            )

        image = category.image or {}
        parent_id = category.parent_id
        await self.categories.delete(category)
        logger.info("Category deleted: %s", category.slug)

        await best_effort("category image cleanup", blob_service.delete_image(image.get("blob_name")), category=str(category_id))
        if parent_id:
            await self.update_counters(parent_id)

    async def upload_image(self, category_id: UUID, file: UploadFile, alt: Optional[str] = None) -> Category:
        category = await self.get(category_id)
        old_blob = (category.image or {}).get("blob_name")
        image = await blob_service.upload_image(file, "categories", alt or category.name)
        category = await self.categories.update(category, image=image)
        if old_blob:
            await best_effort("old category image cleanup", blob_service.delete_image(old_blob), category=str(category_id))
        return category

    async def update_status(self, category_id: UUID, status: str) -> Category:
        category = await self.get(category_id)
        return await self.categories.update(category, status=status)

    async def update_counters(self, category_id: UUID) -> Optional[Category]:
        """Recompute counters for ``category_id`` and every ancestor above it."""
        category = await self.categories.get_by_id(category_id)
        if not category:
            return None

        perks = PerkRepository(self.db)
        category.perk_count = await perks.count(
            Perk.category_id == category.id,
            Perk.status == PerkStatus.ACTIVE.value,
            Perk.is_visible.is_(True),
        )
        category.subcategory_count = await self.categories.count(Category.parent_id == category.id)

        subtree = [category.id, *await self.categories.descendant_ids(category.id)]
        category.total_perk_count = await perks.count(
            Perk.category_id.in_(subtree),
            Perk.status == PerkStatus.ACTIVE.value,
            Perk.is_visible.is_(True),
        )
        await self.categories.save(category)

        if category.parent_id:
            await self.update_counters(category.parent_id)
        return category

    async def tree(self, max_depth: int = MAX_TREE_DEPTH) -> list[dict]:
        return build_tree(await self.categories.all_public(), max_depth)

    async def breadcrumb(self, category_id: UUID) -> list[dict]:
        category = await self.get(category_id)
        chain = [*await self.categories.ancestors(category), category]
        return [{"id": c.id, "name": c.name, "slug": c.slug, "level": c.level} for c in chain]

    async def subcategories(self, parent_id: UUID, public_only: bool = True) -> list[Category]:
        await self.get(parent_id)
        return await self.categories.children(parent_id, public_only)

    async def roots(self, public_only: bool = False) -> list[Category]:
        return await self.categories.roots(public_only)

    async def menu(self) -> list[dict]:
        return build_tree(await self.categories.menu())

    async def filters(self) -> list[Category]:
        return await self.categories.filters()

    async def featured(self, limit: int = 6) -> list[Category]:
        return await self.categories.featured(limit)

    async def search(self, query: str, limit: int = 20) -> list[Category]:
        if len((query or "").strip()) < 2:
            raise ValidationError(
                "Search query must be at least 2 characters long",
                [{"field": "q", "message": "Too short"}],
                code="INVALID_SEARCH_QUERY",
            )
        return await self.categories.search(query.strip(), limit)

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
