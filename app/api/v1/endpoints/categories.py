"""Perk category endpoints: public navigation and admin management."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db, get_session_factory
from app.core.deps import require_admin
from app.core.responses import paginated, success
from app.models.category import Category, CategoryStatus
from app.models.user import User
from app.schemas.category import CategoryCreate, CategoryOut, CategoryStatusUpdate, CategoryUpdate
from app.schemas.common import SlugGenerate
from app.services.category_service import MAX_TREE_DEPTH, CategoryService
from app.services.tracking import track_view

router = APIRouter()
logger = logging.getLogger(__name__)


def _out(category) -> CategoryOut:
    return CategoryOut.model_validate(category)


def _many(categories) -> list[CategoryOut]:
    return [_out(category) for category in categories]


# ---- public ----

@router.get("/tree")
async def category_tree(
    max_depth: int = Query(MAX_TREE_DEPTH, ge=1, le=MAX_TREE_DEPTH),
    db: AsyncSession = Depends(get_db),
):
    return success(await CategoryService(db).tree(max_depth))


@router.get("/menu")
async def category_menu(db: AsyncSession = Depends(get_db)):
    return success(await CategoryService(db).menu())


@router.get("/filters")
async def category_filters(db: AsyncSession = Depends(get_db)):
    return success(_many(await CategoryService(db).filters()))


@router.get("/featured")
async def featured_categories(limit: int = Query(6, ge=1, le=50), db: AsyncSession = Depends(get_db)):
    return success(_many(await CategoryService(db).featured(limit)))


@router.get("/search")
async def search_categories(
    q: str = "",
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return success(_many(await CategoryService(db).search(q, limit)))


@router.get("/roots")
async def root_categories(db: AsyncSession = Depends(get_db)):
    return success(_many(await CategoryService(db).roots(public_only=True)))


@router.get("/public")
async def public_categories(
    parent_id: Optional[UUID] = None,
    level: Optional[int] = Query(None, ge=0, le=3),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
):
    result = await CategoryService(db).list_categories(
        parent_id=parent_id, level=level, public_only=True, page=page, limit=limit,
    )
    return paginated(_many(result.items), result.pagination)


@router.get("/slug/{slug}")
async def category_by_slug(
    slug: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    category = await CategoryService(db).get_by_slug(slug)
    background_tasks.add_task(track_view, session_factory, Category, category.id)
    return success(_out(category))


# ---- admin: collections ----

@router.get("/")
async def list_categories(
    status: Optional[CategoryStatus] = None,
    parent_id: Optional[UUID] = None,
    level: Optional[int] = Query(None, ge=0, le=3),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    result = await CategoryService(db).list_categories(
        status=status.value if status else None,
        parent_id=parent_id,
        level=level,
        search=search,
        page=page,
        limit=limit,
    )
    return paginated(_many(result.items), result.pagination)


@router.post("/", status_code=201)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    category = await CategoryService(db).create(data, current_user.id)
    return success(_out(category), "Category created")


@router.get("/validate-slug")
async def validate_category_slug(
    slug: str,
    exclude_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await CategoryService(db).validate_slug(slug, exclude_id))


@router.post("/generate-slug")
async def generate_category_slug(
    data: SlugGenerate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success({"slug": await CategoryService(db).generate_slug(data.text, data.exclude_id)})


# ---- single category ----

@router.get("/{category_id}")
async def get_category(
    category_id: UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    category = await CategoryService(db).get_public(category_id)
    background_tasks.add_task(track_view, session_factory, Category, category.id)
    return success(_out(category))


@router.get("/{category_id}/breadcrumb")
async def category_breadcrumb(category_id: UUID, db: AsyncSession = Depends(get_db)):
    return success(await CategoryService(db).breadcrumb(category_id))


@router.get("/{category_id}/subcategories")
async def category_subcategories(category_id: UUID, db: AsyncSession = Depends(get_db)):
    return success(_many(await CategoryService(db).subcategories(category_id)))


@router.get("/{category_id}/admin")
async def get_category_admin(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(_out(await CategoryService(db).get(category_id)))


@router.put("/{category_id}")
async def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    category = await CategoryService(db).update(category_id, data, current_user.id)
    return success(_out(category), "Category updated")


@router.delete("/{category_id}")
async def delete_category(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    await CategoryService(db).delete(category_id)
    return success(message="Category deleted")


@router.post("/{category_id}/image")
async def upload_category_image(
    category_id: UUID,
    image: UploadFile = File(...),
    alt: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    category = await CategoryService(db).upload_image(category_id, image, alt)
    return success(_out(category), "Category image uploaded")


@router.put("/{category_id}/status")
async def update_category_status(
    category_id: UUID,
    data: CategoryStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    category = await CategoryService(db).update_status(category_id, data.status)
    return success(_out(category), "Category status updated")


@router.post("/{category_id}/update-counters")
async def update_category_counters(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    service = CategoryService(db)
    await service.get(category_id)
    category = await service.update_counters(category_id)
    return success(_out(category), "Category counters updated")
