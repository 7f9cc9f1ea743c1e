"""Blog category endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db, get_session_factory
from app.core.deps import require_admin
from app.core.responses import paginated, success
from app.models.blog import BlogCategory, BlogCategoryStatus
from app.models.user import User
from app.schemas.blog import BlogCategoryCreate, BlogCategoryOut, BlogCategoryUpdate
from app.schemas.common import SlugGenerate
from app.services.blog_category_service import BlogCategoryService
from app.services.seo_audit_service import SeoAuditService
from app.services.tracking import track_view

router = APIRouter()


def _out(category) -> BlogCategoryOut:
    return BlogCategoryOut.model_validate(category)


def _many(categories) -> list[BlogCategoryOut]:
    return [_out(category) for category in categories]


# ---- public ----

@router.get("/")
async def list_public_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
):
    result = await BlogCategoryService(db).list_categories(public_only=True, page=page, limit=limit)
    return paginated(_many(result.items), result.pagination)


@router.get("/menu")
async def blog_category_menu(db: AsyncSession = Depends(get_db)):
    return success(_many(await BlogCategoryService(db).menu()))


@router.get("/featured")
async def featured_blog_categories(limit: int = Query(6, ge=1, le=50), db: AsyncSession = Depends(get_db)):
    return success(_many(await BlogCategoryService(db).featured(limit)))


@router.get("/search")
async def search_blog_categories(
    q: str = "",
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return success(_many(await BlogCategoryService(db).search(q, limit)))


@router.get("/slug/{slug}")
async def blog_category_by_slug(
    slug: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    category = await BlogCategoryService(db).get_by_slug(slug)
    background_tasks.add_task(track_view, session_factory, BlogCategory, category.id)
    return success(_out(category))


# ---- admin ----

@router.get("/admin/all")
async def list_all_blog_categories(
    status: Optional[BlogCategoryStatus] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    result = await BlogCategoryService(db).list_categories(
        status=status.value if status else None, search=search, page=page, limit=limit,
    )
    return paginated(_many(result.items), result.pagination)


@router.post("/admin", status_code=201)
async def create_blog_category(
    data: BlogCategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    category = await BlogCategoryService(db).create(data, current_user.id)
    return success(_out(category), "Blog category created")


@router.get("/admin/validate-slug")
async def validate_blog_category_slug(
    slug: str,
    exclude_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await BlogCategoryService(db).validate_slug(slug, exclude_id))


@router.post("/admin/generate-slug")
async def generate_blog_category_slug(
    data: SlugGenerate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success({"slug": await BlogCategoryService(db).generate_slug(data.text, data.exclude_id)})


@router.get("/admin/seo/audit")
async def blog_category_seo_dashboard(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(await SeoAuditService(db).audit_all_categories())


@router.get("/admin/{category_id}")
async def get_blog_category(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(_out(await BlogCategoryService(db).get(category_id)))


@router.get("/admin/{category_id}/seo-audit")
async def audit_blog_category_seo(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await SeoAuditService(db).audit_category(category_id))


@router.put("/admin/{category_id}")
async def update_blog_category(
    category_id: UUID,
    data: BlogCategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    category = await BlogCategoryService(db).update(category_id, data, current_user.id)
    return success(_out(category), "Blog category updated")


@router.delete("/admin/{category_id}")
async def delete_blog_category(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    await BlogCategoryService(db).delete(category_id)
    return success(message="Blog category deleted")


@router.post("/admin/{category_id}/update-counters")
async def update_blog_category_counters(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    service = BlogCategoryService(db)
    await service.get(category_id)
    category = await service.update_counters(category_id)
    return success(_out(category), "Blog category counters updated")
