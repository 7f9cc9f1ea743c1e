"""Blog post endpoints: public reading, admin authoring and SEO audits."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db, get_session_factory
from app.core.deps import require_admin
from app.core.responses import paginated, success
from app.models.blog import BlogPost, PostStatus
from app.models.user import User
from app.schemas.blog import BlogPostCreate, BlogPostOut, BlogPostUpdate
from app.schemas.common import SlugGenerate, parse_form_json
from app.services.blog_service import BlogService
from app.services.seo_audit_service import SeoAuditService
from app.services.tracking import track_view

router = APIRouter()
logger = logging.getLogger(__name__)


def _out(post) -> BlogPostOut:
    return BlogPostOut.model_validate(post)


def _page(result) -> dict:
    return paginated([_out(post) for post in result.items], result.pagination)


# ---- public ----

@router.get("/")
async def list_published_posts(
    category_id: Optional[UUID] = None,
    is_featured: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
):
    result = await BlogService(db).list_published(
        category_id=category_id, is_featured=is_featured, page=page, limit=limit,
    )
    return _page(result)


@router.get("/search")
async def search_posts(
    q: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return _page(await BlogService(db).search(q, page, limit))


@router.get("/slug/{slug}")
async def post_by_slug(
    slug: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    service = BlogService(db)
    post = await service.get_by_slug(slug)
    related = await service.related(post)
    background_tasks.add_task(track_view, session_factory, BlogPost, post.id)
    return success({"post": _out(post), "related_posts": [_out(p) for p in related]})


@router.get("/category/{category_id}")
async def posts_by_category(
    category_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return _page(await BlogService(db).by_category(category_id, page, limit))


@router.post("/{post_id}/share")
async def track_post_share(post_id: UUID, db: AsyncSession = Depends(get_db)):
    post = await BlogService(db).track_share(post_id)
    return success({"id": post.id, "share_count": post.share_count})


@router.post("/{post_id}/click")
async def track_post_click(post_id: UUID, db: AsyncSession = Depends(get_db)):
    post = await BlogService(db).track_click(post_id)
    return success({"id": post.id, "click_count": post.click_count})


# ---- admin: collections ----

@router.get("/admin/all")
async def list_all_posts(
    status: Optional[PostStatus] = None,
    category_id: Optional[UUID] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    result = await BlogService(db).list_all(
        status=status.value if status else None,
        category_id=category_id,
        search=search,
        page=page,
        limit=limit,
    )
    return _page(result)


@router.get("/admin/stats")
async def blog_stats(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(await BlogService(db).stats())


@router.get("/admin/validate-slug")
async def validate_post_slug(
    slug: str,
    exclude_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await BlogService(db).validate_slug(slug, exclude_id))


@router.post("/admin/generate-slug")
async def generate_post_slug(
    data: SlugGenerate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success({"slug": await BlogService(db).generate_slug(data.text, data.exclude_id)})


@router.get("/admin/seo/audit")
async def seo_audit_dashboard(
    status: Optional[PostStatus] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await SeoAuditService(db).audit_all_posts(status.value if status else None))


@router.get("/admin/seo/critical-issues")
async def seo_critical_issues(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(await SeoAuditService(db).critical_issues())


@router.get("/admin/seo/duplicate-slugs")
async def seo_duplicate_slugs(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(await SeoAuditService(db).duplicate_slugs())


@router.post("/admin", status_code=201)
async def create_post(
    data: str = Form(...),
    featured_image: Optional[UploadFile] = File(None),
    gallery: Optional[list[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    payload = parse_form_json(BlogPostCreate, data)
    post = await BlogService(db).create(payload, current_user, featured_image, gallery)
    return success(_out(post), "Blog post created")


# ---- admin: single post ----

@router.get("/admin/{post_id}")
async def get_post_admin(post_id: UUID, db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(_out(await BlogService(db).get(post_id)))


@router.get("/admin/{post_id}/seo-audit")
async def audit_post_seo(post_id: UUID, db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(await SeoAuditService(db).audit_post(post_id))


@router.put("/admin/{post_id}")
async def update_post(
    post_id: UUID,
    data: str = Form(...),
    featured_image: Optional[UploadFile] = File(None),
    gallery: Optional[list[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    payload = parse_form_json(BlogPostUpdate, data)
    post = await BlogService(db).update(post_id, payload, featured_image, gallery)
    return success(_out(post), "Blog post updated")


@router.delete("/admin/{post_id}")
async def delete_post(post_id: UUID, db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    await BlogService(db).delete(post_id)
    return success(message="Blog post deleted")


@router.delete("/admin/{post_id}/gallery")
async def remove_gallery_image(
    post_id: UUID,
    blob_name: str,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    post = await BlogService(db).remove_gallery_image(post_id, blob_name)
    return success(_out(post), "Gallery image removed")
