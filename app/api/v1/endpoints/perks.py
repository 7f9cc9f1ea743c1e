"""Perk endpoints.

Admin create/update take multipart form data: a ``data`` field holding the
perk JSON plus optional ``main_image``, ``vendor_logo`` and ``gallery`` files.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db, get_session_factory
from app.core.deps import require_admin, require_client
from app.core.responses import paginated, success
from app.models.perk import ApprovalStatus, Perk, PerkLocation, PerkStatus
from app.models.user import User
from app.repositories.perk import PerkFilters
from app.schemas.common import SlugGenerate, parse_form_json
from app.schemas.perk import PerkApprove, PerkCreate, PerkOut, PerkReject, PerkSeo, PerkUpdate
from app.services.perk_service import PerkService
from app.services.tracking import track_view

router = APIRouter()
logger = logging.getLogger(__name__)


def _out(perk) -> PerkOut:
    return PerkOut.model_validate(perk)


def _page(result) -> dict:
    return paginated([_out(perk) for perk in result.items], result.pagination)


def public_filters(
    category_id: Optional[UUID] = None,
    is_featured: Optional[bool] = None,
    is_exclusive: Optional[bool] = None,
    location: Optional[PerkLocation] = None,
    search: Optional[str] = None,
) -> PerkFilters:
    return PerkFilters(
        category_id=category_id,
        is_featured=is_featured,
        is_exclusive=is_exclusive,
        location=location.value if location else None,
        search=search,
    )


# ---- public ----

@router.get("/")
async def list_perks(
    filters: PerkFilters = Depends(public_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort_by: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    return _page(await PerkService(db).list_public(filters, page, limit, sort_by))


@router.get("/featured")
async def featured_perks(limit: int = Query(6, ge=1, le=50), db: AsyncSession = Depends(get_db)):
    perks = await PerkService(db).featured(limit)
    return success([_out(perk) for perk in perks])


@router.get("/search")
async def search_perks(
    q: str = "",
    filters: PerkFilters = Depends(public_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return _page(await PerkService(db).search(q, filters, page, limit))


@router.get("/slug/{slug}")
async def perk_by_slug(
    slug: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    perk = await PerkService(db).get_by_slug(slug)
    background_tasks.add_task(track_view, session_factory, Perk, perk.id)
    return success(_out(perk))


@router.get("/category/{category_id}")
async def perks_by_category(
    category_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort_by: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    return _page(await PerkService(db).by_category(category_id, page, limit, sort_by))


# ---- admin: collections ----

@router.get("/admin/all")
async def list_all_perks(
    status: Optional[PerkStatus] = None,
    approval_status: Optional[ApprovalStatus] = None,
    category_id: Optional[UUID] = None,
    client_id: Optional[UUID] = None,
    is_featured: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort_by: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    filters = PerkFilters(
        status=status.value if status else None,
        approval_status=approval_status.value if approval_status else None,
        category_id=category_id,
        client_id=client_id,
        is_featured=is_featured,
        search=search,
    )
    return _page(await PerkService(db).list_all(filters, page, limit, sort_by))


@router.get("/admin/stats")
async def perk_stats(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(await PerkService(db).stats())


@router.get("/admin/expiring")
async def expiring_perks(
    days: int = Query(7, ge=1, le=365),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    perks = await PerkService(db).expiring(days, limit)
    return success([_out(perk) for perk in perks])


@router.get("/admin/validate-slug")
async def validate_perk_slug(
    slug: str,
    exclude_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await PerkService(db).validate_slug(slug, exclude_id))


@router.post("/admin/generate-slug")
async def generate_perk_slug(
    data: SlugGenerate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success({"slug": await PerkService(db).generate_slug(data.text, data.exclude_id)})


@router.post("/admin", status_code=201)
async def create_perk(
    data: str = Form(...),
    main_image: Optional[UploadFile] = File(None),
    vendor_logo: Optional[UploadFile] = File(None),
    gallery: Optional[list[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    payload = parse_form_json(PerkCreate, data)
    perk = await PerkService(db).create(payload, current_user, main_image, vendor_logo, gallery)
    return success(_out(perk), "Perk created")


# ---- client ----

@router.get("/client/mine")
async def my_perks(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    filters = PerkFilters(client_id=current_user.id)
    return _page(await PerkService(db).list_all(filters, page, limit, None))


@router.put("/{perk_id}/seo")
async def update_perk_seo(
    perk_id: UUID,
    data: PerkSeo,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_client),
):
    perk = await PerkService(db).update_seo(perk_id, current_user, data)
    return success(_out(perk), "Perk SEO updated")


# ---- admin: single perk ----

@router.get("/admin/{perk_id}")
async def get_perk_admin(perk_id: UUID, db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(_out(await PerkService(db).get(perk_id)))


@router.put("/admin/{perk_id}")
async def update_perk(
    perk_id: UUID,
    data: str = Form(...),
    main_image: Optional[UploadFile] = File(None),
    vendor_logo: Optional[UploadFile] = File(None),
    gallery: Optional[list[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    payload = parse_form_json(PerkUpdate, data)
    perk = await PerkService(db).update(perk_id, payload, current_user, main_image, vendor_logo, gallery)
    return success(_out(perk), "Perk updated")


@router.delete("/admin/{perk_id}")
async def delete_perk(perk_id: UUID, db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    await PerkService(db).delete(perk_id)
    return success(message="Perk deleted")


@router.post("/admin/{perk_id}/approve")
async def approve_perk(
    perk_id: UUID,
    data: PerkApprove,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    perk = await PerkService(db).approve(perk_id, current_user, data.notes)
    return success(_out(perk), "Perk approved")


@router.post("/admin/{perk_id}/reject")
async def reject_perk(
    perk_id: UUID,
    data: PerkReject,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    perk = await PerkService(db).reject(perk_id, current_user, data.reason, data.notes)
    return success(_out(perk), "Perk rejected")


# ---- public: single perk ----

@router.get("/{perk_id}")
async def get_perk(
    perk_id: UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    perk = await PerkService(db).get_public(perk_id)
    background_tasks.add_task(track_view, session_factory, Perk, perk.id)
    return success(_out(perk))


@router.post("/{perk_id}/click")
async def track_perk_click(perk_id: UUID, db: AsyncSession = Depends(get_db)):
    perk = await PerkService(db).track_click(perk_id)
    return success({"id": perk.id, "click_count": perk.click_count})
