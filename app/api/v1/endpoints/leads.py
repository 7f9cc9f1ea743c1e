"""Lead capture and pipeline endpoints.

- POST /api/v1/leads/ → Public lead submission
- GET /api/v1/leads/ → Filtered lead list (admin)
- GET /api/v1/leads/search, /stats, /funnel, /sources, /analytics/daily
- GET /api/v1/leads/recent, /high-value, /follow-up, /my-leads, /status/{status}
- GET|PUT|DELETE /api/v1/leads/{id}
- POST /api/v1/leads/{id}/notes, /assign, /follow-up, /contact-attempt, /convert
- PUT /api/v1/leads/{id}/status
- PUT /api/v1/leads/bulk
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_admin
from app.core.responses import paginated, success
from app.models.lead import LeadStatus
from app.models.user import User
from app.repositories.lead import LeadFilters
from app.schemas.common import NaiveDatetime
from app.schemas.lead import (
    LeadAssign,
    LeadBulkUpdate,
    LeadContactAttempt,
    LeadConvert,
    LeadCreate,
    LeadFollowUp,
    LeadNoteCreate,
    LeadOut,
    LeadStatusUpdate,
    LeadUpdate,
)
from app.services.lead_service import HIGH_VALUE_SCORE, LeadService

router = APIRouter()
logger = logging.getLogger(__name__)


def _out(lead) -> LeadOut:
    return LeadOut.model_validate(lead)


def _page(result) -> dict:
    return paginated([_out(lead) for lead in result.items], result.pagination)


def lead_filters(
    status: Optional[LeadStatus] = None,
    source: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[UUID] = None,
    perk_id: Optional[UUID] = None,
    category_id: Optional[UUID] = None,
    date_from: Optional[NaiveDatetime] = None,
    date_to: Optional[NaiveDatetime] = None,
    min_score: Optional[int] = Query(None, ge=0, le=100),
    max_score: Optional[int] = Query(None, ge=0, le=100),
    country: Optional[str] = None,
    city: Optional[str] = None,
    search: Optional[str] = None,
    needs_follow_up: bool = False,
) -> LeadFilters:
    return LeadFilters(
        status=status.value if status else None,
        source=source,
        priority=priority,
        assigned_to=assigned_to,
        perk_id=perk_id,
        category_id=category_id,
        date_from=date_from,
        date_to=date_to,
        min_score=min_score,
        max_score=max_score,
        country=country,
        city=city,
        search=search,
        needs_follow_up=needs_follow_up,
    )


def _tracking(request: Request) -> dict:
    """Request metadata captured alongside a public submission."""
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = forwarded.split(",")[0].strip() or (request.client.host if request.client else None)
    return {
        "ip_address": ip,
        "user_agent": (request.headers.get("user-agent") or "")[:500],
        "referrer": (request.headers.get("referer") or "")[:500],
    }


# ---- public ----

@router.post("/", status_code=201)
async def submit_lead(data: LeadCreate, request: Request, db: AsyncSession = Depends(get_db)):
    lead = await LeadService(db).submit(data, _tracking(request))
    return success(
        {"id": lead.id, "lead_score": lead.lead_score},
        "Thank you for your interest! We will get back to you soon.",
    )


# ---- admin: collections ----

@router.get("/")
async def list_leads(
    filters: LeadFilters = Depends(lead_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort_by: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return _page(await LeadService(db).list_leads(filters, page, limit, sort_by))


@router.get("/search")
async def search_leads(
    q: str = "",
    filters: LeadFilters = Depends(lead_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return _page(await LeadService(db).search(q, filters, page, limit))


@router.get("/stats")
async def lead_stats(
    date_from: Optional[NaiveDatetime] = None,
    date_to: Optional[NaiveDatetime] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await LeadService(db).stats(date_from, date_to))


@router.get("/funnel")
async def lead_funnel(
    date_from: Optional[NaiveDatetime] = None,
    date_to: Optional[NaiveDatetime] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await LeadService(db).funnel(date_from, date_to))


@router.get("/sources")
async def lead_sources(
    date_from: Optional[NaiveDatetime] = None,
    date_to: Optional[NaiveDatetime] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await LeadService(db).sources(date_from, date_to))


@router.get("/analytics/daily")
async def lead_daily_analytics(
    date_from: Optional[NaiveDatetime] = None,
    date_to: Optional[NaiveDatetime] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await LeadService(db).daily_analytics(date_from, date_to))


@router.get("/recent")
async def recent_leads(
    days: int = Query(7, ge=1, le=365),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    leads = await LeadService(db).recent(days, limit)
    return success([_out(lead) for lead in leads])


@router.get("/high-value")
async def high_value_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    filters = LeadFilters(min_score=HIGH_VALUE_SCORE)
    return _page(await LeadService(db).list_leads(filters, page, limit, "score"))


@router.get("/follow-up")
async def follow_up_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    filters = LeadFilters(needs_follow_up=True)
    return _page(await LeadService(db).list_leads(filters, page, limit, "follow_up"))


@router.get("/my-leads")
async def my_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort_by: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    filters = LeadFilters(assigned_to=current_user.id)
    return _page(await LeadService(db).list_leads(filters, page, limit, sort_by))


@router.get("/status/{status}")
async def leads_by_status(
    status: LeadStatus,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    filters = LeadFilters(status=status.value)
    return _page(await LeadService(db).list_leads(filters, page, limit))


@router.put("/bulk")
async def bulk_update_leads(
    data: LeadBulkUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    updated = await LeadService(db).bulk_update(data.lead_ids, data.updates)
    return success({"updated": updated}, f"{updated} leads updated")


# ---- admin: single lead ----

@router.get("/{lead_id}")
async def get_lead(lead_id: UUID, db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(_out(await LeadService(db).get(lead_id)))


@router.put("/{lead_id}")
async def update_lead(
    lead_id: UUID,
    data: LeadUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    lead = await LeadService(db).update(lead_id, data)
    return success(_out(lead), "Lead updated")


@router.delete("/{lead_id}")
async def delete_lead(lead_id: UUID, db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    await LeadService(db).delete(lead_id)
    return success(message="Lead deleted")


@router.post("/{lead_id}/notes")
async def add_lead_note(
    lead_id: UUID,
    data: LeadNoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    lead = await LeadService(db).add_note(lead_id, data.content, data.type, current_user.id)
    return success(_out(lead), "Note added")


@router.post("/{lead_id}/assign")
async def assign_lead(
    lead_id: UUID,
    data: LeadAssign,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    lead = await LeadService(db).assign(lead_id, data.assigned_to)
    return success(_out(lead), "Lead assigned")


@router.put("/{lead_id}/status")
async def update_lead_status(
    lead_id: UUID,
    data: LeadStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    lead = await LeadService(db).update_status(lead_id, data.status, current_user.id, data.note)
    return success(_out(lead), "Lead status updated")


@router.post("/{lead_id}/follow-up")
async def schedule_follow_up(
    lead_id: UUID,
    data: LeadFollowUp,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    lead = await LeadService(db).schedule_follow_up(lead_id, data.follow_up_at, current_user.id, data.note)
    return success(_out(lead), "Follow-up scheduled")


@router.post("/{lead_id}/contact-attempt")
async def record_contact_attempt(
    lead_id: UUID,
    data: LeadContactAttempt,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    lead = await LeadService(db).record_contact_attempt(lead_id, current_user.id, data.note)
    return success(_out(lead), "Contact attempt recorded")


@router.post("/{lead_id}/convert")
async def convert_lead(
    lead_id: UUID,
    data: LeadConvert,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    lead = await LeadService(db).convert(lead_id, data)
    return success(_out(lead), "Lead converted")
