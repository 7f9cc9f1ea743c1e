"""Admin dashboard endpoints.

Every route accepts ``period`` (7d, 30d, 90d, 365d; default 30 days) or an
explicit ``start_date`` / ``end_date`` pair.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.database import get_session_factory
from app.core.deps import require_admin
from app.core.responses import success
from app.models.user import User
from app.schemas.common import NaiveDatetime
from app.services.dashboard_service import DashboardService, DateRange, resolve_date_range

router = APIRouter()


def date_range(
    period: Optional[str] = Query(None, pattern="^(7d|30d|90d|365d)$"),
    start_date: Optional[NaiveDatetime] = None,
    end_date: Optional[NaiveDatetime] = None,
) -> DateRange:
    return resolve_date_range(period, start_date, end_date)


def dashboard_service(session_factory: async_sessionmaker = Depends(get_session_factory)) -> DashboardService:
    return DashboardService(session_factory)


@router.get("/overview")
async def dashboard_overview(
    dates: DateRange = Depends(date_range),
    service: DashboardService = Depends(dashboard_service),
    _: User = Depends(require_admin),
):
    return success(await service.overview(dates))


@router.get("/perks")
async def dashboard_perks(
    dates: DateRange = Depends(date_range),
    service: DashboardService = Depends(dashboard_service),
    _: User = Depends(require_admin),
):
    return success(await service.perk_analytics(dates))


@router.get("/categories")
async def dashboard_categories(
    dates: DateRange = Depends(date_range),
    service: DashboardService = Depends(dashboard_service),
    _: User = Depends(require_admin),
):
    return success(await service.category_analytics(dates))


@router.get("/leads")
async def dashboard_leads(
    dates: DateRange = Depends(date_range),
    service: DashboardService = Depends(dashboard_service),
    _: User = Depends(require_admin),
):
    return success(await service.lead_analytics(dates))


@router.get("/ga4")
async def dashboard_ga4(
    dates: DateRange = Depends(date_range),
    service: DashboardService = Depends(dashboard_service),
    _: User = Depends(require_admin),
):
    return success(await service.ga4_analytics(dates))


@router.get("/blog")
async def dashboard_blog(
    dates: DateRange = Depends(date_range),
    service: DashboardService = Depends(dashboard_service),
    _: User = Depends(require_admin),
):
    return success(await service.blog_analytics(dates))


@router.get("/activity")
async def dashboard_activity(
    limit: int = Query(20, ge=1, le=100),
    service: DashboardService = Depends(dashboard_service),
    _: User = Depends(require_admin),
):
    return success(await service.recent_activity(limit))


@router.get("/performance")
async def dashboard_performance(
    dates: DateRange = Depends(date_range),
    service: DashboardService = Depends(dashboard_service),
    _: User = Depends(require_admin),
):
    return success(await service.performance(dates))
