"""Perk queries: public/admin listing, stats and expiring offers."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, case, func, or_, select

from app.models.perk import ApprovalStatus, Perk, PerkStatus
from app.repositories.base import BaseRepository, PaginatedResult


@dataclass
class PerkFilters:
    status: Optional[str] = None
    approval_status: Optional[str] = None
    category_id: Optional[UUID] = None
    category_ids: Optional[list[UUID]] = None
    client_id: Optional[UUID] = None
    is_featured: Optional[bool] = None
    is_exclusive: Optional[bool] = None
    location: Optional[str] = None
    search: Optional[str] = None
    public_only: bool = False


_SORTS = {
    "newest": (Perk.created_at.desc(),),
    "oldest": (Perk.created_at.asc(),),
    "popular": (Perk.view_count.desc(), Perk.created_at.desc()),
    "title": (Perk.title.asc(),),
    "priority": (Perk.priority.desc(), Perk.created_at.desc()),
    "ending_soon": (Perk.end_date.asc(),),
}


def public_conditions(now: Optional[datetime] = None) -> list:
    """Active, visible and inside the availability window."""
    now = now or datetime.utcnow()
    return [
        Perk.status == PerkStatus.ACTIVE.value,
        Perk.is_visible.is_(True),
        or_(Perk.start_date.is_(None), Perk.start_date <= now),
        or_(Perk.end_date.is_(None), Perk.end_date >= now),
    ]


class PerkRepository(BaseRepository[Perk]):
    model = Perk

    def _conditions(self, filters: PerkFilters) -> list:
        conditions = public_conditions() if filters.public_only else []
        if filters.status and not filters.public_only:
            conditions.append(Perk.status == filters.status)
        if filters.approval_status:
            conditions.append(Perk.approval_status == filters.approval_status)
        if filters.category_id:
            conditions.append(Perk.category_id == filters.category_id)
        if filters.category_ids:
            conditions.append(Perk.category_id.in_(filters.category_ids))
        if filters.client_id:
            conditions.append(Perk.client_id == filters.client_id)
        if filters.is_featured is not None:
            conditions.append(Perk.is_featured.is_(filters.is_featured))
        if filters.is_exclusive is not None:
            conditions.append(Perk.is_exclusive.is_(filters.is_exclusive))
        if filters.location:
            conditions.append(Perk.location == filters.location)
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(
                Perk.title.ilike(pattern),
                Perk.short_description.ilike(pattern),
                Perk.description.ilike(pattern),
                Perk.vendor_name.ilike(pattern),
            ))
        return conditions

    async def find_page(
        self,
        filters: PerkFilters,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
    ) -> PaginatedResult[Perk]:
        stmt = select(Perk)
        conditions = self._conditions(filters)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(*_SORTS.get(sort_by or "newest", _SORTS["newest"]))
        return await self.paginate(stmt, page, limit)

    async def featured(self, limit: int) -> list[Perk]:
        return await self.find(
            *public_conditions(), Perk.is_featured.is_(True),
            order_by=(Perk.priority.desc(), Perk.created_at.desc()),
            limit=limit,
        )

    async def expiring(self, days: int, limit: Optional[int] = None) -> list[Perk]:
        now = datetime.utcnow()
        return await self.find(
            Perk.status == PerkStatus.ACTIVE.value,
            Perk.end_date.is_not(None),
            Perk.end_date >= now,
            Perk.end_date <= now + timedelta(days=days),
            order_by=(Perk.end_date.asc(),),
            limit=limit,
        )

    async def count_by_category(self, category_id: UUID, public_only: bool = True) -> int:
        conditions = [Perk.category_id == category_id]
        if public_only:
            conditions.extend([Perk.status == PerkStatus.ACTIVE.value, Perk.is_visible.is_(True)])
        return await self.count(*conditions)

    async def stats(self) -> dict:
        def _count_where(condition):
            return func.sum(case((condition, 1), else_=0))

        row = (await self._execute(select(
            func.count(Perk.id).label("total"),
            _count_where(Perk.status == PerkStatus.ACTIVE.value).label("active"),
            _count_where(Perk.status == PerkStatus.INACTIVE.value).label("inactive"),
            _count_where(Perk.status == PerkStatus.PENDING.value).label("pending"),
            _count_where(Perk.status == PerkStatus.REJECTED.value).label("rejected"),
            _count_where(Perk.status == PerkStatus.EXPIRED.value).label("expired"),
            _count_where(Perk.is_featured.is_(True)).label("featured"),
            _count_where(Perk.is_exclusive.is_(True)).label("exclusive"),
            _count_where(Perk.approval_status == ApprovalStatus.PENDING.value).label("awaiting_approval"),
            func.sum(Perk.view_count).label("total_views"),
            func.sum(Perk.click_count).label("total_clicks"),
            func.sum(Perk.redemption_count).label("total_redemptions"),
            func.avg(Perk.conversion_rate).label("avg_conversion_rate"),
        ))).one()

        return {
            "total": row.total or 0,
            "active": int(row.active or 0),
            "inactive": int(row.inactive or 0),
            "pending": int(row.pending or 0),
            "rejected": int(row.rejected or 0),
            "expired": int(row.expired or 0),
            "featured": int(row.featured or 0),
            "exclusive": int(row.exclusive or 0),
            "awaiting_approval": int(row.awaiting_approval or 0),
            "total_views": int(row.total_views or 0),
            "total_clicks": int(row.total_clicks or 0),
            "total_redemptions": int(row.total_redemptions or 0),
            "avg_conversion_rate": round(float(row.avg_conversion_rate or 0), 2),
        }

    async def recent(self, days: int, limit: int) -> list[Perk]:
        since = datetime.utcnow() - timedelta(days=days)
        return await self.find(Perk.created_at >= since, order_by=(Perk.created_at.desc(),), limit=limit)

    async def top_by(self, column, limit: int) -> list[Perk]:
        """Active perks ordered by a metric column, highest first."""
        return await self.find(
            Perk.status == PerkStatus.ACTIVE.value,
            order_by=(column.desc(), Perk.created_at.desc()),
            limit=limit,
        )

    async def daily_created(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        day = func.date(Perk.created_at)
        stmt = select(
            day.label("day"),
            func.count(Perk.id).label("perk_count"),
            func.sum(case((Perk.status == PerkStatus.ACTIVE.value, 1), else_=0)).label("active"),
        ).group_by(day).order_by(day)
        if start:
            stmt = stmt.where(Perk.created_at >= start)
        if end:
            stmt = stmt.where(Perk.created_at <= end)
        rows = (await self._execute(stmt)).all()
        return [{"date": str(row.day), "created": row.perk_count, "active": int(row.active or 0)} for row in rows]
