"""Lead queries: filtered listing, search and pipeline aggregates."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, case, func, or_, select, update

from app.models.lead import Lead, LeadStatus
from app.repositories.base import BaseRepository, PaginatedResult


@dataclass
class LeadFilters:
    status: Optional[str] = None
    source: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[UUID] = None
    perk_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_score: Optional[int] = None
    max_score: Optional[int] = None
    country: Optional[str] = None
    city: Optional[str] = None
    search: Optional[str] = None
    needs_follow_up: bool = False


_SORTS = {
    "score": (Lead.lead_score.desc(), Lead.created_at.desc()),
    "name": (Lead.name.asc(),),
    "status": (Lead.status.asc(), Lead.created_at.desc()),
    "follow_up": (Lead.next_follow_up_at.asc(),),
    "newest": (Lead.created_at.desc(),),
    "oldest": (Lead.created_at.asc(),),
}


def _date_conditions(start: Optional[datetime], end: Optional[datetime]) -> list:
    conditions = []
    if start:
        conditions.append(Lead.created_at >= start)
    if end:
        conditions.append(Lead.created_at <= end)
    return conditions


class LeadRepository(BaseRepository[Lead]):
    model = Lead
    conflict_code = "DUPLICATE_SUBMISSION"
    conflict_message = "You have already submitted interest for this perk"

    def _conditions(self, filters: LeadFilters, now: Optional[datetime] = None) -> list:
        conditions = []
        if filters.status:
            conditions.append(Lead.status == filters.status)
        if filters.source:
            conditions.append(Lead.source == filters.source)
        if filters.priority:
            conditions.append(Lead.priority == filters.priority)
        if filters.assigned_to:
            conditions.append(Lead.assigned_to == filters.assigned_to)
        if filters.perk_id:
            conditions.append(Lead.perk_id == filters.perk_id)
        if filters.category_id:
            conditions.append(Lead.category_id == filters.category_id)
        conditions.extend(_date_conditions(filters.date_from, filters.date_to))
        if filters.min_score is not None:
            conditions.append(Lead.lead_score >= filters.min_score)
        if filters.max_score is not None:
            conditions.append(Lead.lead_score <= filters.max_score)
        if filters.country:
            conditions.append(Lead.country.ilike(f"%{filters.country}%"))
        if filters.city:
            conditions.append(Lead.city.ilike(f"%{filters.city}%"))
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(
                Lead.name.ilike(pattern),
                Lead.email.ilike(pattern),
                Lead.company_name.ilike(pattern),
            ))
        if filters.needs_follow_up:
            conditions.append(Lead.next_follow_up_at <= (now or datetime.utcnow()))
            conditions.append(Lead.status.notin_([LeadStatus.CONVERTED.value, LeadStatus.CLOSED.value]))
        return conditions

    async def find_by_email_and_perk(self, email: str, perk_id: UUID) -> Optional[Lead]:
        result = await self._execute(
            select(Lead).where(Lead.email == email.lower(), Lead.perk_id == perk_id)
        )
        return result.scalar_one_or_none()

    async def find_page(
        self,
        filters: LeadFilters,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
    ) -> PaginatedResult[Lead]:
        stmt = select(Lead)
        conditions = self._conditions(filters)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(*_SORTS.get(sort_by or "newest", _SORTS["newest"]))
        return await self.paginate(stmt, page, limit)

    async def recent(self, days: int, limit: int) -> list[Lead]:
        since = datetime.utcnow() - timedelta(days=days)
        return await self.find(Lead.created_at >= since, order_by=(Lead.created_at.desc(),), limit=limit)

    async def bulk_update(self, lead_ids: list[UUID], fields: dict) -> int:
        """Plain UPDATE; lead scores are unaffected by the bulk-editable fields."""
        fields = {**fields, "updated_at": datetime.utcnow()}
        result = await self._execute(update(Lead).where(Lead.id.in_(lead_ids)).values(**fields))
        await self._commit()
        return result.rowcount or 0

    async def stats(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        status_counts = [
            func.sum(case((Lead.status == status.value, 1), else_=0)).label(status.value)
            for status in LeadStatus
        ]
        stmt = select(
            func.count(Lead.id).label("total"),
            *status_counts,
            func.avg(Lead.lead_score).label("avg_lead_score"),
            func.sum(Lead.conversion_value).label("total_conversion_value"),
            func.sum(case((Lead.lead_score > 80, 1), else_=0)).label("high_quality"),
            func.sum(case((and_(Lead.lead_score >= 50, Lead.lead_score <= 80), 1), else_=0)).label("medium_quality"),
            func.sum(case((Lead.lead_score < 50, 1), else_=0)).label("low_quality"),
        )
        conditions = _date_conditions(start, end)
        if conditions:
            stmt = stmt.where(*conditions)
        row = (await self._execute(stmt)).one()

        stats = {"total": row.total or 0}
        for status in LeadStatus:
            stats[status.value] = int(getattr(row, status.value) or 0)
        stats["avg_lead_score"] = round(float(row.avg_lead_score or 0), 1)
        stats["total_conversion_value"] = float(row.total_conversion_value or 0)
        stats["high_quality"] = int(row.high_quality or 0)
        stats["medium_quality"] = int(row.medium_quality or 0)
        stats["low_quality"] = int(row.low_quality or 0)
        return stats

    async def funnel(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        """Count per status and mean days from creation to the last update."""
        stmt = select(Lead.status, Lead.created_at, Lead.updated_at)
        conditions = _date_conditions(start, end)
        if conditions:
            stmt = stmt.where(*conditions)
        rows = (await self._execute(stmt)).all()

        buckets: dict[str, list[float]] = defaultdict(list)
        for status, created_at, updated_at in rows:
            buckets[status].append((updated_at - created_at).total_seconds() / 86400)

        return [
            {
                "status": status,
                "count": len(days),
                "avg_days_to_status": round(sum(days) / len(days), 1),
            }
            for status, days in sorted(buckets.items())
        ]

    async def sources(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        converted = func.sum(case((Lead.status == LeadStatus.CONVERTED.value, 1), else_=0))
        stmt = select(
            Lead.source,
            func.count(Lead.id).label("lead_count"),
            converted.label("converted"),
            func.avg(Lead.lead_score).label("avg_lead_score"),
        ).group_by(Lead.source).order_by(func.count(Lead.id).desc())
        conditions = _date_conditions(start, end)
        if conditions:
            stmt = stmt.where(*conditions)
        rows = (await self._execute(stmt)).all()

        return [
            {
                "source": row.source,
                "count": row.lead_count,
                "converted": int(row.converted or 0),
                "avg_lead_score": round(float(row.avg_lead_score or 0), 1),
                "conversion_rate": round((row.converted or 0) / row.lead_count * 100, 2) if row.lead_count else 0.0,
            }
            for row in rows
        ]

    async def daily(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        day = func.date(Lead.created_at)
        converted = func.sum(case((Lead.status == LeadStatus.CONVERTED.value, 1), else_=0))
        stmt = select(
            day.label("day"),
            func.count(Lead.id).label("lead_count"),
            converted.label("converted"),
            func.avg(Lead.lead_score).label("avg_score"),
            func.sum(Lead.conversion_value).label("total_value"),
        ).group_by(day).order_by(day)
        conditions = _date_conditions(start, end)
        if conditions:
            stmt = stmt.where(*conditions)
        rows = (await self._execute(stmt)).all()

        return [
            {
                "date": str(row.day),
                "count": row.lead_count,
                "converted": int(row.converted or 0),
                "avg_score": round(float(row.avg_score or 0), 1),
                "total_value": float(row.total_value or 0),
                "conversion_rate": round((row.converted or 0) / row.lead_count * 100, 2) if row.lead_count else 0.0,
            }
            for row in rows
        ]
