"""Admin dashboard aggregation.

The overview fans out to the perk, category, lead and activity branches
with ``asyncio.gather``. Each branch runs on its own session (an
``AsyncSession`` cannot be shared between concurrent tasks) and degrades to
an empty structure when it fails, so one broken query never blanks the
whole dashboard.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.blog import BlogCategory
from app.models.category import Category, CategoryStatus
from app.models.lead import Lead, LeadStatus
from app.models.perk import Perk, PerkStatus
from app.repositories.blog import BlogCategoryRepository, BlogPostRepository
from app.repositories.category import CategoryRepository
from app.repositories.lead import LeadRepository
from app.repositories.perk import PerkRepository
from app.schemas.common import to_naive_utc
from app.services.analytics_service import GA4Client, ga4_client
from app.services.category_service import build_tree
from app.services.lead_service import HIGH_VALUE_SCORE

logger = logging.getLogger(__name__)

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "365d": 365}
DEFAULT_PERIOD_DAYS = 30
ACTIVITY_DAYS = 7
ACTIVITY_PER_TYPE = 5
DASHBOARD_EXPIRING_DAYS = 30

PERK_STATUS_COLORS = {
    PerkStatus.ACTIVE.value: "#10B981",
    PerkStatus.PENDING.value: "#F59E0B",
    PerkStatus.REJECTED.value: "#EF4444",
    PerkStatus.INACTIVE.value: "#6B7280",
    PerkStatus.EXPIRED.value: "#9CA3AF",
}


@dataclass
class DateRange:
    start: datetime
    end: datetime

    def to_dict(self) -> dict:
        return {"start_date": self.start, "end_date": self.end}


def resolve_date_range(
    period: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """Explicit start and end win; otherwise ``period`` (default 30 days) back from now.

    Bounds are compared against naive UTC columns, so aware datetimes are
    converted first.
    """
    now = now or datetime.utcnow()
    if start_date and end_date:
        return DateRange(to_naive_utc(start_date), to_naive_utc(end_date))
    days = PERIOD_DAYS.get(period or "", DEFAULT_PERIOD_DAYS)
    return DateRange(now - timedelta(days=days), now)


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def perk_brief(perk: Perk) -> dict:
    return {
        "id": perk.id,
        "title": perk.title,
        "slug": perk.slug,
        "vendor_name": perk.vendor_name,
        "status": perk.status,
        "category_id": perk.category_id,
        "views": perk.view_count or 0,
        "clicks": perk.click_count or 0,
        "redemptions": perk.redemption_count or 0,
        "conversion_rate": perk.conversion_rate or 0,
        "end_date": perk.end_date,
        "created_at": perk.created_at,
    }


def lead_brief(lead: Lead) -> dict:
    return {
        "id": lead.id,
        "name": lead.name,
        "email": lead.email,
        "score": lead.lead_score or 0,
        "status": lead.status,
        "source": lead.source,
        "perk_title": lead.perk_title,
        "created_at": lead.created_at,
    }


def empty_perk_analytics() -> dict:
    return {
        "overview": {"total": 0, "active": 0, "pending": 0, "rejected": 0, "featured": 0, "exclusive": 0,
                     "total_views": 0, "total_clicks": 0, "total_redemptions": 0, "avg_conversion_rate": 0},
        "top_performing": [], "by_category": [], "by_status": [], "recent": [], "expiring": [],
        "conversions": [], "trends": [],
    }


def empty_category_analytics() -> dict:
    return {
        "overview": {"total": 0, "root_categories": 0, "subcategories": 0, "with_perks": 0,
                     "avg_perks_per_category": 0},
        "tree": [], "top_categories": [], "performance": [],
        "distribution": {"by_level": {}, "by_status": {}, "by_perk_count": {}},
    }


def empty_lead_analytics() -> dict:
    return {
        "overview": {"total": 0, "conversion_rate": 0, "avg_lead_score": 0, "total_value": 0},
        "funnel": [], "sources": [], "trends": [], "top_performers": [], "recent": [],
        "follow_up": {"total_needing_follow_up": 0, "overdue": 0, "due_today": 0, "due_this_week": 0},
        "quality": {"average_score": 0, "high_quality": 0, "medium_quality": 0, "low_quality": 0,
                    "distribution": {}},
    }


def category_distribution(categories: list[Category]) -> dict:
    distribution: dict[str, dict] = {
        "by_level": {level: 0 for level in range(4)},
        "by_status": {CategoryStatus.ACTIVE.value: 0, CategoryStatus.INACTIVE.value: 0},
        "by_perk_count": {"empty": 0, "small": 0, "medium": 0, "large": 0},
    }
    for category in categories:
        distribution["by_level"][category.level] = distribution["by_level"].get(category.level, 0) + 1
        status = CategoryStatus.ACTIVE.value if category.status == CategoryStatus.ACTIVE.value else CategoryStatus.INACTIVE.value
        distribution["by_status"][status] += 1

        perk_count = category.perk_count or 0
        if perk_count == 0:
            bucket = "empty"
        elif perk_count <= 5:
            bucket = "small"
        elif perk_count <= 20:
            bucket = "medium"
        else:
            bucket = "large"
        distribution["by_perk_count"][bucket] += 1
    return distribution


def category_performance_score(category: Category) -> float:
    return (category.perk_count or 0) * 10 + (category.view_count or 0) * 0.1 + (20 if category.level == 0 else 0)


def merge_activity(perks: list[Perk], leads: list[Lead], categories: list[Category], limit: int = 20) -> list[dict]:
    """One newest-first feed; the sort is stable so equal timestamps keep perk, lead, category order."""
    activities = [
        {
            "type": "perk",
            "action": "created",
            "title": f"New perk: {perk.title}",
            "description": f"Added by {perk.vendor_name or 'Unknown'}",
            "timestamp": perk.created_at,
            "data": {"id": perk.id, "status": perk.status, "category_id": perk.category_id},
        }
        for perk in perks
    ]
    activities.extend(
        {
            "type": "lead",
            "action": "submitted",
            "title": f"New lead: {lead.name}",
            "description": f"{lead.email} - Score: {lead.lead_score}",
            "timestamp": lead.created_at,
            "data": {"id": lead.id, "status": lead.status, "source": lead.source, "score": lead.lead_score},
        }
        for lead in leads
    )
    activities.extend(
        {
            "type": "category",
            "action": "created",
            "title": f"New category: {category.name}",
            "description": f"Level {category.level} category",
            "timestamp": category.created_at,
            "data": {"id": category.id, "level": category.level, "perk_count": category.perk_count},
        }
        for category in categories
    )
    activities.sort(key=lambda item: item["timestamp"], reverse=True)
    return activities[:limit]


def overall_performance(perks: dict, leads: dict, traffic: dict) -> dict:
    perk_score = (perks["click_through_rate"] + perks["redemption_rate"]) / 2
    lead_score = leads["conversion_rate"]
    traffic_score = (100 - traffic["bounce_rate"]) * traffic["pageviews_per_session"] / 10
    return {
        "perk_performance": round(perk_score, 2),
        "lead_performance": round(lead_score, 2),
        "traffic_performance": round(traffic_score, 2),
        "overall_score": round((perk_score + lead_score + traffic_score) / 3, 2),
    }


class DashboardService:
    def __init__(self, session_factory: async_sessionmaker, ga4: GA4Client = ga4_client):
        self.session_factory = session_factory
        self.ga4 = ga4

    async def _run(self, branch: Callable[..., Awaitable[Any]], *args) -> Any:
        async with self.session_factory() as session:
            return await branch(session, *args)

    async def _degrade(self, name: str, fallback: Callable[[], Any], branch: Callable[..., Awaitable[Any]], *args) -> Any:
        try:
            return await self._run(branch, *args)
        except Exception:
            logger.exception("Dashboard %s branch failed; using empty data", name)
            return fallback()

    # ---- public entry points ----

    async def overview(self, date_range: DateRange) -> dict:
        perks, categories, leads, activity = await asyncio.gather(
            self._degrade("perks", empty_perk_analytics, self._perk_analytics, date_range),
            self._degrade("categories", empty_category_analytics, self._category_analytics, date_range),
            self._degrade("leads", empty_lead_analytics, self._lead_analytics, date_range),
            self._degrade("activity", list, self._recent_activity, 20),
        )
        return {
            "summary": {
                "total_perks": perks["overview"]["total"],
                "total_categories": categories["overview"]["total"],
                "total_leads": leads["overview"]["total"],
                "conversion_rate": leads["overview"].get("conversion_rate", 0),
            },
            "perks": perks,
            "categories": categories,
            "leads": leads,
            "recent_activity": activity,
            "date_range": date_range.to_dict(),
        }

    async def perk_analytics(self, date_range: DateRange) -> dict:
        return await self._run(self._perk_analytics, date_range)

    async def category_analytics(self, date_range: DateRange) -> dict:
        return await self._run(self._category_analytics, date_range)

    async def lead_analytics(self, date_range: DateRange) -> dict:
        return await self._run(self._lead_analytics, date_range)

    async def blog_analytics(self, date_range: DateRange) -> dict:
        return await self._run(self._blog_analytics, date_range)

    async def recent_activity(self, limit: int = 20) -> list[dict]:
        return await self._run(self._recent_activity, limit)

    async def ga4_analytics(self, date_range: DateRange) -> dict:
        return await self.ga4.get_analytics(date_range.start, date_range.end)

    async def performance(self, date_range: DateRange) -> dict:
        perks, leads, ga4 = await asyncio.gather(
            self._run(self._perk_performance),
            self._run(self._lead_performance, date_range),
            self.ga4_analytics(date_range),
        )
        traffic = {
            "active_users": ga4["active_users"],
            "sessions_per_user": round(ga4["sessions"] / ga4["active_users"], 2) if ga4["active_users"] else 0,
            "pageviews_per_session": round(ga4["page_views"] / ga4["sessions"], 2) if ga4["sessions"] else 0,
            "bounce_rate": ga4["bounce_rate"],
            "avg_session_duration": ga4["avg_session_duration"],
        }
        return {"perks": perks, "leads": leads, "traffic": traffic, "overall": overall_performance(perks, leads, traffic)}

    # ---- branches (each receives its own session) ----

    async def _perk_analytics(self, session: AsyncSession, date_range: DateRange) -> dict:
        perks = PerkRepository(session)
        stats = await perks.stats()
        top = await perks.top_by(Perk.view_count, 10)
        by_clicks = await perks.top_by(Perk.click_count, 20)

        categories = await CategoryRepository(session).find(
            Category.status == CategoryStatus.ACTIVE.value, order_by=(Category.perk_count.desc(),), limit=50
        )
        return {
            "overview": {key: stats[key] for key in empty_perk_analytics()["overview"]},
            "top_performing": [perk_brief(p) for p in top],
            "by_category": [
                {"category_id": c.id, "category_name": c.name, "perk_count": c.perk_count or 0,
                 "total_perk_count": c.total_perk_count or 0, "level": c.level}
                for c in categories
            ],
            "by_status": [
                {"status": status, "count": stats[status], "color": color}
                for status, color in PERK_STATUS_COLORS.items()
            ],
            "recent": [perk_brief(p) for p in await perks.recent(ACTIVITY_DAYS, 10)],
            "expiring": [perk_brief(p) for p in await perks.expiring(DASHBOARD_EXPIRING_DAYS)],
            "conversions": [perk_brief(p) for p in by_clicks if (p.click_count or 0) > 0],
            "trends": await perks.daily_created(date_range.start, date_range.end),
        }

    async def _category_analytics(self, session: AsyncSession, date_range: DateRange) -> dict:
        categories = await CategoryRepository(session).find(order_by=(Category.level.asc(), Category.display_order.asc()))
        total = len(categories)
        roots = sum(1 for c in categories if c.level == 0)
        total_perks = sum(c.perk_count or 0 for c in categories)
        public = [c for c in categories if c.status == CategoryStatus.ACTIVE.value and c.is_visible]

        return {
            "overview": {
                "total": total,
                "root_categories": roots,
                "subcategories": total - roots,
                "with_perks": sum(1 for c in categories if (c.perk_count or 0) > 0),
                "avg_perks_per_category": round(total_perks / total, 2) if total else 0,
                "new_in_period": sum(1 for c in categories if date_range.start <= c.created_at <= date_range.end),
            },
            "tree": build_tree(public)[:10],
            "top_categories": [
                {"id": c.id, "name": c.name, "level": c.level, "perk_count": c.perk_count or 0,
                 "total_perk_count": c.total_perk_count or 0}
                for c in sorted(public, key=lambda c: c.total_perk_count or 0, reverse=True)[:10]
            ],
            "performance": sorted(
                (
                    {"category_id": c.id, "category_name": c.name, "perk_count": c.perk_count or 0,
                     "view_count": c.view_count or 0, "level": c.level, "performance": category_performance_score(c)}
                    for c in categories if c.status == CategoryStatus.ACTIVE.value
                ),
                key=lambda row: row["performance"],
                reverse=True,
            )[:20],
            "distribution": category_distribution(categories),
        }

    async def _lead_analytics(self, session: AsyncSession, date_range: DateRange) -> dict:
        leads = LeadRepository(session)
        start, end = date_range.start, date_range.end
        stats = await leads.stats(start, end)
        total = stats["total"]

        top = await leads.find(
            Lead.lead_score >= HIGH_VALUE_SCORE, order_by=(Lead.lead_score.desc(), Lead.created_at.desc()), limit=10
        )
        return {
            "overview": {
                "total": total,
                **{status.value: stats[status.value] for status in LeadStatus},
                "conversion_rate": _pct(stats[LeadStatus.CONVERTED.value], total),
                "avg_lead_score": stats["avg_lead_score"],
                "total_value": stats["total_conversion_value"],
            },
            "funnel": await leads.funnel(start, end),
            "sources": await leads.sources(start, end),
            "trends": await leads.daily(start, end),
            "top_performers": [lead_brief(lead) for lead in top],
            "recent": [lead_brief(lead) for lead in await leads.recent(ACTIVITY_DAYS, 10)],
            "follow_up": await self._follow_up_stats(leads),
            "quality": {
                "average_score": stats["avg_lead_score"],
                "high_quality": stats["high_quality"],
                "medium_quality": stats["medium_quality"],
                "low_quality": stats["low_quality"],
                "distribution": {
                    "excellent": int(stats["high_quality"] / (total or 1) * 100),
                    "good": int(stats["medium_quality"] / (total or 1) * 100),
                    "poor": int(stats["low_quality"] / (total or 1) * 100),
                },
            },
        }

    async def _follow_up_stats(self, leads: LeadRepository) -> dict:
        now = datetime.utcnow()
        open_lead = Lead.status.notin_([LeadStatus.CONVERTED.value, LeadStatus.CLOSED.value])
        end_of_day = now.replace(hour=23, minute=59, second=59, microsecond=999999)
        return {
            "total_needing_follow_up": await leads.count(open_lead, Lead.next_follow_up_at.is_not(None)),
            "overdue": await leads.count(open_lead, Lead.next_follow_up_at < now),
            "due_today": await leads.count(open_lead, Lead.next_follow_up_at >= now, Lead.next_follow_up_at <= end_of_day),
            "due_this_week": await leads.count(
                open_lead, Lead.next_follow_up_at >= now, Lead.next_follow_up_at <= now + timedelta(days=7)
            ),
        }

    async def _recent_activity(self, session: AsyncSession, limit: int = 20) -> list[dict]:
        since = datetime.utcnow() - timedelta(days=ACTIVITY_DAYS)
        perks = await PerkRepository(session).recent(ACTIVITY_DAYS, ACTIVITY_PER_TYPE)
        leads = await LeadRepository(session).recent(ACTIVITY_DAYS, ACTIVITY_PER_TYPE)
        categories = await CategoryRepository(session).find(
            Category.created_at >= since, order_by=(Category.created_at.desc(),), limit=ACTIVITY_PER_TYPE
        )
        return merge_activity(perks, leads, categories, limit)

    async def _blog_analytics(self, session: AsyncSession, date_range: DateRange) -> dict:
        posts = BlogPostRepository(session)
        stats = await posts.stats()
        page = await posts.find_page(published_only=True, page=1, limit=5)
        top_categories = await BlogCategoryRepository(session).find(
            order_by=(BlogCategory.post_count.desc(),), limit=5
        )
        return {
            "overview": stats,
            "recent_posts": [
                {"id": p.id, "title": p.title, "slug": p.slug, "published_at": p.published_at,
                 "views": p.view_count or 0, "shares": p.share_count or 0}
                for p in page.items
            ],
            "top_categories": [
                {"id": c.id, "name": c.name, "post_count": c.post_count or 0, "view_count": c.view_count or 0}
                for c in top_categories
            ],
            "date_range": date_range.to_dict(),
        }

    async def _perk_performance(self, session: AsyncSession) -> dict:
        stats = await PerkRepository(session).stats()
        return {
            "total_views": stats["total_views"],
            "total_clicks": stats["total_clicks"],
            "total_redemptions": stats["total_redemptions"],
            "average_conversion_rate": stats["avg_conversion_rate"],
            "click_through_rate": _pct(stats["total_clicks"], stats["total_views"]),
            "redemption_rate": _pct(stats["total_redemptions"], stats["total_clicks"]),
        }

    async def _lead_performance(self, session: AsyncSession, date_range: DateRange) -> dict:
        stats = await LeadRepository(session).stats(date_range.start, date_range.end)
        total = stats["total"]
        converted = stats[LeadStatus.CONVERTED.value]
        return {
            "total_leads": total,
            "conversion_rate": _pct(converted, total),
            "average_score": stats["avg_lead_score"],
            "total_value": stats["total_conversion_value"],
            "average_value": round(stats["total_conversion_value"] / converted, 2) if converted else 0,
            "response_rate": _pct(stats[LeadStatus.CONTACTED.value], total),
        }
