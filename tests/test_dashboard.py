"""Tests for dashboard aggregation and the GA4 client."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from app.core.database import async_session
from app.services.analytics_service import GA4Client, GA4Error
from app.services.dashboard_service import DashboardService, resolve_date_range


def test_resolve_date_range_defaults_to_30_days():
    now = datetime(2024, 6, 30, 12, 0)
    dates = resolve_date_range(now=now)
    assert dates.end == now
    assert dates.start == now - timedelta(days=30)

    assert resolve_date_range("7d", now=now).start == now - timedelta(days=7)


def test_resolve_date_range_explicit_dates_win():
    start, end = datetime(2024, 1, 1), datetime(2024, 1, 31)
    dates = resolve_date_range("7d", start, end)
    assert (dates.start, dates.end) == (start, end)

    # A lone start date falls back to the period
    now = datetime(2024, 6, 30)
    assert resolve_date_range("90d", start, None, now=now).start == now - timedelta(days=90)


@pytest.mark.asyncio
async def test_overview_requires_admin(client, client_headers):
    assert (await client.get("/api/v1/dashboard/overview")).status_code == 401
    assert (await client.get("/api/v1/dashboard/overview", headers=client_headers)).status_code == 403


@pytest.mark.asyncio
async def test_invalid_period(client, admin_headers):
    resp = await client.get("/api/v1/dashboard/overview", params={"period": "2w"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_overview_on_empty_database(client, admin_headers):
    resp = await client.get("/api/v1/dashboard/overview", headers=admin_headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["summary"] == {"total_perks": 0, "total_categories": 0, "total_leads": 0, "conversion_rate": 0}
    assert data["recent_activity"] == []


@pytest.mark.asyncio
async def test_overview_with_content(client, admin_headers, active_perk):
    await client.post("/api/v1/leads/", json={"name": "Jane Founder", "email": "jane@startup.io"})

    data = (await client.get("/api/v1/dashboard/overview", params={"period": "7d"}, headers=admin_headers)).json()["data"]
    assert data["summary"]["total_perks"] == 1
    assert data["summary"]["total_categories"] == 1
    assert data["summary"]["total_leads"] == 1
    assert data["perks"]["overview"]["active"] == 1
    assert data["categories"]["overview"]["root_categories"] == 1
    assert data["leads"]["overview"]["new"] == 1
    assert {item["type"] for item in data["recent_activity"]} == {"perk", "lead", "category"}


@pytest.mark.asyncio
async def test_overview_degrades_failed_branch(active_perk):
    service = DashboardService(async_session)
    with patch.object(DashboardService, "_lead_analytics", new=AsyncMock(side_effect=RuntimeError("db gone"))):
        data = await service.overview(resolve_date_range())

    assert data["leads"]["overview"]["total"] == 0
    assert data["leads"]["funnel"] == []
    assert data["summary"]["total_perks"] == 1


@pytest.mark.asyncio
async def test_lead_dashboard(client, admin_headers):
    await client.post("/api/v1/leads/", json={"name": "Jane Founder", "email": "jane@startup.io", "source": "referral"})

    data = (await client.get("/api/v1/dashboard/leads", headers=admin_headers)).json()["data"]
    assert data["overview"]["total"] == 1
    assert data["sources"][0]["source"] == "referral"
    assert data["quality"]["low_quality"] == 1


@pytest.mark.asyncio
async def test_ga4_disabled_returns_zeros(client, admin_headers):
    data = (await client.get("/api/v1/dashboard/ga4", headers=admin_headers)).json()["data"]
    assert data["active_users"] == 0
    assert data["top_pages"] == []

    perf = (await client.get("/api/v1/dashboard/performance", headers=admin_headers)).json()["data"]
    assert perf["traffic"]["sessions_per_user"] == 0
    assert perf["overall"]["traffic_performance"] == 0


@pytest.mark.asyncio
async def test_ga4_api_failure_is_reported_not_raised():
    ga4 = GA4Client("123456", "token")
    with patch.object(GA4Client, "run_report", new=AsyncMock(side_effect=GA4Error("GA4 API error: 403"))):
        data = await ga4.get_analytics(datetime(2024, 1, 1), datetime(2024, 1, 31))

    assert data["error"] == "GA4 data unavailable"
    assert data["sessions"] == 0


@pytest.mark.asyncio
async def test_ga4_totals():
    daily = [
        {"dimensions": {"date": "20240102"}, "metrics": {"activeUsers": 5, "newUsers": 2, "sessions": 8,
                                                         "screenPageViews": 20, "bounceRate": 0.5,
                                                         "averageSessionDuration": 60}},
        {"dimensions": {"date": "20240101"}, "metrics": {"activeUsers": 3, "newUsers": 1, "sessions": 4,
                                                         "screenPageViews": 10, "bounceRate": 0.3,
                                                         "averageSessionDuration": 40}},
    ]
    ga4 = GA4Client("123456", "token")
    with patch.object(GA4Client, "run_report", new=AsyncMock(side_effect=[daily, [], [], [], []])):
        data = await ga4.get_analytics(datetime(2024, 1, 1), datetime(2024, 1, 2))

    assert data["active_users"] == 8
    assert data["sessions"] == 12
    assert data["bounce_rate"] == 40.0
    assert data["avg_session_duration"] == 50.0
    assert [row["date"] for row in data["trends"]] == ["20240101", "20240102"]


@pytest.mark.asyncio
async def test_blog_and_activity_dashboards(client, admin_headers):
    data = (await client.get("/api/v1/dashboard/blog", headers=admin_headers)).json()["data"]
    assert data["overview"]["total"] == 0

    resp = await client.get("/api/v1/dashboard/activity", params={"limit": 5}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == []


def test_resolve_date_range_converts_aware_dates_to_utc():
    start = datetime(2024, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
    end = datetime(2024, 1, 31, tzinfo=timezone.utc)
    dates = resolve_date_range(None, start, end)
    assert dates.start == datetime(2024, 1, 1, 0, 0)
    assert dates.end == datetime(2024, 1, 31)
    assert dates.start.tzinfo is None and dates.end.tzinfo is None


@pytest.mark.asyncio
async def test_category_dashboard_with_utc_dates(client, admin_headers, category):
    resp = await client.get(
        "/api/v1/dashboard/categories",
        params={"start_date": "2020-01-01T00:00:00Z", "end_date": "2099-01-01T00:00:00Z"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["overview"]["new_in_period"] == 1

    data = (await client.get(
        "/api/v1/dashboard/overview",
        params={"start_date": "2020-01-01T00:00:00Z", "end_date": "2099-01-01T00:00:00Z"},
        headers=admin_headers,
    )).json()["data"]
    assert data["categories"]["overview"]["total"] == 1
