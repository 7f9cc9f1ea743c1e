"""Google Analytics 4 traffic data via the Data API ``runReport`` endpoint."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

GA4_API_URL = "https://analyticsdata.googleapis.com/v1beta"


class GA4Error(Exception):
    pass


def empty_ga4_data() -> dict:
    return {
        "active_users": 0,
        "new_users": 0,
        "sessions": 0,
        "page_views": 0,
        "bounce_rate": 0,
        "avg_session_duration": 0,
        "top_pages": [],
        "user_acquisition": [],
        "device_breakdown": [],
        "location_data": [],
        "trends": [],
    }


def _rows(report: dict) -> list[dict]:
    """Flatten a runReport response into ``{dimensions: {...}, metrics: {...}}`` rows."""
    dimension_names = [h["name"] for h in report.get("dimensionHeaders", [])]
    metric_names = [h["name"] for h in report.get("metricHeaders", [])]
    rows = []
    for row in report.get("rows", []):
        dimensions = {name: value.get("value") for name, value in zip(dimension_names, row.get("dimensionValues", []))}
        metrics = {}
        for name, value in zip(metric_names, row.get("metricValues", [])):
            try:
                metrics[name] = float(value.get("value") or 0)
            except ValueError:
                metrics[name] = 0.0
        rows.append({"dimensions": dimensions, "metrics": metrics})
    return rows


def _total(rows: list[dict], metric: str) -> float:
    return sum(row["metrics"].get(metric, 0) for row in rows)


class GA4Client:
    def __init__(self, property_id: str = "", access_token: str = ""):
        self.property_id = property_id
        self.access_token = access_token

    @property
    def enabled(self) -> bool:
        return bool(self.property_id and self.access_token)

    async def run_report(
        self,
        start: datetime,
        end: datetime,
        metrics: list[str],
        dimensions: Optional[list[str]] = None,
        order_by_metric: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        payload: dict = {
            "dateRanges": [{"startDate": start.strftime("%Y-%m-%d"), "endDate": end.strftime("%Y-%m-%d")}],
            "metrics": [{"name": name} for name in metrics],
            "dimensions": [{"name": name} for name in dimensions or []],
        }
        if order_by_metric:
            payload["orderBys"] = [{"metric": {"metricName": order_by_metric}, "desc": True}]
        if limit:
            payload["limit"] = limit

        url = f"{GA4_API_URL}/properties/{self.property_id}:runReport"
        headers = {"Authorization": f"Bearer {self.access_token}"}
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.post(url, headers=headers, json=payload)

        if response.status_code != 200:
            raise GA4Error(f"GA4 API error: {response.status_code} - {response.text[:200]}")
        return _rows(response.json())

    async def get_analytics(self, start: datetime, end: datetime) -> dict:
        """Traffic overview for the range; zeros when unconfigured or on any API failure."""
        if not self.enabled:
            return empty_ga4_data()

        try:
            daily, pages, devices, locations, acquisition = await asyncio.gather(
                self.run_report(
                    start, end,
                    ["activeUsers", "newUsers", "sessions", "screenPageViews", "bounceRate", "averageSessionDuration"],
                    ["date"],
                ),
                self.run_report(start, end, ["screenPageViews", "sessions"], ["pagePath", "pageTitle"],
                                order_by_metric="screenPageViews", limit=10),
                self.run_report(start, end, ["sessions"], ["deviceCategory"]),
                self.run_report(start, end, ["sessions"], ["country", "city"], order_by_metric="sessions", limit=20),
                self.run_report(start, end, ["newUsers"], ["sessionSource", "sessionMedium"],
                                order_by_metric="newUsers", limit=10),
            )
        except (httpx.HTTPError, GA4Error, KeyError, ValueError) as e:
            logger.warning("GA4 analytics error: %s", e)
            return {**empty_ga4_data(), "error": "GA4 data unavailable"}

        days = len(daily) or 1
        return {
            "active_users": int(_total(daily, "activeUsers")),
            "new_users": int(_total(daily, "newUsers")),
            "sessions": int(_total(daily, "sessions")),
            "page_views": int(_total(daily, "screenPageViews")),
            "bounce_rate": round(_total(daily, "bounceRate") / days * 100, 2),
            "avg_session_duration": round(_total(daily, "averageSessionDuration") / days, 1),
            "top_pages": [
                {"path": r["dimensions"]["pagePath"], "title": r["dimensions"]["pageTitle"],
                 "page_views": int(r["metrics"]["screenPageViews"]), "sessions": int(r["metrics"]["sessions"])}
                for r in pages
            ],
            "device_breakdown": [
                {"device": r["dimensions"]["deviceCategory"], "sessions": int(r["metrics"]["sessions"])}
                for r in devices
            ],
            "location_data": [
                {"country": r["dimensions"]["country"], "city": r["dimensions"]["city"],
                 "sessions": int(r["metrics"]["sessions"])}
                for r in locations
            ],
            "user_acquisition": [
                {"source": r["dimensions"]["sessionSource"], "medium": r["dimensions"]["sessionMedium"],
                 "new_users": int(r["metrics"]["newUsers"])}
                for r in acquisition
            ],
            "trends": [
                {"date": r["dimensions"]["date"], "active_users": int(r["metrics"]["activeUsers"]),
                 "sessions": int(r["metrics"]["sessions"]), "page_views": int(r["metrics"]["screenPageViews"])}
                for r in sorted(daily, key=lambda r: r["dimensions"]["date"])
            ],
        }


ga4_client = GA4Client(settings.GA4_PROPERTY_ID, settings.GA4_ACCESS_TOKEN)
