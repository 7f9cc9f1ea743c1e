"""Tests for perk endpoints: multipart admin CRUD, moderation, public browsing."""

import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch
from uuid import UUID, uuid4

import pytest

from app.core.database import async_session
from app.core.errors import ConflictError
from app.models.perk import Perk
from app.repositories.perk import PerkRepository
from app.services.blob_storage import blob_service
from app.services.tracking import increment_counter

PNG = ("logo.png", b"\x89PNG\r\n\x1a\n" + b"0" * 64, "image/png")


@pytest.mark.asyncio
async def test_create_perk_from_multipart(client, admin_headers, category, form):
    resp = await client.post(
        "/api/v1/perks/admin",
        data=form(category_id=category["id"], tags=["cloud"], short_description="Credits for startups"),
        headers=admin_headers,
    )

    assert resp.status_code == 201
    perk = resp.json()["data"]
    assert perk["slug"] == "free-cloud-credits"
    assert perk["status"] == "pending"
    assert perk["approval_status"] == "pending"
    assert perk["seo"]["title"] == "Free Cloud Credits"
    assert perk["seo"]["description"] == "Credits for startups"
    assert perk["is_available"] is False


@pytest.mark.asyncio
async def test_create_perk_rejects_bad_json(client, admin_headers):
    resp = await client.post("/api/v1/perks/admin", data={"data": json.dumps({"title": "No"})}, headers=admin_headers)

    assert resp.status_code == 400
    fields = {detail["field"] for detail in resp.json()["error"]["details"]}
    assert {"title", "vendor_name"} <= fields


@pytest.mark.asyncio
async def test_create_perk_rejects_end_before_start(client, admin_headers, form):
    resp = await client.post(
        "/api/v1/perks/admin",
        data=form(start_date="2030-02-01T00:00:00", end_date="2030-01-01T00:00:00"),
        headers=admin_headers,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_titles_get_suffixed_slugs(client, admin_headers, form):
    first = await client.post("/api/v1/perks/admin", data=form(), headers=admin_headers)
    second = await client.post("/api/v1/perks/admin", data=form(), headers=admin_headers)
    assert second.json()["data"]["slug"] == "free-cloud-credits-1"

    resp = await client.post(
        "/api/v1/perks/admin", data=form(slug=first.json()["data"]["slug"]), headers=admin_headers
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "SLUG_EXISTS"


@pytest.mark.asyncio
async def test_create_perk_unknown_category(client, admin_headers, form):
    resp = await client.post(
        "/api/v1/perks/admin",
        data=form(category_id="00000000-0000-0000-0000-000000000000"),
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "CATEGORY_NOT_FOUND"


@pytest.mark.asyncio
async def test_image_upload_goes_to_blob_storage(client, admin_headers, form):
    stored = {"url": "https://acct.blob.core.windows.net/perks-images/perks/x.png", "blob_name": "perks/x.png",
              "filename": "logo.png", "alt": "Free Cloud Credits"}
    with patch.object(blob_service, "upload_image", new=AsyncMock(return_value=stored)) as upload:
        resp = await client.post(
            "/api/v1/perks/admin", data=form(), files={"main_image": PNG}, headers=admin_headers
        )

    assert resp.status_code == 201
    assert resp.json()["data"]["main_image"]["blob_name"] == "perks/x.png"
    upload.assert_awaited_once()


@pytest.mark.asyncio
async def test_image_upload_rejects_non_images(client, admin_headers, form):
    resp = await client.post(
        "/api/v1/perks/admin",
        data=form(),
        files={"main_image": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_FILE_TYPE"


@pytest.mark.asyncio
async def test_image_upload_without_storage_configured(client, admin_headers, form):
    resp = await client.post("/api/v1/perks/admin", data=form(), files={"main_image": PNG}, headers=admin_headers)
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "UPLOAD_UNAVAILABLE"


@pytest.mark.asyncio
async def test_pending_perk_is_hidden_from_public(client, admin_headers, form):
    perk = (await client.post("/api/v1/perks/admin", data=form(), headers=admin_headers)).json()["data"]

    assert (await client.get(f"/api/v1/perks/{perk['id']}")).status_code == 404
    assert (await client.get(f"/api/v1/perks/slug/{perk['slug']}")).status_code == 404
    assert (await client.get("/api/v1/perks/")).json()["pagination"]["total_items"] == 0

    resp = await client.get(f"/api/v1/perks/admin/{perk['id']}", headers=admin_headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_approve_publishes_and_updates_category_counters(client, admin_headers, active_perk, category):
    assert active_perk["status"] == "active"
    assert active_perk["approval_status"] == "approved"
    assert active_perk["reviewed_at"] is not None

    resp = await client.get("/api/v1/perks/")
    assert [p["id"] for p in resp.json()["data"]] == [active_perk["id"]]

    resp = await client.get(f"/api/v1/categories/{category['id']}/admin", headers=admin_headers)
    assert resp.json()["data"]["perk_count"] == 1
    assert resp.json()["data"]["total_perk_count"] == 1


@pytest.mark.asyncio
async def test_reject_requires_reason(client, admin_headers, form):
    perk = (await client.post("/api/v1/perks/admin", data=form(), headers=admin_headers)).json()["data"]

    resp = await client.post(f"/api/v1/perks/admin/{perk['id']}/reject", json={}, headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.post(
        f"/api/v1/perks/admin/{perk['id']}/reject", json={"reason": "Broken affiliate link"}, headers=admin_headers
    )
    data = resp.json()["data"]
    assert data["status"] == "rejected"
    assert data["approval_status"] == "rejected"
    assert data["rejection_reason"] == "Broken affiliate link"


@pytest.mark.asyncio
async def test_public_views_and_clicks(client, active_perk):
    resp = await client.get(f"/api/v1/perks/slug/{active_perk['slug']}")
    assert resp.status_code == 200

    resp = await client.post(f"/api/v1/perks/{active_perk['id']}/click")
    assert resp.json()["data"]["click_count"] == 1

    resp = await client.get(f"/api/v1/perks/{active_perk['id']}")
    # The background view from the slug lookup has landed; this request's view is scheduled after reading
    data = resp.json()["data"]
    assert data["view_count"] == 1
    assert data["conversion_rate"] == 100.0


@pytest.mark.asyncio
async def test_public_filters_and_search(client, admin_headers, active_perk):
    resp = await client.get("/api/v1/perks/", params={"is_featured": True})
    assert resp.json()["pagination"]["total_items"] == 0

    resp = await client.get("/api/v1/perks/search", params={"q": "cloud"})
    assert resp.json()["pagination"]["total_items"] == 1

    resp = await client.get("/api/v1/perks/search", params={"q": "c"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_perks_by_category_includes_subcategories(client, admin_headers, category, form):
    child = (await client.post(
        "/api/v1/categories/", json={"name": "CRM", "parent_id": category["id"]}, headers=admin_headers
    )).json()["data"]
    perk = (await client.post(
        "/api/v1/perks/admin", data=form(category_id=child["id"], status="active"), headers=admin_headers
    )).json()["data"]

    resp = await client.get(f"/api/v1/perks/category/{category['id']}")
    assert [p["id"] for p in resp.json()["data"]] == [perk["id"]]

    resp = await client.get(f"/api/v1/categories/{category['id']}/admin", headers=admin_headers)
    assert resp.json()["data"]["perk_count"] == 0
    assert resp.json()["data"]["total_perk_count"] == 1


@pytest.mark.asyncio
async def test_update_perk_moves_category_counters(client, admin_headers, active_perk, category):
    other = (await client.post("/api/v1/categories/", json={"name": "Marketing"}, headers=admin_headers)).json()["data"]

    resp = await client.put(
        f"/api/v1/perks/admin/{active_perk['id']}",
        data={"data": json.dumps({"category_id": other["id"], "is_featured": True})},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["is_featured"] is True
    assert resp.json()["data"]["slug"] == active_perk["slug"]

    old = (await client.get(f"/api/v1/categories/{category['id']}/admin", headers=admin_headers)).json()["data"]
    new = (await client.get(f"/api/v1/categories/{other['id']}/admin", headers=admin_headers)).json()["data"]
    assert old["perk_count"] == 0
    assert new["perk_count"] == 1


@pytest.mark.asyncio
async def test_delete_perk(client, admin_headers, active_perk, category):
    resp = await client.delete(f"/api/v1/perks/admin/{active_perk['id']}", headers=admin_headers)
    assert resp.status_code == 200

    assert (await client.get(f"/api/v1/perks/admin/{active_perk['id']}", headers=admin_headers)).status_code == 404
    resp = await client.get(f"/api/v1/categories/{category['id']}/admin", headers=admin_headers)
    assert resp.json()["data"]["perk_count"] == 0


@pytest.mark.asyncio
async def test_client_seo_edit_is_limited_to_own_perks(client, admin_headers, client_user, client_headers, form):
    own = (await client.post(
        "/api/v1/perks/admin", data=form(client_id=str(client_user.id)), headers=admin_headers
    )).json()["data"]
    other = (await client.post("/api/v1/perks/admin", data=form(), headers=admin_headers)).json()["data"]

    resp = await client.put(
        f"/api/v1/perks/{own['id']}/seo", json={"keywords": ["cloud", "credits"]}, headers=client_headers
    )
    assert resp.status_code == 200
    seo = resp.json()["data"]["seo"]
    assert seo["keywords"] == ["cloud", "credits"]
    assert seo["title"] == "Free Cloud Credits"

    resp = await client.put(f"/api/v1/perks/{other['id']}/seo", json={"keywords": ["x"]}, headers=client_headers)
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "SEO_EDIT_FORBIDDEN"

    resp = await client.get("/api/v1/perks/client/mine", headers=client_headers)
    assert [p["id"] for p in resp.json()["data"]] == [own["id"]]


@pytest.mark.asyncio
async def test_editor_cannot_edit_perk_seo(client, editor_headers, active_perk):
    resp = await client.put(f"/api/v1/perks/{active_perk['id']}/seo", json={"keywords": []}, headers=editor_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_stats_and_slug_tools(client, admin_headers, active_perk, form):
    await client.post("/api/v1/perks/admin", data=form(title="Another Deal"), headers=admin_headers)

    stats = (await client.get("/api/v1/perks/admin/stats", headers=admin_headers)).json()["data"]
    assert stats["total"] == 2
    assert stats["active"] == 1
    assert stats["pending"] == 1

    resp = await client.get(
        "/api/v1/perks/admin/validate-slug", params={"slug": active_perk["slug"]}, headers=admin_headers
    )
    data = resp.json()["data"]
    assert data["available"] is False
    assert data["suggested_slug"] == "free-cloud-credits-1"

    resp = await client.post(
        "/api/v1/perks/admin/generate-slug", json={"text": "Another Deal!"}, headers=admin_headers
    )
    assert resp.json()["data"]["slug"] == "another-deal-1"


def _stored(blob_name: str) -> dict:
    return {"url": f"https://acct.blob.core.windows.net/perks-images/{blob_name}", "blob_name": blob_name,
            "filename": "logo.png", "alt": "Free Cloud Credits"}


def test_perk_availability_window():
    now = datetime(2024, 6, 1)
    perk = Perk(status="active", is_visible=True)
    assert perk.is_available_at(now) is True

    perk.end_date = now - timedelta(days=1)
    assert perk.is_available_at(now) is False

    perk.end_date, perk.start_date = None, now + timedelta(days=1)
    assert perk.is_available_at(now) is False

    perk.start_date, perk.total_quantity, perk.redeemed_quantity = None, 5, 5
    assert perk.is_available_at(now) is False

    perk.total_quantity, perk.is_visible = None, False
    assert perk.is_available_at(now) is False


@pytest.mark.asyncio
async def test_expired_perk_is_not_available(client, admin_headers, active_perk):
    assert active_perk["is_available"] is True

    resp = await client.put(
        f"/api/v1/perks/admin/{active_perk['id']}",
        data={"data": json.dumps({"start_date": "2020-01-01T00:00:00Z", "end_date": "2020-02-01T00:00:00Z"})},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["is_available"] is False


@pytest.mark.asyncio
async def test_image_replacement_survives_blob_delete_failure(client, admin_headers, form):
    with patch.object(blob_service, "upload_image", new=AsyncMock(return_value=_stored("perks/old.png"))):
        perk = (await client.post(
            "/api/v1/perks/admin", data=form(), files={"main_image": PNG}, headers=admin_headers
        )).json()["data"]

    failing_delete = AsyncMock(side_effect=RuntimeError("storage down"))
    with patch.object(blob_service, "upload_image", new=AsyncMock(return_value=_stored("perks/new.png"))), \
            patch.object(blob_service, "delete_image", new=failing_delete):
        resp = await client.put(
            f"/api/v1/perks/admin/{perk['id']}",
            data={"data": json.dumps({"title": "Cloud Credits Plus"})},
            files={"main_image": PNG},
            headers=admin_headers,
        )

    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Cloud Credits Plus"
    assert resp.json()["data"]["main_image"]["blob_name"] == "perks/new.png"
    failing_delete.assert_awaited_once_with("perks/old.png")

    with patch.object(blob_service, "delete_image", new=AsyncMock(side_effect=RuntimeError("storage down"))):
        resp = await client.delete(f"/api/v1/perks/admin/{perk['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert (await client.get(f"/api/v1/perks/admin/{perk['id']}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_failed_insert_removes_uploaded_images(client, admin_headers, form):
    conflict = ConflictError("A perk with this slug already exists", "SLUG_EXISTS")
    with patch.object(blob_service, "upload_image", new=AsyncMock(return_value=_stored("perks/x.png"))), \
            patch.object(blob_service, "delete_image", new=AsyncMock(return_value=True)) as delete, \
            patch.object(PerkRepository, "create", new=AsyncMock(side_effect=conflict)):
        resp = await client.post(
            "/api/v1/perks/admin", data=form(), files={"main_image": PNG}, headers=admin_headers
        )

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "SLUG_EXISTS"
    delete.assert_awaited_once_with("perks/x.png")


@pytest.mark.asyncio
async def test_counter_increment_sees_concurrent_updates(db, active_perk):
    perk_id = UUID(active_perk["id"])
    loaded = await db.get(Perk, perk_id)

    async with async_session() as other:
        await increment_counter(other, Perk, perk_id, "view_count")
        await increment_counter(other, Perk, perk_id, "view_count")

    perk = await increment_counter(db, Perk, perk_id, "click_count")
    assert perk is loaded
    assert (perk.view_count, perk.click_count) == (2, 1)
    assert perk.conversion_rate == 50.0

    assert await increment_counter(db, Perk, uuid4(), "view_count") is None
