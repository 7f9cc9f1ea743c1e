"""Tests for lead capture and pipeline endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from app.models.lead import Lead
from app.services.email_service import email_service

LEAD = {"name": "Jane Founder", "email": "Jane@Startup.io"}


async def submit(client, **fields):
    return await client.post("/api/v1/leads/", json={**LEAD, **fields})


@pytest.mark.asyncio
async def test_submit_lead_is_public_and_scored(client, db):
    with patch.object(email_service, "send_lead_notification", new=AsyncMock(return_value=True)) as notify:
        resp = await submit(client, phone="+15550100", company_name="Startup Inc")

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert "Thank you" in body["message"]
    # name 10 + email 15 + phone 10 + company 15 + website source 5
    assert body["data"]["lead_score"] == 55
    notify.assert_awaited_once()

    lead = (await db.execute(select(Lead))).scalar_one()
    assert lead.email == "jane@startup.io"
    assert lead.status == "new"
    assert lead.consent_date is not None


@pytest.mark.asyncio
async def test_submit_lead_survives_email_failure(client):
    with patch.object(email_service, "send_lead_notification", new=AsyncMock(side_effect=RuntimeError("smtp down"))):
        resp = await submit(client)
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_submit_lead_validation(client):
    resp = await client.post("/api/v1/leads/", json={"name": "J", "email": "not-an-email"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    fields = {detail["field"] for detail in body["error"]["details"]}
    assert {"name", "email"} <= fields


@pytest.mark.asyncio
async def test_submit_copies_perk_and_category(client, db, active_perk, category):
    resp = await submit(client, perk_id=active_perk["id"])
    assert resp.status_code == 201

    lead = (await db.execute(select(Lead))).scalar_one()
    assert lead.perk_title == "Free Cloud Credits"
    assert lead.category_name == "Software"


@pytest.mark.asyncio
async def test_duplicate_submission_for_same_perk(client, active_perk):
    first = await submit(client, perk_id=active_perk["id"])
    assert first.status_code == 201

    second = await submit(client, perk_id=active_perk["id"], email="jane@startup.io")
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "DUPLICATE_SUBMISSION"

    # Same email without a perk is a separate inquiry
    third = await submit(client)
    assert third.status_code == 201


@pytest.mark.asyncio
async def test_admin_endpoints_require_auth(client, client_headers):
    assert (await client.get("/api/v1/leads/")).status_code == 401
    assert (await client.get("/api/v1/leads/", headers=client_headers)).status_code == 403


@pytest.mark.asyncio
async def test_list_and_filter_leads(client, editor_headers):
    await submit(client)
    await submit(client, name="Bob Builder", email="bob@example.com", phone="123", company_name="Bob Co")

    resp = await client.get("/api/v1/leads/", headers=editor_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["total_items"] == 2
    assert body["meta"]["showing"] == "1-2 of 2"

    resp = await client.get("/api/v1/leads/", params={"min_score": 50}, headers=editor_headers)
    assert [lead["email"] for lead in resp.json()["data"]] == ["bob@example.com"]

    resp = await client.get("/api/v1/leads/search", params={"q": "bob"}, headers=editor_headers)
    assert resp.json()["pagination"]["total_items"] == 1

    resp = await client.get("/api/v1/leads/search", params={"q": "b"}, headers=editor_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_SEARCH_QUERY"


@pytest.mark.asyncio
async def test_get_lead_includes_derived_fields(client, admin_headers):
    lead_id = (await submit(client)).json()["data"]["id"]

    resp = await client.get(f"/api/v1/leads/{lead_id}", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["age_category"] == "fresh"
    assert data["days_since_creation"] == 0
    assert data["contact_urgency"] == "none"
    assert data["conversion_probability"] == 30

    resp = await client.get("/api/v1/leads/00000000-0000-0000-0000-000000000000", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "LEAD_NOT_FOUND"


@pytest.mark.asyncio
async def test_status_change_to_converted_sets_timestamp(client, admin_headers):
    lead_id = (await submit(client)).json()["data"]["id"]

    resp = await client.put(
        f"/api/v1/leads/{lead_id}/status",
        json={"status": "converted", "note": "Signed the annual plan"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "converted"
    assert data["converted_at"] is not None
    assert data["notes"][0]["content"] == "Signed the annual plan"


@pytest.mark.asyncio
async def test_notes_contact_attempts_and_conversion(client, admin_headers, admin_user):
    lead_id = (await submit(client)).json()["data"]["id"]

    resp = await client.post(
        f"/api/v1/leads/{lead_id}/notes", json={"content": "Asked for a demo", "type": "meeting"}, headers=admin_headers
    )
    assert resp.status_code == 200
    note = resp.json()["data"]["notes"][0]
    assert note["type"] == "meeting"
    assert note["added_by"] == str(admin_user.id)

    resp = await client.post(f"/api/v1/leads/{lead_id}/contact-attempt", json={}, headers=admin_headers)
    assert resp.json()["data"]["contact_attempts"] == 1
    assert resp.json()["data"]["last_contacted_at"] is not None

    resp = await client.post(
        f"/api/v1/leads/{lead_id}/convert",
        json={"conversion_value": 1200, "conversion_type": "purchase"},
        headers=admin_headers,
    )
    data = resp.json()["data"]
    assert data["status"] == "converted"
    assert data["conversion_value"] == 1200

    stats = (await client.get("/api/v1/leads/stats", headers=admin_headers)).json()["data"]
    assert stats["total"] == 1
    assert stats["converted"] == 1
    assert stats["conversion_rate"] == 100.0


@pytest.mark.asyncio
async def test_assign_and_my_leads(client, admin_headers, editor_user, editor_headers):
    lead_id = (await submit(client)).json()["data"]["id"]

    resp = await client.post(
        f"/api/v1/leads/{lead_id}/assign", json={"assigned_to": str(editor_user.id)}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["assigned_at"] is not None

    resp = await client.get("/api/v1/leads/my-leads", headers=editor_headers)
    assert [lead["id"] for lead in resp.json()["data"]] == [lead_id]


@pytest.mark.asyncio
async def test_bulk_update(client, admin_headers):
    ids = [
        (await submit(client, email=f"lead{i}@example.com")).json()["data"]["id"]
        for i in range(3)
    ]

    resp = await client.put(
        "/api/v1/leads/bulk",
        json={"lead_ids": ids[:2], "updates": {"status": "contacted", "priority": "high"}},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["updated"] == 2

    resp = await client.get("/api/v1/leads/status/contacted", headers=admin_headers)
    assert resp.json()["pagination"]["total_items"] == 2

    resp = await client.put(
        "/api/v1/leads/bulk", json={"lead_ids": ids, "updates": {}}, headers=admin_headers
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_delete_lead(client, admin_headers):
    lead_id = (await submit(client)).json()["data"]["id"]

    resp = await client.delete(f"/api/v1/leads/{lead_id}", headers=admin_headers)
    assert resp.status_code == 200
    resp = await client.get(f"/api/v1/leads/{lead_id}", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_score_recomputed_on_every_save(client, admin_headers):
    lead_id = (await submit(client)).json()["data"]["id"]

    resp = await client.put(f"/api/v1/leads/{lead_id}", json={"phone": "+15550100"}, headers=admin_headers)
    assert resp.status_code == 200
    # name 10 + email 15 + phone 10 + website source 5
    assert resp.json()["data"]["lead_score"] == 40

    resp = await client.put(f"/api/v1/leads/{lead_id}", json={"source": "referral"}, headers=admin_headers)
    assert resp.json()["data"]["lead_score"] == 55

    resp = await client.put(f"/api/v1/leads/{lead_id}/status", json={"status": "contacted"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["lead_score"] == 55


@pytest.mark.asyncio
async def test_stats_accept_utc_offset_dates(client, admin_headers):
    await submit(client)

    resp = await client.get(
        "/api/v1/leads/stats",
        params={"date_from": "2020-01-01T00:00:00Z", "date_to": "2099-01-01T00:00:00+02:00"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["total"] == 1

    resp = await client.get(
        "/api/v1/leads/", params={"date_from": "2099-01-01T00:00:00Z"}, headers=admin_headers
    )
    assert resp.json()["pagination"]["total_items"] == 0
