"""Tests for blog posts, blog categories and the SEO audit endpoints."""

import json

import pytest
import pytest_asyncio

BLOG = "/api/v1/blog"
BLOG_CATEGORIES = "/api/v1/blog-categories"


def post_form(**fields) -> dict:
    payload = {"title": "Choosing a CRM", "content": "<p>" + "word " * 450 + "</p>", **fields}
    return {"data": json.dumps(payload)}


async def create_post(client, headers, **fields):
    resp = await client.post(f"{BLOG}/admin", data=post_form(**fields), headers=headers)
    assert resp.status_code == 201
    return resp.json()["data"]


async def update_post(client, headers, post_id, **fields):
    return await client.put(f"{BLOG}/admin/{post_id}", data={"data": json.dumps(fields)}, headers=headers)


@pytest_asyncio.fixture
async def blog_category(client, admin_headers):
    resp = await client.post(f"{BLOG_CATEGORIES}/admin", json={"name": "Guides"}, headers=admin_headers)
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_draft_post(client, admin_headers, admin_user):
    post = await create_post(client, admin_headers, excerpt="How to pick one")

    assert post["slug"] == "choosing-a-crm"
    assert post["status"] == "draft"
    assert post["published_at"] is None
    assert post["read_time"] == 3
    assert post["author_name"] == "Admin"
    assert post["author_id"] == str(admin_user.id)
    assert post["seo"]["title"] == "Choosing a CRM"
    assert post["seo"]["description"] == "How to pick one"


@pytest.mark.asyncio
async def test_create_post_requires_admin(client, client_headers):
    resp = await client.post(f"{BLOG}/admin", data=post_form(), headers=client_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_post_rejects_bad_json(client, admin_headers):
    resp = await client.post(f"{BLOG}/admin", data={"data": "{not json"}, headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.post(f"{BLOG}/admin", data={"data": json.dumps({"title": "Hi"})}, headers=admin_headers)
    assert resp.status_code == 400
    fields = {detail["field"] for detail in resp.json()["error"]["details"]}
    assert {"title", "content"} <= fields


@pytest.mark.asyncio
async def test_publishing_sets_published_at_once(client, admin_headers):
    post = await create_post(client, admin_headers, status="published")
    first_published = post["published_at"]
    assert first_published is not None

    await update_post(client, admin_headers, post["id"], status="draft")
    resp = await update_post(client, admin_headers, post["id"], status="published")

    assert resp.status_code == 200
    assert resp.json()["data"]["published_at"] == first_published


@pytest.mark.asyncio
async def test_content_update_recomputes_read_time(client, admin_headers):
    post = await create_post(client, admin_headers)

    resp = await update_post(client, admin_headers, post["id"], content="short")
    assert resp.json()["data"]["read_time"] == 1


@pytest.mark.asyncio
async def test_draft_is_hidden_from_public(client, admin_headers):
    post = await create_post(client, admin_headers)

    assert (await client.get(f"{BLOG}/slug/{post['slug']}")).status_code == 404
    assert (await client.get(f"{BLOG}/")).json()["pagination"]["total_items"] == 0
    assert (await client.post(f"{BLOG}/{post['id']}/share")).status_code == 404


@pytest.mark.asyncio
async def test_public_post_with_related_posts(client, admin_headers, blog_category):
    post = await create_post(client, admin_headers, status="published", category_id=blog_category["id"])
    sibling = await create_post(
        client, admin_headers, title="CRM pricing explained", status="published", category_id=blog_category["id"]
    )
    await create_post(client, admin_headers, title="Unfinished draft", category_id=blog_category["id"])

    resp = await client.get(f"{BLOG}/slug/{post['slug']}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["post"]["id"] == post["id"]
    assert [p["id"] for p in data["related_posts"]] == [sibling["id"]]

    admin_view = (await client.get(f"{BLOG}/admin/{post['id']}", headers=admin_headers)).json()["data"]
    assert admin_view["view_count"] == 1


@pytest.mark.asyncio
async def test_share_and_click_counters(client, admin_headers):
    post = await create_post(client, admin_headers, status="published")

    assert (await client.post(f"{BLOG}/{post['id']}/share")).json()["data"]["share_count"] == 1
    assert (await client.post(f"{BLOG}/{post['id']}/click")).json()["data"]["click_count"] == 1
    assert (await client.post(f"{BLOG}/{post['id']}/click")).json()["data"]["click_count"] == 2


@pytest.mark.asyncio
async def test_search_and_stats(client, admin_headers):
    await create_post(client, admin_headers, status="published", is_featured=True)
    await create_post(client, admin_headers, title="Payroll basics")

    resp = await client.get(f"{BLOG}/search", params={"q": "crm"})
    assert resp.json()["pagination"]["total_items"] == 1

    resp = await client.get(f"{BLOG}/search", params={"q": "c"})
    assert resp.status_code == 400

    stats = (await client.get(f"{BLOG}/admin/stats", headers=admin_headers)).json()["data"]
    assert stats["total"] == 2
    assert stats["published"] == 1
    assert stats["draft"] == 1
    assert stats["featured"] == 1


@pytest.mark.asyncio
async def test_category_post_count_tracks_published_posts(client, admin_headers, blog_category):
    post = await create_post(client, admin_headers, status="published", category_id=blog_category["id"])
    await create_post(client, admin_headers, title="Another draft", category_id=blog_category["id"])

    category = (await client.get(f"{BLOG_CATEGORIES}/admin/{blog_category['id']}", headers=admin_headers)).json()
    assert category["data"]["post_count"] == 1

    await update_post(client, admin_headers, post["id"], is_visible=False)
    category = (await client.get(f"{BLOG_CATEGORIES}/admin/{blog_category['id']}", headers=admin_headers)).json()
    assert category["data"]["post_count"] == 0

    resp = await client.get(f"{BLOG}/category/{blog_category['id']}")
    assert resp.json()["pagination"]["total_items"] == 0


@pytest.mark.asyncio
async def test_post_with_unknown_category(client, admin_headers):
    resp = await client.post(
        f"{BLOG}/admin",
        data=post_form(category_id="00000000-0000-0000-0000-000000000000"),
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "BLOG_CATEGORY_NOT_FOUND"


@pytest.mark.asyncio
async def test_slug_conflicts(client, admin_headers):
    post = await create_post(client, admin_headers)
    second = await create_post(client, admin_headers)
    assert second["slug"] == "choosing-a-crm-1"

    resp = await client.post(f"{BLOG}/admin", data=post_form(slug=post["slug"]), headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "SLUG_EXISTS"

    resp = await client.get(f"{BLOG}/admin/validate-slug", params={"slug": "fresh-slug"}, headers=admin_headers)
    assert resp.json()["data"]["available"] is True


@pytest.mark.asyncio
async def test_remove_missing_gallery_image(client, admin_headers):
    post = await create_post(client, admin_headers)

    resp = await client.delete(
        f"{BLOG}/admin/{post['id']}/gallery", params={"blob_name": "blog/gallery/nope.png"}, headers=admin_headers
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "IMAGE_NOT_FOUND"


@pytest.mark.asyncio
async def test_delete_post(client, admin_headers, blog_category):
    post = await create_post(client, admin_headers, status="published", category_id=blog_category["id"])

    resp = await client.delete(f"{BLOG}/admin/{post['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert (await client.get(f"{BLOG}/admin/{post['id']}", headers=admin_headers)).status_code == 404

    category = (await client.get(f"{BLOG_CATEGORIES}/admin/{blog_category['id']}", headers=admin_headers)).json()
    assert category["data"]["post_count"] == 0


@pytest.mark.asyncio
async def test_blog_category_rules(client, admin_headers, blog_category):
    resp = await client.post(f"{BLOG_CATEGORIES}/admin", json={"name": "guides"}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "DUPLICATE_NAME"

    resp = await client.post(f"{BLOG_CATEGORIES}/admin", json={"name": "Bad", "color": "blue"}, headers=admin_headers)
    assert resp.status_code == 400

    await create_post(client, admin_headers, category_id=blog_category["id"])
    resp = await client.delete(f"{BLOG_CATEGORIES}/admin/{blog_category['id']}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CATEGORY_HAS_DEPENDENCIES"


@pytest.mark.asyncio
async def test_public_blog_categories(client, admin_headers, blog_category):
    await client.post(
        f"{BLOG_CATEGORIES}/admin", json={"name": "Internal", "is_visible": False}, headers=admin_headers
    )

    resp = await client.get(f"{BLOG_CATEGORIES}/")
    assert [c["name"] for c in resp.json()["data"]] == ["Guides"]

    resp = await client.get(f"{BLOG_CATEGORIES}/slug/internal")
    assert resp.status_code == 404

    resp = await client.get(f"{BLOG_CATEGORIES}/slug/{blog_category['slug']}")
    assert resp.status_code == 200

    menu = (await client.get(f"{BLOG_CATEGORIES}/menu")).json()["data"]
    assert [c["slug"] for c in menu] == ["guides"]


@pytest.mark.asyncio
async def test_post_seo_audit(client, admin_headers):
    post = await create_post(client, admin_headers)

    resp = await client.get(f"{BLOG}/admin/{post['id']}/seo-audit", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["slug_check"]["is_duplicate"] is False
    assert 0 <= data["validation"]["score"] <= 100
    assert data["grade"]["grade"] in {"A", "B", "C", "D", "F"}


@pytest.mark.asyncio
async def test_seo_dashboard_and_duplicates(client, admin_headers):
    await create_post(client, admin_headers)
    await create_post(client, admin_headers)

    data = (await client.get(f"{BLOG}/admin/seo/audit", headers=admin_headers)).json()["data"]
    assert data["summary"]["total_posts"] == 2
    assert data["summary"]["duplicate_slugs"] == 1
    assert data["summary"]["missing_og_images"] == 2

    data = (await client.get(f"{BLOG}/admin/seo/duplicate-slugs", headers=admin_headers)).json()["data"]
    assert data["total_duplicates"] == 1
    assert data["duplicates"][0]["count"] == 2

    data = (await client.get(f"{BLOG}/admin/seo/critical-issues", headers=admin_headers)).json()["data"]
    assert data["total_critical_issues"] == 2
    types = {issue["type"] for issue in data["issues"][0]["issues"]}
    assert types == {"missing_meta_description", "missing_og_image"}
