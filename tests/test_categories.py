"""Tests for the perk category hierarchy."""

from unittest.mock import AsyncMock, patch

import pytest

from app.services.blob_storage import blob_service

BASE = "/api/v1/categories"


async def create(client, headers, name, parent_id=None, **fields):
    payload = {"name": name, **fields}
    if parent_id:
        payload["parent_id"] = parent_id
    return await client.post(f"{BASE}/", json=payload, headers=headers)


async def chain(client, headers, depth):
    """Create ``depth`` nested categories and return them root first."""
    categories, parent_id = [], None
    for level in range(depth):
        resp = await create(client, headers, f"Level {level}", parent_id)
        assert resp.status_code == 201
        categories.append(resp.json()["data"])
        parent_id = categories[-1]["id"]
    return categories


@pytest.mark.asyncio
async def test_create_root_category(client, admin_headers):
    resp = await create(client, admin_headers, "Developer Tools", description="Tools for engineering teams")

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["slug"] == "developer-tools"
    assert data["level"] == 0
    assert data["path"] == "developer-tools"
    assert data["seo_title"] == "Developer Tools"
    assert data["seo_description"] == "Tools for engineering teams"


@pytest.mark.asyncio
async def test_create_requires_admin(client, client_headers):
    assert (await create(client, {}, "Nope")).status_code == 401
    assert (await create(client, client_headers, "Nope")).status_code == 403


@pytest.mark.asyncio
async def test_child_gets_level_path_and_parent_counters(client, admin_headers):
    root, child = await chain(client, admin_headers, 2)

    assert child["level"] == 1
    assert child["path"] == "level-0/level-1"

    resp = await client.get(f"{BASE}/{root['id']}/admin", headers=admin_headers)
    assert resp.json()["data"]["subcategory_count"] == 1


@pytest.mark.asyncio
async def test_unknown_parent(client, admin_headers):
    resp = await create(client, admin_headers, "Orphan", "00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "PARENT_NOT_FOUND"


@pytest.mark.asyncio
async def test_max_depth(client, admin_headers):
    categories = await chain(client, admin_headers, 4)
    assert categories[-1]["level"] == 3

    resp = await create(client, admin_headers, "Too Deep", categories[-1]["id"])
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "MAX_DEPTH_EXCEEDED"


@pytest.mark.asyncio
async def test_move_under_descendant_is_rejected(client, admin_headers):
    root, child, grandchild = await chain(client, admin_headers, 3)

    resp = await client.put(f"{BASE}/{root['id']}", json={"parent_id": grandchild["id"]}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CIRCULAR_HIERARCHY"

    resp = await client.put(f"{BASE}/{root['id']}", json={"parent_id": root["id"]}, headers=admin_headers)
    assert resp.json()["error"]["code"] == "CIRCULAR_HIERARCHY"


@pytest.mark.asyncio
async def test_move_rebuilds_subtree_paths(client, admin_headers):
    root, child, grandchild = await chain(client, admin_headers, 3)
    other = (await create(client, admin_headers, "Other Root")).json()["data"]

    resp = await client.put(f"{BASE}/{child['id']}", json={"parent_id": other["id"]}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["path"] == "other-root/level-1"

    moved = (await client.get(f"{BASE}/{grandchild['id']}/admin", headers=admin_headers)).json()["data"]
    assert moved["path"] == "other-root/level-1/level-2"
    assert moved["level"] == 2

    old_root = (await client.get(f"{BASE}/{root['id']}/admin", headers=admin_headers)).json()["data"]
    assert old_root["subcategory_count"] == 0


@pytest.mark.asyncio
async def test_move_that_would_nest_subtree_too_deep(client, admin_headers):
    deep = await chain(client, admin_headers, 3)
    subtree_root = (await create(client, admin_headers, "Movable")).json()["data"]
    leaf = (await create(client, admin_headers, "Movable Leaf", subtree_root["id"])).json()["data"]

    # Movable would land at level 3 and its child at level 4
    resp = await client.put(f"{BASE}/{subtree_root['id']}", json={"parent_id": deep[-1]["id"]}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "MAX_DEPTH_EXCEEDED"
    assert leaf["level"] == 1


@pytest.mark.asyncio
async def test_delete_blocked_by_children_and_perks(client, admin_headers, form):
    root, child = await chain(client, admin_headers, 2)

    resp = await client.delete(f"{BASE}/{root['id']}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CATEGORY_HAS_DEPENDENCIES"

    await client.post("/api/v1/perks/admin", data=form(category_id=child["id"]), headers=admin_headers)
    resp = await client.delete(f"{BASE}/{child['id']}", headers=admin_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_delete_leaf_updates_parent(client, admin_headers):
    root, child = await chain(client, admin_headers, 2)

    resp = await client.delete(f"{BASE}/{child['id']}", headers=admin_headers)
    assert resp.status_code == 200

    data = (await client.get(f"{BASE}/{root['id']}/admin", headers=admin_headers)).json()["data"]
    assert data["subcategory_count"] == 0


@pytest.mark.asyncio
async def test_tree_and_breadcrumb(client, admin_headers):
    root, child, grandchild = await chain(client, admin_headers, 3)
    await create(client, admin_headers, "Hidden", root["id"], is_visible=False)

    tree = (await client.get(f"{BASE}/tree")).json()["data"]
    assert len(tree) == 1
    assert [node["name"] for node in tree[0]["children"]] == ["Level 1"]
    assert tree[0]["children"][0]["children"][0]["id"] == grandchild["id"]

    shallow = (await client.get(f"{BASE}/tree", params={"max_depth": 1})).json()["data"]
    assert shallow[0]["children"][0]["children"] == []

    crumbs = (await client.get(f"{BASE}/{grandchild['id']}/breadcrumb")).json()["data"]
    assert [c["name"] for c in crumbs] == ["Level 0", "Level 1", "Level 2"]


@pytest.mark.asyncio
async def test_inactive_category_is_not_public(client, admin_headers):
    category = (await create(client, admin_headers, "Seasonal")).json()["data"]

    resp = await client.put(f"{BASE}/{category['id']}/status", json={"status": "inactive"}, headers=admin_headers)
    assert resp.json()["data"]["status"] == "inactive"

    assert (await client.get(f"{BASE}/{category['id']}")).status_code == 404
    assert (await client.get(f"{BASE}/slug/seasonal")).status_code == 404
    assert (await client.get(f"{BASE}/roots")).json()["data"] == []


@pytest.mark.asyncio
async def test_public_get_counts_views(client, admin_headers, category):
    await client.get(f"{BASE}/slug/{category['slug']}")
    await client.get(f"{BASE}/{category['id']}")

    data = (await client.get(f"{BASE}/{category['id']}/admin", headers=admin_headers)).json()["data"]
    assert data["view_count"] == 2


@pytest.mark.asyncio
async def test_slug_conflicts_and_rename(client, admin_headers, category):
    resp = await create(client, admin_headers, "Software Again", slug="software")
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "SLUG_EXISTS"

    auto = (await create(client, admin_headers, "Software")).json()["data"]
    assert auto["slug"] == "software-1"

    # Renaming keeps the existing slug
    resp = await client.put(f"{BASE}/{category['id']}", json={"name": "Business Software"}, headers=admin_headers)
    assert resp.json()["data"]["slug"] == "software"


@pytest.mark.asyncio
async def test_search_and_admin_list(client, admin_headers, category):
    resp = await client.get(f"{BASE}/search", params={"q": "soft"})
    assert [c["id"] for c in resp.json()["data"]] == [category["id"]]

    resp = await client.get(f"{BASE}/search", params={"q": "s"})
    assert resp.status_code == 400

    resp = await client.get(f"{BASE}/", params={"level": 0}, headers=admin_headers)
    assert resp.json()["pagination"]["total_items"] == 1


@pytest.mark.asyncio
async def test_category_image_upload(client, admin_headers, category):
    stored = {"url": "https://acct.blob.core.windows.net/perks-images/categories/a.png",
              "blob_name": "categories/a.png", "filename": "a.png", "alt": "Icon"}
    with patch.object(blob_service, "upload_image", new=AsyncMock(return_value=stored)):
        resp = await client.post(
            f"{BASE}/{category['id']}/image",
            files={"image": ("a.png", b"\x89PNG", "image/png")},
            data={"alt": "Icon"},
            headers=admin_headers,
        )

    assert resp.status_code == 200
    assert resp.json()["data"]["image"]["url"] == stored["url"]
