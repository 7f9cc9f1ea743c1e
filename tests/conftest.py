"""Shared test fixtures for Perks Marketplace API tests.

Uses a throwaway SQLite file (aiosqlite) so tests run without PostgreSQL.
A file rather than ``:memory:`` because background tracking and the
dashboard open their own sessions, and each needs to see the same data.
"""

import os
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="perks-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/test.db"
os.environ["PUBLIC_DIR"] = os.path.join(_tmp_dir, "public")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "test"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["AZURE_BLOB_CONNECTION_STRING"] = ""
os.environ["GA4_PROPERTY_ID"] = ""
os.environ["GA4_ACCESS_TOKEN"] = ""

import json
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.core.database import Base, async_session, engine
from app.main import app

# Import all models to ensure they're registered with Base.metadata
from app.models.blog import BlogCategory, BlogPost
from app.models.category import Category
from app.models.lead import Lead
from app.models.perk import Perk
from app.models.settings import SeoSetting, SiteSettings
from app.models.user import User, UserRole
from app.services.auth import create_user, token_for

PASSWORD = "testpass123"


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with async_session() as session:
        yield session


async def _user(db, email: str, role: UserRole, name: str = "Test User") -> User:
    return await create_user(db, email, PASSWORD, name, role.value)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest_asyncio.fixture
async def admin_user(db):
    return await _user(db, "admin@example.com", UserRole.SUPER_ADMIN, "Admin")


@pytest_asyncio.fixture
async def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest_asyncio.fixture
async def editor_user(db):
    return await _user(db, "editor@example.com", UserRole.CONTENT_EDITOR, "Editor")


@pytest_asyncio.fixture
async def editor_headers(editor_user):
    return auth_headers(editor_user)


@pytest_asyncio.fixture
async def client_user(db):
    return await _user(db, "vendor@example.com", UserRole.CLIENT, "Vendor")


@pytest_asyncio.fixture
async def client_headers(client_user):
    return auth_headers(client_user)


def perk_form(**fields) -> dict:
    """Multipart form body for perk create/update."""
    payload = {"title": "Free Cloud Credits", "vendor_name": "Acme Cloud", **fields}
    return {"data": json.dumps(payload)}


@pytest.fixture
def form():
    """Build the ``data`` form field from keyword arguments."""
    return perk_form


@pytest_asyncio.fixture
async def category(client, admin_headers):
    resp = await client.post("/api/v1/categories/", json={"name": "Software"}, headers=admin_headers)
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest_asyncio.fixture
async def active_perk(client, admin_headers, category):
    """A perk created by an admin and approved, so it is publicly visible."""
    resp = await client.post(
        "/api/v1/perks/admin",
        data=perk_form(category_id=category["id"], short_description="50% off for startups"),
        headers=admin_headers,
    )
    assert resp.status_code == 201
    perk = resp.json()["data"]
    resp = await client.post(f"/api/v1/perks/admin/{perk['id']}/approve", json={}, headers=admin_headers)
    assert resp.status_code == 200
    return resp.json()["data"]
