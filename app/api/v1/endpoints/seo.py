"""SEO endpoints.

- GET /api/v1/seo/sitemap.xml, /robots.txt → generated files from the public dir
- GET /api/v1/seo/page-seo → meta tags and JSON-LD for a public page
- GET|PUT /api/v1/seo/settings → active SEO settings (admin)
- POST /api/v1/seo/meta-tags, /schema-markup, /analyze (admin)
- POST /api/v1/seo/sitemap/regenerate, /robots/regenerate (admin)
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_admin
from app.core.responses import success
from app.models.user import User
from app.schemas.seo import (
    MetaTagsRequest,
    SchemaMarkupRequest,
    SeoAnalyzeRequest,
    SeoSettingsOut,
    SeoSettingsUpdate,
)
from app.services.seo_service import ROBOTS_FILE, SITEMAP_FILE, SeoService, public_path
from app.utils.seo_validator import generate_recommendations, get_seo_grade, validate_seo_fields

router = APIRouter()
logger = logging.getLogger(__name__)


# ---- public ----

@router.get("/sitemap.xml")
async def sitemap(db: AsyncSession = Depends(get_db)):
    path = public_path(SITEMAP_FILE)
    if path.exists():
        return FileResponse(path, media_type="application/xml")
    # First request before any settings update: build it now
    service = SeoService(db)
    xml = await service.generate_sitemap(await service.get_active_settings())
    return Response(xml, media_type="application/xml")


@router.get("/robots.txt")
async def robots(db: AsyncSession = Depends(get_db)):
    path = public_path(ROBOTS_FILE)
    if path.exists():
        return FileResponse(path, media_type="text/plain")
    service = SeoService(db)
    content = await service.generate_robots(await service.get_active_settings())
    return PlainTextResponse(content)


@router.get("/page-seo")
async def page_seo(
    page_type: Literal["home", "perk", "category", "blog", "other"] = "home",
    identifier: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    return success(await SeoService(db).page_seo(page_type, identifier))


# ---- admin ----

@router.get("/settings")
async def get_seo_settings(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    seo = await SeoService(db).get_active_settings()
    return success(SeoSettingsOut.model_validate(seo))


@router.put("/settings")
async def update_seo_settings(
    data: SeoSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    seo = await SeoService(db).update_settings(data, current_user.id)
    return success(SeoSettingsOut.model_validate(seo), "SEO settings updated")


@router.post("/meta-tags")
async def meta_tags(data: MetaTagsRequest, db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    return success(await SeoService(db).meta_tags(data))


@router.post("/schema-markup")
async def schema_markup(
    data: SchemaMarkupRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    return success(await SeoService(db).schema_markup(data.type, data.breadcrumbs))


@router.post("/analyze")
async def analyze(data: SeoAnalyzeRequest, _: User = Depends(require_admin)):
    validation = validate_seo_fields(data.entity, data.entity_type)
    return success({
        "validation": validation,
        "recommendations": generate_recommendations(data.entity, data.entity_type),
        "grade": get_seo_grade(validation["score"]),
    })


@router.post("/sitemap/regenerate")
async def regenerate_sitemap(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    xml = await SeoService(db).regenerate_sitemap()
    return success({"file": SITEMAP_FILE, "size": len(xml)}, "Sitemap regenerated")


@router.post("/robots/regenerate")
async def regenerate_robots(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    content = await SeoService(db).regenerate_robots()
    return success({"file": ROBOTS_FILE, "content": content}, "robots.txt regenerated")
