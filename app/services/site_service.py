"""Site settings singleton: homepage layout, contact details and social links."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.settings import SiteSettings
from app.repositories.settings import SiteSettingsRepository
from app.schemas.seo import SiteSettingsUpdate

logger = logging.getLogger(__name__)


class SiteService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.site = SiteSettingsRepository(db)

    async def get_settings(self) -> SiteSettings:
        return await self.site.get_or_create()

    async def homepage(self) -> dict:
        settings = await self.site.get_or_create()
        homepage = settings.homepage or {}
        return {
            "hero": homepage.get("hero", {}),
            "sections": homepage.get("sections", {}),
            "contact": settings.contact or {},
            "social_links": settings.social_links or {},
            "footer_text": settings.footer_text,
        }

    async def update_settings(self, data: SiteSettingsUpdate, user_id: Optional[UUID]) -> SiteSettings:
        """Shallow-merge each supplied block into the stored one."""
        settings = await self.site.get_or_create()
        changes = data.model_dump(exclude_unset=True)

        for block in ("seo", "homepage", "contact", "social_links"):
            if changes.get(block) is not None:
                setattr(settings, block, {**(getattr(settings, block) or {}), **changes[block]})
        if "footer_text" in changes:
            settings.footer_text = changes["footer_text"]
        settings.updated_by = user_id

        settings = await self.site.save(settings)
        logger.info("Site settings updated by %s", user_id)
        return settings
