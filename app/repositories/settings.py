"""SEO settings history and the site settings singleton."""

from typing import Optional

from sqlalchemy import select, update

from app.models.settings import SeoSetting, SiteSettings
from app.repositories.base import BaseRepository


class SeoSettingRepository(BaseRepository[SeoSetting]):
    model = SeoSetting

    async def get_active(self) -> Optional[SeoSetting]:
        result = await self._execute(
            select(SeoSetting).where(SeoSetting.is_active.is_(True)).order_by(SeoSetting.created_at.desc())
        )
        return result.scalars().first()

    async def replace_active(self, **fields) -> SeoSetting:
        """Deactivate every active row and insert the new active one in one commit."""
        await self._execute(update(SeoSetting).where(SeoSetting.is_active.is_(True)).values(is_active=False))
        setting = SeoSetting(**fields, is_active=True)
        self.session.add(setting)
        await self._commit()
        await self.session.refresh(setting)
        return setting


class SiteSettingsRepository(BaseRepository[SiteSettings]):
    model = SiteSettings

    async def get_or_create(self) -> SiteSettings:
        result = await self._execute(select(SiteSettings).order_by(SiteSettings.created_at.asc()))
        settings = result.scalars().first()
        if settings is None:
            settings = await self.create()
        return settings
