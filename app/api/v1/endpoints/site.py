"""Site settings: public homepage content and the admin-editable singleton."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_admin
from app.core.responses import success
from app.models.user import User
from app.schemas.seo import SiteSettingsOut, SiteSettingsUpdate
from app.services.site_service import SiteService

router = APIRouter()


@router.get("/homepage")
async def homepage(db: AsyncSession = Depends(get_db)):
    return success(await SiteService(db).homepage())


@router.get("/settings")
async def get_site_settings(db: AsyncSession = Depends(get_db), _: User = Depends(require_admin)):
    settings = await SiteService(db).get_settings()
    return success(SiteSettingsOut.model_validate(settings))


@router.put("/settings")
async def update_site_settings(
    data: SiteSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    settings = await SiteService(db).update_settings(data, current_user.id)
    return success(SiteSettingsOut.model_validate(settings), "Site settings updated")
