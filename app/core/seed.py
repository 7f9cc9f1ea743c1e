"""Seed the super admin account on app startup."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import async_session
from app.core.errors import AppError
from app.models.user import UserRole
from app.repositories.user import UserRepository
from app.services.auth import create_user

logger = logging.getLogger(__name__)


async def seed_admin_account() -> None:
    """Create the super admin from ADMIN_EMAIL / ADMIN_PASSWORD if it doesn't exist."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin seed")
        return

    async with async_session() as db:
        try:
            if await UserRepository(db).get_by_email(settings.ADMIN_EMAIL):
                logger.info("Admin account already exists: %s", settings.ADMIN_EMAIL)
                return
            await create_user(
                db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, "Super Admin", UserRole.SUPER_ADMIN.value
            )
            logger.info("Admin account created: %s", settings.ADMIN_EMAIL)
        except (AppError, SQLAlchemyError) as e:
            logger.error("Failed to seed admin account: %s", e)
            await db.rollback()
