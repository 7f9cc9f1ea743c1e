"""Authentication endpoints for admin, editor and client accounts."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import get_current_user, require_super_admin
from app.core.responses import success
from app.models.user import User
from app.schemas.auth import ChangePassword, Token, UserCreate, UserLogin, UserOut
from app.services.auth import authenticate_user, change_password, create_user, token_for

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login")
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for a bearer token.

    Five consecutive failures lock the account for LOCK_TIME_MINUTES (423).
    """
    user = await authenticate_user(db, credentials.email, credentials.password)
    logger.info("User logged in: %s", user.email)
    token = Token(
        access_token=token_for(user),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserOut.model_validate(user),
    )
    return success(token, "Login successful")


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return success(UserOut.model_validate(current_user))


@router.put("/change-password")
async def update_password(
    data: ChangePassword,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await change_password(db, current_user, data.current_password, data.new_password)
    return success(message="Password changed")


@router.post("/users", status_code=201)
async def create_account(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_super_admin),
):
    user = await create_user(db, data.email, data.password, data.name, data.role)
    return success(UserOut.model_validate(user), "User created")
