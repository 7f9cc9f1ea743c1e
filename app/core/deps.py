"""FastAPI dependencies for authentication and authorization."""

from typing import Optional
from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import AuthenticationError, AuthorizationError
from app.models.user import User, UserRole
from app.repositories.user import UserRepository
from app.services.auth import decode_access_token

security = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, db: AsyncSession) -> Optional[User]:
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        return None
    return await UserRepository(db).get_by_id(user_id)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the current user from the bearer token.

    Raises 401 if no token or invalid token, 403 if the account is inactive.
    """
    if not credentials:
        raise AuthenticationError("Access token is required", "TOKEN_REQUIRED")

    user = await _user_from_token(credentials.credentials, db)
    if not user:
        raise AuthenticationError("Could not validate credentials", "INVALID_TOKEN")

    if not user.is_active:
        raise AuthorizationError("User account is disabled", "ACCOUNT_INACTIVE")

    return user


def require_role(*roles: UserRole):
    """Dependency factory: the current user must hold one of ``roles``."""
    allowed = {role.value for role in roles}

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise AuthorizationError("Insufficient permissions")
        return current_user

    return checker


require_admin = require_role(UserRole.SUPER_ADMIN, UserRole.CONTENT_EDITOR)
require_super_admin = require_role(UserRole.SUPER_ADMIN)
require_client = require_role(UserRole.CLIENT, UserRole.SUPER_ADMIN)
