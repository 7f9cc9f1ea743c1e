"""Authentication service.

Handles password hashing, JWT token generation/validation, and login with
brute-force lockout.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import AccountLockedError, AuthenticationError, AuthorizationError, ConflictError
from app.models.user import User, UserStatus
from app.repositories.user import UserRepository

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__default_ident="2b")

ALGORITHM = "HS256"


def _truncate_password(password: str) -> str:
    """Truncate password to 72 bytes (bcrypt limit)."""
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        return password_bytes[:72].decode('utf-8', errors='ignore')
    return password


def hash_password(password: str) -> str:
    return pwd_context.hash(_truncate_password(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_truncate_password(plain_password), hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT access token."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("JWT decode error: %s", e)
        return None


def token_for(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "role": user.role})


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """Verify credentials, counting failures towards a temporary lock.

    Raises 401 for unknown email or wrong password, 423 while the account is
    locked and 403 for inactive accounts.
    """
    users = UserRepository(db)
    user = await users.get_by_email(email)

    if not user:
        raise AuthenticationError("Invalid email or password", "INVALID_CREDENTIALS")

    if user.is_locked:
        raise AccountLockedError()

    if not verify_password(password, user.hashed_password):
        user.login_attempts = (user.login_attempts or 0) + 1
        if user.login_attempts >= settings.MAX_LOGIN_ATTEMPTS:
            user.lock_until = datetime.utcnow() + timedelta(minutes=settings.LOCK_TIME_MINUTES)
            user.login_attempts = 0
            logger.warning("Account locked after repeated failed logins: %s", user.email)
        await users.save(user)
        raise AuthenticationError("Invalid email or password", "INVALID_CREDENTIALS")

    if user.status != UserStatus.ACTIVE.value:
        raise AuthorizationError("Account is not active", "ACCOUNT_INACTIVE")

    user.login_attempts = 0
    user.lock_until = None
    user.last_login_at = datetime.utcnow()
    return await users.save(user)


async def create_user(db: AsyncSession, email: str, password: str, name: str, role: str) -> User:
    users = UserRepository(db)
    if await users.get_by_email(email):
        raise ConflictError("A user with this email already exists", "EMAIL_EXISTS")
    user = await users.create(
        email=email.lower(),
        hashed_password=hash_password(password),
        name=name,
        role=role,
    )
    logger.info("User created: %s (role: %s)", user.email, user.role)
    return user


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise AuthenticationError("Current password is incorrect", "INVALID_CREDENTIALS")
    user.hashed_password = hash_password(new_password)
    await UserRepository(db).save(user)
    logger.info("Password changed for %s", user.email)
