from typing import Optional

from sqlalchemy import select

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User
    conflict_code = "EMAIL_EXISTS"
    conflict_message = "A user with this email already exists"

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self._execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()
