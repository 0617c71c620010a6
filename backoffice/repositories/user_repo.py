"""User repository — look-ups used by the authenticators."""

from typing import Optional

from sqlalchemy.future import select

from backoffice.models.user import User
from backoffice.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Concrete repository for :class:`User` entities."""

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(self.model).where(self.model.email == email.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalars().first()
