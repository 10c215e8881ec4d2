"""
User repository.
"""
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.models.user import User
from leadscout.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_external_id(self, external_id: str) -> Optional[User]:
        """Get user by identity provider subject."""
        query = select(User).where(User.external_id == external_id)
        result = await self.session.exec(query)
        return result.first()
