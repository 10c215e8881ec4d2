"""
User service - maps identity provider subjects to User rows.
"""
from typing import Dict, Any

from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.core.exceptions import ForbiddenError
from leadscout.core.security import Principal
from leadscout.models.user import User
from leadscout.repositories.user_repo import UserRepository


class UserService:
    """Service for user operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)

    async def resolve_principal(self, claims: Dict[str, Any]) -> Principal:
        """
        Load the User for a verified token, creating it on first sight.
        The role is fixed at creation; a token claiming another role is refused.
        """
        external_id = claims["sub"]
        role = claims["role"]
        user = await self.user_repo.get_by_external_id(external_id)

        if not user:
            user = User(
                external_id=external_id,
                role=role,
                email=(claims.get("email") or "").strip().lower(),
                name=claims.get("name") or external_id,
            )
            self.session.add(user)
            await self.session.commit()
            await self.session.refresh(user)
        elif user.role != role:
            raise ForbiddenError("Token role does not match the account")

        return Principal(
            user_id=user.id,
            external_id=user.external_id,
            role=user.role,
            email=user.email,
            name=user.name,
        )
