"""
Moderation audit log repository.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.models.moderation import ModerationAction
from leadscout.repositories.base import BaseRepository


class ModerationActionRepository(BaseRepository[ModerationAction]):

    def __init__(self, session: AsyncSession):
        super().__init__(ModerationAction, session)

    async def log(
        self,
        lead_id: uuid.UUID,
        actor_id: uuid.UUID,
        action: str,
        to_status: str,
        from_status: Optional[str] = None,
        reason: Optional[str] = None
    ) -> ModerationAction:
        """Append an audit entry."""
        entry = ModerationAction(
            lead_id=lead_id,
            actor_id=actor_id,
            action=action,
            reason=reason,
            from_status=from_status,
            to_status=to_status
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_by_lead(self, lead_id: uuid.UUID) -> List[ModerationAction]:
        query = select(ModerationAction).where(
            ModerationAction.lead_id == lead_id
        ).order_by(ModerationAction.id)
        result = await self.session.exec(query)
        return result.all()
