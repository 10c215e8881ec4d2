"""
Payout repository.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.models.payout import Payout
from leadscout.repositories.base import BaseRepository


class PayoutRepository(BaseRepository[Payout]):

    def __init__(self, session: AsyncSession):
        super().__init__(Payout, session)

    async def get_for_run(self, scout_id: uuid.UUID, run_key: str) -> Optional[Payout]:
        query = select(Payout).where(Payout.scout_id == scout_id, Payout.run_key == run_key)
        result = await self.session.exec(query)
        return result.first()

    async def list_by_scout(self, scout_id: uuid.UUID) -> List[Payout]:
        query = select(Payout).where(Payout.scout_id == scout_id).order_by(Payout.created_at.desc())
        result = await self.session.exec(query)
        return result.all()
