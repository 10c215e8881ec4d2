"""
Scout repository - earnings counters are updated with relative UPDATEs.
"""
import uuid
from decimal import Decimal
from typing import Optional, List
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import update

from leadscout.models.scout import Scout
from leadscout.repositories.base import BaseRepository


class ScoutRepository(BaseRepository[Scout]):
    """Repository for Scout operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Scout, session)

    async def get_by_user(self, user_id: uuid.UUID) -> Optional[Scout]:
        query = select(Scout).where(Scout.user_id == user_id)
        result = await self.session.exec(query)
        return result.first()

    async def get_payout_candidates(self, threshold: Decimal) -> List[Scout]:
        """Scouts whose pending earnings reached the payout threshold."""
        query = select(Scout).where(
            Scout.pending_earnings >= threshold
        ).order_by(Scout.created_at)
        result = await self.session.exec(query)
        return result.all()

    async def credit_sale(self, scout_id: uuid.UUID, earning: Decimal) -> bool:
        """Add a sale's earning to pending earnings and count the sale."""
        stmt = (
            update(Scout)
            .where(Scout.id == scout_id)
            .values(
                pending_earnings=Scout.pending_earnings + earning,
                total_leads_sold=Scout.total_leads_sold + 1,
                updated_at=datetime.utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def settle_earnings(self, scout_id: uuid.UUID, amount: Decimal, paid_at: datetime) -> bool:
        """
        Move amount from pending to total earnings.
        Returns False if pending earnings no longer cover the amount.
        """
        stmt = (
            update(Scout)
            .where(Scout.id == scout_id)
            .where(Scout.pending_earnings >= amount)
            .values(
                pending_earnings=Scout.pending_earnings - amount,
                total_earnings=Scout.total_earnings + amount,
                last_payout_at=paid_at,
                updated_at=paid_at
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def increment(self, scout_id: uuid.UUID, field: str, by: int = 1) -> None:
        """Bump one of the total_leads_* counters."""
        column = getattr(Scout, field)
        stmt = (
            update(Scout)
            .where(Scout.id == scout_id)
            .values({field: column + by, "updated_at": datetime.utcnow()})
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def all_quality_scores(self) -> List[float]:
        result = await self.session.exec(select(Scout.quality_score))
        return list(result.all())
