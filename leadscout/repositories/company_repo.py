"""
Company repository with guarded balance updates.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import update

from leadscout.models.company import Company, SubscriptionStatus
from leadscout.repositories.base import BaseRepository


class CompanyRepository(BaseRepository[Company]):
    """Repository for Company operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Company, session)

    async def get_by_user(self, user_id: uuid.UUID) -> Optional[Company]:
        query = select(Company).where(Company.user_id == user_id)
        result = await self.session.exec(query)
        return result.first()

    async def get_by_customer_ref(self, customer_ref: str) -> Optional[Company]:
        query = select(Company).where(Company.customer_ref == customer_ref)
        result = await self.session.exec(query)
        return result.first()

    async def list_active(self) -> List[Company]:
        query = select(Company).where(
            Company.subscription_status == SubscriptionStatus.ACTIVE
        ).order_by(Company.created_at)
        result = await self.session.exec(query)
        return result.all()

    async def apply_credit_delta(self, company_id: uuid.UUID, delta: int) -> bool:
        """
        Add delta to the balance in a single conditional UPDATE.
        Returns False (and changes nothing) if the result would be negative.
        """
        stmt = (
            update(Company)
            .where(Company.id == company_id)
            .where(Company.credits_remaining + delta >= 0)
            .values(
                credits_remaining=Company.credits_remaining + delta,
                updated_at=datetime.utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
