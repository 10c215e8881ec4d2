"""
Purchase repository.
"""
import uuid
from decimal import Decimal
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from leadscout.models.purchase import Purchase, PurchaseStatus
from leadscout.repositories.base import BaseRepository


class PurchaseRepository(BaseRepository[Purchase]):

    def __init__(self, session: AsyncSession):
        super().__init__(Purchase, session)

    async def get_active_for_lead(self, lead_id: uuid.UUID) -> Optional[Purchase]:
        query = select(Purchase).where(
            Purchase.lead_id == lead_id,
            Purchase.status != PurchaseStatus.REFUNDED
        )
        result = await self.session.exec(query)
        return result.first()

    async def list_by_company(self, company_id: uuid.UUID) -> List[Purchase]:
        query = select(Purchase).where(Purchase.company_id == company_id).order_by(Purchase.created_at.desc())
        result = await self.session.exec(query)
        return result.all()

    async def list_by_scout(self, scout_id: uuid.UUID) -> List[Purchase]:
        query = select(Purchase).where(Purchase.scout_id == scout_id).order_by(Purchase.created_at.desc())
        result = await self.session.exec(query)
        return result.all()

    async def totals(self) -> dict:
        """Gross merchandise value and platform revenue over completed purchases."""
        query = select(
            func.count(Purchase.id),
            func.coalesce(func.sum(Purchase.purchase_price), 0),
            func.coalesce(func.sum(Purchase.platform_commission), 0)
        ).where(Purchase.status == PurchaseStatus.COMPLETED)
        result = await self.session.exec(query)
        count, gmv, revenue = result.one()
        return {
            "purchases": count,
            "gmv": Decimal(str(gmv)).quantize(Decimal("0.01")),
            "platform_revenue": Decimal(str(revenue)).quantize(Decimal("0.01"))
        }
