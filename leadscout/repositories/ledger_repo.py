"""
Credit transaction repository. Append and read only.
"""
import uuid
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from leadscout.models.ledger import CreditTransaction
from leadscout.repositories.base import BaseRepository


class CreditTransactionRepository(BaseRepository[CreditTransaction]):

    def __init__(self, session: AsyncSession):
        super().__init__(CreditTransaction, session)

    async def append(self, entry: CreditTransaction) -> CreditTransaction:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def history(self, company_id: uuid.UUID) -> List[CreditTransaction]:
        """All entries for a company in ledger order."""
        query = select(CreditTransaction).where(
            CreditTransaction.company_id == company_id
        ).order_by(CreditTransaction.id)
        result = await self.session.exec(query)
        return result.all()

    async def sum_amounts(self, company_id: uuid.UUID) -> int:
        query = select(func.coalesce(func.sum(CreditTransaction.amount), 0)).where(
            CreditTransaction.company_id == company_id
        )
        result = await self.session.exec(query)
        return int(result.one())

    async def exists_with_ref(self, company_id: uuid.UUID, external_ref: str) -> bool:
        query = select(CreditTransaction.id).where(
            CreditTransaction.company_id == company_id,
            CreditTransaction.external_ref == external_ref
        )
        result = await self.session.exec(query)
        return result.first() is not None
