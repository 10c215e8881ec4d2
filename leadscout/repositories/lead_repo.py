"""
Lead repository with marketplace search and the guarded sale update.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, update

from leadscout.models.lead import Lead, LeadStatus
from leadscout.repositories.base import BaseRepository
from leadscout.schemas.lead import MarketplaceFilter
from leadscout.core.pagination import create_paginated_response


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)

    async def search_marketplace(
        self,
        filters: Optional[MarketplaceFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """Approved, unsold leads with filtering."""
        query = select(Lead).where(
            Lead.status == LeadStatus.APPROVED,
            Lead.purchased_by.is_(None)
        )

        if filters:
            if filters.categories:
                query = query.where(Lead.category.in_(filters.categories))
            if filters.budget_min is not None:
                query = query.where(Lead.estimated_budget >= filters.budget_min)
            if filters.budget_max is not None:
                query = query.where(Lead.estimated_budget <= filters.budget_max)
            if filters.min_quality is not None:
                query = query.where(Lead.quality_score >= filters.min_quality)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        Lead.title.ilike(search_term),
                        Lead.description.ilike(search_term)
                    )
                )

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.exec(count_query)
        total = total_result.one()

        if filters and filters.sort == "quality":
            query = query.order_by(Lead.quality_score.desc())
        else:
            query = query.order_by(Lead.created_at.desc())
        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.session.exec(query)
        items = result.all()

        return create_paginated_response(items, total, page, limit)

    async def list_by_scout(self, scout_id: uuid.UUID, status: Optional[str] = None) -> List[Lead]:
        query = select(Lead).where(Lead.scout_id == scout_id)
        if status:
            query = query.where(Lead.status == status)
        result = await self.session.exec(query.order_by(Lead.created_at.desc()))
        return result.all()

    async def list_moderation_queue(self, moderation_status: str) -> List[Lead]:
        query = select(Lead).where(Lead.moderation_status == moderation_status).order_by(Lead.created_at)
        result = await self.session.exec(query)
        return result.all()

    async def company_names_for_scout(self, scout_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None) -> List[str]:
        """Company names a scout already submitted (duplicate detection)."""
        query = select(Lead.company_name).where(Lead.scout_id == scout_id)
        if exclude_id:
            query = query.where(Lead.id != exclude_id)
        result = await self.session.exec(query)
        return list(result.all())

    async def average_quality(self, scout_id: uuid.UUID, status: Optional[str] = None) -> Optional[float]:
        query = select(func.avg(Lead.quality_score)).where(Lead.scout_id == scout_id)
        if status:
            query = query.where(Lead.status == status)
        result = await self.session.exec(query)
        avg = result.one()
        return float(avg) if avg is not None else None

    async def mark_sold(self, lead_id: uuid.UUID, company_id: uuid.UUID, sold_at: datetime) -> bool:
        """
        Flip an approved, unsold lead to sold in one conditional UPDATE.
        Exactly one concurrent caller gets True.
        """
        stmt = (
            update(Lead)
            .where(
                Lead.id == lead_id,
                Lead.status == LeadStatus.APPROVED,
                Lead.purchased_by.is_(None)
            )
            .values(
                status=LeadStatus.SOLD,
                purchased_by=company_id,
                purchased_at=sold_at,
                updated_at=sold_at
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
