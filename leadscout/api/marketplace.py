"""
Marketplace API routes.
"""
from decimal import Decimal
from typing import Optional, List
from fastapi import APIRouter, Depends, Query

from leadscout.api.deps import require_role, get_company_principal, get_lead_service
from leadscout.core.pagination import PaginatedResponse
from leadscout.core.security import Principal
from leadscout.models.user import Roles
from leadscout.services.lead_service import LeadService
from leadscout.schemas.lead import MarketplaceFilter, MarketplaceLeadResponse

router = APIRouter(prefix="/marketplace", tags=["marketplace"])


@router.get("/", response_model=PaginatedResponse[MarketplaceLeadResponse])
async def browse_marketplace(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    categories: Optional[List[str]] = Query(None),
    budget_min: Optional[Decimal] = None,
    budget_max: Optional[Decimal] = None,
    min_quality: Optional[float] = Query(None, ge=0, le=10),
    search: Optional[str] = None,
    sort: str = Query("newest", pattern="^(newest|quality)$"),
    principal: Principal = Depends(require_role(Roles.COMPANY, Roles.ADMIN)),
    lead_service: LeadService = Depends(get_lead_service)
):
    """Approved leads with contact details masked."""
    filters = MarketplaceFilter(
        categories=categories,
        budget_min=budget_min,
        budget_max=budget_max,
        min_quality=min_quality,
        search=search,
        sort=sort
    )
    return await lead_service.list_marketplace(filters, page, limit)


@router.get("/recommended", response_model=List[MarketplaceLeadResponse])
async def recommended_leads(
    limit: int = Query(10, ge=1, le=50),
    principal: Principal = Depends(get_company_principal),
    lead_service: LeadService = Depends(get_lead_service)
):
    """Top leads matching the company's preferences."""
    return await lead_service.recommended_for_company(principal, limit)
