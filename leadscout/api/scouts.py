"""
Scout API routes.
"""
from typing import Optional, List
from fastapi import APIRouter, Depends

from leadscout.api.deps import (
    get_current_principal, get_scout_principal, get_scout_service, get_payout_processor
)
from leadscout.core.security import Principal
from leadscout.services.payout_service import PayoutBatchProcessor
from leadscout.services.scout_service import ScoutService
from leadscout.schemas.payout import PayoutResponse
from leadscout.schemas.scout import (
    PayoutAccountConnect, ScoutResponse, ScoutDashboardResponse, EarningsPreviewResponse
)

router = APIRouter(prefix="/scouts", tags=["scouts"])


@router.post("/register", response_model=ScoutResponse, status_code=201)
async def register_scout(
    principal: Principal = Depends(get_scout_principal),
    scout_service: ScoutService = Depends(get_scout_service)
):
    return await scout_service.register(principal)


@router.get("/me", response_model=ScoutDashboardResponse)
async def get_my_dashboard(
    principal: Principal = Depends(get_scout_principal),
    scout_service: ScoutService = Depends(get_scout_service)
):
    """Profile, reputation, badge progress and payout status."""
    return await scout_service.dashboard(principal)


@router.put("/me/payout-account", response_model=ScoutResponse)
async def connect_payout_account(
    account: PayoutAccountConnect,
    principal: Principal = Depends(get_scout_principal),
    scout_service: ScoutService = Depends(get_scout_service)
):
    """Link the connected account that receives payouts."""
    return await scout_service.connect_payout_account(
        principal, account.account_ref, account.onboarding_complete
    )


@router.get("/me/payouts", response_model=List[PayoutResponse])
async def list_my_payouts(
    principal: Principal = Depends(get_scout_principal),
    scout_service: ScoutService = Depends(get_scout_service),
    processor: PayoutBatchProcessor = Depends(get_payout_processor)
):
    scout = await scout_service.get_profile(principal)
    return await processor.list_payouts(scout.id)


@router.get("/earnings-preview", response_model=EarningsPreviewResponse)
async def earnings_preview(
    category: Optional[str] = None,
    principal: Principal = Depends(get_current_principal),
    scout_service: ScoutService = Depends(get_scout_service)
):
    """What a sale in this category pays the scout."""
    return await scout_service.earnings_preview(category)
