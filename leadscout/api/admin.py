"""
Admin API routes - moderation and settlement jobs.
"""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.api.deps import (
    get_admin_principal, get_lead_service, get_company_service, get_payout_processor
)
from leadscout.core.security import Principal
from leadscout.database import get_session
from leadscout.repositories.purchase_repo import PurchaseRepository
from leadscout.services.company_service import CompanyService
from leadscout.services.lead_service import LeadService
from leadscout.services.payout_service import PayoutBatchProcessor
from leadscout.schemas.company import LedgerCheckResponse, RenewalResultResponse
from leadscout.schemas.lead import LeadResponse, ModerationRequest
from leadscout.schemas.payout import PayoutRunRequest, PayoutBatchResultResponse, ScoutPayoutOutcomeResponse
from leadscout.schemas.purchase import RevenueResponse

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/moderation/queue", response_model=List[LeadResponse])
async def moderation_queue(
    principal: Principal = Depends(get_admin_principal),
    lead_service: LeadService = Depends(get_lead_service)
):
    """Leads awaiting review, oldest first."""
    return await lead_service.moderation_queue(principal)


@router.post("/moderation/leads/{lead_id}", response_model=LeadResponse)
async def moderate_lead(
    lead_id: uuid.UUID,
    decision: ModerationRequest,
    principal: Principal = Depends(get_admin_principal),
    lead_service: LeadService = Depends(get_lead_service)
):
    """Approve, reject or request changes on a lead."""
    return await lead_service.moderate_lead(principal, lead_id, decision.action, decision.reason)


@router.post("/payouts/run", response_model=PayoutBatchResultResponse)
async def run_payouts(
    request: PayoutRunRequest,
    principal: Principal = Depends(get_admin_principal),
    processor: PayoutBatchProcessor = Depends(get_payout_processor)
):
    """Run the weekly payout batch now."""
    result = await processor.process_weekly_payouts(request.run_key)
    return PayoutBatchResultResponse.model_validate(result)


@router.post("/payouts/scouts/{scout_id}", response_model=ScoutPayoutOutcomeResponse)
async def settle_scout(
    scout_id: uuid.UUID,
    run_key: Optional[str] = None,
    principal: Principal = Depends(get_admin_principal),
    processor: PayoutBatchProcessor = Depends(get_payout_processor)
):
    """Settle a single scout."""
    outcome = await processor.settle_scout(scout_id, run_key)
    return ScoutPayoutOutcomeResponse.model_validate(outcome)


@router.post("/credits/renew", response_model=RenewalResultResponse)
async def renew_credits(
    period: Optional[str] = None,
    principal: Principal = Depends(get_admin_principal),
    company_service: CompanyService = Depends(get_company_service)
):
    """Run the monthly credit renewal now."""
    result = await company_service.renew_monthly_credits(period)
    return result.summary()


@router.get("/companies/{company_id}/ledger", response_model=LedgerCheckResponse)
async def verify_ledger(
    company_id: uuid.UUID,
    principal: Principal = Depends(get_admin_principal),
    company_service: CompanyService = Depends(get_company_service)
):
    """Replay a company's credit ledger against its balance."""
    check = await company_service.verify_ledger(company_id)
    return LedgerCheckResponse(
        company_id=check.company_id,
        balance=check.balance,
        replayed_balance=check.replayed_balance,
        entries=check.entries,
        mismatched_entries=check.mismatched_entries,
        consistent=check.consistent
    )


@router.get("/revenue", response_model=RevenueResponse)
async def revenue(
    principal: Principal = Depends(get_admin_principal),
    session: AsyncSession = Depends(get_session)
):
    return await PurchaseRepository(session).totals()
