"""
Purchase API routes.
"""
import uuid
from typing import List
from fastapi import APIRouter, Depends

from leadscout.api.deps import get_company_principal, get_purchase_orchestrator
from leadscout.core.security import Principal
from leadscout.services.purchase_service import PurchaseOrchestrator
from leadscout.schemas.lead import LeadResponse
from leadscout.schemas.purchase import PurchaseRequest, PurchaseResponse, PurchaseResultResponse

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("/", response_model=PurchaseResultResponse, status_code=201)
async def purchase_lead(
    request: PurchaseRequest,
    principal: Principal = Depends(get_company_principal),
    orchestrator: PurchaseOrchestrator = Depends(get_purchase_orchestrator)
):
    """Buy a lead for one credit and reveal its contact details."""
    result = await orchestrator.purchase_lead(request.lead_id, principal)
    return PurchaseResultResponse(
        purchase_id=result.purchase.id,
        lead=LeadResponse.model_validate(result.lead),
        credits_remaining=result.credits_remaining,
        scout_earning=result.scout_earning
    )


@router.get("/", response_model=List[PurchaseResponse])
async def list_purchases(
    principal: Principal = Depends(get_company_principal),
    orchestrator: PurchaseOrchestrator = Depends(get_purchase_orchestrator)
):
    """The company's purchases, newest first."""
    return await orchestrator.list_purchases(principal)


@router.get("/leads/{lead_id}", response_model=LeadResponse)
async def get_purchased_lead(
    lead_id: uuid.UUID,
    principal: Principal = Depends(get_company_principal),
    orchestrator: PurchaseOrchestrator = Depends(get_purchase_orchestrator)
):
    """Full details of a purchased lead."""
    return await orchestrator.get_purchased_lead(principal, lead_id)
