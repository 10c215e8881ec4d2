"""
Leads API routes (scout side).
"""
import uuid
from typing import Optional, List, Union
from fastapi import APIRouter, Depends

from leadscout.api.deps import get_current_principal, get_scout_principal, get_lead_service
from leadscout.core.security import Principal
from leadscout.services.lead_service import LeadService
from leadscout.schemas.lead import (
    LeadCreate, LeadUpdate, LeadResponse, MarketplaceLeadResponse, ModerationActionResponse
)

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post("/", response_model=LeadResponse, status_code=201)
async def submit_lead(
    lead_data: LeadCreate,
    principal: Principal = Depends(get_scout_principal),
    lead_service: LeadService = Depends(get_lead_service)
):
    """Submit a new lead for review."""
    return await lead_service.submit_lead(principal, lead_data)


@router.get("/mine", response_model=List[LeadResponse])
async def list_my_leads(
    status: Optional[str] = None,
    principal: Principal = Depends(get_scout_principal),
    lead_service: LeadService = Depends(get_lead_service)
):
    """The scout's own leads."""
    return await lead_service.list_scout_leads(principal, status)


@router.get("/{lead_id}", response_model=Union[LeadResponse, MarketplaceLeadResponse])
async def get_lead(
    lead_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    lead_service: LeadService = Depends(get_lead_service)
):
    """Lead details; masked for companies that have not bought it."""
    return await lead_service.get_lead(principal, lead_id)


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: uuid.UUID,
    changes: LeadUpdate,
    principal: Principal = Depends(get_scout_principal),
    lead_service: LeadService = Depends(get_lead_service)
):
    """Edit a lead awaiting review; it goes back to the moderation queue."""
    return await lead_service.update_lead(principal, lead_id, changes)


@router.get("/{lead_id}/history", response_model=List[ModerationActionResponse])
async def get_lead_history(
    lead_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    lead_service: LeadService = Depends(get_lead_service)
):
    """Moderation audit trail."""
    return await lead_service.moderation_history(principal, lead_id)
