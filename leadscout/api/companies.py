"""
Company API routes.
"""
from typing import List
from fastapi import APIRouter, Depends

from leadscout.api.deps import get_company_principal, get_admin_principal, get_company_service
from leadscout.core.security import Principal
from leadscout.services.company_service import CompanyService
from leadscout.schemas.company import (
    CheckoutCompleted, SubscriptionUpdate, CreditTopUp, PreferencesUpdate,
    CompanyResponse, CreditTransactionResponse
)

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post("/checkout", response_model=CompanyResponse, status_code=201)
async def complete_checkout(
    checkout: CheckoutCompleted,
    principal: Principal = Depends(get_company_principal),
    company_service: CompanyService = Depends(get_company_service)
):
    """Create the company profile after subscription checkout."""
    return await company_service.create_from_checkout(principal, checkout)


@router.post("/subscription", response_model=CompanyResponse)
async def update_subscription(
    update: SubscriptionUpdate,
    principal: Principal = Depends(get_admin_principal),
    company_service: CompanyService = Depends(get_company_service)
):
    """Subscription change from the billing integration."""
    return await company_service.update_subscription(update)


@router.get("/me", response_model=CompanyResponse)
async def get_my_company(
    principal: Principal = Depends(get_company_principal),
    company_service: CompanyService = Depends(get_company_service)
):
    return await company_service.get_company(principal)


@router.post("/me/credits", response_model=CreditTransactionResponse, status_code=201)
async def top_up_credits(
    top_up: CreditTopUp,
    principal: Principal = Depends(get_company_principal),
    company_service: CompanyService = Depends(get_company_service)
):
    """Record a one-time credit purchase."""
    return await company_service.add_credits_purchase(principal, top_up)


@router.get("/me/credits/history", response_model=List[CreditTransactionResponse])
async def credit_history(
    principal: Principal = Depends(get_company_principal),
    company_service: CompanyService = Depends(get_company_service)
):
    return await company_service.credit_history(principal)


@router.put("/me/preferences", response_model=CompanyResponse)
async def update_preferences(
    changes: PreferencesUpdate,
    principal: Principal = Depends(get_company_principal),
    company_service: CompanyService = Depends(get_company_service)
):
    """Update lead matching preferences."""
    return await company_service.update_preferences(principal, changes)
