"""
Company schemas for API requests/responses.
"""
import uuid
from decimal import Decimal
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field


class CheckoutCompleted(BaseModel):
    """Completed subscription checkout, forwarded by the billing integration."""
    customer_ref: str
    subscription_id: str
    price_id: str  # processor price id or plan name


class SubscriptionUpdate(BaseModel):
    customer_ref: str
    subscription_id: str
    status: str  # active, past_due, canceled, incomplete
    price_id: str
    next_renewal_date: Optional[datetime] = None


class CreditTopUp(BaseModel):
    amount: int = Field(gt=0)
    payment_ref: Optional[str] = None


class NotificationPreferences(BaseModel):
    new_leads: bool = True
    low_credits: bool = True
    renewal_reminder: bool = True


class PreferencesUpdate(BaseModel):
    categories: Optional[List[str]] = None
    budget_min: Optional[Decimal] = None
    budget_max: Optional[Decimal] = None
    notifications: Optional[NotificationPreferences] = None


class CompanyResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    plan: Optional[str]
    subscription_status: str
    next_renewal_date: Optional[datetime]
    credits_remaining: int
    credits_allocated: int
    preferences: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True


class CreditTransactionResponse(BaseModel):
    id: int
    type: str
    amount: int
    balance_after: int
    related_purchase_id: Optional[uuid.UUID]
    external_ref: Optional[str]
    description: str
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerCheckResponse(BaseModel):
    company_id: uuid.UUID
    balance: int
    replayed_balance: int
    entries: int
    mismatched_entries: List[int]
    consistent: bool


class RenewalResultResponse(BaseModel):
    period: str
    renewed: int
    skipped: int
    failed: int
    credits_allocated: int
