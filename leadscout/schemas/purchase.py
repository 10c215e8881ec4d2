"""
Purchase schemas.
"""
import uuid
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel

from leadscout.schemas.lead import LeadResponse


class PurchaseRequest(BaseModel):
    lead_id: uuid.UUID


class PurchaseResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    lead_id: uuid.UUID
    scout_id: uuid.UUID
    credits_used: int
    purchase_price: Decimal
    scout_earning: Decimal
    platform_commission: Decimal
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseResultResponse(BaseModel):
    """Completed purchase with the revealed lead."""
    purchase_id: uuid.UUID
    lead: LeadResponse
    credits_remaining: int
    scout_earning: Decimal


class RevenueResponse(BaseModel):
    purchases: int
    gmv: Decimal
    platform_revenue: Decimal
