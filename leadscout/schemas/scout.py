"""
Scout schemas.
"""
import uuid
from decimal import Decimal
from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class PayoutAccountConnect(BaseModel):
    account_ref: str
    onboarding_complete: bool = True


class ScoutResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    payout_account_ref: Optional[str]
    onboarding_complete: bool
    quality_score: float
    badge: str
    total_leads_submitted: int
    total_leads_approved: int
    total_leads_rejected: int
    total_leads_sold: int
    pending_earnings: Decimal
    total_earnings: Decimal
    last_payout_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class BadgeMilestone(BaseModel):
    next_badge: str
    leads_needed: int
    next_badge_threshold: int


class ScoutDashboardResponse(BaseModel):
    scout: ScoutResponse
    quality_label: str
    percentile: int
    next_badge: Optional[BadgeMilestone]
    payout_eligible: bool
    payout_threshold: Decimal


class EarningsPreviewResponse(BaseModel):
    sale_price: Decimal
    scout_earning: Decimal
    platform_commission: Decimal
    commission_rate: Decimal
