"""
Scout model - lead submitter with earnings and reputation tracking.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint


class Badges:
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"

    # Ascending order
    ORDER = (BRONZE, SILVER, GOLD, PLATINUM)


class Scout(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("pending_earnings >= 0", name="ck_scout_pending_non_negative"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", unique=True, index=True)

    # Payout account
    payout_account_ref: Optional[str] = Field(default=None, index=True)
    onboarding_complete: bool = Field(default=False)

    # Reputation
    quality_score: float = Field(default=0.0, index=True)  # 0-10
    badge: str = Field(default=Badges.BRONZE)

    # Statistics
    total_leads_submitted: int = Field(default=0)
    total_leads_approved: int = Field(default=0)
    total_leads_rejected: int = Field(default=0)
    total_leads_sold: int = Field(default=0)

    # Earnings (euros)
    pending_earnings: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2, index=True)
    total_earnings: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    last_payout_at: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
