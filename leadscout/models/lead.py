"""
Lead model - sales opportunity submitted by a scout.
Contact details stay masked in the marketplace until the lead is purchased.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from leadscout.models.types import JSONType


class LeadStatus:
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    SOLD = "sold"


class ModerationStatus:
    PENDING = "pending"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    REJECTED = "rejected"


class Lead(SQLModel, table=True):
    """
    Lifecycle: pending_review -> approved -> sold (or rejected).
    purchased_by is set exactly once, together with status=sold.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    scout_id: uuid.UUID = Field(foreign_key="scout.id", index=True)

    # Lead information
    title: str
    description: str
    category: str = Field(index=True)

    # Company details (revealed after purchase)
    company_name: str = Field(index=True)
    contact_name: str
    contact_email: str
    contact_phone: str
    company_website: Optional[str] = None
    estimated_budget: Decimal = Field(max_digits=14, decimal_places=2)
    timeline: Optional[str] = None

    # Attachment references
    photos: List[str] = Field(default_factory=list, sa_column=Column(JSONType))

    # Status & moderation
    status: str = Field(default=LeadStatus.PENDING_REVIEW, index=True)
    moderation_status: str = Field(default=ModerationStatus.PENDING, index=True)
    moderation_notes: Optional[str] = None
    moderated_by: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")
    moderated_at: Optional[datetime] = None

    # Quality (0-10 overall, 0-100 per factor)
    quality_score: float = Field(default=0.0, index=True)
    quality_factors: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONType))

    # Sales tracking
    sale_price: Decimal = Field(max_digits=12, decimal_places=2)
    purchased_by: Optional[uuid.UUID] = Field(default=None, foreign_key="company.id", index=True)
    purchased_at: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_purchasable(self) -> bool:
        return self.status == LeadStatus.APPROVED and self.purchased_by is None
