"""
Company model - lead buyer with a prepaid credit balance.
credits_remaining is only ever changed through the credit ledger.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, CheckConstraint

from leadscout.models.types import JSONType


class SubscriptionStatus:
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"

    ALL = (ACTIVE, PAST_DUE, CANCELED, INCOMPLETE)


def default_preferences() -> Dict[str, Any]:
    return {
        "categories": [],
        "budget_min": None,
        "budget_max": None,
        "notifications": {"new_leads": True, "low_credits": True, "renewal_reminder": True},
    }


class Company(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("credits_remaining >= 0", name="ck_company_credits_non_negative"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", unique=True, index=True)

    # Billing
    customer_ref: Optional[str] = Field(default=None, index=True)  # payment processor customer id
    subscription_id: Optional[str] = Field(default=None, index=True)
    plan: Optional[str] = Field(default=None, index=True)  # starter, growth, scale
    subscription_status: str = Field(default=SubscriptionStatus.INCOMPLETE)
    next_renewal_date: Optional[datetime] = None

    # Credits
    credits_remaining: int = Field(default=0, index=True)
    credits_allocated: int = Field(default=0)

    # Matching preferences
    preferences: Dict[str, Any] = Field(default_factory=default_preferences, sa_column=Column(JSONType))

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
