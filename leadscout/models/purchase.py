"""
Purchase record - written once when a company buys a lead.
"""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel, Field


class PurchaseStatus:
    COMPLETED = "completed"
    REFUNDED = "refunded"


class Purchase(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    lead_id: uuid.UUID = Field(foreign_key="lead.id", unique=True, index=True)
    scout_id: uuid.UUID = Field(foreign_key="scout.id", index=True)

    credits_used: int = Field(default=1)
    purchase_price: Decimal = Field(max_digits=12, decimal_places=2)
    scout_earning: Decimal = Field(max_digits=12, decimal_places=2)
    platform_commission: Decimal = Field(max_digits=12, decimal_places=2)
    status: str = Field(default=PurchaseStatus.COMPLETED)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
