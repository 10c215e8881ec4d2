"""
Credit ledger entries.
Immutable; replaying amounts in id order reproduces the company balance.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class TransactionType:
    ALLOCATION = "allocation"  # subscription renewal
    PURCHASE = "purchase"      # one-time top-up
    USAGE = "usage"            # lead purchased
    REFUND = "refund"          # credits returned

    CREDITS = (ALLOCATION, PURCHASE, REFUND)


class CreditTransaction(SQLModel, table=True):
    __tablename__ = "credit_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)

    type: str = Field(index=True)
    amount: int  # positive for add, negative for usage
    balance_after: int

    related_purchase_id: Optional[uuid.UUID] = Field(default=None, index=True)
    external_ref: Optional[str] = None  # payment intent / subscription id
    description: str

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
