"""
Payout - one settlement attempt of a scout's pending earnings.
pending -> processing -> completed | failed
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint


class PayoutStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    TERMINAL = (COMPLETED, FAILED)


class Payout(SQLModel, table=True):
    # One attempt per scout per scheduled slot
    __table_args__ = (UniqueConstraint("scout_id", "run_key", name="uq_payout_scout_run"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    scout_id: uuid.UUID = Field(foreign_key="scout.id", index=True)
    run_key: str = Field(index=True)  # e.g. "2026-W42"

    amount: Decimal = Field(max_digits=12, decimal_places=2)
    status: str = Field(default=PayoutStatus.PENDING, index=True)
    external_transfer_id: Optional[str] = Field(default=None, index=True)
    failure_reason: Optional[str] = None

    processed_at: Optional[datetime] = None  # transfer initiated
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in PayoutStatus.TERMINAL
