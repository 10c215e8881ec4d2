"""
Payout schemas.
"""
import uuid
from decimal import Decimal
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel


class PayoutRunRequest(BaseModel):
    run_key: Optional[str] = None  # defaults to the current ISO week


class PayoutResponse(BaseModel):
    id: uuid.UUID
    scout_id: uuid.UUID
    run_key: str
    amount: Decimal
    status: str
    external_transfer_id: Optional[str]
    failure_reason: Optional[str]
    processed_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class ScoutPayoutOutcomeResponse(BaseModel):
    scout_id: uuid.UUID
    outcome: str
    amount: Decimal
    payout_id: Optional[uuid.UUID] = None
    transfer_id: Optional[str] = None
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class PayoutBatchResultResponse(BaseModel):
    run_key: str
    processed: int
    succeeded: int
    failed: int
    ineligible: int
    skipped: int
    total_disbursed: Decimal
    outcomes: List[ScoutPayoutOutcomeResponse]

    class Config:
        from_attributes = True
