"""
Moderation audit log - one row per lifecycle transition of a lead.
Append-only. from_status/to_status hold the moderation status for review
events and the lead status for submission and sale.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class ModerationAction(SQLModel, table=True):
    __tablename__ = "moderation_action"

    id: Optional[int] = Field(default=None, primary_key=True)
    lead_id: uuid.UUID = Field(foreign_key="lead.id", index=True)
    actor_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    action: str = Field(index=True)  # see Actions
    reason: Optional[str] = None
    from_status: Optional[str] = None
    to_status: str

    created_at: datetime = Field(default_factory=datetime.utcnow)


# Action constants for consistency
class Actions:
    SUBMITTED = "submitted"
    EDITED = "edited"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"
    SOLD = "sold"
