"""
Notification schemas.
One model per notification kind, joined on `type`.
"""
import uuid
from decimal import Decimal
from typing import Annotated, Union, Literal, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field, TypeAdapter


class LeadSubmittedNotification(BaseModel):
    type: Literal["lead_submitted"] = "lead_submitted"
    lead_id: uuid.UUID
    lead_title: str

    def title(self) -> str:
        return "Lead Submitted"

    def message(self) -> str:
        return f'Your lead "{self.lead_title}" is awaiting review.'


class LeadApprovedNotification(BaseModel):
    type: Literal["lead_approved"] = "lead_approved"
    lead_id: uuid.UUID
    lead_title: str
    sale_price: Decimal

    def title(self) -> str:
        return "Lead Approved"

    def message(self) -> str:
        return f'Your lead "{self.lead_title}" is now live in the marketplace at €{self.sale_price}.'


class LeadRejectedNotification(BaseModel):
    type: Literal["lead_rejected"] = "lead_rejected"
    lead_id: uuid.UUID
    lead_title: str
    reason: str

    def title(self) -> str:
        return "Lead Rejected"

    def message(self) -> str:
        return f'Your lead "{self.lead_title}" was rejected: {self.reason}'


class LeadChangesRequestedNotification(BaseModel):
    type: Literal["lead_changes_requested"] = "lead_changes_requested"
    lead_id: uuid.UUID
    lead_title: str
    reason: str

    def title(self) -> str:
        return "Changes Requested"

    def message(self) -> str:
        return f'Please update your lead "{self.lead_title}": {self.reason}'


class LeadSoldNotification(BaseModel):
    type: Literal["lead_sold"] = "lead_sold"
    lead_id: uuid.UUID
    lead_title: str
    earning: Decimal

    def title(self) -> str:
        return "Lead Sold!"

    def message(self) -> str:
        return f'Your lead "{self.lead_title}" was purchased. You earned €{self.earning}.'


class LeadPurchasedNotification(BaseModel):
    type: Literal["lead_purchased"] = "lead_purchased"
    lead_id: uuid.UUID
    lead_title: str
    credits_remaining: int

    def title(self) -> str:
        return "Lead Purchased"

    def message(self) -> str:
        return (
            f'You purchased "{self.lead_title}". Full contact details are now available. '
            f"{self.credits_remaining} credits remaining."
        )


class LowCreditsNotification(BaseModel):
    type: Literal["low_credits"] = "low_credits"
    credits_remaining: int

    def title(self) -> str:
        return "Low Credit Balance"

    def message(self) -> str:
        return f"You have {self.credits_remaining} credits left. Top up to keep buying leads."


class CreditsAddedNotification(BaseModel):
    type: Literal["credits_added"] = "credits_added"
    amount: int
    credits_remaining: int
    renewal: bool = False

    def title(self) -> str:
        return "Credits Renewed" if self.renewal else "Credits Added"

    def message(self) -> str:
        return f"{self.amount} credits added. New balance: {self.credits_remaining}."


class PayoutCompletedNotification(BaseModel):
    type: Literal["payout_completed"] = "payout_completed"
    payout_id: uuid.UUID
    amount: Decimal

    def title(self) -> str:
        return "Payout Sent"

    def message(self) -> str:
        return f"€{self.amount} is on its way to your account."


class PayoutFailedNotification(BaseModel):
    type: Literal["payout_failed"] = "payout_failed"
    payout_id: uuid.UUID
    amount: Decimal
    reason: str

    def title(self) -> str:
        return "Payout Failed"

    def message(self) -> str:
        return f"We could not send your €{self.amount} payout. We will retry with the next payout run."


NotificationPayload = Annotated[
    Union[
        LeadSubmittedNotification,
        LeadApprovedNotification,
        LeadRejectedNotification,
        LeadChangesRequestedNotification,
        LeadSoldNotification,
        LeadPurchasedNotification,
        LowCreditsNotification,
        CreditsAddedNotification,
        PayoutCompletedNotification,
        PayoutFailedNotification,
    ],
    Field(discriminator="type"),
]

notification_adapter = TypeAdapter(NotificationPayload)


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    payload: Dict[str, Any]
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


