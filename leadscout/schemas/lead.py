"""
Lead schemas.
"""
import uuid
from decimal import Decimal
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel


class LeadCreate(BaseModel):
    """Submit a new lead. Field rules are enforced by the validation service."""
    title: str
    description: str
    category: str
    company_name: str
    contact_name: str
    contact_email: str
    contact_phone: str
    company_website: Optional[str] = None
    estimated_budget: Decimal
    timeline: Optional[str] = None
    photos: List[str] = []

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Office network refresh for logistics firm",
                "description": "Mid-sized logistics company looking to replace ageing switches and Wi-Fi "
                               "across two warehouses, decision expected this quarter.",
                "category": "IT Services",
                "company_name": "Acme Logistics",
                "contact_name": "Marie Weber",
                "contact_email": "marie@acme-logistics.lu",
                "contact_phone": "+352621123456",
                "company_website": "https://acme-logistics.lu",
                "estimated_budget": 25000,
                "timeline": "Q3"
            }
        }


class LeadUpdate(BaseModel):
    """Edit a lead (owner scout, before approval)."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    company_website: Optional[str] = None
    estimated_budget: Optional[Decimal] = None
    timeline: Optional[str] = None
    photos: Optional[List[str]] = None


class LeadResponse(BaseModel):
    """Full lead, visible to the owner scout, the buyer and admins."""
    id: uuid.UUID
    scout_id: uuid.UUID
    title: str
    description: str
    category: str
    company_name: str
    contact_name: str
    contact_email: str
    contact_phone: str
    company_website: Optional[str]
    estimated_budget: Decimal
    timeline: Optional[str]
    photos: List[str]
    status: str
    moderation_status: str
    moderation_notes: Optional[str]
    moderated_at: Optional[datetime]
    quality_score: float
    quality_factors: Dict[str, Any]
    sale_price: Decimal
    purchased_by: Optional[uuid.UUID]
    purchased_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MarketplaceLeadResponse(BaseModel):
    """Lead as shown to buyers before purchase; contact details are masked."""
    id: uuid.UUID
    title: str
    description: str
    category: str
    company_name: str
    contact_name: str
    contact_email: str
    contact_phone: str
    company_website: Optional[str]
    estimated_budget: Decimal
    timeline: Optional[str]
    photo_count: int
    quality_score: float
    sale_price: Decimal
    scout_badge: Optional[str] = None
    created_at: datetime


class MarketplaceFilter(BaseModel):
    """Marketplace filtering options."""
    categories: Optional[List[str]] = None
    budget_min: Optional[Decimal] = None
    budget_max: Optional[Decimal] = None
    min_quality: Optional[float] = None
    search: Optional[str] = None  # Search in title, description
    sort: str = "newest"  # newest, quality


class ModerationRequest(BaseModel):
    """Admin moderation decision."""
    action: str  # approve, reject, request_changes
    reason: Optional[str] = None


class ModerationActionResponse(BaseModel):
    id: int
    lead_id: uuid.UUID
    actor_id: uuid.UUID
    action: str
    reason: Optional[str]
    from_status: Optional[str]
    to_status: str
    created_at: datetime

    class Config:
        from_attributes = True
