"""
User model - principal known to the identity provider.
Scouts, companies and admins all start as a User row.
"""
import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field


class Roles:
    SCOUT = "scout"
    COMPANY = "company"
    ADMIN = "admin"

    ALL = (SCOUT, COMPANY, ADMIN)


class User(SQLModel, table=True):
    """
    Marketplace participant.
    external_id is the stable subject id issued by the identity provider.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    external_id: str = Field(unique=True, index=True)
    role: str = Field(index=True)  # scout, company, admin

    # Profile
    email: str = Field(index=True)
    name: str

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
