"""
In-app notification records.
"""
import uuid
from datetime import datetime
from typing import Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from leadscout.models.types import JSONType


class Notification(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    type: str = Field(index=True)
    title: str
    message: str
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONType))

    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
