"""
Common schemas used across multiple endpoints.
"""
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
    code: str = "error"

    class Config:
        json_schema_extra = {"example": {"detail": "Lead already sold", "code": "already_sold"}}


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"
