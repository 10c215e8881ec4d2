"""
Custom exceptions for the LeadScout engine.
Every service failure maps to one of these kinds; the API renders them
as {"detail": message, "code": code}.
"""
from typing import Dict, List, Optional

from fastapi import status


class LeadScoutException(Exception):
    """Base exception for LeadScout"""
    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(LeadScoutException):
    """Resource not found"""
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class AlreadyExistsError(LeadScoutException):
    """Resource already exists"""
    code = "already_exists"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class InvalidStateError(LeadScoutException):
    """Operation not allowed in the entity's current state"""
    code = "invalid_state"
    status_code = status.HTTP_409_CONFLICT


class AlreadySoldError(InvalidStateError):
    """Lead was purchased by someone else"""
    code = "already_sold"

    def __init__(self, lead_id: str = None):
        message = "Lead already sold"
        if lead_id:
            message = f"Lead '{lead_id}' already sold"
        super().__init__(message)


class InsufficientCreditsError(LeadScoutException):
    """Company balance cannot cover the deduction"""
    code = "insufficient_credits"
    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, available: int = 0, required: int = 1):
        self.available = available
        self.required = required
        super().__init__(f"Insufficient credits: {available} available, {required} required")


class InsufficientEarningsError(LeadScoutException):
    """Payout amount exceeds the scout's pending earnings"""
    code = "insufficient_earnings"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Payout amount exceeds pending earnings"):
        super().__init__(message)


class UnauthorizedError(LeadScoutException):
    """Authentication failed"""
    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class ForbiddenError(LeadScoutException):
    """Role or ownership check failed"""
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class ValidationError(LeadScoutException):
    """Validation failed"""
    code = "validation_failed"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(
        self,
        message: str = "Validation failed",
        field: str = None,
        errors: Optional[List[Dict[str, str]]] = None
    ):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        self.errors = errors or []
        super().__init__(message)


class ExternalServiceError(LeadScoutException):
    """External service call failed"""
    code = "external_failure"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, service: str = "External service", message: str = None):
        msg = f"{service} call failed"
        if message:
            msg = f"{msg}: {message}"
        self.reason = message or msg
        super().__init__(msg)

