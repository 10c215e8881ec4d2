"""
API dependencies - shared across all routes.
"""
from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.config import Settings
from leadscout.database import get_session
from leadscout.core.exceptions import UnauthorizedError, ForbiddenError
from leadscout.core.security import Principal, verify_token
from leadscout.models.user import Roles
from leadscout.services.company_service import CompanyService
from leadscout.services.lead_service import LeadService
from leadscout.services.notification_service import NotificationService
from leadscout.services.payout_service import PayoutBatchProcessor
from leadscout.services.purchase_service import PurchaseOrchestrator
from leadscout.services.scout_service import ScoutService
from leadscout.services.user_service import UserService


bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings)
) -> Principal:
    """Resolve the bearer token to a Principal."""
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = verify_token(settings, credentials.credentials)
    if not payload:
        raise UnauthorizedError("Could not validate credentials")

    return await UserService(session).resolve_principal(payload)


def require_role(*roles: str) -> Callable:
    """Dependency that admits only the given roles."""
    async def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise ForbiddenError()
        return principal
    return checker


get_scout_principal = require_role(Roles.SCOUT)
get_company_principal = require_role(Roles.COMPANY)
get_admin_principal = require_role(Roles.ADMIN)


# Service builders

def get_lead_service(
    request: Request,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings)
) -> LeadService:
    return LeadService(session, settings, request.app.state.notifier)


def get_purchase_orchestrator(
    request: Request,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings)
) -> PurchaseOrchestrator:
    return PurchaseOrchestrator(session, settings, request.app.state.locks, request.app.state.notifier)


def get_company_service(
    request: Request,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings)
) -> CompanyService:
    return CompanyService(session, settings, request.app.state.locks, request.app.state.notifier)


def get_scout_service(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings)
) -> ScoutService:
    return ScoutService(session, settings)


def get_notification_service(session: AsyncSession = Depends(get_session)) -> NotificationService:
    return NotificationService(session)


def get_payout_processor(request: Request) -> PayoutBatchProcessor:
    return request.app.state.payout_processor
