"""
Purchase service - the atomic sale of a lead to a company.

One database transaction covers the credit deduction, the lead's sold flag,
the Purchase record, the scout's earnings and badge, and the audit row.
Notifications go out only after commit.
"""
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.config import Settings
from leadscout.core.exceptions import (
    NotFoundError, ForbiddenError, AlreadySoldError, InsufficientCreditsError
)
from leadscout.core.locks import EntityLocks
from leadscout.core.security import Principal
from leadscout.models.lead import Lead, LeadStatus
from leadscout.models.purchase import Purchase
from leadscout.models.user import Roles
from leadscout.repositories.company_repo import CompanyRepository
from leadscout.repositories.lead_repo import LeadRepository
from leadscout.repositories.moderation_repo import ModerationActionRepository
from leadscout.repositories.purchase_repo import PurchaseRepository
from leadscout.repositories.scout_repo import ScoutRepository
from leadscout.repositories.user_repo import UserRepository
from leadscout.schemas.notification import (
    LeadSoldNotification, LeadPurchasedNotification, LowCreditsNotification
)
from leadscout.services.commission import CommissionCalculator
from leadscout.services.ledger_service import CreditLedger
from leadscout.services.lifecycle import LeadLifecycle, Events
from leadscout.services.notification_service import NotificationDispatcher
from leadscout.services.quality import QualityEngine

logger = logging.getLogger(__name__)

CREDITS_PER_LEAD = 1


def _same_email(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive match; a missing email never matches."""
    a = (a or "").strip().lower()
    b = (b or "").strip().lower()
    return bool(a) and a == b


@dataclass
class PurchaseResult:
    purchase: Purchase
    lead: Lead
    credits_remaining: int
    scout_earning: Decimal
    scout_user_id: uuid.UUID
    low_credit_alerts: bool = True


class PurchaseOrchestrator:
    """Runs lead purchases."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        locks: EntityLocks,
        notifier: NotificationDispatcher
    ):
        self.session = session
        self.settings = settings
        self.locks = locks
        self.notifier = notifier
        self.commission = CommissionCalculator(settings)
        self.quality = QualityEngine(settings)
        self.ledger = CreditLedger(session)
        self.company_repo = CompanyRepository(session)
        self.lead_repo = LeadRepository(session)
        self.scout_repo = ScoutRepository(session)
        self.user_repo = UserRepository(session)
        self.purchase_repo = PurchaseRepository(session)
        self.moderation_repo = ModerationActionRepository(session)

    async def purchase_lead(self, lead_id: uuid.UUID, principal: Principal) -> PurchaseResult:
        """
        Buy a lead for one credit.

        Raises:
            NotFoundError: unknown lead or no company profile
            AlreadySoldError: the lead was sold (possibly by a concurrent request)
            InvalidStateError: the lead is not approved
            InsufficientCreditsError: the company has no credits
            ForbiddenError: not a company, or buying one's own lead
        """
        if principal.role != Roles.COMPANY:
            raise ForbiddenError("Only companies can purchase leads")

        company = await self.company_repo.get_by_user(principal.user_id)
        if not company:
            raise NotFoundError("Company profile")

        async with self.locks.hold(("lead", lead_id), ("company", company.id)):
            try:
                result = await self._purchase(lead_id, company.id, principal)
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

        logger.info(
            f"Lead {lead_id} sold to company {company.id} for €{result.purchase.purchase_price} "
            f"(scout €{result.scout_earning}, {result.credits_remaining} credits left)"
        )
        await self._notify(result, principal)
        return result

    async def _purchase(self, lead_id: uuid.UUID, company_id: uuid.UUID, principal: Principal) -> PurchaseResult:
        lead = await self.lead_repo.get_for_update(lead_id)
        if not lead:
            raise NotFoundError("Lead", str(lead_id))
        if lead.status == LeadStatus.SOLD or lead.purchased_by is not None:
            raise AlreadySoldError(str(lead_id))
        transition = LeadLifecycle.plan(lead, Events.SELL)

        scout = await self.scout_repo.get(lead.scout_id)
        if not scout:
            raise NotFoundError("Scout", str(lead.scout_id))
        scout_user = await self.user_repo.get(scout.user_id)
        if scout.user_id == principal.user_id or (scout_user and _same_email(scout_user.email, principal.email)):
            raise ForbiddenError("You cannot purchase your own lead")

        company = await self.company_repo.get_for_update(company_id)
        if company.credits_remaining < CREDITS_PER_LEAD:
            raise InsufficientCreditsError(company.credits_remaining, CREDITS_PER_LEAD)

        now = datetime.utcnow()
        purchase_id = uuid.uuid4()

        await self.ledger.deduct(
            company_id,
            CREDITS_PER_LEAD,
            description=f"Purchased lead: {lead.title}",
            related_purchase_id=purchase_id,
        )

        if not await self.lead_repo.mark_sold(lead_id, company_id, now):
            raise AlreadySoldError(str(lead_id))

        scout_earning, platform_commission = self.commission.split(lead.sale_price)
        purchase = await self.purchase_repo.create({
            "id": purchase_id,
            "company_id": company_id,
            "lead_id": lead_id,
            "scout_id": scout.id,
            "credits_used": CREDITS_PER_LEAD,
            "purchase_price": lead.sale_price,
            "scout_earning": scout_earning,
            "platform_commission": platform_commission,
            "created_at": now,
        })

        await self.scout_repo.credit_sale(scout.id, scout_earning)
        scout = await self.scout_repo.get_for_update(scout.id)
        badge = self.quality.badge_for(scout.total_leads_sold, scout.badge)
        if badge != scout.badge:
            logger.info(f"Scout {scout.id} promoted {scout.badge} -> {badge}")
            await self.scout_repo.update(scout, {"badge": badge})

        await self.moderation_repo.log(
            lead_id=lead_id,
            actor_id=principal.user_id,
            action=transition.action,
            from_status=transition.from_status,
            to_status=transition.to_status,
        )

        lead = await self.lead_repo.get_for_update(lead_id)
        company = await self.company_repo.get_for_update(company_id)
        alerts = (company.preferences or {}).get("notifications", {}).get("low_credits", True)
        return PurchaseResult(
            purchase=purchase,
            lead=lead,
            credits_remaining=company.credits_remaining,
            scout_earning=scout_earning,
            scout_user_id=scout.user_id,
            low_credit_alerts=alerts,
        )

    async def _notify(self, result: PurchaseResult, principal: Principal) -> None:
        lead = result.lead
        await self.notifier.dispatch(result.scout_user_id, LeadSoldNotification(
            lead_id=lead.id, lead_title=lead.title, earning=result.scout_earning
        ))
        await self.notifier.dispatch(principal.user_id, LeadPurchasedNotification(
            lead_id=lead.id, lead_title=lead.title, credits_remaining=result.credits_remaining
        ))
        if result.low_credit_alerts and result.credits_remaining < self.settings.LOW_CREDIT_THRESHOLD:
            await self.notifier.dispatch(principal.user_id, LowCreditsNotification(
                credits_remaining=result.credits_remaining
            ))

    async def list_purchases(self, principal: Principal) -> List[Purchase]:
        company = await self.company_repo.get_by_user(principal.user_id)
        if not company:
            raise NotFoundError("Company profile")
        return await self.purchase_repo.list_by_company(company.id)

    async def get_purchased_lead(self, principal: Principal, lead_id: uuid.UUID) -> Lead:
        """Full lead details for its buyer."""
        company = await self.company_repo.get_by_user(principal.user_id)
        lead = await self.lead_repo.get(lead_id)
        if not lead or not company or lead.purchased_by != company.id:
            raise NotFoundError("Purchased lead", str(lead_id))
        return lead
