"""
Lead service - submission, edits, moderation and marketplace listing.
"""
import uuid
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.config import Settings
from leadscout.core.exceptions import NotFoundError, ForbiddenError, ValidationError
from leadscout.core.security import Principal
from leadscout.models.lead import Lead, LeadStatus, ModerationStatus
from leadscout.models.moderation import Actions, ModerationAction
from leadscout.models.scout import Scout
from leadscout.models.user import Roles
from leadscout.repositories.company_repo import CompanyRepository
from leadscout.repositories.lead_repo import LeadRepository
from leadscout.repositories.moderation_repo import ModerationActionRepository
from leadscout.repositories.scout_repo import ScoutRepository
from leadscout.schemas.lead import LeadCreate, LeadUpdate, MarketplaceFilter, MarketplaceLeadResponse
from leadscout.schemas.notification import (
    LeadSubmittedNotification, LeadApprovedNotification,
    LeadRejectedNotification, LeadChangesRequestedNotification
)
from leadscout.services.commission import CommissionCalculator
from leadscout.services.lifecycle import LeadLifecycle, Events
from leadscout.services.notification_service import NotificationDispatcher
from leadscout.services.quality import QualityEngine
from leadscout.services.scout_service import ScoutService
from leadscout.services.validation import LeadValidator

logger = logging.getLogger(__name__)

MASK = "***"


def mask_lead(lead: Lead, scout_badge: Optional[str] = None) -> MarketplaceLeadResponse:
    """Marketplace view of a lead: contact details hidden until purchase."""
    return MarketplaceLeadResponse(
        id=lead.id,
        title=lead.title,
        description=lead.description,
        category=lead.category,
        company_name=lead.company_name[:3] + MASK,
        contact_name=MASK,
        contact_email=MASK,
        contact_phone=MASK,
        company_website=None,
        estimated_budget=lead.estimated_budget,
        timeline=lead.timeline,
        photo_count=len(lead.photos or []),
        quality_score=lead.quality_score,
        sale_price=lead.sale_price,
        scout_badge=scout_badge,
        created_at=lead.created_at,
    )


class LeadService:
    """Service for lead operations."""

    def __init__(self, session: AsyncSession, settings: Settings, notifier: NotificationDispatcher):
        self.session = session
        self.settings = settings
        self.notifier = notifier
        self.lead_repo = LeadRepository(session)
        self.scout_repo = ScoutRepository(session)
        self.company_repo = CompanyRepository(session)
        self.moderation_repo = ModerationActionRepository(session)
        self.commission = CommissionCalculator(settings)
        self.quality = QualityEngine(settings)
        self.validator = LeadValidator(settings)
        self.scouts = ScoutService(session, settings)

    async def submit_lead(self, principal: Principal, lead_data: LeadCreate) -> Lead:
        """Validate, price and score a new lead; it enters moderation as pending."""
        scout = await self._scout_for(principal)

        data = self.validator.sanitize(lead_data.model_dump())
        existing = await self.lead_repo.company_names_for_scout(scout.id)
        self.validator.validate(data, existing_company_names=existing)

        lead = Lead(
            **data,
            scout_id=scout.id,
            status=LeadStatus.PENDING_REVIEW,
            moderation_status=ModerationStatus.PENDING,
            sale_price=self.commission.price_for_category(data["category"]),
        )
        self._score(lead, scout)

        try:
            self.session.add(lead)
            await self.session.flush()
            await self.scout_repo.increment(scout.id, "total_leads_submitted")
            await self.moderation_repo.log(
                lead_id=lead.id,
                actor_id=principal.user_id,
                action=Actions.SUBMITTED,
                to_status=lead.status,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.session.refresh(lead)
        logger.info(f"Lead {lead.id} submitted by scout {scout.id} (quality {lead.quality_score})")
        await self.notifier.dispatch(principal.user_id, LeadSubmittedNotification(
            lead_id=lead.id, lead_title=lead.title
        ))
        return lead

    async def update_lead(self, principal: Principal, lead_id: uuid.UUID, changes: LeadUpdate) -> Lead:
        """Scout edit; sends the lead back to review."""
        scout = await self._scout_for(principal)
        lead = await self._get(lead_id)
        transition = LeadLifecycle.plan(lead, Events.EDIT, principal.role, actor_scout_id=scout.id)

        update_data = self.validator.sanitize(changes.model_dump(exclude_unset=True))
        merged = {**lead.model_dump(), **update_data}
        existing = []
        if "company_name" in update_data:
            existing = await self.lead_repo.company_names_for_scout(scout.id, exclude_id=lead.id)
        self.validator.validate(merged, existing_company_names=existing)

        try:
            for key, value in update_data.items():
                setattr(lead, key, value)
            lead.sale_price = self.commission.price_for_category(lead.category)
            self._score(lead, scout)
            LeadLifecycle.apply(lead, transition)
            lead = await self.lead_repo.update(lead, {})
            await self.moderation_repo.log(
                lead_id=lead.id,
                actor_id=principal.user_id,
                action=transition.action,
                from_status=transition.from_moderation,
                to_status=transition.to_moderation,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Lead {lead.id} edited by scout {scout.id}, back to review")
        return lead

    async def moderate_lead(
        self,
        principal: Principal,
        lead_id: uuid.UUID,
        action: str,
        reason: Optional[str] = None
    ) -> Lead:
        """Admin decision: approve, reject or request_changes."""
        if action not in Events.MODERATION:
            raise ValidationError(f"Unknown moderation action '{action}'", field="action")

        lead = await self._get(lead_id)
        transition = LeadLifecycle.plan(lead, action, principal.role, reason=reason)
        scout = await self.scout_repo.get(lead.scout_id)
        now = datetime.utcnow()

        try:
            LeadLifecycle.apply(lead, transition)
            lead.moderated_by = principal.user_id
            lead.moderated_at = now
            if action == Events.APPROVE:
                lead.sale_price = self.commission.price_for_category(lead.category)
                await self.scout_repo.increment(scout.id, "total_leads_approved")
            elif action == Events.REJECT:
                await self.scout_repo.increment(scout.id, "total_leads_rejected")
            lead = await self.lead_repo.update(lead, {})

            await self.moderation_repo.log(
                lead_id=lead.id,
                actor_id=principal.user_id,
                action=transition.action,
                reason=transition.reason,
                from_status=transition.from_moderation,
                to_status=transition.to_moderation,
            )
            await self.scouts.refresh_reputation(scout.id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Lead {lead.id} {transition.action} by admin {principal.user_id}")
        await self.notifier.dispatch(scout.user_id, self._moderation_notification(lead, action, transition.reason))
        return lead

    async def get_lead(self, principal: Principal, lead_id: uuid.UUID):
        """
        Full lead for its scout, its buyer and admins; the masked
        marketplace view for other companies.
        """
        lead = await self._get(lead_id)
        if principal.role == Roles.ADMIN:
            return lead
        if principal.role == Roles.SCOUT:
            scout = await self.scout_repo.get_by_user(principal.user_id)
            if scout and lead.scout_id == scout.id:
                return lead
            raise ForbiddenError("You can only view your own leads")

        company = await self.company_repo.get_by_user(principal.user_id)
        if company and lead.purchased_by == company.id:
            return lead
        if lead.is_purchasable:
            return await self._masked(lead)
        raise NotFoundError("Lead", str(lead_id))

    async def list_marketplace(
        self,
        filters: Optional[MarketplaceFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """Purchasable leads with contact details masked."""
        result = await self.lead_repo.search_marketplace(filters, page, limit)
        result["items"] = [await self._masked(lead) for lead in result["items"]]
        return result

    async def recommended_for_company(self, principal: Principal, limit: int = 10) -> List[MarketplaceLeadResponse]:
        """Best-quality purchasable leads matching the company's preferences."""
        company = await self.company_repo.get_by_user(principal.user_id)
        if not company:
            raise NotFoundError("Company profile")
        preferences = company.preferences or {}
        filters = MarketplaceFilter(
            categories=preferences.get("categories") or None,
            budget_min=preferences.get("budget_min"),
            budget_max=preferences.get("budget_max"),
            sort="quality",
        )
        result = await self.lead_repo.search_marketplace(filters, page=1, limit=limit)
        return [await self._masked(lead) for lead in result["items"]]

    async def list_scout_leads(self, principal: Principal, status: Optional[str] = None) -> List[Lead]:
        scout = await self._scout_for(principal)
        return await self.lead_repo.list_by_scout(scout.id, status)

    async def moderation_queue(self, principal: Principal) -> List[Lead]:
        if principal.role != Roles.ADMIN:
            raise ForbiddenError("Only admins can moderate leads")
        return await self.lead_repo.list_moderation_queue(ModerationStatus.PENDING)

    async def moderation_history(self, principal: Principal, lead_id: uuid.UUID) -> List[ModerationAction]:
        lead = await self._get(lead_id)
        if principal.role != Roles.ADMIN:
            scout = await self.scout_repo.get_by_user(principal.user_id)
            if not scout or scout.id != lead.scout_id:
                raise ForbiddenError()
        return await self.moderation_repo.get_by_lead(lead_id)

    # ----- helpers -----

    async def _get(self, lead_id: uuid.UUID) -> Lead:
        lead = await self.lead_repo.get_for_update(lead_id)
        if not lead:
            raise NotFoundError("Lead", str(lead_id))
        return lead

    async def _scout_for(self, principal: Principal) -> Scout:
        if principal.role != Roles.SCOUT:
            raise ForbiddenError("Only scouts can submit leads")
        scout = await self.scout_repo.get_by_user(principal.user_id)
        if not scout:
            raise NotFoundError("Scout profile")
        return scout

    def _score(self, lead: Lead, scout: Scout) -> None:
        factors = self.quality.factors_for(lead, scout.quality_score)
        lead.quality_factors = self.quality.breakdown(factors).as_dict()
        lead.quality_score = self.quality.lead_quality(factors)

    async def _masked(self, lead: Lead) -> MarketplaceLeadResponse:
        scout = await self.scout_repo.get(lead.scout_id)
        return mask_lead(lead, scout.badge if scout else None)

    @staticmethod
    def _moderation_notification(lead: Lead, action: str, reason: Optional[str]):
        if action == Events.APPROVE:
            return LeadApprovedNotification(lead_id=lead.id, lead_title=lead.title, sale_price=lead.sale_price)
        if action == Events.REJECT:
            return LeadRejectedNotification(lead_id=lead.id, lead_title=lead.title, reason=reason)
        return LeadChangesRequestedNotification(lead_id=lead.id, lead_title=lead.title, reason=reason)
