"""
Scout service - registration, payout onboarding and reputation.
"""
import uuid
import logging
from typing import Optional, Dict, Any

from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.config import Settings
from leadscout.core.exceptions import NotFoundError, ForbiddenError, AlreadyExistsError, ValidationError
from leadscout.core.security import Principal
from leadscout.models.lead import LeadStatus
from leadscout.models.scout import Scout
from leadscout.models.user import Roles
from leadscout.repositories.lead_repo import LeadRepository
from leadscout.repositories.scout_repo import ScoutRepository
from leadscout.services.commission import CommissionCalculator
from leadscout.services.quality import QualityEngine, ScoutStats

logger = logging.getLogger(__name__)


class ScoutService:
    """Service for scout operations."""

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings
        self.scout_repo = ScoutRepository(session)
        self.lead_repo = LeadRepository(session)
        self.quality = QualityEngine(settings)
        self.commission = CommissionCalculator(settings)

    async def register(self, principal: Principal) -> Scout:
        """Create the scout profile for a scout user."""
        if principal.role != Roles.SCOUT:
            raise ForbiddenError("Only scout accounts can register as scouts")
        if await self.scout_repo.get_by_user(principal.user_id):
            raise AlreadyExistsError("Scout profile")

        scout = await self.scout_repo.create({"user_id": principal.user_id})
        await self.session.commit()
        logger.info(f"Scout {scout.id} registered for user {principal.user_id}")
        return scout

    async def get_profile(self, principal: Principal) -> Scout:
        scout = await self.scout_repo.get_by_user(principal.user_id)
        if not scout:
            raise NotFoundError("Scout profile")
        return scout

    async def connect_payout_account(
        self,
        principal: Principal,
        account_ref: str,
        onboarding_complete: bool = True
    ) -> Scout:
        """Record the scout's connected payout account."""
        if not account_ref or not account_ref.strip():
            raise ValidationError("Payout account reference is required", field="account_ref")
        scout = await self.get_profile(principal)
        scout = await self.scout_repo.update(scout, {
            "payout_account_ref": account_ref.strip(),
            "onboarding_complete": onboarding_complete,
        })
        await self.session.commit()
        logger.info(f"Scout {scout.id} connected payout account (complete={onboarding_complete})")
        return scout

    async def stats_for(self, scout: Scout) -> ScoutStats:
        average = await self.lead_repo.average_quality(scout.id, status=LeadStatus.SOLD)
        return ScoutStats(
            total_leads_submitted=scout.total_leads_submitted,
            total_leads_approved=scout.total_leads_approved,
            total_leads_sold=scout.total_leads_sold,
            total_leads_rejected=scout.total_leads_rejected,
            average_lead_quality=average,
        )

    async def refresh_reputation(self, scout_id: uuid.UUID) -> Scout:
        """Recompute quality score and badge in the caller's transaction."""
        scout = await self.scout_repo.get_for_update(scout_id)
        if not scout:
            raise NotFoundError("Scout", str(scout_id))

        stats = await self.stats_for(scout)
        return await self.scout_repo.update(scout, {
            "quality_score": self.quality.scout_reputation(stats),
            "badge": self.quality.badge_for(scout.total_leads_sold, scout.badge),
        })

    async def recalculate_quality(self, scout_id: uuid.UUID) -> Scout:
        scout = await self.refresh_reputation(scout_id)
        await self.session.commit()
        return scout

    async def dashboard(self, principal: Principal) -> Dict[str, Any]:
        """Reputation, badge progress and earnings for the scout's own view."""
        scout = await self.get_profile(principal)
        all_scores = await self.scout_repo.all_quality_scores()
        return {
            "scout": scout,
            "quality_label": self.quality.scout_label(scout.quality_score),
            "percentile": self.quality.percentile(scout.quality_score, all_scores),
            "next_badge": self.quality.next_badge_milestone(scout.total_leads_sold),
            "payout_eligible": self.commission.can_process_payout(scout.pending_earnings),
            "payout_threshold": self.commission.payout_threshold,
        }

    async def earnings_preview(self, category: Optional[str]) -> Dict[str, Any]:
        breakdown = self.commission.breakdown(self.commission.price_for_category(category))
        return breakdown.as_dict()
