"""
Company service - subscriptions, credit top-ups, renewals and preferences.
All balance changes go through the credit ledger.
"""
import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.config import Settings
from leadscout.core.exceptions import NotFoundError, AlreadyExistsError, ForbiddenError, ValidationError
from leadscout.core.locks import EntityLocks
from leadscout.core.security import Principal
from leadscout.models.company import Company, SubscriptionStatus, default_preferences
from leadscout.models.ledger import CreditTransaction, TransactionType
from leadscout.models.user import Roles
from leadscout.repositories.company_repo import CompanyRepository
from leadscout.repositories.ledger_repo import CreditTransactionRepository
from leadscout.schemas.company import CheckoutCompleted, SubscriptionUpdate, CreditTopUp, PreferencesUpdate
from leadscout.schemas.notification import CreditsAddedNotification
from leadscout.services.ledger_service import CreditLedger, LedgerCheck
from leadscout.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

PLANS = ("starter", "growth", "scale")


def renewal_period(moment: Optional[datetime] = None) -> str:
    return (moment or datetime.utcnow()).strftime("%Y-%m")


@dataclass
class RenewalResult:
    period: str
    renewed: List[uuid.UUID] = field(default_factory=list)
    skipped: List[uuid.UUID] = field(default_factory=list)
    failed: Dict[uuid.UUID, str] = field(default_factory=dict)
    credits_allocated: int = 0

    def summary(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "renewed": len(self.renewed),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
            "credits_allocated": self.credits_allocated,
        }


class CompanyService:
    """Service for company operations."""

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
        self.company_repo = CompanyRepository(session)
        self.transaction_repo = CreditTransactionRepository(session)
        self.ledger = CreditLedger(session)

    def resolve_plan(self, price_id: str) -> str:
        """Map a processor price id (or a plan name) to a plan."""
        plan = self.settings.PLAN_PRICE_IDS.get(price_id, price_id)
        if plan not in PLANS:
            raise ValidationError(f"Unknown price ID: {price_id}", field="price_id")
        return plan

    async def get_company(self, principal: Principal) -> Company:
        company = await self.company_repo.get_by_user(principal.user_id)
        if not company:
            raise NotFoundError("Company profile")
        return company

    async def create_from_checkout(self, principal: Principal, checkout: CheckoutCompleted) -> Company:
        """Create the company with an active plan and its first allocation."""
        if principal.role != Roles.COMPANY:
            raise ForbiddenError("Only company accounts can subscribe")
        if await self.company_repo.get_by_user(principal.user_id):
            raise AlreadyExistsError("Company", "user", str(principal.user_id))

        plan = self.resolve_plan(checkout.price_id)
        credits = self.settings.plan_credits(plan)

        try:
            company = await self.company_repo.create({
                "user_id": principal.user_id,
                "customer_ref": checkout.customer_ref,
                "subscription_id": checkout.subscription_id,
                "plan": plan,
                "subscription_status": SubscriptionStatus.ACTIVE,
                "credits_allocated": credits,
                "preferences": default_preferences(),
            })
            await self.ledger.add(
                company.id, credits, TransactionType.ALLOCATION,
                f"Initial {plan} plan subscription",
                external_ref=checkout.subscription_id,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.session.refresh(company)
        logger.info(f"Company {company.id} created on {plan} plan with {credits} credits")
        return company

    async def update_subscription(self, update: SubscriptionUpdate) -> Company:
        """
        Apply a subscription change from the billing integration.
        Credits are granted only on the transition into active.
        """
        if update.status not in SubscriptionStatus.ALL:
            raise ValidationError(f"Unknown subscription status '{update.status}'", field="status")

        company = await self.company_repo.get_by_customer_ref(update.customer_ref)
        if not company:
            raise NotFoundError("Company", update.customer_ref)
        plan = self.resolve_plan(update.price_id)
        credits = self.settings.plan_credits(plan)

        async with self.locks.hold(("company", company.id)):
            try:
                company = await self.company_repo.get_for_update(company.id)
                activating = update.status == SubscriptionStatus.ACTIVE and company.subscription_status != SubscriptionStatus.ACTIVE
                await self.company_repo.update(company, {
                    "subscription_id": update.subscription_id,
                    "plan": plan,
                    "subscription_status": update.status,
                    "credits_allocated": credits,
                    "next_renewal_date": update.next_renewal_date,
                })
                if activating and credits > 0:
                    await self.ledger.add(
                        company.id, credits, TransactionType.ALLOCATION,
                        f"Monthly subscription renewal: {plan} plan",
                        external_ref=update.subscription_id,
                    )
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

        company = await self.company_repo.get_for_update(company.id)
        logger.info(f"Company {company.id} subscription {update.status} ({plan})")
        if activating and credits > 0:
            await self.notifier.dispatch(company.user_id, CreditsAddedNotification(
                amount=credits, credits_remaining=company.credits_remaining, renewal=True
            ))
        return company

    async def add_credits_purchase(self, principal: Principal, top_up: CreditTopUp) -> CreditTransaction:
        """One-time credit top-up."""
        company = await self.get_company(principal)
        async with self.locks.hold(("company", company.id)):
            try:
                entry = await self.ledger.add(
                    company.id, top_up.amount, TransactionType.PURCHASE,
                    f"Purchased {top_up.amount} credits",
                    external_ref=top_up.payment_ref,
                )
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

        await self.notifier.dispatch(company.user_id, CreditsAddedNotification(
            amount=top_up.amount, credits_remaining=entry.balance_after
        ))
        return entry

    async def renew_monthly_credits(self, period: Optional[str] = None) -> RenewalResult:
        """
        Grant each active company its plan allocation for the period.
        Companies are processed independently; one failure does not stop the batch.
        A company already renewed for the period is skipped.
        """
        result = RenewalResult(period=period or renewal_period())
        # Plain values; a rollback expires loaded rows
        companies = [(c.id, c.user_id, c.plan) for c in await self.company_repo.list_active()]
        logger.info(f"Credit renewal {result.period}: {len(companies)} active subscriptions")

        for company_id, user_id, plan in companies:
            credits = self.settings.plan_credits(plan)
            if credits <= 0:
                logger.info(f"Company {company_id} has no plan configured, skipping")
                result.skipped.append(company_id)
                continue

            ref = f"renewal:{result.period}"
            try:
                async with self.locks.hold(("company", company_id)):
                    if await self.transaction_repo.exists_with_ref(company_id, ref):
                        result.skipped.append(company_id)
                        continue
                    entry = await self.ledger.add(
                        company_id, credits, TransactionType.ALLOCATION,
                        f"Monthly {plan} plan renewal",
                        external_ref=ref,
                    )
                    await self.session.commit()
            except Exception as e:
                await self.session.rollback()
                logger.error(f"Credit renewal failed for company {company_id}: {e}")
                result.failed[company_id] = str(e)
                continue

            result.renewed.append(company_id)
            result.credits_allocated += credits
            await self.notifier.dispatch(user_id, CreditsAddedNotification(
                amount=credits, credits_remaining=entry.balance_after, renewal=True
            ))

        logger.info(f"Credit renewal {result.period} complete: {result.summary()}")
        return result

    async def update_preferences(self, principal: Principal, changes: PreferencesUpdate) -> Company:
        company = await self.get_company(principal)
        data = changes.model_dump(exclude_unset=True, mode="json")

        if data.get("categories"):
            unknown = [c for c in data["categories"] if c not in self.settings.LEAD_CATEGORIES]
            if unknown:
                raise ValidationError(f"Unknown categories: {', '.join(unknown)}", field="categories")
        budget_min = data.get("budget_min", (company.preferences or {}).get("budget_min"))
        budget_max = data.get("budget_max", (company.preferences or {}).get("budget_max"))
        if budget_min is not None and budget_max is not None and float(budget_min) > float(budget_max):
            raise ValidationError("budget_min cannot exceed budget_max", field="budget_min")

        preferences = {**default_preferences(), **(company.preferences or {}), **data}
        company = await self.company_repo.update(company, {"preferences": preferences})
        await self.session.commit()
        return company

    async def credit_history(self, principal: Principal) -> List[CreditTransaction]:
        company = await self.get_company(principal)
        return await self.ledger.history(company.id)

    async def verify_ledger(self, company_id: uuid.UUID) -> LedgerCheck:
        return await self.ledger.verify(company_id)
