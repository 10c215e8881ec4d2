"""
Tests for subscriptions, top-ups, monthly renewal and preferences.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from leadscout.core.exceptions import AlreadyExistsError, ValidationError, ForbiddenError
from leadscout.models.company import SubscriptionStatus
from leadscout.models.ledger import TransactionType
from leadscout.models.user import Roles
from leadscout.schemas.company import CheckoutCompleted, SubscriptionUpdate, CreditTopUp, PreferencesUpdate
from leadscout.services.company_service import CompanyService, renewal_period
from leadscout.services.ledger_service import CreditLedger

from conftest import make_company, make_user, principal_for


@pytest.fixture
def service(session, settings, locks, notifier) -> CompanyService:
    return CompanyService(session, settings, locks, notifier)


def _checkout(plan="starter") -> CheckoutCompleted:
    return CheckoutCompleted(customer_ref="cus_123", subscription_id="sub_123", price_id=plan)


class TestCheckout:
    async def test_checkout_creates_company_with_allocation(self, session, service):
        user = await make_user(session, Roles.COMPANY)

        company = await service.create_from_checkout(principal_for(user), _checkout("growth"))

        assert company.plan == "growth"
        assert company.subscription_status == SubscriptionStatus.ACTIVE
        assert company.credits_remaining == 60
        history = await CreditLedger(session).history(company.id)
        assert [(e.type, e.amount) for e in history] == [(TransactionType.ALLOCATION, 60)]

    async def test_checkout_twice(self, session, service):
        user = await make_user(session, Roles.COMPANY)
        await service.create_from_checkout(principal_for(user), _checkout())
        with pytest.raises(AlreadyExistsError):
            await service.create_from_checkout(principal_for(user), _checkout())

    async def test_scouts_cannot_subscribe(self, session, service):
        user = await make_user(session, Roles.SCOUT)
        with pytest.raises(ForbiddenError):
            await service.create_from_checkout(principal_for(user), _checkout())

    async def test_price_id_mapping(self, settings, session, locks, notifier):
        settings.PLAN_PRICE_IDS = {"price_abc": "scale"}
        service = CompanyService(session, settings, locks, notifier)
        assert service.resolve_plan("price_abc") == "scale"
        assert service.resolve_plan("starter") == "starter"
        with pytest.raises(ValidationError):
            service.resolve_plan("price_unknown")


class TestSubscriptionUpdates:
    async def test_activation_grants_credits_once(self, session, service, notifier):
        company, user = await make_company(session, credits=0)
        company.subscription_status = SubscriptionStatus.INCOMPLETE
        session.add(company)
        await session.commit()

        update = SubscriptionUpdate(
            customer_ref=company.customer_ref, subscription_id="sub_9",
            status=SubscriptionStatus.ACTIVE, price_id="starter",
        )
        company = await service.update_subscription(update)
        assert company.credits_remaining == 20

        # Repeated "active" events do not grant again
        company = await service.update_subscription(update)
        assert company.credits_remaining == 20
        assert notifier.types_for(user.id) == ["credits_added"]

    async def test_cancellation_keeps_balance(self, session, service):
        company, _ = await make_company(session, credits=7)
        update = SubscriptionUpdate(
            customer_ref=company.customer_ref, subscription_id="sub_9",
            status=SubscriptionStatus.CANCELED, price_id="starter",
        )
        company = await service.update_subscription(update)
        assert company.subscription_status == SubscriptionStatus.CANCELED
        assert company.credits_remaining == 7

    async def test_unknown_status(self, session, service):
        company, _ = await make_company(session)
        with pytest.raises(ValidationError):
            await service.update_subscription(SubscriptionUpdate(
                customer_ref=company.customer_ref, subscription_id="s", status="paused", price_id="starter",
            ))


class TestCredits:
    async def test_top_up(self, session, service, notifier):
        company, user = await make_company(session, credits=2)

        entry = await service.add_credits_purchase(principal_for(user), CreditTopUp(amount=10, payment_ref="pi_1"))

        assert entry.type == TransactionType.PURCHASE
        assert entry.balance_after == 12
        assert entry.external_ref == "pi_1"
        assert notifier.types_for(user.id) == ["credits_added"]
        assert (await service.verify_ledger(company.id)).consistent

    async def test_credit_history(self, session, service):
        _, user = await make_company(session, credits=5)
        await service.add_credits_purchase(principal_for(user), CreditTopUp(amount=3))
        history = await service.credit_history(principal_for(user))
        assert [e.balance_after for e in history] == [5, 8]


class TestMonthlyRenewal:
    async def test_renews_each_active_company_once(self, session, service, notifier):
        starter, starter_user = await make_company(session, credits=3, plan="starter")
        scale, _ = await make_company(session, credits=0, plan="scale")
        lapsed, _ = await make_company(session, credits=4, plan="growth")
        lapsed.subscription_status = SubscriptionStatus.CANCELED
        session.add(lapsed)
        await session.commit()

        result = await service.renew_monthly_credits("2026-10")

        assert set(result.renewed) == {starter.id, scale.id}
        assert result.credits_allocated == 170
        ledger = CreditLedger(session)
        assert await ledger.balance(starter.id) == 23
        assert await ledger.balance(scale.id) == 150
        assert await ledger.balance(lapsed.id) == 4
        assert "credits_added" in notifier.types_for(starter_user.id)

        again = await service.renew_monthly_credits("2026-10")
        assert again.renewed == []
        assert set(again.skipped) == {starter.id, scale.id}
        assert await ledger.balance(starter.id) == 23

        next_month = await service.renew_monthly_credits("2026-11")
        assert len(next_month.renewed) == 2

    async def test_company_without_plan_is_skipped(self, session, service):
        company, _ = await make_company(session, credits=1, plan=None)
        result = await service.renew_monthly_credits("2026-10")
        assert result.skipped == [company.id]
        assert result.summary()["renewed"] == 0

    def test_renewal_period(self):
        assert renewal_period(datetime(2026, 2, 1)) == "2026-02"


class TestPreferences:
    async def test_update_preferences(self, session, service):
        company, user = await make_company(session)
        company = await service.update_preferences(
            principal_for(user),
            PreferencesUpdate(categories=["IT Services", "HR"], budget_min=Decimal("1000")),
        )
        assert company.preferences["categories"] == ["IT Services", "HR"]
        assert company.preferences["budget_min"] == "1000"
        assert company.preferences["notifications"]["low_credits"] is True

    async def test_rejects_unknown_category(self, session, service):
        _, user = await make_company(session)
        with pytest.raises(ValidationError):
            await service.update_preferences(principal_for(user), PreferencesUpdate(categories=["Astrology"]))

    async def test_rejects_inverted_budget(self, session, service):
        _, user = await make_company(session)
        with pytest.raises(ValidationError):
            await service.update_preferences(
                principal_for(user),
                PreferencesUpdate(budget_min=Decimal("5000"), budget_max=Decimal("100")),
            )
