"""Shared fixtures: a throwaway SQLite database, fake collaborators and factories."""

import asyncio
import uuid
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import pytest

from leadscout.config import Settings
from leadscout.core.exceptions import ExternalServiceError
from leadscout.core.locks import EntityLocks
from leadscout.core.security import Principal
from leadscout.database import build_engine, build_session_factory, init_db
from leadscout.models.company import Company, SubscriptionStatus
from leadscout.models.ledger import TransactionType
from leadscout.models.lead import Lead, LeadStatus, ModerationStatus
from leadscout.models.scout import Scout
from leadscout.models.user import User, Roles
from leadscout.services.integrations.base import TransferProcessor
from leadscout.services.ledger_service import CreditLedger
from leadscout.services.notification_service import NotificationDispatcher


class RecordingNotifier(NotificationDispatcher):
    """Keeps every notification in memory."""

    def __init__(self):
        self.sent: List[Tuple[uuid.UUID, object]] = []

    async def notify(self, user_id, notification) -> None:
        self.sent.append((user_id, notification))

    def types_for(self, user_id) -> List[str]:
        return [n.type for uid, n in self.sent if uid == user_id]


class FakeTransferProcessor(TransferProcessor):
    """Transfer processor double with scripted failures and hangs."""

    def __init__(self):
        self.calls: List[Dict] = []
        self.failing: set = set()
        self.hanging: set = set()
        self.crashing: set = set()
        self._by_key: Dict[str, str] = {}

    async def create_transfer(self, destination, amount_minor_units, metadata, idempotency_key=None) -> str:
        self.calls.append({
            "destination": destination,
            "amount": amount_minor_units,
            "metadata": metadata,
            "idempotency_key": idempotency_key,
        })
        if destination in self.hanging:
            await asyncio.sleep(3600)
        if destination in self.failing:
            raise ExternalServiceError("Fake transfer", "account closed")
        if destination in self.crashing:
            raise RuntimeError("connection reset")
        if idempotency_key not in self._by_key:
            self._by_key[idempotency_key] = f"tr_{len(self._by_key) + 1:04d}"
        return self._by_key[idempotency_key]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'leadscout-test.db'}",
        PAYOUT_TRANSFER_TIMEOUT_SECONDS=0.2,
        JWT_SECRET_KEY="test-secret",
    )


@pytest.fixture
async def engine(settings):
    engine = build_engine(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def locks() -> EntityLocks:
    return EntityLocks()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def transfers() -> FakeTransferProcessor:
    return FakeTransferProcessor()


# ----- factories -----

def principal_for(user: User) -> Principal:
    return Principal(
        user_id=user.id,
        external_id=user.external_id,
        role=user.role,
        email=user.email,
        name=user.name,
    )


async def make_user(session, role: str, email: Optional[str] = None) -> User:
    external_id = f"{role}-{uuid.uuid4().hex[:8]}"
    user = User(
        external_id=external_id,
        role=role,
        email=email if email is not None else f"{external_id}@example.com",
        name=external_id,
    )
    session.add(user)
    await session.commit()
    return user


async def make_company(session, credits: int = 10, email: Optional[str] = None, plan: str = "starter") -> Tuple[Company, User]:
    user = await make_user(session, Roles.COMPANY, email)
    company = Company(
        user_id=user.id,
        customer_ref=f"cus_{uuid.uuid4().hex[:10]}",
        plan=plan,
        subscription_status=SubscriptionStatus.ACTIVE,
    )
    session.add(company)
    await session.commit()
    if credits:
        await CreditLedger(session).add(company.id, credits, TransactionType.ALLOCATION, "Initial allocation")
        await session.commit()
        await session.refresh(company)
    return company, user


async def make_scout(
    session,
    email: Optional[str] = None,
    pending: Decimal = Decimal("0.00"),
    onboarded: bool = True,
    account_ref: Optional[str] = None,
    **fields
) -> Tuple[Scout, User]:
    user = await make_user(session, Roles.SCOUT, email)
    scout = Scout(
        user_id=user.id,
        pending_earnings=pending,
        onboarding_complete=onboarded,
        payout_account_ref=account_ref if account_ref is not None else (f"acct_{user.external_id}" if onboarded else None),
        **fields
    )
    session.add(scout)
    await session.commit()
    return scout, user


async def make_lead(
    session,
    scout: Scout,
    category: str = "IT Services",
    status: str = LeadStatus.APPROVED,
    moderation_status: Optional[str] = None,
    sale_price: Decimal = Decimal("30.00"),
    company_name: Optional[str] = None,
    quality_score: float = 6.5
) -> Lead:
    if moderation_status is None:
        moderation_status = {
            LeadStatus.APPROVED: ModerationStatus.APPROVED,
            LeadStatus.REJECTED: ModerationStatus.REJECTED,
            LeadStatus.SOLD: ModerationStatus.APPROVED,
        }.get(status, ModerationStatus.PENDING)
    lead = Lead(
        scout_id=scout.id,
        title="ERP migration for a logistics firm",
        description="A" * 150,
        category=category,
        company_name=company_name or f"Acme {uuid.uuid4().hex[:6]}",
        contact_name="Marie Weber",
        contact_email="marie@acme.lu",
        contact_phone="+35262112345",
        company_website="https://acme.lu",
        estimated_budget=Decimal("25000"),
        status=status,
        moderation_status=moderation_status,
        quality_score=quality_score,
        sale_price=sale_price,
    )
    session.add(lead)
    await session.commit()
    return lead


def lead_payload(**overrides) -> Dict:
    data = {
        "title": "Office network refresh for logistics firm",
        "description": (
            "Mid-sized logistics company looking to replace ageing switches and Wi-Fi across "
            "two warehouses. Budget approved, decision expected this quarter."
        ),
        "category": "IT Services",
        "company_name": "Acme Logistics",
        "contact_name": "Marie Weber",
        "contact_email": "marie@acme-logistics.lu",
        "contact_phone": "+35262112345",
        "company_website": "https://acme-logistics.lu",
        "estimated_budget": Decimal("25000"),
        "timeline": "Q3",
        "photos": [],
    }
    data.update(overrides)
    return data
