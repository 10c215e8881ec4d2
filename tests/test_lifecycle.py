"""
Tests for the lead lifecycle state machine.
"""
import uuid
from decimal import Decimal

import pytest

from leadscout.core.exceptions import InvalidStateError, ForbiddenError, ValidationError
from leadscout.models.lead import Lead, LeadStatus, ModerationStatus
from leadscout.models.moderation import Actions
from leadscout.models.user import Roles
from leadscout.services.lifecycle import LeadLifecycle, Events


def _lead(status=LeadStatus.PENDING_REVIEW, moderation=ModerationStatus.PENDING, **fields) -> Lead:
    return Lead(
        scout_id=fields.pop("scout_id", uuid.uuid4()),
        title="Payroll outsourcing",
        description="x" * 120,
        category="HR",
        company_name="Globex",
        contact_name="Hank",
        contact_email="hank@globex.lu",
        contact_phone="+35262112345",
        estimated_budget=Decimal("5000"),
        sale_price=Decimal("20"),
        status=status,
        moderation_status=moderation,
        **fields
    )


class TestModeration:
    def test_approve_pending(self):
        lead = _lead()
        transition = LeadLifecycle.plan(lead, Events.APPROVE, Roles.ADMIN)
        LeadLifecycle.apply(lead, transition)
        assert transition.action == Actions.APPROVED
        assert lead.status == LeadStatus.APPROVED
        assert lead.moderation_status == ModerationStatus.APPROVED

    def test_reject_requires_reason(self):
        with pytest.raises(ValidationError):
            LeadLifecycle.plan(_lead(), Events.REJECT, Roles.ADMIN, reason="   ")

    def test_reject_records_reason(self):
        lead = _lead()
        LeadLifecycle.apply(lead, LeadLifecycle.plan(lead, Events.REJECT, Roles.ADMIN, reason="Spam"))
        assert lead.status == LeadStatus.REJECTED
        assert lead.moderation_notes == "Spam"

    def test_request_changes_keeps_lead_in_review(self):
        lead = _lead()
        LeadLifecycle.apply(lead, LeadLifecycle.plan(lead, Events.REQUEST_CHANGES, Roles.ADMIN, reason="Add phone"))
        assert lead.status == LeadStatus.PENDING_REVIEW
        assert lead.moderation_status == ModerationStatus.CHANGES_REQUESTED

    def test_only_admins_moderate(self):
        with pytest.raises(ForbiddenError):
            LeadLifecycle.plan(_lead(), Events.APPROVE, Roles.SCOUT)

    def test_cannot_approve_twice(self):
        lead = _lead(LeadStatus.APPROVED, ModerationStatus.APPROVED)
        with pytest.raises(InvalidStateError):
            LeadLifecycle.plan(lead, Events.APPROVE, Roles.ADMIN)

    def test_unknown_event(self):
        with pytest.raises(ValidationError):
            LeadLifecycle.plan(_lead(), "publish", Roles.ADMIN)


class TestEdit:
    def test_owner_edit_returns_lead_to_review(self):
        scout_id = uuid.uuid4()
        lead = _lead(
            moderation=ModerationStatus.CHANGES_REQUESTED, scout_id=scout_id, moderation_notes="Add phone"
        )
        LeadLifecycle.apply(lead, LeadLifecycle.plan(lead, Events.EDIT, Roles.SCOUT, actor_scout_id=scout_id))
        assert lead.moderation_status == ModerationStatus.PENDING
        assert lead.moderation_notes is None

    def test_other_scout_cannot_edit(self):
        with pytest.raises(ForbiddenError):
            LeadLifecycle.plan(_lead(), Events.EDIT, Roles.SCOUT, actor_scout_id=uuid.uuid4())

    def test_approved_lead_is_frozen(self):
        scout_id = uuid.uuid4()
        lead = _lead(LeadStatus.APPROVED, ModerationStatus.APPROVED, scout_id=scout_id)
        with pytest.raises(InvalidStateError):
            LeadLifecycle.plan(lead, Events.EDIT, Roles.SCOUT, actor_scout_id=scout_id)


class TestSale:
    def test_sell_approved(self):
        lead = _lead(LeadStatus.APPROVED, ModerationStatus.APPROVED)
        transition = LeadLifecycle.plan(lead, Events.SELL)
        assert transition.from_status == LeadStatus.APPROVED
        assert transition.to_status == LeadStatus.SOLD

    def test_cannot_sell_pending(self):
        with pytest.raises(InvalidStateError):
            LeadLifecycle.plan(_lead(), Events.SELL)

    def test_sold_and_rejected_are_terminal(self):
        sold = _lead(LeadStatus.SOLD, ModerationStatus.APPROVED, purchased_by=uuid.uuid4())
        rejected = _lead(LeadStatus.REJECTED, ModerationStatus.REJECTED)
        for lead in (sold, rejected):
            assert LeadLifecycle.is_terminal(lead.status)
            assert LeadLifecycle.allowed_events(lead) == ()
            with pytest.raises(InvalidStateError):
                LeadLifecycle.plan(lead, Events.SELL)

    def test_allowed_events_for_pending(self):
        assert set(LeadLifecycle.allowed_events(_lead())) == {
            Events.APPROVE, Events.REJECT, Events.REQUEST_CHANGES, Events.EDIT,
        }
