"""
Lead lifecycle state machine.

Moderation:
    pending -> approved | rejected | changes_requested
    changes_requested -> pending (scout edit) | rejected
Sale:
    approved -> sold (purchase only)

Terminal: rejected, sold. Pure computation; persistence and the audit
log are handled by the services.
"""
from dataclasses import dataclass
from typing import Optional, Dict, Tuple, FrozenSet

from leadscout.core.exceptions import InvalidStateError, ForbiddenError, ValidationError
from leadscout.models.lead import Lead, LeadStatus, ModerationStatus
from leadscout.models.moderation import Actions
from leadscout.models.user import Roles


class Events:
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_CHANGES = "request_changes"
    EDIT = "edit"
    SELL = "sell"

    MODERATION = (APPROVE, REJECT, REQUEST_CHANGES)


@dataclass(frozen=True)
class Rule:
    from_moderation: FrozenSet[str]
    to_moderation: str
    to_status: str
    action: str
    requires_reason: bool = False


# event -> rule
_TRANSITIONS: Dict[str, Rule] = {
    Events.APPROVE: Rule(
        frozenset({ModerationStatus.PENDING}),
        ModerationStatus.APPROVED, LeadStatus.APPROVED, Actions.APPROVED,
    ),
    Events.REJECT: Rule(
        frozenset({ModerationStatus.PENDING, ModerationStatus.CHANGES_REQUESTED}),
        ModerationStatus.REJECTED, LeadStatus.REJECTED, Actions.REJECTED,
        requires_reason=True,
    ),
    Events.REQUEST_CHANGES: Rule(
        frozenset({ModerationStatus.PENDING}),
        ModerationStatus.CHANGES_REQUESTED, LeadStatus.PENDING_REVIEW, Actions.CHANGES_REQUESTED,
        requires_reason=True,
    ),
    Events.EDIT: Rule(
        frozenset({ModerationStatus.PENDING, ModerationStatus.CHANGES_REQUESTED}),
        ModerationStatus.PENDING, LeadStatus.PENDING_REVIEW, Actions.EDITED,
    ),
    Events.SELL: Rule(
        frozenset({ModerationStatus.APPROVED}),
        ModerationStatus.APPROVED, LeadStatus.SOLD, Actions.SOLD,
    ),
}

TERMINAL_STATUSES = (LeadStatus.REJECTED, LeadStatus.SOLD)


@dataclass(frozen=True)
class Transition:
    event: str
    action: str
    from_status: str
    to_status: str
    from_moderation: str
    to_moderation: str
    reason: Optional[str] = None


class LeadLifecycle:
    """Validates lead transitions and applies them to the model."""

    @staticmethod
    def plan(
        lead: Lead,
        event: str,
        actor_role: Optional[str] = None,
        actor_scout_id=None,
        reason: Optional[str] = None
    ) -> Transition:
        """Check event against the lead's state and the actor; raise if not allowed."""
        rule = _TRANSITIONS.get(event)
        if rule is None:
            raise ValidationError(f"Unknown lead event '{event}'", field="action")

        if event in Events.MODERATION and actor_role != Roles.ADMIN:
            raise ForbiddenError("Only admins can moderate leads")
        if event == Events.EDIT and (actor_scout_id is None or actor_scout_id != lead.scout_id):
            raise ForbiddenError("Only the submitting scout can edit this lead")

        if lead.status in TERMINAL_STATUSES or lead.moderation_status not in rule.from_moderation:
            raise InvalidStateError(
                f"Cannot {event.replace('_', ' ')} lead in state "
                f"{lead.status}/{lead.moderation_status}"
            )
        if event == Events.SELL and (lead.status != LeadStatus.APPROVED or lead.purchased_by is not None):
            raise InvalidStateError("Lead is not available for purchase")

        reason = (reason or "").strip() or None
        if rule.requires_reason and not reason:
            raise ValidationError("A reason is required", field="reason")

        return Transition(
            event=event,
            action=rule.action,
            from_status=lead.status,
            to_status=rule.to_status,
            from_moderation=lead.moderation_status,
            to_moderation=rule.to_moderation,
            reason=reason,
        )

    @staticmethod
    def apply(lead: Lead, transition: Transition) -> Lead:
        lead.status = transition.to_status
        lead.moderation_status = transition.to_moderation
        if transition.event in Events.MODERATION:
            lead.moderation_notes = transition.reason
        elif transition.event == Events.EDIT:
            lead.moderation_notes = None
        return lead

    @staticmethod
    def is_terminal(status: str) -> bool:
        return status in TERMINAL_STATUSES

    @staticmethod
    def allowed_events(lead: Lead) -> Tuple[str, ...]:
        if lead.status in TERMINAL_STATUSES:
            return ()
        return tuple(
            event for event, rule in _TRANSITIONS.items()
            if lead.moderation_status in rule.from_moderation
            and not (event == Events.SELL and lead.purchased_by is not None)
        )
