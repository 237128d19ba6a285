"""Pay period state machine with transition validation and action policy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from timekeeper.exceptions import InvalidTransitionError, ValidationError
from timekeeper.models.enums import PeriodAction, PeriodStatus, Role

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from timekeeper.models.pay_period import PayPeriod


class PayPeriodStateMachine:
    """State machine for pay period status transitions.

    Allowed transitions:
    - draft → submitted (submit, owner)
    - submitted → approved (approve, reviewer)
    - submitted → rejected (reject, reviewer)
    - rejected → submitted (resubmit, owner)
    - approved → paid (mark_paid, payer)
    """

    TRANSITIONS: dict[tuple[PeriodStatus, PeriodAction], PeriodStatus] = {
        (PeriodStatus.DRAFT, PeriodAction.SUBMIT): PeriodStatus.SUBMITTED,
        (PeriodStatus.SUBMITTED, PeriodAction.APPROVE): PeriodStatus.APPROVED,
        (PeriodStatus.SUBMITTED, PeriodAction.REJECT): PeriodStatus.REJECTED,
        (PeriodStatus.REJECTED, PeriodAction.RESUBMIT): PeriodStatus.SUBMITTED,
        (PeriodStatus.APPROVED, PeriodAction.MARK_PAID): PeriodStatus.PAID,
    }

    # Actions only the owning employee may take, whatever their role
    OWNER_ACTIONS: frozenset[PeriodAction] = frozenset({PeriodAction.SUBMIT, PeriodAction.RESUBMIT})

    # Reviewer actions and the roles allowed to take them
    ACTION_ROLES: dict[PeriodAction, frozenset[Role]] = {
        PeriodAction.APPROVE: frozenset({Role.ADMIN, Role.HR, Role.PROJECT_MANAGER}),
        PeriodAction.REJECT: frozenset({Role.ADMIN, Role.HR, Role.PROJECT_MANAGER}),
        PeriodAction.MARK_PAID: frozenset({Role.ADMIN, Role.HR, Role.ACCOUNTANT}),
    }

    # Statuses in which the owner may still edit entries
    ENTRIES_EDITABLE: frozenset[PeriodStatus] = frozenset({PeriodStatus.DRAFT, PeriodStatus.REJECTED})

    TERMINAL: frozenset[PeriodStatus] = frozenset({PeriodStatus.PAID})

    @classmethod
    def can_transition(cls, from_status: str, action: str) -> bool:
        """Check if ``action`` is valid from ``from_status``."""
        return (PeriodStatus(from_status), PeriodAction(action)) in cls.TRANSITIONS

    @classmethod
    def next_status(cls, from_status: str, action: str) -> PeriodStatus:
        """Return the target status, raising InvalidTransitionError if the action is not allowed."""
        key = (PeriodStatus(from_status), PeriodAction(action))
        if key not in cls.TRANSITIONS:
            raise InvalidTransitionError(str(from_status), str(action))
        return cls.TRANSITIONS[key]

    @classmethod
    def allowed_actions(cls, status: str) -> list[PeriodAction]:
        """Actions that are valid from ``status``."""
        current = PeriodStatus(status)
        return [action for (from_status, action) in cls.TRANSITIONS if from_status == current]

    @classmethod
    def submit_action_for(cls, status: str) -> PeriodAction:
        """Submitting a rejected period is a resubmission."""
        return PeriodAction.RESUBMIT if PeriodStatus(status) == PeriodStatus.REJECTED else PeriodAction.SUBMIT

    @classmethod
    def roles_for(cls, action: str) -> frozenset[Role] | None:
        """Roles allowed to take a reviewer action; None for owner actions."""
        return cls.ACTION_ROLES.get(PeriodAction(action))

    @classmethod
    def is_owner_action(cls, action: str) -> bool:
        return PeriodAction(action) in cls.OWNER_ACTIONS

    @classmethod
    def can_edit_entries(cls, status: str) -> bool:
        """Check if the owner may create, change or delete entries in this status."""
        return PeriodStatus(status) in cls.ENTRIES_EDITABLE

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return PeriodStatus(status) in cls.TERMINAL

    @classmethod
    def transition_changes(
        cls,
        period: PayPeriod,
        action: str,
        actor_id: uuid.UUID,
        now: datetime,
        reason: str | None = None,
    ) -> dict[str, Any]:
        """Column changes for applying ``action`` to ``period``.

        Validates the transition (and the rejection reason) without
        mutating the period.
        """
        action = PeriodAction(action)
        new_status = cls.next_status(period.status, action)
        changes: dict[str, Any] = {"status": new_status.value}

        if action in cls.OWNER_ACTIONS:
            changes["submitted_at"] = now
            if action == PeriodAction.RESUBMIT:
                changes["rejection_reason"] = None
        elif action == PeriodAction.APPROVE:
            changes["reviewed_at"] = now
            changes["reviewer_id"] = actor_id
        elif action == PeriodAction.REJECT:
            reason = (reason or "").strip()
            if not reason:
                msg = "A rejection reason is required"
                raise ValidationError(msg, field="reason")
            changes["reviewed_at"] = now
            changes["reviewer_id"] = actor_id
            changes["rejection_reason"] = reason
        elif action == PeriodAction.MARK_PAID:
            changes["paid_at"] = now
            changes["paid_by"] = actor_id

        return changes
