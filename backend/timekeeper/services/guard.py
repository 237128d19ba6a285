# ruff: noqa: TC003
"""Authorization guard run before every domain operation.

Combines the role access table, the per-action policy of the state
machine and ownership of the records involved. Every check raises
ForbiddenError before anything is written.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from timekeeper.exceptions import ForbiddenError
from timekeeper.models.enums import PeriodAction
from timekeeper.services.access import allowed_roles, can_access
from timekeeper.services.state_machine import PayPeriodStateMachine

if TYPE_CHECKING:
    from timekeeper.models.pay_period import PayPeriod
    from timekeeper.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


def require_access(auth: AuthContext, operation: str) -> None:
    """Raise unless the caller's role may run ``operation``."""
    if not can_access(operation, auth.role):
        logger.info("Role %s denied %s for user %s", auth.role, operation, auth.user_id)
        raise ForbiddenError(f"Role {auth.role} may not perform {operation}", required_roles=allowed_roles(operation))


def require_owner(auth: AuthContext, owner_id: uuid.UUID, what: str) -> None:
    """Raise unless the caller owns the record."""
    if auth.user_id != owner_id:
        logger.info("User %s denied %s owned by %s", auth.user_id, what, owner_id)
        raise ForbiddenError(f"Only the owning employee may {what}")


def authorize_entry_mutation(auth: AuthContext, owner_id: uuid.UUID, period_status: str | None) -> None:
    """Only the owner edits an entry, and only while it is a draft or its period is DRAFT/REJECTED.

    Reviewers never edit entry content of another employee, whatever their role.
    """
    require_access(auth, "entries:write")
    require_owner(auth, owner_id, "change this time entry")
    if period_status is not None and not PayPeriodStateMachine.can_edit_entries(period_status):
        raise ForbiddenError(f"Time entries of a {period_status} pay period are read-only")


def authorize_period_action(auth: AuthContext, period: PayPeriod, action: PeriodAction) -> None:
    """Check role and ownership for a state machine action on ``period``.

    Reviewer actions are never allowed on the reviewer's own period, whatever their role.
    """
    if PayPeriodStateMachine.is_owner_action(action):
        require_access(auth, "periods:submit")
        require_owner(auth, period.employee_id, "submit this pay period")
        return

    require_access(auth, f"periods:{action.value}")
    if auth.user_id == period.employee_id:
        raise ForbiddenError("Reviewers may not review their own pay period")


def authorize_read(auth: AuthContext, owner_id: uuid.UUID, review_operation: str) -> None:
    """Owners read their own records; others need the review operation."""
    if auth.user_id == owner_id:
        return
    require_access(auth, review_operation)


def resolve_employee_scope(
    auth: AuthContext,
    requested: uuid.UUID | None,
    review_operation: str,
) -> uuid.UUID | None:
    """Employee filter a listing is allowed to use.

    Callers without the review operation are always scoped to themselves,
    whatever they asked for. ``None`` means every employee.
    """
    if not can_access(review_operation, auth.role):
        return auth.user_id
    return requested
