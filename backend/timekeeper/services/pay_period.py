# ruff: noqa: TC003
from __future__ import annotations

import datetime
import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from timekeeper.config import get_settings
from timekeeper.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from timekeeper.models.enums import AuditAction, AuditEntityType, PeriodAction, PeriodStatus
from timekeeper.models.pay_period import PayPeriod
from timekeeper.models.time_entry import TimeEntry
from timekeeper.schemas.pay_period import PayPeriodResponse
from timekeeper.services.aggregation import per_diem_amount
from timekeeper.services.audit import model_to_audit_dict, write_audit_log
from timekeeper.services.employee import employee_names
from timekeeper.services.guard import authorize_period_action, authorize_read, require_access, require_owner
from timekeeper.services.period_store import (
    find_period_for_week,
    get_period_or_404,
    load_period_entries,
    recompute_period,
    save_period,
)
from timekeeper.services.state_machine import PayPeriodStateMachine
from timekeeper.services.time_entry import _build_entry_response

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from timekeeper.schemas.auth import AuthContext
    from timekeeper.schemas.pay_period import CreatePeriodPayload, RejectPayload

logger = logging.getLogger(__name__)

PERIOD_DAYS = 7


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_period_response(
    period: PayPeriod,
    entries: list[TimeEntry],
    employee_name: str | None = None,
) -> PayPeriodResponse:
    """Map a pay period and its entries to the response schema."""
    return PayPeriodResponse(
        id=period.id,
        employee_id=period.employee_id,
        employee_name=employee_name,
        start_date=period.start_date,
        end_date=period.end_date,
        status=PeriodStatus(period.status),
        total_hours=period.total_hours,
        total_overtime_hours=period.total_overtime_hours,
        total_holiday_hours=period.total_holiday_hours,
        total_sick_hours=period.total_sick_hours,
        total_rotation_hours=period.total_rotation_hours,
        total_travel_hours=period.total_travel_hours,
        total_pto_hours=period.total_pto_hours,
        total_per_diem=period.total_per_diem,
        per_diem_amount=per_diem_amount(period.total_per_diem, get_settings().per_diem_unit_rate),
        total_sick_days=period.total_sick_days,
        total_pto=period.total_pto,
        total_rotation_days=period.total_rotation_days,
        submitted_at=period.submitted_at,
        reviewed_at=period.reviewed_at,
        reviewer_id=period.reviewer_id,
        rejection_reason=period.rejection_reason,
        paid_at=period.paid_at,
        paid_by=period.paid_by,
        version=period.version,
        created_at=period.created_at,
        entries=[_build_entry_response(entry) for entry in entries],
    )


async def _period_response(period: PayPeriod, entries: list[TimeEntry]) -> PayPeriodResponse:
    names = await employee_names({period.employee_id})
    return _build_period_response(period, entries, names.get(period.employee_id))


def _week_window(week_start: datetime.date) -> tuple[datetime.date, datetime.date]:
    """Validate a week start and return the inclusive 7-day window."""
    weekday = get_settings().week_start_weekday
    if week_start.weekday() != weekday:
        msg = f"week_start must fall on weekday {weekday} (0 = Monday), got {week_start.isoformat()}"
        raise ValidationError(msg, field="week_start")
    return week_start, week_start + datetime.timedelta(days=PERIOD_DAYS - 1)


async def _load_draft_entries(
    session: AsyncSession,
    employee_id: uuid.UUID,
    entry_ids: list[uuid.UUID],
    start_date: datetime.date,
    end_date: datetime.date,
) -> list[TimeEntry]:
    """Lock the entries to bundle and check each one can join the period."""
    result = await session.execute(select(TimeEntry).where(col(TimeEntry.id).in_(entry_ids)).with_for_update())
    by_id = {entry.id: entry for entry in result.scalars().all()}

    entries: list[TimeEntry] = []
    for entry_id in entry_ids:
        entry = by_id.get(entry_id)
        if entry is None:
            raise NotFoundError("Time entry", entry_id)
        if entry.employee_id != employee_id:
            raise ForbiddenError("Only the owning employee may bundle these time entries")
        if entry.pay_period_id is not None:
            msg = f"Time entry for {entry.date.isoformat()} already belongs to a pay period"
            raise ValidationError(msg, field="entry_ids")
        if not start_date <= entry.date <= end_date:
            msg = f"Time entry for {entry.date.isoformat()} is outside the week {start_date.isoformat()}"
            raise ValidationError(msg, field="entry_ids")
        entries.append(entry)
    return entries


async def _apply_action(
    session: AsyncSession,
    auth: AuthContext,
    period_id: uuid.UUID,
    action: PeriodAction | None,
    reason: str | None = None,
    entry_reasons: dict[uuid.UUID, str] | None = None,
) -> PayPeriodResponse:
    """Shared flow for every state machine action.

    1. Lock the period (404 if missing).
    2. Guard: role policy and ownership.
    3. State machine: validate the transition, derive the column changes.
    4. Conditional update on the version.
    5. Bring entry status (and rejection reasons) in step with the period.
    6. Audit log, commit.

    ``action`` None means submit, which becomes resubmit for a rejected period.
    """
    period = await get_period_or_404(session, period_id, for_update=True)
    if action is None:
        action = PayPeriodStateMachine.submit_action_for(period.status)

    authorize_period_action(auth, period, action)

    before_dict = model_to_audit_dict(period)
    now = datetime.datetime.now(datetime.UTC)
    changes = PayPeriodStateMachine.transition_changes(period, action, auth.user_id, now, reason)

    entries = await load_period_entries(session, period.id)
    entry_reasons = entry_reasons or {}
    unknown = set(entry_reasons) - {entry.id for entry in entries}
    if unknown:
        msg = f"Entries not in this pay period: {', '.join(sorted(str(entry_id) for entry_id in unknown))}"
        raise ValidationError(msg, field="entry_reasons")

    await save_period(session, period, changes, action.value)

    for entry in entries:
        entry.status = period.status
        entry.updated_at = now
        if action == PeriodAction.REJECT:
            entry.rejection_reason = (entry_reasons.get(entry.id) or "").strip() or None
        elif action == PeriodAction.RESUBMIT:
            entry.rejection_reason = None

    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.PAY_PERIOD,
        entity_id=period.id,
        action=AuditAction(action.value.upper()),
        before_json=before_dict,
        after_json=model_to_audit_dict(period),
    )

    await session.commit()
    logger.info(
        "Pay period %s: %s by %s (%s) -> %s",
        period.id,
        action.value,
        auth.user_id,
        auth.role,
        period.status,
    )
    return await _period_response(period, entries)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_period_from_drafts(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreatePeriodPayload,
) -> tuple[PayPeriodResponse, bool]:
    """Bundle unassigned entries of one week into the employee's pay period.

    Flow:
    1. Guard: only the owner bundles their entries
    2. Validate the week window
    3. Lock and check the entries (owned, unassigned, inside the window)
    4. Reuse the week's DRAFT/REJECTED period or create a new one
    5. Assign the entries and recompute aggregates
    6. Audit log, commit

    Returns the period and whether it was created.
    """
    require_access(auth, "periods:create")
    employee_id = payload.employee_id or auth.user_id
    require_owner(auth, employee_id, "bundle these time entries")

    start_date, end_date = _week_window(payload.week_start)
    entry_ids = list(dict.fromkeys(payload.entry_ids))
    drafts = await _load_draft_entries(session, employee_id, entry_ids, start_date, end_date)

    period = await find_period_for_week(session, employee_id, start_date)
    created = period is None
    before_dict = None
    if period is None:
        period = PayPeriod(employee_id=employee_id, start_date=start_date, end_date=end_date)
        session.add(period)
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            raise ConflictError(PeriodStatus.DRAFT, "create") from None
    elif not PayPeriodStateMachine.can_edit_entries(period.status):
        raise InvalidTransitionError(period.status, "add entries")
    else:
        before_dict = model_to_audit_dict(period)

    now = datetime.datetime.now(datetime.UTC)
    for entry in drafts:
        entry.pay_period_id = period.id
        entry.status = period.status
        entry.updated_at = now
    await session.flush()

    entries = await recompute_period(session, period)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.PAY_PERIOD,
        entity_id=period.id,
        action=AuditAction.CREATE if created else AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(period),
    )

    await session.commit()
    logger.info("Pay period %s for %s: %d entries bundled", period.id, employee_id, len(drafts))
    return await _period_response(period, entries), created


async def submit_period(
    session: AsyncSession,
    auth: AuthContext,
    period_id: uuid.UUID,
) -> PayPeriodResponse:
    """Submit a DRAFT period, or resubmit a REJECTED one, for review."""
    return await _apply_action(session, auth, period_id, None)


async def approve_period(
    session: AsyncSession,
    auth: AuthContext,
    period_id: uuid.UUID,
) -> PayPeriodResponse:
    """Approve a SUBMITTED period."""
    return await _apply_action(session, auth, period_id, PeriodAction.APPROVE)


async def reject_period(
    session: AsyncSession,
    auth: AuthContext,
    period_id: uuid.UUID,
    payload: RejectPayload,
) -> PayPeriodResponse:
    """Reject a SUBMITTED period with a reason and optional per-entry reasons."""
    return await _apply_action(
        session,
        auth,
        period_id,
        PeriodAction.REJECT,
        reason=payload.reason,
        entry_reasons=payload.entry_reasons,
    )


async def mark_period_paid(
    session: AsyncSession,
    auth: AuthContext,
    period_id: uuid.UUID,
) -> PayPeriodResponse:
    """Mark an APPROVED period as PAID. Terminal."""
    return await _apply_action(session, auth, period_id, PeriodAction.MARK_PAID)


async def get_period(
    session: AsyncSession,
    auth: AuthContext,
    period_id: uuid.UUID,
) -> PayPeriodResponse:
    """Load one pay period with its entries."""
    period = await get_period_or_404(session, period_id)
    authorize_read(auth, period.employee_id, "periods:review")
    entries = await load_period_entries(session, period.id)
    return await _period_response(period, entries)
