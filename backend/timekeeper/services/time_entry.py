# ruff: noqa: TC003
from __future__ import annotations

import datetime
import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from timekeeper.exceptions import ConflictError, NotFoundError, ValidationError
from timekeeper.models.enums import AuditAction, AuditEntityType, DayCategory, PeriodStatus
from timekeeper.models.time_entry import TimeEntry
from timekeeper.schemas.time_entry import TimeEntryListResponse, TimeEntryResponse
from timekeeper.services.aggregation import build_entry_fields, classify_entry
from timekeeper.services.audit import model_to_audit_dict, write_audit_log
from timekeeper.services.guard import (
    authorize_entry_mutation,
    authorize_read,
    require_access,
    resolve_employee_scope,
)
from timekeeper.services.period_store import get_period_or_404, load_period_entries, recompute_period

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from timekeeper.models.pay_period import PayPeriod
    from timekeeper.schemas.auth import AuthContext
    from timekeeper.schemas.time_entry import TimeEntryPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_entry_response(entry: TimeEntry) -> TimeEntryResponse:
    """Map a time entry model to its response schema, with the legacy flag views."""
    category = DayCategory(entry.category)
    return TimeEntryResponse(
        id=entry.id,
        employee_id=entry.employee_id,
        date=entry.date,
        category=category,
        entry_type=classify_entry(entry),
        start_time=entry.start_time,
        end_time=entry.end_time,
        total_hours=entry.total_hours,
        per_diem=entry.per_diem,
        has_per_diem=entry.has_per_diem,
        is_pto=category == DayCategory.PTO,
        is_holiday=category == DayCategory.HOLIDAY,
        sick_day=category == DayCategory.SICK,
        rotation_day=category == DayCategory.ROTATION,
        is_travel_day=category == DayCategory.TRAVEL,
        is_unpaid_leave=category == DayCategory.UNPAID_LEAVE,
        project_id=entry.project_id,
        notes=entry.notes,
        pay_period_id=entry.pay_period_id,
        status=PeriodStatus(entry.status),
        rejection_reason=entry.rejection_reason,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


async def _get_entry_or_404(
    session: AsyncSession,
    entry_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> TimeEntry:
    """Fetch a time entry by ID. Raises NotFoundError if missing."""
    query = select(TimeEntry).where(col(TimeEntry.id) == entry_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFoundError("Time entry", entry_id)
    return entry


async def _owning_period(session: AsyncSession, entry: TimeEntry | None) -> PayPeriod | None:
    """Lock and return the period that owns ``entry``, if any."""
    if entry is None or entry.pay_period_id is None:
        return None
    return await get_period_or_404(session, entry.pay_period_id, for_update=True)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_or_update_entry(
    session: AsyncSession,
    auth: AuthContext,
    payload: TimeEntryPayload,
) -> tuple[TimeEntryResponse, bool]:
    """Create the entry for a calendar day, or update the existing one.

    Flow:
    1. Lock the employee's entry for that date, if any, and its period
    2. Guard: owner only, period must be DRAFT or REJECTED
    3. Validate the day and derive hours
    4. Write the entry
    5. Recompute the owning period's aggregates in the same transaction
    6. Audit log and commit

    Returns the entry and whether it was created.
    """
    employee_id = payload.employee_id or auth.user_id

    result = await session.execute(
        select(TimeEntry)
        .where(
            col(TimeEntry.employee_id) == employee_id,
            col(TimeEntry.date) == payload.date,
        )
        .with_for_update()
    )
    entry = result.scalar_one_or_none()
    period = await _owning_period(session, entry)

    authorize_entry_mutation(auth, employee_id, period.status if period is not None else None)

    fields = build_entry_fields(payload.category, payload.start_time, payload.end_time, payload.per_diem)
    now = datetime.datetime.now(datetime.UTC)

    created = entry is None
    before_dict = None if entry is None else model_to_audit_dict(entry)
    if entry is None:
        entry = TimeEntry(employee_id=employee_id, date=payload.date, status=PeriodStatus.DRAFT.value)
        session.add(entry)

    entry.category = fields.category.value
    entry.start_time = fields.start_time
    entry.end_time = fields.end_time
    entry.total_hours = fields.total_hours
    entry.per_diem = fields.per_diem
    entry.project_id = payload.project_id
    entry.notes = payload.notes
    entry.updated_at = now

    try:
        await session.flush()
    except IntegrityError:
        # Another request inserted the entry for this day first
        await session.rollback()
        raise ConflictError(PeriodStatus.DRAFT, "create", entity="time entry") from None

    if period is not None:
        await recompute_period(session, period)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.TIME_ENTRY,
        entity_id=entry.id,
        action=AuditAction.CREATE if created else AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(entry),
    )

    await session.commit()
    await session.refresh(entry)
    return _build_entry_response(entry), created


async def delete_entry(
    session: AsyncSession,
    auth: AuthContext,
    entry_id: uuid.UUID,
) -> None:
    """Delete an entry and recompute its period.

    Removing the last entry of a DRAFT period removes the period too; a
    REJECTED period must keep at least one entry to be resubmitted.
    """
    entry = await _get_entry_or_404(session, entry_id, for_update=True)
    period = await _owning_period(session, entry)

    authorize_entry_mutation(auth, entry.employee_id, period.status if period is not None else None)

    before_dict = model_to_audit_dict(entry)
    await session.delete(entry)
    await session.flush()

    if period is not None:
        remaining = await load_period_entries(session, period.id)
        if remaining:
            await recompute_period(session, period)
        elif period.status == PeriodStatus.DRAFT:
            await write_audit_log(
                session,
                actor_id=auth.user_id,
                entity_type=AuditEntityType.PAY_PERIOD,
                entity_id=period.id,
                action=AuditAction.DELETE,
                before_json=model_to_audit_dict(period),
            )
            await session.delete(period)
            logger.info("Deleted empty pay period %s", period.id)
        else:
            await session.rollback()
            msg = "A rejected pay period must keep at least one time entry"
            raise ValidationError(msg, field="entry_id")

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.TIME_ENTRY,
        entity_id=entry_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )

    await session.commit()


async def get_entry(
    session: AsyncSession,
    auth: AuthContext,
    entry_id: uuid.UUID,
) -> TimeEntryResponse:
    """Fetch a single entry the caller may read."""
    entry = await _get_entry_or_404(session, entry_id)
    authorize_read(auth, entry.employee_id, "entries:review")
    return _build_entry_response(entry)


async def list_entries(
    session: AsyncSession,
    auth: AuthContext,
    *,
    start_date: datetime.date | None = None,
    end_date: datetime.date | None = None,
    employee_id: uuid.UUID | None = None,
    status: PeriodStatus | None = None,
) -> TimeEntryListResponse:
    """Load entries in a date range, ordered by date.

    Employees only ever see their own entries; staff see everyone's unless
    ``employee_id`` narrows the list.
    """
    require_access(auth, "entries:read")
    if start_date is not None and end_date is not None and end_date < start_date:
        msg = "end_date must not be before start_date"
        raise ValidationError(msg, field="end_date")

    scope = resolve_employee_scope(auth, employee_id, "entries:review")

    query = select(TimeEntry)
    if scope is not None:
        query = query.where(col(TimeEntry.employee_id) == scope)
    if start_date is not None:
        query = query.where(col(TimeEntry.date) >= start_date)
    if end_date is not None:
        query = query.where(col(TimeEntry.date) <= end_date)
    if status is not None:
        query = query.where(col(TimeEntry.status) == status.value)
    query = query.order_by(col(TimeEntry.date), col(TimeEntry.employee_id))

    result = await session.execute(query)
    entries = result.scalars().all()
    return TimeEntryListResponse(
        items=[_build_entry_response(entry) for entry in entries],
        total=len(entries),
    )
