"""Query layer: pay period review lists, employee autocomplete and the audit log."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from timekeeper.models.audit import AuditLog
from timekeeper.models.enums import StatusFilter
from timekeeper.models.pay_period import PayPeriod
from timekeeper.schemas.employee import EmployeeListResponse, EmployeeResponse
from timekeeper.schemas.pay_period import PayPeriodListResponse
from timekeeper.schemas.report import AuditLogEntryResponse, AuditLogListResponse
from timekeeper.services.employee import employee_names, get_employee_service
from timekeeper.services.guard import require_access, resolve_employee_scope
from timekeeper.services.pay_period import _build_period_response
from timekeeper.services.period_store import load_entries_for_periods

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from timekeeper.schemas.auth import AuthContext
    from timekeeper.services.employee import EmployeeInfo


def _build_employee_response(employee: EmployeeInfo) -> EmployeeResponse:
    return EmployeeResponse(
        id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        full_name=employee.full_name,
        email=employee.email,
        role=employee.role,
        department=employee.department,
    )


async def _employee_ids_matching(name: str) -> set[uuid.UUID]:
    """IDs of directory employees whose full name contains ``name``."""
    employees = await get_employee_service().list_employees()
    return {employee.id for employee in employees if employee.name_matches(name)}


async def list_periods(
    session: AsyncSession,
    auth: AuthContext,
    *,
    employee_id: uuid.UUID | None = None,
    status_filter: StatusFilter = StatusFilter.ALL,
    employee_name: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> PayPeriodListResponse:
    """List pay periods, newest week first.

    Employees are always limited to their own periods, whatever filter they
    send. Staff see every employee unless ``employee_id`` or
    ``employee_name`` narrows the list. Periods of the same week keep
    creation order.
    """
    require_access(auth, "periods:read")
    scope = resolve_employee_scope(auth, employee_id, "periods:review")

    filters = []
    if scope is not None:
        filters.append(col(PayPeriod.employee_id) == scope)
    if status_filter != StatusFilter.ALL:
        filters.append(col(PayPeriod.status) == status_filter.value)
    if employee_name and employee_name.strip():
        matching = await _employee_ids_matching(employee_name)
        if not matching:
            return PayPeriodListResponse(items=[], total=0)
        filters.append(col(PayPeriod.employee_id).in_(matching))

    count_result = await session.execute(select(func.count()).select_from(PayPeriod).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(PayPeriod)
        .where(*filters)
        .order_by(col(PayPeriod.start_date).desc(), col(PayPeriod.created_at).asc())
        .offset(offset)
        .limit(limit)
    )
    periods = list(result.scalars().all())

    entries = await load_entries_for_periods(session, [period.id for period in periods])
    names = await employee_names({period.employee_id for period in periods})

    return PayPeriodListResponse(
        items=[_build_period_response(p, entries[p.id], names.get(p.employee_id)) for p in periods],
        total=total,
    )


async def search_employees(auth: AuthContext, query: str, limit: int = 10) -> EmployeeListResponse:
    """Autocomplete employees by name or email for the review screens."""
    require_access(auth, "employees:read")
    if not query.strip():
        return EmployeeListResponse(items=[], total=0)

    employees = await get_employee_service().list_employees()
    matches = sorted((e for e in employees if e.matches(query)), key=lambda e: e.full_name.casefold())
    items = [_build_employee_response(e) for e in matches[:limit]]
    return EmployeeListResponse(items=items, total=len(matches))


async def query_audit_log(
    session: AsyncSession,
    auth: AuthContext,
    *,
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    action: str | None = None,
    actor_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters."""
    require_access(auth, "audit:read")
    filters = []

    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if entity_id is not None:
        filters.append(col(AuditLog.entity_id) == entity_id)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_id is not None:
        filters.append(col(AuditLog.actor_id) == actor_id)
    if start_date is not None:
        filters.append(col(AuditLog.created_at) >= datetime.combine(start_date, time.min))
    if end_date is not None:
        filters.append(col(AuditLog.created_at) <= datetime.combine(end_date, time.max))

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[
            AuditLogEntryResponse(
                id=e.id,
                actor_id=e.actor_id,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                action=e.action,
                before_json=e.before_json,
                after_json=e.after_json,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
    )
