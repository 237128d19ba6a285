# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, Response, status

from timekeeper.api.deps import AuthDep
from timekeeper.db import SessionDep
from timekeeper.models.enums import StatusFilter
from timekeeper.schemas.pay_period import (
    CreatePeriodPayload,
    PayPeriodListResponse,
    PayPeriodResponse,
    RejectPayload,
)
from timekeeper.services import pay_period as period_service
from timekeeper.services import query as query_service

pay_periods_router = APIRouter(prefix="/pay-periods", tags=["pay-periods"])


@pay_periods_router.post("", response_model=PayPeriodResponse)
async def create_pay_period(
    payload: CreatePeriodPayload,
    response: Response,
    session: SessionDep,
    auth: AuthDep,
) -> PayPeriodResponse:
    """Bundle draft time entries of one week into a pay period."""
    period, created = await period_service.create_period_from_drafts(session, auth, payload)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return period


@pay_periods_router.get("", response_model=PayPeriodListResponse)
async def list_pay_periods(
    session: SessionDep,
    auth: AuthDep,
    status_filter: StatusFilter = Query(default=StatusFilter.ALL, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    employee_name: str | None = Query(default=None, max_length=200),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> PayPeriodListResponse:
    """List pay periods, newest week first."""
    return await query_service.list_periods(
        session,
        auth,
        employee_id=employee_id,
        status_filter=status_filter,
        employee_name=employee_name,
        offset=offset,
        limit=limit,
    )


@pay_periods_router.get("/{period_id}", response_model=PayPeriodResponse)
async def get_pay_period(
    period_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> PayPeriodResponse:
    """Get a single pay period with its entries."""
    return await period_service.get_period(session, auth, period_id)


@pay_periods_router.post("/{period_id}/submit", response_model=PayPeriodResponse)
async def submit_pay_period(
    period_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> PayPeriodResponse:
    """Submit a draft pay period, or resubmit a rejected one."""
    return await period_service.submit_period(session, auth, period_id)


@pay_periods_router.post("/{period_id}/approve", response_model=PayPeriodResponse)
async def approve_pay_period(
    period_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> PayPeriodResponse:
    """Approve a submitted pay period."""
    return await period_service.approve_period(session, auth, period_id)


@pay_periods_router.post("/{period_id}/reject", response_model=PayPeriodResponse)
async def reject_pay_period(
    period_id: uuid.UUID,
    payload: RejectPayload,
    session: SessionDep,
    auth: AuthDep,
) -> PayPeriodResponse:
    """Reject a submitted pay period with a reason."""
    return await period_service.reject_period(session, auth, period_id, payload)


@pay_periods_router.post("/{period_id}/mark-paid", response_model=PayPeriodResponse)
async def mark_pay_period_paid(
    period_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> PayPeriodResponse:
    """Mark an approved pay period as paid."""
    return await period_service.mark_period_paid(session, auth, period_id)
