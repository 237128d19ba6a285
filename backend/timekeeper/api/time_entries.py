# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import datetime
import uuid

from fastapi import APIRouter, Query, Response, status

from timekeeper.api.deps import AuthDep
from timekeeper.db import SessionDep
from timekeeper.models.enums import PeriodStatus
from timekeeper.schemas.time_entry import TimeEntryListResponse, TimeEntryPayload, TimeEntryResponse
from timekeeper.services import time_entry as entry_service

time_entries_router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@time_entries_router.put("", response_model=TimeEntryResponse)
async def upsert_time_entry(
    payload: TimeEntryPayload,
    response: Response,
    session: SessionDep,
    auth: AuthDep,
) -> TimeEntryResponse:
    """Create or update the caller's entry for one calendar day."""
    entry, created = await entry_service.create_or_update_entry(session, auth, payload)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return entry


@time_entries_router.get("", response_model=TimeEntryListResponse)
async def list_time_entries(
    session: SessionDep,
    auth: AuthDep,
    start_date: datetime.date | None = Query(default=None),
    end_date: datetime.date | None = Query(default=None),
    employee_id: uuid.UUID | None = Query(default=None),
    status_filter: PeriodStatus | None = Query(default=None, alias="status"),
) -> TimeEntryListResponse:
    """Load time entries in a date range."""
    return await entry_service.list_entries(
        session,
        auth,
        start_date=start_date,
        end_date=end_date,
        employee_id=employee_id,
        status=status_filter,
    )


@time_entries_router.get("/{entry_id}", response_model=TimeEntryResponse)
async def get_time_entry(
    entry_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> TimeEntryResponse:
    """Get a single time entry."""
    return await entry_service.get_entry(session, auth, entry_id)


@time_entries_router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_entry(
    entry_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> None:
    """Delete a time entry that is still editable."""
    await entry_service.delete_entry(session, auth, entry_id)
