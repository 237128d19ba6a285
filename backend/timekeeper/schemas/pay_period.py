# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel, Field

from timekeeper.models.enums import PeriodStatus
from timekeeper.schemas.time_entry import TimeEntryResponse

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreatePeriodPayload(BaseModel):
    """Request body for bundling draft entries into a weekly pay period."""

    week_start: datetime.date
    entry_ids: list[uuid.UUID] = Field(min_length=1, max_length=7)
    employee_id: uuid.UUID | None = None


class RejectPayload(BaseModel):
    """Request body for rejecting a submitted pay period.

    ``entry_reasons`` attaches per-day feedback to individual entries.
    """

    reason: str = Field(max_length=1000)
    entry_reasons: dict[uuid.UUID, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PayPeriodResponse(BaseModel):
    """Response schema for a pay period with its entries."""

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str | None
    start_date: datetime.date
    end_date: datetime.date
    status: PeriodStatus
    total_hours: Decimal
    total_overtime_hours: Decimal
    total_holiday_hours: Decimal
    total_sick_hours: Decimal
    total_rotation_hours: Decimal
    total_travel_hours: Decimal
    total_pto_hours: Decimal
    total_per_diem: Decimal
    per_diem_amount: Decimal
    total_sick_days: int
    total_pto: int
    total_rotation_days: int
    submitted_at: datetime.datetime | None
    reviewed_at: datetime.datetime | None
    reviewer_id: uuid.UUID | None
    rejection_reason: str | None
    paid_at: datetime.datetime | None
    paid_by: uuid.UUID | None
    version: int
    created_at: datetime.datetime
    entries: list[TimeEntryResponse]


class PayPeriodListResponse(BaseModel):
    """Paginated list of pay periods."""

    items: list[PayPeriodResponse]
    total: int
