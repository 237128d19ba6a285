# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from timekeeper.models.base import TimestampMixin, UUIDBase
from timekeeper.models.enums import PeriodStatus

_HOURS = sa.Numeric(7, 2)


class PayPeriod(UUIDBase, TimestampMixin, table=True):
    """One employee's 7-day timesheet bundle with approval workflow state.

    The ``total_*`` columns are written only by the aggregator.
    """

    __tablename__ = "pay_period"
    __table_args__ = (
        sa.Index("ix_pay_period_status_start", "status", "start_date"),
        sa.UniqueConstraint("employee_id", "start_date", name="uq_pay_period_employee_week"),
    )

    employee_id: uuid.UUID = Field(index=True)
    start_date: date
    end_date: date

    total_hours: Decimal = Field(default=Decimal(0), sa_type=_HOURS)
    total_overtime_hours: Decimal = Field(default=Decimal(0), sa_type=_HOURS)
    total_holiday_hours: Decimal = Field(default=Decimal(0), sa_type=_HOURS)
    total_sick_hours: Decimal = Field(default=Decimal(0), sa_type=_HOURS)
    total_rotation_hours: Decimal = Field(default=Decimal(0), sa_type=_HOURS)
    total_travel_hours: Decimal = Field(default=Decimal(0), sa_type=_HOURS)
    total_pto_hours: Decimal = Field(default=Decimal(0), sa_type=_HOURS)
    total_per_diem: Decimal = Field(default=Decimal(0), sa_type=sa.Numeric(5, 2))
    total_sick_days: int = 0
    total_pto: int = 0
    total_rotation_days: int = 0

    status: str = Field(
        default=PeriodStatus.DRAFT, max_length=50, index=True, sa_column_kwargs={"server_default": "DRAFT"}
    )
    submitted_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    reviewer_id: uuid.UUID | None = None
    rejection_reason: str | None = None
    paid_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    paid_by: uuid.UUID | None = None
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
