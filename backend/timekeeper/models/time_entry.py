# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from timekeeper.models.base import TimestampMixin, UUIDBase, now_utc
from timekeeper.models.enums import DayCategory, PeriodStatus


class TimeEntry(UUIDBase, TimestampMixin, table=True):
    """One calendar day of work (or leave) for one employee."""

    __tablename__ = "time_entry"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_time_entry_employee_date"),
    )

    employee_id: uuid.UUID = Field(index=True)
    date: datetime.date
    category: str = Field(
        default=DayCategory.REGULAR, max_length=50, sa_column_kwargs={"server_default": "REGULAR"}
    )
    start_time: datetime.time | None = None
    end_time: datetime.time | None = None
    total_hours: Decimal | None = Field(default=None, sa_type=sa.Numeric(5, 2))
    per_diem: Decimal = Field(default=Decimal(0), sa_type=sa.Numeric(3, 2))
    project_id: uuid.UUID | None = None
    notes: str | None = None
    pay_period_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("pay_period.id", ondelete="SET NULL"), nullable=True, index=True
        ),
    )
    status: str = Field(
        default=PeriodStatus.DRAFT, max_length=50, index=True, sa_column_kwargs={"server_default": "DRAFT"}
    )
    rejection_reason: str | None = None
    updated_at: datetime.datetime = Field(
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )

    @property
    def has_per_diem(self) -> bool:
        return self.per_diem > 0
