# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, model_validator

from timekeeper.exceptions import ValidationError
from timekeeper.models.enums import DayCategory, EntryType, PeriodStatus
from timekeeper.services.aggregation import LEGACY_FLAGS, category_from_flags

# Top-level fields of the old flat entry shape, besides the category flags
_LEGACY_FIELDS = frozenset({"startTime", "endTime", "start_time", "end_time", "perDiem", "hasPerDiem"})

# ---------------------------------------------------------------------------
# Day category variants
# ---------------------------------------------------------------------------


class _TimedDay(BaseModel):
    start_time: datetime.time | None = None
    end_time: datetime.time | None = None


class RegularDay(_TimedDay):
    """A worked day. Without times it only counts when it carries a per-diem."""

    kind: Literal["REGULAR"] = "REGULAR"


class PtoDay(_TimedDay):
    kind: Literal["PTO"] = "PTO"


class HolidayDay(_TimedDay):
    kind: Literal["HOLIDAY"] = "HOLIDAY"


class SickDay(_TimedDay):
    kind: Literal["SICK"] = "SICK"


class RotationDay(_TimedDay):
    kind: Literal["ROTATION"] = "ROTATION"


class TravelDay(_TimedDay):
    kind: Literal["TRAVEL"] = "TRAVEL"


class UnpaidLeaveDay(BaseModel):
    """Unpaid leave carries no hours and no per-diem."""

    kind: Literal["UNPAID_LEAVE"] = "UNPAID_LEAVE"


DayVariant = Annotated[
    RegularDay | PtoDay | HolidayDay | SickDay | RotationDay | TravelDay | UnpaidLeaveDay,
    Field(discriminator="kind"),
]

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class TimeEntryPayload(BaseModel):
    """Request body for creating or updating the entry of one calendar day.

    Legacy clients may send the old boolean flags (``isPTO``, ``sickDay``,
    ...) and ``startTime``/``endTime`` at the top level instead of ``day``;
    they are folded into a single day variant.
    """

    date: datetime.date
    day: DayVariant = Field(default_factory=RegularDay)
    per_diem: Decimal = Field(default=Decimal(0), ge=0, le=1)
    project_id: uuid.UUID | None = None
    notes: str | None = Field(default=None, max_length=1000)
    employee_id: uuid.UUID | None = None

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_flags(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "day" in data:
            return data
        flags = {name: bool(data.get(name)) for name in LEGACY_FLAGS if name in data}
        if not flags and not _LEGACY_FIELDS & data.keys():
            return data
        try:
            category = category_from_flags(flags)
        except ValidationError as exc:
            raise ValueError(exc.message) from None
        day: dict[str, Any] = {"kind": category.value}
        if category != DayCategory.UNPAID_LEAVE:
            day["start_time"] = data.get("start_time", data.get("startTime"))
            day["end_time"] = data.get("end_time", data.get("endTime"))
        folded = {k: v for k, v in data.items() if k not in LEGACY_FLAGS and k not in ("startTime", "endTime")}
        folded.pop("start_time", None)
        folded.pop("end_time", None)
        legacy_amount = folded.pop("perDiem", None)
        legacy_flag = folded.pop("hasPerDiem", None)
        # The numeric amount wins over the boolean
        if "per_diem" not in folded:
            if legacy_amount is not None:
                folded["per_diem"] = legacy_amount
            elif legacy_flag is not None:
                folded["per_diem"] = 1 if legacy_flag else 0
        folded["day"] = day
        return folded

    @property
    def category(self) -> DayCategory:
        return DayCategory(self.day.kind)

    @property
    def start_time(self) -> datetime.time | None:
        return getattr(self.day, "start_time", None)

    @property
    def end_time(self) -> datetime.time | None:
        return getattr(self.day, "end_time", None)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TimeEntryResponse(BaseModel):
    """Response schema for a single time entry."""

    id: uuid.UUID
    employee_id: uuid.UUID
    date: datetime.date
    category: DayCategory
    entry_type: EntryType
    start_time: datetime.time | None
    end_time: datetime.time | None
    total_hours: Decimal | None
    per_diem: Decimal
    has_per_diem: bool
    is_pto: bool
    is_holiday: bool
    sick_day: bool
    rotation_day: bool
    is_travel_day: bool
    is_unpaid_leave: bool
    project_id: uuid.UUID | None
    notes: str | None
    pay_period_id: uuid.UUID | None
    status: PeriodStatus
    rejection_reason: str | None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class TimeEntryListResponse(BaseModel):
    """List of time entries."""

    items: list[TimeEntryResponse]
    total: int
