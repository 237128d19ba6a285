"""Unit tests for request schemas, including the legacy category flag adapter."""

from __future__ import annotations

import uuid
from datetime import time
from decimal import Decimal

import pytest
from pydantic import ValidationError

from timekeeper.models.enums import DayCategory
from timekeeper.schemas.pay_period import CreatePeriodPayload, RejectPayload
from timekeeper.schemas.time_entry import HolidayDay, RegularDay, TimeEntryPayload, UnpaidLeaveDay

# ---------------------------------------------------------------------------
# Day variants
# ---------------------------------------------------------------------------


def test_default_day_is_regular() -> None:
    payload = TimeEntryPayload.model_validate({"date": "2024-01-08", "per_diem": "1"})
    assert isinstance(payload.day, RegularDay)
    assert payload.category == DayCategory.REGULAR
    assert payload.start_time is None


def test_day_variant_discriminated_by_kind() -> None:
    payload = TimeEntryPayload.model_validate(
        {"date": "2024-01-08", "day": {"kind": "HOLIDAY", "start_time": "08:00", "end_time": "12:00"}}
    )
    assert isinstance(payload.day, HolidayDay)
    assert payload.start_time == time(8, 0)
    assert payload.end_time == time(12, 0)


def test_unknown_kind_rejected() -> None:
    with pytest.raises(ValidationError):
        TimeEntryPayload.model_validate({"date": "2024-01-08", "day": {"kind": "VACATION"}})


def test_unpaid_leave_has_no_times() -> None:
    payload = TimeEntryPayload.model_validate({"date": "2024-01-08", "day": {"kind": "UNPAID_LEAVE"}})
    assert isinstance(payload.day, UnpaidLeaveDay)
    assert payload.start_time is None


def test_per_diem_bounds() -> None:
    with pytest.raises(ValidationError):
        TimeEntryPayload.model_validate({"date": "2024-01-08", "per_diem": "1.5"})
    with pytest.raises(ValidationError):
        TimeEntryPayload.model_validate({"date": "2024-01-08", "per_diem": "-1"})


# ---------------------------------------------------------------------------
# Legacy flags
# ---------------------------------------------------------------------------


def test_legacy_flag_with_times() -> None:
    payload = TimeEntryPayload.model_validate(
        {"date": "2024-01-08", "sickDay": True, "startTime": "09:00", "endTime": "13:00", "perDiem": "0.75"}
    )
    assert payload.category == DayCategory.SICK
    assert payload.start_time == time(9, 0)
    assert payload.per_diem == Decimal("0.75")


def test_legacy_false_flags_mean_regular() -> None:
    payload = TimeEntryPayload.model_validate(
        {"date": "2024-01-08", "isPTO": False, "isHoliday": False, "startTime": "08:00", "endTime": "16:00"}
    )
    assert payload.category == DayCategory.REGULAR
    assert payload.end_time == time(16, 0)


def test_legacy_has_per_diem_maps_to_full_unit() -> None:
    payload = TimeEntryPayload.model_validate({"date": "2024-01-08", "isTravelDay": True, "hasPerDiem": True})
    assert payload.category == DayCategory.TRAVEL
    assert payload.per_diem == 1


def test_legacy_numeric_per_diem_wins_over_flag() -> None:
    payload = TimeEntryPayload.model_validate({"date": "2024-01-08", "per_diem": "0.75", "hasPerDiem": True})
    assert payload.per_diem == Decimal("0.75")

    payload = TimeEntryPayload.model_validate({"date": "2024-01-08", "perDiem": "0.75", "hasPerDiem": True})
    assert payload.per_diem == Decimal("0.75")


def test_legacy_unpaid_leave_ignores_times() -> None:
    payload = TimeEntryPayload.model_validate(
        {"date": "2024-01-08", "isUnpaidLeave": True, "startTime": "08:00", "endTime": "16:00"}
    )
    assert payload.category == DayCategory.UNPAID_LEAVE
    assert payload.start_time is None


def test_legacy_multiple_flags_rejected() -> None:
    with pytest.raises(ValidationError, match="Only one day category"):
        TimeEntryPayload.model_validate({"date": "2024-01-08", "rotationDay": True, "sickDay": True})


# ---------------------------------------------------------------------------
# Pay period payloads
# ---------------------------------------------------------------------------


def test_create_period_needs_entries() -> None:
    with pytest.raises(ValidationError):
        CreatePeriodPayload.model_validate({"week_start": "2024-01-07", "entry_ids": []})


def test_create_period_at_most_seven_entries() -> None:
    ids = [str(uuid.uuid4()) for _ in range(8)]
    with pytest.raises(ValidationError):
        CreatePeriodPayload.model_validate({"week_start": "2024-01-07", "entry_ids": ids})


def test_reject_payload_entry_reasons() -> None:
    entry_id = uuid.uuid4()
    payload = RejectPayload.model_validate({"reason": "late", "entry_reasons": {str(entry_id): "no receipt"}})
    assert payload.entry_reasons == {entry_id: "no receipt"}


def test_reject_payload_requires_reason_field() -> None:
    with pytest.raises(ValidationError):
        RejectPayload.model_validate({})
