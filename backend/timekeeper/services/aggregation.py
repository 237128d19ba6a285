"""Time entry rules and the pure aggregation of entries into pay period totals.

Nothing here touches the database: entry validation, hour derivation,
display classification and period totals are functions of their inputs
only, so recomputing twice over the same entries yields identical totals
regardless of entry order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Protocol

from timekeeper.exceptions import ValidationError
from timekeeper.models.enums import DayCategory, EntryType

if TYPE_CHECKING:
    from timekeeper.models.pay_period import PayPeriod

ZERO = Decimal(0)
_CENTS = Decimal("0.01")

DEFAULT_OVERTIME_THRESHOLD = Decimal(40)
MAX_DAY_HOURS = Decimal(24)
PER_DIEM_VALUES: frozenset[Decimal] = frozenset({Decimal(0), Decimal("0.75"), Decimal(1)})

# Legacy wire flags, in the precedence order the review screens used.
LEGACY_FLAGS: dict[str, DayCategory] = {
    "isPTO": DayCategory.PTO,
    "isHoliday": DayCategory.HOLIDAY,
    "sickDay": DayCategory.SICK,
    "rotationDay": DayCategory.ROTATION,
    "isTravelDay": DayCategory.TRAVEL,
    "isUnpaidLeave": DayCategory.UNPAID_LEAVE,
}

# Category -> PeriodTotals field holding its hour subtotal.
_CATEGORY_HOUR_BUCKETS: dict[DayCategory, str] = {
    DayCategory.HOLIDAY: "total_holiday_hours",
    DayCategory.SICK: "total_sick_hours",
    DayCategory.ROTATION: "total_rotation_hours",
    DayCategory.TRAVEL: "total_travel_hours",
    DayCategory.PTO: "total_pto_hours",
}

_ENTRY_TYPES: dict[DayCategory, EntryType] = {
    DayCategory.PTO: EntryType.PTO,
    DayCategory.HOLIDAY: EntryType.HOLIDAY,
    DayCategory.SICK: EntryType.SICK,
    DayCategory.ROTATION: EntryType.ROTATION,
    DayCategory.TRAVEL: EntryType.TRAVEL,
    DayCategory.UNPAID_LEAVE: EntryType.UNPAID_LEAVE,
}


class EntryLike(Protocol):
    """The entry attributes the aggregator reads."""

    category: str
    start_time: time | None
    end_time: time | None
    total_hours: Decimal | None
    per_diem: Decimal


@dataclass(frozen=True)
class EntryFields:
    """Validated, normalized column values for one time entry."""

    category: DayCategory
    start_time: time | None
    end_time: time | None
    total_hours: Decimal | None
    per_diem: Decimal


@dataclass(frozen=True)
class PeriodTotals:
    """Aggregate fields of a pay period."""

    total_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    total_holiday_hours: Decimal = ZERO
    total_sick_hours: Decimal = ZERO
    total_rotation_hours: Decimal = ZERO
    total_travel_hours: Decimal = ZERO
    total_pto_hours: Decimal = ZERO
    total_per_diem: Decimal = ZERO
    total_sick_days: int = 0
    total_pto: int = 0
    total_rotation_days: int = 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def matches(self, period: PayPeriod) -> bool:
        """Whether the stored aggregates of ``period`` equal these totals."""
        return all(Decimal(getattr(period, name)) == value for name, value in self.as_dict().items())


# ---------------------------------------------------------------------------
# Entry rules
# ---------------------------------------------------------------------------


def category_from_flags(flags: Mapping[str, bool]) -> DayCategory:
    """Map the legacy boolean flags to a single day category.

    No flag set means a regular day; more than one is rejected.
    """
    unknown = set(flags) - set(LEGACY_FLAGS)
    if unknown:
        msg = f"Unknown category flags: {', '.join(sorted(unknown))}"
        raise ValidationError(msg, field="category")
    selected = [LEGACY_FLAGS[name] for name, value in flags.items() if value]
    if len(selected) > 1:
        names = ", ".join(name for name, value in flags.items() if value)
        msg = f"Only one day category may be set, got: {names}"
        raise ValidationError(msg, field="category")
    return selected[0] if selected else DayCategory.REGULAR


def entry_hours(start_time: time, end_time: time) -> Decimal:
    """Hours between two clock times on the same day, to two decimals."""
    anchor = date(2000, 1, 1)
    seconds = (datetime.combine(anchor, end_time) - datetime.combine(anchor, start_time)).total_seconds()
    return (Decimal(int(seconds)) / Decimal(3600)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def build_entry_fields(
    category: DayCategory,
    start_time: time | None,
    end_time: time | None,
    per_diem: Decimal,
) -> EntryFields:
    """Validate one day's input and derive its stored fields.

    Unpaid leave always stores zero hours and zero per-diem. Any other day
    needs both clock times or neither; a regular day with neither must
    carry a per-diem (a per-diem-only day).
    """
    if category == DayCategory.UNPAID_LEAVE:
        return EntryFields(category=category, start_time=None, end_time=None, total_hours=None, per_diem=ZERO)

    per_diem = Decimal(per_diem)
    if per_diem not in PER_DIEM_VALUES:
        msg = f"per_diem must be one of 0, 0.75 or 1, got {per_diem}"
        raise ValidationError(msg, field="per_diem")

    if (start_time is None) != (end_time is None):
        msg = "start_time and end_time must be provided together"
        raise ValidationError(msg, field="start_time" if start_time is None else "end_time")

    total_hours: Decimal | None = None
    if start_time is not None and end_time is not None:
        if end_time <= start_time:
            msg = "end_time must be after start_time"
            raise ValidationError(msg, field="end_time")
        total_hours = entry_hours(start_time, end_time)
        if total_hours > MAX_DAY_HOURS:
            msg = "Hours cannot exceed 24 per day"
            raise ValidationError(msg, field="end_time")
    elif category == DayCategory.REGULAR and per_diem == ZERO:
        msg = "A regular day needs start_time and end_time, or a per-diem"
        raise ValidationError(msg, field="start_time")

    return EntryFields(
        category=category,
        start_time=start_time,
        end_time=end_time,
        total_hours=total_hours,
        per_diem=per_diem,
    )


def classify_entry(entry: EntryLike) -> EntryType:
    """Display type of an entry on the review screens."""
    category = DayCategory(entry.category)
    if category in _ENTRY_TYPES:
        return _ENTRY_TYPES[category]
    if (
        entry.start_time is None
        and entry.end_time is None
        and not entry.total_hours
        and Decimal(entry.per_diem) > ZERO
    ):
        return EntryType.PER_DIEM_ONLY
    return EntryType.REGULAR


# ---------------------------------------------------------------------------
# Period aggregation
# ---------------------------------------------------------------------------


def compute_period_totals(
    entries: Iterable[EntryLike],
    overtime_threshold: Decimal = DEFAULT_OVERTIME_THRESHOLD,
) -> PeriodTotals:
    """Aggregate a period's entries into its totals.

    Only regular hours count toward the overtime threshold; every other
    category keeps its own uncapped hour subtotal. Per-diem is a unit count.
    """
    raw_regular = ZERO
    buckets = dict.fromkeys(_CATEGORY_HOUR_BUCKETS.values(), ZERO)
    per_diem = ZERO
    sick_days = pto_days = rotation_days = 0

    for entry in entries:
        category = DayCategory(entry.category)
        if category == DayCategory.UNPAID_LEAVE:
            continue

        hours = Decimal(entry.total_hours) if entry.total_hours is not None else ZERO
        if category == DayCategory.REGULAR:
            raw_regular += hours
        else:
            buckets[_CATEGORY_HOUR_BUCKETS[category]] += hours

        if Decimal(entry.per_diem) > ZERO:
            per_diem += Decimal(entry.per_diem)

        if category == DayCategory.SICK:
            sick_days += 1
        elif category == DayCategory.PTO:
            pto_days += 1
        elif category == DayCategory.ROTATION:
            rotation_days += 1

    return PeriodTotals(
        total_hours=min(raw_regular, overtime_threshold).quantize(_CENTS),
        total_overtime_hours=max(raw_regular - overtime_threshold, ZERO).quantize(_CENTS),
        total_per_diem=per_diem.quantize(_CENTS),
        total_sick_days=sick_days,
        total_pto=pto_days,
        total_rotation_days=rotation_days,
        **{name: value.quantize(_CENTS) for name, value in buckets.items()},
    )


def per_diem_amount(units: Decimal, unit_rate: Decimal) -> Decimal:
    """Currency value of a per-diem unit count."""
    return (Decimal(units) * Decimal(unit_rate)).quantize(_CENTS, rounding=ROUND_HALF_UP)
