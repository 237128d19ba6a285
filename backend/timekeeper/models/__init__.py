from sqlmodel import SQLModel

from timekeeper.models.audit import AuditLog
from timekeeper.models.base import TimestampMixin, UUIDBase
from timekeeper.models.enums import (
    AuditAction,
    AuditEntityType,
    DayCategory,
    EntryType,
    PeriodAction,
    PeriodStatus,
    Role,
    StatusFilter,
)
from timekeeper.models.pay_period import PayPeriod
from timekeeper.models.time_entry import TimeEntry

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "DayCategory",
    "EntryType",
    "PayPeriod",
    "PeriodAction",
    "PeriodStatus",
    "Role",
    "SQLModel",
    "StatusFilter",
    "TimeEntry",
    "TimestampMixin",
    "UUIDBase",
]
