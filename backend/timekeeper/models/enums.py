from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Closed set of portal roles."""

    USER = "USER"
    ADMIN = "ADMIN"
    ACCOUNTANT = "ACCOUNTANT"
    HR = "HR"
    PROJECT_MANAGER = "PROJECT_MANAGER"


STAFF_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.ACCOUNTANT, Role.HR, Role.PROJECT_MANAGER})


class PeriodStatus(enum.StrEnum):
    """State machine for pay periods. Entries mirror the owning period."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class StatusFilter(enum.StrEnum):
    """Status filter for review lists."""

    ALL = "ALL"
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class PeriodAction(enum.StrEnum):
    """Events that drive the pay period state machine."""

    SUBMIT = "submit"
    RESUBMIT = "resubmit"
    APPROVE = "approve"
    REJECT = "reject"
    MARK_PAID = "mark_paid"


class DayCategory(enum.StrEnum):
    """What kind of day a time entry records. Exactly one per entry."""

    REGULAR = "REGULAR"
    PTO = "PTO"
    HOLIDAY = "HOLIDAY"
    SICK = "SICK"
    ROTATION = "ROTATION"
    TRAVEL = "TRAVEL"
    UNPAID_LEAVE = "UNPAID_LEAVE"


class EntryType(enum.StrEnum):
    """Display classification of a single entry on review screens."""

    REGULAR = "Regular"
    PER_DIEM_ONLY = "Per Diem Only"
    PTO = "PTO"
    HOLIDAY = "Holiday"
    SICK = "Sick Day"
    ROTATION = "Rotation Day"
    TRAVEL = "Travel Day"
    UNPAID_LEAVE = "Unpaid Leave"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    TIME_ENTRY = "TIME_ENTRY"
    PAY_PERIOD = "PAY_PERIOD"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    RESUBMIT = "RESUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    MARK_PAID = "MARK_PAID"
