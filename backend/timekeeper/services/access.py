"""Role access table: which roles may open each route or run each operation.

The table is static and ordered. Lookups try an exact match first, then the
longest pattern that prefixes the path on a segment boundary, so
``/admin/users/42`` resolves through ``/admin/users``.
"""

from __future__ import annotations

from dataclasses import dataclass

from timekeeper.models.enums import STAFF_ROLES, PeriodAction, Role
from timekeeper.services.state_machine import PayPeriodStateMachine

ALL_ROLES: frozenset[Role] = frozenset(Role)

LOGIN_ROUTE = "/login"
USER_LANDING = "/employee/profile"
STAFF_LANDING = "/admin/profile"

# Pages that only make sense for someone with an employee profile
_EMPLOYEE_ONLY_PATHS = ("/employee/time-entries", "/employee/pay-periods")

_SEPARATORS = ("/", ":")


@dataclass(frozen=True)
class AccessRule:
    """One route or operation and the roles allowed to use it."""

    pattern: str
    label: str
    allowed_roles: frozenset[Role]
    category: str  # "shared", "employee", "admin" or "operation"

    @property
    def is_route(self) -> bool:
        return self.category != "operation"


def _action_rule(action: PeriodAction) -> AccessRule:
    roles = PayPeriodStateMachine.ACTION_ROLES[action]
    return AccessRule(f"periods:{action.value}", action.value.replace("_", " ").title(), roles, "operation")


ACCESS_TABLE: tuple[AccessRule, ...] = (
    # Routes
    AccessRule("/employee/profile", "Profile", ALL_ROLES, "shared"),
    AccessRule("/admin/profile", "Profile", STAFF_ROLES, "admin"),
    AccessRule("/employee/time-entries", "Time Entries", ALL_ROLES, "employee"),
    AccessRule("/employee/pay-periods", "Pay Period History", ALL_ROLES, "employee"),
    AccessRule("/admin/users", "Users", STAFF_ROLES, "admin"),
    AccessRule("/admin/projects", "Projects", frozenset({Role.ADMIN, Role.HR, Role.PROJECT_MANAGER}), "admin"),
    AccessRule("/admin/pay-periods", "Review Pay Periods", STAFF_ROLES, "admin"),
    # Operations
    AccessRule("entries:read", "Read own entries", ALL_ROLES, "operation"),
    AccessRule("entries:write", "Write own entries", ALL_ROLES, "operation"),
    AccessRule("entries:review", "Read any employee's entries", STAFF_ROLES, "operation"),
    AccessRule("periods:read", "Read own pay periods", ALL_ROLES, "operation"),
    AccessRule("periods:create", "Bundle drafts", ALL_ROLES, "operation"),
    AccessRule("periods:submit", "Submit", ALL_ROLES, "operation"),
    AccessRule("periods:review", "Read any employee's pay periods", STAFF_ROLES, "operation"),
    _action_rule(PeriodAction.APPROVE),
    _action_rule(PeriodAction.REJECT),
    _action_rule(PeriodAction.MARK_PAID),
    AccessRule("employees:read", "Read employees", STAFF_ROLES, "operation"),
    AccessRule("employees:write", "Manage employees", frozenset({Role.ADMIN, Role.HR}), "operation"),
    AccessRule("audit:read", "Read audit log", frozenset({Role.ADMIN, Role.HR}), "operation"),
)

_BY_PATTERN: dict[str, AccessRule] = {rule.pattern: rule for rule in ACCESS_TABLE}


def find_rule(path: str) -> AccessRule | None:
    """Resolve the rule governing ``path``: exact match, then longest prefix."""
    exact = _BY_PATTERN.get(path)
    if exact is not None:
        return exact

    best: AccessRule | None = None
    for rule in ACCESS_TABLE:
        if not path.startswith(rule.pattern):
            continue
        if not rule.pattern.endswith(_SEPARATORS) and path[len(rule.pattern)] not in _SEPARATORS:
            continue
        if best is None or len(rule.pattern) > len(best.pattern):
            best = rule
    return best


def can_access(path: str, role: Role | str | None) -> bool:
    """Check if ``role`` may use the route or operation ``path``."""
    if not role:
        return False
    rule = find_rule(path)
    if rule is None or role not in Role.__members__:
        return False
    return Role(role) in rule.allowed_roles


def allowed_roles(path: str) -> list[str]:
    """Sorted role names allowed on ``path``; empty when unknown."""
    rule = find_rule(path)
    if rule is None:
        return []
    return sorted(role.value for role in rule.allowed_roles)


def get_default_landing(role: Role | str | None) -> str:
    """Where to send a user after login."""
    if not role:
        return LOGIN_ROUTE
    if Role(role) == Role.USER:
        return USER_LANDING
    return STAFF_LANDING


def routes_for_role(role: Role | str | None) -> list[AccessRule]:
    """All routes (not operations) the role may open, in table order."""
    if not role:
        return []
    role = Role(role)
    return [rule for rule in ACCESS_TABLE if rule.is_route and role in rule.allowed_roles]


def navigation_items(role: Role | str | None, has_employee_profile: bool = True) -> list[AccessRule]:
    """Navigation menu for a role.

    Users see their profile, plus the time entry and pay period pages when
    they have an employee profile. Staff see the admin pages and the
    employee pages; for shared pages the admin version wins and labels are
    not repeated.
    """
    if not role:
        return []
    role = Role(role)

    if role == Role.USER:
        items = []
        for rule in routes_for_role(role):
            if rule.pattern == USER_LANDING:
                items.append(rule)
            elif rule.pattern in _EMPLOYEE_ONLY_PATHS and has_employee_profile:
                items.append(rule)
        return items

    items = []
    seen_labels: set[str] = set()
    for rule in routes_for_role(role):
        if not has_employee_profile and rule.pattern in _EMPLOYEE_ONLY_PATHS:
            continue
        if rule.category == "shared" and rule.pattern.startswith("/employee/"):
            continue
        if rule.label in seen_labels:
            continue
        items.append(rule)
        seen_labels.add(rule.label)
    return items
