# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from timekeeper.models.enums import Role


class EmployeeInfo(BaseModel):
    """Employee metadata from the external employee directory."""

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: Role = Role.USER
    department: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on full name or email."""
        needle = query.strip().casefold()
        return self.name_matches(query) or needle in self.email.casefold()

    def name_matches(self, query: str) -> bool:
        """Case-insensitive substring match on full name only."""
        return query.strip().casefold() in self.full_name.casefold()


@runtime_checkable
class EmployeeService(Protocol):
    """Interface for the employee directory."""

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        ...

    async def list_employees(self) -> list[EmployeeInfo]:
        """List all employees."""
        ...


class InMemoryEmployeeService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[uuid.UUID, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        return self._employees.get(employee_id)

    async def list_employees(self) -> list[EmployeeInfo]:
        """List all employees."""
        return list(self._employees.values())


_employee_service: EmployeeService = InMemoryEmployeeService()


def get_employee_service() -> EmployeeService:
    """FastAPI dependency for the employee directory."""
    return _employee_service


def set_employee_service(service: EmployeeService) -> None:
    """Override the service (for testing or production wiring)."""
    global _employee_service
    _employee_service = service


async def employee_names(employee_ids: set[uuid.UUID]) -> dict[uuid.UUID, str]:
    """Resolve display names for a set of employee IDs; unknown IDs are omitted."""
    service = get_employee_service()
    names: dict[uuid.UUID, str] = {}
    for employee_id in employee_ids:
        employee = await service.get_employee(employee_id)
        if employee is not None:
            names[employee_id] = employee.full_name
    return names
