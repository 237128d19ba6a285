# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from timekeeper.api.deps import AuthDep
from timekeeper.exceptions import NotFoundError
from timekeeper.schemas.employee import EmployeeListResponse, EmployeeResponse, UpsertEmployeeRequest
from timekeeper.services.employee import EmployeeInfo, get_employee_service
from timekeeper.services.guard import authorize_read, require_access
from timekeeper.services.query import _build_employee_response, search_employees

employees_router = APIRouter(prefix="/employees", tags=["employees"])


@employees_router.get("/search", response_model=EmployeeListResponse)
async def search(
    auth: AuthDep,
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=10, ge=1, le=50),
) -> EmployeeListResponse:
    """Autocomplete employees by name or email (staff only)."""
    return await search_employees(auth, q, limit)


@employees_router.put("/{employee_id}", response_model=EmployeeResponse)
async def upsert_employee(
    employee_id: uuid.UUID,
    payload: UpsertEmployeeRequest,
    auth: AuthDep,
) -> EmployeeResponse:
    """Create or update an employee in the directory stub (ADMIN / HR)."""
    require_access(auth, "employees:write")
    svc = get_employee_service()
    employee = EmployeeInfo(
        id=employee_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        role=payload.role,
        department=payload.department,
    )
    svc.seed(employee)  # ty: ignore[unresolved-attribute]
    return _build_employee_response(employee)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: uuid.UUID,
    auth: AuthDep,
) -> EmployeeResponse:
    """Get one employee from the directory."""
    authorize_read(auth, employee_id, "employees:read")
    employee = await get_employee_service().get_employee(employee_id)
    if employee is None:
        raise NotFoundError("Employee", employee_id)
    return _build_employee_response(employee)
