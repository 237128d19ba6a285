# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from timekeeper.models.enums import Role


class UpsertEmployeeRequest(BaseModel):
    """Request body for upserting an employee in the directory stub."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1, max_length=255)
    role: Role = Role.USER
    department: str | None = Field(default=None, max_length=100)


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: Role
    department: str | None


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int
