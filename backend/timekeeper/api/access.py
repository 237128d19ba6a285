# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, Query

from timekeeper.api.deps import AuthDep
from timekeeper.schemas.access import AccessCheckResponse, AccessProfileResponse, NavigationItem
from timekeeper.services.access import can_access, get_default_landing, navigation_items
from timekeeper.services.employee import get_employee_service

access_router = APIRouter(prefix="/access", tags=["access"])


@access_router.get("/check", response_model=AccessCheckResponse)
async def check_access(
    auth: AuthDep,
    path: str = Query(min_length=1, max_length=200),
) -> AccessCheckResponse:
    """Whether the caller's role may open a route or run an operation."""
    return AccessCheckResponse(path=path, role=auth.role, allowed=can_access(path, auth.role))


@access_router.get("/me", response_model=AccessProfileResponse)
async def access_profile(auth: AuthDep) -> AccessProfileResponse:
    """Landing page and navigation menu for the caller."""
    employee = await get_employee_service().get_employee(auth.user_id)
    items = navigation_items(auth.role, has_employee_profile=employee is not None)
    return AccessProfileResponse(
        role=auth.role,
        default_landing=get_default_landing(auth.role),
        navigation=[NavigationItem(path=r.pattern, label=r.label, category=r.category) for r in items],
    )
