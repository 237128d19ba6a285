from __future__ import annotations

from pydantic import BaseModel

from timekeeper.models.enums import Role


class AccessCheckResponse(BaseModel):
    """Result of a single route or operation lookup."""

    path: str
    role: Role
    allowed: bool


class NavigationItem(BaseModel):
    """One entry of the role-specific navigation menu."""

    path: str
    label: str
    category: str


class AccessProfileResponse(BaseModel):
    """Landing page and navigation for the calling identity."""

    role: Role
    default_landing: str
    navigation: list[NavigationItem]
