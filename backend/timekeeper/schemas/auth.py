# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from timekeeper.models.enums import STAFF_ROLES, Role


class AuthContext(BaseModel):
    """Caller identity extracted from request headers."""

    user_id: uuid.UUID
    role: Role = Role.USER

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
