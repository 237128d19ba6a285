# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from timekeeper.models.enums import Role
from timekeeper.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: Role = Header(default=Role.USER),
) -> AuthContext:
    """Extract the caller identity from request headers.

    Authentication happens upstream; an unknown role is rejected by validation.
    """
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
