# ruff: noqa: B008, TC003
from __future__ import annotations

import datetime
import uuid

from fastapi import APIRouter, Query

from timekeeper.api.deps import AuthDep
from timekeeper.db import SessionDep
from timekeeper.models.enums import AuditAction, AuditEntityType
from timekeeper.schemas.report import AuditLogListResponse
from timekeeper.services.query import query_audit_log

reports_router = APIRouter(tags=["reports"])


@reports_router.get("/audit-log", response_model=AuditLogListResponse)
async def get_audit_log(
    session: SessionDep,
    auth: AuthDep,
    entity_type: AuditEntityType | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    start_date: datetime.date | None = Query(default=None),
    end_date: datetime.date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query the audit log (ADMIN / HR)."""
    return await query_audit_log(
        session,
        auth,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        action=action.value if action else None,
        actor_id=actor_id,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )
