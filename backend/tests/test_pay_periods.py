"""Tests for the pay period workflow: bundling, submit, approve, reject,
resubmit, mark paid, authorization, audit and concurrent transitions.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from timekeeper.exceptions import ConflictError
from timekeeper.models.audit import AuditLog
from timekeeper.models.enums import PeriodStatus
from timekeeper.services.employee import EmployeeInfo, get_employee_service
from timekeeper.services.period_store import get_period_or_404, save_period
from timekeeper.services.state_machine import PayPeriodStateMachine

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

EMPLOYEE_ID = uuid.uuid4()
OTHER_EMPLOYEE_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
HR_ID = uuid.uuid4()
PM_ID = uuid.uuid4()
ACCOUNTANT_ID = uuid.uuid4()

SUNDAY = date(2024, 1, 7)
URL = "/pay-periods"


def _headers(user_id: uuid.UUID = EMPLOYEE_ID, role: str = "USER") -> dict[str, str]:
    return {"X-User-Id": str(user_id), "X-Role": role}


ADMIN = _headers(ADMIN_ID, "ADMIN")
HR = _headers(HR_ID, "HR")
PM = _headers(PM_ID, "PROJECT_MANAGER")
ACCOUNTANT = _headers(ACCOUNTANT_ID, "ACCOUNTANT")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _seed_employee_service() -> None:
    """Seed the in-memory employee directory for every test."""
    get_employee_service().seed(  # ty: ignore[unresolved-attribute]
        EmployeeInfo(id=EMPLOYEE_ID, first_name="Dana", last_name="Field", email="dana@example.com")
    )


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


async def _put_entry(
    client: AsyncClient,
    on: date,
    user_id: uuid.UUID = EMPLOYEE_ID,
    day: dict[str, Any] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    body = {
        "date": on.isoformat(),
        "day": day or {"kind": "REGULAR", "start_time": "08:00", "end_time": "17:00"},
        **fields,
    }
    resp = await client.put("/time-entries", json=body, headers=_headers(user_id))
    assert resp.status_code in (200, 201), resp.text
    return resp.json()


async def _workweek(client: AsyncClient, user_id: uuid.UUID = EMPLOYEE_ID) -> list[str]:
    """Monday to Friday, 08:00-17:00 (9 hours each)."""
    entries = [await _put_entry(client, SUNDAY + timedelta(days=d), user_id) for d in range(1, 6)]
    return [entry["id"] for entry in entries]


async def _create_period(
    client: AsyncClient,
    entry_ids: list[str],
    user_id: uuid.UUID = EMPLOYEE_ID,
    week_start: date = SUNDAY,
) -> dict[str, Any]:
    resp = await client.post(
        URL,
        json={"week_start": week_start.isoformat(), "entry_ids": entry_ids},
        headers=_headers(user_id),
    )
    assert resp.status_code in (200, 201), resp.text
    return resp.json()


async def _draft_period(client: AsyncClient, user_id: uuid.UUID = EMPLOYEE_ID) -> dict[str, Any]:
    return await _create_period(client, await _workweek(client, user_id), user_id)


async def _submitted_period(client: AsyncClient, user_id: uuid.UUID = EMPLOYEE_ID) -> dict[str, Any]:
    period = await _draft_period(client, user_id)
    resp = await client.post(f"{URL}/{period['id']}/submit", headers=_headers(user_id))
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _approved_period(client: AsyncClient) -> dict[str, Any]:
    period = await _submitted_period(client)
    resp = await client.post(f"{URL}/{period['id']}/approve", headers=HR)
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _reject(client: AsyncClient, period_id: str, reason: str, **extra: Any) -> Any:
    return await client.post(f"{URL}/{period_id}/reject", json={"reason": reason, **extra}, headers=PM)


# ---------------------------------------------------------------------------
# Creating periods from drafts
# ---------------------------------------------------------------------------


async def test_create_period_from_workweek(async_client: AsyncClient) -> None:
    entry_ids = await _workweek(async_client)
    resp = await async_client.post(
        URL,
        json={"week_start": SUNDAY.isoformat(), "entry_ids": entry_ids},
        headers=_headers(),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "DRAFT"
    assert data["start_date"] == SUNDAY.isoformat()
    assert data["end_date"] == (SUNDAY + timedelta(days=6)).isoformat()
    assert data["employee_name"] == "Dana Field"
    assert Decimal(data["total_hours"]) == Decimal(40)
    assert Decimal(data["total_overtime_hours"]) == Decimal(5)
    assert [entry["id"] for entry in data["entries"]] == entry_ids
    assert all(entry["pay_period_id"] == data["id"] for entry in data["entries"])


async def test_single_pto_day_period(async_client: AsyncClient) -> None:
    entry = await _put_entry(async_client, SUNDAY + timedelta(days=2), day={"kind": "PTO"})
    period = await _create_period(async_client, [entry["id"]])
    assert period["total_pto"] == 1
    assert Decimal(period["total_hours"]) == 0
    assert Decimal(period["total_pto_hours"]) == 0


async def test_per_diem_only_period(async_client: AsyncClient) -> None:
    entry = await _put_entry(async_client, SUNDAY + timedelta(days=1), day={"kind": "REGULAR"}, per_diem="0.75")
    period = await _create_period(async_client, [entry["id"]])
    assert period["entries"][0]["entry_type"] == "Per Diem Only"
    assert Decimal(period["total_per_diem"]) == Decimal("0.75")
    assert Decimal(period["per_diem_amount"]) == Decimal("37.50")
    assert Decimal(period["total_hours"]) == 0


async def test_week_start_must_be_configured_weekday(async_client: AsyncClient) -> None:
    entry_ids = await _workweek(async_client)
    resp = await async_client.post(
        URL,
        json={"week_start": (SUNDAY + timedelta(days=1)).isoformat(), "entry_ids": entry_ids},
        headers=_headers(),
    )
    assert resp.status_code == 422
    assert resp.json()["context"] == {"field": "week_start"}


async def test_configured_week_start(async_client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from timekeeper.config import reset_settings

    monkeypatch.setenv("WEEK_START_WEEKDAY", "0")
    reset_settings()
    monday = SUNDAY + timedelta(days=1)
    entry = await _put_entry(async_client, monday)
    period = await _create_period(async_client, [entry["id"]], week_start=monday)
    assert period["end_date"] == (monday + timedelta(days=6)).isoformat()


async def test_entry_outside_window_rejected(async_client: AsyncClient) -> None:
    entry = await _put_entry(async_client, SUNDAY + timedelta(days=7))
    resp = await async_client.post(
        URL, json={"week_start": SUNDAY.isoformat(), "entry_ids": [entry["id"]]}, headers=_headers()
    )
    assert resp.status_code == 422
    assert resp.json()["context"] == {"field": "entry_ids"}


async def test_unknown_entry_not_found(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        URL, json={"week_start": SUNDAY.isoformat(), "entry_ids": [str(uuid.uuid4())]}, headers=_headers()
    )
    assert resp.status_code == 404


async def test_cannot_bundle_another_employees_entries(async_client: AsyncClient) -> None:
    entry_ids = await _workweek(async_client, OTHER_EMPLOYEE_ID)
    resp = await async_client.post(
        URL, json={"week_start": SUNDAY.isoformat(), "entry_ids": entry_ids}, headers=_headers()
    )
    assert resp.status_code == 403


async def test_staff_cannot_bundle_for_employee(async_client: AsyncClient) -> None:
    entry_ids = await _workweek(async_client)
    resp = await async_client.post(
        URL,
        json={"week_start": SUNDAY.isoformat(), "entry_ids": entry_ids, "employee_id": str(EMPLOYEE_ID)},
        headers=ADMIN,
    )
    assert resp.status_code == 403


async def test_entry_cannot_join_two_periods(async_client: AsyncClient) -> None:
    period = await _draft_period(async_client)
    resp = await async_client.post(
        URL,
        json={"week_start": SUNDAY.isoformat(), "entry_ids": [period["entries"][0]["id"]]},
        headers=_headers(),
    )
    assert resp.status_code == 422


async def test_adding_entries_to_existing_draft_week(async_client: AsyncClient) -> None:
    period = await _draft_period(async_client)
    saturday = await _put_entry(async_client, SUNDAY + timedelta(days=6), day={"kind": "TRAVEL"}, per_diem="1")

    resp = await async_client.post(
        URL, json={"week_start": SUNDAY.isoformat(), "entry_ids": [saturday["id"]]}, headers=_headers()
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == period["id"]
    assert len(data["entries"]) == 6
    assert Decimal(data["total_per_diem"]) == Decimal(1)
    assert Decimal(data["total_overtime_hours"]) == Decimal(5)


async def test_cannot_add_entries_to_submitted_week(async_client: AsyncClient) -> None:
    await _submitted_period(async_client)
    saturday = await _put_entry(async_client, SUNDAY + timedelta(days=6))
    resp = await async_client.post(
        URL, json={"week_start": SUNDAY.isoformat(), "entry_ids": [saturday["id"]]}, headers=_headers()
    )
    assert resp.status_code == 409
    assert resp.json()["context"]["current_status"] == "SUBMITTED"


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def test_submit_period(async_client: AsyncClient) -> None:
    period = await _draft_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/submit", headers=_headers())
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "SUBMITTED"
    assert data["submitted_at"] is not None
    assert data["version"] == period["version"] + 1
    assert {entry["status"] for entry in data["entries"]} == {"SUBMITTED"}


async def test_only_owner_submits(async_client: AsyncClient) -> None:
    period = await _draft_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/submit", headers=ADMIN)
    assert resp.status_code == 403


async def test_submit_twice_is_invalid(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/submit", headers=_headers())
    assert resp.status_code == 409
    data = resp.json()
    assert data["error"] == "InvalidTransitionError"
    assert data["context"] == {"current_status": "SUBMITTED", "action": "submit"}


async def test_transition_on_unknown_period(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{URL}/{uuid.uuid4()}/approve", headers=HR)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Approve / reject
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("headers", [ADMIN, HR, PM])
async def test_reviewers_approve(async_client: AsyncClient, headers: dict[str, str]) -> None:
    period = await _submitted_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/approve", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "APPROVED"
    assert data["reviewer_id"] == headers["X-User-Id"]
    assert data["reviewed_at"] is not None
    assert {entry["status"] for entry in data["entries"]} == {"APPROVED"}


async def test_accountant_cannot_approve(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/approve", headers=ACCOUNTANT)
    assert resp.status_code == 403
    assert resp.json()["context"] == {"required_roles": ["ADMIN", "HR", "PROJECT_MANAGER"]}


async def test_employee_cannot_approve_own_period(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/approve", headers=_headers())
    assert resp.status_code == 403


async def test_reviewer_cannot_approve_own_period(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client, HR_ID)
    resp = await async_client.post(f"{URL}/{period['id']}/approve", headers=HR)
    assert resp.status_code == 403


async def test_approve_draft_is_invalid_and_changes_nothing(async_client: AsyncClient) -> None:
    period = await _draft_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/approve", headers=HR)
    assert resp.status_code == 409
    assert resp.json()["context"] == {"current_status": "DRAFT", "action": "approve"}

    unchanged = (await async_client.get(f"{URL}/{period['id']}", headers=_headers())).json()
    assert unchanged["status"] == "DRAFT"
    assert unchanged["version"] == period["version"]
    assert unchanged["reviewer_id"] is None


async def test_reject_requires_reason(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)
    resp = await _reject(async_client, period["id"], "   ")
    assert resp.status_code == 422
    assert resp.json()["context"] == {"field": "reason"}

    unchanged = (await async_client.get(f"{URL}/{period['id']}", headers=_headers())).json()
    assert unchanged["status"] == "SUBMITTED"


async def test_reject_with_entry_reasons(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)
    flagged = period["entries"][2]["id"]
    resp = await _reject(async_client, period["id"], "missing receipt", entry_reasons={flagged: "No receipt"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "REJECTED"
    assert data["rejection_reason"] == "missing receipt"
    reasons = {entry["id"]: entry["rejection_reason"] for entry in data["entries"]}
    assert reasons[flagged] == "No receipt"
    assert sum(1 for reason in reasons.values() if reason) == 1
    assert {entry["status"] for entry in data["entries"]} == {"REJECTED"}


async def test_reject_entry_reason_for_foreign_entry(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)
    resp = await _reject(async_client, period["id"], "wrong", entry_reasons={str(uuid.uuid4()): "?"})
    assert resp.status_code == 422
    assert resp.json()["context"] == {"field": "entry_reasons"}


async def test_reject_edit_resubmit(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)
    first_submitted_at = datetime.fromisoformat(period["submitted_at"])
    first_entry = period["entries"][0]
    await _reject(async_client, period["id"], "missing receipt", entry_reasons={first_entry["id"]: "Too long"})

    # Owner edits an entry of the rejected period; totals follow, status stays
    await _put_entry(
        async_client,
        date.fromisoformat(first_entry["date"]),
        day={"kind": "REGULAR", "start_time": "08:00", "end_time": "12:00"},
    )
    rejected = (await async_client.get(f"{URL}/{period['id']}", headers=_headers())).json()
    assert rejected["status"] == "REJECTED"
    assert Decimal(rejected["total_hours"]) == Decimal(40)
    assert Decimal(rejected["total_overtime_hours"]) == 0

    resp = await async_client.post(f"{URL}/{period['id']}/submit", headers=_headers())
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "SUBMITTED"
    assert data["rejection_reason"] is None
    assert datetime.fromisoformat(data["submitted_at"]) > first_submitted_at
    assert all(entry["rejection_reason"] is None for entry in data["entries"])


# ---------------------------------------------------------------------------
# Mark paid
# ---------------------------------------------------------------------------


async def test_accountant_marks_paid(async_client: AsyncClient) -> None:
    period = await _approved_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/mark-paid", headers=ACCOUNTANT)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "PAID"
    assert data["paid_by"] == str(ACCOUNTANT_ID)
    assert data["paid_at"] is not None


async def test_project_manager_cannot_mark_paid(async_client: AsyncClient) -> None:
    period = await _approved_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/mark-paid", headers=PM)
    assert resp.status_code == 403
    assert resp.json()["error"] == "ForbiddenError"


async def test_mark_paid_before_approval_is_invalid(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)
    resp = await async_client.post(f"{URL}/{period['id']}/mark-paid", headers=ACCOUNTANT)
    assert resp.status_code == 409


async def test_paid_is_terminal(async_client: AsyncClient) -> None:
    period = await _approved_period(async_client)
    await async_client.post(f"{URL}/{period['id']}/mark-paid", headers=ACCOUNTANT)

    for action, headers in (("submit", _headers()), ("approve", HR), ("mark-paid", ACCOUNTANT)):
        resp = await async_client.post(f"{URL}/{period['id']}/{action}", headers=headers)
        assert resp.status_code == 409, action
    resp = await _reject(async_client, period["id"], "late")
    assert resp.status_code == 409


# ---------------------------------------------------------------------------
# Reads and audit
# ---------------------------------------------------------------------------


async def test_get_period_permissions(async_client: AsyncClient) -> None:
    period = await _draft_period(async_client)
    url = f"{URL}/{period['id']}"
    assert (await async_client.get(url, headers=_headers())).status_code == 200
    assert (await async_client.get(url, headers=_headers(OTHER_EMPLOYEE_ID))).status_code == 403
    assert (await async_client.get(url, headers=ACCOUNTANT)).status_code == 200


async def test_transitions_write_audit_log(async_client: AsyncClient, db_session: AsyncSession) -> None:
    period = await _approved_period(async_client)
    await async_client.post(f"{URL}/{period['id']}/mark-paid", headers=ACCOUNTANT)

    result = await db_session.execute(
        select(AuditLog)
        .where(col(AuditLog.entity_id) == uuid.UUID(period["id"]))
        .order_by(col(AuditLog.created_at))
    )
    logs = list(result.scalars().all())
    assert [log.action for log in logs] == ["CREATE", "SUBMIT", "APPROVE", "MARK_PAID"]
    approve = logs[2]
    assert approve.actor_id == HR_ID
    assert approve.before_json is not None
    assert approve.before_json["status"] == "SUBMITTED"
    assert approve.after_json is not None
    assert approve.after_json["status"] == "APPROVED"


async def test_audit_log_endpoint(async_client: AsyncClient) -> None:
    period = await _submitted_period(async_client)

    resp = await async_client.get("/audit-log", params={"entity_type": "PAY_PERIOD"}, headers=HR)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert data["items"][0]["action"] == "SUBMIT"
    assert data["items"][0]["entity_id"] == period["id"]

    resp = await async_client.get("/audit-log", headers=ACCOUNTANT)
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


async def test_lost_race_raises_conflict(
    async_client: AsyncClient,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    period = await _submitted_period(async_client)
    period_id = uuid.UUID(period["id"])

    async with session_factory() as stale_session:
        stale = await get_period_or_404(stale_session, period_id)
        changes = PayPeriodStateMachine.transition_changes(
            stale, "reject", PM_ID, datetime.now(UTC), reason="missing receipt"
        )

        # Another reviewer approves first
        resp = await async_client.post(f"{URL}/{period['id']}/approve", headers=HR)
        assert resp.status_code == 200

        with pytest.raises(ConflictError) as exc_info:
            await save_period(stale_session, stale, changes, "reject")
        assert exc_info.value.current_status == PeriodStatus.APPROVED
        assert exc_info.value.status_code == 409

    current = (await async_client.get(f"{URL}/{period['id']}", headers=_headers())).json()
    assert current["status"] == "APPROVED"
    assert current["rejection_reason"] is None
