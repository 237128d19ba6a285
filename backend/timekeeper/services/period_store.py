# ruff: noqa: TC003
"""Loading and saving pay periods.

Every write to a pay period goes through ``save_period``: a conditional
UPDATE on the row version, so two requests that read the same version can
never both apply their change.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update
from sqlmodel import col

from timekeeper.config import get_settings
from timekeeper.exceptions import ConflictError, NotFoundError
from timekeeper.models.pay_period import PayPeriod
from timekeeper.models.time_entry import TimeEntry
from timekeeper.services.aggregation import compute_period_totals

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def get_period_or_404(
    session: AsyncSession,
    period_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> PayPeriod:
    """Fetch a pay period by ID. Raises NotFoundError if missing."""
    query = select(PayPeriod).where(col(PayPeriod.id) == period_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    period = result.scalar_one_or_none()
    if period is None:
        raise NotFoundError("Pay period", period_id)
    return period


async def find_period_for_week(
    session: AsyncSession,
    employee_id: uuid.UUID,
    start_date: datetime.date,
) -> PayPeriod | None:
    """The employee's pay period starting on ``start_date``, if any."""
    result = await session.execute(
        select(PayPeriod)
        .where(
            col(PayPeriod.employee_id) == employee_id,
            col(PayPeriod.start_date) == start_date,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def load_period_entries(session: AsyncSession, period_id: uuid.UUID) -> list[TimeEntry]:
    """Entries owned by a pay period, ordered by date."""
    result = await session.execute(
        select(TimeEntry).where(col(TimeEntry.pay_period_id) == period_id).order_by(col(TimeEntry.date))
    )
    return list(result.scalars().all())


async def load_entries_for_periods(
    session: AsyncSession,
    period_ids: list[uuid.UUID],
) -> dict[uuid.UUID, list[TimeEntry]]:
    """Entries of several pay periods, grouped by period and ordered by date."""
    grouped: dict[uuid.UUID, list[TimeEntry]] = {period_id: [] for period_id in period_ids}
    if not period_ids:
        return grouped
    result = await session.execute(
        select(TimeEntry).where(col(TimeEntry.pay_period_id).in_(period_ids)).order_by(col(TimeEntry.date))
    )
    for entry in result.scalars().all():
        if entry.pay_period_id is not None:
            grouped[entry.pay_period_id].append(entry)
    return grouped


async def save_period(
    session: AsyncSession,
    period: PayPeriod,
    changes: dict[str, Any],
    action: str,
) -> None:
    """Apply ``changes`` to ``period`` if nobody changed it since it was read.

    Bumps the version. On a lost race the transaction is rolled back and
    ConflictError reports the status the period has now.
    """
    expected_version = period.version
    result = await session.execute(
        update(PayPeriod)
        .where(col(PayPeriod.id) == period.id, col(PayPeriod.version) == expected_version)
        .values(**changes, version=expected_version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        period_id = period.id
        await session.rollback()
        current = await session.get(PayPeriod, period_id, populate_existing=True)
        current_status = current.status if current is not None else "DELETED"
        logger.warning(
            "Lost update on pay period %s (version %d, action %s); now %s",
            period_id,
            expected_version,
            action,
            current_status,
        )
        raise ConflictError(current_status, action)
    await session.refresh(period)


async def recompute_period(session: AsyncSession, period: PayPeriod) -> list[TimeEntry]:
    """Recompute and save a period's aggregates from its current entries.

    Must run in the same transaction as the entry change that triggered it.
    """
    entries = await load_period_entries(session, period.id)
    totals = compute_period_totals(entries, get_settings().overtime_threshold_hours)
    await save_period(session, period, totals.as_dict(), "edit entries")
    return entries
