"""Per-employee basket usage: row locking, cached totals and re-splitting claims."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import col

from flexben.models.basket import BasketUsage
from flexben.models.claim import ExpenseClaim
from flexben.models.enums import ClaimStatus
from flexben.services.allocation import allocate

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Dialect-specific INSERT constructs that support ON CONFLICT DO NOTHING.
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def lock_basket_usage(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    period_id: uuid.UUID,
) -> BasketUsage:
    """Get the basket usage row with a FOR UPDATE lock, creating it if absent.

    The row is created with INSERT ... ON CONFLICT DO NOTHING and then selected
    FOR UPDATE, so two first submissions for the same employee and period both
    end up waiting on the same row instead of racing on the primary key.
    Holding this lock serializes allocation + insert for one employee and period.
    """
    insert = _UPSERT_INSERTS[session.get_bind().dialect.name]
    await session.execute(
        insert(BasketUsage)
        .values(
            company_id=company_id,
            employee_id=employee_id,
            period_id=period_id,
            counted_total=0,
            overflowed=False,
            updated_at=datetime.now(UTC),
            version=1,
        )
        .on_conflict_do_nothing(index_elements=["company_id", "employee_id", "period_id"])
    )

    result = await session.execute(
        select(BasketUsage)
        .where(
            col(BasketUsage.company_id) == company_id,
            col(BasketUsage.employee_id) == employee_id,
            col(BasketUsage.period_id) == period_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def basket_totals(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    period_id: uuid.UUID,
    exclude_claim_id: uuid.UUID | None = None,
) -> tuple[int, bool]:
    """Return (counted total, overflowed) over the employee's non-rejected claims."""
    filters = [
        col(ExpenseClaim.company_id) == company_id,
        col(ExpenseClaim.employee_id) == employee_id,
        col(ExpenseClaim.period_id) == period_id,
        col(ExpenseClaim.status) != ClaimStatus.REJECTED.value,
    ]
    if exclude_claim_id is not None:
        filters.append(col(ExpenseClaim.id) != exclude_claim_id)

    result = await session.execute(
        select(
            func.coalesce(func.sum(col(ExpenseClaim.amount_counted)), 0),
            func.coalesce(func.max(col(ExpenseClaim.amount_excess)), 0),
        ).where(*filters)
    )
    counted, max_excess = result.one()
    return int(counted), int(max_excess) > 0


async def refresh_basket_usage(session: AsyncSession, usage: BasketUsage) -> None:
    """Recompute the cached usage after claims were added, changed or released."""
    counted, overflowed = await basket_totals(session, usage.company_id, usage.employee_id, usage.period_id)
    usage.counted_total = counted
    usage.overflowed = overflowed
    usage.version += 1
    usage.updated_at = datetime.now(UTC)
    await session.flush()


async def reallocate_basket(
    session: AsyncSession,
    usage: BasketUsage,
    cap: int | None,
) -> list[uuid.UUID]:
    """Re-split every remaining claim of the basket in submission order.

    Called under the usage lock after a claim left the basket (deleted or
    rejected): capacity it held moves to later claims that had overflowed.
    Returns the IDs of claims whose split changed. With ``cap=None`` (employee
    no longer in the directory) the splits are kept and only totals refreshed.
    """
    changed: list[uuid.UUID] = []

    if cap is not None:
        result = await session.execute(
            select(ExpenseClaim)
            .where(
                col(ExpenseClaim.company_id) == usage.company_id,
                col(ExpenseClaim.employee_id) == usage.employee_id,
                col(ExpenseClaim.period_id) == usage.period_id,
                col(ExpenseClaim.status) != ClaimStatus.REJECTED.value,
            )
            .order_by(col(ExpenseClaim.created_at).asc(), col(ExpenseClaim.id).asc())
        )
        counted = 0
        now = datetime.now(UTC)
        for claim in result.scalars().all():
            allocation = allocate(claim.amount_claimed, cap, counted)
            if allocation.amount_counted != claim.amount_counted:
                claim.amount_counted = allocation.amount_counted
                claim.amount_excess = allocation.amount_excess
                claim.touch(now)
                changed.append(claim.id)
            counted += allocation.amount_counted

        if changed:
            logger.info(
                "Re-split %d claim(s) for employee %s in period %s",
                len(changed),
                usage.employee_id,
                usage.period_id,
            )
        await session.flush()

    await refresh_basket_usage(session, usage)
    return changed
