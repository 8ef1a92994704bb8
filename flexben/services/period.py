"""Period registry: benefit periods, current-period lookups and claim routing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from flexben.exceptions import (
    AppError,
    NotFoundError,
    PeriodClosedError,
    PeriodExhaustedError,
    TooEarlyError,
)
from flexben.models.enums import AuditAction, AuditEntityType, PeriodStatus
from flexben.models.period import BenefitPeriod
from flexben.schemas.period import PeriodListResponse, PeriodResponse
from flexben.services.audit import model_to_audit_dict, write_audit_log
from flexben.services.installment import generate_pending_installments

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from flexben.schemas.auth import AuthContext
    from flexben.schemas.period import CreatePeriodRequest


def build_period_response(period: BenefitPeriod) -> PeriodResponse:
    """Map a period model to its response schema."""
    return PeriodResponse(
        id=period.id,
        company_id=period.company_id,
        label=period.label,
        accrual_start=period.accrual_start,
        accrual_end=period.accrual_end,
        submission_open=period.submission_open,
        submission_close=period.submission_close,
        status=PeriodStatus(period.status),
        created_at=period.created_at,
    )


async def get_period_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    period_id: uuid.UUID,
    *,
    for_update: bool = False,
    for_share: bool = False,
) -> BenefitPeriod:
    """Fetch a period by ID scoped to company. Raises 404 if not found.

    ``for_update`` takes an exclusive row lock (closing, reopening);
    ``for_share`` a shared one that only conflicts with those.
    """
    query = select(BenefitPeriod).where(
        col(BenefitPeriod.id) == period_id,
        col(BenefitPeriod.company_id) == company_id,
    )
    if for_update:
        query = query.with_for_update()
    elif for_share:
        query = query.with_for_update(read=True)
    result = await session.execute(query)
    period = result.scalar_one_or_none()
    if period is None:
        raise NotFoundError("Period not found")
    return period


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def find_current_period(
    session: AsyncSession,
    company_id: uuid.UUID,
    today: date,
) -> BenefitPeriod | None:
    """Open period whose accumulation window contains ``today``.

    Falls back to the most recently started period (any status) so that
    dashboards always have something to show between periods.
    """
    result = await session.execute(
        select(BenefitPeriod)
        .where(
            col(BenefitPeriod.company_id) == company_id,
            col(BenefitPeriod.accrual_start) <= today,
            col(BenefitPeriod.accrual_end) >= today,
            col(BenefitPeriod.status) == PeriodStatus.OPEN.value,
        )
        .order_by(col(BenefitPeriod.accrual_start).desc())
        .limit(1)
    )
    period = result.scalar_one_or_none()
    if period is not None:
        return period

    result = await session.execute(
        select(BenefitPeriod)
        .where(col(BenefitPeriod.company_id) == company_id)
        .order_by(col(BenefitPeriod.accrual_start).desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def find_submission_period(
    session: AsyncSession,
    company_id: uuid.UUID,
    today: date,
) -> BenefitPeriod | None:
    """Open period whose submission window contains ``today``."""
    result = await session.execute(
        select(BenefitPeriod)
        .where(
            col(BenefitPeriod.company_id) == company_id,
            col(BenefitPeriod.submission_open) <= today,
            col(BenefitPeriod.submission_close) >= today,
            col(BenefitPeriod.status) == PeriodStatus.OPEN.value,
        )
        .order_by(col(BenefitPeriod.accrual_start).desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def resolve_submission_period(
    session: AsyncSession,
    company_id: uuid.UUID,
    period_id: uuid.UUID,
    today: date,
) -> BenefitPeriod:
    """Return the period a new claim against ``period_id`` should land in.

    1. The target period must exist and be open.
    2. Before its submission window opens the claim is refused.
    3. After the window closes the claim is forwarded to the first later open
       period whose own window has not closed yet; if there is none the
       submission fails.

    Both the target and the forwarding period are share-locked, so a
    settlement cannot close the returned period before the caller commits.
    """
    period = await get_period_or_404(session, company_id, period_id, for_share=True)

    if period.status != PeriodStatus.OPEN.value:
        raise PeriodClosedError(f"Period {period.label} is closed for new claims")

    if today < period.submission_open:
        raise TooEarlyError(
            f"Submissions for period {period.label} open on {period.submission_open.isoformat()}"
        )

    if today <= period.submission_close:
        return period

    result = await session.execute(
        select(BenefitPeriod)
        .where(
            col(BenefitPeriod.company_id) == company_id,
            col(BenefitPeriod.submission_open) > period.submission_close,
            col(BenefitPeriod.submission_close) >= today,
            col(BenefitPeriod.status) == PeriodStatus.OPEN.value,
        )
        .order_by(col(BenefitPeriod.submission_open).asc())
        .limit(1)
        .with_for_update(read=True)
    )
    next_period = result.scalar_one_or_none()
    if next_period is None:
        raise PeriodExhaustedError
    return next_period


# ---------------------------------------------------------------------------
# Registry maintenance
# ---------------------------------------------------------------------------


async def create_period(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreatePeriodRequest,
) -> PeriodResponse:
    """Register a benefit period.

    An open period also receives the next outstanding installment of every
    installment plan started in an earlier period.
    """
    period = BenefitPeriod(
        company_id=auth.company_id,
        label=payload.label,
        accrual_start=payload.accrual_start,
        accrual_end=payload.accrual_end,
        submission_open=payload.submission_open,
        submission_close=payload.submission_close,
        status=payload.status.value,
    )
    session.add(period)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError(f"Period {payload.label} already exists", status_code=409) from None

    generated = await generate_pending_installments(session, auth, period)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.PERIOD,
        entity_id=period.id,
        action=AuditAction.CREATE,
        description=f"Created period {period.label}",
        after_json=model_to_audit_dict(period),
        metadata_json={"installments_generated": generated},
    )

    await session.commit()
    await session.refresh(period)
    return build_period_response(period)


async def get_period(
    session: AsyncSession,
    company_id: uuid.UUID,
    period_id: uuid.UUID,
) -> PeriodResponse:
    """Get a single period by ID."""
    period = await get_period_or_404(session, company_id, period_id)
    return build_period_response(period)


async def list_periods(
    session: AsyncSession,
    company_id: uuid.UUID,
    status_filter: PeriodStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> PeriodListResponse:
    """List periods, most recent first."""
    filters = [col(BenefitPeriod.company_id) == company_id]
    if status_filter is not None:
        filters.append(col(BenefitPeriod.status) == status_filter.value)

    count_result = await session.execute(select(func.count()).select_from(BenefitPeriod).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(BenefitPeriod)
        .where(*filters)
        .order_by(col(BenefitPeriod.accrual_start).desc())
        .offset(offset)
        .limit(limit)
    )
    periods = list(result.scalars().all())

    return PeriodListResponse(items=[build_period_response(p) for p in periods], total=total)
