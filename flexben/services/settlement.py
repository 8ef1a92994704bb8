# ruff: noqa: TC003
"""Settlement engine: closes a benefit period into payroll-ready totals.

All amounts are integer cents. A settlement run is one transaction: the
settlement row, its PI/DA overflow events, the period flip to CLOSED and the
audit entry commit together.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from flexben.exceptions import NotFoundError, PendingClaimsError, PeriodClosedError
from flexben.models.claim import ExpenseClaim
from flexben.models.enums import (
    FIXED_COMPONENTS,
    PENDING_CLAIM_STATUSES,
    AuditAction,
    AuditEntityType,
    BenefitComponent,
    ClaimStatus,
    PeriodStatus,
    SettlementStatus,
)
from flexben.models.settlement import OverflowEvent, Settlement
from flexben.schemas.settlement import (
    ClosingSummaryResponse,
    ComponentTotal,
    OverflowEventListResponse,
    OverflowEventResponse,
    ProcessSettlementResponse,
    SettlementListResponse,
    SettlementResponse,
    SettlementSummary,
    StatusTotal,
)
from flexben.services.audit import model_to_audit_dict, write_audit_log
from flexben.services.employee import EmployeeInfo, get_employee_service
from flexben.services.payroll_event import ComponentConfig, resolve_component_config
from flexben.services.period import get_period_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from flexben.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure computation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PidaOverflow:
    """Unused basket allowance of one employee, converted to PI/DA."""

    employee_id: uuid.UUID
    base_amount: int
    basket_shortfall: int

    @property
    def total_amount(self) -> int:
        return self.base_amount + self.basket_shortfall


@dataclass
class SettlementTotals:
    """Outcome of a settlement computation before anything is persisted."""

    employee_count: int = 0
    approved_claim_count: int = 0
    total_fixed: int = 0
    total_basket: int = 0
    total_pida: int = 0
    # Raw amount per component, whether or not it reached the totals
    component_amounts: dict[BenefitComponent, int] = field(default_factory=dict)
    overflows: list[PidaOverflow] = field(default_factory=list)

    @property
    def grand_total(self) -> int:
        return self.total_fixed + self.total_basket + self.total_pida

    @property
    def event_count(self) -> int:
        return self.approved_claim_count + len(self.overflows)


def compute_pida_overflow(employee: EmployeeInfo, basket_total: int) -> PidaOverflow | None:
    """PI/DA rule for one employee.

    Eligible employees (``has_pida`` with a positive basket cap) receive their
    PI/DA base plus whatever part of the cap they did not use.
    """
    if not employee.has_pida or employee.basket_cap <= 0:
        return None

    shortfall = max(0, employee.basket_cap - basket_total)
    overflow = PidaOverflow(employee_id=employee.id, base_amount=employee.pida_base, basket_shortfall=shortfall)
    if overflow.total_amount <= 0:
        return None
    return overflow


def compute_settlement_totals(
    employees: list[EmployeeInfo],
    basket_totals: dict[uuid.UUID, int],
    approved_claim_count: int,
    config: dict[BenefitComponent, ComponentConfig],
) -> SettlementTotals:
    """Compute settlement totals from the directory and approved basket usage.

    ``basket_totals`` maps employee ID to the sum of ``amount_counted`` over
    the employee's approved claims. Components without a payroll code are
    reported but excluded from the totals, and PI/DA events are only produced
    when PIDA is configured.
    """
    totals = SettlementTotals(
        employee_count=len(basket_totals),
        approved_claim_count=approved_claim_count,
        component_amounts=dict.fromkeys(BenefitComponent, 0),
    )
    active = [e for e in employees if e.active]

    for component in FIXED_COMPONENTS:
        amount = sum(e.fixed_amount(component) for e in active)
        totals.component_amounts[component] = amount
        if config[component].configured:
            totals.total_fixed += amount

    basket_amount = sum(basket_totals.values())
    totals.component_amounts[BenefitComponent.BENEFIT_BASKET] = basket_amount
    if config[BenefitComponent.BENEFIT_BASKET].configured:
        totals.total_basket = basket_amount

    candidates = [e for e in employees if e.active or e.id in basket_totals]
    overflows = [
        overflow
        for employee in candidates
        if (overflow := compute_pida_overflow(employee, basket_totals.get(employee.id, 0))) is not None
    ]
    pida_amount = sum(o.total_amount for o in overflows)
    totals.component_amounts[BenefitComponent.PIDA] = pida_amount
    if config[BenefitComponent.PIDA].configured:
        totals.overflows = overflows
        totals.total_pida = pida_amount

    return totals


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_settlement_response(settlement: Settlement) -> SettlementResponse:
    return SettlementResponse(
        id=settlement.id,
        company_id=settlement.company_id,
        period_id=settlement.period_id,
        actor_id=settlement.actor_id,
        processed_at=settlement.processed_at,
        status=SettlementStatus(settlement.status),
        employee_count=settlement.employee_count,
        event_count=settlement.event_count,
        total_fixed=settlement.total_fixed,
        total_basket=settlement.total_basket,
        total_pida=settlement.total_pida,
        total_amount=settlement.total_amount,
    )


def _build_overflow_response(event: OverflowEvent) -> OverflowEventResponse:
    return OverflowEventResponse(
        id=event.id,
        company_id=event.company_id,
        employee_id=event.employee_id,
        period_id=event.period_id,
        settlement_id=event.settlement_id,
        base_amount=event.base_amount,
        basket_shortfall=event.basket_shortfall,
        total_amount=event.total_amount,
        created_at=event.created_at,
    )


def _build_summary(totals: SettlementTotals, config: dict[BenefitComponent, ComponentConfig]) -> SettlementSummary:
    return SettlementSummary(
        employee_count=totals.employee_count,
        event_count=totals.event_count,
        total_fixed=totals.total_fixed,
        total_basket=totals.total_basket,
        total_pida=totals.total_pida,
        grand_total=totals.grand_total,
        components=[
            ComponentTotal(
                component=component,
                code=config[component].code,
                configured=config[component].configured,
                amount=totals.component_amounts[component],
            )
            for component in BenefitComponent
        ],
    )


async def _get_settlement_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    settlement_id: uuid.UUID,
) -> Settlement:
    result = await session.execute(
        select(Settlement).where(
            col(Settlement.id) == settlement_id,
            col(Settlement.company_id) == company_id,
        )
    )
    settlement = result.scalar_one_or_none()
    if settlement is None:
        raise NotFoundError("Settlement not found")
    return settlement


async def _count_pending_claims(session: AsyncSession, company_id: uuid.UUID, period_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(ExpenseClaim)
        .where(
            col(ExpenseClaim.company_id) == company_id,
            col(ExpenseClaim.period_id) == period_id,
            col(ExpenseClaim.status).in_([s.value for s in PENDING_CLAIM_STATUSES]),
        )
    )
    return result.scalar_one()


async def _approved_basket_totals(
    session: AsyncSession,
    company_id: uuid.UUID,
    period_id: uuid.UUID,
) -> tuple[dict[uuid.UUID, int], int]:
    """Return (counted amount per employee, number of approved claims)."""
    result = await session.execute(
        select(
            col(ExpenseClaim.employee_id),
            func.sum(col(ExpenseClaim.amount_counted)),
            func.count(),
        )
        .where(
            col(ExpenseClaim.company_id) == company_id,
            col(ExpenseClaim.period_id) == period_id,
            col(ExpenseClaim.status) == ClaimStatus.APPROVED.value,
        )
        .group_by(col(ExpenseClaim.employee_id))
    )
    basket_totals: dict[uuid.UUID, int] = {}
    claim_count = 0
    for employee_id, counted, count in result.all():
        basket_totals[employee_id] = int(counted or 0)
        claim_count += count
    return basket_totals, claim_count


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def get_closing_summary(
    session: AsyncSession,
    company_id: uuid.UUID,
    period_id: uuid.UUID,
) -> ClosingSummaryResponse:
    """Claim counts and counted totals per status for a period."""
    period = await get_period_or_404(session, company_id, period_id)

    result = await session.execute(
        select(
            col(ExpenseClaim.status),
            func.count(),
            func.coalesce(func.sum(col(ExpenseClaim.amount_counted)), 0),
        )
        .where(
            col(ExpenseClaim.company_id) == company_id,
            col(ExpenseClaim.period_id) == period_id,
        )
        .group_by(col(ExpenseClaim.status))
    )
    rows = {status: (count, int(amount)) for status, count, amount in result.all()}

    employees_result = await session.execute(
        select(func.count(func.distinct(col(ExpenseClaim.employee_id)))).where(
            col(ExpenseClaim.company_id) == company_id,
            col(ExpenseClaim.period_id) == period_id,
        )
    )

    by_status = [
        StatusTotal(status=s, count=rows.get(s.value, (0, 0))[0], amount_counted=rows.get(s.value, (0, 0))[1])
        for s in ClaimStatus
    ]
    pending_submitted = rows.get(ClaimStatus.SUBMITTED.value, (0, 0))[0]
    pending_under_review = rows.get(ClaimStatus.UNDER_REVIEW.value, (0, 0))[0]

    return ClosingSummaryResponse(
        period_id=period.id,
        by_status=by_status,
        pending_submitted=pending_submitted,
        pending_under_review=pending_under_review,
        employee_count=employees_result.scalar_one(),
        can_close=period.status == PeriodStatus.OPEN.value and pending_submitted + pending_under_review == 0,
    )


async def process_settlement(
    session: AsyncSession,
    auth: AuthContext,
    period_id: uuid.UUID,
) -> ProcessSettlementResponse:
    """Close a period.

    Flow:
    1. Lock the period row (must exist and be OPEN)
    2. Refuse while any claim is still pending review
    3. Resolve component configuration and compute totals
    4. Persist the settlement, then its overflow events
    5. Flip the period to CLOSED
    6. Audit log
    7. Commit
    """
    period = await get_period_or_404(session, auth.company_id, period_id, for_update=True)
    if period.status != PeriodStatus.OPEN.value:
        raise PeriodClosedError(f"Period {period.label} is already closed")

    pending = await _count_pending_claims(session, auth.company_id, period.id)
    if pending > 0:
        raise PendingClaimsError(pending)

    config = await resolve_component_config(session, auth.company_id)
    basket_totals, approved_count = await _approved_basket_totals(session, auth.company_id, period.id)
    employees = await get_employee_service().list_employees(auth.company_id)

    totals = compute_settlement_totals(employees, basket_totals, approved_count, config)

    settlement = Settlement(
        company_id=auth.company_id,
        period_id=period.id,
        actor_id=auth.user_id,
        status=SettlementStatus.SUCCESS.value,
        employee_count=totals.employee_count,
        event_count=totals.event_count,
        total_fixed=totals.total_fixed,
        total_basket=totals.total_basket,
        total_pida=totals.total_pida,
        total_amount=totals.grand_total,
    )
    session.add(settlement)
    await session.flush()

    events = [
        OverflowEvent(
            company_id=auth.company_id,
            employee_id=overflow.employee_id,
            period_id=period.id,
            settlement_id=settlement.id,
            base_amount=overflow.base_amount,
            basket_shortfall=overflow.basket_shortfall,
            total_amount=overflow.total_amount,
        )
        for overflow in totals.overflows
    ]
    session.add_all(events)

    period.status = PeriodStatus.CLOSED.value
    await session.flush()

    summary = _build_summary(totals, config)
    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.SETTLEMENT,
        entity_id=settlement.id,
        action=AuditAction.PROCESS,
        description=f"Closed period {period.label}",
        after_json=model_to_audit_dict(settlement),
        metadata_json={"period_id": str(period.id), "summary": summary.model_dump(mode="json")},
    )

    await session.commit()
    await session.refresh(settlement)
    for event in events:
        await session.refresh(event)

    logger.info(
        "Settled period %s for company %s: %d employees, %d events, total %d",
        period.label,
        auth.company_id,
        totals.employee_count,
        totals.event_count,
        totals.grand_total,
    )

    return ProcessSettlementResponse(
        settlement=_build_settlement_response(settlement),
        overflow_events=[_build_overflow_response(e) for e in events],
        summary=summary,
    )


async def delete_settlement(
    session: AsyncSession,
    auth: AuthContext,
    settlement_id: uuid.UUID,
    *,
    reopen_period: bool = False,
) -> None:
    """Delete a settlement with its overflow events.

    The period stays CLOSED unless ``reopen_period`` is set.
    """
    settlement = await _get_settlement_or_404(session, auth.company_id, settlement_id)

    events_result = await session.execute(
        select(OverflowEvent).where(col(OverflowEvent.settlement_id) == settlement.id)
    )
    events = list(events_result.scalars().all())

    if reopen_period:
        period = await get_period_or_404(session, auth.company_id, settlement.period_id, for_update=True)
        period.status = PeriodStatus.OPEN.value

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.SETTLEMENT,
        entity_id=settlement.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(settlement),
        metadata_json={"overflow_events_deleted": len(events), "reopen_period": reopen_period},
    )

    for event in events:
        await session.delete(event)
    await session.flush()
    await session.delete(settlement)
    await session.commit()

    logger.info(
        "Deleted settlement %s (%d overflow events, period reopened: %s)",
        settlement_id,
        len(events),
        reopen_period,
    )


async def get_settlement(
    session: AsyncSession,
    company_id: uuid.UUID,
    settlement_id: uuid.UUID,
) -> SettlementResponse:
    settlement = await _get_settlement_or_404(session, company_id, settlement_id)
    return _build_settlement_response(settlement)


async def list_settlements(
    session: AsyncSession,
    company_id: uuid.UUID,
    period_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> SettlementListResponse:
    """List settlements, most recent first."""
    filters = [col(Settlement.company_id) == company_id]
    if period_id is not None:
        filters.append(col(Settlement.period_id) == period_id)

    count_result = await session.execute(select(func.count()).select_from(Settlement).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Settlement).where(*filters).order_by(col(Settlement.processed_at).desc()).offset(offset).limit(limit)
    )
    settlements = list(result.scalars().all())
    return SettlementListResponse(items=[_build_settlement_response(s) for s in settlements], total=total)


async def list_overflow_events(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    period_id: uuid.UUID | None = None,
    settlement_id: uuid.UUID | None = None,
    employee_id: uuid.UUID | None = None,
) -> OverflowEventListResponse:
    """List PI/DA overflow events by period, settlement or employee."""
    filters = [col(OverflowEvent.company_id) == company_id]
    if period_id is not None:
        filters.append(col(OverflowEvent.period_id) == period_id)
    if settlement_id is not None:
        filters.append(col(OverflowEvent.settlement_id) == settlement_id)
    if employee_id is not None:
        filters.append(col(OverflowEvent.employee_id) == employee_id)

    result = await session.execute(
        select(OverflowEvent).where(*filters).order_by(col(OverflowEvent.created_at).desc())
    )
    events = list(result.scalars().all())
    return OverflowEventListResponse(items=[_build_overflow_response(e) for e in events], total=len(events))
