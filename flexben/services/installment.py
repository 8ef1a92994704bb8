# ruff: noqa: TC003
"""Installment plans: a claim paid over several periods.

The first installment is an ordinary submitted claim carrying
``installment_total > 1``. Each follow-up installment is a copy of it in a
later period, linked back through ``origin_claim_id``. Follow-ups are placed in
the open periods that already exist when the plan is submitted, and the rest
are generated one per period as new periods are registered.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlmodel import col

from flexben.models.claim import ExpenseClaim
from flexben.models.enums import PENDING_CLAIM_STATUSES, AuditAction, AuditEntityType, ClaimStatus, PeriodStatus
from flexben.models.period import BenefitPeriod
from flexben.services.allocation import allocate
from flexben.services.audit import model_to_audit_dict, write_audit_log
from flexben.services.basket import basket_totals, lock_basket_usage, reallocate_basket, refresh_basket_usage
from flexben.services.employee import get_employee_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from flexben.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

AUTO_REJECT_PREFIX = "Automatically rejected: first installment was rejected."


def is_installment_origin(claim: ExpenseClaim) -> bool:
    """True for the first installment of a plan with follow-ups."""
    return claim.origin_claim_id is None and claim.installment_total > 1


async def _create_installment(
    session: AsyncSession,
    auth: AuthContext,
    origin: ExpenseClaim,
    period: BenefitPeriod,
    number: int,
    cap: int,
) -> ExpenseClaim:
    """Copy ``origin`` into ``period`` as installment ``number``.

    Follow-ups are allocated against the target basket like any claim, but an
    earlier overflow in that basket does not block them: the plan was accepted
    when the first installment was submitted.
    """
    usage = await lock_basket_usage(session, origin.company_id, origin.employee_id, period.id)
    already_counted, _ = await basket_totals(session, origin.company_id, origin.employee_id, period.id)
    allocation = allocate(origin.amount_claimed, cap, already_counted)

    claim = ExpenseClaim(
        company_id=origin.company_id,
        employee_id=origin.employee_id,
        period_id=period.id,
        requested_period_id=period.id,
        category_id=origin.category_id,
        origin=origin.origin,
        description=origin.description,
        document_ref=origin.document_ref,
        amount_claimed=allocation.amount_claimed,
        amount_counted=allocation.amount_counted,
        amount_excess=allocation.amount_excess,
        status=ClaimStatus.SUBMITTED.value,
        submitted_at=datetime.now(UTC),
        installment_number=number,
        installment_total=origin.installment_total,
        origin_claim_id=origin.id,
    )
    session.add(claim)
    await session.flush()
    await refresh_basket_usage(session, usage)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.CLAIM,
        entity_id=claim.id,
        action=AuditAction.CREATE,
        description=f"Installment {number}/{origin.installment_total} generated in period {period.label}",
        after_json=model_to_audit_dict(claim),
        metadata_json={"origin_claim_id": str(origin.id), "installment_number": number},
    )
    return claim


async def schedule_installments(
    session: AsyncSession,
    auth: AuthContext,
    origin: ExpenseClaim,
    origin_period: BenefitPeriod,
    cap: int,
) -> list[ExpenseClaim]:
    """Place follow-ups of a newly submitted plan in the open periods after it."""
    if not is_installment_origin(origin):
        return []

    result = await session.execute(
        select(BenefitPeriod)
        .where(
            col(BenefitPeriod.company_id) == origin.company_id,
            col(BenefitPeriod.submission_open) > origin_period.submission_open,
            col(BenefitPeriod.status) == PeriodStatus.OPEN.value,
        )
        .order_by(col(BenefitPeriod.submission_open).asc())
        .limit(origin.installment_total - 1)
        .with_for_update(read=True)
    )
    periods = list(result.scalars().all())

    created = []
    for number, period in enumerate(periods, start=2):
        created.append(await _create_installment(session, auth, origin, period, number, cap))
    return created


async def generate_pending_installments(
    session: AsyncSession,
    auth: AuthContext,
    period: BenefitPeriod,
) -> int:
    """Create the next outstanding installment of every live plan in ``period``.

    Only plans whose first installment sits in an earlier period are
    considered. A plan whose first installment was rejected is dead and gets
    no further installments. A follow-up rejected on its own is replaced, as
    the lowest installment number not held by a live claim is used.
    """
    if period.status != PeriodStatus.OPEN.value:
        return 0

    result = await session.execute(
        select(ExpenseClaim)
        .join(BenefitPeriod, col(BenefitPeriod.id) == col(ExpenseClaim.period_id))
        .where(
            col(ExpenseClaim.company_id) == period.company_id,
            col(ExpenseClaim.origin_claim_id).is_(None),
            col(ExpenseClaim.installment_total) > 1,
            col(ExpenseClaim.status) != ClaimStatus.REJECTED.value,
            col(BenefitPeriod.submission_open) < period.submission_open,
        )
        .order_by(col(ExpenseClaim.created_at).asc())
    )
    origins = list(result.scalars().all())

    directory = get_employee_service()
    generated = 0
    for origin in origins:
        chain_result = await session.execute(
            select(ExpenseClaim).where(
                or_(col(ExpenseClaim.id) == origin.id, col(ExpenseClaim.origin_claim_id) == origin.id),
            )
        )
        chain = list(chain_result.scalars().all())
        if any(c.period_id == period.id for c in chain):
            continue

        held = {c.installment_number for c in chain if c.status != ClaimStatus.REJECTED.value}
        missing = [n for n in range(1, origin.installment_total + 1) if n not in held]
        if not missing:
            continue

        employee = await directory.get_employee(origin.company_id, origin.employee_id)
        if employee is None or not employee.active:
            logger.info("Skipping installment of claim %s: employee %s is not active", origin.id, origin.employee_id)
            continue

        await _create_installment(session, auth, origin, period, missing[0], employee.basket_cap)
        generated += 1

    if generated:
        logger.info("Generated %d installment(s) in period %s", generated, period.label)
    return generated


async def reject_pending_installments(
    session: AsyncSession,
    auth: AuthContext,
    origin: ExpenseClaim,
    reason: str,
) -> list[ExpenseClaim]:
    """Reject the still-pending follow-ups of a plan whose first installment was rejected."""
    if not is_installment_origin(origin):
        return []

    result = await session.execute(
        select(ExpenseClaim)
        .where(
            col(ExpenseClaim.origin_claim_id) == origin.id,
            col(ExpenseClaim.status).in_([s.value for s in PENDING_CLAIM_STATUSES]),
        )
        .order_by(col(ExpenseClaim.installment_number).asc())
    )
    followups = list(result.scalars().all())
    if not followups:
        return []

    employee = await get_employee_service().get_employee(origin.company_id, origin.employee_id)
    cap = employee.basket_cap if employee is not None else None
    cascade_reason = f"{AUTO_REJECT_PREFIX} {reason}"

    for claim in followups:
        usage = await lock_basket_usage(session, claim.company_id, claim.employee_id, claim.period_id)
        previous = claim.status
        claim.status = ClaimStatus.REJECTED.value
        claim.reviewer_id = auth.user_id
        claim.reviewed_at = claim.touch()
        claim.rejection_reason = cascade_reason
        await session.flush()
        await reallocate_basket(session, usage, cap)

        await write_audit_log(
            session,
            auth=auth,
            entity_type=AuditEntityType.CLAIM,
            entity_id=claim.id,
            action=AuditAction.REJECT,
            description=f"Installment {claim.installment_number}/{claim.installment_total} rejected with the first",
            before_json={"status": previous},
            after_json=model_to_audit_dict(claim),
            metadata_json={"origin_claim_id": str(origin.id)},
        )

    logger.info("Rejected %d pending installment(s) of claim %s", len(followups), origin.id)
    return followups


async def withdraw_installments(
    session: AsyncSession,
    auth: AuthContext,
    origin: ExpenseClaim,
) -> list[uuid.UUID]:
    """Delete the untouched follow-ups of a plan whose first installment is being deleted.

    Follow-ups already under review or decided stay, detached from the plan.
    Returns the IDs of the deleted follow-ups.
    """
    if not is_installment_origin(origin):
        return []

    result = await session.execute(select(ExpenseClaim).where(col(ExpenseClaim.origin_claim_id) == origin.id))
    followups = list(result.scalars().all())

    employee = await get_employee_service().get_employee(origin.company_id, origin.employee_id)
    cap = employee.basket_cap if employee is not None else None

    deleted: list[uuid.UUID] = []
    for claim in followups:
        if claim.status != ClaimStatus.SUBMITTED.value:
            claim.origin_claim_id = None
            continue

        claim_id = claim.id
        usage = await lock_basket_usage(session, claim.company_id, claim.employee_id, claim.period_id)
        await write_audit_log(
            session,
            auth=auth,
            entity_type=AuditEntityType.CLAIM,
            entity_id=claim_id,
            action=AuditAction.DELETE,
            description=f"Installment {claim.installment_number}/{claim.installment_total} withdrawn with the first",
            before_json=model_to_audit_dict(claim),
        )
        await session.delete(claim)
        await session.flush()
        await reallocate_basket(session, usage, cap)
        deleted.append(claim_id)

    await session.flush()
    return deleted
