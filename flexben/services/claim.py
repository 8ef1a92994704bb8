# ruff: noqa: TC003
"""Expense claim lifecycle: submission, editing and the review state machine."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from flexben.exceptions import (
    AppError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailureError,
)
from flexben.models.claim import ExpenseClaim
from flexben.models.enums import (
    PENDING_CLAIM_STATUSES,
    AuditAction,
    AuditEntityType,
    ClaimOrigin,
    ClaimStatus,
)
from flexben.schemas.claim import BatchResultResponse, ClaimListResponse, ClaimResponse
from flexben.services.allocation import allocate, ensure_basket_open
from flexben.services.audit import model_to_audit_dict, write_audit_log
from flexben.services.basket import basket_totals, lock_basket_usage, reallocate_basket, refresh_basket_usage
from flexben.services.employee import EmployeeInfo, get_employee_service
from flexben.services.installment import reject_pending_installments, schedule_installments, withdraw_installments
from flexben.services.period import resolve_submission_period

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from flexben.models.basket import BasketUsage
    from flexben.schemas.auth import AuthContext
    from flexben.schemas.claim import SubmitClaimPayload, UpdateClaimPayload
logger = logging.getLogger(__name__)

# Source statuses from which each target status may be reached.
_TRANSITIONS: dict[ClaimStatus, frozenset[ClaimStatus]] = {
    ClaimStatus.UNDER_REVIEW: frozenset({ClaimStatus.SUBMITTED}),
    ClaimStatus.APPROVED: frozenset(PENDING_CLAIM_STATUSES),
    ClaimStatus.REJECTED: frozenset(PENDING_CLAIM_STATUSES),
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_claim_response(claim: ExpenseClaim) -> ClaimResponse:
    """Map a claim model to its response schema."""
    return ClaimResponse(
        id=claim.id,
        company_id=claim.company_id,
        employee_id=claim.employee_id,
        period_id=claim.period_id,
        requested_period_id=claim.requested_period_id,
        category_id=claim.category_id,
        origin=ClaimOrigin(claim.origin),
        description=claim.description,
        document_ref=claim.document_ref,
        amount_claimed=claim.amount_claimed,
        amount_counted=claim.amount_counted,
        amount_excess=claim.amount_excess,
        status=ClaimStatus(claim.status),
        submitted_at=claim.submitted_at,
        reviewer_id=claim.reviewer_id,
        reviewed_at=claim.reviewed_at,
        rejection_reason=claim.rejection_reason,
        installment_number=claim.installment_number,
        installment_total=claim.installment_total,
        origin_claim_id=claim.origin_claim_id,
        created_at=claim.created_at,
    )


async def _get_claim_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    claim_id: uuid.UUID,
) -> ExpenseClaim:
    """Fetch a claim by ID scoped to company. Raises 404 if not found."""
    result = await session.execute(
        select(ExpenseClaim).where(
            col(ExpenseClaim.id) == claim_id,
            col(ExpenseClaim.company_id) == company_id,
        )
    )
    claim = result.scalar_one_or_none()
    if claim is None:
        raise NotFoundError("Claim not found")
    return claim


def _ensure_owner_or_admin(auth: AuthContext, employee_id: uuid.UUID) -> None:
    if not auth.is_admin and auth.user_id != employee_id:
        raise ForbiddenError("Not authorized to act on another employee's claims")


def _ensure_editable(claim: ExpenseClaim) -> None:
    if claim.status != ClaimStatus.SUBMITTED.value:
        raise InvalidStateError(f"Only submitted claims can be changed (current status: {claim.status})")


def _ensure_transition(claim: ExpenseClaim, target: ClaimStatus) -> None:
    if ClaimStatus(claim.status) not in _TRANSITIONS[target]:
        raise InvalidStateError(f"Cannot move claim from {claim.status} to {target.value}")


async def _get_active_employee(auth: AuthContext, employee_id: uuid.UUID) -> EmployeeInfo:
    employee = await get_employee_service().get_employee(auth.company_id, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    if not employee.active:
        raise ValidationFailureError("Employee is not active")
    return employee


async def _basket_cap(auth: AuthContext, employee_id: uuid.UUID) -> int | None:
    """Current cap of the employee, or None when they left the directory."""
    employee = await get_employee_service().get_employee(auth.company_id, employee_id)
    return employee.basket_cap if employee is not None else None


# ---------------------------------------------------------------------------
# Submission and editing
# ---------------------------------------------------------------------------


async def submit_claim(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitClaimPayload,
    today: date,
) -> ClaimResponse:
    """Submit an expense claim.

    Flow:
    1. Authorize (own claim, or admin)
    2. Load the employee from the directory (must be active)
    3. Route to the target period, or the next open one after the window closed
       (the period row stays share-locked so it cannot be closed meanwhile)
    4. Lock basket usage for (employee, period)
    5. Refuse if an earlier claim already overflowed the cap
    6. Split the amount into counted / excess
    7. Create the claim (SUBMITTED) and update usage
    8. Place follow-up installments in the later open periods
    9. Audit log
    10. Commit
    """
    _ensure_owner_or_admin(auth, payload.employee_id)
    employee = await _get_active_employee(auth, payload.employee_id)

    period = await resolve_submission_period(session, auth.company_id, payload.period_id, today)

    usage = await lock_basket_usage(session, auth.company_id, employee.id, period.id)
    already_counted, overflowed = await basket_totals(session, auth.company_id, employee.id, period.id)
    ensure_basket_open(overflowed)

    allocation = allocate(payload.amount, employee.basket_cap, already_counted)

    claim = ExpenseClaim(
        company_id=auth.company_id,
        employee_id=employee.id,
        period_id=period.id,
        requested_period_id=payload.period_id,
        category_id=payload.category_id,
        origin=payload.origin.value,
        description=payload.description,
        document_ref=payload.document_ref,
        amount_claimed=allocation.amount_claimed,
        amount_counted=allocation.amount_counted,
        amount_excess=allocation.amount_excess,
        status=ClaimStatus.SUBMITTED.value,
        submitted_at=datetime.now(UTC),
        installment_total=payload.installments,
    )
    session.add(claim)
    await session.flush()

    usage.counted_total = already_counted + allocation.amount_counted
    usage.overflowed = allocation.overflowed
    usage.version += 1
    usage.updated_at = datetime.now(UTC)

    followups = await schedule_installments(session, auth, claim, period, employee.basket_cap)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.CLAIM,
        entity_id=claim.id,
        action=AuditAction.SUBMIT,
        description=f"Claim of {claim.amount_claimed} submitted",
        after_json=model_to_audit_dict(claim),
        metadata_json={
            "redirected": period.id != payload.period_id,
            "remaining_before": allocation.remaining_before,
            "basket_cap": employee.basket_cap,
            "installments_scheduled": len(followups),
        },
    )

    await session.commit()
    await session.refresh(claim)
    return _build_claim_response(claim)


async def update_claim(
    session: AsyncSession,
    auth: AuthContext,
    claim_id: uuid.UUID,
    payload: UpdateClaimPayload,
) -> ClaimResponse:
    """Edit a claim that is still SUBMITTED; a new amount is re-allocated."""
    claim = await _get_claim_or_404(session, auth.company_id, claim_id)
    _ensure_owner_or_admin(auth, claim.employee_id)
    _ensure_editable(claim)

    before_dict = model_to_audit_dict(claim)
    usage: BasketUsage | None = None

    if payload.amount is not None and payload.amount != claim.amount_claimed:
        employee = await _get_active_employee(auth, claim.employee_id)
        usage = await lock_basket_usage(session, auth.company_id, claim.employee_id, claim.period_id)
        others_counted, others_overflowed = await basket_totals(
            session, auth.company_id, claim.employee_id, claim.period_id, exclude_claim_id=claim.id
        )
        ensure_basket_open(others_overflowed)
        allocation = allocate(payload.amount, employee.basket_cap, others_counted)
        claim.amount_claimed = allocation.amount_claimed
        claim.amount_counted = allocation.amount_counted
        claim.amount_excess = allocation.amount_excess

    if payload.category_id is not None:
        claim.category_id = payload.category_id
    if payload.origin is not None:
        claim.origin = payload.origin.value
    if payload.description is not None:
        claim.description = payload.description
    if "document_ref" in payload.model_fields_set:
        claim.document_ref = payload.document_ref
    claim.touch()

    await session.flush()
    if usage is not None:
        await refresh_basket_usage(session, usage)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.CLAIM,
        entity_id=claim.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(claim),
    )

    await session.commit()
    await session.refresh(claim)
    return _build_claim_response(claim)


async def delete_claim(
    session: AsyncSession,
    auth: AuthContext,
    claim_id: uuid.UUID,
) -> None:
    """Delete a claim that is still SUBMITTED and release its basket usage.

    Later claims of the basket that overflowed are re-split against the freed
    capacity. Deleting the first installment of a plan also withdraws its
    untouched follow-ups.
    """
    claim = await _get_claim_or_404(session, auth.company_id, claim_id)
    _ensure_owner_or_admin(auth, claim.employee_id)
    _ensure_editable(claim)

    usage = await lock_basket_usage(session, auth.company_id, claim.employee_id, claim.period_id)
    withdrawn = await withdraw_installments(session, auth, claim)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.CLAIM,
        entity_id=claim.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(claim),
        metadata_json={"installments_withdrawn": [str(i) for i in withdrawn]} if withdrawn else None,
    )

    await session.delete(claim)
    await session.flush()
    await reallocate_basket(session, usage, await _basket_cap(auth, usage.employee_id))
    await session.commit()


# ---------------------------------------------------------------------------
# Review state machine
# ---------------------------------------------------------------------------


async def _record_transition(
    session: AsyncSession,
    auth: AuthContext,
    claim: ExpenseClaim,
    action: AuditAction,
    previous_status: str,
    metadata_json: dict[str, Any] | None = None,
) -> ClaimResponse:
    """Flush the status change, audit it and commit."""
    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.CLAIM,
        entity_id=claim.id,
        action=action,
        before_json={"status": previous_status},
        after_json=model_to_audit_dict(claim),
        metadata_json=metadata_json,
    )

    await session.commit()
    await session.refresh(claim)
    return _build_claim_response(claim)


async def start_review(
    session: AsyncSession,
    auth: AuthContext,
    claim_id: uuid.UUID,
) -> ClaimResponse:
    """SUBMITTED -> UNDER_REVIEW."""
    claim = await _get_claim_or_404(session, auth.company_id, claim_id)
    _ensure_transition(claim, ClaimStatus.UNDER_REVIEW)

    previous = claim.status
    claim.status = ClaimStatus.UNDER_REVIEW.value
    claim.touch()
    return await _record_transition(session, auth, claim, AuditAction.START_REVIEW, previous)


async def approve_claim(
    session: AsyncSession,
    auth: AuthContext,
    claim_id: uuid.UUID,
) -> ClaimResponse:
    """SUBMITTED/UNDER_REVIEW -> APPROVED, stamping the reviewer."""
    claim = await _get_claim_or_404(session, auth.company_id, claim_id)
    _ensure_transition(claim, ClaimStatus.APPROVED)

    previous = claim.status
    claim.status = ClaimStatus.APPROVED.value
    claim.reviewer_id = auth.user_id
    claim.reviewed_at = claim.touch()
    return await _record_transition(session, auth, claim, AuditAction.APPROVE, previous)


async def reject_claim(
    session: AsyncSession,
    auth: AuthContext,
    claim_id: uuid.UUID,
    reason: str,
) -> ClaimResponse:
    """SUBMITTED/UNDER_REVIEW -> REJECTED with a mandatory reason.

    A rejected claim no longer counts against the basket, so the remaining
    claims are re-split under the usage lock. Rejecting the first installment
    of a plan also rejects its follow-ups that are still pending.
    """
    claim = await _get_claim_or_404(session, auth.company_id, claim_id)
    reason = reason.strip()
    if not reason:
        raise ValidationFailureError("A rejection reason is required")
    _ensure_transition(claim, ClaimStatus.REJECTED)

    usage = await lock_basket_usage(session, auth.company_id, claim.employee_id, claim.period_id)

    previous = claim.status
    claim.status = ClaimStatus.REJECTED.value
    claim.reviewer_id = auth.user_id
    claim.reviewed_at = claim.touch()
    claim.rejection_reason = reason

    await session.flush()
    resplit = await reallocate_basket(session, usage, await _basket_cap(auth, claim.employee_id))
    cascaded = await reject_pending_installments(session, auth, claim, reason)

    metadata: dict[str, Any] = {}
    if resplit:
        metadata["resplit_claims"] = [str(i) for i in resplit]
    if cascaded:
        metadata["installments_rejected"] = [str(c.id) for c in cascaded]
    return await _record_transition(session, auth, claim, AuditAction.REJECT, previous, metadata or None)


async def batch_approve(
    session: AsyncSession,
    auth: AuthContext,
    claim_ids: list[uuid.UUID],
) -> BatchResultResponse:
    """Approve claims one by one; a failing claim does not stop the batch."""
    succeeded = 0
    errors: list[str] = []
    for claim_id in claim_ids:
        try:
            await approve_claim(session, auth, claim_id)
        except AppError as exc:
            logger.info("Batch approve skipped claim %s: %s", claim_id, exc.message)
            errors.append(f"{claim_id}: {exc.message}")
        else:
            succeeded += 1
    return BatchResultResponse(succeeded=succeeded, errors=errors)


async def batch_reject(
    session: AsyncSession,
    auth: AuthContext,
    claim_ids: list[uuid.UUID],
    reason: str,
) -> BatchResultResponse:
    """Reject claims one by one with a shared reason."""
    if not reason.strip():
        raise ValidationFailureError("A rejection reason is required")

    succeeded = 0
    errors: list[str] = []
    for claim_id in claim_ids:
        try:
            await reject_claim(session, auth, claim_id, reason)
        except AppError as exc:
            logger.info("Batch reject skipped claim %s: %s", claim_id, exc.message)
            errors.append(f"{claim_id}: {exc.message}")
        else:
            succeeded += 1
    return BatchResultResponse(succeeded=succeeded, errors=errors)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_claim(
    session: AsyncSession,
    company_id: uuid.UUID,
    claim_id: uuid.UUID,
) -> ClaimResponse:
    """Get a single claim by ID."""
    claim = await _get_claim_or_404(session, company_id, claim_id)
    return _build_claim_response(claim)


async def list_claims(
    session: AsyncSession,
    company_id: uuid.UUID,
    status_filter: ClaimStatus | None = None,
    period_id: uuid.UUID | None = None,
    employee_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> ClaimListResponse:
    """List claims with optional filters, ordered by created_at DESC."""
    base_filters = [col(ExpenseClaim.company_id) == company_id]

    if status_filter is not None:
        base_filters.append(col(ExpenseClaim.status) == status_filter.value)
    if period_id is not None:
        base_filters.append(col(ExpenseClaim.period_id) == period_id)
    if employee_id is not None:
        base_filters.append(col(ExpenseClaim.employee_id) == employee_id)

    count_result = await session.execute(select(func.count()).select_from(ExpenseClaim).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(ExpenseClaim)
        .where(*base_filters)
        .order_by(col(ExpenseClaim.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    claims = list(result.scalars().all())

    return ClaimListResponse(items=[_build_claim_response(c) for c in claims], total=total)


async def list_review_queue(
    session: AsyncSession,
    company_id: uuid.UUID,
    period_id: uuid.UUID | None = None,
) -> ClaimListResponse:
    """Claims awaiting a decision, oldest first."""
    filters = [
        col(ExpenseClaim.company_id) == company_id,
        col(ExpenseClaim.status).in_([s.value for s in PENDING_CLAIM_STATUSES]),
    ]
    if period_id is not None:
        filters.append(col(ExpenseClaim.period_id) == period_id)

    result = await session.execute(select(ExpenseClaim).where(*filters).order_by(col(ExpenseClaim.created_at).asc()))
    claims = list(result.scalars().all())
    return ClaimListResponse(items=[_build_claim_response(c) for c in claims], total=len(claims))
