# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from flexben.api.deps import AdminDep, AuthDep, TodayDep, validate_company_scope
from flexben.db import SessionDep
from flexben.models.enums import ClaimStatus
from flexben.schemas.claim import (
    BatchApprovePayload,
    BatchRejectPayload,
    BatchResultResponse,
    ClaimListResponse,
    ClaimResponse,
    RejectPayload,
    SubmitClaimPayload,
    UpdateClaimPayload,
)
from flexben.services import claim as claim_service

claims_router = APIRouter(
    prefix="/companies/{company_id}/claims",
    tags=["claims"],
    dependencies=[Depends(validate_company_scope)],
)


@claims_router.post("", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
async def submit_claim(
    payload: SubmitClaimPayload,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> ClaimResponse:
    """Submit a benefit expense claim, optionally as an installment plan."""
    return await claim_service.submit_claim(session, auth, payload, today)


@claims_router.get("", response_model=ClaimListResponse)
async def list_claims(
    session: SessionDep,
    auth: AuthDep,
    status_filter: ClaimStatus | None = Query(default=None, alias="status"),
    period_id: uuid.UUID | None = Query(default=None),
    employee_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> ClaimListResponse:
    """List expense claims with optional filters."""
    return await claim_service.list_claims(
        session, auth.company_id, status_filter, period_id, employee_id, offset, limit
    )


@claims_router.get("/review-queue", response_model=ClaimListResponse)
async def list_review_queue(
    session: SessionDep,
    auth: AdminDep,
    period_id: uuid.UUID | None = Query(default=None),
) -> ClaimListResponse:
    """Claims awaiting review, oldest first (admin only)."""
    return await claim_service.list_review_queue(session, auth.company_id, period_id)


@claims_router.post("/batch-approve", response_model=BatchResultResponse)
async def batch_approve(
    payload: BatchApprovePayload,
    session: SessionDep,
    auth: AdminDep,
) -> BatchResultResponse:
    """Approve several claims; failures are reported per claim (admin only)."""
    return await claim_service.batch_approve(session, auth, payload.claim_ids)


@claims_router.post("/batch-reject", response_model=BatchResultResponse)
async def batch_reject(
    payload: BatchRejectPayload,
    session: SessionDep,
    auth: AdminDep,
) -> BatchResultResponse:
    """Reject several claims with one reason (admin only)."""
    return await claim_service.batch_reject(session, auth, payload.claim_ids, payload.reason)


@claims_router.get("/{claim_id}", response_model=ClaimResponse)
async def get_claim(
    claim_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ClaimResponse:
    """Get a single expense claim."""
    return await claim_service.get_claim(session, auth.company_id, claim_id)


@claims_router.patch("/{claim_id}", response_model=ClaimResponse)
async def update_claim(
    claim_id: uuid.UUID,
    payload: UpdateClaimPayload,
    session: SessionDep,
    auth: AuthDep,
) -> ClaimResponse:
    """Edit a claim that has not entered review."""
    return await claim_service.update_claim(session, auth, claim_id, payload)


@claims_router.delete("/{claim_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_claim(
    claim_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> None:
    """Withdraw a claim that has not entered review."""
    await claim_service.delete_claim(session, auth, claim_id)


@claims_router.post("/{claim_id}/start-review", response_model=ClaimResponse)
async def start_review(
    claim_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ClaimResponse:
    """Move a submitted claim under review (admin only)."""
    return await claim_service.start_review(session, auth, claim_id)


@claims_router.post("/{claim_id}/approve", response_model=ClaimResponse)
async def approve_claim(
    claim_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ClaimResponse:
    """Approve a pending claim (admin only)."""
    return await claim_service.approve_claim(session, auth, claim_id)


@claims_router.post("/{claim_id}/reject", response_model=ClaimResponse)
async def reject_claim(
    claim_id: uuid.UUID,
    payload: RejectPayload,
    session: SessionDep,
    auth: AdminDep,
) -> ClaimResponse:
    """Reject a pending claim with a reason (admin only)."""
    return await claim_service.reject_claim(session, auth, claim_id, payload.reason)
