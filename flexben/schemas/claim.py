# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from flexben.models.enums import ClaimOrigin, ClaimStatus

MAX_INSTALLMENTS = 48

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitClaimPayload(BaseModel):
    """Request body for submitting an expense claim. Amounts are cents.

    With ``installments > 1`` the amount is the value of each installment; one
    claim per installment is placed in consecutive periods.
    """

    employee_id: uuid.UUID
    period_id: uuid.UUID
    category_id: uuid.UUID
    origin: ClaimOrigin = ClaimOrigin.SELF
    description: str = Field(min_length=1, max_length=1000)
    document_ref: str | None = Field(default=None, max_length=255)
    amount: int = Field(gt=0)
    installments: int = Field(default=1, ge=1, le=MAX_INSTALLMENTS)


class UpdateClaimPayload(BaseModel):
    """Partial update of a claim that has not been reviewed yet."""

    category_id: uuid.UUID | None = None
    origin: ClaimOrigin | None = None
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    document_ref: str | None = Field(default=None, max_length=255)
    amount: int | None = Field(default=None, gt=0)


class RejectPayload(BaseModel):
    """Request body for rejecting a claim.

    The reason is checked by the service so that a blank reason surfaces as a
    ValidationFailureError rather than a schema error.
    """

    reason: str = Field(default="", max_length=1000)


class BatchApprovePayload(BaseModel):
    claim_ids: list[uuid.UUID] = Field(min_length=1)


class BatchRejectPayload(BaseModel):
    claim_ids: list[uuid.UUID] = Field(min_length=1)
    reason: str = Field(default="", max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ClaimResponse(BaseModel):
    """Response schema for a single expense claim."""

    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    period_id: uuid.UUID
    requested_period_id: uuid.UUID
    category_id: uuid.UUID
    origin: ClaimOrigin
    description: str
    document_ref: str | None
    amount_claimed: int
    amount_counted: int
    amount_excess: int
    status: ClaimStatus
    submitted_at: datetime | None
    reviewer_id: uuid.UUID | None
    reviewed_at: datetime | None
    rejection_reason: str | None
    installment_number: int
    installment_total: int
    origin_claim_id: uuid.UUID | None
    created_at: datetime


class ClaimListResponse(BaseModel):
    """Paginated list of expense claims."""

    items: list[ClaimResponse]
    total: int


class BatchResultResponse(BaseModel):
    """Outcome of a batch approve/reject call."""

    succeeded: int
    errors: list[str]
