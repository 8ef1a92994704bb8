# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from flexben.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from flexben.models.enums import ClaimOrigin, ClaimStatus


class ExpenseClaim(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's benefit expense claim with review workflow state.

    Amounts are integer cents. ``amount_counted`` is the part charged against the
    benefit basket cap, ``amount_excess`` the part that exceeded it.

    A claim paid in installments is stored once per period: installment 1 is
    the origin, later installments carry ``origin_claim_id`` pointing to it.
    """

    __tablename__ = "expense_claim"
    __table_args__ = (
        sa.Index("ix_claim_company_period_status", "company_id", "period_id", "status"),
        sa.Index("ix_claim_period_employee", "period_id", "employee_id"),
        sa.CheckConstraint(
            "amount_counted + amount_excess = amount_claimed",
            name="ck_claim_amount_split",
        ),
        sa.CheckConstraint(
            "installment_number >= 1 AND installment_number <= installment_total",
            name="ck_claim_installment_range",
        ),
    )

    company_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(index=True)
    period_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("benefit_period.id"), nullable=False, index=True),
    )
    requested_period_id: uuid.UUID
    category_id: uuid.UUID
    origin: str = Field(default=ClaimOrigin.SELF, max_length=20)
    description: str = Field(max_length=1000)
    document_ref: str | None = Field(default=None, max_length=255)
    amount_claimed: int
    amount_counted: int
    amount_excess: int = 0
    status: str = Field(
        default=ClaimStatus.SUBMITTED, max_length=20, index=True, sa_column_kwargs={"server_default": "SUBMITTED"}
    )
    submitted_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    reviewer_id: uuid.UUID | None = None
    reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    rejection_reason: str | None = Field(default=None, max_length=1000)
    installment_number: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
    installment_total: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
    origin_claim_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("expense_claim.id", ondelete="SET NULL"), nullable=True, index=True),
    )
