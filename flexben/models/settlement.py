# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from flexben.models.base import TimestampMixin, UUIDBase, utc_now
from flexben.models.enums import SettlementStatus


class Settlement(UUIDBase, TimestampMixin, table=True):
    """Result of closing a benefit period into payroll-ready totals (cents)."""

    __tablename__ = "settlement"

    company_id: uuid.UUID = Field(index=True)
    period_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("benefit_period.id"), nullable=False, index=True),
    )
    actor_id: uuid.UUID
    processed_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
    status: str = Field(default=SettlementStatus.SUCCESS, max_length=20)
    employee_count: int = 0
    event_count: int = 0
    total_fixed: int = 0
    total_basket: int = 0
    total_pida: int = 0
    total_amount: int = 0


class OverflowEvent(UUIDBase, TimestampMixin, table=True):
    """PI/DA event: unused basket allowance converted into the PI/DA bucket."""

    __tablename__ = "overflow_event"
    __table_args__ = (sa.UniqueConstraint("employee_id", "settlement_id", name="uq_overflow_employee_settlement"),)

    company_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(index=True)
    period_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("benefit_period.id"), nullable=False, index=True),
    )
    settlement_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("settlement.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    base_amount: int
    basket_shortfall: int
    total_amount: int
