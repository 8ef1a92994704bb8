# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from flexben.models.base import utc_now


class BasketUsage(SQLModel, table=True):
    """Per-employee, per-period basket usage, locked while allocating a claim."""

    __tablename__ = "basket_usage"

    company_id: uuid.UUID = Field(primary_key=True)
    employee_id: uuid.UUID = Field(primary_key=True)
    period_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("benefit_period.id", ondelete="CASCADE"), primary_key=True),
    )
    counted_total: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    overflowed: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
