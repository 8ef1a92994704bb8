# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from flexben.models.base import TimestampMixin, UUIDBase
from flexben.models.enums import PeriodStatus


class BenefitPeriod(UUIDBase, TimestampMixin, table=True):
    """A monthly benefit period with a nested claim submission window."""

    __tablename__ = "benefit_period"
    __table_args__ = (
        sa.UniqueConstraint("company_id", "label", name="uq_period_company_label"),
        sa.Index("ix_period_company_submission", "company_id", "submission_open"),
    )

    company_id: uuid.UUID = Field(index=True)
    label: str = Field(max_length=50)
    accrual_start: date
    accrual_end: date
    submission_open: date
    submission_close: date
    status: str = Field(
        default=PeriodStatus.OPEN, max_length=20, index=True, sa_column_kwargs={"server_default": "OPEN"}
    )
