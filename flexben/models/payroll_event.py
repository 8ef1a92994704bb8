# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from flexben.models.base import TimestampMixin, UUIDBase


class PayrollEventCode(UUIDBase, TimestampMixin, table=True):
    """Payroll event code assigned to a benefit component."""

    __tablename__ = "payroll_event_code"
    __table_args__ = (sa.UniqueConstraint("company_id", "component", name="uq_payroll_event_component"),)

    company_id: uuid.UUID = Field(index=True)
    component: str = Field(max_length=50)
    code: str = Field(max_length=50)
    description: str | None = Field(default=None, max_length=255)
