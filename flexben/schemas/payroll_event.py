# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from flexben.models.enums import BenefitComponent


class UpsertPayrollEventRequest(BaseModel):
    """Request body for assigning a payroll code to a benefit component."""

    code: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=255)


class PayrollEventResponse(BaseModel):
    """Response schema for a payroll event code mapping."""

    id: uuid.UUID
    company_id: uuid.UUID
    component: BenefitComponent
    code: str
    description: str | None
    created_at: datetime


class PayrollEventListResponse(BaseModel):
    items: list[PayrollEventResponse]
    total: int
