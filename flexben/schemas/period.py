# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from flexben.models.enums import PeriodStatus


class CreatePeriodRequest(BaseModel):
    """Request body for registering a benefit period."""

    label: str = Field(min_length=1, max_length=50)
    accrual_start: date
    accrual_end: date
    submission_open: date
    submission_close: date
    status: PeriodStatus = PeriodStatus.OPEN

    @model_validator(mode="after")
    def _validate_windows(self) -> Self:
        if self.accrual_end < self.accrual_start:
            msg = "accrual_end must be >= accrual_start"
            raise ValueError(msg)
        if self.submission_close < self.submission_open:
            msg = "submission_close must be >= submission_open"
            raise ValueError(msg)
        return self


class PeriodResponse(BaseModel):
    """Response schema for a benefit period."""

    id: uuid.UUID
    company_id: uuid.UUID
    label: str
    accrual_start: date
    accrual_end: date
    submission_open: date
    submission_close: date
    status: PeriodStatus
    created_at: datetime


class PeriodListResponse(BaseModel):
    """Paginated list of benefit periods."""

    items: list[PeriodResponse]
    total: int
