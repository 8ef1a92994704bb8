# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from flexben.models.enums import BenefitComponent, ClaimStatus, SettlementStatus


class ProcessSettlementPayload(BaseModel):
    """Request body for closing a period."""

    period_id: uuid.UUID


class SettlementResponse(BaseModel):
    """Response schema for a settlement record. Amounts are cents."""

    id: uuid.UUID
    company_id: uuid.UUID
    period_id: uuid.UUID
    actor_id: uuid.UUID
    processed_at: datetime
    status: SettlementStatus
    employee_count: int
    event_count: int
    total_fixed: int
    total_basket: int
    total_pida: int
    total_amount: int


class SettlementListResponse(BaseModel):
    items: list[SettlementResponse]
    total: int


class OverflowEventResponse(BaseModel):
    """Response schema for a PI/DA overflow event."""

    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    period_id: uuid.UUID
    settlement_id: uuid.UUID
    base_amount: int
    basket_shortfall: int
    total_amount: int
    created_at: datetime


class OverflowEventListResponse(BaseModel):
    items: list[OverflowEventResponse]
    total: int


class ComponentTotal(BaseModel):
    """Total for one benefit component and whether it reached the grand total."""

    component: BenefitComponent
    code: str | None
    configured: bool
    amount: int


class SettlementSummary(BaseModel):
    employee_count: int
    event_count: int
    total_fixed: int
    total_basket: int
    total_pida: int
    grand_total: int
    components: list[ComponentTotal]


class ProcessSettlementResponse(BaseModel):
    """Result of a closing run."""

    settlement: SettlementResponse
    overflow_events: list[OverflowEventResponse]
    summary: SettlementSummary


class StatusTotal(BaseModel):
    status: ClaimStatus
    count: int
    amount_counted: int


class ClosingSummaryResponse(BaseModel):
    """Pre-closing overview of a period's claims."""

    period_id: uuid.UUID
    by_status: list[StatusTotal]
    pending_submitted: int
    pending_under_review: int
    employee_count: int
    can_close: bool
