# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from flexben.api.deps import AdminDep, validate_company_scope
from flexben.db import SessionDep
from flexben.schemas.settlement import (
    OverflowEventListResponse,
    ProcessSettlementPayload,
    ProcessSettlementResponse,
    SettlementListResponse,
    SettlementResponse,
)
from flexben.services import settlement as settlement_service

settlements_router = APIRouter(
    prefix="/companies/{company_id}",
    tags=["settlements"],
    dependencies=[Depends(validate_company_scope)],
)


@settlements_router.post(
    "/settlements",
    response_model=ProcessSettlementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def process_settlement(
    payload: ProcessSettlementPayload,
    session: SessionDep,
    auth: AdminDep,
) -> ProcessSettlementResponse:
    """Close a benefit period into payroll totals (admin only)."""
    return await settlement_service.process_settlement(session, auth, payload.period_id)


@settlements_router.get("/settlements", response_model=SettlementListResponse)
async def list_settlements(
    session: SessionDep,
    auth: AdminDep,
    period_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> SettlementListResponse:
    """List settlements (admin only)."""
    return await settlement_service.list_settlements(session, auth.company_id, period_id, offset, limit)


@settlements_router.get("/settlements/{settlement_id}", response_model=SettlementResponse)
async def get_settlement(
    settlement_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> SettlementResponse:
    """Get a single settlement (admin only)."""
    return await settlement_service.get_settlement(session, auth.company_id, settlement_id)


@settlements_router.delete("/settlements/{settlement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_settlement(
    settlement_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    reopen_period: bool = Query(default=False),
) -> None:
    """Delete a settlement and its overflow events (admin only)."""
    await settlement_service.delete_settlement(session, auth, settlement_id, reopen_period=reopen_period)


@settlements_router.get("/overflow-events", response_model=OverflowEventListResponse)
async def list_overflow_events(
    session: SessionDep,
    auth: AdminDep,
    period_id: uuid.UUID | None = Query(default=None),
    settlement_id: uuid.UUID | None = Query(default=None),
    employee_id: uuid.UUID | None = Query(default=None),
) -> OverflowEventListResponse:
    """List PI/DA overflow events (admin only)."""
    return await settlement_service.list_overflow_events(
        session,
        auth.company_id,
        period_id=period_id,
        settlement_id=settlement_id,
        employee_id=employee_id,
    )
