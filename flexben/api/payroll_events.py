# ruff: noqa: TC001
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from flexben.api.deps import AdminDep, validate_company_scope
from flexben.db import SessionDep
from flexben.models.enums import BenefitComponent
from flexben.schemas.payroll_event import (
    PayrollEventListResponse,
    PayrollEventResponse,
    UpsertPayrollEventRequest,
)
from flexben.services import payroll_event as payroll_event_service

payroll_events_router = APIRouter(
    prefix="/companies/{company_id}/payroll-events",
    tags=["payroll-events"],
    dependencies=[Depends(validate_company_scope)],
)


@payroll_events_router.get("", response_model=PayrollEventListResponse)
async def list_payroll_events(
    session: SessionDep,
    auth: AdminDep,
) -> PayrollEventListResponse:
    """List configured payroll event codes (admin only)."""
    return await payroll_event_service.list_payroll_events(session, auth.company_id)


@payroll_events_router.put("/{component}", response_model=PayrollEventResponse)
async def upsert_payroll_event(
    component: BenefitComponent,
    payload: UpsertPayrollEventRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PayrollEventResponse:
    """Assign the payroll code of a benefit component (admin only)."""
    return await payroll_event_service.upsert_payroll_event(session, auth, component, payload)


@payroll_events_router.delete("/{component}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payroll_event(
    component: BenefitComponent,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Remove the payroll code of a benefit component (admin only)."""
    await payroll_event_service.delete_payroll_event(session, auth, component)
