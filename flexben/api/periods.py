# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from flexben.api.deps import AdminDep, AuthDep, TodayDep, validate_company_scope
from flexben.db import SessionDep
from flexben.exceptions import NotFoundError
from flexben.models.enums import PeriodStatus
from flexben.schemas.period import CreatePeriodRequest, PeriodListResponse, PeriodResponse
from flexben.schemas.settlement import ClosingSummaryResponse
from flexben.services import period as period_service
from flexben.services import settlement as settlement_service

periods_router = APIRouter(
    prefix="/companies/{company_id}/periods",
    tags=["periods"],
    dependencies=[Depends(validate_company_scope)],
)


@periods_router.post("", response_model=PeriodResponse, status_code=status.HTTP_201_CREATED)
async def create_period(
    payload: CreatePeriodRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PeriodResponse:
    """Register a benefit period (admin only)."""
    return await period_service.create_period(session, auth, payload)


@periods_router.get("", response_model=PeriodListResponse)
async def list_periods(
    session: SessionDep,
    auth: AuthDep,
    status_filter: PeriodStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> PeriodListResponse:
    """List benefit periods, most recent first."""
    return await period_service.list_periods(session, auth.company_id, status_filter, offset, limit)


@periods_router.get("/current", response_model=PeriodResponse)
async def get_current_period(
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> PeriodResponse:
    """Period whose accumulation window contains today."""
    period = await period_service.find_current_period(session, auth.company_id, today)
    if period is None:
        raise NotFoundError("No benefit period registered")
    return period_service.build_period_response(period)


@periods_router.get("/submission", response_model=PeriodResponse)
async def get_submission_period(
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> PeriodResponse:
    """Period currently accepting claim submissions."""
    period = await period_service.find_submission_period(session, auth.company_id, today)
    if period is None:
        raise NotFoundError("No period is accepting submissions today")
    return period_service.build_period_response(period)


@periods_router.get("/{period_id}", response_model=PeriodResponse)
async def get_period(
    period_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> PeriodResponse:
    """Get a single benefit period."""
    return await period_service.get_period(session, auth.company_id, period_id)


@periods_router.get("/{period_id}/closing-summary", response_model=ClosingSummaryResponse)
async def get_closing_summary(
    period_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ClosingSummaryResponse:
    """Claim counts per status ahead of closing (admin only)."""
    return await settlement_service.get_closing_summary(session, auth.company_id, period_id)
