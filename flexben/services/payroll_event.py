"""Payroll event codes per benefit component.

A component only reaches settlement totals when it has a payroll code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from flexben.exceptions import NotFoundError
from flexben.models.enums import AuditAction, AuditEntityType, BenefitComponent
from flexben.models.payroll_event import PayrollEventCode
from flexben.schemas.payroll_event import PayrollEventListResponse, PayrollEventResponse
from flexben.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from flexben.schemas.auth import AuthContext
    from flexben.schemas.payroll_event import UpsertPayrollEventRequest


@dataclass(frozen=True)
class ComponentConfig:
    """Resolved payroll configuration of one benefit component."""

    component: BenefitComponent
    code: str | None = None

    @property
    def configured(self) -> bool:
        return bool(self.code)


def _build_payroll_event_response(event: PayrollEventCode) -> PayrollEventResponse:
    return PayrollEventResponse(
        id=event.id,
        company_id=event.company_id,
        component=BenefitComponent(event.component),
        code=event.code,
        description=event.description,
        created_at=event.created_at,
    )


async def _get_by_component(
    session: AsyncSession,
    company_id: uuid.UUID,
    component: BenefitComponent,
) -> PayrollEventCode | None:
    result = await session.execute(
        select(PayrollEventCode).where(
            col(PayrollEventCode.company_id) == company_id,
            col(PayrollEventCode.component) == component.value,
        )
    )
    return result.scalar_one_or_none()


async def resolve_component_config(
    session: AsyncSession,
    company_id: uuid.UUID,
) -> dict[BenefitComponent, ComponentConfig]:
    """Resolve every benefit component to its payroll configuration.

    Components with no stored code come back unconfigured.
    """
    result = await session.execute(select(PayrollEventCode).where(col(PayrollEventCode.company_id) == company_id))
    codes = {row.component: row.code for row in result.scalars().all()}
    return {component: ComponentConfig(component, codes.get(component.value)) for component in BenefitComponent}


async def upsert_payroll_event(
    session: AsyncSession,
    auth: AuthContext,
    component: BenefitComponent,
    payload: UpsertPayrollEventRequest,
) -> PayrollEventResponse:
    """Assign (or reassign) the payroll code of a component."""
    event = await _get_by_component(session, auth.company_id, component)

    if event is None:
        event = PayrollEventCode(
            company_id=auth.company_id,
            component=component.value,
            code=payload.code,
            description=payload.description,
        )
        session.add(event)
        await session.flush()
        await write_audit_log(
            session,
            auth=auth,
            entity_type=AuditEntityType.PAYROLL_EVENT,
            entity_id=event.id,
            action=AuditAction.CREATE,
            after_json=model_to_audit_dict(event),
        )
    else:
        before = model_to_audit_dict(event)
        event.code = payload.code
        event.description = payload.description
        await session.flush()
        await write_audit_log(
            session,
            auth=auth,
            entity_type=AuditEntityType.PAYROLL_EVENT,
            entity_id=event.id,
            action=AuditAction.UPDATE,
            before_json=before,
            after_json=model_to_audit_dict(event),
        )

    await session.commit()
    await session.refresh(event)
    return _build_payroll_event_response(event)


async def list_payroll_events(
    session: AsyncSession,
    company_id: uuid.UUID,
) -> PayrollEventListResponse:
    result = await session.execute(
        select(PayrollEventCode)
        .where(col(PayrollEventCode.company_id) == company_id)
        .order_by(col(PayrollEventCode.component))
    )
    events = list(result.scalars().all())
    return PayrollEventListResponse(items=[_build_payroll_event_response(e) for e in events], total=len(events))


async def delete_payroll_event(
    session: AsyncSession,
    auth: AuthContext,
    component: BenefitComponent,
) -> None:
    """Remove a component's payroll code, excluding it from future settlements."""
    event = await _get_by_component(session, auth.company_id, component)
    if event is None:
        raise NotFoundError(f"No payroll event configured for {component.value}")

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.PAYROLL_EVENT,
        entity_id=event.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(event),
    )

    await session.delete(event)
    await session.commit()
