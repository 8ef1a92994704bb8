"""Reporting service: audit log queries."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from flexben.models.audit import AuditLog
from flexben.schemas.report import AuditLogEntryResponse, AuditLogListResponse

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


async def query_audit_log(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    action: str | None = None,
    actor_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters.

    ``end_date`` is inclusive: entries written at any time that day match.
    """
    filters = [col(AuditLog.company_id) == company_id]

    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if entity_id is not None:
        filters.append(col(AuditLog.entity_id) == entity_id)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_id is not None:
        filters.append(col(AuditLog.actor_id) == actor_id)
    if start_date is not None:
        filters.append(col(AuditLog.created_at) >= _day_start(start_date))
    if end_date is not None:
        filters.append(col(AuditLog.created_at) < _day_start(end_date + timedelta(days=1)))

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[
            AuditLogEntryResponse(
                id=e.id,
                company_id=e.company_id,
                actor_id=e.actor_id,
                actor_name=e.actor_name,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                action=e.action,
                description=e.description,
                before_json=e.before_json,
                after_json=e.after_json,
                metadata_json=e.metadata_json,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
    )
