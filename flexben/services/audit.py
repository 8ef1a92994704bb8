from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from flexben.models.audit import AuditLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from flexben.models.enums import AuditAction, AuditEntityType
    from flexben.schemas.auth import AuthContext


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict for audit logging."""
    data: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if isinstance(value, uuid.UUID):
            data[key] = str(value)
        elif isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        else:
            data[key] = value
    return data


async def write_audit_log(
    session: AsyncSession,
    *,
    auth: AuthContext,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    description: str | None = None,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
    metadata_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Write an immutable audit log entry within the caller's transaction.

    The entry commits or rolls back together with the mutation it describes.
    """
    entry = AuditLog(
        company_id=auth.company_id,
        actor_id=auth.user_id,
        actor_name=auth.user_name,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        description=description,
        before_json=before_json,
        after_json=after_json,
        metadata_json=metadata_json,
    )
    session.add(entry)
    return entry
