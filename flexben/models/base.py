from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Timezone-aware current time; every stored timestamp is UTC."""
    return datetime.now(UTC)


class UUIDBase(SQLModel):
    """Base model with a client-generated UUID v4 primary key.

    Generating the key in Python lets services reference a new row (audit
    entries, installment links) before the INSERT is flushed.
    """

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_type=sa.Uuid,
    )


class TimestampMixin(SQLModel):
    """Mixin that adds a created_at timestamp."""

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )


class UpdatedAtMixin(SQLModel):
    """Mixin for rows that change after creation.

    ``updated_at`` stays NULL until the first change and is stamped by the
    service layer rather than an ``onupdate`` hook, which would leave the
    attribute expired under the async session.
    """

    updated_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]

    def touch(self, now: datetime | None = None) -> datetime:
        """Stamp ``updated_at`` and return the timestamp used."""
        stamp = now or utc_now()
        self.updated_at = stamp
        return stamp
