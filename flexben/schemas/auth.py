# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    company_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str | None = None
    role: str = "employee"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
