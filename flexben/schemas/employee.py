# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class UpsertEmployeeRequest(BaseModel):
    """Request body for upserting an employee in the stub directory.

    Benefit amounts are monthly values in cents.
    """

    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=1, max_length=255)
    department: str | None = Field(default=None, max_length=100)
    meal_voucher: int = Field(default=0, ge=0)
    food_voucher: int = Field(default=0, ge=0)
    cost_allowance: int = Field(default=0, ge=0)
    mobility: int = Field(default=0, ge=0)
    basket_cap: int = Field(default=0, ge=0)
    has_pida: bool = False
    pida_base: int = Field(default=0, ge=0)
    active: bool = True


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    email: str
    department: str | None
    meal_voucher: int
    food_voucher: int
    cost_allowance: int
    mobility: int
    basket_cap: int
    has_pida: bool
    pida_base: int
    active: bool


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int
