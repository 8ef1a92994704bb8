# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from flexben.models.enums import BenefitComponent


class EmployeeInfo(BaseModel):
    """Employee metadata from the Employee Service.

    All benefit amounts are monthly values in cents.
    """

    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    email: str
    department: str | None = None
    meal_voucher: int = 0
    food_voucher: int = 0
    cost_allowance: int = 0
    mobility: int = 0
    basket_cap: int = 0  # monthly benefit basket ceiling
    has_pida: bool = False
    pida_base: int = 0
    active: bool = True

    def fixed_amount(self, component: BenefitComponent) -> int:
        """Monthly amount of a fixed component; 0 for claim-driven components."""
        return {
            BenefitComponent.MEAL_VOUCHER: self.meal_voucher,
            BenefitComponent.FOOD_VOUCHER: self.food_voucher,
            BenefitComponent.COST_ALLOWANCE: self.cost_allowance,
            BenefitComponent.MOBILITY: self.mobility,
        }.get(component, 0)


@runtime_checkable
class EmployeeService(Protocol):
    """Interface for the Employee Service."""

    async def get_employee(self, company_id: uuid.UUID, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        ...

    async def list_employees(self, company_id: uuid.UUID) -> list[EmployeeInfo]:
        """List all employees for a company."""
        ...


class InMemoryEmployeeService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[tuple[uuid.UUID, uuid.UUID], EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[(employee.company_id, employee.id)] = employee

    async def get_employee(self, company_id: uuid.UUID, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        return self._employees.get((company_id, employee_id))

    async def list_employees(self, company_id: uuid.UUID) -> list[EmployeeInfo]:
        """List all employees for a company."""
        return [e for e in self._employees.values() if e.company_id == company_id]


_employee_service: EmployeeService = InMemoryEmployeeService()


def get_employee_service() -> EmployeeService:
    """FastAPI dependency for the Employee Service."""
    return _employee_service


def set_employee_service(service: EmployeeService) -> None:
    """Override the service (for testing or production wiring)."""
    global _employee_service
    _employee_service = service
