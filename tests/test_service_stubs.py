"""Tests for the in-memory employee directory."""

from __future__ import annotations

import uuid

from flexben.models.enums import BenefitComponent
from flexben.services.employee import EmployeeInfo, EmployeeService, InMemoryEmployeeService

COMPANY_A = uuid.uuid4()
COMPANY_B = uuid.uuid4()


def _make_employee(company_id: uuid.UUID, name: str = "Jane") -> EmployeeInfo:
    return EmployeeInfo(
        id=uuid.uuid4(),
        company_id=company_id,
        name=name,
        email=f"{name.lower()}@example.com",
        meal_voucher=50000,
        food_voucher=30000,
        cost_allowance=15000,
        mobility=8000,
    )


async def test_employee_service_get_not_found() -> None:
    svc = InMemoryEmployeeService()
    result = await svc.get_employee(COMPANY_A, uuid.uuid4())
    assert result is None


async def test_employee_service_seed_and_get() -> None:
    svc = InMemoryEmployeeService()
    emp = _make_employee(COMPANY_A)
    svc.seed(emp)
    result = await svc.get_employee(COMPANY_A, emp.id)
    assert result is not None
    assert result.id == emp.id


async def test_employee_service_is_company_scoped() -> None:
    svc = InMemoryEmployeeService()
    emp = _make_employee(COMPANY_A)
    svc.seed(emp)
    assert await svc.get_employee(COMPANY_B, emp.id) is None


async def test_employee_service_list_filters_by_company() -> None:
    svc = InMemoryEmployeeService()
    emp_a = _make_employee(COMPANY_A, "Alice")
    emp_b = _make_employee(COMPANY_B, "Bob")
    svc.seed(emp_a)
    svc.seed(emp_b)

    result_a = await svc.list_employees(COMPANY_A)
    assert [e.id for e in result_a] == [emp_a.id]


def test_in_memory_service_satisfies_protocol() -> None:
    assert isinstance(InMemoryEmployeeService(), EmployeeService)


def test_fixed_amount_per_component() -> None:
    emp = _make_employee(COMPANY_A)
    assert emp.fixed_amount(BenefitComponent.MEAL_VOUCHER) == 50000
    assert emp.fixed_amount(BenefitComponent.FOOD_VOUCHER) == 30000
    assert emp.fixed_amount(BenefitComponent.COST_ALLOWANCE) == 15000
    assert emp.fixed_amount(BenefitComponent.MOBILITY) == 8000
    assert emp.fixed_amount(BenefitComponent.BENEFIT_BASKET) == 0
    assert emp.fixed_amount(BenefitComponent.PIDA) == 0
