"""Tests for installment plans: follow-up placement, generation on period
registration, cascade rejection and withdrawal.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from flexben.models.audit import AuditLog
from flexben.services.employee import EmployeeInfo, InMemoryEmployeeService, set_employee_service

if TYPE_CHECKING:
    from collections.abc import Iterator

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from tests.conftest import FixedClock

COMPANY_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
EMPLOYEE_ID = uuid.uuid4()

AUTH_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(ADMIN_ID),
    "X-Role": "admin",
}
EMPLOYEE_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(EMPLOYEE_ID),
    "X-Role": "employee",
}
PERIODS_URL = f"/companies/{COMPANY_ID}/periods"
CLAIMS_URL = f"/companies/{COMPANY_ID}/claims"

NOVEMBER = {
    "label": "2025-11",
    "accrual_start": "2025-10-21",
    "accrual_end": "2025-11-20",
    "submission_open": "2025-11-10",
    "submission_close": "2025-11-20",
}
DECEMBER = {
    "label": "2025-12",
    "accrual_start": "2025-11-21",
    "accrual_end": "2025-12-20",
    "submission_open": "2025-12-10",
    "submission_close": "2025-12-20",
}
JANUARY = {
    "label": "2026-01",
    "accrual_start": "2025-12-21",
    "accrual_end": "2026-01-20",
    "submission_open": "2026-01-10",
    "submission_close": "2026-01-20",
}
FEBRUARY = {
    "label": "2026-02",
    "accrual_start": "2026-01-21",
    "accrual_end": "2026-02-20",
    "submission_open": "2026-02-10",
    "submission_close": "2026-02-20",
}
MARCH = {
    "label": "2026-03",
    "accrual_start": "2026-02-21",
    "accrual_end": "2026-03-20",
    "submission_open": "2026-03-10",
    "submission_close": "2026-03-20",
}


@pytest.fixture(autouse=True)
def _seed_employee_service() -> Iterator[None]:
    svc = InMemoryEmployeeService()
    svc.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID,
            company_id=COMPANY_ID,
            name="Ana Souza",
            email="ana@example.com",
            basket_cap=100000,
        )
    )
    set_employee_service(svc)
    yield
    set_employee_service(InMemoryEmployeeService())


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


async def _create_period(client: AsyncClient, body: dict[str, Any]) -> str:
    resp = await client.post(PERIODS_URL, json=body, headers=AUTH_HEADERS)
    assert resp.status_code == 201, resp.text
    result: str = resp.json()["id"]
    return result


async def _submit_plan(client: AsyncClient, period_id: str, installments: int, amount: int = 10000) -> dict[str, Any]:
    resp = await client.post(
        CLAIMS_URL,
        json={
            "employee_id": str(EMPLOYEE_ID),
            "period_id": period_id,
            "category_id": str(uuid.uuid4()),
            "description": "Orthodontic treatment",
            "amount": amount,
            "installments": installments,
        },
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 201, resp.text
    result: dict[str, Any] = resp.json()
    return result


async def _claims_in(client: AsyncClient, period_id: str) -> list[dict[str, Any]]:
    resp = await client.get(CLAIMS_URL, params={"period_id": period_id}, headers=AUTH_HEADERS)
    assert resp.status_code == 200
    items: list[dict[str, Any]] = resp.json()["items"]
    return items


async def _only_claim_in(client: AsyncClient, period_id: str) -> dict[str, Any]:
    items = await _claims_in(client, period_id)
    assert len(items) == 1
    return items[0]


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


async def test_single_payment_claim_has_no_installments(async_client: AsyncClient) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    await _create_period(async_client, JANUARY)

    data = await _submit_plan(async_client, december_id, installments=1)
    assert data["installment_number"] == 1
    assert data["installment_total"] == 1
    assert data["origin_claim_id"] is None

    resp = await async_client.get(CLAIMS_URL, headers=AUTH_HEADERS)
    assert resp.json()["total"] == 1


async def test_followups_fill_existing_later_periods(async_client: AsyncClient) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    january_id = await _create_period(async_client, JANUARY)
    february_id = await _create_period(async_client, FEBRUARY)

    first = await _submit_plan(async_client, december_id, installments=3)
    assert first["installment_number"] == 1
    assert first["installment_total"] == 3
    assert first["origin_claim_id"] is None

    for period_id, number in ((january_id, 2), (february_id, 3)):
        followup = await _only_claim_in(async_client, period_id)
        assert followup["installment_number"] == number
        assert followup["installment_total"] == 3
        assert followup["origin_claim_id"] == first["id"]
        assert followup["status"] == "SUBMITTED"
        assert followup["amount_claimed"] == 10000
        assert followup["amount_counted"] == 10000
        assert followup["description"] == "Orthodontic treatment"


async def test_plan_longer_than_registered_periods(async_client: AsyncClient, db_session: AsyncSession) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    january_id = await _create_period(async_client, JANUARY)

    first = await _submit_plan(async_client, december_id, installments=4)
    assert (await _only_claim_in(async_client, january_id))["installment_number"] == 2

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(first["id"]), col(AuditLog.action) == "SUBMIT")
    )
    entry = result.scalar_one()
    assert entry.metadata_json is not None
    assert entry.metadata_json["installments_scheduled"] == 1


async def test_followup_in_overflowed_basket_is_kept_as_excess(
    async_client: AsyncClient, clock: FixedClock
) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    january_id = await _create_period(async_client, JANUARY)

    clock.today = date(2026, 1, 15)
    await _submit_plan(async_client, january_id, installments=1, amount=120000)
    clock.today = date(2025, 12, 15)

    first = await _submit_plan(async_client, december_id, installments=2)
    followup = next(c for c in await _claims_in(async_client, january_id) if c["origin_claim_id"] == first["id"])
    assert followup["amount_counted"] == 0
    assert followup["amount_excess"] == 10000


@pytest.mark.parametrize("installments", [0, 49])
async def test_installment_count_is_bounded(async_client: AsyncClient, installments: int) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    resp = await async_client.post(
        CLAIMS_URL,
        json={
            "employee_id": str(EMPLOYEE_ID),
            "period_id": december_id,
            "category_id": str(uuid.uuid4()),
            "description": "Orthodontic treatment",
            "amount": 10000,
            "installments": installments,
        },
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Generation on period registration
# ---------------------------------------------------------------------------


async def test_new_periods_receive_outstanding_installments(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    first = await _submit_plan(async_client, december_id, installments=3)
    assert len(await _claims_in(async_client, december_id)) == 1

    january_id = await _create_period(async_client, JANUARY)
    february_id = await _create_period(async_client, FEBRUARY)
    march_id = await _create_period(async_client, MARCH)

    january = await _only_claim_in(async_client, january_id)
    february = await _only_claim_in(async_client, february_id)
    assert (january["installment_number"], february["installment_number"]) == (2, 3)
    assert january["origin_claim_id"] == february["origin_claim_id"] == first["id"]
    assert await _claims_in(async_client, march_id) == []

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(january["id"]), col(AuditLog.action) == "CREATE")
    )
    entry = result.scalar_one()
    assert entry.actor_id == ADMIN_ID
    assert entry.metadata_json == {"origin_claim_id": first["id"], "installment_number": 2}

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(march_id), col(AuditLog.action) == "CREATE")
    )
    assert result.scalar_one().metadata_json == {"installments_generated": 0}


async def test_earlier_period_receives_no_installment(async_client: AsyncClient) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    await _submit_plan(async_client, december_id, installments=3)

    november_id = await _create_period(async_client, NOVEMBER)
    assert await _claims_in(async_client, november_id) == []


async def test_closed_period_receives_no_installment(async_client: AsyncClient) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    await _submit_plan(async_client, december_id, installments=3)

    january_id = await _create_period(async_client, {**JANUARY, "status": "CLOSED"})
    assert await _claims_in(async_client, january_id) == []


async def test_installments_skip_inactive_employee(async_client: AsyncClient) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    await _submit_plan(async_client, december_id, installments=2)

    svc = InMemoryEmployeeService()
    svc.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID,
            company_id=COMPANY_ID,
            name="Ana Souza",
            email="ana@example.com",
            basket_cap=100000,
            active=False,
        )
    )
    set_employee_service(svc)

    january_id = await _create_period(async_client, JANUARY)
    assert await _claims_in(async_client, january_id) == []


# ---------------------------------------------------------------------------
# Rejection and withdrawal
# ---------------------------------------------------------------------------


async def test_rejecting_first_installment_rejects_pending_followups(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    january_id = await _create_period(async_client, JANUARY)
    february_id = await _create_period(async_client, FEBRUARY)
    first = await _submit_plan(async_client, december_id, installments=3)

    january = await _only_claim_in(async_client, january_id)
    resp = await async_client.post(f"{CLAIMS_URL}/{january['id']}/approve", headers=AUTH_HEADERS)
    assert resp.status_code == 200

    resp = await async_client.post(
        f"{CLAIMS_URL}/{first['id']}/reject", json={"reason": "Invoice not itemized"}, headers=AUTH_HEADERS
    )
    assert resp.status_code == 200
    assert resp.json()["rejection_reason"] == "Invoice not itemized"

    february = await _only_claim_in(async_client, february_id)
    assert february["status"] == "REJECTED"
    assert february["reviewer_id"] == str(ADMIN_ID)
    assert february["rejection_reason"].startswith("Automatically rejected")
    assert february["rejection_reason"].endswith("Invoice not itemized")
    assert (await _only_claim_in(async_client, january_id))["status"] == "APPROVED"

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(february["id"]), col(AuditLog.action) == "REJECT")
    )
    entry = result.scalar_one()
    assert entry.before_json == {"status": "SUBMITTED"}
    assert entry.metadata_json == {"origin_claim_id": first["id"]}

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(first["id"]), col(AuditLog.action) == "REJECT")
    )
    origin_entry = result.scalar_one()
    assert origin_entry.metadata_json == {"installments_rejected": [february["id"]]}


async def test_rejected_plan_generates_no_more_installments(async_client: AsyncClient) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    first = await _submit_plan(async_client, december_id, installments=3)
    resp = await async_client.post(
        f"{CLAIMS_URL}/{first['id']}/reject", json={"reason": "Duplicate"}, headers=AUTH_HEADERS
    )
    assert resp.status_code == 200

    january_id = await _create_period(async_client, JANUARY)
    assert await _claims_in(async_client, january_id) == []


async def test_rejected_followup_is_replaced_in_next_period(async_client: AsyncClient) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    january_id = await _create_period(async_client, JANUARY)
    february_id = await _create_period(async_client, FEBRUARY)
    first = await _submit_plan(async_client, december_id, installments=3)

    january = await _only_claim_in(async_client, january_id)
    resp = await async_client.post(
        f"{CLAIMS_URL}/{january['id']}/reject", json={"reason": "Receipt unreadable"}, headers=AUTH_HEADERS
    )
    assert resp.status_code == 200

    # Rejecting a later installment does not touch the rest of the plan
    resp = await async_client.get(f"{CLAIMS_URL}/{first['id']}", headers=AUTH_HEADERS)
    assert resp.json()["status"] == "SUBMITTED"
    assert (await _only_claim_in(async_client, february_id))["status"] == "SUBMITTED"

    march_id = await _create_period(async_client, MARCH)
    replacement = await _only_claim_in(async_client, march_id)
    assert replacement["installment_number"] == 2
    assert replacement["origin_claim_id"] == first["id"]


async def test_deleting_first_installment_withdraws_followups(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    december_id = await _create_period(async_client, DECEMBER)
    january_id = await _create_period(async_client, JANUARY)
    february_id = await _create_period(async_client, FEBRUARY)
    first = await _submit_plan(async_client, december_id, installments=3)

    february = await _only_claim_in(async_client, february_id)
    resp = await async_client.post(f"{CLAIMS_URL}/{february['id']}/start-review", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    january = await _only_claim_in(async_client, january_id)

    resp = await async_client.delete(f"{CLAIMS_URL}/{first['id']}", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 204

    resp = await async_client.get(f"{CLAIMS_URL}/{january['id']}", headers=AUTH_HEADERS)
    assert resp.status_code == 404

    # A follow-up already in review stays, detached from the deleted plan
    kept = await _only_claim_in(async_client, february_id)
    assert kept["status"] == "UNDER_REVIEW"
    assert kept["origin_claim_id"] is None

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(first["id"]), col(AuditLog.action) == "DELETE")
    )
    assert result.scalar_one().metadata_json == {"installments_withdrawn": [january["id"]]}
