"""Tests for payroll event code configuration per benefit component."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from flexben.models.enums import BenefitComponent
from flexben.services.payroll_event import resolve_component_config

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

COMPANY_ID = uuid.uuid4()
AUTH_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(uuid.uuid4()),
    "X-Role": "admin",
}
EMPLOYEE_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(uuid.uuid4()),
    "X-Role": "employee",
}
EVENTS_URL = f"/companies/{COMPANY_ID}/payroll-events"


async def test_upsert_creates_and_updates(async_client: AsyncClient) -> None:
    resp = await async_client.put(
        f"{EVENTS_URL}/BENEFIT_BASKET", json={"code": "410", "description": "Basket"}, headers=AUTH_HEADERS
    )
    assert resp.status_code == 200
    first = resp.json()
    assert first["component"] == "BENEFIT_BASKET"
    assert first["code"] == "410"

    resp = await async_client.put(f"{EVENTS_URL}/BENEFIT_BASKET", json={"code": "411"}, headers=AUTH_HEADERS)
    assert resp.json()["id"] == first["id"]
    assert resp.json()["code"] == "411"
    assert resp.json()["description"] is None

    resp = await async_client.get(EVENTS_URL, headers=AUTH_HEADERS)
    assert resp.json()["total"] == 1


async def test_unknown_component_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.put(f"{EVENTS_URL}/BONUS", json={"code": "1"}, headers=AUTH_HEADERS)
    assert resp.status_code == 422


async def test_blank_code_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.put(f"{EVENTS_URL}/PIDA", json={"code": ""}, headers=AUTH_HEADERS)
    assert resp.status_code == 422


async def test_payroll_events_require_admin(async_client: AsyncClient) -> None:
    resp = await async_client.put(f"{EVENTS_URL}/PIDA", json={"code": "500"}, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403
    resp = await async_client.get(EVENTS_URL, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403


async def test_delete_payroll_event(async_client: AsyncClient) -> None:
    await async_client.put(f"{EVENTS_URL}/PIDA", json={"code": "500"}, headers=AUTH_HEADERS)
    resp = await async_client.delete(f"{EVENTS_URL}/PIDA", headers=AUTH_HEADERS)
    assert resp.status_code == 204

    resp = await async_client.delete(f"{EVENTS_URL}/PIDA", headers=AUTH_HEADERS)
    assert resp.status_code == 404


async def test_resolve_component_config_covers_every_component(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    await async_client.put(f"{EVENTS_URL}/MEAL_VOUCHER", json={"code": "101"}, headers=AUTH_HEADERS)

    config = await resolve_component_config(db_session, COMPANY_ID)
    assert set(config) == set(BenefitComponent)
    assert config[BenefitComponent.MEAL_VOUCHER].configured
    assert config[BenefitComponent.MEAL_VOUCHER].code == "101"
    assert not config[BenefitComponent.PIDA].configured
    assert config[BenefitComponent.PIDA].code is None


async def test_component_config_is_company_scoped(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await async_client.put(f"{EVENTS_URL}/MEAL_VOUCHER", json={"code": "101"}, headers=AUTH_HEADERS)
    config = await resolve_component_config(db_session, uuid.uuid4())
    assert not any(c.configured for c in config.values())
