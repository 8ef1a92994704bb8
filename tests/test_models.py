from __future__ import annotations

import uuid
from datetime import UTC, date, datetime

from flexben.models import (
    AuditLog,
    BasketUsage,
    BenefitPeriod,
    ExpenseClaim,
    OverflowEvent,
    PayrollEventCode,
    Settlement,
    SQLModel,
)
from flexben.models.enums import ClaimOrigin, ClaimStatus, PeriodStatus, SettlementStatus

EXPECTED_TABLES = {
    "audit_log",
    "basket_usage",
    "benefit_period",
    "expense_claim",
    "overflow_event",
    "payroll_event_code",
    "settlement",
}


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_benefit_period_defaults() -> None:
    period = BenefitPeriod(
        company_id=uuid.uuid4(),
        label="2025-12",
        accrual_start=date(2025, 11, 21),
        accrual_end=date(2025, 12, 20),
        submission_open=date(2025, 12, 10),
        submission_close=date(2025, 12, 20),
    )
    assert period.status == PeriodStatus.OPEN
    assert period.id is not None


def test_expense_claim_defaults() -> None:
    period_id = uuid.uuid4()
    claim = ExpenseClaim(
        company_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        period_id=period_id,
        requested_period_id=period_id,
        category_id=uuid.uuid4(),
        description="Gym",
        amount_claimed=10000,
        amount_counted=10000,
    )
    assert claim.status == ClaimStatus.SUBMITTED
    assert claim.origin == ClaimOrigin.SELF
    assert claim.amount_excess == 0
    assert claim.reviewer_id is None
    assert claim.rejection_reason is None
    assert claim.installment_number == 1
    assert claim.installment_total == 1
    assert claim.origin_claim_id is None
    assert claim.updated_at is None


def test_basket_usage_defaults() -> None:
    usage = BasketUsage(company_id=uuid.uuid4(), employee_id=uuid.uuid4(), period_id=uuid.uuid4())
    assert usage.counted_total == 0
    assert usage.overflowed is False
    assert usage.version == 1


def test_basket_usage_composite_primary_key() -> None:
    pk = [c.name for c in SQLModel.metadata.tables["basket_usage"].primary_key.columns]
    assert sorted(pk) == ["company_id", "employee_id", "period_id"]


def test_claim_amount_split_constraint_declared() -> None:
    table = SQLModel.metadata.tables["expense_claim"]
    names = {c.name for c in table.constraints}
    assert "ck_claim_amount_split" in names
    assert "ck_claim_installment_range" in names


def test_claim_origin_link_is_self_referencing() -> None:
    column = SQLModel.metadata.tables["expense_claim"].c.origin_claim_id
    assert column.nullable
    (fk,) = column.foreign_keys
    assert fk.target_fullname == "expense_claim.id"
    assert fk.ondelete == "SET NULL"


def test_touch_stamps_updated_at() -> None:
    period_id = uuid.uuid4()
    claim = ExpenseClaim(
        company_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        period_id=period_id,
        requested_period_id=period_id,
        category_id=uuid.uuid4(),
        description="Gym",
        amount_claimed=10000,
        amount_counted=10000,
    )
    stamp = datetime(2025, 12, 15, 9, 30, tzinfo=UTC)
    assert claim.touch(stamp) == stamp
    assert claim.updated_at == stamp

    auto = claim.touch()
    assert auto.tzinfo is not None
    assert claim.updated_at == auto


def test_settlement_defaults() -> None:
    settlement = Settlement(company_id=uuid.uuid4(), period_id=uuid.uuid4(), actor_id=uuid.uuid4())
    assert settlement.status == SettlementStatus.SUCCESS
    assert settlement.total_amount == 0
    assert settlement.processed_at is not None


def test_overflow_event_unique_per_settlement() -> None:
    table = SQLModel.metadata.tables["overflow_event"]
    names = {c.name for c in table.constraints}
    assert "uq_overflow_employee_settlement" in names
    event = OverflowEvent(
        company_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        period_id=uuid.uuid4(),
        settlement_id=uuid.uuid4(),
        base_amount=30000,
        basket_shortfall=30000,
        total_amount=60000,
    )
    assert event.total_amount == 60000


def test_payroll_event_code_instantiation() -> None:
    code = PayrollEventCode(company_id=uuid.uuid4(), component="PIDA", code="500")
    assert code.description is None


def test_audit_log_instantiation() -> None:
    log = AuditLog(
        company_id=uuid.uuid4(),
        actor_id=uuid.uuid4(),
        entity_type="CLAIM",
        entity_id=uuid.uuid4(),
        action="SUBMIT",
    )
    assert log.before_json is None
    assert log.after_json is None
    assert log.metadata_json is None
    assert log.actor_name is None
