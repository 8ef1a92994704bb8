"""initial schema

Revision ID: 0001
Revises:
Create Date: 2025-11-03 09:00:00

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "benefit_period",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("label", sa.String(length=50), nullable=False),
        sa.Column("accrual_start", sa.Date(), nullable=False),
        sa.Column("accrual_end", sa.Date(), nullable=False),
        sa.Column("submission_open", sa.Date(), nullable=False),
        sa.Column("submission_close", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="OPEN", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "label", name="uq_period_company_label"),
    )
    op.create_index("ix_benefit_period_company_id", "benefit_period", ["company_id"])
    op.create_index("ix_benefit_period_status", "benefit_period", ["status"])
    op.create_index("ix_period_company_submission", "benefit_period", ["company_id", "submission_open"])

    op.create_table(
        "expense_claim",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("period_id", sa.Uuid(), sa.ForeignKey("benefit_period.id"), nullable=False),
        sa.Column("requested_period_id", sa.Uuid(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.Column("origin", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False),
        sa.Column("document_ref", sa.String(length=255), nullable=True),
        sa.Column("amount_claimed", sa.Integer(), nullable=False),
        sa.Column("amount_counted", sa.Integer(), nullable=False),
        sa.Column("amount_excess", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="SUBMITTED", nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewer_id", sa.Uuid(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.String(length=1000), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount_counted + amount_excess = amount_claimed", name="ck_claim_amount_split"),
    )
    op.create_index("ix_expense_claim_company_id", "expense_claim", ["company_id"])
    op.create_index("ix_expense_claim_employee_id", "expense_claim", ["employee_id"])
    op.create_index("ix_expense_claim_period_id", "expense_claim", ["period_id"])
    op.create_index("ix_expense_claim_status", "expense_claim", ["status"])
    op.create_index("ix_claim_company_period_status", "expense_claim", ["company_id", "period_id", "status"])
    op.create_index("ix_claim_period_employee", "expense_claim", ["period_id", "employee_id"])

    op.create_table(
        "basket_usage",
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("period_id", sa.Uuid(), sa.ForeignKey("benefit_period.id", ondelete="CASCADE"), nullable=False),
        sa.Column("counted_total", sa.Integer(), server_default="0", nullable=False),
        sa.Column("overflowed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.PrimaryKeyConstraint("company_id", "employee_id", "period_id"),
    )

    op.create_table(
        "payroll_event_code",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("component", sa.String(length=50), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "component", name="uq_payroll_event_component"),
    )
    op.create_index("ix_payroll_event_code_company_id", "payroll_event_code", ["company_id"])

    op.create_table(
        "settlement",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("period_id", sa.Uuid(), sa.ForeignKey("benefit_period.id"), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("employee_count", sa.Integer(), nullable=False),
        sa.Column("event_count", sa.Integer(), nullable=False),
        sa.Column("total_fixed", sa.Integer(), nullable=False),
        sa.Column("total_basket", sa.Integer(), nullable=False),
        sa.Column("total_pida", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_settlement_company_id", "settlement", ["company_id"])
    op.create_index("ix_settlement_period_id", "settlement", ["period_id"])

    op.create_table(
        "overflow_event",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("period_id", sa.Uuid(), sa.ForeignKey("benefit_period.id"), nullable=False),
        sa.Column("settlement_id", sa.Uuid(), sa.ForeignKey("settlement.id", ondelete="CASCADE"), nullable=False),
        sa.Column("base_amount", sa.Integer(), nullable=False),
        sa.Column("basket_shortfall", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "settlement_id", name="uq_overflow_employee_settlement"),
    )
    op.create_index("ix_overflow_event_company_id", "overflow_event", ["company_id"])
    op.create_index("ix_overflow_event_employee_id", "overflow_event", ["employee_id"])
    op.create_index("ix_overflow_event_period_id", "overflow_event", ["period_id"])
    op.create_index("ix_overflow_event_settlement_id", "overflow_event", ["settlement_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("actor_name", sa.String(length=255), nullable=True),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.Column("metadata_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_company_id", "audit_log", ["company_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("overflow_event")
    op.drop_table("settlement")
    op.drop_table("payroll_event_code")
    op.drop_table("basket_usage")
    op.drop_table("expense_claim")
    op.drop_table("benefit_period")
