"""claim installments

Revision ID: 0002
Revises: 0001
Create Date: 2026-01-12 10:30:00

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: str | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column("expense_claim", sa.Column("installment_number", sa.Integer(), server_default="1", nullable=False))
    op.add_column("expense_claim", sa.Column("installment_total", sa.Integer(), server_default="1", nullable=False))
    op.add_column("expense_claim", sa.Column("origin_claim_id", sa.Uuid(), nullable=True))
    op.create_foreign_key(
        "fk_expense_claim_origin_claim_id",
        "expense_claim",
        "expense_claim",
        ["origin_claim_id"],
        ["id"],
        ondelete="SET NULL",
    )
    op.create_index("ix_expense_claim_origin_claim_id", "expense_claim", ["origin_claim_id"])
    op.create_check_constraint(
        "ck_claim_installment_range",
        "expense_claim",
        "installment_number >= 1 AND installment_number <= installment_total",
    )


def downgrade() -> None:
    op.drop_constraint("ck_claim_installment_range", "expense_claim", type_="check")
    op.drop_index("ix_expense_claim_origin_claim_id", table_name="expense_claim")
    op.drop_constraint("fk_expense_claim_origin_claim_id", "expense_claim", type_="foreignkey")
    op.drop_column("expense_claim", "origin_claim_id")
    op.drop_column("expense_claim", "installment_total")
    op.drop_column("expense_claim", "installment_number")
