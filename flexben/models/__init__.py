from sqlmodel import SQLModel

from flexben.models.audit import AuditLog
from flexben.models.basket import BasketUsage
from flexben.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from flexben.models.claim import ExpenseClaim
from flexben.models.enums import (
    AuditAction,
    AuditEntityType,
    BenefitComponent,
    ClaimOrigin,
    ClaimStatus,
    PeriodStatus,
    SettlementStatus,
)
from flexben.models.payroll_event import PayrollEventCode
from flexben.models.period import BenefitPeriod
from flexben.models.settlement import OverflowEvent, Settlement

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "BasketUsage",
    "BenefitComponent",
    "BenefitPeriod",
    "ClaimOrigin",
    "ClaimStatus",
    "ExpenseClaim",
    "OverflowEvent",
    "PayrollEventCode",
    "PeriodStatus",
    "SQLModel",
    "Settlement",
    "SettlementStatus",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
]
