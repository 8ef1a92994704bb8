from __future__ import annotations

import enum


class PeriodStatus(enum.StrEnum):
    """Whether a benefit period still accepts claims."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ClaimStatus(enum.StrEnum):
    """State machine for expense claims."""

    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Claims that still need a reviewer decision; they block period closing.
PENDING_CLAIM_STATUSES = (ClaimStatus.SUBMITTED, ClaimStatus.UNDER_REVIEW)


class ClaimOrigin(enum.StrEnum):
    """Who incurred the expense."""

    SELF = "SELF"
    SPOUSE = "SPOUSE"
    CHILDREN = "CHILDREN"


class SettlementStatus(enum.StrEnum):
    """Outcome of a period closing run."""

    SUCCESS = "SUCCESS"


class BenefitComponent(enum.StrEnum):
    """Compensation components that can be mapped to a payroll event code."""

    MEAL_VOUCHER = "MEAL_VOUCHER"
    FOOD_VOUCHER = "FOOD_VOUCHER"
    COST_ALLOWANCE = "COST_ALLOWANCE"
    MOBILITY = "MOBILITY"
    BENEFIT_BASKET = "BENEFIT_BASKET"
    PIDA = "PIDA"


# Components paid as a flat monthly amount from the employee record.
FIXED_COMPONENTS = (
    BenefitComponent.MEAL_VOUCHER,
    BenefitComponent.FOOD_VOUCHER,
    BenefitComponent.COST_ALLOWANCE,
    BenefitComponent.MOBILITY,
)


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    PERIOD = "PERIOD"
    CLAIM = "CLAIM"
    SETTLEMENT = "SETTLEMENT"
    PAYROLL_EVENT = "PAYROLL_EVENT"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    START_REVIEW = "START_REVIEW"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    PROCESS = "PROCESS"
