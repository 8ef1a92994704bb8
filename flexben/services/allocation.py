"""Benefit basket cap allocation.

Pure functions: callers are responsible for reading ``already_counted`` and the
overflow flag under the employee's basket usage lock.
"""

from __future__ import annotations

from dataclasses import dataclass

from flexben.exceptions import BasketLockedError


@dataclass(frozen=True)
class BasketAllocation:
    """How a claimed amount splits against the remaining basket cap (cents)."""

    amount_claimed: int
    amount_counted: int
    amount_excess: int
    remaining_before: int

    @property
    def overflowed(self) -> bool:
        return self.amount_excess > 0

    @property
    def remaining_after(self) -> int:
        return max(0, self.remaining_before - self.amount_counted)


def allocate(amount_claimed: int, cap: int, already_counted: int) -> BasketAllocation:
    """Split ``amount_claimed`` into counted and excess portions.

    remaining = cap - already_counted
    counted   = max(0, min(amount_claimed, remaining))
    excess    = amount_claimed - counted

    A claim is never refused for exceeding the cap; the overflow is simply not
    counted.
    """
    if amount_claimed < 0:
        msg = "amount_claimed must be >= 0"
        raise ValueError(msg)

    remaining = cap - already_counted
    counted = max(0, min(amount_claimed, remaining))
    return BasketAllocation(
        amount_claimed=amount_claimed,
        amount_counted=counted,
        amount_excess=amount_claimed - counted,
        remaining_before=remaining,
    )


def ensure_basket_open(overflowed: bool) -> None:
    """Raise if an earlier claim in the period already overflowed the cap."""
    if overflowed:
        raise BasketLockedError
