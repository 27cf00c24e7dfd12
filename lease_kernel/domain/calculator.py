"""
PaymentCalculator -- rent and late penalty owed between two payment dates.

Responsibility:
    Derives the rent and penalty due for a payment dated ``new_date`` when
    the previous payment was recorded on ``old_date``.  Pure and stateless:
    identical inputs always produce identical output.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Algorithm:
    1. ``new_date`` must be strictly after ``old_date``.
    2. ``new_date`` must fall in a different calendar month than
       ``old_date`` (at most one payment per calendar month).
    3. months_elapsed = 12 * (year delta) + (month delta); day-of-month is
       ignored, so Jan 31 -> Feb 1 is one month.
    4. rent = months_elapsed * rent_amount.
    5. Payments dated on or before the grace day (the 5th by default) do
       not pay a penalty for the current month.
    6. penalty = penalty_months * rent_amount * late_penalty_percent // 100.

Known limitations (kept as-is):
    - months_elapsed ignores the day-of-month entirely.
    - A first payment dated before the lease start is only rejected by the
      strictly-after check against the ledger's sentinel date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from lease_kernel.domain.values import RentalTerms

DEFAULT_GRACE_DAY = 5
DEFAULT_SENTINEL_OFFSET_DAYS = 1


@dataclass(frozen=True)
class PaymentPolicy:
    """Tunable constants of the payment calculation.

    ``grace_day`` is the last day-of-month on which the current month's
    rent is still penalty-free.  ``sentinel_offset_days`` places the initial
    ledger's last payment date that many days before the lease start.
    """

    grace_day: int = DEFAULT_GRACE_DAY
    sentinel_offset_days: int = DEFAULT_SENTINEL_OFFSET_DAYS

    def __post_init__(self) -> None:
        if not 1 <= self.grace_day <= 31:
            raise ValueError(f"grace_day must be within 1..31, got {self.grace_day}")
        if self.sentinel_offset_days < 1:
            raise ValueError(
                f"sentinel_offset_days must be at least 1, got {self.sentinel_offset_days}"
            )


DEFAULT_PAYMENT_POLICY = PaymentPolicy()


@dataclass(frozen=True)
class PaymentDue:
    """Amounts owed for one payment."""

    rent: int
    penalty: int

    @property
    def total(self) -> int:
        return self.rent + self.penalty


class PaymentRejection(str, Enum):
    """Why a payment date yields no amount due."""

    NON_ADVANCING_DATE = "non_advancing_date"
    SAME_MONTH = "same_month"


def months_elapsed(new_date: date, old_date: date) -> int:
    """Calendar-field month difference; day-of-month plays no part."""
    return 12 * (new_date.year - old_date.year) + (new_date.month - old_date.month)


def payment_rejection_reason(new_date: date, old_date: date) -> PaymentRejection | None:
    """Return the rule that rejects ``new_date``, or None if a payment is due."""
    if (new_date - old_date).days <= 0:
        return PaymentRejection.NON_ADVANCING_DATE
    if (new_date.year, new_date.month) == (old_date.year, old_date.month):
        return PaymentRejection.SAME_MONTH
    return None


def calculate_payment_due(
    new_date: date,
    old_date: date,
    terms: RentalTerms,
    policy: PaymentPolicy = DEFAULT_PAYMENT_POLICY,
) -> PaymentDue | None:
    """
    Compute rent and penalty due for a payment on ``new_date``.

    Returns:
        PaymentDue, or None when ``new_date`` is not strictly after
        ``old_date`` or lies in the same calendar month.
    """
    if payment_rejection_reason(new_date, old_date) is not None:
        return None

    months = months_elapsed(new_date, old_date)
    rent = months * terms.rent_amount

    penalty_months = months - 1 if new_date.day <= policy.grace_day else months
    penalty = penalty_months * terms.rent_amount * terms.late_penalty_percent // 100

    return PaymentDue(rent=rent, penalty=penalty)


def initial_payment_sentinel(
    terms: RentalTerms,
    policy: PaymentPolicy = DEFAULT_PAYMENT_POLICY,
) -> date:
    """Last-payment date recorded on a fresh ledger, strictly before the lease start."""
    return terms.start_date - timedelta(days=policy.sentinel_offset_days)
