"""
Unit tests for the pure payment calculator.

Covers:
- Non-advancing and same-month dates yield no amount due
- Month difference ignores day-of-month
- Grace day boundary for the current month's penalty
- Integer penalty arithmetic (floor division)
- Initial ledger sentinel date
"""

from datetime import date

import pytest

from lease_kernel.domain.calculator import (
    DEFAULT_PAYMENT_POLICY,
    PaymentDue,
    PaymentPolicy,
    PaymentRejection,
    calculate_payment_due,
    initial_payment_sentinel,
    months_elapsed,
    payment_rejection_reason,
)
from lease_kernel.domain.values import Currency, RentalTerms


def _terms(rent: int = 800, pct: int = 10, start: date = date(2021, 1, 1)) -> RentalTerms:
    return RentalTerms(
        rent_amount=rent,
        currency=Currency.USD,
        lease_period_months=12,
        start_date=start,
        late_penalty_percent=pct,
        break_penalty_months=2,
    )


class TestMonthsElapsed:

    def test_same_month_is_zero(self):
        assert months_elapsed(date(2021, 3, 31), date(2021, 3, 1)) == 0

    def test_day_of_month_ignored(self):
        assert months_elapsed(date(2021, 2, 1), date(2021, 1, 31)) == 1

    def test_across_year_boundary(self):
        assert months_elapsed(date(2022, 2, 10), date(2021, 11, 10)) == 3

    def test_negative_when_earlier(self):
        assert months_elapsed(date(2019, 2, 11), date(2021, 1, 4)) == -23


class TestRejectionReason:

    def test_same_day_is_non_advancing(self):
        d = date(2021, 1, 4)
        assert payment_rejection_reason(d, d) is PaymentRejection.NON_ADVANCING_DATE

    def test_earlier_date_is_non_advancing(self):
        reason = payment_rejection_reason(date(2021, 1, 3), date(2021, 1, 4))
        assert reason is PaymentRejection.NON_ADVANCING_DATE

    def test_later_same_month(self):
        reason = payment_rejection_reason(date(2021, 1, 20), date(2021, 1, 4))
        assert reason is PaymentRejection.SAME_MONTH

    def test_next_month_accepted(self):
        assert payment_rejection_reason(date(2021, 2, 1), date(2021, 1, 31)) is None


class TestCalculatePaymentDue:

    def test_first_payment_within_grace(self):
        due = calculate_payment_due(date(2021, 1, 4), date(2020, 12, 31), _terms())
        assert due == PaymentDue(rent=800, penalty=0)
        assert due.total == 800

    def test_grace_day_is_inclusive(self):
        due = calculate_payment_due(date(2021, 2, 5), date(2021, 1, 4), _terms())
        assert due == PaymentDue(rent=800, penalty=0)

    def test_day_after_grace_pays_current_month_penalty(self):
        due = calculate_payment_due(date(2021, 2, 6), date(2021, 1, 4), _terms())
        assert due == PaymentDue(rent=800, penalty=80)

    def test_three_months_late(self):
        due = calculate_payment_due(date(2021, 4, 7), date(2021, 1, 4), _terms())
        assert due == PaymentDue(rent=2400, penalty=240)
        assert due.total == 2640

    def test_three_months_within_grace(self):
        due = calculate_payment_due(date(2021, 4, 3), date(2021, 1, 4), _terms())
        assert due == PaymentDue(rent=2400, penalty=160)

    def test_penalty_uses_floor_division(self):
        due = calculate_payment_due(date(2021, 2, 10), date(2021, 1, 4), _terms(rent=999, pct=7))
        # 999 * 7 = 6993 -> 69
        assert due.penalty == 69

    def test_zero_penalty_percent(self):
        due = calculate_payment_due(date(2021, 5, 20), date(2021, 1, 4), _terms(pct=0))
        assert due == PaymentDue(rent=3200, penalty=0)

    @pytest.mark.parametrize(
        "new_date",
        [date(2021, 1, 20), date(2021, 1, 3), date(2021, 1, 4), date(2019, 2, 11)],
    )
    def test_no_amount_due(self, new_date):
        assert calculate_payment_due(new_date, date(2021, 1, 4), _terms()) is None

    def test_custom_grace_day(self):
        policy = PaymentPolicy(grace_day=10)
        due = calculate_payment_due(date(2021, 2, 10), date(2021, 1, 4), _terms(), policy)
        assert due == PaymentDue(rent=800, penalty=0)

    def test_deterministic(self):
        args = (date(2021, 7, 19), date(2021, 1, 4), _terms())
        assert calculate_payment_due(*args) == calculate_payment_due(*args)


class TestPolicyAndSentinel:

    def test_default_sentinel_is_day_before_start(self):
        assert initial_payment_sentinel(_terms()) == date(2020, 12, 31)

    def test_custom_sentinel_offset(self):
        policy = PaymentPolicy(sentinel_offset_days=15)
        assert initial_payment_sentinel(_terms(), policy) == date(2020, 12, 17)

    def test_default_policy_values(self):
        assert DEFAULT_PAYMENT_POLICY.grace_day == 5
        assert DEFAULT_PAYMENT_POLICY.sentinel_offset_days == 1

    @pytest.mark.parametrize("grace_day", [0, 32, -1])
    def test_invalid_grace_day(self, grace_day):
        with pytest.raises(ValueError):
            PaymentPolicy(grace_day=grace_day)

    def test_sentinel_offset_must_be_positive(self):
        with pytest.raises(ValueError):
            PaymentPolicy(sentinel_offset_days=0)
