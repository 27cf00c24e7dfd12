"""
End-to-end lease lifecycle through the ContractLedger, committed to the
database between steps.

Lease: rent 800 USD, late penalty 10%, starting 2021-01-01.

Scenarios:
1. First payment 2021-01-04: rent 800, no penalty.
2. Second payment in January: duplicate.
3. Payment dated before the last payment: non-advancing.
4. Payment dated years earlier: non-advancing.
5. 2021-04-07 after 2021-01-04: three months rent plus three months penalty.
6. Reject then accept on the same proposal: stale, no agreement.
"""

from datetime import date

import pytest

from lease_kernel.db.engine import session_scope
from lease_kernel.domain.calculator import PaymentDue
from lease_kernel.domain.contracts import ContractKind
from lease_kernel.domain.workflow import RentalState
from lease_kernel.exceptions import (
    DuplicatePaymentError,
    NonAdvancingDateError,
    StaleVersionError,
)
from lease_kernel.services.contract_ledger import ContractLedger


@pytest.fixture
def lease(session, deterministic_clock, landlord, tenant, terms):
    """Invite and accept; returns (ledger, AcceptResult) with both committed."""
    ledger = ContractLedger(session, clock=deterministic_clock)
    proposal = ledger.exercise(
        None,
        "invite",
        landlord,
        landlord=landlord,
        tenant=tenant,
        terms=terms,
        bank_code="021000021",
        account_number="000123456789",
    )
    session.commit()
    accepted = ledger.exercise(proposal, "accept", tenant)
    session.commit()
    return ledger, accepted


def _entry(ledger, ref):
    return ledger.store.fetch(ref, ContractKind.PAYMENT_LEDGER)


class TestPaymentScenarios:

    def test_first_payment_within_grace(self, session, lease, tenant):
        ledger, accepted = lease
        assert _entry(ledger, accepted.ledger_ref).last_payment_date == date(2020, 12, 31)

        due = ledger.exercise(accepted.ledger_ref, "get_rent_due", tenant, new_date=date(2021, 1, 4))
        assert due == PaymentDue(rent=800, penalty=0)

        ref = ledger.exercise(accepted.ledger_ref, "pay_rent", tenant, new_date=date(2021, 1, 4))
        session.commit()

        entry = _entry(ledger, ref)
        assert entry.last_payment_date == date(2021, 1, 4)
        assert (entry.rent_this_period, entry.penalty_this_period) == (800, 0)
        assert entry.total_paid_to_date == 800

    def test_duplicate_month_rejected(self, session, lease, tenant):
        ledger, accepted = lease
        ref = ledger.exercise(accepted.ledger_ref, "pay_rent", tenant, new_date=date(2021, 1, 4))
        session.commit()

        assert ledger.exercise(ref, "get_rent_due", tenant, new_date=date(2021, 1, 20)) is None
        with pytest.raises(DuplicatePaymentError):
            ledger.exercise(ref, "pay_rent", tenant, new_date=date(2021, 1, 20))
        session.commit()

        assert ledger.current_ref(ref.contract_id) == ref

    @pytest.mark.parametrize("new_date", [date(2021, 1, 3), date(2019, 2, 11)])
    def test_non_advancing_rejected(self, session, lease, tenant, new_date):
        ledger, accepted = lease
        ref = ledger.exercise(accepted.ledger_ref, "pay_rent", tenant, new_date=date(2021, 1, 4))
        session.commit()

        with pytest.raises(NonAdvancingDateError):
            ledger.exercise(ref, "pay_rent", tenant, new_date=new_date)
        session.commit()

        assert _entry(ledger, ref).total_paid_to_date == 800

    def test_three_months_late(self, session, lease, tenant):
        ledger, accepted = lease
        ref = ledger.exercise(accepted.ledger_ref, "pay_rent", tenant, new_date=date(2021, 1, 4))
        session.commit()

        due = ledger.exercise(ref, "get_rent_due", tenant, new_date=date(2021, 4, 7))
        assert due == PaymentDue(rent=2400, penalty=240)

        ref = ledger.exercise(ref, "pay_rent", tenant, new_date=date(2021, 4, 7))
        session.commit()

        entry = _entry(ledger, ref)
        assert entry.rent_this_period == 2400
        assert entry.penalty_this_period == 240
        assert entry.total_paid_to_date == 800 + 2640

        history = ledger.history(ref.contract_id)
        assert [r.contract.total_paid_to_date for r in history] == [0, 800, 3440]


class TestProposalExclusivity:

    def test_reject_then_accept(self, session, deterministic_clock, landlord, tenant, terms):
        ledger = ContractLedger(session, clock=deterministic_clock)
        proposal = ledger.exercise(
            None,
            "invite",
            landlord,
            landlord=landlord,
            tenant=tenant,
            terms=terms,
            bank_code="021000021",
            account_number="000123456789",
        )
        session.commit()

        ledger.exercise(proposal, "reject", tenant)
        session.commit()

        with pytest.raises(StaleVersionError):
            ledger.exercise(proposal, "accept", tenant)
        session.commit()

        assert ledger.query(tenant) == []
        assert ledger.query(landlord) == []
        assert ledger.workflow.proposal_status(proposal, landlord) == RentalState.REJECTED


class TestSessionScope:
    """Work done through session_scope is committed or discarded as a whole."""

    def test_committed_lease_visible_in_new_session(
        self, db_engine, deterministic_clock, landlord, tenant, terms
    ):
        with session_scope() as sess:
            proposal = ContractLedger(sess, clock=deterministic_clock).exercise(
                None,
                "invite",
                landlord,
                landlord=landlord,
                tenant=tenant,
                terms=terms,
                bank_code="021000021",
                account_number="000123456789",
            )

        with session_scope() as sess:
            assert ContractLedger(sess).query(tenant) == [proposal]

    def test_exception_discards_work(
        self, db_engine, deterministic_clock, landlord, tenant, terms
    ):
        with pytest.raises(RuntimeError):
            with session_scope() as sess:
                ContractLedger(sess, clock=deterministic_clock).exercise(
                    None,
                    "invite",
                    landlord,
                    landlord=landlord,
                    tenant=tenant,
                    terms=terms,
                    bank_code="021000021",
                    account_number="000123456789",
                )
                raise RuntimeError("abort")

        with session_scope() as sess:
            assert ContractLedger(sess).query(landlord) == []
