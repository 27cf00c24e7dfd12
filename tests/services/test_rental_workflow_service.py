"""
Tests for RentalWorkflowService: invite, inspect, accept, reject.

Covers:
- Controller checks on every operation
- Accept creates the agreement and the initial ledger atomically
- Proposal exclusivity (accept xor reject)
- Derived proposal status
"""

from datetime import date

import pytest

from lease_kernel.domain.contracts import ContractKind, PaymentLedgerEntry, RentalAgreement
from lease_kernel.domain.workflow import RentalState
from lease_kernel.exceptions import (
    AuthorizationError,
    ContractKindMismatchError,
    InvalidContractFieldsError,
    StaleVersionError,
)
from lease_kernel.selectors.contract_selector import ContractSelector

BANK_CODE = "021000021"
ACCOUNT_NUMBER = "000123456789"


class TestInvite:

    def test_landlord_invites(self, proposal_ref, store, landlord, tenant, terms):
        proposal = store.fetch(proposal_ref)
        assert proposal_ref.kind is ContractKind.RENTAL_PROPOSAL
        assert proposal.landlord == landlord
        assert proposal.tenant == tenant
        assert proposal.terms == terms
        assert proposal.bank_code == BANK_CODE

    def test_tenant_cannot_invite(self, invite, tenant, store):
        with pytest.raises(AuthorizationError) as exc_info:
            invite(actor=tenant)
        assert exc_info.value.operation == "invite"
        assert store.query(tenant) == []

    @pytest.mark.parametrize("field", ["bank_code", "account_number"])
    def test_empty_bank_details_refused(self, invite, field, store, landlord, tenant):
        with pytest.raises(InvalidContractFieldsError) as exc_info:
            invite(**{field: ""})
        assert exc_info.value.field == field
        assert store.query(landlord) == []
        assert store.query(tenant) == []

    def test_proposal_logged(self, invite, captured_logs):
        ref = invite()
        created = [r for r in captured_logs() if r["message"] == "proposal_created"]
        assert len(created) == 1
        assert created[0]["contract_id"] == str(ref.contract_id)
        assert created[0]["rent_amount"] == 800


class TestInspectProposal:

    def test_tenant_reads_terms(self, workflow, proposal_ref, tenant, terms):
        assert workflow.inspect_proposal(proposal_ref, tenant) == terms

    def test_repeatable(self, workflow, proposal_ref, tenant):
        first = workflow.inspect_proposal(proposal_ref, tenant)
        assert workflow.inspect_proposal(proposal_ref, tenant) == first

    def test_landlord_cannot_inspect(self, workflow, proposal_ref, landlord):
        with pytest.raises(AuthorizationError):
            workflow.inspect_proposal(proposal_ref, landlord)

    def test_not_after_accept(self, workflow, proposal_ref, accepted, tenant):
        with pytest.raises(StaleVersionError):
            workflow.inspect_proposal(proposal_ref, tenant)


class TestAccept:

    def test_creates_agreement_and_ledger(self, accepted, store, landlord, tenant, terms):
        agreement = store.fetch(accepted.agreement_ref)
        ledger = store.fetch(accepted.ledger_ref)

        assert isinstance(agreement, RentalAgreement)
        assert agreement.terms == terms
        assert isinstance(ledger, PaymentLedgerEntry)
        assert ledger.agreement_ref == accepted.agreement_ref
        assert ledger.landlord == landlord
        assert ledger.tenant == tenant
        assert ledger.bank_code == BANK_CODE
        assert ledger.account_number == ACCOUNT_NUMBER

    def test_initial_ledger_sentinel_and_zero_totals(self, accepted, store):
        ledger = store.fetch(accepted.ledger_ref)
        assert ledger.last_payment_date == date(2020, 12, 31)
        assert ledger.rent_this_period == 0
        assert ledger.penalty_this_period == 0
        assert ledger.total_paid_to_date == 0

    def test_proposal_archived(self, accepted, proposal_ref, session):
        record = ContractSelector(session).get_record(proposal_ref)
        assert not record.is_active
        assert record.archived_by_operation == "accept"

    def test_all_three_changes_share_one_transaction(self, accepted, proposal_ref, session):
        from lease_kernel.models.contract_instance import ContractInstance

        by_version = {
            i.version: i for i in session.query(ContractInstance).all()
        }
        proposal = by_version[proposal_ref.version]
        agreement = by_version[accepted.agreement_ref.version]
        ledger = by_version[accepted.ledger_ref.version]
        assert proposal.archived_in_transaction_id == agreement.transaction_id
        assert agreement.transaction_id == ledger.transaction_id

    def test_landlord_cannot_accept(self, workflow, proposal_ref, landlord, store):
        with pytest.raises(AuthorizationError):
            workflow.accept(proposal_ref, landlord)
        store.fetch(proposal_ref)  # still active

    def test_accept_twice_is_stale(self, workflow, proposal_ref, accepted, tenant):
        with pytest.raises(StaleVersionError):
            workflow.accept(proposal_ref, tenant)

    def test_self_lease_rejected_atomically(self, invite, workflow, landlord, store, session):
        ref = invite(tenant=landlord)

        with pytest.raises(InvalidContractFieldsError):
            workflow.accept(ref, landlord)

        # proposal still active; no agreement or ledger was recorded
        assert store.query(landlord) == [ref]

    def test_accept_logged(self, invite, workflow, tenant, captured_logs):
        ref = invite()
        workflow.accept(ref, tenant)
        logs = [r for r in captured_logs() if r["message"] == "proposal_accepted"]
        assert len(logs) == 1
        assert logs[0]["last_payment_date"] == "2020-12-31"


class TestReject:

    def test_reject_archives_without_agreement(self, workflow, proposal_ref, tenant, landlord, store):
        workflow.reject(proposal_ref, tenant)

        assert store.query(tenant) == []
        assert store.query(landlord) == []

    def test_landlord_cannot_reject(self, workflow, proposal_ref, landlord):
        with pytest.raises(AuthorizationError):
            workflow.reject(proposal_ref, landlord)

    def test_reject_after_accept_is_stale(self, workflow, proposal_ref, accepted, tenant):
        with pytest.raises(StaleVersionError):
            workflow.reject(proposal_ref, tenant)

    def test_accept_after_reject_is_stale(self, workflow, proposal_ref, tenant, store):
        workflow.reject(proposal_ref, tenant)

        with pytest.raises(StaleVersionError):
            workflow.accept(proposal_ref, tenant)
        assert store.query(tenant) == []


class TestInspectAgreement:

    def test_tenant_reads_terms(self, workflow, accepted, tenant, terms):
        assert workflow.inspect_agreement(accepted.agreement_ref, tenant) == terms

    def test_landlord_cannot_inspect(self, workflow, accepted, landlord):
        with pytest.raises(AuthorizationError):
            workflow.inspect_agreement(accepted.agreement_ref, landlord)

    def test_wrong_kind(self, workflow, accepted, tenant):
        with pytest.raises(ContractKindMismatchError):
            workflow.inspect_agreement(accepted.ledger_ref, tenant)


class TestProposalStatus:

    def test_proposed(self, workflow, proposal_ref, landlord, tenant):
        assert workflow.proposal_status(proposal_ref, landlord) == RentalState.PROPOSED
        assert workflow.proposal_status(proposal_ref, tenant) == RentalState.PROPOSED

    def test_agreed(self, workflow, proposal_ref, accepted, tenant):
        assert workflow.proposal_status(proposal_ref, tenant) == RentalState.AGREED

    def test_rejected(self, workflow, proposal_ref, tenant, landlord):
        workflow.reject(proposal_ref, tenant)
        assert workflow.proposal_status(proposal_ref, landlord) == RentalState.REJECTED

    def test_stranger_cannot_read(self, workflow, proposal_ref, stranger):
        with pytest.raises(AuthorizationError):
            workflow.proposal_status(proposal_ref, stranger)

    def test_not_a_proposal(self, workflow, accepted, tenant):
        with pytest.raises(ContractKindMismatchError):
            workflow.proposal_status(accepted.agreement_ref, tenant)
