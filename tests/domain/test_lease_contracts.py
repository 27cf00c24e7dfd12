"""
Tests for the contract templates and their construction invariants.
"""

from dataclasses import replace
from datetime import date
from uuid import uuid4

import pytest

from lease_kernel.domain.contracts import (
    CONTRACT_TYPES,
    ContractKind,
    ContractRef,
    PaymentLedgerEntry,
    RentalAgreement,
    RentalProposal,
    contract_from_payload,
)
from lease_kernel.domain.values import Currency, Party, RentalTerms
from lease_kernel.exceptions import InvalidContractFieldsError

LANDLORD = Party("landlord-1")
TENANT = Party("tenant-1")

TERMS = RentalTerms(
    rent_amount=800,
    currency=Currency.EUR,
    lease_period_months=6,
    start_date=date(2021, 1, 1),
    late_penalty_percent=10,
    break_penalty_months=1,
)

AGREEMENT_REF = ContractRef(ContractKind.RENTAL_AGREEMENT, uuid4(), 7)


def _ledger(**overrides) -> PaymentLedgerEntry:
    data = dict(
        agreement_ref=AGREEMENT_REF,
        landlord=LANDLORD,
        tenant=TENANT,
        bank_code="021000021",
        account_number="000123456789",
        last_payment_date=date(2020, 12, 31),
    )
    data.update(overrides)
    return PaymentLedgerEntry(**data)


class TestKinds:

    def test_each_template_declares_its_kind(self):
        for kind, cls in CONTRACT_TYPES.items():
            assert cls.KIND is kind

    def test_ref_payload(self):
        payload = AGREEMENT_REF.to_payload()
        assert payload["kind"] == "rental_agreement"
        assert ContractRef.from_payload(payload) == AGREEMENT_REF


class TestRentalProposal:

    def test_same_party_allowed_at_invite(self):
        proposal = RentalProposal(LANDLORD, LANDLORD, TERMS, "1", "2")
        assert proposal.landlord == proposal.tenant

    @pytest.mark.parametrize("field", ["bank_code", "account_number"])
    def test_bank_details_required(self, field):
        details = {"bank_code": "021000021", "account_number": "000123456789"}
        details[field] = ""
        with pytest.raises(InvalidContractFieldsError) as exc_info:
            RentalProposal(LANDLORD, TENANT, TERMS, **details)
        assert exc_info.value.contract_kind == "rental_proposal"
        assert exc_info.value.field == field

    def test_payload_rebuilds_contract(self):
        proposal = RentalProposal(LANDLORD, TENANT, TERMS, "021000021", "000123456789")
        rebuilt = contract_from_payload(ContractKind.RENTAL_PROPOSAL, proposal.to_payload())
        assert rebuilt == proposal


class TestRentalAgreement:

    def test_landlord_must_differ_from_tenant(self):
        with pytest.raises(InvalidContractFieldsError) as exc_info:
            RentalAgreement(LANDLORD, LANDLORD, TERMS)
        assert exc_info.value.contract_kind == "rental_agreement"
        assert exc_info.value.field == "tenant"

    def test_terms_copied_by_value(self):
        agreement = RentalAgreement(LANDLORD, TENANT, TERMS)
        rebuilt = contract_from_payload(ContractKind.RENTAL_AGREEMENT, agreement.to_payload())
        assert rebuilt.terms == TERMS


class TestPaymentLedgerEntry:

    def test_fresh_ledger_has_zero_totals(self):
        ledger = _ledger()
        assert ledger.rent_this_period == 0
        assert ledger.penalty_this_period == 0
        assert ledger.total_paid_to_date == 0

    def test_landlord_must_differ_from_tenant(self):
        with pytest.raises(InvalidContractFieldsError):
            _ledger(tenant=LANDLORD)

    @pytest.mark.parametrize("field", ["bank_code", "account_number"])
    def test_bank_details_required(self, field):
        with pytest.raises(InvalidContractFieldsError) as exc_info:
            _ledger(**{field: ""})
        assert exc_info.value.field == field

    def test_whitespace_bank_details_kept_verbatim(self):
        ledger = _ledger(bank_code=" ")
        assert ledger.bank_code == " "

    def test_successor_via_replace_revalidates(self):
        ledger = _ledger()
        successor = replace(
            ledger,
            last_payment_date=date(2021, 1, 4),
            rent_this_period=800,
            total_paid_to_date=800,
        )
        assert successor.bank_code == ledger.bank_code
        with pytest.raises(InvalidContractFieldsError):
            replace(ledger, bank_code="")

    def test_payload_rebuilds_contract(self):
        ledger = _ledger(total_paid_to_date=2640)
        rebuilt = contract_from_payload(ContractKind.PAYMENT_LEDGER, ledger.to_payload())
        assert rebuilt == ledger
        assert rebuilt.agreement_ref == AGREEMENT_REF
