"""
Contract templates (``lease_kernel.domain.contracts``).

Responsibility
--------------
Pure value objects for the three contract kinds that live on the ledger:
RentalProposal, RentalAgreement and PaymentLedgerEntry.  Each declares its
signatories (parties whose authority is required to create it) and its
observers (parties with read and respond authority), as two disjoint role
collections.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Contracts refer
to one another only through ``ContractRef`` values, never live pointers.

Invariants enforced
-------------------
* RentalAgreement: ``landlord != tenant``.
* RentalProposal: ``bank_code != ""``, ``account_number != ""``, so empty
  routing details are refused at invite.  Landlord/tenant equality is
  detected when the Agreement is created.
* PaymentLedgerEntry: ``landlord != tenant``, ``bank_code != ""``,
  ``account_number != ""``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID

from lease_kernel.domain.values import Party, RentalTerms
from lease_kernel.exceptions import InvalidContractFieldsError


class ContractKind(str, Enum):
    """Tagged union of the contract templates stored on the ledger."""

    RENTAL_PROPOSAL = "rental_proposal"
    RENTAL_AGREEMENT = "rental_agreement"
    PAYMENT_LEDGER = "payment_ledger"


@dataclass(frozen=True)
class ContractRef:
    """Reference to one version of a logical contract.

    A reference is stale once ``version`` no longer equals the logical
    contract's current-version pointer, or once that version is archived.
    """

    kind: ContractKind
    contract_id: UUID
    version: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "contract_id": str(self.contract_id),
            "version": self.version,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> ContractRef:
        return cls(
            kind=ContractKind(data["kind"]),
            contract_id=UUID(data["contract_id"]),
            version=int(data["version"]),
        )


def _require_distinct_parties(kind: ContractKind, landlord: Party, tenant: Party) -> None:
    if landlord == tenant:
        raise InvalidContractFieldsError(
            kind.value, "tenant", f"tenant must differ from landlord ({landlord})"
        )


def _require_non_empty(kind: ContractKind, field: str, value: str) -> None:
    if not value:
        raise InvalidContractFieldsError(kind.value, field, "must not be empty")


@dataclass(frozen=True)
class RentalProposal:
    """Lease terms offered by the landlord to one tenant.

    The landlord's bank routing details travel with the proposal so the
    payment ledger created on acceptance is populated by the landlord, never
    by the tenant.
    """

    KIND: ClassVar[ContractKind] = ContractKind.RENTAL_PROPOSAL

    landlord: Party
    tenant: Party
    terms: RentalTerms
    bank_code: str
    account_number: str

    def __post_init__(self) -> None:
        _require_non_empty(self.KIND, "bank_code", self.bank_code)
        _require_non_empty(self.KIND, "account_number", self.account_number)

    @property
    def signatories(self) -> tuple[Party, ...]:
        return (self.landlord,)

    @property
    def observers(self) -> tuple[Party, ...]:
        return (self.tenant,)

    def to_payload(self) -> dict[str, Any]:
        return {
            "landlord": self.landlord.party_id,
            "tenant": self.tenant.party_id,
            "terms": self.terms.to_payload(),
            "bank_code": self.bank_code,
            "account_number": self.account_number,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> RentalProposal:
        return cls(
            landlord=Party(data["landlord"]),
            tenant=Party(data["tenant"]),
            terms=RentalTerms.from_payload(data["terms"]),
            bank_code=data["bank_code"],
            account_number=data["account_number"],
        )


@dataclass(frozen=True)
class RentalAgreement:
    """Accepted lease.  Landlord signs; the tenant observes but never alters."""

    KIND: ClassVar[ContractKind] = ContractKind.RENTAL_AGREEMENT

    landlord: Party
    tenant: Party
    terms: RentalTerms

    def __post_init__(self) -> None:
        _require_distinct_parties(self.KIND, self.landlord, self.tenant)

    @property
    def signatories(self) -> tuple[Party, ...]:
        return (self.landlord,)

    @property
    def observers(self) -> tuple[Party, ...]:
        return (self.tenant,)

    def to_payload(self) -> dict[str, Any]:
        return {
            "landlord": self.landlord.party_id,
            "tenant": self.tenant.party_id,
            "terms": self.terms.to_payload(),
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> RentalAgreement:
        return cls(
            landlord=Party(data["landlord"]),
            tenant=Party(data["tenant"]),
            terms=RentalTerms.from_payload(data["terms"]),
        )


@dataclass(frozen=True)
class PaymentLedgerEntry:
    """One version of the rent payment record attached to an agreement.

    The landlord signs every version, so bank routing details can only be
    carried forward, never rewritten, by a tenant-initiated payment.
    """

    KIND: ClassVar[ContractKind] = ContractKind.PAYMENT_LEDGER

    agreement_ref: ContractRef
    landlord: Party
    tenant: Party
    bank_code: str
    account_number: str
    last_payment_date: date
    rent_this_period: int = 0
    penalty_this_period: int = 0
    total_paid_to_date: int = 0

    def __post_init__(self) -> None:
        _require_distinct_parties(self.KIND, self.landlord, self.tenant)
        _require_non_empty(self.KIND, "bank_code", self.bank_code)
        _require_non_empty(self.KIND, "account_number", self.account_number)

    @property
    def signatories(self) -> tuple[Party, ...]:
        return (self.landlord,)

    @property
    def observers(self) -> tuple[Party, ...]:
        return (self.tenant,)

    def to_payload(self) -> dict[str, Any]:
        return {
            "agreement_ref": self.agreement_ref.to_payload(),
            "landlord": self.landlord.party_id,
            "tenant": self.tenant.party_id,
            "bank_code": self.bank_code,
            "account_number": self.account_number,
            "last_payment_date": self.last_payment_date.isoformat(),
            "rent_this_period": self.rent_this_period,
            "penalty_this_period": self.penalty_this_period,
            "total_paid_to_date": self.total_paid_to_date,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> PaymentLedgerEntry:
        return cls(
            agreement_ref=ContractRef.from_payload(data["agreement_ref"]),
            landlord=Party(data["landlord"]),
            tenant=Party(data["tenant"]),
            bank_code=data["bank_code"],
            account_number=data["account_number"],
            last_payment_date=date.fromisoformat(data["last_payment_date"]),
            rent_this_period=data["rent_this_period"],
            penalty_this_period=data["penalty_this_period"],
            total_paid_to_date=data["total_paid_to_date"],
        )


Contract = RentalProposal | RentalAgreement | PaymentLedgerEntry

CONTRACT_TYPES: dict[ContractKind, type[RentalProposal] | type[RentalAgreement] | type[PaymentLedgerEntry]] = {
    ContractKind.RENTAL_PROPOSAL: RentalProposal,
    ContractKind.RENTAL_AGREEMENT: RentalAgreement,
    ContractKind.PAYMENT_LEDGER: PaymentLedgerEntry,
}


def contract_from_payload(kind: ContractKind, payload: dict[str, Any]) -> Contract:
    """Rebuild the domain contract for a stored payload."""
    return CONTRACT_TYPES[ContractKind(kind)].from_payload(payload)
