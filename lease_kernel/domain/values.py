"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the value types embedded in every lease contract: Party,
    Currency and RentalTerms.  Terms are copied by value into each contract
    that carries them and are never mutated afterwards.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module.

Invariants enforced:
    - Party identifiers are non-empty strings.
    - RentalTerms amounts, percentages and month counts are non-negative;
      the lease period is at least one month.

Failure modes:
    - ValueError on an empty party identifier.
    - InvalidContractFieldsError on out-of-range terms.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from lease_kernel.exceptions import InvalidContractFieldsError


@dataclass(frozen=True, slots=True)
class Party:
    """
    Opaque ledger identity (landlord, tenant).

    Contract:
        Identity and authentication belong to the ledger's environment; the
        kernel only compares parties for equality.
    """

    party_id: str

    def __post_init__(self) -> None:
        normalized = self.party_id.strip() if self.party_id else ""
        if not normalized:
            raise ValueError("Party identifier must be a non-empty string")
        object.__setattr__(self, "party_id", normalized)

    def __str__(self) -> str:
        return self.party_id

    def __repr__(self) -> str:
        return f"Party({self.party_id!r})"


class Currency(str, Enum):
    """Currencies a lease may be denominated in."""

    USD = "USD"
    EUR = "EUR"


@dataclass(frozen=True, slots=True)
class RentalTerms:
    """
    Lease terms proposed by the landlord and fixed by the agreement.

    Contract:
        Pairs the monthly rent with its currency and the penalty policy.
        Rent and penalties are whole currency units (integers).

    Guarantees:
        - Immutable and hashable.
        - ``to_payload``/``from_payload`` round-trip through JSON-safe dicts.
    """

    rent_amount: int
    currency: Currency
    lease_period_months: int
    start_date: date
    late_penalty_percent: int
    break_penalty_months: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", Currency(self.currency))
        for field_name in ("rent_amount", "late_penalty_percent", "break_penalty_months"):
            value = getattr(self, field_name)
            if value < 0:
                raise InvalidContractFieldsError(
                    "RentalTerms", field_name, f"must be non-negative, got {value}"
                )
        if self.lease_period_months < 1:
            raise InvalidContractFieldsError(
                "RentalTerms",
                "lease_period_months",
                f"must be at least 1, got {self.lease_period_months}",
            )

    def to_payload(self) -> dict[str, Any]:
        return {
            "rent_amount": self.rent_amount,
            "currency": self.currency.value,
            "lease_period_months": self.lease_period_months,
            "start_date": self.start_date.isoformat(),
            "late_penalty_percent": self.late_penalty_percent,
            "break_penalty_months": self.break_penalty_months,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> RentalTerms:
        return cls(
            rent_amount=data["rent_amount"],
            currency=Currency(data["currency"]),
            lease_period_months=data["lease_period_months"],
            start_date=date.fromisoformat(data["start_date"]),
            late_penalty_percent=data["late_penalty_percent"],
            break_penalty_months=data["break_penalty_months"],
        )
