"""
Pure domain layer.

This module contains the lease contract templates, the payment calculator
and the authorization rules, with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock interface)
- I/O

All domain objects are immutable and deterministic.
"""

from lease_kernel.domain.authority import (
    OPERATION_RULES,
    Operation,
    authorize,
    require_authorized,
    require_signatories,
    transaction_authorizers,
)
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
from lease_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from lease_kernel.domain.contracts import (
    Contract,
    ContractKind,
    ContractRef,
    PaymentLedgerEntry,
    RentalAgreement,
    RentalProposal,
    contract_from_payload,
)
from lease_kernel.domain.values import Currency, Party, RentalTerms
from lease_kernel.domain.workflow import (
    PAYMENT_LEDGER_WORKFLOW,
    RENTAL_WORKFLOW,
    LedgerState,
    RentalState,
    Transition,
    Workflow,
)

__all__ = [
    # Value objects
    "Currency",
    "Party",
    "RentalTerms",
    # Contracts
    "Contract",
    "ContractKind",
    "ContractRef",
    "PaymentLedgerEntry",
    "RentalAgreement",
    "RentalProposal",
    "contract_from_payload",
    # Calculator
    "DEFAULT_PAYMENT_POLICY",
    "PaymentDue",
    "PaymentPolicy",
    "PaymentRejection",
    "calculate_payment_due",
    "initial_payment_sentinel",
    "months_elapsed",
    "payment_rejection_reason",
    # Authority
    "OPERATION_RULES",
    "Operation",
    "authorize",
    "require_authorized",
    "require_signatories",
    "transaction_authorizers",
    # Workflow
    "PAYMENT_LEDGER_WORKFLOW",
    "RENTAL_WORKFLOW",
    "LedgerState",
    "RentalState",
    "Transition",
    "Workflow",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
]
