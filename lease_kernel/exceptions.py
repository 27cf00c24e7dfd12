"""
Typed Exception Hierarchy for the Lease Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the contract ledger must be able to tell a forbidden operation
from a bad payment date from a lost race, without parsing message strings.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        ledger.pay_rent(ref, actor=tenant, new_date=date(2021, 1, 20))
    except DuplicatePaymentError as e:
        log.warning(f"Already paid for {e.new_date:%Y-%m}")
    except StaleVersionError as e:
        ref = selector.current_ref(e.contract_id)   # refetch and resubmit

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LeaseKernelError (base)
    |
    +-- AuthorizationError
    |
    +-- PreconditionError
    |   +-- DuplicatePaymentError
    |   +-- NonAdvancingDateError
    |   +-- InvalidContractFieldsError
    |
    +-- ConcurrencyError
    |   +-- StaleVersionError
    |
    +-- ContractError
    |   +-- ContractNotFoundError
    |   +-- ContractKindMismatchError
    |   +-- UnknownOperationError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Authorization   | UNAUTHORIZED                | Caller is not the party the operation
                |                             | requires, or a signatory did not authorize
----------------|-----------------------------|-----------------------------------------
Precondition    | DUPLICATE_PAYMENT           | Payment date in the month already paid
                | NON_ADVANCING_DATE          | Payment date not after last payment
                | INVALID_CONTRACT_FIELDS     | landlord == tenant, empty bank routing,
                |                             | negative amounts in the terms
----------------|-----------------------------|-----------------------------------------
Concurrency     | STALE_VERSION               | Reference already archived or superseded
----------------|-----------------------------|-----------------------------------------
Contract        | CONTRACT_NOT_FOUND          | No instance for the reference
                | CONTRACT_KIND_MISMATCH      | Reference points at another contract kind
                | UNKNOWN_OPERATION           | exercise() called with an unknown name
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Modifying or deleting a ledger record

===============================================================================
HANDLING PATTERNS
===============================================================================

1. No error is retried automatically.  The caller recomputes its inputs
   (fetches the current version, picks a valid date) and resubmits.

2. "No payment due" from GetRentDue is NOT an error -- it is a ``None``
   result.  Only PayRent turns it into a PreconditionError.

3. Every error aborts the enclosing savepoint, so a caught error never
   leaves a half-applied transaction behind.

===============================================================================
"""

from __future__ import annotations

from datetime import date


class LeaseKernelError(Exception):
    """
    Base exception for all lease kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEASE_KERNEL_ERROR"


# Authorization


class AuthorizationError(LeaseKernelError):
    """Caller identity does not match the party the operation requires."""

    code: str = "UNAUTHORIZED"

    def __init__(self, actor: str, operation: str, contract_kind: str, reason: str):
        self.actor = actor
        self.operation = operation
        self.contract_kind = contract_kind
        self.reason = reason
        super().__init__(
            f"{actor} may not {operation} on {contract_kind}: {reason}"
        )


# Preconditions


class PreconditionError(LeaseKernelError):
    """Base exception for rejected operation inputs."""

    code: str = "PRECONDITION_FAILED"


class DuplicatePaymentError(PreconditionError):
    """A payment is already recorded for the calendar month of new_date."""

    code: str = "DUPLICATE_PAYMENT"

    def __init__(self, new_date: date, last_payment_date: date):
        self.new_date = new_date
        self.last_payment_date = last_payment_date
        super().__init__(
            f"Payment for {new_date:%Y-%m} already recorded "
            f"(last payment {last_payment_date.isoformat()})"
        )


class NonAdvancingDateError(PreconditionError):
    """Payment date is not strictly after the last recorded payment date."""

    code: str = "NON_ADVANCING_DATE"

    def __init__(self, new_date: date, last_payment_date: date):
        self.new_date = new_date
        self.last_payment_date = last_payment_date
        super().__init__(
            f"Payment date {new_date.isoformat()} is not after "
            f"last payment date {last_payment_date.isoformat()}"
        )


class InvalidContractFieldsError(PreconditionError):
    """Contract fields violate the contract's construction invariants."""

    code: str = "INVALID_CONTRACT_FIELDS"

    def __init__(self, contract_kind: str, field: str, reason: str):
        self.contract_kind = contract_kind
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {contract_kind}.{field}: {reason}")


# Concurrency


class ConcurrencyError(LeaseKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class StaleVersionError(ConcurrencyError):
    """
    Reference targets a version that is archived or no longer current.

    Optimistic concurrency: at most one version of a logical contract is
    active, and only that version may be exercised.
    """

    code: str = "STALE_VERSION"

    def __init__(
        self,
        contract_id: str,
        version: int,
        current_version: int | None = None,
    ):
        self.contract_id = contract_id
        self.version = version
        self.current_version = current_version
        detail = (
            f"current version is {current_version}"
            if current_version is not None
            else "contract is no longer active"
        )
        super().__init__(
            f"Stale reference to contract {contract_id} version {version}: {detail}"
        )


# Contract lookup


class ContractError(LeaseKernelError):
    """Base exception for contract lookup errors."""

    code: str = "CONTRACT_ERROR"


class ContractNotFoundError(ContractError):
    """No contract instance exists for the reference."""

    code: str = "CONTRACT_NOT_FOUND"

    def __init__(self, contract_id: str, version: int | None = None):
        self.contract_id = contract_id
        self.version = version
        suffix = f" version {version}" if version is not None else ""
        super().__init__(f"Contract not found: {contract_id}{suffix}")


class ContractKindMismatchError(ContractError):
    """Reference points at a contract of a different kind than expected."""

    code: str = "CONTRACT_KIND_MISMATCH"

    def __init__(self, contract_id: str, expected: str, actual: str):
        self.contract_id = contract_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Contract {contract_id} is a {actual}, expected {expected}"
        )


class UnknownOperationError(ContractError):
    """exercise() was called with an operation name the ledger does not know."""

    code: str = "UNKNOWN_OPERATION"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unknown operation: {operation}")


# Immutability


class ImmutabilityError(LeaseKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only ledger record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
