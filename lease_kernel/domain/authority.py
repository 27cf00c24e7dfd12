"""
ContractAuthority -- who may exercise which operation on which contract.

Responsibility:
    Pure authorization checks, invoked explicitly before every operation.
    Two questions are answered here:

    1. Controller check: is the calling identity the party named by the
       operation's controlling role field (``landlord`` or ``tenant``) on
       the target contract?
    2. Signatory check: is every signatory of a contract about to be
       created among the transaction's authorizers (the exercising party
       plus the signatories of the exercised contract)?

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Authority matrix:

    Operation          | Contract kind     | Controller
    -------------------|-------------------|-----------
    invite             | rental_proposal   | landlord
    inspect_proposal   | rental_proposal   | tenant
    accept             | rental_proposal   | tenant
    reject             | rental_proposal   | tenant
    inspect_agreement  | rental_agreement  | tenant
    get_rent_due       | payment_ledger    | tenant
    pay_rent           | payment_ledger    | tenant
    payment_history    | payment_ledger    | landlord or tenant

Failure modes:
    - AuthorizationError from ``require_authorized`` / ``require_signatories``.
      A rejected check never leaves a partial mutation behind.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from lease_kernel.domain.contracts import Contract, ContractKind
from lease_kernel.domain.values import Party
from lease_kernel.exceptions import AuthorizationError
from lease_kernel.logging_config import get_logger

logger = get_logger("domain.authority")


class Operation(str, Enum):
    """Operations the ledger can exercise."""

    INVITE = "invite"
    INSPECT_PROPOSAL = "inspect_proposal"
    ACCEPT = "accept"
    REJECT = "reject"
    INSPECT_AGREEMENT = "inspect_agreement"
    GET_RENT_DUE = "get_rent_due"
    PAY_RENT = "pay_rent"
    PAYMENT_HISTORY = "payment_history"


@dataclass(frozen=True)
class OperationRule:
    """Contract kind an operation applies to and the role fields that control it."""

    kind: ContractKind
    controllers: tuple[str, ...]


OPERATION_RULES: dict[Operation, OperationRule] = {
    Operation.INVITE: OperationRule(ContractKind.RENTAL_PROPOSAL, ("landlord",)),
    Operation.INSPECT_PROPOSAL: OperationRule(ContractKind.RENTAL_PROPOSAL, ("tenant",)),
    Operation.ACCEPT: OperationRule(ContractKind.RENTAL_PROPOSAL, ("tenant",)),
    Operation.REJECT: OperationRule(ContractKind.RENTAL_PROPOSAL, ("tenant",)),
    Operation.INSPECT_AGREEMENT: OperationRule(ContractKind.RENTAL_AGREEMENT, ("tenant",)),
    Operation.GET_RENT_DUE: OperationRule(ContractKind.PAYMENT_LEDGER, ("tenant",)),
    Operation.PAY_RENT: OperationRule(ContractKind.PAYMENT_LEDGER, ("tenant",)),
    Operation.PAYMENT_HISTORY: OperationRule(
        ContractKind.PAYMENT_LEDGER, ("landlord", "tenant")
    ),
}


def authorize(identity: Party, operation: Operation, contract: Contract) -> bool:
    """Return True when ``identity`` controls ``operation`` on ``contract``."""
    rule = OPERATION_RULES[Operation(operation)]
    if contract.KIND != rule.kind:
        return False
    return any(getattr(contract, role) == identity for role in rule.controllers)


def require_authorized(identity: Party, operation: Operation, contract: Contract) -> None:
    """
    Raise AuthorizationError unless ``identity`` controls ``operation``.

    Raises:
        AuthorizationError: caller is not the required party, or the
            operation does not apply to this contract kind.
    """
    operation = Operation(operation)
    if authorize(identity, operation, contract):
        return

    rule = OPERATION_RULES[operation]
    if contract.KIND != rule.kind:
        reason = f"operation applies to {rule.kind.value} contracts only"
    else:
        reason = f"only the {' or '.join(rule.controllers)} may {operation.value}"

    logger.warning(
        "authorization_denied",
        extra={
            "actor": identity.party_id,
            "denied_operation": operation.value,
            "contract_kind": contract.KIND.value,
            "reason": reason,
        },
    )
    raise AuthorizationError(
        actor=identity.party_id,
        operation=operation.value,
        contract_kind=contract.KIND.value,
        reason=reason,
    )


def transaction_authorizers(actor: Party, exercised: Contract | None = None) -> frozenset[Party]:
    """Parties whose authority a transaction carries.

    The exercising party always authorizes; exercising an operation on a
    contract additionally carries the authority of that contract's
    signatories.
    """
    parties = {actor}
    if exercised is not None:
        parties.update(exercised.signatories)
    return frozenset(parties)


def require_signatories(contract: Contract, authorizers: Iterable[Party]) -> None:
    """
    Raise AuthorizationError unless every signatory of ``contract`` authorized.

    Raises:
        AuthorizationError: a signatory is missing from ``authorizers``.
    """
    granted = frozenset(authorizers)
    missing = [p for p in contract.signatories if p not in granted]
    if not missing:
        return

    names = ", ".join(p.party_id for p in missing)
    logger.warning(
        "signatory_authorization_missing",
        extra={
            "contract_kind": contract.KIND.value,
            "missing_signatories": [p.party_id for p in missing],
        },
    )
    raise AuthorizationError(
        actor=", ".join(sorted(p.party_id for p in granted)),
        operation="create",
        contract_kind=contract.KIND.value,
        reason=f"missing authorization from signatory {names}",
    )
