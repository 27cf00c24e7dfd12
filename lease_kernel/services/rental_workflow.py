"""
RentalWorkflowService -- the proposal lifecycle of a lease.

Responsibility:
    Landlord invites a tenant with a RentalProposal; the tenant inspects it
    and then accepts (creating the RentalAgreement and the initial
    PaymentLedgerEntry) or rejects it.  The tenant may inspect the agreement
    afterwards.

Architecture position:
    Kernel > Services -- imperative shell over ContractStore and the pure
    domain (authority, workflow, calculator).

Invariants enforced:
    - Every operation checks the caller's authority before touching state.
    - Proposal exclusivity: accept and reject both archive the proposal, so
      at most one of them succeeds for a given proposal version.
    - Accept is atomic: agreement, initial ledger and proposal archive are
      recorded in one savepoint, or none of them is.
    - The initial ledger's last payment date is a sentinel strictly before
      the lease start, with zeroed totals.

Failure modes:
    - AuthorizationError: caller is not the controlling party.
    - StaleVersionError: the proposal was already accepted or rejected.
    - InvalidContractFieldsError: empty bank details at invite, or landlord
      equals tenant at accept.
"""

from __future__ import annotations

from typing import NamedTuple

from sqlalchemy.orm import Session

from lease_kernel.domain.authority import (
    Operation,
    require_authorized,
    transaction_authorizers,
)
from lease_kernel.domain.calculator import (
    DEFAULT_PAYMENT_POLICY,
    PaymentPolicy,
    initial_payment_sentinel,
)
from lease_kernel.domain.clock import Clock
from lease_kernel.domain.contracts import (
    ContractKind,
    ContractRef,
    PaymentLedgerEntry,
    RentalAgreement,
    RentalProposal,
)
from lease_kernel.domain.values import Party, RentalTerms
from lease_kernel.domain.workflow import RENTAL_WORKFLOW, RentalState
from lease_kernel.exceptions import AuthorizationError, ContractKindMismatchError
from lease_kernel.logging_config import get_logger
from lease_kernel.models.contract_instance import ContractInstance
from lease_kernel.selectors.contract_selector import ContractSelector
from lease_kernel.services.base import BaseService
from lease_kernel.services.contract_store import ContractStore

logger = get_logger("services.rental_workflow")


class AcceptResult(NamedTuple):
    """References created by accepting a proposal."""

    agreement_ref: ContractRef
    ledger_ref: ContractRef


class RentalWorkflowService(BaseService[ContractInstance]):
    """
    Invite / Inspect / Accept / Reject over rental proposals.

    Non-goals:
        - Does NOT commit; the caller owns the outer transaction.
        - Does NOT retry on StaleVersionError.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: PaymentPolicy = DEFAULT_PAYMENT_POLICY,
        store: ContractStore | None = None,
    ):
        super().__init__(session)
        self._policy = policy
        self._store = store or ContractStore(session, clock=clock)
        self._selector = ContractSelector(session)

    def invite(
        self,
        actor: Party,
        landlord: Party,
        tenant: Party,
        terms: RentalTerms,
        bank_code: str,
        account_number: str,
    ) -> ContractRef:
        """
        Landlord offers ``terms`` to ``tenant``.

        ``bank_code`` and ``account_number`` are the landlord's payment
        routing details; they are copied onto the payment ledger at accept.

        Raises:
            AuthorizationError: ``actor`` is not ``landlord``.
            InvalidContractFieldsError: ``bank_code`` or ``account_number``
                is empty.
        """
        proposal = RentalProposal(
            landlord=landlord,
            tenant=tenant,
            terms=terms,
            bank_code=bank_code,
            account_number=account_number,
        )
        require_authorized(actor, Operation.INVITE, proposal)

        with self.ledger_transaction(Operation.INVITE.value, actor) as transaction_id:
            ref = self._store.create(
                proposal,
                authorizers=transaction_authorizers(actor),
                operation=Operation.INVITE.value,
                transaction_id=transaction_id,
            )

        logger.info(
            "proposal_created",
            extra={
                "contract_id": str(ref.contract_id),
                "version": ref.version,
                "landlord": landlord.party_id,
                "tenant": tenant.party_id,
                "rent_amount": terms.rent_amount,
                "currency": terms.currency.value,
            },
        )
        return ref

    def inspect_proposal(self, ref: ContractRef, actor: Party) -> RentalTerms:
        """Tenant reads the proposed terms.  Repeatable while proposed."""
        proposal = self._store.fetch(ref, ContractKind.RENTAL_PROPOSAL)
        require_authorized(actor, Operation.INSPECT_PROPOSAL, proposal)
        return proposal.terms

    def accept(self, ref: ContractRef, actor: Party) -> AcceptResult:
        """
        Tenant accepts the proposal.

        Records the agreement and the initial payment ledger, and archives
        the proposal, as one atomic unit.

        Raises:
            AuthorizationError: ``actor`` is not the proposal's tenant.
            StaleVersionError: The proposal was already accepted or rejected.
            InvalidContractFieldsError: Landlord and tenant are the same party.
        """
        with self.ledger_transaction(
            Operation.ACCEPT.value, actor, ref.contract_id
        ) as transaction_id:
            proposal = self._store.fetch(ref, ContractKind.RENTAL_PROPOSAL)
            require_authorized(actor, Operation.ACCEPT, proposal)
            transition = RENTAL_WORKFLOW.require_transition(
                RentalState.PROPOSED, Operation.ACCEPT.value
            )
            authorizers = transaction_authorizers(actor, proposal)

            agreement = RentalAgreement(
                landlord=proposal.landlord,
                tenant=proposal.tenant,
                terms=proposal.terms,
            )

            if transition.archives_source:
                self._store.archive(
                    ref,
                    operation=transition.action,
                    transaction_id=transaction_id,
                )
            agreement_ref = self._store.create(
                agreement,
                authorizers=authorizers,
                operation=Operation.ACCEPT.value,
                transaction_id=transaction_id,
            )
            ledger = PaymentLedgerEntry(
                agreement_ref=agreement_ref,
                landlord=proposal.landlord,
                tenant=proposal.tenant,
                bank_code=proposal.bank_code,
                account_number=proposal.account_number,
                last_payment_date=initial_payment_sentinel(proposal.terms, self._policy),
            )
            ledger_ref = self._store.create(
                ledger,
                authorizers=authorizers,
                operation=Operation.ACCEPT.value,
                transaction_id=transaction_id,
            )

        logger.info(
            "proposal_accepted",
            extra={
                "proposal_id": str(ref.contract_id),
                "agreement_id": str(agreement_ref.contract_id),
                "ledger_id": str(ledger_ref.contract_id),
                "last_payment_date": ledger.last_payment_date,
            },
        )
        return AcceptResult(agreement_ref=agreement_ref, ledger_ref=ledger_ref)

    def reject(self, ref: ContractRef, actor: Party) -> None:
        """
        Tenant rejects the proposal.  No agreement or ledger is created.

        Raises:
            AuthorizationError: ``actor`` is not the proposal's tenant.
            StaleVersionError: The proposal was already accepted or rejected.
        """
        with self.ledger_transaction(
            Operation.REJECT.value, actor, ref.contract_id
        ) as transaction_id:
            proposal = self._store.fetch(ref, ContractKind.RENTAL_PROPOSAL)
            require_authorized(actor, Operation.REJECT, proposal)
            transition = RENTAL_WORKFLOW.require_transition(
                RentalState.PROPOSED, Operation.REJECT.value
            )
            if transition.archives_source:
                self._store.archive(
                    ref,
                    operation=transition.action,
                    transaction_id=transaction_id,
                )

        logger.info("proposal_rejected", extra={"proposal_id": str(ref.contract_id)})

    def inspect_agreement(self, ref: ContractRef, actor: Party) -> RentalTerms:
        """Tenant reads the agreed terms."""
        agreement = self._store.fetch(ref, ContractKind.RENTAL_AGREEMENT)
        require_authorized(actor, Operation.INSPECT_AGREEMENT, agreement)
        return agreement.terms

    def proposal_status(self, ref: ContractRef, actor: Party) -> str:
        """
        Workflow state of a proposal version: proposed, agreed or rejected.

        Either party to the proposal may ask.  Works on archived versions.

        Raises:
            ContractNotFoundError: No such proposal version.
            ContractKindMismatchError: ``ref`` is not a proposal.
            AuthorizationError: ``actor`` is neither landlord nor tenant.
        """
        record = self._selector.get_record(ref)
        if record.ref.kind != ContractKind.RENTAL_PROPOSAL:
            raise ContractKindMismatchError(
                str(ref.contract_id),
                ContractKind.RENTAL_PROPOSAL.value,
                record.ref.kind.value,
            )
        if actor not in record.stakeholders:
            raise AuthorizationError(
                actor=actor.party_id,
                operation="proposal_status",
                contract_kind=record.ref.kind.value,
                reason="only the landlord or tenant may read the proposal status",
            )

        if record.is_active:
            return RentalState.PROPOSED

        transition = RENTAL_WORKFLOW.transition_for(
            RentalState.PROPOSED, record.archived_by_operation
        )
        if transition is None:
            raise ValueError(
                f"Proposal {ref.contract_id} archived by unknown operation "
                f"{record.archived_by_operation!r}"
            )
        return transition.to_state
