"""
ContractLedger -- single entry point to the lease ledger.

Responsibility:
    Exercises any named operation on a contract reference as a calling
    party, and answers visibility queries.  Dispatches to
    RentalWorkflowService and PaymentLedgerService, which verify authority
    before acting and apply each operation's creates and archives as one
    atomic unit.

Architecture position:
    Kernel > Services -- facade.  Outer layers talk to the ledger through
    this class.

Failure modes:
    - UnknownOperationError: operation name is not a ledger operation.
    - Anything the dispatched operation raises, unchanged.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from lease_kernel.domain.authority import Operation
from lease_kernel.domain.calculator import DEFAULT_PAYMENT_POLICY, PaymentPolicy
from lease_kernel.domain.clock import Clock
from lease_kernel.domain.contracts import ContractRef
from lease_kernel.domain.values import Party
from lease_kernel.exceptions import UnknownOperationError
from lease_kernel.logging_config import LogContext, get_logger
from lease_kernel.models.contract_instance import ContractInstance
from lease_kernel.selectors.contract_selector import ContractRecord, ContractSelector
from lease_kernel.services.base import BaseService
from lease_kernel.services.contract_store import ContractStore
from lease_kernel.services.payment_ledger import PaymentLedgerService
from lease_kernel.services.rental_workflow import RentalWorkflowService

logger = get_logger("services.contract_ledger")


class ContractLedger(BaseService[ContractInstance]):
    """
    Named-operation dispatcher over the lease services.

    Usage:
        ledger = ContractLedger(session, clock=clock)
        proposal = ledger.exercise(
            None, "invite", landlord,
            landlord=landlord, tenant=tenant, terms=terms,
            bank_code="021000021", account_number="12345678",
        )
        accepted = ledger.exercise(proposal, "accept", tenant)
        ledger.exercise(accepted.ledger_ref, "pay_rent", tenant,
                        new_date=date(2021, 1, 4))
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: PaymentPolicy = DEFAULT_PAYMENT_POLICY,
    ):
        super().__init__(session)
        self.store = ContractStore(session, clock=clock)
        self.workflow = RentalWorkflowService(session, policy=policy, store=self.store)
        self.payments = PaymentLedgerService(
            session, policy=policy, store=self.store, workflow=self.workflow
        )
        self._selector = ContractSelector(session)

        self._handlers: dict[Operation, Callable[..., Any]] = {
            Operation.INVITE: self._invite,
            Operation.INSPECT_PROPOSAL: self.workflow.inspect_proposal,
            Operation.ACCEPT: self.workflow.accept,
            Operation.REJECT: self.workflow.reject,
            Operation.INSPECT_AGREEMENT: self.workflow.inspect_agreement,
            Operation.GET_RENT_DUE: self.payments.get_rent_due,
            Operation.PAY_RENT: self.payments.pay_rent,
            Operation.PAYMENT_HISTORY: self.payments.payment_history,
        }

    def _invite(self, ref: ContractRef | None, actor: Party, **kwargs: Any) -> ContractRef:
        if ref is not None:
            raise ValueError("invite creates a new proposal and takes no contract reference")
        return self.workflow.invite(actor, **kwargs)

    def exercise(
        self,
        ref: ContractRef | None,
        operation: Operation | str,
        actor: Party,
        **kwargs: Any,
    ) -> Any:
        """
        Exercise ``operation`` on ``ref`` as ``actor``.

        Args:
            ref: Target contract version (None for invite).
            operation: Operation name, e.g. "accept" or "pay_rent".
            actor: Calling party.
            **kwargs: Operation arguments (``new_date`` for rent operations;
                ``landlord``, ``tenant``, ``terms``, ``bank_code`` and
                ``account_number`` for invite).

        Returns:
            Whatever the operation returns.

        Raises:
            UnknownOperationError: ``operation`` is not a ledger operation.
        """
        try:
            op = Operation(operation)
        except ValueError:
            raise UnknownOperationError(str(operation)) from None

        with LogContext.bind(actor_id=actor.party_id, operation=op.value):
            logger.debug(
                "operation_exercised",
                extra={"contract_ref": ref.to_payload() if ref is not None else None},
            )
            return self._handlers[op](ref, actor, **kwargs)

    def query(self, party: Party) -> list[ContractRef]:
        """Active contracts visible to ``party``."""
        return self.store.query(party)

    def history(self, contract_id: UUID) -> list[ContractRecord]:
        """Every version of one logical contract, oldest first."""
        return self._selector.history(contract_id)

    def current_ref(self, contract_id: UUID) -> ContractRef | None:
        """Active version of a logical contract, or None."""
        return self._selector.current_ref(contract_id)
