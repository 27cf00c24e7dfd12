"""
PaymentLedgerService -- rent due and rent payment on a lease's ledger.

Responsibility:
    Computes the rent and penalty due for a payment date, and records a
    payment by replacing the current PaymentLedgerEntry with its successor.

Architecture position:
    Kernel > Services.  Reads the agreed terms through
    RentalWorkflowService.inspect_agreement, acting as the ledger's tenant,
    and delegates the arithmetic to the pure calculator.

Invariants enforced:
    - Monotonic payment dates: a successor's last_payment_date is strictly
      after its predecessor's and in a later calendar month.
    - Totals conservation: total_paid_to_date grows by exactly
      rent_this_period + penalty_this_period on every payment.
    - Bank details and parties are carried forward unchanged.
    - A rejected payment leaves the ledger untouched.

Failure modes:
    - AuthorizationError: caller is not the ledger's tenant.
    - NonAdvancingDateError: payment date not after the last payment.
    - DuplicatePaymentError: payment date in the last payment's month.
    - StaleVersionError: ledger reference is no longer current.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from sqlalchemy.orm import Session

from lease_kernel.domain.authority import (
    Operation,
    require_authorized,
    transaction_authorizers,
)
from lease_kernel.domain.calculator import (
    DEFAULT_PAYMENT_POLICY,
    PaymentDue,
    PaymentPolicy,
    PaymentRejection,
    calculate_payment_due,
    payment_rejection_reason,
)
from lease_kernel.domain.clock import Clock
from lease_kernel.domain.contracts import ContractKind, ContractRef, PaymentLedgerEntry
from lease_kernel.domain.values import Party
from lease_kernel.domain.workflow import PAYMENT_LEDGER_WORKFLOW, LedgerState
from lease_kernel.exceptions import (
    ContractKindMismatchError,
    DuplicatePaymentError,
    NonAdvancingDateError,
)
from lease_kernel.logging_config import get_logger
from lease_kernel.models.contract_instance import ContractInstance
from lease_kernel.selectors.contract_selector import ContractRecord, ContractSelector
from lease_kernel.services.base import BaseService
from lease_kernel.services.contract_store import ContractStore
from lease_kernel.services.rental_workflow import RentalWorkflowService

logger = get_logger("services.payment_ledger")


class PaymentLedgerService(BaseService[ContractInstance]):
    """GetRentDue / PayRent over payment ledger entries."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: PaymentPolicy = DEFAULT_PAYMENT_POLICY,
        store: ContractStore | None = None,
        workflow: RentalWorkflowService | None = None,
    ):
        super().__init__(session)
        self._policy = policy
        self._store = store or ContractStore(session, clock=clock)
        self._workflow = workflow or RentalWorkflowService(
            session, policy=policy, store=self._store
        )
        self._selector = ContractSelector(session)

    def _ledger(self, ref: ContractRef, actor: Party, operation: Operation) -> PaymentLedgerEntry:
        ledger = self._store.fetch(ref, ContractKind.PAYMENT_LEDGER)
        require_authorized(actor, operation, ledger)
        return ledger

    def _amount_due(self, ledger: PaymentLedgerEntry, new_date: date) -> PaymentDue | None:
        terms = self._workflow.inspect_agreement(ledger.agreement_ref, ledger.tenant)
        return calculate_payment_due(
            new_date, ledger.last_payment_date, terms, self._policy
        )

    def get_rent_due(
        self,
        ref: ContractRef,
        actor: Party,
        new_date: date,
    ) -> PaymentDue | None:
        """
        Rent and penalty due for a payment dated ``new_date``.

        Returns None when no payment is due on that date (not after the last
        payment, or within the same calendar month).  Read-only.
        """
        ledger = self._ledger(ref, actor, Operation.GET_RENT_DUE)
        return self._amount_due(ledger, new_date)

    def pay_rent(self, ref: ContractRef, actor: Party, new_date: date) -> ContractRef:
        """
        Record a rent payment dated ``new_date``.

        Archives the current ledger version and records its successor in
        one savepoint.

        Returns:
            Reference to the new ledger version.

        Raises:
            AuthorizationError: ``actor`` is not the ledger's tenant.
            NonAdvancingDateError: ``new_date`` is not after the last payment.
            DuplicatePaymentError: ``new_date`` is in the last payment's month.
            StaleVersionError: ``ref`` is not the current ledger version.
        """
        with self.ledger_transaction(
            Operation.PAY_RENT.value, actor, ref.contract_id
        ) as transaction_id:
            ledger = self._ledger(ref, actor, Operation.PAY_RENT)
            transition = PAYMENT_LEDGER_WORKFLOW.require_transition(
                LedgerState.CURRENT, Operation.PAY_RENT.value
            )

            due = self._amount_due(ledger, new_date)
            if due is None:
                reason = payment_rejection_reason(new_date, ledger.last_payment_date)
                logger.warning(
                    "payment_rejected",
                    extra={
                        "reason": reason,
                        "new_date": new_date,
                        "last_payment_date": ledger.last_payment_date,
                    },
                )
                if reason is PaymentRejection.SAME_MONTH:
                    raise DuplicatePaymentError(new_date, ledger.last_payment_date)
                raise NonAdvancingDateError(new_date, ledger.last_payment_date)

            successor = replace(
                ledger,
                last_payment_date=new_date,
                rent_this_period=due.rent,
                penalty_this_period=due.penalty,
                total_paid_to_date=ledger.total_paid_to_date + due.total,
            )

            if transition.archives_source:
                self._store.archive(
                    ref,
                    operation=transition.action,
                    transaction_id=transaction_id,
                )
            new_ref = self._store.create(
                successor,
                authorizers=transaction_authorizers(actor, ledger),
                operation=Operation.PAY_RENT.value,
                transaction_id=transaction_id,
                contract_id=ref.contract_id,
            )

        logger.info(
            "rent_paid",
            extra={
                "ledger_id": str(ref.contract_id),
                "previous_version": ref.version,
                "version": new_ref.version,
                "payment_date": new_date,
                "rent": due.rent,
                "penalty": due.penalty,
                "total_paid_to_date": successor.total_paid_to_date,
            },
        )
        return new_ref

    def payment_history(self, ref: ContractRef, actor: Party) -> list[ContractRecord]:
        """
        Every version of the ledger behind ``ref``, oldest first.

        ``ref`` may be any version, current or archived.  The landlord or the
        tenant may read the history.
        """
        record = self._selector.get_record(ref)
        if record.ref.kind != ContractKind.PAYMENT_LEDGER:
            raise ContractKindMismatchError(
                str(ref.contract_id),
                ContractKind.PAYMENT_LEDGER.value,
                record.ref.kind.value,
            )
        require_authorized(actor, Operation.PAYMENT_HISTORY, record.contract)
        return self._selector.history(ref.contract_id)
