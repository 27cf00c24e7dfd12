"""
Kernel services.

Services own the imperative shell: they receive a caller-owned Session,
flush inside per-operation savepoints, and never commit.
"""

from lease_kernel.services.base import BaseService
from lease_kernel.services.contract_ledger import ContractLedger
from lease_kernel.services.contract_store import ContractStore
from lease_kernel.services.payment_ledger import PaymentLedgerService
from lease_kernel.services.rental_workflow import AcceptResult, RentalWorkflowService
from lease_kernel.services.sequence_service import SequenceService

__all__ = [
    "AcceptResult",
    "BaseService",
    "ContractLedger",
    "ContractStore",
    "PaymentLedgerService",
    "RentalWorkflowService",
    "SequenceService",
]
