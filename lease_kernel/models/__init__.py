"""ORM models for the lease kernel ledger."""

from lease_kernel.models.contract_instance import (
    ContractHead,
    ContractInstance,
    ContractStakeholder,
    StakeholderRole,
)
from lease_kernel.models.sequence import SequenceCounter

__all__ = [
    "ContractHead",
    "ContractInstance",
    "ContractStakeholder",
    "StakeholderRole",
    "SequenceCounter",
]
