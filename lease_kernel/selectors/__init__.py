"""Read-only query selectors returning frozen DTOs."""

from lease_kernel.selectors.base import BaseSelector
from lease_kernel.selectors.contract_selector import (
    ContractRecord,
    ContractSelector,
    to_record,
)

__all__ = [
    "BaseSelector",
    "ContractRecord",
    "ContractSelector",
    "to_record",
]
