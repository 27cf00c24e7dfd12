"""
Lease Kernel

An authorization-checked, append-only contract ledger for residential leases:
- Landlord proposals, tenant acceptance or rejection
- Immutable agreements carrying the lease terms
- Versioned rent payment ledgers with late-penalty calculation
- Optimistic concurrency on every contract version
"""

__version__ = "0.1.0"
