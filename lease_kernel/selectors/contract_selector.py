"""
Module: lease_kernel.selectors.contract_selector
Responsibility: Read-only queries over the contract ledger: the active
    contracts a party can see, the version history of one logical contract,
    and the current-version pointer.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Visibility: ``query(party)`` returns only ACTIVE instances on which the
      party is a signatory or an observer.
    - History is ordered by the ledger-wide monotonic version id.

Failure modes:
    - ContractNotFoundError from ``get_record`` for an unknown reference.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from lease_kernel.domain.contracts import (
    Contract,
    ContractKind,
    ContractRef,
    contract_from_payload,
)
from lease_kernel.domain.values import Party
from lease_kernel.exceptions import ContractNotFoundError
from lease_kernel.models.contract_instance import (
    ContractHead,
    ContractInstance,
    ContractStakeholder,
    StakeholderRole,
)
from lease_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ContractRecord:
    """Immutable view of one stored contract version."""

    ref: ContractRef
    contract: Contract
    is_active: bool
    signatories: tuple[Party, ...]
    observers: tuple[Party, ...]
    recorded_at: datetime
    created_by_operation: str
    archived_at: datetime | None = None
    archived_by_operation: str | None = None

    @property
    def stakeholders(self) -> tuple[Party, ...]:
        return self.signatories + self.observers


def to_record(instance: ContractInstance) -> ContractRecord:
    """Convert an ORM ContractInstance to a ContractRecord DTO."""
    kind = ContractKind(instance.kind)
    return ContractRecord(
        ref=ContractRef(kind=kind, contract_id=instance.contract_id, version=instance.version),
        contract=contract_from_payload(kind, instance.payload),
        is_active=instance.is_active,
        signatories=tuple(
            Party(p) for p in instance.parties_with_role(StakeholderRole.SIGNATORY)
        ),
        observers=tuple(
            Party(p) for p in instance.parties_with_role(StakeholderRole.OBSERVER)
        ),
        recorded_at=instance.recorded_at,
        created_by_operation=instance.created_by_operation,
        archived_at=instance.archived_at,
        archived_by_operation=instance.archived_by_operation,
    )


class ContractSelector(BaseSelector[ContractInstance]):
    """Read-only access to contract instances and heads."""

    def _instance_for(self, ref: ContractRef) -> ContractInstance:
        instance = self.session.execute(
            select(ContractInstance)
            .where(ContractInstance.version == ref.version)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if instance is None or instance.contract_id != ref.contract_id:
            raise ContractNotFoundError(str(ref.contract_id), ref.version)
        return instance

    def get_record(self, ref: ContractRef) -> ContractRecord:
        """
        Get the stored version a reference points at, active or archived.

        Raises:
            ContractNotFoundError: If no such version exists.
        """
        return to_record(self._instance_for(ref))

    def query(self, party: Party, kind: ContractKind | None = None) -> list[ContractRef]:
        """Active contracts visible to ``party``, oldest version first."""
        return [r.ref for r in self.query_records(party, kind)]

    def query_records(
        self,
        party: Party,
        kind: ContractKind | None = None,
    ) -> list[ContractRecord]:
        """Active contract records visible to ``party``, oldest version first."""
        stmt = (
            select(ContractInstance)
            .join(ContractStakeholder, ContractStakeholder.instance_id == ContractInstance.id)
            .where(ContractInstance.is_active.is_(True))
            .where(ContractStakeholder.party_id == party.party_id)
            .distinct()
            .order_by(ContractInstance.version)
        )
        if kind is not None:
            stmt = stmt.where(ContractInstance.kind == ContractKind(kind).value)

        instances = self.session.execute(stmt).scalars().all()
        return [to_record(i) for i in instances]

    def history(self, contract_id: UUID) -> list[ContractRecord]:
        """Every version of one logical contract, oldest first."""
        instances = self.session.execute(
            select(ContractInstance)
            .where(ContractInstance.contract_id == contract_id)
            .order_by(ContractInstance.version)
        ).scalars().all()
        return [to_record(i) for i in instances]

    def current_ref(self, contract_id: UUID) -> ContractRef | None:
        """
        Reference to the active version of a logical contract.

        Returns None if the contract is unknown or its latest version is
        archived (e.g. an accepted or rejected proposal).
        """
        head = self.session.execute(
            select(ContractHead)
            .where(ContractHead.id == contract_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if head is None:
            return None

        ref = ContractRef(
            kind=ContractKind(head.kind),
            contract_id=contract_id,
            version=head.current_version,
        )
        if not self._instance_for(ref).is_active:
            return None
        return ref
