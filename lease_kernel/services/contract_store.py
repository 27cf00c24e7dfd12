"""
ContractStore -- append-only, versioned storage for ledger contracts.

Responsibility:
    Records new contract versions, reads the current version behind a
    reference, and archives versions.  This is the only code that writes
    ContractInstance, ContractStakeholder and ContractHead rows.

Architecture position:
    Kernel > Services -- imperative shell.  Called by RentalWorkflowService
    and PaymentLedgerService inside their per-operation savepoints.

Invariants enforced:
    - Append-only: create() always inserts a new instance with a fresh
      ledger-wide version; nothing is updated except the archive fields and
      the head pointer.
    - Signatory authority: every signatory of a new contract must be among
      the transaction's authorizers.
    - Single active version: a successor may only be recorded once the
      head's current version has been archived in the same transaction.
    - Optimistic concurrency: fetch() and archive() accept only the current,
      active version; a lost race at flush time surfaces as
      StaleVersionError.

Failure modes:
    - AuthorizationError: a signatory did not authorize the new contract.
    - ContractNotFoundError: reference points at no stored version.
    - ContractKindMismatchError: reference resolves to a different template.
    - StaleVersionError: reference is archived or no longer current.
"""

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from lease_kernel.domain.authority import require_signatories
from lease_kernel.domain.clock import Clock, SystemClock
from lease_kernel.domain.contracts import (
    Contract,
    ContractKind,
    ContractRef,
    contract_from_payload,
)
from lease_kernel.domain.values import Party
from lease_kernel.exceptions import (
    ContractKindMismatchError,
    ContractNotFoundError,
    StaleVersionError,
)
from lease_kernel.logging_config import get_logger
from lease_kernel.models.contract_instance import (
    ContractHead,
    ContractInstance,
    ContractStakeholder,
    StakeholderRole,
)
from lease_kernel.selectors.contract_selector import ContractSelector
from lease_kernel.services.base import BaseService
from lease_kernel.services.sequence_service import SequenceService

logger = get_logger("services.contract_store")


class ContractStore(BaseService[ContractInstance]):
    """
    Versioned contract storage over a caller-owned session.

    Non-goals:
        - Does NOT check operation controllers; callers do that first.
        - Does NOT commit.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        sequences: SequenceService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = sequences or SequenceService(session)
        self._selector = ContractSelector(session)

    # =========================================================================
    # Writes
    # =========================================================================

    def create(
        self,
        contract: Contract,
        *,
        authorizers: frozenset[Party],
        operation: str,
        transaction_id: UUID,
        contract_id: UUID | None = None,
    ) -> ContractRef:
        """
        Record a new contract version.

        Args:
            contract: Domain contract to store.
            authorizers: Parties whose authority the transaction carries.
            operation: Operation that creates the version (for the record).
            transaction_id: Ledger transaction the version belongs to.
            contract_id: Existing logical contract to append a successor
                version to.  None starts a new logical contract.

        Returns:
            Reference to the new version.

        Raises:
            AuthorizationError: A signatory did not authorize the contract.
            StaleVersionError: The head's current version is still active.
        """
        require_signatories(contract, authorizers)

        kind = contract.KIND
        version = self._sequences.next_value(SequenceService.CONTRACT_VERSION)

        if contract_id is None:
            contract_id = uuid4()
            head = ContractHead(id=contract_id, kind=kind.value, current_version=version)
            self.session.add(head)
        else:
            head = self._locked_head(contract_id)
            if head is None:
                raise ContractNotFoundError(str(contract_id))
            if head.kind != kind.value:
                raise ContractKindMismatchError(str(contract_id), kind.value, head.kind)
            current = self._instance(contract_id, head.current_version)
            if current.is_active:
                raise StaleVersionError(
                    str(contract_id), head.current_version, head.current_version
                )
            head.current_version = version

        instance = ContractInstance(
            contract_id=contract_id,
            version=version,
            kind=kind.value,
            payload=contract.to_payload(),
            is_active=True,
            recorded_at=self._clock.now(),
            created_by_operation=operation,
            transaction_id=transaction_id,
        )
        instance.stakeholders = [
            ContractStakeholder(party_id=p.party_id, role=StakeholderRole.SIGNATORY.value)
            for p in contract.signatories
        ] + [
            ContractStakeholder(party_id=p.party_id, role=StakeholderRole.OBSERVER.value)
            for p in contract.observers
        ]
        self.session.add(instance)
        self._flush(contract_id, version)

        ref = ContractRef(kind=kind, contract_id=contract_id, version=version)
        logger.info(
            "contract_created",
            extra={
                "contract_kind": kind.value,
                "contract_id": str(contract_id),
                "version": version,
                "created_by_operation": operation,
                "transaction_id": str(transaction_id),
            },
        )
        return ref

    def archive(
        self,
        ref: ContractRef,
        *,
        operation: str,
        transaction_id: UUID,
    ) -> None:
        """
        Archive the current active version behind ``ref``.

        Raises:
            ContractNotFoundError, ContractKindMismatchError,
            StaleVersionError: As for fetch().
        """
        instance = self._current_instance(ref, ref.kind)
        instance.is_active = False
        instance.archived_at = self._clock.now()
        instance.archived_by_operation = operation
        instance.archived_in_transaction_id = transaction_id
        self._flush(ref.contract_id, ref.version)

        logger.info(
            "contract_archived",
            extra={
                "contract_kind": ref.kind.value,
                "contract_id": str(ref.contract_id),
                "version": ref.version,
                "archived_by_operation": operation,
                "transaction_id": str(transaction_id),
            },
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def fetch(self, ref: ContractRef, kind: ContractKind | None = None) -> Contract:
        """
        Read the contract behind an active, current reference.

        Args:
            ref: Reference to fetch.
            kind: Expected template.  Defaults to ``ref.kind``.

        Raises:
            ContractNotFoundError: No stored version for ``ref``.
            ContractKindMismatchError: Stored template differs from ``kind``.
            StaleVersionError: Version is archived or no longer current.
        """
        instance = self._current_instance(ref, kind or ref.kind)
        return contract_from_payload(ContractKind(instance.kind), instance.payload)

    def query(self, party: Party) -> list[ContractRef]:
        """Active contracts on which ``party`` is a signatory or observer."""
        return self._selector.query(party)

    # =========================================================================
    # Internals
    # =========================================================================

    def _locked_head(self, contract_id: UUID) -> ContractHead | None:
        return self.session.execute(
            select(ContractHead)
            .where(ContractHead.id == contract_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _instance(self, contract_id: UUID, version: int) -> ContractInstance:
        instance = self.session.execute(
            select(ContractInstance)
            .where(ContractInstance.version == version)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if instance is None or instance.contract_id != contract_id:
            raise ContractNotFoundError(str(contract_id), version)
        return instance

    def _current_instance(self, ref: ContractRef, kind: ContractKind) -> ContractInstance:
        instance = self._instance(ref.contract_id, ref.version)

        if instance.kind != ContractKind(kind).value:
            raise ContractKindMismatchError(
                str(ref.contract_id), ContractKind(kind).value, instance.kind
            )

        if not instance.is_active:
            raise StaleVersionError(str(ref.contract_id), ref.version)

        head = self._locked_head(ref.contract_id)
        current_version = head.current_version if head is not None else None
        if current_version != ref.version:
            raise StaleVersionError(str(ref.contract_id), ref.version, current_version)
        return instance

    def _flush(self, contract_id: UUID, version: int) -> None:
        try:
            self.session.flush()
        except StaleDataError as exc:
            logger.warning(
                "contract_version_conflict",
                extra={"contract_id": str(contract_id), "version": version},
            )
            raise StaleVersionError(str(contract_id), version) from exc
