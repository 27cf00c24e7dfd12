"""
Module: lease_kernel.models.contract_instance
Responsibility: ORM persistence for the append-only contract ledger.  Every
    version of every contract (proposal, agreement, payment ledger) is one
    ContractInstance row; ContractStakeholder rows record which parties sign
    or observe it; ContractHead holds the current-version pointer of each
    logical contract.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    Append-only -- a ContractInstance's kind, contract_id, version and
           payload never change after insert; is_active only moves from True
           to False (enforced by db/immutability.py listeners).
    Monotonic versions -- ``version`` is allocated from the
           ``contract_version`` sequence and is unique across the ledger.
    Single head -- one ContractHead per logical contract; its
           ``current_version`` is the only version that may be exercised.
    Optimistic locking -- both ContractInstance and ContractHead carry a
           SQLAlchemy ``version_id_col``; a concurrent writer that updates
           the same row first makes the second flush fail with StaleDataError.

Failure modes:
    - IntegrityError on duplicate version (uq_contract_instance_version).
    - StaleDataError on a lost optimistic-lock race (mapped to
      StaleVersionError by the contract store).
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lease_kernel.db.base import Base, UUIDString


class StakeholderRole(str, Enum):
    """How a party relates to a contract instance."""

    SIGNATORY = "signatory"
    OBSERVER = "observer"


class ContractInstance(Base):
    """
    One immutable version of a contract on the ledger.

    Guarantees:
        - (contract_id, version) identifies the snapshot; ``version`` alone is
          globally unique and strictly increasing in creation order.
        - ``payload`` is the JSON form of the domain contract for ``kind``.
        - ``archived_at``/``archived_by_operation`` are set exactly once, in
          the same flush that sets ``is_active`` to False.
    """

    __tablename__ = "contract_instances"

    __table_args__ = (
        UniqueConstraint("version", name="uq_contract_instance_version"),
        Index("idx_contract_instance_contract", "contract_id"),
        Index("idx_contract_instance_active", "is_active"),
        Index("idx_contract_instance_kind", "kind"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
        doc="Logical contract this version belongs to",
    )

    version: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        doc="Ledger-wide monotonic version id",
    )

    kind: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        doc="Contract template (rental_proposal, rental_agreement, payment_ledger)",
    )

    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        doc="JSON form of the domain contract",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    created_by_operation: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )

    transaction_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
        doc="Ledger transaction that created this version",
    )

    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    archived_by_operation: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
    )

    archived_in_transaction_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    lock_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    stakeholders: Mapped[list["ContractStakeholder"]] = relationship(
        "ContractStakeholder",
        back_populates="instance",
        lazy="selectin",
        order_by="ContractStakeholder.party_id",
    )

    __mapper_args__ = {"version_id_col": lock_version}

    def parties_with_role(self, role: StakeholderRole) -> list[str]:
        return [s.party_id for s in self.stakeholders if s.role == role.value]

    def __repr__(self) -> str:
        return (
            f"<ContractInstance {self.kind} {self.contract_id} "
            f"v{self.version} active={self.is_active}>"
        )


class ContractStakeholder(Base):
    """A party's signatory or observer role on one contract instance."""

    __tablename__ = "contract_stakeholders"

    __table_args__ = (
        UniqueConstraint(
            "instance_id", "party_id", "role", name="uq_contract_stakeholder"
        ),
        Index("idx_contract_stakeholder_party", "party_id"),
    )

    instance_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contract_instances.id"),
        nullable=False,
    )

    party_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
    )

    instance: Mapped[ContractInstance] = relationship(
        "ContractInstance",
        back_populates="stakeholders",
    )


class ContractHead(Base):
    """
    Current-version pointer of one logical contract.

    ``id`` is the logical contract id.  A reference is current only when its
    version equals ``current_version`` and that instance is still active.
    """

    __tablename__ = "contract_heads"

    kind: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )

    current_version: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    lock_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": lock_version}
