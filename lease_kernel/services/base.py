"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  All concrete services receive a
    SQLAlchemy ``Session`` that they use via ``session.flush()`` and
    savepoints -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback the outer transaction themselves.  Each
    ledger operation runs inside its own savepoint so a failed operation
    leaves no partial mutation, while the caller still owns commit.
"""

from abc import ABC
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from lease_kernel.db.base import Base
from lease_kernel.domain.values import Party
from lease_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.transaction")

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``lease_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session

    @contextmanager
    def ledger_transaction(
        self,
        operation: str,
        actor: Party,
        contract_id: UUID | None = None,
    ) -> Iterator[UUID]:
        """
        Run one ledger operation atomically inside a savepoint.

        Yields a fresh transaction id.  Every create and archive made inside
        the block is released together on success; any exception rolls the
        savepoint back and propagates.
        """
        transaction_id = uuid4()
        with LogContext.bind(
            transaction_id=str(transaction_id),
            actor_id=actor.party_id,
            operation=operation,
            contract_id=str(contract_id) if contract_id is not None else None,
        ):
            try:
                with self.session.begin_nested():
                    yield transaction_id
            except Exception as exc:
                logger.warning(
                    "ledger_transaction_rolled_back",
                    extra={"error_code": getattr(exc, "code", type(exc).__name__)},
                )
                raise
