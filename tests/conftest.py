"""
Pytest fixtures for the lease kernel test suite.

Provides:
- An in-memory SQLite engine per test (fresh schema, immutability listeners on)
- Database session, deterministic clock and service fixtures
- Standard parties and lease terms
- Captured structured logs

Environment Variables:
- DATABASE_URL: optional database URL.  Defaults to in-memory SQLite.
"""

import json
import logging
import os
from datetime import date
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from lease_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from lease_kernel.db.immutability import register_immutability_listeners
from lease_kernel.domain.clock import DeterministicClock
from lease_kernel.domain.values import Currency, Party, RentalTerms
from lease_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from lease_kernel.services.contract_ledger import ContractLedger
from lease_kernel.services.contract_store import ContractStore
from lease_kernel.services.payment_ledger import PaymentLedgerService
from lease_kernel.services.rental_workflow import RentalWorkflowService

DEFAULT_DATABASE_URL = "sqlite://"

BANK_CODE = "021000021"
ACCOUNT_NUMBER = "000123456789"


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture lease_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, workflow):
            workflow.invite(...)
            logs = captured_logs()
            assert any(r["message"] == "proposal_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("lease_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh engine and schema for one test."""
    engine = init_engine_from_url(get_database_url(), echo=False)
    register_immutability_listeners()
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Session for one test.  Anything left uncommitted is rolled back."""
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


# =============================================================================
# Parties and terms
# =============================================================================


@pytest.fixture
def landlord() -> Party:
    return Party("landlord-1")


@pytest.fixture
def tenant() -> Party:
    return Party("tenant-1")


@pytest.fixture
def stranger() -> Party:
    return Party("stranger-1")


@pytest.fixture
def terms() -> RentalTerms:
    """Rent 800, late penalty 10%, lease starting 2021-01-01."""
    return RentalTerms(
        rent_amount=800,
        currency=Currency.USD,
        lease_period_months=12,
        start_date=date(2021, 1, 1),
        late_penalty_percent=10,
        break_penalty_months=2,
    )


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def store(session, deterministic_clock) -> ContractStore:
    return ContractStore(session, clock=deterministic_clock)


@pytest.fixture
def workflow(session, store) -> RentalWorkflowService:
    return RentalWorkflowService(session, store=store)


@pytest.fixture
def payments(session, store, workflow) -> PaymentLedgerService:
    return PaymentLedgerService(session, store=store, workflow=workflow)


@pytest.fixture
def ledger(session, deterministic_clock) -> ContractLedger:
    return ContractLedger(session, clock=deterministic_clock)


@pytest.fixture
def invite(workflow, landlord, tenant, terms):
    """Factory: landlord invites tenant with the standard terms."""

    def _invite(**overrides):
        args = dict(
            actor=landlord,
            landlord=landlord,
            tenant=tenant,
            terms=terms,
            bank_code=BANK_CODE,
            account_number=ACCOUNT_NUMBER,
        )
        args.update(overrides)
        return workflow.invite(**args)

    return _invite


@pytest.fixture
def proposal_ref(invite):
    return invite()


@pytest.fixture
def accepted(workflow, proposal_ref, tenant):
    """AcceptResult for the standard proposal."""
    return workflow.accept(proposal_ref, tenant)
