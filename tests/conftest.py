"""
Pytest fixtures for the provenance kernel test suite.

Provides:
- Structured logging configured once per session, plus log capture
- Deterministic clock, in-memory ledger, and LedgerContext factories
- A SQLite-backed SQL ledger session for backend tests

Environment Variables:
- DATABASE_URL: optional database URL for the SQL ledger fixtures.
  If not set, a throwaway SQLite file under the test's tmp_path is used.
"""

import json
import logging
import os
from io import StringIO

import pytest

from provenance_kernel.context import LedgerContext
from provenance_kernel.contract import ProvenanceContract
from provenance_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from provenance_kernel.db.memory_ledger import MemoryLedger
from provenance_kernel.db.sql_ledger import SqlLedger
from provenance_kernel.domain.clock import DeterministicClock
from provenance_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


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
    Capture provenance_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, contract, ledger_context):
            contract.create(ledger_context, "LOTE-001", "Chocolate", "1806")
            logs = captured_logs()
            assert any(r["message"] == "record_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("provenance_kernel")
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
# In-memory ledger
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def memory_ledger(deterministic_clock) -> MemoryLedger:
    return MemoryLedger(clock=deterministic_clock)


@pytest.fixture
def ledger_context(memory_ledger, deterministic_clock) -> LedgerContext:
    return LedgerContext(backend=memory_ledger, clock=deterministic_clock)


@pytest.fixture
def new_context(memory_ledger, deterministic_clock):
    """
    Build a fresh LedgerContext (new tx_id) over the shared memory ledger.

    Each call stands for one separate contract invocation.
    """

    def _make(tx_id: str | None = None) -> LedgerContext:
        if tx_id is None:
            return LedgerContext(backend=memory_ledger, clock=deterministic_clock)
        return LedgerContext(backend=memory_ledger, clock=deterministic_clock, tx_id=tx_id)

    return _make


@pytest.fixture
def contract() -> ProvenanceContract:
    return ProvenanceContract()


# =============================================================================
# SQL ledger
# =============================================================================


def get_database_url(tmp_path) -> str:
    """Database URL from the environment, or a SQLite file under tmp_path."""
    return os.environ.get("DATABASE_URL") or f"sqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def sql_engine(tmp_path):
    """Initialize the engine and create the ledger tables for one test."""
    engine = init_engine_from_url(get_database_url(tmp_path))
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(sql_engine):
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def sql_ledger(session, deterministic_clock) -> SqlLedger:
    return SqlLedger(session, clock=deterministic_clock)


@pytest.fixture
def new_sql_context(sql_ledger, deterministic_clock):
    """Like new_context, over the SQL ledger of one open session."""

    def _make(tx_id: str | None = None) -> LedgerContext:
        if tx_id is None:
            return LedgerContext(backend=sql_ledger, clock=deterministic_clock)
        return LedgerContext(backend=sql_ledger, clock=deterministic_clock, tx_id=tx_id)

    return _make
