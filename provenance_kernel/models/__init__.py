"""SQLAlchemy ORM models for the SQL ledger backend."""

from provenance_kernel.models.ledger_version import LedgerVersion

__all__ = ["LedgerVersion"]
