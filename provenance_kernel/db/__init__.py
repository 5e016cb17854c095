"""Ledger backends and SQLAlchemy plumbing for the provenance kernel."""
