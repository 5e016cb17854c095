"""
Provenance CLI -- operate the traceability record store from a shell.

One subcommand per contract operation, each run inside one database
transaction against the SQL ledger.

Entry point: python -m scripts.cli
"""

from scripts.cli.main import main

__all__ = ["main"]
