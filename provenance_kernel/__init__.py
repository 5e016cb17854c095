"""
Provenance Kernel - Traceability Record Store

A supply-chain provenance store over an append-only key-value ledger with:
- One record per product/lot, keyed by a caller-supplied identifier
- Two-sided input-of relations (inputs / usedBy) kept consistent by the kernel
- Full per-record change history replayed from the ledger's version log
- Typed errors and structured logging
"""

__version__ = "0.1.0"
