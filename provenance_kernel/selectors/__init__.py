"""Read-side selectors over the ledger's version log."""

from provenance_kernel.selectors.history_selector import HistorySelector

__all__ = ["HistorySelector"]
