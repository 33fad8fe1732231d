"""Double-entry general ledger core with bank-transaction reconciliation."""

__version__ = "0.3.0"
