"""Duplicate detection and rule-based categorization."""

from ledger_reconciler.processing.categorizer import (
    DEFAULT_RULES,
    UNCATEGORIZED_ACCOUNT_CODE,
    TransactionCategorizer,
    categorize_entry,
    categorize_expense_transaction,
    categorize_income_transaction,
    categorizer_account_codes,
    find_missing_account_codes,
)
from ledger_reconciler.processing.duplicates import (
    DuplicateMatcher,
    find_matching_entries,
    is_same_bank_transaction,
)

__all__ = [
    "DEFAULT_RULES",
    "TransactionCategorizer",
    "UNCATEGORIZED_ACCOUNT_CODE",
    "categorize_entry",
    "categorize_expense_transaction",
    "categorize_income_transaction",
    "categorizer_account_codes",
    "find_missing_account_codes",
    "DuplicateMatcher",
    "find_matching_entries",
    "is_same_bank_transaction",
]
