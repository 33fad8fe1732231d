"""Data models for accounts, journal entries, and categorization rules."""

from ledger_reconciler.models.account import (
    Account,
    AccountType,
    ChartOfAccounts,
    GstType,
    is_bank_account_code,
)
from ledger_reconciler.models.category import (
    CategorizationResult,
    CategorizationRule,
    CategorizationRuleSet,
    Fallback,
    MatchMode,
)
from ledger_reconciler.models.journal import (
    AmbiguousBankSplitError,
    BankAccountProtectedError,
    BankFingerprint,
    BankSplitError,
    EmptySplitsError,
    GeneralJournalEntry,
    InvalidSplitError,
    JournalEntryError,
    NoBankSplitError,
    SplitTransaction,
    UnbalancedEntryError,
)

__all__ = [
    "Account",
    "AccountType",
    "ChartOfAccounts",
    "GstType",
    "is_bank_account_code",
    "CategorizationResult",
    "CategorizationRule",
    "CategorizationRuleSet",
    "Fallback",
    "MatchMode",
    "AmbiguousBankSplitError",
    "BankAccountProtectedError",
    "BankFingerprint",
    "BankSplitError",
    "EmptySplitsError",
    "GeneralJournalEntry",
    "InvalidSplitError",
    "JournalEntryError",
    "NoBankSplitError",
    "SplitTransaction",
    "UnbalancedEntryError",
]
