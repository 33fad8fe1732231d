"""Double-entry journal entry models."""

import hashlib
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import NamedTuple, Optional

from ledger_reconciler.models.account import is_bank_account_code
from ledger_reconciler.utils.date_utils import date_to_iso, parse_date
from ledger_reconciler.utils.decimal_utils import format_currency, sum_amounts, to_currency

# GST is charged at 10% and bank amounts are GST-inclusive
GST_RATE = Decimal("0.10")


class JournalEntryError(Exception):
    """Base exception for journal entry invariant violations."""

    pass


class UnbalancedEntryError(JournalEntryError):
    """Raised when debit and credit totals differ."""

    def __init__(self, debit_total: Decimal, credit_total: Decimal, description: str = ""):
        """Initialize UnbalancedEntryError.

        Args:
            debit_total: Sum of the debit splits.
            credit_total: Sum of the credit splits.
            description: Description of the offending entry.
        """
        self.debit_total = debit_total
        self.credit_total = credit_total
        message = (
            f"Debits (${format_currency(debit_total)}) and "
            f"credits (${format_currency(credit_total)}) must balance"
        )
        if description:
            message = f"{message}: {description!r}"
        super().__init__(message)


class EmptySplitsError(JournalEntryError):
    """Raised when a journal entry has no debits or no credits."""

    pass


class InvalidSplitError(JournalEntryError):
    """Raised when a split amount is not a positive currency amount."""

    pass


class BankAccountProtectedError(JournalEntryError):
    """Raised when a recategorization targets a bank-range account."""

    pass


class BankSplitError(JournalEntryError):
    """Raised when the bank account of an entry cannot be derived."""

    pass


class NoBankSplitError(BankSplitError):
    """Raised when an entry has no split in the bank account range."""

    pass


class AmbiguousBankSplitError(BankSplitError):
    """Raised when an entry has more than one split in the bank account range."""

    def __init__(self, bank_codes: list[str], description: str = ""):
        """Initialize AmbiguousBankSplitError.

        Args:
            bank_codes: Account codes of every bank-range split found.
            description: Description of the offending entry.
        """
        self.bank_codes = bank_codes
        super().__init__(
            f"Multiple bank accounts in transaction {description!r}: "
            f"{', '.join(bank_codes)}"
        )


@dataclass(frozen=True)
class SplitTransaction:
    """One posting line on one side of a journal entry.

    The amount is always a positive magnitude rounded to cents; direction
    comes from the side (debits or credits) the split sits on.

    Attributes:
        account_code: Account debited or credited.
        amount: Positive amount as Decimal.
    """

    account_code: str
    amount: Decimal

    def __post_init__(self) -> None:
        try:
            amount = to_currency(self.amount)
        except ValueError as e:
            raise InvalidSplitError(f"Invalid amount for account {self.account_code}: {e}") from e

        if amount <= 0:
            raise InvalidSplitError(
                f"Split amount must be positive, got {amount} for account {self.account_code}"
            )
        object.__setattr__(self, "amount", amount)

    @property
    def is_bank(self) -> bool:
        """Check if this split posts to a bank-range account."""
        return is_bank_account_code(self.account_code)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "SplitTransaction":
        """Create a split from a journal record (accountCode, amount)."""
        if "accountCode" not in data or "amount" not in data:
            raise ValueError(f"Split requires 'accountCode' and 'amount': {data!r}")
        return cls(
            account_code=str(data["accountCode"]),
            amount=data["amount"],  # type: ignore[arg-type]
        )

    def to_dict(self) -> dict[str, str]:
        return {"accountCode": self.account_code, "amount": str(self.amount)}


class BankFingerprint(NamedTuple):
    """Identity of the real-world bank event behind a journal entry."""

    date: date
    description: str
    amount: Decimal
    bank_code: str


@dataclass(frozen=True)
class GeneralJournalEntry:
    """A balanced double-entry journal entry.

    Entries are immutable. Recategorizing a transaction produces a new
    entry via recategorize(); the ledger replaces the old one.

    Equality and hashing use date, description, debits and credits only.
    bank_balance and notes are metadata.

    Attributes:
        date: Calendar date of the bank transaction.
        description: Bank statement line, exactly as imported.
        debits: Debit splits, in order.
        credits: Credit splits, in order.
        bank_balance: Running bank balance reported with the statement line.
        notes: Free-text notes (import reason, categorization justification).

    Raises:
        EmptySplitsError: If either side has no splits.
        UnbalancedEntryError: If the debit and credit totals differ.
    """

    date: date
    description: str
    debits: tuple[SplitTransaction, ...]
    credits: tuple[SplitTransaction, ...]
    bank_balance: Decimal = field(default=Decimal("0.00"), compare=False)
    notes: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.date, datetime):
            object.__setattr__(self, "date", self.date.date())
        object.__setattr__(self, "debits", tuple(self.debits))
        object.__setattr__(self, "credits", tuple(self.credits))
        object.__setattr__(self, "bank_balance", to_currency(self.bank_balance))

        if not self.debits:
            raise EmptySplitsError(f"Journal entry {self.description!r} has no debits")
        if not self.credits:
            raise EmptySplitsError(f"Journal entry {self.description!r} has no credits")

        debit_total = self.debit_total
        credit_total = self.credit_total
        if debit_total != credit_total:
            raise UnbalancedEntryError(debit_total, credit_total, self.description)

    @property
    def debit_total(self) -> Decimal:
        return sum_amounts(split.amount for split in self.debits)

    @property
    def credit_total(self) -> Decimal:
        return sum_amounts(split.amount for split in self.credits)

    @property
    def amount(self) -> Decimal:
        """Total transaction amount (both sides are equal)."""
        return self.debit_total

    @property
    def bank_split(self) -> SplitTransaction:
        """The single split posting to a bank-range account.

        Debits are scanned before credits.

        Raises:
            NoBankSplitError: If no split is in the bank range.
            AmbiguousBankSplitError: If more than one split is.
        """
        bank_splits = [split for split in (*self.debits, *self.credits) if split.is_bank]
        if not bank_splits:
            raise NoBankSplitError(f"No bank account found in transaction {self.description!r}")
        if len(bank_splits) > 1:
            raise AmbiguousBankSplitError(
                [split.account_code for split in bank_splits], self.description
            )
        return bank_splits[0]

    @property
    def bank_code(self) -> str:
        """Account code of the bank account this transaction moved money through."""
        return self.bank_split.account_code

    @property
    def is_income(self) -> bool:
        """Check if money came into the bank (bank split on the debit side)."""
        return self.bank_split in self.debits

    @property
    def fingerprint(self) -> BankFingerprint:
        """Duplicate identity: (date, description, amount, bank_code).

        Non-bank account codes, bank_balance and notes are not part of it,
        so an entry keeps its fingerprint across recategorizations.

        Raises:
            BankSplitError: If the bank account cannot be derived.
        """
        return BankFingerprint(self.date, self.description, self.amount, self.bank_code)

    @property
    def fingerprint_id(self) -> str:
        """Stable 16-character hex key for the fingerprint.

        Note:
            Genuinely distinct transactions with the same date, description,
            amount and bank account share a fingerprint_id.
        """
        fp = self.fingerprint
        data = f"{date_to_iso(fp.date)}|{fp.description}|{fp.amount}|{fp.bank_code}"
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def is_same_bank_transaction(self, other: "GeneralJournalEntry") -> bool:
        """Check if two entries record the same bank event.

        Compares date, description, amount and bank account only. Both
        bank codes are always derived, so a malformed entry raises rather
        than reporting "not the same".

        Args:
            other: Entry to compare against.

        Returns:
            True if both entries share a fingerprint.

        Raises:
            BankSplitError: If either entry's bank account cannot be derived.
        """
        return self.fingerprint == other.fingerprint

    def involves_account(self, account_code: str) -> bool:
        """Check if any split posts to the given account."""
        return any(split.account_code == account_code for split in (*self.debits, *self.credits))

    def recategorize(
        self,
        new_account_code: str,
        notes: str = "",
        gst_clearing_code: Optional[str] = None,
    ) -> "GeneralJournalEntry":
        """Build a copy of this entry posted to a different account.

        The bank split, date, description and bank balance are kept; the
        other side is replaced with new_account_code for the full amount.
        With gst_clearing_code the amount is treated as GST-inclusive and
        the GST component is posted to the clearing account.

        Args:
            new_account_code: Account to post the non-bank side to.
            notes: Note appended to the existing notes on a new line.
            gst_clearing_code: GST clearing account, or None for no GST split.

        Returns:
            A new, balanced GeneralJournalEntry.

        Raises:
            BankAccountProtectedError: If new_account_code is a bank account.
            BankSplitError: If this entry's bank account cannot be derived.
        """
        if is_bank_account_code(new_account_code):
            raise BankAccountProtectedError(
                f"Cannot recategorize to bank account {new_account_code}; "
                "bank accounts (000-099) are protected"
            )

        bank_split = self.bank_split
        total = self.amount
        category_splits = _category_splits(new_account_code, total, gst_clearing_code)
        new_bank_split = SplitTransaction(account_code=bank_split.account_code, amount=total)

        if self.is_income:
            debits: tuple[SplitTransaction, ...] = (new_bank_split,)
            credits = category_splits
        else:
            debits = category_splits
            credits = (new_bank_split,)

        if not notes:
            updated_notes = self.notes
        elif self.notes:
            updated_notes = f"{self.notes}\n{notes}"
        else:
            updated_notes = notes

        return GeneralJournalEntry(
            date=self.date,
            description=self.description,
            debits=debits,
            credits=credits,
            bank_balance=self.bank_balance,
            notes=updated_notes,
        )

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "GeneralJournalEntry":
        """Create an entry from a journal record.

        Expected keys: date, description, debits, credits, and optionally
        bankBalance and notes.

        Args:
            data: Dictionary containing the journal record.

        Returns:
            A new GeneralJournalEntry.

        Raises:
            ValueError: If required keys are missing or values are malformed.
            JournalEntryError: If the record violates an entry invariant.
        """
        missing = [key for key in ("date", "description", "debits", "credits") if key not in data]
        if missing:
            raise ValueError(f"Journal record missing required fields: {', '.join(missing)}")

        debits_data = data["debits"]
        credits_data = data["credits"]
        if not isinstance(debits_data, list) or not isinstance(credits_data, list):
            raise ValueError("Journal record 'debits' and 'credits' must be lists")

        return cls(
            date=parse_date(data["date"]),  # type: ignore[arg-type]
            description=str(data["description"]),
            debits=tuple(SplitTransaction.from_dict(d) for d in debits_data),
            credits=tuple(SplitTransaction.from_dict(c) for c in credits_data),
            bank_balance=to_currency(data.get("bankBalance", 0)),
            notes=str(data.get("notes") or ""),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "date": date_to_iso(self.date),
            "description": self.description,
            "debits": [split.to_dict() for split in self.debits],
            "credits": [split.to_dict() for split in self.credits],
            "bankBalance": str(self.bank_balance),
            "notes": self.notes,
        }

    def __repr__(self) -> str:
        return (
            f"GeneralJournalEntry(date={self.date}, "
            f"description={self.description[:30]!r}, "
            f"amount={self.amount})"
        )


def _category_splits(
    account_code: str,
    total: Decimal,
    gst_clearing_code: Optional[str],
) -> tuple[SplitTransaction, ...]:
    """Split a GST-inclusive total into net and GST postings."""
    if gst_clearing_code is None:
        return (SplitTransaction(account_code=account_code, amount=total),)

    gst_amount = to_currency(total * GST_RATE / (1 + GST_RATE))
    if gst_amount <= 0:
        return (SplitTransaction(account_code=account_code, amount=total),)

    return (
        SplitTransaction(account_code=account_code, amount=total - gst_amount),
        SplitTransaction(account_code=gst_clearing_code, amount=gst_amount),
    )
