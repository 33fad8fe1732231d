"""Chart-of-accounts data model."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

# Real bank accounts live in 000-099; everything above is a categorization target
BANK_CODE_MIN = 0
BANK_CODE_MAX = 99


def is_bank_account_code(code: str) -> bool:
    """Check whether an account code is in the reserved bank range.

    Args:
        code: Account code (3 digits, e.g. "001").

    Returns:
        True for a 3-digit numeric code between 000 and 099.
    """
    if len(code) != 3 or not code.isdigit():
        return False
    return BANK_CODE_MIN <= int(code) <= BANK_CODE_MAX


class AccountType(Enum):
    """Type of ledger account, labelled as in the chart of accounts."""

    BANK = "Bank"
    REVENUE = "Revenue"
    OTHER_INCOME = "Other Income"
    COGS = "COGS"
    EXPENSE = "Expense"
    DEPRECIATION = "Depreciation"
    CURRENT_ASSET = "Current Asset"
    INVENTORY = "Inventory"
    FIXED_ASSET = "Fixed Asset"
    CURRENT_LIABILITY = "Current Liability"
    EQUITY = "Equity"


class GstType(Enum):
    """GST treatment of an account."""

    GST_ON_INCOME = "GST on Income"
    GST_ON_EXPENSES = "GST on Expenses"
    GST_FREE_EXPENSES = "GST Free Expenses"
    BAS_EXCLUDED = "BAS Excluded"
    GST_ON_CAPITAL = "GST on Capital"


@dataclass(frozen=True)
class Account:
    """A single account in the chart of accounts.

    Attributes:
        code: Three-digit account code (e.g. "001", "400").
        name: Human-readable account name.
        account_type: Type of account (Bank, Revenue, Expense, etc.).
        gst: Whether GST applies to this account.
        gst_type: GST treatment for BAS reporting.
    """

    code: str
    name: str
    account_type: AccountType
    gst: bool = False
    gst_type: GstType = GstType.BAS_EXCLUDED

    @property
    def is_bank(self) -> bool:
        """Check if this is a bank account."""
        return self.account_type == AccountType.BANK

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Account":
        """Create an Account from a chart row (e.g., from YAML config).

        Unknown types fall back to Expense and unknown GST types to
        BAS Excluded.

        Args:
            data: Dictionary with code, name, type, gst, gstType keys.

        Returns:
            A new Account instance.

        Raises:
            ValueError: If the code is not a string.
        """
        try:
            account_type = AccountType(str(data.get("type", "Expense")))
        except ValueError:
            account_type = AccountType.EXPENSE

        try:
            gst_type = GstType(str(data.get("gstType", "BAS Excluded")))
        except ValueError:
            gst_type = GstType.BAS_EXCLUDED

        raw_code = data["code"]
        # Unquoted YAML codes like 050 load as (octal) integers
        if not isinstance(raw_code, str):
            raise ValueError(f"Account code must be a quoted string, got {raw_code!r}")
        code = raw_code.strip()

        return cls(
            code=code,
            name=str(data.get("name", code)),
            account_type=account_type,
            gst=bool(data.get("gst", False)),
            gst_type=gst_type,
        )

    def __repr__(self) -> str:
        return f"Account(code={self.code!r}, name={self.name!r}, type={self.account_type.value})"


class ChartOfAccounts:
    """Read-only code -> Account lookup."""

    def __init__(self, accounts: Iterable[Account] = ()):
        self._accounts: dict[str, Account] = {}
        for account in accounts:
            self._accounts[account.code] = account

    def get_account(self, code: str) -> Optional[Account]:
        """Get an account by its code, or None if it doesn't exist."""
        return self._accounts.get(code)

    def get_all_accounts(self) -> list[Account]:
        return list(self._accounts.values())

    def get_accounts_by_type(self, account_type: AccountType) -> list[Account]:
        return [a for a in self._accounts.values() if a.account_type == account_type]

    def codes(self) -> set[str]:
        return set(self._accounts)

    def __contains__(self, code: object) -> bool:
        return code in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def __repr__(self) -> str:
        return f"ChartOfAccounts({len(self._accounts)} accounts)"
