"""Rule-based transaction categorizer.

Maps a supplier name and supplies description to an account code and a
justification. Used as a deterministic first pass before, or instead of,
AI-driven categorization. Every code emitted here must exist in the chart
of accounts; find_missing_account_codes() performs that check.
"""

from typing import Optional

from ledger_reconciler.models.account import ChartOfAccounts
from ledger_reconciler.models.category import (
    CategorizationResult,
    CategorizationRule,
    CategorizationRuleSet,
    Fallback,
    MatchMode,
)
from ledger_reconciler.models.journal import GeneralJournalEntry
from ledger_reconciler.utils.logging_config import get_logger

logger = get_logger(__name__)

# Account imported bank lines post to until categorized
UNCATEGORIZED_ACCOUNT_CODE = "999"

INCOME_RULES = (
    CategorizationRule(
        id="customer_payment",
        account_code="100",
        justification="Categorised as sales revenue: customer payment for products or services",
        keywords=("customer", "payment", "invoice", "sales"),
    ),
    CategorizationRule(
        id="payment_processor",
        account_code="150",
        justification="Categorised as other income: Processing income",
        keywords=("processing", "processor", "stripe", "square", "paypal", "merchant settlement"),
    ),
    CategorizationRule(
        id="interest_income",
        account_code="150",
        justification="Categorised as other income: Interest income",
        keywords=("interest",),
        match_mode=MatchMode.WORD_BOUNDARY,
    ),
)

EXPENSE_RULES = (
    CategorizationRule(
        id="software",
        account_code="400",
        justification="Categorised as Software and technology expense: {supplier}",
        keywords=("software", "subscription", "saas", "cloud hosting", "github", "adobe", "xero"),
    ),
    CategorizationRule(
        id="ingredients",
        account_code="206",
        justification="Categorised as Ingredients (COGS): {supplier}",
        keywords=("grocery", "groceries", "ingredient", "botanical", "supermarket", "woolworths", "coles"),
    ),
    CategorizationRule(
        id="marketing",
        account_code="305",
        justification="Categorised as Marketing and sponsorship: {supplier}",
        keywords=("marketing", "sponsorship", "advertising", "promotion"),
    ),
    CategorizationRule(
        id="bank_fees",
        account_code="310",
        justification="Categorised as Bank fees and charges",
        keywords=("bank fee", "account fee", "merchant fee", "international transaction fee"),
    ),
    CategorizationRule(
        id="fuel",
        account_code="340",
        justification="Categorised as Motor vehicle fuel: {supplier}",
        keywords=("fuel", "petrol", "diesel", "7-eleven", "ampol", "bp", "shell"),
        match_mode=MatchMode.WORD_BOUNDARY,
    ),
    CategorizationRule(
        id="telephone_internet",
        account_code="320",
        justification="Categorised as Telephone and internet: {supplier}",
        keywords=("telstra", "optus", "internet", "phone", "mobile", "broadband"),
        match_mode=MatchMode.WORD_BOUNDARY,
    ),
    CategorizationRule(
        id="travel",
        account_code="330",
        justification="Categorised as Travel: {supplier}",
        keywords=("flight", "flights", "airline", "qantas", "hotel", "accommodation", "taxi", "uber"),
        match_mode=MatchMode.WORD_BOUNDARY,
    ),
)

DEFAULT_RULES = CategorizationRuleSet(
    income_rules=INCOME_RULES,
    expense_rules=EXPENSE_RULES,
    income_fallback=Fallback(
        account_code="100",
        justification="Categorised as sales revenue: Revenue from {supplier}",
    ),
    expense_fallback=Fallback(
        account_code="316",
        justification="Categorised as Office Supplies: general business expense from {supplier}",
    ),
)


def normalize_text(supplier_name: str, supplies_description: str) -> str:
    """Combine supplier and description into lower-cased matching text."""
    return f"{supplier_name} {supplies_description}".strip().lower()


class TransactionCategorizer:
    """Categorizes transactions with ordered keyword rules.

    Rules are evaluated first-match-wins; when nothing matches the table's
    fallback account is used, so categorize() always returns a result.
    The categorizer holds no mutable state and is safe to share.
    """

    def __init__(self, rules: CategorizationRuleSet = DEFAULT_RULES):
        """Initialize categorizer.

        Args:
            rules: Income and expense rule tables.
        """
        self.rules = rules

    def categorize(
        self,
        supplier_name: str,
        supplies_description: str,
        is_income: bool,
    ) -> CategorizationResult:
        """Choose an account for a transaction.

        Args:
            supplier_name: Matched supplier name.
            supplies_description: What the supplier provides.
            is_income: True for money received, False for money spent.

        Returns:
            Account code and justification.
        """
        text = normalize_text(supplier_name, supplies_description)

        for rule in self.rules.rules_for(is_income):
            matched = rule.match(text)
            if matched is not None:
                logger.debug(
                    f"Rule {rule.id} matched {supplier_name!r} on {matched!r}: "
                    f"{rule.account_code}"
                )
                return rule.result(supplier_name, supplies_description, matched)

        fallback = self.rules.fallback_for(is_income)
        logger.debug(
            f"No rule matched {supplier_name!r}, using fallback account {fallback.account_code}"
        )
        return fallback.result(supplier_name, supplies_description)

    def categorize_income(self, supplier_name: str, supplies_description: str) -> CategorizationResult:
        return self.categorize(supplier_name, supplies_description, is_income=True)

    def categorize_expense(self, supplier_name: str, supplies_description: str) -> CategorizationResult:
        return self.categorize(supplier_name, supplies_description, is_income=False)

    def account_codes(self) -> frozenset[str]:
        return self.rules.account_codes()

    def categorize_entry(
        self,
        entry: GeneralJournalEntry,
        supplier_name: str,
        supplies_description: str,
        uncategorized_code: str = UNCATEGORIZED_ACCOUNT_CODE,
        gst_clearing_code: Optional[str] = None,
    ) -> tuple[GeneralJournalEntry, Optional[CategorizationResult]]:
        """Recategorize an entry that still posts to the uncategorized account.

        Income or expense is decided by which side the bank split is on.

        The categorizer does not consult the chart of accounts, so it never
        looks at the target account's gst flag. Callers that want the GST
        component split out must check Account.gst for the chosen code and
        pass gst_clearing_code; without it the full amount is posted to the
        chosen account.

        Args:
            entry: Journal entry to categorize.
            supplier_name: Matched supplier name.
            supplies_description: What the supplier provides.
            uncategorized_code: Placeholder account used by the import.
            gst_clearing_code: GST clearing account for GST-inclusive
                postings, or None to post without a GST split.

        Returns:
            Tuple of (new entry, result). Entries that are already
            categorized are returned unchanged with a None result.

        Raises:
            BankSplitError: If the entry's bank account cannot be derived.
        """
        if not entry.involves_account(uncategorized_code):
            return entry, None

        result = self.categorize(supplier_name, supplies_description, entry.is_income)
        updated = entry.recategorize(
            result.account_code,
            notes=f"Rule categorization: {result.justification}",
            gst_clearing_code=gst_clearing_code,
        )
        logger.info(
            f"Categorized {entry.description!r} ({entry.fingerprint_id}) "
            f"-> {result.account_code}"
        )
        return updated, result


_default_categorizer = TransactionCategorizer()


def categorize_income_transaction(
    supplier_name: str,
    supplies_description: str,
    rules: Optional[CategorizationRuleSet] = None,
) -> CategorizationResult:
    """Determine the account for an income transaction.

    Args:
        supplier_name: Matched supplier (payer) name.
        supplies_description: What the payer is paying for.
        rules: Rule tables (default: DEFAULT_RULES).

    Returns:
        Account code and justification; never fails.
    """
    categorizer = _default_categorizer if rules is None else TransactionCategorizer(rules)
    return categorizer.categorize_income(supplier_name, supplies_description)


def categorize_expense_transaction(
    supplier_name: str,
    supplies_description: str,
    rules: Optional[CategorizationRuleSet] = None,
) -> CategorizationResult:
    """Determine the account for an expense transaction.

    Args:
        supplier_name: Matched supplier name.
        supplies_description: What the supplier provides.
        rules: Rule tables (default: DEFAULT_RULES).

    Returns:
        Account code and justification; never fails.
    """
    categorizer = _default_categorizer if rules is None else TransactionCategorizer(rules)
    return categorizer.categorize_expense(supplier_name, supplies_description)


def categorize_entry(
    entry: GeneralJournalEntry,
    supplier_name: str,
    supplies_description: str,
    uncategorized_code: str = UNCATEGORIZED_ACCOUNT_CODE,
    gst_clearing_code: Optional[str] = None,
    rules: Optional[CategorizationRuleSet] = None,
) -> tuple[GeneralJournalEntry, Optional[CategorizationResult]]:
    """Convenience function to recategorize an uncategorized entry.

    See TransactionCategorizer.categorize_entry.
    """
    categorizer = _default_categorizer if rules is None else TransactionCategorizer(rules)
    return categorizer.categorize_entry(
        entry,
        supplier_name,
        supplies_description,
        uncategorized_code=uncategorized_code,
        gst_clearing_code=gst_clearing_code,
    )


def categorizer_account_codes(rules: Optional[CategorizationRuleSet] = None) -> frozenset[str]:
    """Every account code the categorizer can emit."""
    return (rules or DEFAULT_RULES).account_codes()


def find_missing_account_codes(
    chart: ChartOfAccounts,
    rules: Optional[CategorizationRuleSet] = None,
) -> list[str]:
    """Find categorizer account codes absent from the chart of accounts.

    Args:
        chart: Chart of accounts to check against.
        rules: Rule tables (default: DEFAULT_RULES).

    Returns:
        Sorted list of missing codes (empty when consistent).
    """
    missing = sorted(code for code in categorizer_account_codes(rules) if code not in chart)
    if missing:
        logger.warning(f"Categorizer emits codes missing from chart of accounts: {', '.join(missing)}")
    return missing
