"""Bank transaction duplicate detection."""

from collections.abc import Iterable

from ledger_reconciler.models.journal import BankFingerprint, GeneralJournalEntry
from ledger_reconciler.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)


def is_same_bank_transaction(a: GeneralJournalEntry, b: GeneralJournalEntry) -> bool:
    """Check if two journal entries record the same bank event.

    Two entries match when date, description (exact), amount and bank
    account are all equal. The non-bank side is ignored because
    categorization rewrites it, and bank_balance is ignored because
    running balances differ between statement downloads.

    Args:
        a: First entry.
        b: Second entry.

    Returns:
        True if both entries refer to the same bank transaction.

    Raises:
        BankSplitError: If either entry has no bank split or more than one.
    """
    # Derive both fingerprints up front so a malformed entry always raises
    fp_a = a.fingerprint
    fp_b = b.fingerprint

    if fp_a.date != fp_b.date:
        return False
    if fp_a.description != fp_b.description:
        return False
    if fp_a.amount != fp_b.amount:
        return False
    if fp_a.bank_code != fp_b.bank_code:
        return False

    return True


class DuplicateMatcher:
    """Finds journal entries that record the same bank event.

    The matcher does not decide how many matches make a candidate a
    duplicate. Distinct transactions can share a fingerprint (two equal
    ATM withdrawals on one day), so the import pipeline compares
    match counts against the statement itself.

    Entries are never modified.
    """

    def find_matches(
        self,
        candidate: GeneralJournalEntry,
        entries: Iterable[GeneralJournalEntry],
    ) -> list[GeneralJournalEntry]:
        """Find entries recording the same bank event as candidate.

        Args:
            candidate: Entry being imported.
            entries: Existing ledger entries.

        Returns:
            Matching entries in their original order.

        Raises:
            BankSplitError: If the candidate or any entry is malformed.
        """
        matches = [entry for entry in entries if is_same_bank_transaction(candidate, entry)]
        if matches:
            logger.debug(
                f"{len(matches)} existing entries match {candidate.description!r} "
                f"({candidate.fingerprint_id})"
            )
        return matches

    def count_matches(
        self,
        candidate: GeneralJournalEntry,
        entries: Iterable[GeneralJournalEntry],
    ) -> int:
        """Count entries recording the same bank event as candidate."""
        return len(self.find_matches(candidate, entries))

    def count_identical_entries(
        self,
        candidate: GeneralJournalEntry,
        entries: Iterable[GeneralJournalEntry],
    ) -> int:
        """Count entries structurally equal to candidate.

        Unlike count_matches, this distinguishes categorizations: entries
        posted to different accounts are not counted.
        """
        return sum(1 for entry in entries if entry == candidate)

    def group_by_fingerprint(
        self, entries: Iterable[GeneralJournalEntry]
    ) -> dict[BankFingerprint, list[GeneralJournalEntry]]:
        """Group entries by their bank fingerprint.

        Args:
            entries: Ledger entries.

        Returns:
            Dict of fingerprint to entries, in first-seen order.

        Raises:
            BankSplitError: If any entry is malformed.
        """
        groups: dict[BankFingerprint, list[GeneralJournalEntry]] = {}
        for entry in entries:
            groups.setdefault(entry.fingerprint, []).append(entry)
        return groups

    def get_duplicate_groups(
        self, entries: Iterable[GeneralJournalEntry]
    ) -> list[list[GeneralJournalEntry]]:
        """Collect groups of two or more entries sharing a fingerprint.

        Args:
            entries: Ledger entries.

        Returns:
            List of groups for manual review.
        """
        with LogContext(logger, "duplicate scan"):
            groups = [
                group for group in self.group_by_fingerprint(entries).values() if len(group) > 1
            ]
        logger.info(f"Found {len(groups)} groups of entries sharing a bank fingerprint")
        return groups


def find_matching_entries(
    candidate: GeneralJournalEntry,
    entries: Iterable[GeneralJournalEntry],
) -> list[GeneralJournalEntry]:
    """Convenience function to find entries matching a candidate.

    Args:
        candidate: Entry being imported.
        entries: Existing ledger entries.

    Returns:
        Entries recording the same bank event.
    """
    return DuplicateMatcher().find_matches(candidate, entries)
