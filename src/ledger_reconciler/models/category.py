"""Categorization rule data models."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ledger_reconciler.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum pattern length to prevent overly complex patterns
MAX_PATTERN_LENGTH = 500

# Detects nested quantifiers such as (a+)+ or (\w+){2,} that can backtrack catastrophically
_NESTED_QUANTIFIER_PATTERN = re.compile(
    r"\([^)]*[+*?][^)]*\)[+*?]|"
    r"\([^)]*[+*?][^)]*\)\{[0-9,]+\}"
)


def _is_safe_pattern(pattern: str) -> tuple[bool, str]:
    """Check if a regex pattern is safe from ReDoS.

    Args:
        pattern: Regex pattern string to validate.

    Returns:
        Tuple of (is_safe, reason if unsafe).
    """
    if len(pattern) > MAX_PATTERN_LENGTH:
        return False, f"Pattern exceeds {MAX_PATTERN_LENGTH} character limit"

    if _NESTED_QUANTIFIER_PATTERN.search(pattern):
        return False, "Pattern contains dangerous nested quantifier"

    return True, ""


def render_justification(template: str, supplier_name: str, supplies_description: str) -> str:
    """Fill {supplier} and {description} placeholders in a justification.

    Substitution is literal, so stray braces in a template are left alone.
    """
    return template.replace("{supplier}", supplier_name).replace(
        "{description}", supplies_description
    )


class MatchMode(Enum):
    """Matching mode for rule keywords."""

    SUBSTRING = "substring"  # Default: "ads" matches "roads"
    WORD_BOUNDARY = "word"  # "bp" only matches as a whole word


@dataclass(frozen=True)
class CategorizationResult:
    """Account decision for one transaction.

    Attributes:
        account_code: Account code to post the transaction to.
        justification: Human-readable reason for the decision.
        rule_id: ID of the rule that matched, or None for a fallback.
        matched_keyword: Keyword or pattern that matched, if any.
    """

    account_code: str
    justification: str
    rule_id: Optional[str] = None
    matched_keyword: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.rule_id is None


@dataclass(frozen=True)
class CategorizationRule:
    """Keyword rule mapping transaction text to an account code.

    Keywords are matched case-insensitively against the combined supplier
    name and supplies description. A rule matches when any keyword or any
    regex pattern matches.

    Attributes:
        id: Unique identifier for this rule.
        account_code: Account code emitted when the rule matches.
        justification: Justification template ({supplier}, {description}).
        keywords: Keywords for case-insensitive matching.
        regex_patterns: Regex patterns matched against the combined text.
        match_mode: How keywords are matched (substring or word boundary).
        is_active: Whether this rule is evaluated.
    """

    id: str
    account_code: str
    justification: str
    keywords: tuple[str, ...] = ()
    regex_patterns: tuple[str, ...] = ()
    match_mode: MatchMode = MatchMode.SUBSTRING
    is_active: bool = True

    _compiled_patterns: tuple[re.Pattern[str], ...] = field(
        default=(), init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Freeze keyword lists and compile regex patterns once."""
        object.__setattr__(self, "keywords", tuple(self.keywords))
        object.__setattr__(self, "regex_patterns", tuple(self.regex_patterns))

        compiled: list[re.Pattern[str]] = []
        for pattern in self.regex_patterns:
            is_safe, reason = _is_safe_pattern(pattern)
            if not is_safe:
                logger.warning(
                    f"Rejecting unsafe regex pattern '{pattern}' in rule '{self.id}': {reason}"
                )
                continue
            try:
                compiled.append(re.compile(pattern, re.IGNORECASE))
            except re.error as e:
                logger.warning(f"Invalid regex pattern '{pattern}' in rule '{self.id}': {e}")
        object.__setattr__(self, "_compiled_patterns", tuple(compiled))

        if not self.keywords and not self._compiled_patterns:
            logger.warning(f"Rule '{self.id}' has no usable keywords or patterns and will match nothing")

    def match(self, text: str) -> Optional[str]:
        """Match normalized transaction text against this rule.

        Args:
            text: Lower-cased "<supplier> <description>" text.

        Returns:
            The keyword or pattern that matched, or None.
        """
        if not self.is_active:
            return None

        for keyword in self.keywords:
            kw_lower = keyword.lower()
            if self.match_mode == MatchMode.WORD_BOUNDARY:
                if re.search(r"\b" + re.escape(kw_lower) + r"\b", text):
                    return keyword
            elif kw_lower in text:
                return keyword

        for pattern in self._compiled_patterns:
            if pattern.search(text):
                return pattern.pattern

        return None

    def result(
        self,
        supplier_name: str,
        supplies_description: str,
        matched_keyword: Optional[str] = None,
    ) -> CategorizationResult:
        """Build the categorization result for a match."""
        return CategorizationResult(
            account_code=self.account_code,
            justification=render_justification(
                self.justification, supplier_name, supplies_description
            ),
            rule_id=self.id,
            matched_keyword=matched_keyword,
        )

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "CategorizationRule":
        """Create a rule from a dictionary (e.g., from YAML config).

        Args:
            data: Dictionary containing rule data.

        Returns:
            A new CategorizationRule instance.
        """
        match_mode = MatchMode.SUBSTRING
        if str(data.get("match_mode", "substring")).lower() == "word":
            match_mode = MatchMode.WORD_BOUNDARY

        account_code = data["account"]
        if not isinstance(account_code, str):
            raise ValueError(f"Rule account code must be a quoted string, got {account_code!r}")

        return cls(
            id=str(data["id"]),
            account_code=account_code,
            justification=str(data.get("justification", f"Matched rule {data['id']}")),
            keywords=tuple(str(k) for k in data.get("keywords", [])),  # type: ignore[attr-defined]
            regex_patterns=tuple(str(p) for p in data.get("regex_patterns", [])),  # type: ignore[attr-defined]
            match_mode=match_mode,
            is_active=bool(data.get("is_active", True)),
        )

    def __repr__(self) -> str:
        return f"CategorizationRule(id={self.id!r}, account={self.account_code!r})"


@dataclass(frozen=True)
class Fallback:
    """Account used when no rule in a table matches."""

    account_code: str
    justification: str

    def result(self, supplier_name: str, supplies_description: str) -> CategorizationResult:
        return CategorizationResult(
            account_code=self.account_code,
            justification=render_justification(
                self.justification, supplier_name, supplies_description
            ),
        )

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Fallback":
        account_code = data["account"]
        if not isinstance(account_code, str):
            raise ValueError(f"Fallback account code must be a quoted string, got {account_code!r}")
        return cls(account_code=account_code, justification=str(data.get("justification", "")))


@dataclass(frozen=True)
class CategorizationRuleSet:
    """Ordered income and expense rule tables with their fallbacks.

    Tables are evaluated first-match-wins, so specific rules must come
    before general ones.
    """

    income_rules: tuple[CategorizationRule, ...]
    expense_rules: tuple[CategorizationRule, ...]
    income_fallback: Fallback
    expense_fallback: Fallback

    def __post_init__(self) -> None:
        object.__setattr__(self, "income_rules", tuple(self.income_rules))
        object.__setattr__(self, "expense_rules", tuple(self.expense_rules))

    def rules_for(self, is_income: bool) -> tuple[CategorizationRule, ...]:
        return self.income_rules if is_income else self.expense_rules

    def fallback_for(self, is_income: bool) -> Fallback:
        return self.income_fallback if is_income else self.expense_fallback

    def account_codes(self) -> frozenset[str]:
        """Every account code any rule or fallback can emit."""
        codes = {rule.account_code for rule in (*self.income_rules, *self.expense_rules)}
        codes.add(self.income_fallback.account_code)
        codes.add(self.expense_fallback.account_code)
        return frozenset(codes)
