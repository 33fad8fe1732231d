"""Configuration loading and validation for the ledger reconciler."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from ledger_reconciler.models.account import Account, ChartOfAccounts, is_bank_account_code
from ledger_reconciler.models.category import (
    CategorizationRule,
    CategorizationRuleSet,
    Fallback,
)
from ledger_reconciler.processing.categorizer import DEFAULT_RULES, UNCATEGORIZED_ACCOUNT_CODE
from ledger_reconciler.utils.logging_config import DEFAULT_LOG_FILE, get_logger

logger = get_logger(__name__)

# Environment variable overriding the default ./config directory
CONFIG_DIR_ENV = "LEDGER_CONFIG_DIR"

DEFAULT_GST_CLEARING_ACCOUNT_CODE = "506"


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


@dataclass
class LedgerConfig:
    """Ledger-wide account conventions.

    Attributes:
        uncategorized_account_code: Placeholder account imports post to.
        gst_clearing_account_code: Account receiving the GST component.
    """

    uncategorized_account_code: str = UNCATEGORIZED_ACCOUNT_CODE
    gst_clearing_account_code: str = DEFAULT_GST_CLEARING_ACCOUNT_CODE

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LedgerConfig":
        """Create from dictionary."""
        config = cls(
            uncategorized_account_code=_code_value(
                data, "uncategorized_account_code", UNCATEGORIZED_ACCOUNT_CODE
            ),
            gst_clearing_account_code=_code_value(
                data, "gst_clearing_account_code", DEFAULT_GST_CLEARING_ACCOUNT_CODE
            ),
        )
        for code in (config.uncategorized_account_code, config.gst_clearing_account_code):
            if is_bank_account_code(code):
                raise ConfigError(f"Ledger account {code} must not be in the bank range (000-099)")
        return config


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file (empty string disables file logging).
    """

    level: str = "INFO"
    file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", DEFAULT_LOG_FILE) or ""),
        )


@dataclass
class Config:
    """Main configuration container.

    Attributes:
        chart: Chart of accounts.
        rules: Categorization rule tables.
        ledger: Ledger account conventions.
        logging: Logging configuration.
    """

    chart: ChartOfAccounts = field(default_factory=ChartOfAccounts)
    rules: CategorizationRuleSet = DEFAULT_RULES
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get_account(self, code: str) -> Optional[Account]:
        return self.chart.get_account(code)

    def find_missing_codes(self) -> list[str]:
        """Find configured account codes absent from the chart.

        Covers every code the categorizer can emit plus the ledger's
        uncategorized and GST clearing accounts.

        Returns:
            Sorted list of missing codes.
        """
        required = set(self.rules.account_codes())
        required.add(self.ledger.uncategorized_account_code)
        required.add(self.ledger.gst_clearing_account_code)
        return sorted(code for code in required if code not in self.chart)


def _code_value(data: dict[str, object], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a quoted string, got {value!r}")
    return value


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is invalid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content


def load_settings(path: Path) -> tuple[LedgerConfig, LoggingConfig]:
    """Load settings from settings.yaml.

    Args:
        path: Path to settings.yaml.

    Returns:
        Tuple of (LedgerConfig, LoggingConfig).
    """
    data = load_yaml_file(path)

    ledger = LedgerConfig()
    if data.get("ledger"):
        ledger = LedgerConfig.from_dict(data["ledger"])  # type: ignore[arg-type]

    logging_config = LoggingConfig()
    if data.get("logging"):
        logging_config = LoggingConfig.from_dict(data["logging"])  # type: ignore[arg-type]

    return ledger, logging_config


def load_accounts(path: Path) -> ChartOfAccounts:
    """Load the chart of accounts from accounts.yaml.

    Args:
        path: Path to accounts.yaml.

    Returns:
        ChartOfAccounts built from the 'accounts' list.

    Raises:
        ConfigError: If the list is malformed or a code repeats.
    """
    data = load_yaml_file(path)

    accounts_list = data.get("accounts") or []
    if not isinstance(accounts_list, list):
        raise ConfigError(f"'accounts' must be a list, got {type(accounts_list).__name__}")

    accounts: list[Account] = []
    seen: set[str] = set()
    for account_data in accounts_list:
        try:
            account = Account.from_dict(account_data)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid account entry {account_data!r} in {path}: {e}") from e
        if account.code in seen:
            raise ConfigError(f"Duplicate account code {account.code} in {path}")
        seen.add(account.code)
        accounts.append(account)

    return ChartOfAccounts(accounts)


def _load_rule_list(data: dict[str, object], key: str, path: Path) -> list[CategorizationRule]:
    rule_list = data.get(key) or []
    if not isinstance(rule_list, list):
        raise ConfigError(f"'{key}' must be a list, got {type(rule_list).__name__}")

    rules: list[CategorizationRule] = []
    for rule_data in rule_list:
        try:
            rules.append(CategorizationRule.from_dict(rule_data))
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid {key} rule {rule_data!r} in {path}: {e}") from e
    return rules


def _load_fallback(data: dict[str, object], key: str, default: Fallback, path: Path) -> Fallback:
    if not data.get(key):
        return default
    try:
        return Fallback.from_dict(data[key])  # type: ignore[arg-type]
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {key} in {path}: {e}") from e


def load_categorization_rules(path: Path) -> CategorizationRuleSet:
    """Load categorization rule tables from categorization_rules.yaml.

    Rules keep their file order (first match wins). A missing table or
    fallback keeps the built-in default for that side.

    Args:
        path: Path to categorization_rules.yaml.

    Returns:
        CategorizationRuleSet.
    """
    data = load_yaml_file(path)

    income_rules = _load_rule_list(data, "income", path) if "income" in data else None
    expense_rules = _load_rule_list(data, "expense", path) if "expense" in data else None

    return CategorizationRuleSet(
        income_rules=DEFAULT_RULES.income_rules if income_rules is None else income_rules,
        expense_rules=DEFAULT_RULES.expense_rules if expense_rules is None else expense_rules,
        income_fallback=_load_fallback(
            data, "income_fallback", DEFAULT_RULES.income_fallback, path
        ),
        expense_fallback=_load_fallback(
            data, "expense_fallback", DEFAULT_RULES.expense_fallback, path
        ),
    )


def default_config_dir() -> Path:
    """Config directory from $LEDGER_CONFIG_DIR, or ./config."""
    return Path(os.environ.get(CONFIG_DIR_ENV) or "config")


def load_config(
    settings_path: Optional[Path] = None,
    accounts_path: Optional[Path] = None,
    rules_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load complete configuration from all config files.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        accounts_path: Path to accounts.yaml (or None to use default).
        rules_path: Path to categorization_rules.yaml (or None to use default).
        config_dir: Base config directory (default: $LEDGER_CONFIG_DIR or ./config).

    Returns:
        Complete Config object.

    Raises:
        ConfigError: If a config file is structurally invalid.
    """
    if config_dir is None:
        config_dir = default_config_dir()

    if settings_path is None:
        settings_path = config_dir / "settings.yaml"
    if accounts_path is None:
        accounts_path = config_dir / "accounts.yaml"
    if rules_path is None:
        rules_path = config_dir / "categorization_rules.yaml"

    config = Config()

    # Load settings (optional - use defaults if missing)
    if settings_path.exists():
        config.ledger, config.logging = load_settings(settings_path)
        logger.info(f"Loaded settings from {settings_path}")
    else:
        logger.warning(f"Settings file not found: {settings_path}, using defaults")

    if accounts_path.exists():
        config.chart = load_accounts(accounts_path)
        logger.info(f"Loaded {len(config.chart)} accounts from {accounts_path}")
    else:
        logger.warning(f"Accounts file not found: {accounts_path}")

    # Rules file is optional; built-in tables apply without it
    if rules_path.exists():
        config.rules = load_categorization_rules(rules_path)
        logger.info(
            f"Loaded {len(config.rules.income_rules)} income and "
            f"{len(config.rules.expense_rules)} expense rules from {rules_path}"
        )
    else:
        logger.debug(f"No rules file at {rules_path}, using built-in categorization rules")

    return config
