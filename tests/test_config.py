"""Tests for configuration loading."""

from pathlib import Path

import pytest

from ledger_reconciler.config import (
    Config,
    ConfigError,
    LedgerConfig,
    LoggingConfig,
    load_accounts,
    load_categorization_rules,
    load_config,
    load_settings,
    load_yaml_file,
)
from ledger_reconciler.models.account import AccountType, GstType
from ledger_reconciler.processing.categorizer import DEFAULT_RULES

REPO_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def write_yaml(path: Path, content: str) -> Path:
    """Write YAML content to a file and return its path."""
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadYamlFile:
    """Tests for load_yaml_file."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file loads as an empty mapping."""
        assert load_yaml_file(write_yaml(tmp_path / "empty.yaml", "")) == {}

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test that malformed YAML raises ConfigError."""
        path = write_yaml(tmp_path / "bad.yaml", "accounts: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_yaml_file(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        """Test that a top-level list is rejected."""
        path = write_yaml(tmp_path / "list.yaml", "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_yaml_file(path)


class TestLoadAccounts:
    """Tests for load_accounts."""

    def test_repository_chart(self) -> None:
        """Test the chart shipped in config/accounts.yaml."""
        chart = load_accounts(REPO_CONFIG_DIR / "accounts.yaml")

        operating = chart.get_account("001")
        assert operating is not None
        assert operating.is_bank
        assert "050" in chart
        assert chart.get_account("506").account_type == AccountType.CURRENT_LIABILITY  # type: ignore[union-attr]
        assert chart.get_account("100").gst_type == GstType.GST_ON_INCOME  # type: ignore[union-attr]
        assert all(a.code.isdigit() and len(a.code) == 3 for a in chart.get_all_accounts())

    def test_bank_accounts_in_bank_range(self) -> None:
        """Test that every Bank account uses a 000-099 code."""
        chart = load_accounts(REPO_CONFIG_DIR / "accounts.yaml")
        for account in chart.get_accounts_by_type(AccountType.BANK):
            assert int(account.code) <= 99

    def test_unquoted_code_rejected(self, tmp_path: Path) -> None:
        """Test that an unquoted numeric code is reported."""
        path = write_yaml(tmp_path / "accounts.yaml", """
accounts:
  - code: 050
    name: PayPal Clearing
    type: Bank
""")
        with pytest.raises(ConfigError, match="quoted string"):
            load_accounts(path)

    def test_duplicate_code_rejected(self, tmp_path: Path) -> None:
        """Test that a code may only appear once."""
        path = write_yaml(tmp_path / "accounts.yaml", """
accounts:
  - {code: "400", name: Software, type: Expense}
  - {code: "400", name: Subscriptions, type: Expense}
""")
        with pytest.raises(ConfigError, match="Duplicate account code 400"):
            load_accounts(path)

    def test_accounts_not_list(self, tmp_path: Path) -> None:
        """Test that accounts must be a list."""
        path = write_yaml(tmp_path / "accounts.yaml", "accounts:\n  x: 1\n")
        with pytest.raises(ConfigError, match="must be a list"):
            load_accounts(path)

    def test_unknown_type_defaults_to_expense(self, tmp_path: Path) -> None:
        """Test lenient parsing of account types."""
        path = write_yaml(tmp_path / "accounts.yaml", """
accounts:
  - {code: "420", name: Misc, type: Sundry, gstType: Unknown}
""")
        account = load_accounts(path).get_account("420")
        assert account is not None
        assert account.account_type == AccountType.EXPENSE
        assert account.gst_type == GstType.BAS_EXCLUDED


class TestLoadSettings:
    """Tests for load_settings."""

    def test_repository_settings(self) -> None:
        """Test the shipped settings.yaml."""
        ledger, logging_config = load_settings(REPO_CONFIG_DIR / "settings.yaml")
        assert ledger == LedgerConfig("999", "506")
        assert logging_config.level == "INFO"

    def test_defaults_for_missing_sections(self, tmp_path: Path) -> None:
        """Test defaults when sections are absent."""
        ledger, logging_config = load_settings(write_yaml(tmp_path / "settings.yaml", "{}"))
        assert ledger == LedgerConfig()
        assert logging_config == LoggingConfig()

    def test_empty_log_file_disables_file_logging(self, tmp_path: Path) -> None:
        """Test that a null log file maps to an empty path."""
        path = write_yaml(tmp_path / "settings.yaml", "logging:\n  level: DEBUG\n  file: null\n")
        _, logging_config = load_settings(path)
        assert logging_config.level == "DEBUG"
        assert logging_config.file == ""

    def test_bank_range_ledger_code_rejected(self, tmp_path: Path) -> None:
        """Test that the uncategorized account cannot be a bank account."""
        path = write_yaml(tmp_path / "settings.yaml", 'ledger:\n  uncategorized_account_code: "001"\n')
        with pytest.raises(ConfigError, match="bank range"):
            load_settings(path)

    def test_unquoted_ledger_code_rejected(self, tmp_path: Path) -> None:
        """Test that ledger codes must be quoted."""
        path = write_yaml(tmp_path / "settings.yaml", "ledger:\n  gst_clearing_account_code: 506\n")
        with pytest.raises(ConfigError, match="quoted string"):
            load_settings(path)


class TestLoadCategorizationRules:
    """Tests for load_categorization_rules."""

    def test_example_rules_file(self) -> None:
        """Test the shipped example rules."""
        rules = load_categorization_rules(REPO_CONFIG_DIR / "categorization_rules.example.yaml")

        assert [r.id for r in rules.income_rules] == ["customer_payment", "payment_processor"]
        assert rules.expense_rules[1].match("bp connect") == "bp"
        assert rules.expense_fallback.account_code == "316"

    def test_missing_table_keeps_defaults(self, tmp_path: Path) -> None:
        """Test that an omitted table keeps the built-in rules."""
        path = write_yaml(tmp_path / "rules.yaml", """
expense:
  - id: catering
    account: "206"
    keywords: [catering]
""")
        rules = load_categorization_rules(path)

        assert rules.income_rules == DEFAULT_RULES.income_rules
        assert [r.id for r in rules.expense_rules] == ["catering"]
        assert rules.income_fallback == DEFAULT_RULES.income_fallback

    def test_unquoted_rule_account_rejected(self, tmp_path: Path) -> None:
        """Test that rule account codes must be quoted."""
        path = write_yaml(tmp_path / "rules.yaml", """
income:
  - id: sales
    account: 100
    keywords: [sales]
""")
        with pytest.raises(ConfigError, match="quoted string"):
            load_categorization_rules(path)

    def test_rule_without_id_rejected(self, tmp_path: Path) -> None:
        """Test that malformed rules raise ConfigError."""
        path = write_yaml(tmp_path / "rules.yaml", 'expense:\n  - account: "316"\n')
        with pytest.raises(ConfigError):
            load_categorization_rules(path)


class TestLoadConfig:
    """Tests for load_config."""

    def test_repository_config(self) -> None:
        """Test loading the shipped config directory."""
        config = load_config(config_dir=REPO_CONFIG_DIR)

        assert len(config.chart) > 0
        assert config.rules is DEFAULT_RULES
        assert config.find_missing_codes() == []

    def test_missing_files_use_defaults(self, tmp_path: Path) -> None:
        """Test that an empty config directory loads defaults."""
        config = load_config(config_dir=tmp_path)

        assert len(config.chart) == 0
        assert config.ledger == LedgerConfig()
        assert config.rules is DEFAULT_RULES

    def test_env_config_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that LEDGER_CONFIG_DIR selects the config directory."""
        write_yaml(tmp_path / "accounts.yaml", 'accounts:\n  - {code: "001", name: Cheque, type: Bank}\n')
        monkeypatch.setenv("LEDGER_CONFIG_DIR", str(tmp_path))

        config = load_config()
        assert config.get_account("001") is not None

    def test_find_missing_codes_includes_ledger_accounts(self) -> None:
        """Test that uncategorized and GST accounts are cross-checked."""
        config = Config()
        missing = config.find_missing_codes()
        assert "999" in missing
        assert "506" in missing
        assert "316" in missing
