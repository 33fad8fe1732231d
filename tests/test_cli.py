"""Tests for the command-line interface."""

import io
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import call, patch

import pytest
from rich.console import Console

from ledger_reconciler.cli import (
    apply_logging_config,
    create_parser,
    get_log_level,
    main,
    validate_config,
)
from ledger_reconciler.config import Config, ConfigError, LoggingConfig, load_config
from ledger_reconciler.models.account import Account, AccountType, ChartOfAccounts

REPO_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class TestGetLogLevel:
    """Tests for verbosity mapping."""

    @pytest.mark.parametrize("verbosity,level", [(0, "WARNING"), (1, "INFO"), (2, "DEBUG"), (5, "DEBUG")])
    def test_levels(self, verbosity: int, level: str) -> None:
        """Test each -v count."""
        assert get_log_level(verbosity) == level


class TestValidateConfig:
    """Tests for --validate-only."""

    @pytest.fixture(autouse=True)
    def no_log_files(self) -> Iterator[None]:
        """Keep validation runs from writing log files."""
        with patch("ledger_reconciler.cli.setup_logging"):
            yield

    def test_repository_config_is_valid(self) -> None:
        """Test that the shipped configuration passes validation."""
        args = create_parser().parse_args(["--validate-only", "--config-dir", str(REPO_CONFIG_DIR)])
        assert validate_config(args) == 0

    def test_missing_codes_fail_validation(self, tmp_path: Path) -> None:
        """Test that categorizer codes absent from the chart are errors."""
        (tmp_path / "accounts.yaml").write_text(
            'accounts:\n  - {code: "001", name: Cheque, type: Bank}\n', encoding="utf-8"
        )
        args = create_parser().parse_args(["--validate-only", "--config-dir", str(tmp_path)])

        with patch("ledger_reconciler.cli.console") as mock_console:
            assert validate_config(args) == 1

        printed = " ".join(str(call.args[0]) for call in mock_console.print.call_args_list if call.args)
        assert "Account code 316 is used but missing" in printed

    def test_missing_accounts_file_fails(self, tmp_path: Path) -> None:
        """Test that validation requires a chart of accounts."""
        args = create_parser().parse_args(["--validate-only", "--config-dir", str(tmp_path)])
        assert validate_config(args) == 1

    def test_config_error_reported(self, tmp_path: Path) -> None:
        """Test that structural errors fail validation."""
        (tmp_path / "accounts.yaml").write_text("accounts: {}\n", encoding="utf-8")
        args = create_parser().parse_args(["--validate-only", "--config-dir", str(tmp_path)])

        with patch("ledger_reconciler.cli.load_config", side_effect=ConfigError("broken")):
            assert validate_config(args) == 1


class TestMain:
    """Tests for main()."""

    @pytest.fixture
    def config(self) -> Config:
        """Config with a small chart and built-in rules."""
        return Config(chart=ChartOfAccounts([
            Account("340", "Motor Vehicle Fuel", AccountType.EXPENSE),
            Account("150", "Other Income", AccountType.OTHER_INCOME),
        ]))

    def test_categorize_expense(self, config: Config) -> None:
        """Test printing an expense decision."""
        argv = ["ledger-reconciler", "--supplier", "BP Connect", "--description", "Fuel"]
        with (
            patch("sys.argv", argv),
            patch("ledger_reconciler.cli.setup_logging"),
            patch("ledger_reconciler.cli.load_config", return_value=config),
            patch("ledger_reconciler.cli.console") as mock_console,
        ):
            assert main() == 0

        printed = " ".join(str(call.args[0]) for call in mock_console.print.call_args_list)
        assert "340 (Motor Vehicle Fuel)" in printed
        assert "Rule: fuel" in printed

    def test_categorize_income(self, config: Config) -> None:
        """Test that --income selects the income table."""
        argv = [
            "ledger-reconciler",
            "--supplier", "Stripe",
            "--description", "Card processing services",
            "--income",
        ]
        with (
            patch("sys.argv", argv),
            patch("ledger_reconciler.cli.setup_logging"),
            patch("ledger_reconciler.cli.load_config", return_value=config),
            patch("ledger_reconciler.cli.console") as mock_console,
        ):
            assert main() == 0

        printed = " ".join(str(call.args[0]) for call in mock_console.print.call_args_list)
        assert "150 (Other Income)" in printed
        assert "Processing income" in printed

    def test_fallback_code_missing_from_chart(self, config: Config) -> None:
        """Test that an unknown account is flagged in the output."""
        argv = ["ledger-reconciler", "--supplier", "Unknown Supplier", "--description", "Miscellaneous purchase"]
        with (
            patch("sys.argv", argv),
            patch("ledger_reconciler.cli.setup_logging"),
            patch("ledger_reconciler.cli.load_config", return_value=config),
            patch("ledger_reconciler.cli.console") as mock_console,
        ):
            assert main() == 0

        printed = " ".join(str(call.args[0]) for call in mock_console.print.call_args_list)
        assert "316" in printed
        assert "not in chart of accounts" in printed
        assert "fallback" in printed

    def test_supplier_required(self) -> None:
        """Test that categorize mode needs --supplier."""
        with (
            patch("sys.argv", ["ledger-reconciler"]),
            patch("ledger_reconciler.cli.setup_logging"),
            patch("ledger_reconciler.cli.console"),
        ):
            assert main() == 1

    def test_config_error_exit_code(self) -> None:
        """Test that configuration errors exit with 1."""
        argv = ["ledger-reconciler", "--supplier", "GitHub"]
        with (
            patch("sys.argv", argv),
            patch("ledger_reconciler.cli.setup_logging"),
            patch("ledger_reconciler.cli.load_config", side_effect=ConfigError("bad rules")),
            patch("ledger_reconciler.cli.console"),
        ):
            assert main() == 1

    def test_validate_only_dispatch(self) -> None:
        """Test that --validate-only runs validation."""
        argv = ["ledger-reconciler", "--validate-only", "-vv"]
        with (
            patch("sys.argv", argv),
            patch("ledger_reconciler.cli.setup_logging") as mock_setup,
            patch("ledger_reconciler.cli.validate_config", return_value=0) as mock_validate,
        ):
            assert main() == 0

        mock_setup.assert_called_once_with(level="DEBUG", log_file="", console_output=True)
        mock_validate.assert_called_once()


class TestConsoleMarkup:
    """Tests that user-supplied text is printed literally."""

    @pytest.fixture
    def output(self) -> io.StringIO:
        """Buffer behind a plain-text console."""
        return io.StringIO()

    def run_categorize(self, output: io.StringIO, supplier: str, description: str = "") -> int:
        argv = ["ledger-reconciler", "--supplier", supplier, "--description", description]
        console = Console(file=output, width=200, color_system=None)
        with (
            patch("sys.argv", argv),
            patch("ledger_reconciler.cli.setup_logging"),
            patch("ledger_reconciler.cli.load_config", return_value=Config()),
            patch("ledger_reconciler.cli.console", console),
        ):
            return main()

    def test_markup_in_supplier_shown_verbatim(self, output: io.StringIO) -> None:
        """Test that square-bracket tags in a supplier name are not interpreted."""
        assert self.run_categorize(output, "[bold]Acme", "Miscellaneous purchase") == 0
        text = output.getvalue()

        assert "Expense: [bold]Acme" in text
        assert "general business expense from [bold]Acme" in text

    def test_unbalanced_closing_tag_does_not_raise(self, output: io.StringIO) -> None:
        """Test that a stray closing tag prints instead of failing."""
        assert self.run_categorize(output, "Acme [/red] Pty", "[/dim]") == 0
        assert "Acme [/red] Pty" in output.getvalue()


class TestApplyLoggingConfig:
    """Tests for applying settings.yaml logging options."""

    @pytest.fixture
    def config(self) -> Config:
        """Config with custom logging settings."""
        return Config(logging=LoggingConfig(level="ERROR", file="ledger-audit.log"))

    def test_settings_used_without_verbose(self, config: Config) -> None:
        """Test that level and file come from the settings."""
        with patch("ledger_reconciler.cli.setup_logging") as mock_setup:
            apply_logging_config(config, 0)

        mock_setup.assert_called_once_with(
            level="ERROR", log_file="ledger-audit.log", console_output=False
        )

    def test_verbose_overrides_level(self, config: Config) -> None:
        """Test that -v flags take precedence over the configured level."""
        with patch("ledger_reconciler.cli.setup_logging") as mock_setup:
            apply_logging_config(config, 2)

        mock_setup.assert_called_once_with(
            level="DEBUG", log_file="ledger-audit.log", console_output=True
        )

    def test_categorize_applies_settings(self, config: Config) -> None:
        """Test that the categorize command reconfigures logging after loading."""
        argv = ["ledger-reconciler", "--supplier", "GitHub", "--description", "Software"]
        with (
            patch("sys.argv", argv),
            patch("ledger_reconciler.cli.setup_logging") as mock_setup,
            patch("ledger_reconciler.cli.load_config", return_value=config),
            patch("ledger_reconciler.cli.console"),
        ):
            assert main() == 0

        assert mock_setup.call_args_list == [
            call(level="WARNING", log_file="", console_output=False),
            call(level="ERROR", log_file="ledger-audit.log", console_output=False),
        ]

    def test_validate_applies_settings(self, config: Config, tmp_path: Path) -> None:
        """Test that validation reconfigures logging once settings load."""
        args = create_parser().parse_args(["--validate-only", "--config-dir", str(tmp_path)])
        with (
            patch("ledger_reconciler.cli.setup_logging") as mock_setup,
            patch("ledger_reconciler.cli.load_config", return_value=config),
            patch("ledger_reconciler.cli.console"),
        ):
            validate_config(args)

        mock_setup.assert_called_once_with(
            level="ERROR", log_file="ledger-audit.log", console_output=False
        )


def test_repository_config_loads_for_cli() -> None:
    """Test that the CLI's default config directory layout loads."""
    config = load_config(config_dir=REPO_CONFIG_DIR)
    assert config.get_account("316") is not None
