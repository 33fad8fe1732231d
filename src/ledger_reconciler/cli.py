"""Command-line interface for the ledger reconciler."""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from ledger_reconciler import __version__
from ledger_reconciler.config import Config, ConfigError, default_config_dir, load_config
from ledger_reconciler.processing.categorizer import TransactionCategorizer
from ledger_reconciler.utils.logging_config import get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="ledger-reconciler",
        description=(
            "Check the chart of accounts against the categorization rules "
            "and categorize bank transactions"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --validate-only
  %(prog)s --supplier "GitHub" --description "Software subscription"
  %(prog)s --supplier "Stripe" --description "Card processing services" --income
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: <config-dir>/settings.yaml)",
    )

    parser.add_argument(
        "--accounts",
        type=Path,
        default=None,
        help="Path to accounts.yaml (default: <config-dir>/accounts.yaml)",
    )

    parser.add_argument(
        "--rules",
        type=Path,
        default=None,
        help="Path to categorization_rules.yaml (default: <config-dir>/categorization_rules.yaml)",
    )

    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Base config directory (default: $LEDGER_CONFIG_DIR or ./config)",
    )

    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate configuration and account code cross-references, then exit",
    )

    # Categorization
    categorize_group = parser.add_argument_group("Categorization")
    categorize_group.add_argument(
        "--supplier",
        default=None,
        help="Supplier name to categorize",
    )
    categorize_group.add_argument(
        "--description",
        default="",
        help="What the supplier provides",
    )
    categorize_group.add_argument(
        "--income",
        action="store_true",
        help="Treat the transaction as income (default: expense)",
    )

    # Verbosity
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    )

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def apply_logging_config(config: Config, verbosity: int) -> None:
    """Reconfigure logging from settings.yaml once configuration is loaded.

    -v flags override the configured level. The log file always comes from
    the settings (an empty value disables file logging).

    Args:
        config: Loaded configuration.
        verbosity: Number of -v flags.
    """
    level = get_log_level(verbosity) if verbosity else config.logging.level
    setup_logging(level=level, log_file=config.logging.file, console_output=verbosity > 0)


def validate_config(args: argparse.Namespace) -> int:
    """Validate configuration files and account code cross-references.

    Args:
        args: Parsed command-line arguments.

    Returns:
        0 if valid, 1 if errors found.
    """
    console.print("[bold]Validating configuration files...[/bold]\n")

    errors = []
    warnings = []

    config_dir = args.config_dir or default_config_dir()
    if not config_dir.exists():
        warnings.append(f"Config directory not found: {config_dir}")

    settings_path = args.config or (config_dir / "settings.yaml")
    if settings_path.exists():
        console.print(f"[green]✓[/green] Settings: {settings_path}")
    else:
        warnings.append(f"Settings file not found: {settings_path}")

    accounts_path = args.accounts or (config_dir / "accounts.yaml")
    if accounts_path.exists():
        console.print(f"[green]✓[/green] Accounts: {accounts_path}")
    else:
        errors.append(f"Accounts file not found: {accounts_path}")

    rules_path = args.rules or (config_dir / "categorization_rules.yaml")
    if rules_path.exists():
        console.print(f"[green]✓[/green] Rules: {rules_path}")
    else:
        console.print("[dim]Using built-in categorization rules[/dim]")

    try:
        config = load_config(
            settings_path=args.config,
            accounts_path=args.accounts,
            rules_path=args.rules,
            config_dir=config_dir,
        )
    except (ConfigError, FileNotFoundError) as e:
        errors.append(f"Failed to load configuration: {e}")
    else:
        apply_logging_config(config, args.verbose)
        console.print("\n[green]✓[/green] Configuration loaded successfully")
        console.print(f"  - {len(config.chart)} accounts")
        console.print(f"  - {len(config.rules.income_rules)} income rules")
        console.print(f"  - {len(config.rules.expense_rules)} expense rules")

        if len(config.chart):
            for code in config.find_missing_codes():
                errors.append(f"Account code {code} is used but missing from the chart of accounts")

    if warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for w in warnings:
            console.print(f"  - {escape(w)}")

    if errors:
        console.print("\n[red]Errors:[/red]")
        for err in errors:
            console.print(f"  - {escape(err)}")
        return 1

    console.print("\n[green]Configuration is valid.[/green]")
    return 0


def categorize_command(args: argparse.Namespace) -> int:
    """Print the categorization decision for one supplier.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    try:
        config = load_config(
            settings_path=args.config,
            accounts_path=args.accounts,
            rules_path=args.rules,
            config_dir=args.config_dir,
        )
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        console.print("Run with --validate-only to check configuration files.")
        return 1

    apply_logging_config(config, args.verbose)

    categorizer = TransactionCategorizer(config.rules)
    result = categorizer.categorize(args.supplier, args.description, is_income=args.income)

    account = config.get_account(result.account_code)
    account_name = escape(account.name) if account else "[yellow]not in chart of accounts[/yellow]"

    kind = "Income" if args.income else "Expense"
    console.print(f"[bold]{kind}:[/bold] {escape(args.supplier)}")
    console.print(f"  Account: {result.account_code} ({account_name})")
    console.print(f"  Justification: {escape(result.justification)}")
    if result.is_fallback:
        console.print("  [dim]No rule matched; fallback account used[/dim]")
    else:
        matched = escape(repr(result.matched_keyword))
        console.print(f"  [dim]Rule: {result.rule_id} (matched {matched})[/dim]")

    return 0


def main() -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args()

    log_level = get_log_level(args.verbose)
    # File logging starts once settings.yaml has been read
    setup_logging(level=log_level, log_file="", console_output=args.verbose > 0)

    if args.validate_only:
        return validate_config(args)

    if args.supplier is None:
        console.print("[red]Error: --supplier is required unless --validate-only is used[/red]")
        parser.print_usage()
        return 1

    return categorize_command(args)


if __name__ == "__main__":
    sys.exit(main())
