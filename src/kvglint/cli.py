"""
kvglint.cli - Command-line interface.

Main entry point for the kvglint CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from kvglint import __version__
from kvglint.commands import init, repair_cmd, rules_cmd, validate
from kvglint.core.rules import RULES_BY_NAME


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kvglint",
        description="Validation and id repair for KanjiVG stroke-order SVG files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kvglint validate                     # Validate every file in the kanji directory
  kvglint validate --include '04e0*'   # Validate a subset
  kvglint validate --rule stroke-ids   # Run a single rule
  kvglint repair-ids --dry-run         # Show which ids would be rewritten
  kvglint repair-ids                   # Rewrite misnumbered ids in place

Configuration:
  kvglint init                         # Create .kvglint.toml in current directory
  kvglint rules                        # List validation rules

For detailed command help: kvglint <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"kvglint {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "--dir",
        type=Path,
        help="Override KanjiVG directory",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate KanjiVG files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kvglint validate                          # All files, all rules
  kvglint validate --exclude '*-*'          # Skip variant files (e.g. 04e00-Kaisho)
  kvglint validate --skip-rule number-positions
  kvglint validate --json                   # Machine-readable report

Exit codes: 0 when every file parsed and passed, 1 otherwise.
        """,
    )
    _add_file_filters(validate_parser)
    validate_parser.add_argument(
        "--rule",
        action="append",
        choices=list(RULES_BY_NAME),
        help="Run only this rule (repeatable)",
        metavar="NAME",
    )
    validate_parser.add_argument(
        "--skip-rule",
        action="append",
        choices=list(RULES_BY_NAME),
        help="Skip this rule (repeatable)",
        metavar="NAME",
    )
    validate_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output the report as JSON",
    )

    # repair-ids command
    repair_parser = subparsers.add_parser(
        "repair-ids",
        help="Rewrite misnumbered ids, preserving all other content",
    )
    _add_file_filters(repair_parser)
    repair_parser.add_argument(
        "--output-dir",
        type=Path,
        help="Write repaired files here instead of overwriting",
        metavar="PATH",
    )
    repair_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing files",
    )

    # rules command
    rules_parser = subparsers.add_parser(
        "rules",
        help="List validation rules",
    )
    rules_parser.add_argument(
        "name",
        nargs="?",
        help="Show one rule with its configured parameters",
    )

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Create .kvglint.toml configuration",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing configuration",
    )

    return parser


def _add_file_filters(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--include",
        action="append",
        help="Only process files whose name matches (repeatable, '*' wildcard)",
        metavar="PATTERN",
    )
    subparser.add_argument(
        "--exclude",
        action="append",
        help="Skip files whose name matches (repeatable, '*' wildcard)",
        metavar="PATTERN",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install kvglint[completion]
    # Then activate: eval "$(register-python-argcomplete kvglint)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        # Dispatch to command handlers
        if args.command == "validate":
            return validate.run(args)
        elif args.command == "repair-ids":
            return repair_cmd.run(args)
        elif args.command == "rules":
            return rules_cmd.run(args)
        elif args.command == "init":
            return init.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
