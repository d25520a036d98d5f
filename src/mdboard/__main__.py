"""CLI entry point for mdboard."""

import argparse
from pathlib import Path

from .config import Settings
from .logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mdboard",
        description="Kanban board kept in markdown files",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Path to project root containing the board folder (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init", help="Create a board, or update an existing one")
    init.add_argument("--name", default=None, help="Board name")
    init.add_argument(
        "-c",
        "--column",
        dest="columns",
        action="append",
        default=None,
        help="Column name (repeatable)",
    )

    status = commands.add_parser("status", help="Print board status as JSON")
    status.add_argument("-q", "--quiet", action="store_true", help="Only count tasks")
    status.add_argument("-u", "--untracked", action="store_true", help="List untracked tasks")
    status.add_argument("--due", action="store_true", help="Include due date status")
    status.add_argument("-s", "--sprint", default=None, help="Sprint number or name")
    status.add_argument(
        "-d", "--date", dest="dates", action="append", default=None, help="Date (repeatable)"
    )

    search = commands.add_parser("search", help="Print matching tasks as JSON")
    search.add_argument(
        "filters",
        nargs="*",
        metavar="FIELD=VALUE",
        help="Filter on a field; repeat a field to match a list of values",
    )
    search.add_argument("-q", "--quiet", action="store_true", help="Only print task ids")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    # Build settings from CLI args
    settings_kwargs: dict = {}
    if args.project_root:
        settings_kwargs["project_root"] = args.project_root
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = Settings(**settings_kwargs)
    setup_logging(settings.verbose, settings.log_file)

    from .cli.commands import run_init, run_search, run_status

    if args.command == "init":
        exit_code = run_init(settings, args.name, args.columns)
    elif args.command == "status":
        exit_code = run_status(
            settings,
            quiet=args.quiet,
            untracked=args.untracked,
            due=args.due,
            sprint=args.sprint,
            dates=args.dates,
        )
    else:
        exit_code = run_search(settings, args.filters, quiet=args.quiet)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
