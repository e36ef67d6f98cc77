from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from shadow_taxonomy.app import bootstrap, check_association, reconcile
from shadow_taxonomy.config import ConfigurationError, configure_logging
from shadow_taxonomy.domain.errors import ValidationError
from shadow_taxonomy.domain.reconciliation import CheckTarget, ReconcileMode

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from shadow_taxonomy.domain.reconciliation import ReconcileReport

log = logging.getLogger(__name__)

IN_SYNC_MESSAGE = "Shadow Taxonomy is in sync, no action needed."
DRY_RUN_MESSAGE = "View the below table to see how many terms will be created or deleted."

console = Console()

_MODE_HELP = {
    ReconcileMode.SYNC: "Create missing terms and delete orphan terms",
    ReconcileMode.SYNC_TERMS: "Like sync, but repair lost pointer meta from term membership",
    ReconcileMode.DEEP_SYNC: "Create terms for posts whose slug is not already taken",
}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="shadow-taxonomy",
        description="Keep shadow taxonomies in sync with their post types",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Relationship config file (defaults to $SHADOW_TAXONOMY_CONFIG or "
        "./shadow-taxonomy.toml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for mode in ReconcileMode:
        sync = subparsers.add_parser(mode.value, help=_MODE_HELP[mode])
        sync.add_argument("--cpt", type=str, required=True, help="Source post type")
        sync.add_argument("--tax", type=str, required=True, help="Shadow taxonomy")
        sync.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report the actions that would be taken",
        )
        sync.add_argument(
            "--verbose",
            action="store_true",
            help="Log every created, deleted, or repaired term",
        )

    check = subparsers.add_parser("check", help="Check one post/term association")
    check.add_argument(
        "type",
        choices=[target.value for target in CheckTarget],
        help="Which side --id refers to",
    )
    check.add_argument("--id", type=int, required=True, dest="object_id", help="Post or term id")
    check.add_argument("--tax", type=str, required=True, help="Shadow taxonomy")

    return parser.parse_args(list(argv))


def _print_table(report: ReconcileReport) -> None:
    suffix = " (dry run)" if report.dry_run else ""
    table = Table(
        title=f"{report.mode.value}: {report.source_kind} -> {report.mirror_kind}{suffix}"
    )
    table.add_column("action", style="cyan", no_wrap=True)
    table.add_column("count", justify="right")
    for row in report.rows():
        table.add_row(str(row["action"]), str(row["count"]))
    console.print(table)


def _report_sync(report: ReconcileReport) -> int:
    if report.dry_run:
        print(f"Warning: {DRY_RUN_MESSAGE}", file=sys.stderr)
        _print_table(report)
        return 0

    if report.in_sync:
        print(f"Success: {IN_SYNC_MESSAGE}")
        return 0
    if report.skipped:
        log.warning(
            "%s action(s) skipped because the store changed before they were applied: %s",
            len(report.skipped),
            "; ".join(planned.describe() for planned in report.skipped),
        )
    if report.failed:
        log.warning(
            "%s action(s) failed and were left for the next run: %s",
            len(report.failed),
            "; ".join(planned.describe() for planned in report.failed),
        )
    print(
        f"Success: Process Complete. Successfully synced {report.applied_total} posts and terms."
    )
    return 0


def _run(parsed_args: argparse.Namespace) -> int:
    app = bootstrap(config_path=parsed_args.config)
    if parsed_args.command == "check":
        result = check_association(app, parsed_args.type, parsed_args.object_id, parsed_args.tax)
        if result.passed:
            print(f"Success: {result.message}")
            return 0
        print(f"Error: {result.message}", file=sys.stderr)
        return 1

    report = reconcile(
        app,
        ReconcileMode(parsed_args.command),
        source_kind=parsed_args.cpt,
        mirror_kind=parsed_args.tax,
        dry_run=parsed_args.dry_run,
        verbose=parsed_args.verbose,
    )
    return _report_sync(report)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    signal(SIGINT, sigint_handler)
    load_dotenv()
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        exit_code = _run(parsed_args)
    except (ValidationError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    main()
