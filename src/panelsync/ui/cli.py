# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from panelsync.adapters.snapshot import SnapshotFileFetcher
from panelsync.adapters.xui import PanelBatchApplier, PanelInventoryFetcher
from panelsync.app import export_snapshot, plan_conflict, reconcile_conflict, scan_conflicts
from panelsync.config import (
    ConfigurationError,
    configure_logging,
    get_batch_config,
    get_panels_config,
)
from panelsync.domain.conflicts import CONFLICT_TYPE_LABELS
from panelsync.domain.risk import ConfirmationRequiredError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from panelsync.domain.conflicts import ConflictReport, ReconciliationPlan
    from panelsync.domain.ports import InventoryFetcher

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Detect and reconcile diverging panel clients")
    parser.add_argument(
        "--servers",
        type=Path,
        help="TOML server list (defaults to $PANELSYNC_SERVERS_FILE)",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        help="Read client copies from a snapshot file instead of the panels",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Report identities whose copies diverge")
    scan.add_argument("--json", action="store_true", help="Print the full report as JSON")

    fetch = subparsers.add_parser("fetch", help="Write every client copy to a snapshot file")
    fetch.add_argument("output", type=Path, help="Destination JSON file")

    for name, help_text in (
        ("plan", "Print the reconciliation plan for one protocol bucket"),
        ("reconcile", "Overwrite one protocol bucket with its source copy"),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("group_key", help="Group key from the scan, e.g. email:alice@x")
        command.add_argument("protocol", help="Protocol bucket inside the group")
        command.add_argument(
            "--source",
            dest="source_locator",
            help="Locator of the copy to use as source (defaults to the recommended one)",
        )
        command.add_argument(
            "--allow-fallback",
            action="store_true",
            help="Use the first copy when --source matches nothing",
        )

    reconcile = subparsers.choices["reconcile"]
    reconcile.add_argument(
        "--yes",
        action="store_true",
        help="Confirm high-risk batches",
    )

    return parser.parse_args(list(argv))


def _build_fetcher(args: argparse.Namespace) -> InventoryFetcher:
    if args.snapshot is not None:
        return SnapshotFileFetcher(args.snapshot)
    return PanelInventoryFetcher(config=get_panels_config(args.servers))


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _exit_if_not_actionable(plan: ReconciliationPlan) -> None:
    if not plan.is_actionable:
        log.error("Nothing to reconcile for %s: plan status is %s", plan.protocol, plan.status)
        sys.exit(1)


def _render_report(report: ConflictReport) -> None:
    summary = report.summary
    print(
        f"{summary.conflict_groups} of {summary.total_groups} groups diverge "
        f"(high={summary.high}, medium={summary.medium}, skipped={summary.skipped})"
    )
    for group in report.groups:
        labels = ", ".join(group.conflict_field_labels)
        print(
            f"[{group.severity}] {group.group_key} ({group.identity.display_identity}): "
            f"{group.entry_count} copies on {group.identity.server_count} servers; {labels}"
        )
        for bucket in group.protocols:
            kinds = ", ".join(CONFLICT_TYPE_LABELS[item] for item in bucket.conflict_types)
            print(f"    {bucket.protocol}: {kinds}; source {bucket.recommended_source_key}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        fetcher = _build_fetcher(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "scan":
            result = scan_conflicts(fetcher)
            if parsed_args.json:
                _print_json(result.to_dict())
            else:
                _render_report(result.report)
        elif parsed_args.command == "fetch":
            snapshot = export_snapshot(fetcher, parsed_args.output)
            if snapshot.is_partial:
                sys.exit(1)
        elif parsed_args.command == "plan":
            plan = plan_conflict(
                parsed_args.group_key,
                parsed_args.protocol,
                fetcher=fetcher,
                source_locator=parsed_args.source_locator,
                allow_fallback=parsed_args.allow_fallback,
            )
            _print_json(
                {
                    "status": plan.status,
                    "sourceKey": plan.source_key,
                    "selection": plan.selection,
                    **plan.to_dict(),
                }
            )
            _exit_if_not_actionable(plan)
        elif parsed_args.command == "reconcile":
            applier = PanelBatchApplier(
                config=get_panels_config(parsed_args.servers),
                batch=get_batch_config(),
            )
            outcome = reconcile_conflict(
                parsed_args.group_key,
                parsed_args.protocol,
                fetcher=fetcher,
                applier=applier,
                source_locator=parsed_args.source_locator,
                confirmed=parsed_args.yes,
                allow_fallback=parsed_args.allow_fallback,
            )
            _print_json(outcome.to_dict())
            _exit_if_not_actionable(outcome.plan)
            if outcome.apply_result is not None and outcome.apply_result.failures():
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except (LookupError, ConfirmationRequiredError) as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
