"""Restore TrustyAI scheduled metrics from a backup file.

Usage:
    rhoai-restore-metrics -n trustyai-ns -f backups/trustyai-metrics-20240101-120000.json
    rhoai-restore-metrics -n trustyai-ns -f backups/trustyai-metrics-latest.json --dry-run
    rhoai-restore-metrics -n trustyai-ns -f backup.json --skip-existing

Restored metrics get new request IDs; the IDs in the backup are not reused.
"""

import argparse
import os
import sys

import structlog

from rhoai_upgrade.cli import common
from rhoai_upgrade.cli.backup_metrics import DEFAULT_ROUTE_LABEL
from rhoai_upgrade.exceptions import TrustyAIError
from rhoai_upgrade.operations.metrics_operations import MetricsRestoreExecutor, load_backup
from rhoai_upgrade.operations.preflight import connect_trustyai, verify_logged_in

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhoai-restore-metrics",
        description="Restore TrustyAI scheduled metrics from a backup file.",
    )
    common.add_namespace_argument(parser, default=os.getenv("TRUSTYAI_NAMESPACE") or None)
    parser.add_argument("-f", "--file", required=True, help="Backup file to restore from")
    parser.add_argument(
        "-l",
        "--route-label",
        default=os.getenv("ROUTE_LABEL", DEFAULT_ROUTE_LABEL),
        help="Route label selector",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Show what would be restored without making changes",
    )
    parser.add_argument(
        "-s",
        "--skip-existing",
        action="store_true",
        help="Skip metrics that already exist (matched by model ID and metric name)",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Continue without asking when the service health check is not UP",
    )
    common.add_logging_arguments(parser)
    return parser


def confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal; non-interactive sessions answer no."""
    if not sys.stdin.isatty():
        return False
    try:
        reply = input(f"{prompt} (y/N) ")
    except EOFError:
        return False
    return reply.strip().lower().startswith("y")


@common.cli_entrypoint
def run(args: argparse.Namespace) -> int:
    backup = load_backup(args.file)
    logger.info("backup_loaded", file=args.file, count=len(backup.requests))
    if args.dry_run:
        logger.warning("dry_run_mode", detail="No changes will be made")

    if not backup.requests:
        logger.warning("nothing_to_restore", detail="No metrics found in backup file")
        return 0

    openshift_client = common.build_openshift_client()
    verify_logged_in(openshift_client)

    with connect_trustyai(
        openshift_client,
        args.namespace,
        args.route_label,
        verify_ssl=openshift_client.verify_ssl,
    ) as trustyai_client:
        executor = MetricsRestoreExecutor(trustyai_client)

        ready, status = executor.service_ready()
        if not ready:
            logger.warning("trustyai_not_ready", status=status, detail="Restoration might fail")
            if not args.yes and not confirm("Continue anyway?"):
                logger.info("restore_cancelled")
                return 0

        result = executor.execute(backup, dry_run=args.dry_run, skip_existing=args.skip_existing)

        common.print_outcomes(result)
        common.print_summary(
            "Restoration Summary",
            [
                ("Total metrics in backup", result.counters.get("total", 0)),
                ("Successfully restored", result.succeeded),
                ("Failed", result.failed),
                ("Skipped", result.skipped),
            ],
        )

        if args.dry_run:
            print("DRY RUN completed - no changes were made")
        elif result.succeeded > 0:
            try:
                current = executor.verify()
            except TrustyAIError as e:
                logger.warning("restored_metrics_not_verified", error=str(e))
            else:
                print(f"\nCurrent scheduled metrics: {len(current.requests)}")
                for item in current.requests:
                    print(f"  - {item.describe()}")

    return result.exit_code


def main(argv: list[str] | None = None) -> int:
    return run(build_parser().parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
