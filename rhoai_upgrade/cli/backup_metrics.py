"""Back up TrustyAI scheduled metrics to a JSON file.

Usage:
    rhoai-backup-metrics -n trustyai-ns
    rhoai-backup-metrics -n trustyai-ns -d /tmp/backups -t fairness
    TRUSTYAI_NAMESPACE=trustyai-ns rhoai-backup-metrics
"""

import argparse
import os

from rhoai_upgrade.cli import common
from rhoai_upgrade.models.metrics import METRIC_TYPES
from rhoai_upgrade.operations.metrics_operations import MetricsBackupExecutor
from rhoai_upgrade.operations.preflight import connect_trustyai, verify_logged_in

DEFAULT_ROUTE_LABEL = "app=trustyai-service"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhoai-backup-metrics",
        description="Backup TrustyAI scheduled metrics to a JSON file.",
    )
    common.add_namespace_argument(parser, default=os.getenv("TRUSTYAI_NAMESPACE") or None)
    parser.add_argument(
        "-d",
        "--backup-dir",
        default=os.getenv("BACKUP_DIR", "./backups"),
        help="Backup directory",
    )
    parser.add_argument(
        "-l",
        "--route-label",
        default=os.getenv("ROUTE_LABEL", DEFAULT_ROUTE_LABEL),
        help="Route label selector",
    )
    parser.add_argument(
        "-t",
        "--type",
        dest="metric_type",
        default="all",
        choices=METRIC_TYPES,
        help="Metric type filter",
    )
    common.add_logging_arguments(parser)
    return parser


@common.cli_entrypoint
def run(args: argparse.Namespace) -> int:
    openshift_client = common.build_openshift_client()
    verify_logged_in(openshift_client)

    with connect_trustyai(
        openshift_client,
        args.namespace,
        args.route_label,
        verify_ssl=openshift_client.verify_ssl,
    ) as trustyai_client:
        artifacts = MetricsBackupExecutor(trustyai_client).execute(
            backup_dir=args.backup_dir,
            namespace=args.namespace,
            metric_type=args.metric_type,
        )

    print(f"Successfully backed up {artifacts.metric_count} scheduled metric(s)")
    print(f"Backup file:   {artifacts.backup_file}")
    print(f"Metadata file: {artifacts.metadata_file}")
    if artifacts.latest_link is not None:
        print(f"Latest backup: {artifacts.latest_link}")
    return 0


def main(argv: list[str] | None = None) -> int:
    return run(build_parser().parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
