"""Pre-upgrade checks for GuardrailsOrchestrator on RHOAI 2.25.

Read-only apart from writing otelExporter backups.
"""

import argparse
import os

from rhoai_upgrade.cli import common
from rhoai_upgrade.operations.preflight import verify_logged_in
from rhoai_upgrade.operations.preupgrade_operations import PreUpgradeCheckExecutor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhoai-preupgrade-check",
        description="Validate every GuardrailsOrchestrator instance before upgrading.",
    )
    parser.add_argument(
        "--backup-dir",
        default=os.getenv("BACKUP_DIR", "./gorch-otel-backups"),
        help="Directory for otelExporter backups",
    )
    common.add_logging_arguments(parser)
    return parser


@common.cli_entrypoint
def run(args: argparse.Namespace) -> int:
    openshift_client = common.build_openshift_client()
    verify_logged_in(openshift_client)

    print("=== GuardrailsOrchestrator pre-upgrade check ===")
    executor = PreUpgradeCheckExecutor(openshift_client, backup_dir=args.backup_dir)
    reports, result = executor.execute()

    if not reports:
        print("No resources found. You can ignore Guardrails-related steps.")
        return 0

    for report in reports:
        print("-" * 40)
        print(f"Pre-checks for GuardrailsOrchestrator instance {report.name} in namespace {report.namespace}")
        for check in report.checks:
            status = "OK" if check.passed else "FAIL"
            print(f"{check.step}. {check.title}: {status}")
            for message in check.messages:
                print(f"  {message}")
        if len(report.checks) < 4 and not report.passed:
            print("  Skipped remaining steps for this instance.")
        print()

    print("=== Pre-upgrade check complete ===")
    if not result.ok:
        print("Summary: The following namespace/instance(s) had failures:")
        for item in result.failed_items:
            print(f"  {item}")
        return 1

    print("Summary: All GuardrailsOrchestrator instances are healthy.")
    return 0


def main(argv: list[str] | None = None) -> int:
    return run(build_parser().parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
