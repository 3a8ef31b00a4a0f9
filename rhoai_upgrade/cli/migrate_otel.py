"""Migrate GuardrailsOrchestrator spec.otelExporter to the RHOAI 3.x field names.

Run AFTER upgrading to the operator version that contains the new schema.

Notes:
    - If per-signal protocols were used (tracesProtocol/metricsProtocol), the
      new schema only supports a single protocol. The tool warns and uses
      tracesProtocol.
    - otlpEndpoint is mapped to BOTH otlpTracesEndpoint and otlpMetricsEndpoint.
"""

import argparse

from rhoai_upgrade.cli import common
from rhoai_upgrade.operations.migration_operations import MigrationMode, OtelMigrationExecutor
from rhoai_upgrade.operations.preflight import verify_logged_in, verify_namespace


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhoai-migrate-otel",
        description=(
            "Migrate GuardrailsOrchestrator .spec.otelExporter from the RHOAI 2.25 "
            "field names to the current ones."
        ),
    )
    common.add_namespace_argument(parser)
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--check",
        dest="mode",
        action="store_const",
        const=MigrationMode.CHECK,
        help="Report which CRs need migration (default)",
    )
    mode.add_argument(
        "--fix",
        dest="mode",
        action="store_const",
        const=MigrationMode.FIX,
        help="Patch CRs in-place and wait for rollouts",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the patch that would be applied (implies --check, no changes)",
    )
    parser.set_defaults(mode=MigrationMode.CHECK)
    common.add_logging_arguments(parser)
    return parser


@common.cli_entrypoint
def run(args: argparse.Namespace) -> int:
    # --dry-run always wins over --fix
    mode = MigrationMode.DRY_RUN if args.dry_run else args.mode

    openshift_client = common.build_openshift_client()
    verify_logged_in(openshift_client)
    verify_namespace(openshift_client, args.namespace)

    result = OtelMigrationExecutor(openshift_client).execute(args.namespace, mode=mode)
    if result.counters.get("found", 0) == 0:
        print(f"No GuardrailsOrchestrator CRs found in namespace {args.namespace}.")
        return 0

    common.print_outcomes(result)
    common.print_summary(
        "GuardrailsOrchestrator otelExporter migration summary",
        [
            ("namespace", args.namespace),
            ("CRs found", result.counters.get("found", 0)),
            ("need migration (old schema)", result.counters.get("needs_migration", 0)),
            ("migrated", result.succeeded),
            ("skipped", result.skipped),
            ("failed", result.failed),
        ],
    )

    if not result.ok:
        print(f"Failed CRs: {' '.join(result.failed_items)}")
        return 1
    if mode == MigrationMode.DRY_RUN:
        print("Dry run complete.")
    elif mode == MigrationMode.CHECK and result.counters.get("needs_migration", 0):
        print(f"To migrate: rhoai-migrate-otel --namespace {args.namespace} --fix")
    return 0


def main(argv: list[str] | None = None) -> int:
    return run(build_parser().parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
