"""Add the readiness probe to GuardrailsOrchestrator deployments.

Usage:
    rhoai-patch-guardrails --namespace my-project
"""

import argparse

from rhoai_upgrade.cli import common
from rhoai_upgrade.operations.deployment_operations import DeploymentPatchExecutor
from rhoai_upgrade.operations.preflight import verify_logged_in, verify_namespace


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhoai-patch-guardrails",
        description=(
            "Patch GuardrailsOrchestrator deployments with the readiness probe "
            "required when upgrading from RHOAI 2.25 to 3.x."
        ),
    )
    common.add_namespace_argument(parser)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show which deployments would be patched without changing them",
    )
    common.add_logging_arguments(parser)
    return parser


@common.cli_entrypoint
def run(args: argparse.Namespace) -> int:
    openshift_client = common.build_openshift_client()
    verify_logged_in(openshift_client)
    verify_namespace(openshift_client, args.namespace)

    result = DeploymentPatchExecutor(openshift_client).execute(args.namespace, dry_run=args.dry_run)

    common.print_outcomes(result)
    common.print_summary(
        "GuardrailsOrchestrator Deployment Patch Summary",
        [
            ("Total GuardrailsOrchestrator CRs found", result.counters.get("found", 0)),
            ("Successfully patched", result.succeeded),
            ("Skipped", result.skipped),
            ("Failed", result.failed),
        ],
    )
    if not result.ok:
        print(f"Failed deployments: {' '.join(result.failed_items)}")
        return 1
    if not args.dry_run:
        print("All guardrails deployments patched successfully!")
    return 0


def main(argv: list[str] | None = None) -> int:
    return run(build_parser().parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
