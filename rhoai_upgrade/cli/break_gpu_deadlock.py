"""Detect and fix GPU deployment deadlocks between InferenceService predictor pods."""

import argparse

from rhoai_upgrade.cli import common
from rhoai_upgrade.operations.deadlock_operations import (
    POD_READY_TIMEOUT_SECONDS,
    GPUDeadlockExecutor,
)
from rhoai_upgrade.operations.preflight import verify_logged_in, verify_namespace


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhoai-break-gpu-deadlock",
        description=(
            "Detect InferenceServices whose new predictor pod is Pending because "
            "the old Running pod holds the GPU, and optionally delete the old pod."
        ),
    )
    common.add_namespace_argument(parser)
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--check",
        dest="fix",
        action="store_false",
        help="Check for deadlocks (default)",
    )
    mode.add_argument(
        "--fix",
        dest="fix",
        action="store_true",
        help="Fix detected deadlocks",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=POD_READY_TIMEOUT_SECONDS,
        help="Seconds to wait for the Pending pod to become Ready",
    )
    parser.set_defaults(fix=False)
    common.add_logging_arguments(parser)
    return parser


@common.cli_entrypoint
def run(args: argparse.Namespace) -> int:
    openshift_client = common.build_openshift_client()
    verify_logged_in(openshift_client)
    verify_namespace(openshift_client, args.namespace)

    executor = GPUDeadlockExecutor(openshift_client, ready_timeout=args.timeout)
    deadlocks, result = executor.execute(args.namespace, fix=args.fix)

    if not deadlocks:
        print("No deadlocks detected")
        return 0

    for deadlock in deadlocks:
        print(f"DEADLOCK: {deadlock.inference_service}")
        print(f"  Running: {deadlock.running_pod}")
        print(f"  Pending: {deadlock.pending_pod}")
        print()

    if not args.fix:
        print(f"To fix: rhoai-break-gpu-deadlock --namespace {args.namespace} --fix")
        return 0

    common.print_outcomes(result)
    common.print_summary(
        "GPU deadlock summary",
        [
            ("Deadlocks found", result.counters.get("deadlocks", 0)),
            ("Resolved", result.succeeded),
            ("Not Ready within timeout", result.counters.get("unresolved", 0)),
            ("Failed", result.failed),
        ],
    )
    return result.exit_code


def main(argv: list[str] | None = None) -> int:
    return run(build_parser().parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
