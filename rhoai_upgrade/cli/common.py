"""Helpers shared by the command-line entry points."""

import argparse
import functools
import os
from collections.abc import Callable

import structlog
from kubernetes.client.rest import ApiException

from rhoai_upgrade.exceptions import UpgradeToolError
from rhoai_upgrade.models.results import BatchResult, ItemStatus
from rhoai_upgrade.services.error_translator import ErrorTranslator
from rhoai_upgrade.services.openshift_client import OpenShiftClient
from rhoai_upgrade.utils.logging import setup_logging

logger = structlog.get_logger(__name__)

STATUS_LABELS = {
    ItemStatus.SUCCEEDED: "OK",
    ItemStatus.FAILED: "FAIL",
    ItemStatus.SKIPPED: "SKIP",
    ItemStatus.REPORTED: "INFO",
}


def add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    """Add --log-level and --log-format, defaulting to LOG_LEVEL and LOG_FORMAT."""
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level",
    )
    parser.add_argument(
        "--log-format",
        default=os.getenv("LOG_FORMAT", "console"),
        choices=["console", "json"],
        help="Log output format",
    )


def add_namespace_argument(parser: argparse.ArgumentParser, default: str | None = None) -> None:
    parser.add_argument(
        "-n",
        "--namespace",
        default=default,
        required=default is None,
        help="Namespace to operate on",
    )


def build_openshift_client() -> OpenShiftClient:
    """Create the cluster client from kubeconfig, in-cluster config or env vars."""
    return OpenShiftClient()


def cli_entrypoint(func: Callable[[argparse.Namespace], int]) -> Callable[[argparse.Namespace], int]:
    """Turn fatal tool errors into a logged message and exit code 1."""

    @functools.wraps(func)
    def wrapper(args: argparse.Namespace) -> int:
        setup_logging(log_level=args.log_level, log_format=args.log_format)
        try:
            return func(args)
        except UpgradeToolError as e:
            logger.error("aborted", error=str(e), error_type=type(e).__name__)
            return 1
        except ApiException as e:
            logger.error(
                "aborted",
                error=ErrorTranslator.translate_api_exception(e),
                status=e.status,
            )
            return 1
        except KeyboardInterrupt:
            logger.warning("interrupted")
            return 130

    return wrapper


def print_outcomes(result: BatchResult) -> None:
    """Print one line per processed item."""
    for outcome in result.outcomes:
        label = STATUS_LABELS[outcome.status]
        message = f": {outcome.message}" if outcome.message else ""
        print(f"  [{label}] {outcome.name}{message}")


def print_summary(title: str, rows: list[tuple[str, object]]) -> None:
    """Print an aligned summary block."""
    width = max(len(label) for label, _ in rows) + 1
    print()
    print("=" * 42)
    print(title)
    print("=" * 42)
    for label, value in rows:
        print(f"{label + ':':<{width}} {value}")
