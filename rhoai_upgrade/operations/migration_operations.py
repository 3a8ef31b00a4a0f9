"""GuardrailsOrchestrator otelExporter schema migration.

Run after upgrading to the operator release with the new exporter schema.
Each resource is fetched once, classified, and (in fix mode) patched with a
JSON merge patch that adds the current-schema fields.
"""

import json
from enum import Enum

import structlog
from kubernetes.client.rest import ApiException
from pydantic import ValidationError

from rhoai_upgrade.exceptions import RolloutFailedError, WaitTimeoutError
from rhoai_upgrade.models.otel import OtelExporterConfig, SchemaState
from rhoai_upgrade.models.results import BatchResult
from rhoai_upgrade.services.error_translator import ErrorTranslator
from rhoai_upgrade.services.openshift_client import OpenShiftClient
from rhoai_upgrade.services.otel_schema import classify_exporter, plan_migration
from rhoai_upgrade.utils.waiting import wait_for

logger = structlog.get_logger(__name__)

ROLLOUT_TIMEOUT_SECONDS = 120


class MigrationMode(str, Enum):
    """How far the migration goes."""

    CHECK = "check"
    FIX = "fix"
    DRY_RUN = "dry_run"


class OtelMigrationExecutor:
    """Migrate otelExporter settings of every GuardrailsOrchestrator in a namespace."""

    def __init__(
        self,
        openshift_client: OpenShiftClient,
        rollout_timeout: float = ROLLOUT_TIMEOUT_SECONDS,
        poll_interval: float = 2.0,
        **wait_options,
    ):
        """Initialize migration executor.

        Args:
            openshift_client: OpenShift API client
            rollout_timeout: Seconds to wait for the deployment rollout after patching
            poll_interval: Seconds between rollout status polls
            wait_options: Extra keyword arguments for ``wait_for`` (sleep, clock)
        """
        self.openshift_client = openshift_client
        self.rollout_timeout = rollout_timeout
        self.poll_interval = poll_interval
        self.wait_options = wait_options

    def execute(self, namespace: str, mode: MigrationMode = MigrationMode.CHECK) -> BatchResult:
        """Process every GuardrailsOrchestrator in the namespace.

        Args:
            namespace: Namespace to scan
            mode: check, fix or dry_run

        Returns:
            BatchResult with one outcome per resource; the ``found`` and
            ``needs_migration`` counters carry the totals for the summary
        """
        resources = self.openshift_client.list_guardrails_orchestrators(namespace)
        logger.info("guardrails_orchestrators_found", namespace=namespace, count=len(resources))

        result = BatchResult(counters={"found": len(resources), "needs_migration": 0})
        for resource in resources:
            result = result.merge(self.process_resource(resource, namespace, mode))
        return result

    def process_resource(self, resource: dict, namespace: str, mode: MigrationMode) -> BatchResult:
        """Classify and, depending on mode, migrate a single resource."""
        result = BatchResult()
        name = resource.get("metadata", {}).get("name", "")
        log = logger.bind(namespace=namespace, name=name)

        try:
            exporter = OtelExporterConfig.from_custom_resource(resource)
        except ValidationError as e:
            log.warning("otel_exporter_invalid", error=str(e))
            result.record_skip(name, "unknown otelExporter schema; leaving untouched")
            return result
        state = classify_exporter(exporter)

        if state == SchemaState.UNCONFIGURED:
            log.info("otel_exporter_not_configured")
            result.record_skip(name, "no spec.otelExporter configured")
            return result

        if state == SchemaState.CURRENT:
            log.info("otel_exporter_already_migrated")
            result.record_skip(name, "already on new otelExporter schema")
            return result

        if state == SchemaState.UNKNOWN:
            log.warning("otel_exporter_schema_unknown", fields=exporter.unrecognized_fields)
            result.record_skip(name, "unknown otelExporter schema; leaving untouched")
            return result

        result.increment("needs_migration")
        plan = plan_migration(exporter)
        for warning in plan.warnings:
            log.warning("otel_exporter_ambiguous", detail=warning)

        if plan.is_empty:
            log.warning("otel_exporter_nothing_inferred", fields=exporter.legacy_fields)
            result.record_skip(
                name, "found old-schema otelExporter but could not infer any new fields"
            )
            return result

        patch_json = json.dumps(plan.patch_body, separators=(",", ":"))
        log.info("otel_exporter_needs_migration", patch=patch_json)

        if mode != MigrationMode.FIX:
            result.record_report(name, f"needs migration, patch: {patch_json}")
            return result

        try:
            self.openshift_client.patch_guardrails_orchestrator(name, namespace, plan.patch_body)
        except ApiException as e:
            message = ErrorTranslator.translate_api_exception(e)
            log.error("otel_exporter_patch_failed", error=message)
            result.record_failure(name, f"failed to patch: {message}")
            return result

        self._wait_for_rollout(name, namespace)
        log.info("otel_exporter_migrated")
        result.record_success(name, "migrated")
        return result

    def _wait_for_rollout(self, name: str, namespace: str) -> None:
        """Best-effort wait for the deployment that shares the resource's name."""
        log = logger.bind(namespace=namespace, deployment=name)
        try:
            if self.openshift_client.get_deployment(name, namespace) is None:
                log.debug("rollout_wait_skipped_no_deployment")
                return
            wait_for(
                lambda: self.openshift_client.is_rollout_complete(name, namespace),
                timeout=self.rollout_timeout,
                interval=self.poll_interval,
                description=f"rollout of deployment {name}",
                **self.wait_options,
            )
        except (WaitTimeoutError, RolloutFailedError) as e:
            log.warning("rollout_incomplete", error=str(e))
        except ApiException as e:
            log.warning("rollout_status_unavailable", error=ErrorTranslator.translate_api_exception(e))
