"""Readiness probe patch for GuardrailsOrchestrator deployments.

The 3.x operator expects the orchestrator container to expose a readiness
probe; deployments created by 2.25 lack it and never report Ready after the
upgrade.
"""

import structlog
from kubernetes.client.rest import ApiException

from rhoai_upgrade.exceptions import EnvironmentCheckError, RolloutFailedError, WaitTimeoutError
from rhoai_upgrade.models.results import BatchResult, ItemOutcome
from rhoai_upgrade.services.error_translator import ErrorTranslator
from rhoai_upgrade.services.openshift_client import OpenShiftClient
from rhoai_upgrade.utils.waiting import wait_for

logger = structlog.get_logger(__name__)

ROLLOUT_TIMEOUT_SECONDS = 120

READINESS_PROBE_PATCH = {
    "spec": {
        "template": {
            "spec": {
                "containers": [
                    {
                        "name": "guardrails-orchestrator",
                        "readinessProbe": {
                            "httpGet": {
                                "path": "/health",
                                "port": 8034,
                                "scheme": "HTTP",
                            },
                            "initialDelaySeconds": 10,
                            "timeoutSeconds": 10,
                            "periodSeconds": 20,
                            "successThreshold": 1,
                            "failureThreshold": 3,
                        },
                    }
                ]
            }
        }
    }
}


class DeploymentPatchExecutor:
    """Add the orchestrator readiness probe to every GuardrailsOrchestrator deployment."""

    def __init__(
        self,
        openshift_client: OpenShiftClient,
        rollout_timeout: float = ROLLOUT_TIMEOUT_SECONDS,
        poll_interval: float = 2.0,
        **wait_options,
    ):
        self.openshift_client = openshift_client
        self.rollout_timeout = rollout_timeout
        self.poll_interval = poll_interval
        self.wait_options = wait_options

    def discover_deployments(self, namespace: str) -> list[str]:
        """Names of the deployments to patch (one per GuardrailsOrchestrator).

        Raises:
            EnvironmentCheckError: If the namespace has no GuardrailsOrchestrator
        """
        resources = self.openshift_client.list_guardrails_orchestrators(namespace)
        names = [r.get("metadata", {}).get("name", "") for r in resources]
        names = [name for name in names if name]
        if not names:
            raise EnvironmentCheckError(
                f"No GuardrailsOrchestrator CRs found in namespace {namespace}"
            )
        logger.info("guardrails_orchestrators_found", namespace=namespace, names=names)
        return names

    def execute(self, namespace: str, dry_run: bool = False) -> BatchResult:
        """Patch every discovered deployment and wait for its rollout.

        Returns:
            BatchResult with one outcome per deployment and a ``found`` counter
        """
        names = self.discover_deployments(namespace)
        result = BatchResult(counters={"found": len(names)})
        for name in names:
            result.outcomes.append(self.patch_deployment(name, namespace, dry_run=dry_run))
        return result

    def patch_deployment(self, name: str, namespace: str, dry_run: bool = False) -> ItemOutcome:
        """Patch a single deployment and wait for the rollout to finish."""
        log = logger.bind(namespace=namespace, deployment=name)

        try:
            deployment = self.openshift_client.get_deployment(name, namespace)
        except ApiException as e:
            return ItemOutcome.failure(name, ErrorTranslator.translate_api_exception(e))

        if deployment is None:
            log.warning("deployment_not_found")
            return ItemOutcome.failure(name, f"deployment not found in namespace {namespace}")

        if dry_run:
            log.info("deployment_patch_dry_run", patch=READINESS_PROBE_PATCH)
            return ItemOutcome.skip(name, "dry run, readiness probe patch not applied")

        log.info("patching_deployment")
        try:
            self.openshift_client.patch_deployment(name, namespace, READINESS_PROBE_PATCH)
        except ApiException as e:
            message = ErrorTranslator.translate_api_exception(e)
            log.error("deployment_patch_failed", error=message)
            return ItemOutcome.failure(name, f"failed to patch deployment: {message}")

        log.info("waiting_for_rollout", timeout=self.rollout_timeout)
        try:
            wait_for(
                lambda: self.openshift_client.is_rollout_complete(name, namespace),
                timeout=self.rollout_timeout,
                interval=self.poll_interval,
                description=f"rollout of deployment {name}",
                **self.wait_options,
            )
        except (WaitTimeoutError, RolloutFailedError) as e:
            log.error("deployment_rollout_failed", error=str(e))
            return ItemOutcome.failure(name, f"rollout failed: {e}")
        except ApiException as e:
            message = ErrorTranslator.translate_api_exception(e)
            log.error("deployment_rollout_failed", error=message)
            return ItemOutcome.failure(name, f"rollout failed: {message}")

        log.info("deployment_patched")
        return ItemOutcome.success(name, "readiness probe added")
