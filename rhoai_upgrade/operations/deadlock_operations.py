"""GPU deadlock detection for InferenceService predictor pods.

When the upgrade patches an InferenceService, KServe rolls out a new
predictor pod while the old one still holds the only GPU. The new pod stays
Pending forever and the old one never terminates. Deleting the Running pod
frees the GPU for the Pending one.
"""

from collections import defaultdict

import structlog
from kubernetes.client.rest import ApiException

from rhoai_upgrade.exceptions import WaitTimeoutError
from rhoai_upgrade.models.pods import PREDICTOR_SELECTOR, Deadlock, PodSummary
from rhoai_upgrade.models.results import BatchResult, ItemOutcome, ItemStatus
from rhoai_upgrade.services.error_translator import ErrorTranslator
from rhoai_upgrade.services.openshift_client import OpenShiftClient
from rhoai_upgrade.utils.waiting import wait_for

logger = structlog.get_logger(__name__)

POD_READY_TIMEOUT_SECONDS = 300


def detect_deadlocks(pods: list[PodSummary]) -> list[Deadlock]:
    """Find InferenceServices with both a Running and a Pending predictor pod.

    Pods without the InferenceService label are ignored. Results are ordered
    by InferenceService name; within a group the first pod by name is used.
    """
    groups: dict[tuple[str, str], list[PodSummary]] = defaultdict(list)
    for pod in pods:
        if pod.inference_service:
            groups[(pod.namespace, pod.inference_service)].append(pod)

    deadlocks = []
    for (namespace, isvc), members in sorted(groups.items()):
        running = sorted(p.name for p in members if p.phase == "Running")
        pending = sorted(p.name for p in members if p.phase == "Pending")
        if running and pending:
            deadlocks.append(
                Deadlock(
                    inference_service=isvc,
                    namespace=namespace,
                    running_pod=running[0],
                    pending_pod=pending[0],
                )
            )
    return deadlocks


class GPUDeadlockExecutor:
    """Detect and break Running/Pending predictor pod deadlocks."""

    def __init__(
        self,
        openshift_client: OpenShiftClient,
        ready_timeout: float = POD_READY_TIMEOUT_SECONDS,
        poll_interval: float = 5.0,
        **wait_options,
    ):
        """Initialize deadlock executor.

        Args:
            openshift_client: OpenShift API client
            ready_timeout: Seconds to wait for the Pending pod to become Ready
            poll_interval: Seconds between pod status polls
            wait_options: Extra keyword arguments for ``wait_for`` (sleep, clock)
        """
        self.openshift_client = openshift_client
        self.ready_timeout = ready_timeout
        self.poll_interval = poll_interval
        self.wait_options = wait_options

    def find_deadlocks(self, namespace: str) -> list[Deadlock]:
        """List predictor pods in the namespace and detect deadlocks."""
        pods = self.openshift_client.list_pods(namespace, label_selector=PREDICTOR_SELECTOR)
        summaries = [PodSummary.from_pod(pod) for pod in pods]
        for summary in summaries:
            if not summary.namespace:
                summary.namespace = namespace
        deadlocks = detect_deadlocks(summaries)
        logger.info(
            "predictor_pods_scanned",
            namespace=namespace,
            pods=len(summaries),
            deadlocks=len(deadlocks),
        )
        return deadlocks

    def execute(self, namespace: str, fix: bool = False) -> tuple[list[Deadlock], BatchResult]:
        """Detect deadlocks and optionally resolve them.

        Returns:
            The detected deadlocks and a BatchResult with one outcome per
            deadlock; the ``unresolved`` counter counts Ready timeouts
        """
        deadlocks = self.find_deadlocks(namespace)
        result = BatchResult(counters={"deadlocks": len(deadlocks), "unresolved": 0})

        for deadlock in deadlocks:
            logger.warning(
                "gpu_deadlock_detected",
                inference_service=deadlock.inference_service,
                running=deadlock.running_pod,
                pending=deadlock.pending_pod,
            )
            if not fix:
                result.record_report(deadlock.inference_service, "deadlocked")
                continue

            outcome = self.resolve(deadlock)
            result.outcomes.append(outcome)
            if outcome.status == ItemStatus.SKIPPED:
                result.increment("unresolved")

        return deadlocks, result

    def resolve(self, deadlock: Deadlock) -> ItemOutcome:
        """Delete the Running pod and wait for the Pending pod to become Ready.

        A Ready timeout is reported as a skipped item rather than a failure:
        the deletion succeeded and the pod may still come up.
        """
        name = deadlock.inference_service
        log = logger.bind(namespace=deadlock.namespace, inference_service=name)

        try:
            self.openshift_client.delete_pod(deadlock.running_pod, deadlock.namespace)
        except ApiException as e:
            message = ErrorTranslator.translate_api_exception(e)
            log.error("running_pod_delete_failed", pod=deadlock.running_pod, error=message)
            return ItemOutcome.failure(name, f"failed to delete {deadlock.running_pod}: {message}")

        log.info("running_pod_deleted", pod=deadlock.running_pod)

        try:
            wait_for(
                lambda: self.openshift_client.is_pod_ready(deadlock.pending_pod, deadlock.namespace),
                timeout=self.ready_timeout,
                interval=self.poll_interval,
                description=f"pod {deadlock.pending_pod} to become Ready",
                **self.wait_options,
            )
        except WaitTimeoutError as e:
            log.warning("pending_pod_not_ready", pod=deadlock.pending_pod, error=str(e))
            return ItemOutcome.skip(
                name,
                f"{deadlock.pending_pod} not Ready yet; check: oc get pods -n {deadlock.namespace}",
            )
        except ApiException as e:
            message = ErrorTranslator.translate_api_exception(e)
            log.warning("pending_pod_status_unavailable", pod=deadlock.pending_pod, error=message)
            return ItemOutcome.skip(name, f"could not read status of {deadlock.pending_pod}: {message}")

        log.info("gpu_deadlock_resolved", pod=deadlock.pending_pod)
        return ItemOutcome.success(name, f"{deadlock.pending_pod} is Ready")
