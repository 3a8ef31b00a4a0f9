"""Read-only pre-upgrade checks for GuardrailsOrchestrator instances.

For each instance, across all namespaces:

1. the orchestrator ConfigMap exists and defines ``chat_generation`` and
   ``detectors``;
2. the chat_generation model answers a chat completion request;
3. the orchestrator pod is Running and Ready;
4. a configured ``spec.otelExporter`` is backed up, and the OpenTelemetry
   and Tempo operators it needs are installed.

A failed model check skips checks 3 and 4 for that instance.
"""

import json
from datetime import datetime
from pathlib import Path

import httpx
import structlog
import yaml
from kubernetes.client.rest import ApiException

from rhoai_upgrade.exceptions import BackupFileError
from rhoai_upgrade.models.checks import CheckOutcome, InstanceReport
from rhoai_upgrade.models.pods import INFERENCE_SERVICE_LABEL, PodSummary
from rhoai_upgrade.models.results import BatchResult
from rhoai_upgrade.services.error_translator import ErrorTranslator
from rhoai_upgrade.services.openshift_client import OpenShiftClient

logger = structlog.get_logger(__name__)

CONFIG_KEY = "config.yaml"
DEFAULT_CHAT_PORT = 8080
INFERENCE_TIMEOUT_SECONDS = 30.0
ORCHESTRATOR_APP_LABEL = "app.kubernetes.io/name=guardrails-orchestrator"
OTEL_OPERATOR_MARKER = "opentelemetry-operator"
TEMPO_OPERATOR_MARKER = "tempo-operator"
PROBE_MESSAGE = "Hi, can you tell me about yourself?"


def parse_orchestrator_config(text: str) -> dict:
    """Parse the orchestrator ``config.yaml``; invalid or non-mapping YAML yields {}."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}


def chat_generation_target(config: dict) -> tuple[str | None, int]:
    """Hostname and port of the chat_generation service in the orchestrator config."""
    chat = config.get("chat_generation")
    service = chat.get("service") if isinstance(chat, dict) else None
    if not isinstance(service, dict):
        return None, DEFAULT_CHAT_PORT

    hostname = str(service.get("hostname") or "").strip() or None
    try:
        port = int(service.get("port", DEFAULT_CHAT_PORT))
    except (TypeError, ValueError):
        port = DEFAULT_CHAT_PORT
    return hostname, port


class PreUpgradeCheckExecutor:
    """Run the pre-upgrade checks against every GuardrailsOrchestrator."""

    def __init__(
        self,
        openshift_client: OpenShiftClient,
        backup_dir: str | Path = "./gorch-otel-backups",
        inference_timeout: float = INFERENCE_TIMEOUT_SECONDS,
    ):
        """Initialize pre-upgrade check executor.

        Args:
            openshift_client: OpenShift API client
            backup_dir: Directory for otelExporter backups
            inference_timeout: Seconds to wait for the model's chat completion
        """
        self.openshift_client = openshift_client
        self.backup_dir = Path(backup_dir)
        self.inference_timeout = inference_timeout
        self._installed_operators: tuple[bool, bool] | None = None

    def execute(self) -> tuple[list[InstanceReport], BatchResult]:
        """Check every GuardrailsOrchestrator in the cluster.

        Returns:
            Per-instance reports and a BatchResult keyed by ``namespace/name``
        """
        resources = self.openshift_client.list_guardrails_orchestrators()
        logger.info("guardrails_orchestrators_found", count=len(resources))

        reports = []
        result = BatchResult()
        for resource in resources:
            report = self.check_instance(resource)
            reports.append(report)
            if report.passed:
                result.record_success(report.key)
            else:
                failed_steps = ", ".join(str(c.step) for c in report.checks if not c.passed)
                result.record_failure(report.key, f"failed checks: {failed_steps}")
        return reports, result

    def check_instance(self, resource: dict) -> InstanceReport:
        """Run all checks for one GuardrailsOrchestrator resource."""
        metadata = resource.get("metadata", {})
        report = InstanceReport(namespace=metadata.get("namespace", ""), name=metadata.get("name", ""))
        log = logger.bind(namespace=report.namespace, name=report.name)
        log.info("pre_upgrade_checks_started")

        config_map_name, config = self._load_orchestrator_config(report)
        report.checks.append(self.check_config_map(config_map_name, config))

        model_check = self.check_chat_model(report.namespace, config)
        report.checks.append(model_check)
        if not model_check.passed:
            log.error("model_check_failed_skipping_remaining")
            return report

        report.checks.append(self.check_orchestrator_pod(report.namespace, report.name))

        otel_check, backup_file = self.check_otel_exporter(resource, report.namespace, report.name)
        report.checks.append(otel_check)
        report.backup_file = backup_file
        return report

    # ========== 1. ConfigMap ==========

    def find_orchestrator_config_map(self, namespace: str, name: str) -> str | None:
        """Locate the ConfigMap holding the orchestrator ``config.yaml``.

        The ConfigMap mounted by the orchestrator deployment is preferred; any
        ConfigMap with a ``config.yaml`` key is the fallback.
        """
        for deployment in self.openshift_client.list_deployments(namespace):
            dep_name = deployment.metadata.name
            if "guardrails" not in dep_name and "orchestrator" not in dep_name and dep_name != name:
                continue
            volumes = deployment.spec.template.spec.volumes or []
            for volume in volumes:
                if volume.config_map is not None and volume.config_map.name:
                    return volume.config_map.name

        for config_map in self.openshift_client.list_config_maps(namespace):
            if CONFIG_KEY in (config_map.data or {}):
                return config_map.metadata.name
        return None

    def _load_orchestrator_config(self, report: InstanceReport) -> tuple[str | None, dict]:
        try:
            config_map_name = self.find_orchestrator_config_map(report.namespace, report.name)
            if config_map_name is None:
                return None, {}
            config_map = self.openshift_client.get_config_map(config_map_name, report.namespace)
        except ApiException as e:
            logger.error(
                "config_map_lookup_failed",
                namespace=report.namespace,
                error=ErrorTranslator.translate_api_exception(e),
            )
            return None, {}

        text = ((config_map.data or {}) if config_map else {}).get(CONFIG_KEY, "")
        return config_map_name, parse_orchestrator_config(text)

    def check_config_map(self, config_map_name: str | None, config: dict) -> CheckOutcome:
        check = CheckOutcome(step=1, title="GuardrailsOrchestrator ConfigMap", passed=False)
        if config_map_name is None:
            check.messages.append("Could not find orchestrator ConfigMap (with data.config.yaml)")
            return check

        check.messages.append(f"ConfigMap: {config_map_name}")
        if "chat_generation" in config and "detectors" in config:
            check.passed = True
            check.messages.append("chat_generation and detectors present")
        else:
            check.messages.append("missing chat_generation or detectors")
        return check

    # ========== 2. chat_generation model ==========

    def find_model_pod(self, namespace: str, service_name: str) -> str | None:
        """Find a pod backing the chat_generation service."""
        endpoints = self.openshift_client.get_endpoints(service_name, namespace)
        if endpoints is not None:
            for subset in endpoints.subsets or []:
                for address in subset.addresses or []:
                    if address.target_ref is not None and address.target_ref.name:
                        return address.target_ref.name

        isvc = service_name.removesuffix("-predictor")
        pods = self.openshift_client.list_pods(
            namespace,
            label_selector=f"{INFERENCE_SERVICE_LABEL}={isvc},component=predictor",
            field_selector="status.phase=Running",
        )
        return pods[0].metadata.name if pods else None

    def check_chat_model(self, namespace: str, config: dict) -> CheckOutcome:
        check = CheckOutcome(step=2, title="LLM listed in chat_generation", passed=False)
        hostname, port = chat_generation_target(config)
        if hostname is None:
            check.messages.append("chat_generation.service.hostname not found in config (or no ConfigMap)")
            return check

        service_name = hostname.split(".", 1)[0]
        model_name = service_name.removesuffix("-predictor") or service_name
        check.messages.append(
            f"chat_generation hostname from config: {hostname} (service: {service_name}, port: {port})"
        )

        try:
            model_pod = self.find_model_pod(namespace, service_name)
        except ApiException as e:
            check.messages.append(ErrorTranslator.translate_api_exception(e))
            return check

        if model_pod is None:
            check.messages.append(
                f"No pod found for chat_generation service {service_name}. "
                "Please deploy the InferenceService and try again."
            )
            return check

        payload = {
            "model": model_name,
            "messages": [{"content": PROBE_MESSAGE, "role": "user"}],
        }
        logger.info("sending_inference_request", namespace=namespace, pod=model_pod, port=port)
        try:
            response = self.openshift_client.proxy_post_to_pod(
                namespace,
                model_pod,
                port,
                "/v1/chat/completions",
                payload,
                timeout=self.inference_timeout,
            )
        except httpx.HTTPError as e:
            check.messages.append(f"Inference request failed: {e}")
            return check

        if response.is_success:
            check.passed = True
            check.messages.append("Inference request succeeded")
        else:
            check.messages.append(
                f"Inference request failed with HTTP {response.status_code}. "
                f"You can test manually: oc port-forward -n {namespace} pod/{model_pod} 8080:{port}"
            )
        return check

    # ========== 3. Orchestrator pod ==========

    def find_orchestrator_pod(self, namespace: str, name: str) -> PodSummary | None:
        pods = self.openshift_client.list_pods(namespace)
        for pod in pods:
            if "guardrails-orchestrator" in pod.metadata.name:
                return PodSummary.from_pod(pod)

        labelled = self.openshift_client.list_pods(namespace, label_selector=ORCHESTRATOR_APP_LABEL)
        if labelled:
            return PodSummary.from_pod(labelled[0])

        for pod in pods:
            if "orchestrator" in pod.metadata.name or name in pod.metadata.name:
                return PodSummary.from_pod(pod)
        return None

    def check_orchestrator_pod(self, namespace: str, name: str) -> CheckOutcome:
        check = CheckOutcome(step=3, title="GuardrailsOrchestrator pod", passed=False)
        try:
            pod = self.find_orchestrator_pod(namespace, name)
        except ApiException as e:
            check.messages.append(ErrorTranslator.translate_api_exception(e))
            return check

        if pod is None:
            check.messages.append(f"No guardrails-orchestrator pod found in {namespace}")
            return check

        check.messages.append(f"{pod.name}: phase={pod.phase} ready={pod.ready}")
        if pod.phase == "Running" and pod.ready:
            check.passed = True
        else:
            check.messages.append(f"Pod not Running or not Ready (phase={pod.phase}, ready={pod.ready})")
        return check

    # ========== 4. otelExporter ==========

    def installed_operators(self) -> tuple[bool, bool]:
        """Whether the OpenTelemetry and Tempo operators are installed (cached)."""
        if self._installed_operators is None:
            names = [
                csv.get("metadata", {}).get("name", "").lower()
                for csv in self.openshift_client.list_cluster_service_versions()
            ]
            self._installed_operators = (
                any(OTEL_OPERATOR_MARKER in n for n in names),
                any(TEMPO_OPERATOR_MARKER in n for n in names),
            )
        return self._installed_operators

    def backup_otel_exporter(self, namespace: str, name: str, exporter: dict) -> Path:
        """Write the otelExporter object to a timestamped JSON file.

        Raises:
            BackupFileError: If the backup directory is not writable
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = self.backup_dir / f"{namespace}_{name}_otelExporter_{timestamp}.json"
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(exporter, indent=2) + "\n")
        except OSError as e:
            raise BackupFileError(f"Cannot write otelExporter backup to {self.backup_dir}: {e}") from e
        return path

    def check_otel_exporter(
        self, resource: dict, namespace: str, name: str
    ) -> tuple[CheckOutcome, str | None]:
        check = CheckOutcome(step=4, title="otelExporter", passed=True)
        exporter = (resource.get("spec") or {}).get("otelExporter") or {}

        backup_file = None
        if exporter:
            check.messages.append("spec.otelExporter uses deprecated field names")
            path = self.backup_otel_exporter(namespace, name, exporter)
            backup_file = str(path)
            check.messages.append(f"Backed up to: {path}")
            logger.warning("otel_exporter_backed_up", namespace=namespace, name=name, path=backup_file)

        try:
            otel_installed, tempo_installed = self.installed_operators()
        except ApiException as e:
            check.messages.append(ErrorTranslator.translate_api_exception(e))
            check.passed = not exporter
            return check, backup_file

        if not otel_installed:
            check.messages.append("OpenTelemetry operator not installed")
        if not tempo_installed:
            check.messages.append("Tempo operator not installed")

        if exporter and not (otel_installed and tempo_installed):
            check.passed = False
            check.messages.append(
                "spec.otelExporter is set but OpenTelemetry or Tempo operator is not installed"
            )
        return check, backup_file
