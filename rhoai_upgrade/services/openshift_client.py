"""OpenShift API client wrapper for the resources touched by the upgrade."""

import os

import httpx
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from rhoai_upgrade.exceptions import RolloutFailedError

GORCH_GROUP = "trustyai.opendatahub.io"
GORCH_VERSION = "v1alpha1"
GORCH_PLURAL = "guardrailsorchestrators"


def is_rollout_complete(deployment: client.V1Deployment) -> bool:
    """Decide whether a deployment rollout has finished.

    Mirrors the checks ``oc rollout status`` performs: the controller has
    observed the latest generation, every replica runs the new template, no
    old replicas are left and all updated replicas are available.

    Raises:
        RolloutFailedError: If the rollout exceeded its progress deadline
    """
    metadata = deployment.metadata
    status = deployment.status
    if status is None:
        return False

    if (metadata.generation or 0) > (status.observed_generation or 0):
        return False

    for condition in status.conditions or []:
        if condition.type == "Progressing" and condition.reason == "ProgressDeadlineExceeded":
            raise RolloutFailedError(
                f"Deployment {metadata.name} exceeded its progress deadline"
            )

    desired = deployment.spec.replicas if deployment.spec.replicas is not None else 1
    updated = status.updated_replicas or 0
    if updated < desired:
        return False
    if (status.replicas or 0) > updated:
        return False
    if (status.available_replicas or 0) < updated:
        return False
    return True


class OpenShiftClient:
    """Wrapper for OpenShift/Kubernetes API client.

    Provides the calls the upgrade tools need: GuardrailsOrchestrator custom
    resources, their deployments and ConfigMaps, predictor pods, Routes and
    installed operators.
    """

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        verify_ssl: bool | None = None,
    ):
        """Initialize OpenShift client.

        Args:
            api_url: OpenShift API URL (defaults to OPENSHIFT_API_URL env var)
            token: Bearer token (defaults to OPENSHIFT_TOKEN env var, then the
                   kubeconfig session, then the service account token)
            verify_ssl: Whether to verify SSL certificates (defaults to
                        OPENSHIFT_VERIFY_SSL env var, true unless "false")
        """
        self.api_url = api_url or os.getenv(
            "OPENSHIFT_API_URL", "https://kubernetes.default.svc"
        )
        if verify_ssl is None:
            verify_ssl = os.getenv("OPENSHIFT_VERIFY_SSL", "true").lower() != "false"
        self.verify_ssl = verify_ssl

        if token is None:
            token = os.getenv("OPENSHIFT_TOKEN")
            if token is None:
                token_path = "/var/run/secrets/kubernetes.io/serviceaccount/token"
                if os.path.exists(token_path):
                    with open(token_path) as f:
                        token = f.read().strip()

        self.token = token
        self._initialize_client()

    def _initialize_client(self) -> None:
        """Initialize Kubernetes API client configuration."""
        try:
            # An operator's workstation session comes first
            config.load_kube_config()
        except config.ConfigException:
            try:
                config.load_incluster_config()
            except config.ConfigException:
                configuration = client.Configuration()
                configuration.host = self.api_url
                configuration.verify_ssl = self.verify_ssl
                if self.token:
                    configuration.api_key = {"authorization": f"Bearer {self.token}"}
                client.Configuration.set_default(configuration)

        self.configuration = client.Configuration.get_default_copy()
        self.api_client = client.ApiClient(self.configuration)
        self.core_v1 = client.CoreV1Api(self.api_client)
        self.apps_v1 = client.AppsV1Api(self.api_client)
        self.custom_objects = client.CustomObjectsApi(self.api_client)

    # ========== Session ==========

    def whoami(self) -> str:
        """Return the user name of the current session (``oc whoami``).

        Raises:
            ApiException: 401 if the session is not authenticated
        """
        user = self.custom_objects.get_cluster_custom_object(
            group="user.openshift.io",
            version="v1",
            plural="users",
            name="~",
        )
        return user.get("metadata", {}).get("name", "")

    def get_bearer_token(self) -> str | None:
        """Bearer token of the current session (``oc whoami -t``)."""
        header = (self.configuration.api_key or {}).get("authorization")
        if header:
            return header.removeprefix("Bearer ").strip() or None
        return self.token

    @property
    def api_host(self) -> str:
        return self.configuration.host.rstrip("/")

    def namespace_exists(self, namespace: str) -> bool:
        """Check whether a namespace exists.

        Raises:
            ApiException: For errors other than 404
        """
        try:
            self.core_v1.read_namespace(name=namespace)
            return True
        except ApiException as e:
            if e.status == 404:
                return False
            raise

    # ========== GuardrailsOrchestrator Operations ==========

    def list_guardrails_orchestrators(self, namespace: str | None = None) -> list[dict]:
        """List GuardrailsOrchestrator resources.

        Args:
            namespace: Target namespace, or None for all namespaces

        Returns:
            List of GuardrailsOrchestrator resources, empty when the CRD
            is not installed on the cluster
        """
        try:
            if namespace is None:
                result = self.custom_objects.list_cluster_custom_object(
                    group=GORCH_GROUP,
                    version=GORCH_VERSION,
                    plural=GORCH_PLURAL,
                )
            else:
                result = self.custom_objects.list_namespaced_custom_object(
                    group=GORCH_GROUP,
                    version=GORCH_VERSION,
                    namespace=namespace,
                    plural=GORCH_PLURAL,
                )
        except ApiException as e:
            if e.status == 404:
                return []
            raise
        return result.get("items", [])

    def get_guardrails_orchestrator(self, name: str, namespace: str) -> dict:
        """Get a GuardrailsOrchestrator resource.

        Raises:
            ApiException: If not found or access denied
        """
        return self.custom_objects.get_namespaced_custom_object(
            group=GORCH_GROUP,
            version=GORCH_VERSION,
            namespace=namespace,
            plural=GORCH_PLURAL,
            name=name,
        )

    def patch_guardrails_orchestrator(self, name: str, namespace: str, patch: dict) -> dict:
        """Apply a JSON merge patch to a GuardrailsOrchestrator.

        Args:
            name: GuardrailsOrchestrator name
            namespace: Target namespace
            patch: Merge-patch body

        Returns:
            Updated GuardrailsOrchestrator resource
        """
        return self.custom_objects.patch_namespaced_custom_object(
            group=GORCH_GROUP,
            version=GORCH_VERSION,
            namespace=namespace,
            plural=GORCH_PLURAL,
            name=name,
            body=patch,
            _content_type="application/merge-patch+json",
        )

    # ========== Deployment Operations ==========

    def get_deployment(self, name: str, namespace: str) -> client.V1Deployment | None:
        """Get a deployment, or None if it does not exist."""
        try:
            return self.apps_v1.read_namespaced_deployment(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def list_deployments(self, namespace: str) -> list[client.V1Deployment]:
        return self.apps_v1.list_namespaced_deployment(namespace=namespace).items

    def patch_deployment(self, name: str, namespace: str, patch: dict) -> client.V1Deployment:
        """Apply a strategic merge patch to a deployment."""
        return self.apps_v1.patch_namespaced_deployment(
            name=name,
            namespace=namespace,
            body=patch,
            _content_type="application/strategic-merge-patch+json",
        )

    def is_rollout_complete(self, name: str, namespace: str) -> bool:
        """Check the rollout state of a deployment (False if it vanished)."""
        deployment = self.get_deployment(name, namespace)
        if deployment is None:
            return False
        return is_rollout_complete(deployment)

    # ========== ConfigMap Operations ==========

    def list_config_maps(self, namespace: str) -> list[client.V1ConfigMap]:
        return self.core_v1.list_namespaced_config_map(namespace=namespace).items

    def get_config_map(self, name: str, namespace: str) -> client.V1ConfigMap | None:
        """Get a ConfigMap, or None if it does not exist."""
        try:
            return self.core_v1.read_namespaced_config_map(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    # ========== Pod Operations ==========

    def list_pods(
        self,
        namespace: str,
        label_selector: str | None = None,
        field_selector: str | None = None,
    ) -> list[client.V1Pod]:
        """List pods in a namespace.

        Args:
            namespace: Target namespace
            label_selector: Optional label selector (e.g. "component=predictor")
            field_selector: Optional field selector (e.g. "status.phase=Running")

        Returns:
            List of pod objects
        """
        kwargs = {}
        if label_selector:
            kwargs["label_selector"] = label_selector
        if field_selector:
            kwargs["field_selector"] = field_selector
        return self.core_v1.list_namespaced_pod(namespace=namespace, **kwargs).items

    def get_pod(self, name: str, namespace: str) -> client.V1Pod | None:
        """Get a pod, or None if it does not exist."""
        try:
            return self.core_v1.read_namespaced_pod(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def is_pod_ready(self, name: str, namespace: str) -> bool:
        """Whether the pod exists and reports the Ready condition."""
        pod = self.get_pod(name, namespace)
        if pod is None or pod.status is None:
            return False
        return any(
            c.type == "Ready" and c.status == "True"
            for c in (pod.status.conditions or [])
        )

    def delete_pod(self, name: str, namespace: str) -> None:
        self.core_v1.delete_namespaced_pod(name=name, namespace=namespace)

    def get_endpoints(self, name: str, namespace: str) -> client.V1Endpoints | None:
        """Get the Endpoints of a service, or None if it does not exist."""
        try:
            return self.core_v1.read_namespaced_endpoints(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def proxy_post_to_pod(
        self,
        namespace: str,
        pod: str,
        port: int,
        path: str,
        payload: dict,
        timeout: float = 30.0,
    ) -> httpx.Response:
        """POST JSON to a pod port through the API server proxy.

        Used instead of a port-forward to reach model servers from outside
        the cluster.
        """
        url = f"{self.api_host}/api/v1/namespaces/{namespace}/pods/{pod}:{port}/proxy{path}"
        headers = {"Content-Type": "application/json"}
        token = self.get_bearer_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        verify = self.configuration.ssl_ca_cert or self.configuration.verify_ssl
        with httpx.Client(verify=verify, timeout=httpx.Timeout(timeout)) as http_client:
            return http_client.post(url, json=payload, headers=headers)

    # ========== Route and Operator Operations ==========

    def get_route_host(self, namespace: str, label_selector: str) -> str | None:
        """Host of the first Route matching a label selector."""
        result = self.custom_objects.list_namespaced_custom_object(
            group="route.openshift.io",
            version="v1",
            namespace=namespace,
            plural="routes",
            label_selector=label_selector,
        )
        items = result.get("items", [])
        if not items:
            return None
        return items[0].get("spec", {}).get("host") or None

    def list_cluster_service_versions(self) -> list[dict]:
        """List installed operator ClusterServiceVersions across all namespaces."""
        result = self.custom_objects.list_cluster_custom_object(
            group="operators.coreos.com",
            version="v1alpha1",
            plural="clusterserviceversions",
        )
        return result.get("items", [])
