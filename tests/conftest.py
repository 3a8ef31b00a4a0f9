"""Shared pytest fixtures and configuration.

This module provides common fixtures used across all test types: a mocked
OpenShift client, Kubernetes object builders and a fake clock for waits.
"""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from kubernetes import client


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is called."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a fake clock whose sleep advances time instantly."""
    return FakeClock()


@pytest.fixture
def wait_options(fake_clock: FakeClock) -> dict:
    """Keyword arguments that make executors wait on the fake clock."""
    return {"sleep": fake_clock.sleep, "clock": fake_clock}


@pytest.fixture
def mock_openshift_client() -> MagicMock:
    """Provide a mocked OpenShift client with a logged-in session."""
    openshift_client = MagicMock()
    openshift_client.verify_ssl = True
    openshift_client.whoami.return_value = "kube:admin"
    openshift_client.namespace_exists.return_value = True
    openshift_client.get_bearer_token.return_value = "sha256~test-token"
    openshift_client.list_guardrails_orchestrators.return_value = []
    return openshift_client


def build_pod(
    name: str,
    namespace: str = "models",
    phase: str = "Running",
    ready: bool | None = None,
    inference_service: str | None = "granite",
) -> client.V1Pod:
    """Build a predictor pod object as returned by the Kubernetes client."""
    if ready is None:
        ready = phase == "Running"
    labels = {"component": "predictor"}
    if inference_service:
        labels["serving.kserve.io/inferenceservice"] = inference_service
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels),
        status=client.V1PodStatus(
            phase=phase,
            conditions=[client.V1PodCondition(type="Ready", status="True" if ready else "False")],
        ),
    )


@pytest.fixture
def make_pod() -> Callable[..., client.V1Pod]:
    """Provide the predictor pod builder."""
    return build_pod


def build_deployment(
    name: str = "guardrails-orchestrator",
    generation: int = 2,
    observed_generation: int = 2,
    replicas: int | None = 1,
    updated_replicas: int | None = 1,
    status_replicas: int | None = 1,
    available_replicas: int | None = 1,
    conditions: list[client.V1DeploymentCondition] | None = None,
) -> client.V1Deployment:
    """Build a deployment object with the given rollout status."""
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name=name, namespace="guardrails", generation=generation),
        spec=client.V1DeploymentSpec(
            replicas=replicas,
            selector=client.V1LabelSelector(match_labels={"app": name}),
            template=client.V1PodTemplateSpec(),
        ),
        status=client.V1DeploymentStatus(
            observed_generation=observed_generation,
            replicas=status_replicas,
            updated_replicas=updated_replicas,
            available_replicas=available_replicas,
            conditions=conditions,
        ),
    )


@pytest.fixture
def make_deployment() -> Callable[..., client.V1Deployment]:
    """Provide the deployment builder."""
    return build_deployment


def guardrails_orchestrator(name: str, namespace: str = "guardrails", otel_exporter: dict | None = None) -> dict:
    """Build a GuardrailsOrchestrator object as returned by CustomObjectsApi."""
    spec: dict = {"orchestratorConfig": f"{name}-config", "replicas": 1}
    if otel_exporter is not None:
        spec["otelExporter"] = otel_exporter
    return {
        "apiVersion": "trustyai.opendatahub.io/v1alpha1",
        "kind": "GuardrailsOrchestrator",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


@pytest.fixture
def make_orchestrator() -> Callable[..., dict]:
    """Provide the GuardrailsOrchestrator builder."""
    return guardrails_orchestrator
