"""Predictor pod data models used for GPU deadlock detection."""

from kubernetes import client
from pydantic import BaseModel, Field

INFERENCE_SERVICE_LABEL = "serving.kserve.io/inferenceservice"
PREDICTOR_SELECTOR = "component=predictor"


class PodSummary(BaseModel):
    """The parts of a pod the deadlock detector looks at."""

    name: str
    namespace: str
    phase: str | None = None
    ready: bool = False
    labels: dict[str, str] = Field(default_factory=dict)

    @property
    def inference_service(self) -> str | None:
        """Name of the InferenceService the pod serves, if labelled."""
        return self.labels.get(INFERENCE_SERVICE_LABEL)

    @classmethod
    def from_pod(cls, pod: client.V1Pod) -> "PodSummary":
        """Summarize a Kubernetes pod object."""
        status = pod.status
        conditions = (status.conditions if status else None) or []
        return cls(
            name=pod.metadata.name,
            namespace=pod.metadata.namespace or "",
            phase=status.phase if status else None,
            ready=any(c.type == "Ready" and c.status == "True" for c in conditions),
            labels=pod.metadata.labels or {},
        )


class Deadlock(BaseModel):
    """A Running and a Pending predictor pod competing for the same GPU."""

    inference_service: str
    namespace: str
    running_pod: str
    pending_pod: str
