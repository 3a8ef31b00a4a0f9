"""TrustyAI scheduled metric data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Scheduling endpoint per metric name, relative to the TrustyAI route
METRIC_ENDPOINTS = {
    "SPD": "/metrics/group/fairness/spd/request",
    "DIR": "/metrics/group/fairness/dir/request",
    "meanshift": "/metrics/drift/meanshift/request",
    "kstest": "/metrics/drift/kstest/request",
    "approxkstest": "/metrics/drift/approxkstest/request",
    "fouriermmd": "/metrics/drift/fouriermmd/request",
}

METRIC_TYPES = ("all", "fairness")


def endpoint_for_metric(metric_name: str | None) -> str | None:
    """Return the scheduling path for a metric name, or None if unknown."""
    if not metric_name:
        return None
    return METRIC_ENDPOINTS.get(metric_name)


class TypedValue(BaseModel):
    """A TrustyAI ``{type, value}`` pair such as ``{"type": "INT32", "value": 1}``."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    value: Any = None


class MetricRequestPayload(BaseModel):
    """Body originally submitted to schedule a metric.

    Only the fields the tools read are typed; everything else is carried
    through untouched so the payload can be re-submitted as it was.
    """

    # "model_id" would otherwise collide with pydantic's reserved prefix
    model_config = ConfigDict(populate_by_name=True, extra="allow", protected_namespaces=())

    model_id: str | None = Field(default=None, alias="modelId")
    metric_name: str | None = Field(default=None, alias="metricName")
    protected_attribute: str | None = Field(default=None, alias="protectedAttribute")
    privileged_attribute: TypedValue | None = Field(default=None, alias="privilegedAttribute")
    unprivileged_attribute: TypedValue | None = Field(default=None, alias="unprivilegedAttribute")
    outcome_name: str | None = Field(default=None, alias="outcomeName")
    favorable_outcome: TypedValue | None = Field(default=None, alias="favorableOutcome")
    batch_size: int | None = Field(default=None, alias="batchSize")

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the wire shape, keeping only keys that were sent."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class ScheduledMetricRequest(BaseModel):
    """One scheduled metric as listed by ``/metrics/all/requests``."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    request: MetricRequestPayload

    @property
    def identity(self) -> tuple[str | None, str | None]:
        """The (modelId, metricName) pair used to detect duplicates."""
        return (self.request.model_id, self.request.metric_name)

    def describe(self) -> str:
        return f"{self.request.metric_name} for model: {self.request.model_id} (ID: {self.id})"


class MetricsBackup(BaseModel):
    """Response of ``/metrics/all/requests`` and the backup file format."""

    model_config = ConfigDict(extra="allow")

    requests: list[ScheduledMetricRequest]

    def identities(self) -> set[tuple[str | None, str | None]]:
        return {item.identity for item in self.requests}


class BackupMetadata(BaseModel):
    """Sidecar file written next to each backup."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    namespace: str
    route: str
    metric_type: str = Field(alias="metricType")
    metric_count: int = Field(alias="metricCount")
    backup_file: str = Field(alias="backupFile")
