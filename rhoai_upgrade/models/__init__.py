"""Pydantic data models for the upgrade tools."""

from rhoai_upgrade.models.checks import CheckOutcome, InstanceReport
from rhoai_upgrade.models.metrics import (
    METRIC_ENDPOINTS,
    BackupMetadata,
    MetricRequestPayload,
    MetricsBackup,
    ScheduledMetricRequest,
    endpoint_for_metric,
)
from rhoai_upgrade.models.otel import MigrationPlan, OtelExporterConfig, SchemaState
from rhoai_upgrade.models.pods import Deadlock, PodSummary
from rhoai_upgrade.models.results import BatchResult, ItemOutcome, ItemStatus

__all__ = [
    # Pre-upgrade check reports
    "CheckOutcome",
    "InstanceReport",
    # Metrics models
    "METRIC_ENDPOINTS",
    "BackupMetadata",
    "MetricRequestPayload",
    "MetricsBackup",
    "ScheduledMetricRequest",
    "endpoint_for_metric",
    # otelExporter models
    "MigrationPlan",
    "OtelExporterConfig",
    "SchemaState",
    # Pod models
    "Deadlock",
    "PodSummary",
    # Batch results
    "BatchResult",
    "ItemOutcome",
    "ItemStatus",
]
