"""Classification and mapping of GuardrailsOrchestrator otelExporter schemas.

RHOAI 2.25 configured the exporter with per-signal protocols and endpoints
plus an ``otlpExport`` selector. RHOAI 3.x uses a single ``otlpProtocol``,
per-signal endpoints and boolean enable flags. Both functions here are pure;
the migration executor does all the I/O.
"""

from typing import Any

from rhoai_upgrade.models.otel import MigrationPlan, OtelExporterConfig, SchemaState


def classify_exporter(exporter: OtelExporterConfig) -> SchemaState:
    """Decide which schema an otelExporter object uses.

    Any legacy field wins, even alongside current ones, so half-migrated
    resources are finished off. Keys from neither schema are UNKNOWN.
    """
    if exporter.legacy_fields:
        return SchemaState.LEGACY
    if exporter.current_fields:
        return SchemaState.CURRENT
    if exporter.unrecognized_fields:
        return SchemaState.UNKNOWN
    return SchemaState.UNCONFIGURED


def _choose_protocol(exporter: OtelExporterConfig) -> tuple[str | None, str | None]:
    """Pick the single protocol the current schema supports.

    Returns:
        (protocol, warning) where warning is set when the choice was ambiguous
    """
    if exporter.protocol:
        return exporter.protocol, None

    traces, metrics = exporter.traces_protocol, exporter.metrics_protocol
    if traces and metrics:
        if traces != metrics:
            # Only one protocol survives; traces is the documented choice
            return traces, (
                f"tracesProtocol ({traces}) and metricsProtocol ({metrics}) differ; "
                f"the new schema supports a single protocol, using {traces}"
            )
        return traces, None
    return traces or metrics, None


def _export_flags(otlp_export: str | None) -> dict[str, bool]:
    if not otlp_export:
        return {}
    selector = otlp_export.lower()
    flags = {}
    if "all" in selector or "trace" in selector:
        flags["enableTraces"] = True
    if "all" in selector or "metric" in selector:
        flags["enableMetrics"] = True
    return flags


def plan_migration(exporter: OtelExporterConfig) -> MigrationPlan:
    """Map a legacy otelExporter onto current-schema fields.

    Only fields that can be inferred are included; enable flags are never
    written as false.
    """
    protocol, warning = _choose_protocol(exporter)
    traces_endpoint = exporter.traces_endpoint or exporter.otlp_endpoint
    metrics_endpoint = exporter.metrics_endpoint or exporter.otlp_endpoint

    fields: dict[str, Any] = {}
    if protocol:
        fields["otlpProtocol"] = protocol
    if traces_endpoint:
        fields["otlpTracesEndpoint"] = traces_endpoint
    if metrics_endpoint:
        fields["otlpMetricsEndpoint"] = metrics_endpoint
    fields.update(_export_flags(exporter.otlp_export))

    return MigrationPlan(
        exporter_patch=fields,
        warnings=[warning] if warning else [],
    )
