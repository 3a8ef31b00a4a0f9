"""Unit tests for otelExporter schema classification and migration planning."""

import pytest

from rhoai_upgrade.models.otel import OtelExporterConfig, SchemaState
from rhoai_upgrade.services.otel_schema import classify_exporter, plan_migration


def exporter(**fields) -> OtelExporterConfig:
    return OtelExporterConfig.model_validate(fields)


@pytest.mark.unit
class TestClassifyExporter:
    """Unit tests for schema classification."""

    def test_no_fields_is_unconfigured(self) -> None:
        """Test that an empty otelExporter is unconfigured, not legacy."""
        assert classify_exporter(exporter()) == SchemaState.UNCONFIGURED

    def test_missing_otel_exporter_is_unconfigured(self, make_orchestrator) -> None:
        """Test that a resource without spec.otelExporter is unconfigured."""
        config = OtelExporterConfig.from_custom_resource(make_orchestrator("gorch"))
        assert classify_exporter(config) == SchemaState.UNCONFIGURED

    def test_empty_strings_are_unconfigured(self) -> None:
        """Test that blank values count as absent."""
        assert classify_exporter(exporter(protocol="", otlpEndpoint="  ")) == SchemaState.UNCONFIGURED

    def test_legacy_fields(self) -> None:
        """Test classification of the 2.25 field names."""
        config = exporter(protocol="grpc", otlpEndpoint="otel-collector:4317")
        assert classify_exporter(config) == SchemaState.LEGACY
        assert config.legacy_fields == ["protocol", "otlpEndpoint"]

    def test_current_fields(self) -> None:
        """Test classification of the 3.x field names."""
        config = exporter(otlpProtocol="grpc", enableTraces=True)
        assert classify_exporter(config) == SchemaState.CURRENT

    def test_mixed_fields_are_legacy(self) -> None:
        """Test that any legacy field marks the resource for migration."""
        config = exporter(otlpProtocol="grpc", otlpEndpoint="otel-collector:4317")
        assert classify_exporter(config) == SchemaState.LEGACY

    def test_unrecognized_fields_are_unknown(self) -> None:
        """Test that keys from neither schema are not guessed at."""
        config = exporter(collectorUrl="otel-collector:4317")
        assert classify_exporter(config) == SchemaState.UNKNOWN
        assert config.unrecognized_fields == ["collectorUrl"]


@pytest.mark.unit
class TestPlanMigration:
    """Unit tests for legacy to current field mapping."""

    def test_protocol_and_endpoint(self) -> None:
        """Test that otlpEndpoint maps to both per-signal endpoints."""
        plan = plan_migration(exporter(protocol="http", otlpEndpoint="http://collector:4318"))

        assert plan.exporter_patch == {
            "otlpProtocol": "http",
            "otlpTracesEndpoint": "http://collector:4318",
            "otlpMetricsEndpoint": "http://collector:4318",
        }
        assert "enableTraces" not in plan.exporter_patch
        assert "enableMetrics" not in plan.exporter_patch
        assert plan.warnings == []

    def test_per_signal_endpoints_take_precedence(self) -> None:
        """Test that tracesEndpoint and metricsEndpoint override otlpEndpoint."""
        plan = plan_migration(
            exporter(
                otlpEndpoint="collector:4317",
                tracesEndpoint="tempo:4317",
                metricsEndpoint="prometheus:4317",
            )
        )

        assert plan.exporter_patch["otlpTracesEndpoint"] == "tempo:4317"
        assert plan.exporter_patch["otlpMetricsEndpoint"] == "prometheus:4317"

    def test_export_all_enables_both_signals(self) -> None:
        """Test that otlpExport=all sets both enable flags."""
        plan = plan_migration(exporter(otlpExport="all"))
        assert plan.exporter_patch == {"enableTraces": True, "enableMetrics": True}

    @pytest.mark.parametrize(
        ("selector", "expected"),
        [
            ("traces", {"enableTraces": True}),
            ("metrics", {"enableMetrics": True}),
            ("traces,metrics", {"enableTraces": True, "enableMetrics": True}),
            ("none", {}),
        ],
    )
    def test_export_selector(self, selector: str, expected: dict) -> None:
        """Test partial otlpExport selectors; flags are never written as false."""
        plan = plan_migration(exporter(otlpExport=selector))
        assert plan.exporter_patch == expected

    def test_differing_protocols_prefer_traces(self) -> None:
        """Test that differing per-signal protocols pick tracesProtocol and warn."""
        plan = plan_migration(exporter(tracesProtocol="grpc", metricsProtocol="http"))

        assert plan.exporter_patch["otlpProtocol"] == "grpc"
        assert len(plan.warnings) == 1
        assert "differ" in plan.warnings[0]

    def test_matching_protocols_do_not_warn(self) -> None:
        """Test that identical per-signal protocols are used silently."""
        plan = plan_migration(exporter(tracesProtocol="grpc", metricsProtocol="grpc"))
        assert plan.exporter_patch["otlpProtocol"] == "grpc"
        assert plan.warnings == []

    def test_single_signal_protocol(self) -> None:
        """Test that a lone metricsProtocol becomes the protocol."""
        plan = plan_migration(exporter(metricsProtocol="http"))
        assert plan.exporter_patch == {"otlpProtocol": "http"}

    def test_nothing_inferable_is_empty(self) -> None:
        """Test that a legacy resource with no mappable values yields an empty plan."""
        plan = plan_migration(exporter(otlpExport="none"))
        assert plan.is_empty

    def test_patch_body_shape(self) -> None:
        """Test that the plan renders as a merge patch on spec.otelExporter."""
        plan = plan_migration(exporter(protocol="grpc"))
        assert plan.patch_body == {"spec": {"otelExporter": {"otlpProtocol": "grpc"}}}

    def test_migrated_resource_is_stable(self) -> None:
        """Test that applying the patch and migrating again changes nothing."""
        legacy = {"protocol": "grpc", "otlpEndpoint": "collector:4317", "otlpExport": "all"}
        plan = plan_migration(exporter(**legacy))

        # Operator 3.x drops the legacy keys once the new ones are set
        migrated = exporter(**plan.exporter_patch)

        assert classify_exporter(migrated) == SchemaState.CURRENT
        assert plan_migration(migrated).is_empty
