"""GuardrailsOrchestrator otelExporter data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Field names as they appear in the custom resource
LEGACY_FIELDS = (
    "protocol",
    "tracesProtocol",
    "metricsProtocol",
    "otlpEndpoint",
    "tracesEndpoint",
    "metricsEndpoint",
    "otlpExport",
)
CURRENT_FIELDS = (
    "otlpProtocol",
    "otlpTracesEndpoint",
    "otlpMetricsEndpoint",
    "enableTraces",
    "enableMetrics",
)


class SchemaState(str, Enum):
    """Which otelExporter schema a custom resource is using."""

    UNCONFIGURED = "unconfigured"  # No exporter fields at all
    LEGACY = "legacy"  # RHOAI 2.25 field names present
    CURRENT = "current"  # Only 3.x field names present
    UNKNOWN = "unknown"  # Fields present but neither schema recognized


class OtelExporterConfig(BaseModel):
    """Contents of ``spec.otelExporter``.

    Holds both the RHOAI 2.25 (legacy) and 3.x (current) field names. Empty
    strings are treated as unset, matching how the operator ignores them.
    Unrecognized keys are kept in ``model_extra``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    # Legacy schema
    protocol: str | None = None
    traces_protocol: str | None = Field(default=None, alias="tracesProtocol")
    metrics_protocol: str | None = Field(default=None, alias="metricsProtocol")
    otlp_endpoint: str | None = Field(default=None, alias="otlpEndpoint")
    traces_endpoint: str | None = Field(default=None, alias="tracesEndpoint")
    metrics_endpoint: str | None = Field(default=None, alias="metricsEndpoint")
    otlp_export: str | None = Field(default=None, alias="otlpExport")

    # Current schema
    otlp_protocol: str | None = Field(default=None, alias="otlpProtocol")
    otlp_traces_endpoint: str | None = Field(default=None, alias="otlpTracesEndpoint")
    otlp_metrics_endpoint: str | None = Field(default=None, alias="otlpMetricsEndpoint")
    enable_traces: bool | None = Field(default=None, alias="enableTraces")
    enable_metrics: bool | None = Field(default=None, alias="enableMetrics")

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Treat empty strings as absent fields."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_custom_resource(cls, resource: dict) -> "OtelExporterConfig":
        """Build from a full GuardrailsOrchestrator object."""
        spec = resource.get("spec") or {}
        return cls.model_validate(spec.get("otelExporter") or {})

    def _present(self, aliases: tuple[str, ...]) -> list[str]:
        dumped = self.model_dump(by_alias=True, exclude_none=True)
        return [alias for alias in aliases if alias in dumped]

    @property
    def legacy_fields(self) -> list[str]:
        """Legacy field names that are set."""
        return self._present(LEGACY_FIELDS)

    @property
    def current_fields(self) -> list[str]:
        """Current field names that are set."""
        return self._present(CURRENT_FIELDS)

    @property
    def unrecognized_fields(self) -> list[str]:
        """Keys that belong to neither schema."""
        return sorted(
            key for key, value in (self.model_extra or {}).items() if value not in (None, "")
        )


class MigrationPlan(BaseModel):
    """Outcome of mapping a legacy otelExporter onto the current schema."""

    exporter_patch: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when no current-schema field could be inferred."""
        return not self.exporter_patch

    @property
    def patch_body(self) -> dict:
        """Merge-patch body for the GuardrailsOrchestrator resource."""
        return {"spec": {"otelExporter": dict(self.exporter_patch)}}
