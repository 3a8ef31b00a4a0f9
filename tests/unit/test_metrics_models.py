"""Unit tests for TrustyAI metric models and listing parsing."""

import json

import pytest

from rhoai_upgrade.exceptions import TrustyAIError
from rhoai_upgrade.models.metrics import (
    METRIC_ENDPOINTS,
    MetricsBackup,
    ScheduledMetricRequest,
    endpoint_for_metric,
)
from rhoai_upgrade.services.trustyai_client import parse_metrics_listing

SPD_REQUEST = {
    "modelId": "credit-model",
    "metricName": "SPD",
    "protectedAttribute": "gender",
    "privilegedAttribute": {"type": "INT32", "value": 1},
    "unprivilegedAttribute": {"type": "INT32", "value": 0},
    "outcomeName": "approved",
    "favorableOutcome": {"type": "INT32", "value": 1},
    "batchSize": 5000,
    "thresholdDelta": 0.1,
}


@pytest.mark.unit
class TestMetricEndpoints:
    """Unit tests for metric name to endpoint mapping."""

    @pytest.mark.parametrize(
        ("metric_name", "path"),
        [
            ("SPD", "/metrics/group/fairness/spd/request"),
            ("DIR", "/metrics/group/fairness/dir/request"),
            ("meanshift", "/metrics/drift/meanshift/request"),
            ("kstest", "/metrics/drift/kstest/request"),
            ("approxkstest", "/metrics/drift/approxkstest/request"),
            ("fouriermmd", "/metrics/drift/fouriermmd/request"),
        ],
    )
    def test_known_metrics(self, metric_name: str, path: str) -> None:
        """Test the six supported scheduling endpoints."""
        assert endpoint_for_metric(metric_name) == path

    @pytest.mark.parametrize("metric_name", ["spd", "identity", "", None])
    def test_unknown_metrics(self, metric_name: str | None) -> None:
        """Test that unknown or missing names have no endpoint."""
        assert endpoint_for_metric(metric_name) is None

    def test_six_endpoints(self) -> None:
        """Test that exactly six metric kinds are supported."""
        assert len(METRIC_ENDPOINTS) == 6


@pytest.mark.unit
class TestMetricRequestModels:
    """Unit tests for scheduled metric request models."""

    def test_payload_preserves_original_shape(self) -> None:
        """Test that a request re-serializes with its original keys, extras included."""
        item = ScheduledMetricRequest.model_validate({"id": "abc-123", "request": SPD_REQUEST})

        assert item.request.model_id == "credit-model"
        assert item.request.batch_size == 5000
        assert item.request.to_payload() == SPD_REQUEST

    def test_payload_omits_unset_fields(self) -> None:
        """Test that fields absent from the backup are not sent as null."""
        item = ScheduledMetricRequest.model_validate(
            {"id": "x", "request": {"modelId": "m", "metricName": "meanshift"}}
        )
        assert item.request.to_payload() == {"modelId": "m", "metricName": "meanshift"}

    def test_identity(self) -> None:
        """Test the (modelId, metricName) identity used for duplicate detection."""
        backup = MetricsBackup.model_validate(
            {
                "requests": [
                    {"id": "1", "request": SPD_REQUEST},
                    {"id": "2", "request": {**SPD_REQUEST, "metricName": "DIR"}},
                ]
            }
        )
        assert backup.identities() == {("credit-model", "SPD"), ("credit-model", "DIR")}

    def test_describe(self) -> None:
        """Test the one-line description used in logs."""
        item = ScheduledMetricRequest.model_validate({"id": "abc", "request": SPD_REQUEST})
        assert item.describe() == "SPD for model: credit-model (ID: abc)"


@pytest.mark.unit
class TestParseMetricsListing:
    """Unit tests for parse_metrics_listing."""

    def test_valid_listing(self) -> None:
        """Test parsing a listing with one request."""
        listing = parse_metrics_listing(json.dumps({"requests": [{"id": "1", "request": SPD_REQUEST}]}))
        assert len(listing.requests) == 1

    def test_empty_listing(self) -> None:
        """Test that an empty requests array is valid."""
        assert parse_metrics_listing('{"requests": []}').requests == []

    def test_invalid_json(self) -> None:
        """Test that non-JSON text is rejected."""
        with pytest.raises(TrustyAIError, match="not valid JSON"):
            parse_metrics_listing("<html>Bad Gateway</html>")

    def test_missing_requests_array(self) -> None:
        """Test that JSON without a requests array is rejected."""
        with pytest.raises(TrustyAIError, match="expected structure"):
            parse_metrics_listing('{"metrics": []}')
