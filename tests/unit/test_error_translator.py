"""Unit tests for error translation service."""

import json

import pytest
from kubernetes.client.rest import ApiException

from rhoai_upgrade.services.error_translator import ErrorTranslator


@pytest.mark.unit
class TestKubernetesErrorTranslation:
    """Unit tests for Kubernetes API error translation."""

    def test_translate_401_unauthorized(self) -> None:
        """Test 401 error translation."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=401,
            reason="Unauthorized",
            message="Unauthorized",
        )

        assert "expired" in result.lower()
        assert "oc login" in result

    def test_translate_403_forbidden(self) -> None:
        """Test 403 error translation keeps the API server detail."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=403,
            reason="Forbidden",
            message='pods "granite-1" is forbidden: User "dev" cannot delete resource "pods"',
        )

        assert "permission denied" in result.lower()
        assert "granite-1" in result
        assert "admin" in result.lower()

    def test_translate_403_forbidden_generic(self) -> None:
        """Test 403 error translation without specific message."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=403,
            reason="Forbidden",
            message=None,
        )

        assert result.startswith("Permission denied.")

    def test_translate_404_not_found(self) -> None:
        """Test 404 error translation with the resource named by the API server."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=404,
            reason="NotFound",
            message='deployments.apps "gorch" not found',
        )

        assert result == 'Not found: deployments.apps "gorch" not found'

    def test_translate_404_not_found_generic(self) -> None:
        """Test 404 error translation for resource not found."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=404,
            reason="NotFound",
            message=None,
        )

        assert "not found" in result.lower()
        assert "deleted" in result.lower()

    def test_translate_409_conflict(self) -> None:
        """Test 409 error translation."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=409,
            reason="Conflict",
            message="the object has been modified",
        )

        assert "modified concurrently" in result.lower()
        assert "rerun" in result.lower()

    def test_translate_422_unprocessable(self) -> None:
        """Test 422 error translation for schema validation errors."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=422,
            reason="UnprocessableEntity",
            message='spec.otelExporter.otlpProtocol: Unsupported value: "tcp"',
        )

        assert "schema validation" in result.lower()
        assert "otlpProtocol" in result
        assert "operator version" in result.lower()

    @pytest.mark.parametrize("status_code", [500, 502, 503])
    def test_translate_server_errors(self, status_code: int) -> None:
        """Test 5xx error translation."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=status_code,
            reason="ServerError",
        )

        assert str(status_code) in result
        assert "cluster health" in result.lower()

    def test_translate_unknown_status_code(self) -> None:
        """Test error translation for unknown status code."""
        result = ErrorTranslator.translate_kubernetes_error(
            status_code=418,  # I'm a teapot
            reason="TeapotError",
            message="Cannot brew coffee",
        )

        assert "TeapotError" in result
        assert "Cannot brew coffee" in result


@pytest.mark.unit
class TestApiExceptionTranslation:
    """Unit tests for translating ApiException objects."""

    def test_message_extracted_from_status_body(self) -> None:
        """Test that the Status message in the body is used."""
        error = ApiException(status=404, reason="Not Found")
        error.body = json.dumps(
            {
                "kind": "Status",
                "status": "Failure",
                "message": 'guardrailsorchestrators.trustyai.opendatahub.io "gorch" not found',
                "code": 404,
            }
        )

        result = ErrorTranslator.translate_api_exception(error)

        assert result == 'Not found: guardrailsorchestrators.trustyai.opendatahub.io "gorch" not found'

    def test_non_json_body(self) -> None:
        """Test that a plain-text body is passed through as the message."""
        error = ApiException(status=403, reason="Forbidden")
        error.body = "forbidden by policy"

        result = ErrorTranslator.translate_api_exception(error)

        assert "forbidden by policy" in result

    def test_no_body(self) -> None:
        """Test translation of an exception without a body."""
        error = ApiException(status=409, reason="Conflict")

        result = ErrorTranslator.translate_api_exception(error)

        assert "modified concurrently" in result.lower()
