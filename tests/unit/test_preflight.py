"""Unit tests for environment checks run before each tool."""

import pytest
from kubernetes.client.rest import ApiException

from rhoai_upgrade.exceptions import EnvironmentCheckError
from rhoai_upgrade.operations.preflight import connect_trustyai, verify_logged_in, verify_namespace


@pytest.mark.unit
class TestPreflight:
    """Unit tests for preflight checks."""

    def test_logged_in(self, mock_openshift_client) -> None:
        """Test that the session user is returned."""
        assert verify_logged_in(mock_openshift_client) == "kube:admin"

    def test_not_logged_in(self, mock_openshift_client) -> None:
        """Test that a 401 tells the operator to log in."""
        mock_openshift_client.whoami.side_effect = ApiException(status=401, reason="Unauthorized")

        with pytest.raises(EnvironmentCheckError, match="oc login"):
            verify_logged_in(mock_openshift_client)

    def test_namespace_missing(self, mock_openshift_client) -> None:
        mock_openshift_client.namespace_exists.return_value = False

        with pytest.raises(EnvironmentCheckError, match="Namespace models does not exist"):
            verify_namespace(mock_openshift_client, "models")

    def test_namespace_forbidden(self, mock_openshift_client) -> None:
        mock_openshift_client.namespace_exists.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(EnvironmentCheckError, match="Permission denied"):
            verify_namespace(mock_openshift_client, "models")

    def test_connect_trustyai(self, mock_openshift_client) -> None:
        """Test building the TrustyAI client from the route and session token."""
        mock_openshift_client.get_route_host.return_value = "trustyai.apps.example.com"

        with connect_trustyai(mock_openshift_client, "trustyai", "app=trustyai-service") as trustyai_client:
            assert trustyai_client.base_url == "https://trustyai.apps.example.com"
            assert trustyai_client.http_client.headers["Authorization"] == "Bearer sha256~test-token"

    def test_connect_trustyai_no_route(self, mock_openshift_client) -> None:
        """Test that a missing route is an environment error."""
        mock_openshift_client.get_route_host.return_value = None

        with pytest.raises(EnvironmentCheckError, match="Could not find TrustyAI route"):
            connect_trustyai(mock_openshift_client, "trustyai", "app=trustyai-service")

    def test_connect_trustyai_no_token(self, mock_openshift_client) -> None:
        mock_openshift_client.get_route_host.return_value = "trustyai.apps.example.com"
        mock_openshift_client.get_bearer_token.return_value = None

        with pytest.raises(EnvironmentCheckError, match="authentication token"):
            connect_trustyai(mock_openshift_client, "trustyai", "app=trustyai-service")
