"""Environment checks that run before any tool touches the cluster."""

import structlog
from kubernetes.client.rest import ApiException

from rhoai_upgrade.exceptions import EnvironmentCheckError
from rhoai_upgrade.services.error_translator import ErrorTranslator
from rhoai_upgrade.services.openshift_client import OpenShiftClient
from rhoai_upgrade.services.trustyai_client import TrustyAIClient

logger = structlog.get_logger(__name__)


def verify_logged_in(openshift_client: OpenShiftClient) -> str:
    """Ensure the cluster session is authenticated.

    Returns:
        Name of the logged-in user

    Raises:
        EnvironmentCheckError: If the session is missing or expired
    """
    try:
        user = openshift_client.whoami()
    except ApiException as e:
        if e.status == 401:
            raise EnvironmentCheckError("You are not logged in to the cluster (run oc login)") from e
        raise EnvironmentCheckError(ErrorTranslator.translate_api_exception(e)) from e

    logger.debug("cluster_session_verified", user=user)
    return user


def verify_namespace(openshift_client: OpenShiftClient, namespace: str) -> None:
    """Ensure the target namespace exists.

    Raises:
        EnvironmentCheckError: If it does not exist or cannot be read
    """
    try:
        exists = openshift_client.namespace_exists(namespace)
    except ApiException as e:
        raise EnvironmentCheckError(ErrorTranslator.translate_api_exception(e)) from e
    if not exists:
        raise EnvironmentCheckError(f"Namespace {namespace} does not exist")


def connect_trustyai(
    openshift_client: OpenShiftClient,
    namespace: str,
    route_label: str,
    verify_ssl: bool = True,
) -> TrustyAIClient:
    """Discover the TrustyAI route and build an authenticated client.

    Raises:
        EnvironmentCheckError: If the route or the bearer token is unavailable
    """
    logger.info("fetching_trustyai_route", namespace=namespace, route_label=route_label)
    try:
        route_host = openshift_client.get_route_host(namespace, route_label)
    except ApiException as e:
        raise EnvironmentCheckError(ErrorTranslator.translate_api_exception(e)) from e

    if not route_host:
        raise EnvironmentCheckError(
            f"Could not find TrustyAI route in namespace {namespace} with label {route_label}. "
            "Please check that the TrustyAI service is deployed and the route exists."
        )
    logger.info("trustyai_route_found", route=route_host)

    token = openshift_client.get_bearer_token()
    if not token:
        raise EnvironmentCheckError(
            "Could not retrieve authentication token. Please ensure you are logged in to the cluster."
        )

    return TrustyAIClient(route_host=route_host, token=token, verify_ssl=verify_ssl)
